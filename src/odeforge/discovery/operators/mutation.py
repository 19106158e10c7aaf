"""Mutation operators for expression tree genetic programming.

Provides various mutation strategies:
- Subtree mutation: Replace a random subtree with a new random subtree
- Constant mutation: Perturb a numeric constant
- Operator mutation: Swap an operator for another of the same arity
- Variable mutation: Swap x for t or t for x
"""

import random

from odeforge.discovery.expression.tree import ExpressionTree, TreeGenerator
from odeforge.discovery.expression.nodes import (
    OperatorNode,
    VariableNode,
    ConstantNode,
    validate_structure,
)


DEFAULT_MUTATION_WEIGHTS: dict[str, float] = {
    "subtree": 0.6,
    "constant": 0.2,
    "operator": 0.1,
    "variable": 0.1,
}


def mutate_subtree(
    tree: ExpressionTree,
    rng: random.Random | None = None,
    generator: TreeGenerator | None = None,
) -> ExpressionTree:
    """Replace a random subtree with a freshly generated one.

    The new subtree gets the depth budget left at the chosen position, so
    the result never exceeds the generator's max_depth.

    Args:
        tree: Tree to mutate
        rng: Random number generator
        generator: Generator supplying operators, constants and max_depth

    Returns:
        New mutated tree
    """
    rng = rng or random.Random()
    generator = generator or TreeGenerator(rng=rng)

    depths = tree.node_depths()
    idx = rng.randrange(len(depths))

    budget = max(1, generator.max_depth - depths[idx] + 1)
    new_subtree = generator.generate_node(budget, method="grow")

    mutated = tree.replace_subtree(idx, new_subtree)
    validate_structure(mutated.root, max(generator.max_depth, tree.depth))
    return mutated


def mutate_constant(
    tree: ExpressionTree,
    rng: random.Random | None = None,
    scale: float = 0.2,
    value_range: tuple[float, float] = ConstantNode.DEFAULT_RANGE,
) -> ExpressionTree:
    """Perturb a random constant node with Gaussian noise.

    Args:
        tree: Tree to mutate
        rng: Random number generator
        scale: Noise scale relative to the constant's magnitude
        value_range: Range the perturbed value is clipped to

    Returns:
        New mutated tree (a clone if the tree has no constants)
    """
    rng = rng or random.Random()

    nodes = tree.get_nodes()
    constant_indices = [
        i for i, n in enumerate(nodes)
        if isinstance(n, ConstantNode)
    ]

    if not constant_indices:
        return tree.clone()

    idx = rng.choice(constant_indices)
    value = nodes[idx].value

    sigma = abs(value) * scale if value != 0 else scale
    new_value = value + rng.gauss(0, sigma)
    new_value = max(value_range[0], min(value_range[1], new_value))

    return tree.replace_subtree(idx, ConstantNode(value=new_value))


def mutate_operator(
    tree: ExpressionTree,
    rng: random.Random | None = None,
    generator: TreeGenerator | None = None,
) -> ExpressionTree:
    """Swap an operator with another enabled operator of the same arity.

    Preserves tree structure, only changes operator function.
    """
    rng = rng or random.Random()
    generator = generator or TreeGenerator(rng=rng)

    nodes = tree.get_nodes()
    operator_indices = [
        i for i, n in enumerate(nodes)
        if isinstance(n, OperatorNode)
    ]

    if not operator_indices:
        return tree.clone()

    idx = rng.choice(operator_indices)
    node = nodes[idx]

    compatible = [
        name for name in generator.operators.with_arity(node.arity)
        if name != node.name
    ]
    if not compatible:
        return tree.clone()

    new_node = OperatorNode(name=rng.choice(compatible), children=node.children)
    return tree.replace_subtree(idx, new_node)


def mutate_variable(
    tree: ExpressionTree,
    rng: random.Random | None = None,
) -> ExpressionTree:
    """Swap a random variable between x and t."""
    rng = rng or random.Random()

    nodes = tree.get_nodes()
    variable_indices = [
        i for i, n in enumerate(nodes)
        if isinstance(n, VariableNode)
    ]

    if not variable_indices:
        return tree.clone()

    idx = rng.choice(variable_indices)
    new_name = "t" if nodes[idx].name == "x" else "x"
    return tree.replace_subtree(idx, VariableNode(name=new_name))


def mutate(
    tree: ExpressionTree,
    rng: random.Random | None = None,
    generator: TreeGenerator | None = None,
    weights: dict[str, float] | None = None,
) -> ExpressionTree:
    """Apply a randomly chosen mutation to the tree.

    Args:
        tree: Tree to mutate
        rng: Random number generator
        generator: Generator for subtree and operator mutation
        weights: Relative weight per mutation kind
                 ("subtree", "constant", "operator", "variable")

    Returns:
        New mutated tree
    """
    rng = rng or random.Random()
    generator = generator or TreeGenerator(rng=rng)
    weights = weights or DEFAULT_MUTATION_WEIGHTS

    unknown = set(weights) - set(DEFAULT_MUTATION_WEIGHTS)
    if unknown:
        raise ValueError(f"Unknown mutation kinds: {sorted(unknown)}")

    total = sum(weights.values())
    if total <= 0:
        raise ValueError("Mutation weights must sum to a positive value")

    # Normalize probabilities
    r = rng.random() * total
    cumulative = 0.0
    kind = "subtree"
    for name, weight in weights.items():
        cumulative += weight
        if r < cumulative:
            kind = name
            break

    if kind == "subtree":
        return mutate_subtree(tree, rng, generator)
    elif kind == "constant":
        return mutate_constant(tree, rng, value_range=generator.constant_range)
    elif kind == "operator":
        return mutate_operator(tree, rng, generator)
    else:
        return mutate_variable(tree, rng)
