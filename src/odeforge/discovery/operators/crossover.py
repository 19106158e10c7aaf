"""Crossover operators for expression tree genetic programming.

Subtree crossover swaps one uniformly chosen subtree between two parents.
A child that would exceed the depth limit is replaced by a clone of its own
parent; trees are never truncated.
"""

import random
from typing import Tuple

from odeforge.discovery.expression.tree import ExpressionTree
from odeforge.discovery.expression.nodes import validate_structure


def crossover_subtree(
    parent1: ExpressionTree,
    parent2: ExpressionTree,
    rng: random.Random | None = None,
    max_depth: int | None = None,
) -> Tuple[ExpressionTree, ExpressionTree]:
    """Swap random subtrees between two parents.

    Args:
        parent1: First parent tree
        parent2: Second parent tree
        rng: Random number generator
        max_depth: Depth limit for offspring (None for no limit)

    Returns:
        Tuple of two offspring trees; neither shares nodes with a parent
    """
    rng = rng or random.Random()

    nodes1 = parent1.get_nodes()
    nodes2 = parent2.get_nodes()

    # Uniform crossover points over all nodes
    idx1 = rng.randrange(len(nodes1))
    idx2 = rng.randrange(len(nodes2))

    offspring1 = parent1.replace_subtree(idx1, nodes2[idx2])
    offspring2 = parent2.replace_subtree(idx2, nodes1[idx1])

    if max_depth is not None:
        if offspring1.depth > max_depth:
            offspring1 = parent1.clone()
        if offspring2.depth > max_depth:
            offspring2 = parent2.clone()

    validate_structure(offspring1.root, max_depth)
    validate_structure(offspring2.root, max_depth)

    return offspring1, offspring2


def crossover(
    parent1: ExpressionTree,
    parent2: ExpressionTree,
    rng: random.Random | None = None,
    max_depth: int | None = None,
    method: str = "subtree",
) -> Tuple[ExpressionTree, ExpressionTree]:
    """Apply crossover using specified method.

    Args:
        parent1: First parent tree
        parent2: Second parent tree
        rng: Random number generator
        max_depth: Depth limit for offspring
        method: Crossover method (only "subtree" is supported)

    Returns:
        Tuple of two offspring trees
    """
    rng = rng or random.Random()

    if method == "subtree":
        return crossover_subtree(parent1, parent2, rng, max_depth)
    else:
        raise ValueError(f"Unknown crossover method: {method}")
