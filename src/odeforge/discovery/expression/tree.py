"""Expression tree for ODE right-hand sides.

An ExpressionTree represents a candidate f in x' = f(x, t), like:
    add(mul(2.0000, t), sin(x))

Trees are treated as values: every structural edit returns a new tree built
on a clone, so no node is ever reachable from two trees.
"""

from dataclasses import dataclass
import random
import hashlib

from odeforge.discovery.expression.types import (
    DEFAULT_OPERATORS,
    VARIABLES,
    OperatorRegistry,
)
from odeforge.discovery.expression.nodes import (
    Node,
    OperatorNode,
    VariableNode,
    ConstantNode,
    StructuralError,
    count_nodes,
    get_depth,
    collect_nodes,
    collect_depths,
    validate_structure,
)


@dataclass
class ExpressionTree:
    """Expression tree representing f(x, t).

    Attributes:
        root: The root node of the tree
    """

    root: Node

    def __post_init__(self) -> None:
        """Validate tree structure."""
        validate_structure(self.root)

    @property
    def size(self) -> int:
        """Get total number of nodes."""
        return count_nodes(self.root)

    @property
    def depth(self) -> int:
        """Get tree depth."""
        return get_depth(self.root)

    @property
    def formula(self) -> str:
        """Get prefix string representation of the formula."""
        return self.root.to_string()

    @property
    def infix(self) -> str:
        """Get infix string representation of the formula."""
        return self.root.to_infix()

    @property
    def hash(self) -> str:
        """Get a hash of the formula for deduplication."""
        return hashlib.md5(self.formula.encode()).hexdigest()[:12]

    def is_valid(self, max_depth: int | None = None) -> bool:
        """Check if tree is structurally valid."""
        try:
            validate_structure(self.root, max_depth)
        except StructuralError:
            return False
        return True

    def clone(self) -> "ExpressionTree":
        """Create a deep copy of the tree."""
        return ExpressionTree(root=self.root.clone())

    def get_nodes(self) -> list[Node]:
        """Get all nodes in the tree (pre-order)."""
        return collect_nodes(self.root)

    def node_depths(self) -> list[int]:
        """Get the depth of each node, aligned with get_nodes()."""
        return collect_depths(self.root)

    def replace_subtree(self, index: int, new_subtree: Node) -> "ExpressionTree":
        """Create new tree with subtree at index replaced.

        Returns a new ExpressionTree (immutable operation).
        """
        if index == 0:
            # Replace root
            return ExpressionTree(root=new_subtree.clone())

        new_root = self.root.clone()
        nodes = collect_nodes(new_root)

        if not 0 < index < len(nodes):
            raise IndexError(f"Index {index} out of range (tree size: {len(nodes)})")

        # Find parent and replace child
        target = nodes[index]
        for node in nodes:
            if isinstance(node, OperatorNode):
                for i, child in enumerate(node.children):
                    if child is target:
                        node.children[i] = new_subtree.clone()
                        return ExpressionTree(root=new_root)

        raise StructuralError(f"Could not find parent of node at index {index}")

    def get_variables(self) -> list[str]:
        """Get sorted list of variable names used in tree."""
        return sorted({n.name for n in self.get_nodes() if isinstance(n, VariableNode)})

    def get_operators(self) -> list[str]:
        """Get list of operator names used in tree."""
        return [n.name for n in self.get_nodes() if isinstance(n, OperatorNode)]

    def __str__(self) -> str:
        return self.formula

    def __repr__(self) -> str:
        return f"ExpressionTree({self.formula}, size={self.size}, depth={self.depth})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExpressionTree):
            return False
        return self.formula == other.formula

    def __hash__(self) -> int:
        return hash(self.formula)


class TreeGenerator:
    """Factory for generating random expression trees.

    Supports multiple generation methods:
    - grow: Leaf probability rises with depth (tends toward smaller trees)
    - full: Operators everywhere above the maximum depth
    - ramped: 50/50 mix of grow and full
    """

    def __init__(
        self,
        max_depth: int = 6,
        operators: OperatorRegistry | None = None,
        constant_range: tuple[float, float] = ConstantNode.DEFAULT_RANGE,
        constant_prob: float = 1 / 3,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")

        self.max_depth = max_depth
        self.operators = operators or OperatorRegistry(DEFAULT_OPERATORS)
        self.constant_range = constant_range
        self.constant_prob = constant_prob
        self.rng = rng or random.Random(seed)

    def generate(
        self,
        method: str = "ramped",
        max_depth: int | None = None,
    ) -> ExpressionTree:
        """Generate a random expression tree.

        Args:
            method: Generation method ("grow", "full", or "ramped")
            max_depth: Depth limit (defaults to the generator's max_depth)

        Returns:
            A valid ExpressionTree
        """
        if method == "ramped":
            method = self.rng.choice(["grow", "full"])

        root = self.generate_node(max_depth or self.max_depth, method=method)
        return ExpressionTree(root=root)

    def generate_node(
        self,
        max_depth: int,
        current_depth: int = 1,
        method: str = "grow",
    ) -> Node:
        """Recursively generate a subtree no deeper than max_depth."""
        if method not in ("grow", "full"):
            raise ValueError(f"Unknown generation method: {method}")

        at_max = current_depth >= max_depth
        choose_leaf = at_max or (
            method == "grow"
            and self.rng.random() < current_depth / max_depth
        )

        if choose_leaf:
            return self._generate_leaf()

        signature = self.operators.random_operator(self.rng)
        children = [
            self.generate_node(max_depth, current_depth + 1, method)
            for _ in range(signature.arity)
        ]
        return OperatorNode(name=signature.name, children=children)

    def _generate_leaf(self) -> Node:
        """Generate a variable or constant leaf."""
        if self.rng.random() < self.constant_prob:
            return ConstantNode.random(self.rng, self.constant_range)
        return VariableNode(name=self.rng.choice(VARIABLES))


def generate_random(
    max_depth: int,
    rng: random.Random,
    operators: OperatorRegistry | None = None,
    constant_range: tuple[float, float] = ConstantNode.DEFAULT_RANGE,
) -> Node:
    """Build a random subtree of depth at most max_depth using grow."""
    generator = TreeGenerator(
        max_depth=max_depth,
        operators=operators,
        constant_range=constant_range,
        rng=rng,
    )
    return generator.generate_node(max_depth, method="grow")
