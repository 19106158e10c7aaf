"""Expression tree nodes for genetic programming.

Implements AST nodes for the right-hand side of x' = f(x, t):
- OperatorNode: Functions with children (e.g., add, sin)
- VariableNode: Free variables (x for position, t for time)
- ConstantNode: Literal values (e.g., 2.0, -0.5)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar
import random

from odeforge.discovery.expression.types import (
    NodeType,
    OPERATOR_SIGNATURES,
    OperatorSignature,
    VARIABLES,
)


class StructuralError(AssertionError):
    """Raised when a tree violates arity or depth invariants.

    Indicates a defect in tree construction, crossover or mutation rather
    than bad input data, so it is never recovered from.
    """

    pass


@dataclass
class Node(ABC):
    """Abstract base class for expression tree nodes."""

    @property
    @abstractmethod
    def node_type(self) -> NodeType:
        """Get the type of this node."""
        pass

    @property
    @abstractmethod
    def arity(self) -> int:
        """Get the number of children this node expects."""
        pass

    @abstractmethod
    def to_string(self) -> str:
        """Convert node to prefix string representation."""
        pass

    @abstractmethod
    def to_infix(self) -> str:
        """Convert node to infix string representation."""
        pass

    @abstractmethod
    def clone(self) -> "Node":
        """Create a deep copy of this node."""
        pass


@dataclass
class OperatorNode(Node):
    """Operator node with children.

    Represents functions like add(x, t), sin(x), etc.
    """

    name: str = ""
    children: list[Node] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.name not in OPERATOR_SIGNATURES:
            raise ValueError(f"Unknown operator: {self.name}")

    @property
    def node_type(self) -> NodeType:
        return NodeType.OPERATOR

    @property
    def signature(self) -> OperatorSignature:
        """Get the operator signature."""
        return OPERATOR_SIGNATURES[self.name]

    @property
    def arity(self) -> int:
        return self.signature.arity

    def is_complete(self) -> bool:
        """Check if all children are filled."""
        return len(self.children) == self.arity

    def to_string(self) -> str:
        child_strs = [c.to_string() for c in self.children]
        return f"{self.name}({', '.join(child_strs)})"

    def to_infix(self) -> str:
        return self.signature.render_infix([c.to_infix() for c in self.children])

    def clone(self) -> "OperatorNode":
        return OperatorNode(
            name=self.name,
            children=[c.clone() for c in self.children],
        )


@dataclass
class VariableNode(Node):
    """Variable node: x (current position) or t (current time)."""

    name: str = "x"

    def __post_init__(self) -> None:
        if self.name not in VARIABLES:
            raise ValueError(f"Unknown variable: {self.name}. Valid: {VARIABLES}")

    @property
    def children(self) -> list[Node]:
        return []

    @property
    def node_type(self) -> NodeType:
        return NodeType.VARIABLE

    @property
    def arity(self) -> int:
        return 0

    def to_string(self) -> str:
        return self.name

    def to_infix(self) -> str:
        return self.name

    def clone(self) -> "VariableNode":
        return VariableNode(name=self.name)


@dataclass
class ConstantNode(Node):
    """Constant node representing a real-valued literal."""

    value: float = 0.0

    # Default range for randomly drawn constants
    DEFAULT_RANGE: ClassVar[tuple[float, float]] = (-10.0, 10.0)

    def __post_init__(self) -> None:
        self.value = float(self.value)

    @property
    def children(self) -> list[Node]:
        return []

    @property
    def node_type(self) -> NodeType:
        return NodeType.CONSTANT

    @property
    def arity(self) -> int:
        return 0

    def to_string(self) -> str:
        return f"{self.value:.4f}"

    def to_infix(self) -> str:
        if self.value < 0:
            return f"({self.value:.4f})"
        return f"{self.value:.4f}"

    def clone(self) -> "ConstantNode":
        return ConstantNode(value=self.value)

    @classmethod
    def random(
        cls,
        rng: random.Random,
        value_range: tuple[float, float] | None = None,
    ) -> "ConstantNode":
        """Create a constant drawn uniformly from value_range."""
        low, high = value_range or cls.DEFAULT_RANGE
        return cls(value=rng.uniform(low, high))


def count_nodes(node: Node) -> int:
    """Count total nodes in a subtree."""
    return 1 + sum(count_nodes(c) for c in node.children)


def get_depth(node: Node) -> int:
    """Get the depth of a subtree (a single leaf has depth 1)."""
    if node.children:
        return 1 + max(get_depth(c) for c in node.children)
    return 1


def collect_nodes(node: Node) -> list[Node]:
    """Collect all nodes in a subtree (pre-order traversal)."""
    result = [node]
    for child in node.children:
        result.extend(collect_nodes(child))
    return result


def collect_depths(node: Node, current_depth: int = 1) -> list[int]:
    """Depth of every node in a subtree, in the same pre-order as collect_nodes."""
    result = [current_depth]
    for child in node.children:
        result.extend(collect_depths(child, current_depth + 1))
    return result


def validate_structure(node: Node, max_depth: int | None = None) -> None:
    """Assert arity and depth invariants for a subtree.

    Raises:
        StructuralError: If an operator has the wrong number of children,
            a leaf carries children, or the depth exceeds max_depth
    """
    for n in collect_nodes(node):
        if isinstance(n, OperatorNode):
            if n.name not in OPERATOR_SIGNATURES:
                raise StructuralError(f"Unknown operator in tree: {n.name}")
            if not n.is_complete():
                raise StructuralError(
                    f"Operator {n.name} has {len(n.children)} children, expected {n.arity}"
                )
        elif n.children:
            raise StructuralError(f"Leaf node {n.to_string()} has children")

    if max_depth is not None:
        depth = get_depth(node)
        if depth > max_depth:
            raise StructuralError(f"Tree depth {depth} exceeds maximum {max_depth}")
