"""Expression tree representation for genetic programming."""

from odeforge.discovery.expression.types import (
    NodeType,
    OperatorSignature,
    OperatorRegistry,
    OPERATOR_SIGNATURES,
    DEFAULT_OPERATORS,
)
from odeforge.discovery.expression.nodes import (
    Node,
    OperatorNode,
    VariableNode,
    ConstantNode,
    StructuralError,
)
from odeforge.discovery.expression.tree import (
    ExpressionTree,
    TreeGenerator,
    generate_random,
)
from odeforge.discovery.expression.compiler import (
    DomainError,
    compile_tree,
    evaluate_tree,
)

__all__ = [
    "NodeType",
    "OperatorSignature",
    "OperatorRegistry",
    "OPERATOR_SIGNATURES",
    "DEFAULT_OPERATORS",
    "Node",
    "OperatorNode",
    "VariableNode",
    "ConstantNode",
    "StructuralError",
    "ExpressionTree",
    "TreeGenerator",
    "generate_random",
    "DomainError",
    "compile_tree",
    "evaluate_tree",
]
