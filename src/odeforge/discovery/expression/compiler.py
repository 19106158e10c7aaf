"""Compiler and evaluator for expression trees.

Evaluates f(x, t) for a tree, either by walking it (evaluate_tree) or by
compiling it once into nested closures (compile_tree) for the integrator's
inner loop. Both raise DomainError instead of returning NaN or infinity.
"""

from __future__ import annotations

from typing import Callable
import math

from odeforge.discovery.expression.nodes import (
    Node,
    OperatorNode,
    VariableNode,
    ConstantNode,
    StructuralError,
)
from odeforge.discovery.expression.tree import ExpressionTree


# Denominators smaller than this in magnitude are treated as zero
DIV_EPSILON = 1e-12

CompiledExpression = Callable[[float, float], float]


class DomainError(ArithmeticError):
    """Raised when an expression is undefined or non-finite at a point."""

    def __init__(self, operator: str, operands: tuple[float, ...]):
        self.operator = operator
        self.operands = operands
        super().__init__(f"{operator}{operands} is undefined or non-finite")


def _div(a: float, b: float) -> float:
    if abs(b) < DIV_EPSILON:
        raise ZeroDivisionError("denominator below epsilon")
    return a / b


_OPERATIONS: dict[str, Callable[..., float]] = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "div": _div,
    "pow": math.pow,
    "neg": lambda a: -a,
    "square": lambda a: a * a,
    "sqrt": math.sqrt,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "exp": math.exp,
    "log": math.log,
}


def _apply(name: str, func: Callable[..., float], *args: float) -> float:
    """Apply an operation, converting math failures into DomainError."""
    try:
        result = func(*args)
    except (ValueError, OverflowError, ZeroDivisionError) as e:
        raise DomainError(name, args) from e

    if not math.isfinite(result):
        raise DomainError(name, args)
    return result


def evaluate_tree(node: Node | ExpressionTree, x: float, t: float) -> float:
    """Evaluate an expression at position x and time t.

    Args:
        node: Root node (or tree) to evaluate
        x: Current position
        t: Current time

    Returns:
        Finite value of f(x, t)

    Raises:
        DomainError: If any operation is undefined or non-finite
    """
    if isinstance(node, ExpressionTree):
        node = node.root

    if isinstance(node, ConstantNode):
        return node.value
    if isinstance(node, VariableNode):
        return x if node.name == "x" else t
    if isinstance(node, OperatorNode):
        if not node.is_complete():
            raise StructuralError(
                f"Operator {node.name} has {len(node.children)} children, expected {node.arity}"
            )
        args = [evaluate_tree(c, x, t) for c in node.children]
        return _apply(node.name, _OPERATIONS[node.name], *args)

    raise StructuralError(f"Unknown node type: {type(node).__name__}")


def compile_tree(node: Node | ExpressionTree) -> CompiledExpression:
    """Compile an expression into a callable f(x, t).

    The callable computes exactly what evaluate_tree computes, without
    re-dispatching on node types at every call.
    """
    if isinstance(node, ExpressionTree):
        node = node.root

    if isinstance(node, ConstantNode):
        value = node.value
        return lambda x, t: value

    if isinstance(node, VariableNode):
        if node.name == "x":
            return lambda x, t: x
        return lambda x, t: t

    if isinstance(node, OperatorNode):
        if not node.is_complete():
            raise StructuralError(
                f"Operator {node.name} has {len(node.children)} children, expected {node.arity}"
            )
        name = node.name
        func = _OPERATIONS[name]

        if node.arity == 1:
            arg = compile_tree(node.children[0])

            def unary(x: float, t: float) -> float:
                return _apply(name, func, arg(x, t))

            return unary

        left = compile_tree(node.children[0])
        right = compile_tree(node.children[1])

        def binary(x: float, t: float) -> float:
            return _apply(name, func, left(x, t), right(x, t))

        return binary

    raise StructuralError(f"Unknown node type: {type(node).__name__}")
