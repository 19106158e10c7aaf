"""Operator signatures for ODE right-hand-side expressions.

Every operator has a fixed arity. The set of operators available to a run is
an OperatorRegistry, a validated subset of OPERATOR_SIGNATURES.
"""

from enum import Enum, auto
from dataclasses import dataclass
import random


class NodeType(Enum):
    """Types of nodes in expression tree."""

    OPERATOR = auto()    # Function with children (arity 1 or 2)
    VARIABLE = auto()    # Free variable: x (position) or t (time)
    CONSTANT = auto()    # Literal value


VARIABLES: tuple[str, ...] = ("x", "t")


@dataclass(frozen=True)
class OperatorSignature:
    """Signature of an operator: token, arity and infix rendering.

    Attributes:
        name: Token used in prefix formulas
        arity: Number of children (1 or 2)
        symbol: Infix symbol for binary operators, None for function-style
    """

    name: str
    arity: int
    symbol: str | None = None

    def __post_init__(self) -> None:
        if self.arity not in (1, 2):
            raise ValueError(f"Operator {self.name} has unsupported arity {self.arity}")

    def render_infix(self, args: list[str]) -> str:
        """Render already-rendered arguments in infix notation."""
        if self.arity == 2 and self.symbol:
            return f"({args[0]} {self.symbol} {args[1]})"
        if self.name == "neg":
            return f"(-{args[0]})"
        return f"{self.name}({', '.join(args)})"


OPERATOR_SIGNATURES: dict[str, OperatorSignature] = {
    # Arithmetic
    "add": OperatorSignature("add", 2, "+"),
    "sub": OperatorSignature("sub", 2, "-"),
    "mul": OperatorSignature("mul", 2, "*"),
    "div": OperatorSignature("div", 2, "/"),
    "pow": OperatorSignature("pow", 2, "^"),
    "neg": OperatorSignature("neg", 1),
    "square": OperatorSignature("square", 1),
    "sqrt": OperatorSignature("sqrt", 1),

    # Transcendental
    "sin": OperatorSignature("sin", 1),
    "cos": OperatorSignature("cos", 1),
    "tan": OperatorSignature("tan", 1),
    "exp": OperatorSignature("exp", 1),
    "log": OperatorSignature("log", 1),
}

DEFAULT_OPERATORS: tuple[str, ...] = (
    "add", "sub", "mul", "div", "neg", "sin", "cos", "exp", "pow",
)


def validate_token(token: str) -> None:
    """Check that an operator token is usable in rendered formulas.

    Tokens must be alphanumeric and must not start with a digit, so a
    prefix formula never confuses a token with a constant.
    """
    if not token or not token.isalnum():
        raise ValueError(f"Token {token!r} invalid, must be non-empty and alphanumeric")
    if token[0].isdigit():
        raise ValueError(f"Token {token!r} invalid, cannot begin with a digit")


class OperatorRegistry:
    """Enabled subset of the operator set for one run."""

    def __init__(self, names: tuple[str, ...] | list[str] = DEFAULT_OPERATORS):
        if not names:
            raise ValueError("At least one operator must be enabled")

        self._names: list[str] = []
        for name in names:
            validate_token(name)
            if name not in OPERATOR_SIGNATURES:
                raise ValueError(
                    f"Unknown operator: {name}. Valid: {sorted(OPERATOR_SIGNATURES)}"
                )
            if name not in self._names:
                self._names.append(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def signature(self, name: str) -> OperatorSignature:
        return OPERATOR_SIGNATURES[name]

    def with_arity(self, arity: int) -> list[str]:
        """Get enabled operators with the given arity."""
        return [n for n in self._names if OPERATOR_SIGNATURES[n].arity == arity]

    def random_operator(self, rng: random.Random) -> OperatorSignature:
        """Pick an enabled operator uniformly at random."""
        return OPERATOR_SIGNATURES[rng.choice(self._names)]

    def __repr__(self) -> str:
        return f"OperatorRegistry({', '.join(self._names)})"
