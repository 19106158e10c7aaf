"""GP operators for tree manipulation.

This module provides mutation, crossover, and selection operators
for genetic programming on expression trees.
"""

from odeforge.discovery.operators.mutation import (
    mutate,
    mutate_subtree,
    mutate_constant,
    mutate_operator,
    mutate_variable,
)
from odeforge.discovery.operators.crossover import (
    crossover,
    crossover_subtree,
)
from odeforge.discovery.operators.selection import (
    Individual,
    tournament_select,
    tournament_selection,
    select_elites,
)

__all__ = [
    "mutate",
    "mutate_subtree",
    "mutate_constant",
    "mutate_operator",
    "mutate_variable",
    "crossover",
    "crossover_subtree",
    "Individual",
    "tournament_select",
    "tournament_selection",
    "select_elites",
]
