"""Selection operators for single-objective genetic programming.

Provides selection strategies:
- Tournament selection: Fittest of k uniformly drawn individuals
- Elitism: Top individuals carried over unchanged
"""

from __future__ import annotations

from dataclasses import dataclass
import random

from odeforge.discovery.expression.tree import ExpressionTree


@dataclass
class Individual:
    """A genome: an expression tree plus its cached fitness.

    Attributes:
        tree: Candidate right-hand side f(x, t)
        fitness: Fitness in [0, 1] (None until evaluated)
        error: Sum of squared residuals (None until evaluated)
        birth_generation: Generation in which the tree was created
    """

    tree: ExpressionTree
    fitness: float | None = None
    error: float | None = None
    birth_generation: int = 0

    @property
    def is_evaluated(self) -> bool:
        return self.fitness is not None

    def clone(self) -> "Individual":
        """Deep copy, keeping the cached fitness."""
        return Individual(
            tree=self.tree.clone(),
            fitness=self.fitness,
            error=self.error,
            birth_generation=self.birth_generation,
        )


def _require_evaluated(population: list[Individual]) -> None:
    if not population:
        raise ValueError("Cannot select from an empty population")
    if any(ind.fitness is None for ind in population):
        raise ValueError("All individuals must be evaluated before selection")


def tournament_select(
    population: list[Individual],
    tournament_size: int = 3,
    rng: random.Random | None = None,
) -> Individual:
    """Run one tournament and return its winner.

    Contestants are drawn uniformly with replacement; the first contestant
    with the highest fitness wins.
    """
    rng = rng or random.Random()
    _require_evaluated(population)

    if tournament_size < 1:
        raise ValueError(f"tournament_size must be >= 1, got {tournament_size}")

    best = rng.choice(population)
    for _ in range(tournament_size - 1):
        contender = rng.choice(population)
        if contender.fitness > best.fitness:
            best = contender
    return best


def tournament_selection(
    population: list[Individual],
    n_select: int,
    tournament_size: int = 3,
    rng: random.Random | None = None,
) -> list[Individual]:
    """Select individuals using tournament selection.

    Args:
        population: Evaluated population to select from
        n_select: Number of individuals to select
        tournament_size: Number of contestants per tournament
        rng: Random number generator

    Returns:
        List of selected individuals (may contain repeats)
    """
    rng = rng or random.Random()
    return [
        tournament_select(population, tournament_size, rng)
        for _ in range(n_select)
    ]


def select_elites(population: list[Individual], n_elites: int) -> list[Individual]:
    """Get clones of the n_elites fittest individuals.

    Ties keep population order, so the result is deterministic.
    """
    if n_elites <= 0:
        return []
    _require_evaluated(population)

    ranked = sorted(population, key=lambda ind: -ind.fitness)
    return [ind.clone() for ind in ranked[:n_elites]]
