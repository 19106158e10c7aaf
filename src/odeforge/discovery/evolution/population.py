"""Population management for genetic programming.

Handles population initialization and statistics.
"""

from dataclasses import dataclass, field
from typing import Iterator, Callable
import logging
import math

from odeforge.discovery.expression.tree import ExpressionTree
from odeforge.discovery.operators.selection import Individual

logger = logging.getLogger(__name__)


@dataclass
class PopulationStats:
    """Statistics about an evaluated population."""

    size: int
    unique_formulas: int
    avg_size: float
    avg_depth: float
    best_fitness: float
    mean_fitness: float
    best_error: float
    n_failed: int


@dataclass
class Population:
    """Fixed-size, ordered population of individuals.

    Attributes:
        individuals: Individuals in creation order
        generation: Number of replacement cycles that produced this population
    """

    individuals: list[Individual] = field(default_factory=list)
    generation: int = 0

    def __len__(self) -> int:
        return len(self.individuals)

    def __iter__(self) -> Iterator[Individual]:
        return iter(self.individuals)

    def __getitem__(self, idx: int) -> Individual:
        return self.individuals[idx]

    def add(self, individual: Individual) -> None:
        self.individuals.append(individual)

    def add_tree(self, tree: ExpressionTree) -> Individual:
        """Add a tree as a new, unevaluated individual."""
        individual = Individual(tree=tree, birth_generation=self.generation)
        self.individuals.append(individual)
        return individual

    def unevaluated(self) -> list[Individual]:
        return [ind for ind in self.individuals if not ind.is_evaluated]

    def best(self) -> Individual | None:
        """Get the fittest individual (first one on ties)."""
        evaluated = [ind for ind in self.individuals if ind.is_evaluated]
        if not evaluated:
            return None
        return max(evaluated, key=lambda ind: ind.fitness)

    def top(self, n: int) -> list[Individual]:
        """Get the n fittest evaluated individuals, best first (stable on ties)."""
        evaluated = [ind for ind in self.individuals if ind.is_evaluated]
        return sorted(evaluated, key=lambda ind: -ind.fitness)[:n]

    def compute_stats(self) -> PopulationStats:
        """Compute population statistics."""
        if not self.individuals:
            return PopulationStats(
                size=0,
                unique_formulas=0,
                avg_size=0.0,
                avg_depth=0.0,
                best_fitness=0.0,
                mean_fitness=0.0,
                best_error=math.inf,
                n_failed=0,
            )

        n = len(self.individuals)
        fitnesses = [ind.fitness or 0.0 for ind in self.individuals]
        errors = [
            ind.error for ind in self.individuals
            if ind.error is not None and math.isfinite(ind.error)
        ]

        return PopulationStats(
            size=n,
            unique_formulas=len({ind.tree.hash for ind in self.individuals}),
            avg_size=sum(ind.tree.size for ind in self.individuals) / n,
            avg_depth=sum(ind.tree.depth for ind in self.individuals) / n,
            best_fitness=max(fitnesses),
            mean_fitness=sum(fitnesses) / n,
            best_error=min(errors) if errors else math.inf,
            n_failed=sum(1 for ind in self.individuals if ind.fitness == 0.0),
        )

    def to_trees(self) -> list[ExpressionTree]:
        """Extract all trees from population."""
        return [ind.tree for ind in self.individuals]


def create_initial_population(
    size: int,
    generator: Callable[[], ExpressionTree],
    warm_start_trees: list[ExpressionTree] | None = None,
    max_depth: int | None = None,
) -> Population:
    """Create an initial population of exactly `size` individuals.

    Prefers distinct formulas, but fills up with duplicates once the
    attempt budget is spent so the population size is always met.

    Args:
        size: Target population size
        generator: Function to generate new trees
        warm_start_trees: Optional trees to include first
        max_depth: Warm-start trees deeper than this are skipped

    Returns:
        Population with `size` unevaluated individuals
    """
    if size < 1:
        raise ValueError(f"Population size must be >= 1, got {size}")

    population = Population()
    seen_hashes: set[str] = set()

    for tree in warm_start_trees or []:
        if len(population) >= size:
            break
        if max_depth is not None and tree.depth > max_depth:
            logger.warning(
                "Skipping warm-start tree of depth %d (max_depth=%d): %s",
                tree.depth, max_depth, tree.formula,
            )
            continue
        population.add_tree(tree.clone())
        seen_hashes.add(tree.hash)

    attempts = 0
    max_attempts = size * 10

    while len(population) < size:
        attempts += 1
        tree = generator()
        if tree.hash in seen_hashes and attempts < max_attempts:
            continue
        seen_hashes.add(tree.hash)
        population.add_tree(tree)

    return population
