"""Evolution engine for ODE right-hand-side discovery.

Generational GP with tournament selection, subtree crossover, mutation and
elitism. Each generation is fully evaluated (optionally in parallel) before
any selection happens. All randomness comes from one seeded generator used
only on the calling thread, so a seed fully determines a run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, asdict
from typing import Any, Callable
import logging
import math
import random

from odeforge.discovery.expression.types import DEFAULT_OPERATORS, OperatorRegistry
from odeforge.discovery.expression.nodes import ConstantNode
from odeforge.discovery.expression.tree import ExpressionTree, TreeGenerator
from odeforge.discovery.operators.crossover import crossover
from odeforge.discovery.operators.mutation import DEFAULT_MUTATION_WEIGHTS, mutate
from odeforge.discovery.operators.selection import (
    Individual,
    select_elites,
    tournament_select,
)
from odeforge.discovery.evolution.population import (
    Population,
    create_initial_population,
)
from odeforge.simulation.fitness import FitnessEvaluator

logger = logging.getLogger(__name__)

# Individuals listed per generation in the run statistics
N_TOP_REPORTED = 10


@dataclass
class EvolutionConfig:
    """Configuration for an evolutionary run.

    Attributes:
        population_size: Number of individuals N in every generation
        n_generations: Maximum number of replacement cycles
        max_depth: Maximum tree depth (a single leaf has depth 1)
        init_depth: Maximum depth of trees in the initial population
        crossover_prob: Probability a parent pair is recombined
        mutation_prob: Probability each offspring is mutated
        tournament_size: Contestants per tournament (k)
        elite_count: Fittest individuals copied unchanged each generation
        substeps: RK4 steps per sample interval
        constant_range: Range for randomly drawn constants
        operators: Enabled operator tokens
        mutation_weights: Relative weight per mutation kind
        target_fitness: Stop early once best fitness reaches this (None to disable)
        n_workers: Threads for fitness evaluation (1 = sequential)
        seed: Random seed
    """

    population_size: int = 200
    n_generations: int = 50
    max_depth: int = 6
    init_depth: int = 4
    crossover_prob: float = 0.9
    mutation_prob: float = 0.2
    tournament_size: int = 3
    elite_count: int = 2
    substeps: int = 4
    constant_range: tuple[float, float] = ConstantNode.DEFAULT_RANGE
    operators: tuple[str, ...] = DEFAULT_OPERATORS
    mutation_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_MUTATION_WEIGHTS)
    )
    target_fitness: float | None = None
    n_workers: int = 1
    seed: int | None = None

    def validate(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        if self.population_size < 1:
            raise ValueError(f"population_size must be >= 1, got {self.population_size}")
        if self.n_generations < 0:
            raise ValueError(f"n_generations must be >= 0, got {self.n_generations}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if not 1 <= self.init_depth <= self.max_depth:
            raise ValueError(
                f"init_depth must be in [1, max_depth={self.max_depth}], got {self.init_depth}"
            )
        for name in ("crossover_prob", "mutation_prob"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.tournament_size < 1:
            raise ValueError(f"tournament_size must be >= 1, got {self.tournament_size}")
        if not 0 <= self.elite_count < self.population_size:
            raise ValueError(
                f"elite_count must be in [0, population_size), got {self.elite_count}"
            )
        if self.substeps < 1:
            raise ValueError(f"substeps must be >= 1, got {self.substeps}")
        low, high = self.constant_range
        if not low < high:
            raise ValueError(f"constant_range must be (low, high) with low < high, got {self.constant_range}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")
        if self.target_fitness is not None and not 0.0 < self.target_fitness <= 1.0:
            raise ValueError(f"target_fitness must be in (0, 1], got {self.target_fitness}")
        # Raises ValueError for unknown or malformed tokens
        OperatorRegistry(self.operators)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunResult:
    """Result of an evolutionary run.

    Attributes:
        best: Clone of the best individual seen in any generation
        generation_found: Generation in which best was first seen
        n_generations: Number of replacement cycles completed
        converged: Whether target_fitness was reached
        history: Statistics per generation (generation 0 is the initial population)
        final_population: Population at the end of the run
    """

    best: Individual
    generation_found: int
    n_generations: int
    converged: bool
    history: list[dict[str, Any]]
    final_population: Population

    @property
    def tree(self) -> ExpressionTree:
        return self.best.tree

    @property
    def fitness(self) -> float:
        return self.best.fitness

    @property
    def error(self) -> float:
        return self.best.error

    @property
    def formula(self) -> str:
        return self.best.tree.formula


class EvolutionEngine:
    """Generational GP over expression trees with a single fitness objective."""

    def __init__(
        self,
        evaluator: FitnessEvaluator,
        config: EvolutionConfig | None = None,
    ):
        """Initialize the engine.

        Args:
            evaluator: Scores trees (higher is better, in [0, 1])
            config: Configuration
        """
        self.config = config or EvolutionConfig()
        self.config.validate()
        self.evaluator = evaluator

        self.rng = random.Random(self.config.seed)
        self.operators = OperatorRegistry(self.config.operators)
        self.tree_generator = TreeGenerator(
            max_depth=self.config.max_depth,
            operators=self.operators,
            constant_range=self.config.constant_range,
            rng=self.rng,
        )

    def run(
        self,
        initial_trees: list[ExpressionTree] | None = None,
        on_generation: Callable[[int, dict], None] | None = None,
    ) -> RunResult:
        """Run evolution until the generation budget or target fitness.

        Args:
            initial_trees: Optional warm-start trees
            on_generation: Optional callback called after each generation
                           is evaluated, with (generation_number, stats_dict)

        Returns:
            RunResult with the best individual ever seen
        """
        config = self.config
        logger.info(
            "Starting evolution: population=%d generations=%d seed=%s",
            config.population_size, config.n_generations, config.seed,
        )

        population = create_initial_population(
            size=config.population_size,
            generator=lambda: self.tree_generator.generate(
                method="ramped", max_depth=config.init_depth
            ),
            warm_start_trees=initial_trees,
            max_depth=config.max_depth,
        )
        self._evaluate_population(population)

        best: Individual | None = None
        generation_found = 0
        converged = False
        history: list[dict[str, Any]] = []

        while True:
            generation = population.generation
            assert len(population) == config.population_size

            # Best tracking
            candidate = population.best()
            if best is None or candidate.fitness > best.fitness:
                best = candidate.clone()
                generation_found = generation
                logger.info(
                    "Generation %d: new best fitness=%.6g error=%.6g %s",
                    generation, best.fitness, best.error, best.tree.formula,
                )

            stats = self._compute_generation_stats(population, best)
            history.append(stats)
            logger.debug("Generation %d stats: %s", generation, stats)

            if on_generation is not None:
                on_generation(generation, stats)

            if config.target_fitness is not None and best.fitness >= config.target_fitness:
                converged = True
                break
            if generation >= config.n_generations:
                break

            population = self._next_generation(population)
            self._evaluate_population(population)

        logger.info(
            "Evolution finished after %d generations: best fitness=%.6g (generation %d)",
            population.generation, best.fitness, generation_found,
        )

        return RunResult(
            best=best,
            generation_found=generation_found,
            n_generations=population.generation,
            converged=converged,
            history=history,
            final_population=population,
        )

    def _evaluate_population(self, population: Population) -> None:
        """Evaluate all individuals without fitness.

        Evaluations are independent, so they run in a thread pool when
        n_workers > 1. Returns only once every individual has a fitness.
        """
        unevaluated = population.unevaluated()

        if not unevaluated:
            return

        # For small batches, sequential is faster (avoid thread overhead)
        if self.config.n_workers == 1 or len(unevaluated) < 4:
            for ind in unevaluated:
                self._evaluate_individual(ind)
            return

        with ThreadPoolExecutor(max_workers=self.config.n_workers) as executor:
            futures = [executor.submit(self._evaluate_individual, ind) for ind in unevaluated]

            # Wait for all to complete (results are stored in individuals)
            for future in futures:
                future.result()

    def _evaluate_individual(self, individual: Individual) -> None:
        result = self.evaluator.evaluate(individual.tree)
        individual.fitness = result.fitness
        individual.error = result.error

    def _next_generation(self, population: Population) -> Population:
        """Build the next population: elites plus offspring, size N."""
        config = self.config
        next_population = Population(generation=population.generation + 1)

        for elite in select_elites(population.individuals, config.elite_count):
            next_population.add(elite)

        while len(next_population) < config.population_size:
            parent1 = tournament_select(population.individuals, config.tournament_size, self.rng)
            parent2 = tournament_select(population.individuals, config.tournament_size, self.rng)

            if self.rng.random() < config.crossover_prob:
                children = crossover(
                    parent1.tree,
                    parent2.tree,
                    rng=self.rng,
                    max_depth=config.max_depth,
                )
                offspring = [Individual(tree=child) for child in children]
            else:
                # Unchanged copies keep their (deterministic) fitness
                offspring = [parent1.clone(), parent2.clone()]

            for child in offspring:
                if len(next_population) >= config.population_size:
                    break

                if self.rng.random() < config.mutation_prob:
                    child = Individual(
                        tree=mutate(
                            child.tree,
                            rng=self.rng,
                            generator=self.tree_generator,
                            weights=config.mutation_weights,
                        )
                    )

                if not child.is_evaluated:
                    child.birth_generation = next_population.generation
                next_population.add(child)

        return next_population

    def _compute_generation_stats(
        self, population: Population, best: Individual
    ) -> dict[str, Any]:
        """Compute statistics for current generation."""
        stats = population.compute_stats()

        return {
            "generation": population.generation,
            "population_size": stats.size,
            "unique_formulas": stats.unique_formulas,
            "avg_size": stats.avg_size,
            "avg_depth": stats.avg_depth,
            "best_fitness": stats.best_fitness,
            "mean_fitness": stats.mean_fitness,
            "best_error": stats.best_error,
            "n_failed": stats.n_failed,
            "best_ever_fitness": best.fitness,
            "best_ever_error": best.error if best.error is not None else math.inf,
            "top_individuals": [
                {"formula": ind.tree.formula, "fitness": ind.fitness, "error": ind.error}
                for ind in population.top(N_TOP_REPORTED)
            ],
        }
