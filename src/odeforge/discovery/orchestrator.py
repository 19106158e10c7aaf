"""Discovery Orchestrator - Main interface for ODE discovery.

Coordinates:
1. Dataset validation
2. Fitness evaluation (RK4 simulation against the observed trajectory)
3. Expression tree evolution
4. Result rendering

Usage:
    dataset = Dataset(time_data, position_data)
    orchestrator = DiscoveryOrchestrator(dataset, EvolutionConfig(seed=7))
    result = orchestrator.discover()
    print(result.infix, result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Any
import logging
import math

import numpy as np

from odeforge.data.dataset import Dataset
from odeforge.discovery.expression.tree import ExpressionTree
from odeforge.discovery.evolution.engine import (
    EvolutionConfig,
    EvolutionEngine,
    RunResult,
)
from odeforge.simulation.fitness import FitnessEvaluator
from odeforge.simulation.integrator import Trajectory, integrate

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    """Result from ODE discovery.

    Attributes:
        tree: Best expression tree found
        formula: Prefix rendering, e.g. "mul(2.0000, t)"
        infix: Infix rendering, e.g. "(2.0000 * t)"
        fitness: Fitness of the best tree
        error: Sum of squared residuals of the best tree
        generation_found: Generation in which the best tree first appeared
        n_generations: Number of generations completed
        converged: Whether the target fitness was reached
        generation_stats: Statistics per generation
    """

    tree: ExpressionTree
    formula: str
    infix: str
    fitness: float
    error: float
    generation_found: int
    n_generations: int
    converged: bool
    generation_stats: list[dict[str, Any]]

    @classmethod
    def from_run(cls, run: RunResult) -> "DiscoveryResult":
        return cls(
            tree=run.tree.clone(),
            formula=run.tree.formula,
            infix=run.tree.infix,
            fitness=run.fitness,
            error=run.error,
            generation_found=run.generation_found,
            n_generations=run.n_generations,
            converged=run.converged,
            generation_stats=run.history,
        )

    def summary(self) -> str:
        """Generate summary string."""
        return "\n".join([
            f"Best fit: x' = {self.infix}",
            f"Prefix: {self.formula}",
            f"Error (SSE): {self.error:.6g}",
            f"Fitness: {self.fitness:.6g}",
            f"Found in generation {self.generation_found} of {self.n_generations}",
        ])

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (infinite errors become None)."""
        def _finite(value: Any) -> Any:
            if isinstance(value, float):
                return value if math.isfinite(value) else None
            if isinstance(value, list):
                return [_finite(v) for v in value]
            if isinstance(value, dict):
                return {k: _finite(v) for k, v in value.items()}
            return value

        return {
            "formula": self.formula,
            "infix": self.infix,
            "fitness": self.fitness,
            "error": _finite(self.error),
            "generation_found": self.generation_found,
            "n_generations": self.n_generations,
            "converged": self.converged,
            "generation_stats": _finite(self.generation_stats),
        }


class DiscoveryOrchestrator:
    """Orchestrates ODE discovery for one observed trajectory.

    This is the main entry point for the discovery system.
    """

    def __init__(
        self,
        dataset: Dataset,
        config: EvolutionConfig | None = None,
    ):
        """Initialize discovery orchestrator.

        Args:
            dataset: Observed trajectory (already validated)
            config: Evolution configuration
        """
        self.dataset = dataset
        self.config = config or EvolutionConfig()
        self.config.validate()
        self.evaluator = FitnessEvaluator(dataset, substeps=self.config.substeps)
        self.result: DiscoveryResult | None = None

    def discover(
        self,
        warm_start_formulas: list[ExpressionTree] | None = None,
        on_generation: Callable[[int, dict], None] | None = None,
    ) -> DiscoveryResult:
        """Run ODE discovery.

        Args:
            warm_start_formulas: Optional trees to seed the population
            on_generation: Optional callback called after each generation
                           with (generation_number, stats_dict)

        Returns:
            DiscoveryResult for the best expression found
        """
        logger.info("Discovering ODE for %r", self.dataset)

        engine = EvolutionEngine(self.evaluator, self.config)
        run = engine.run(initial_trees=warm_start_formulas, on_generation=on_generation)

        self.result = DiscoveryResult.from_run(run)
        return self.result

    def predict(self, tree: ExpressionTree | None = None) -> Trajectory:
        """Simulate a tree (default: the discovered one) on the dataset's time grid."""
        if tree is None:
            if self.result is None:
                raise RuntimeError("No result yet: call discover() first")
            tree = self.result.tree
        return integrate(tree, self.dataset, self.config.substeps)

    def residuals(self, tree: ExpressionTree | None = None) -> np.ndarray:
        """Predicted minus observed positions (NaN where integration failed)."""
        return self.predict(tree).positions - self.dataset.position_data
