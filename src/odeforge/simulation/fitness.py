"""Fitness evaluation: how well a candidate ODE reproduces the observed trajectory.

Fitness = 1 / (1 + SSE), where SSE is the sum of squared residuals between
predicted and observed positions. Successful integrations score in (0, 1];
integration failures score exactly 0.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from odeforge.data.dataset import Dataset
from odeforge.discovery.expression.tree import ExpressionTree
from odeforge.simulation.integrator import DEFAULT_SUBSTEPS, Trajectory, integrate


WORST_FITNESS = 0.0


@dataclass(frozen=True)
class FitnessResult:
    """Outcome of evaluating one tree.

    Attributes:
        fitness: 1 / (1 + error), or 0.0 on failure
        error: Sum of squared residuals (inf on failure)
        failed_at: Sample index where integration broke down, if it did
    """

    fitness: float
    error: float
    failed_at: int | None = None

    @property
    def failed(self) -> bool:
        return self.fitness == WORST_FITNESS


def error_to_fitness(error: float) -> float:
    """Map a non-negative error onto (0, 1]; lower error gives higher fitness."""
    return 1.0 / (1.0 + error)


def trajectory_error(trajectory: Trajectory, dataset: Dataset) -> float:
    """Sum of squared residuals between a trajectory and the observations."""
    with np.errstate(over="ignore", invalid="ignore"):
        residuals = trajectory.positions - dataset.position_data
        return float(np.sum(residuals * residuals))


class FitnessEvaluator:
    """Scores expression trees against one dataset.

    Holds no mutable state, so a single evaluator can be shared across
    worker threads.
    """

    def __init__(self, dataset: Dataset, substeps: int = DEFAULT_SUBSTEPS):
        self.dataset = dataset
        self.substeps = substeps

    def evaluate(self, tree: ExpressionTree) -> FitnessResult:
        """Integrate the tree and score the resulting trajectory."""
        trajectory = integrate(tree, self.dataset, self.substeps)

        if not trajectory.ok:
            return FitnessResult(
                fitness=WORST_FITNESS,
                error=math.inf,
                failed_at=trajectory.failed_at,
            )

        error = trajectory_error(trajectory, self.dataset)
        if not math.isfinite(error):
            return FitnessResult(fitness=WORST_FITNESS, error=math.inf)

        return FitnessResult(fitness=error_to_fitness(error), error=error)

    def __call__(self, tree: ExpressionTree) -> float:
        return self.evaluate(tree).fitness


def evaluate_fitness(
    tree: ExpressionTree,
    dataset: Dataset,
    substeps: int = DEFAULT_SUBSTEPS,
) -> float:
    """Fitness of a tree against a dataset."""
    return FitnessEvaluator(dataset, substeps).evaluate(tree).fitness
