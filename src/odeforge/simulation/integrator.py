"""Fixed-step RK4 integration of x' = f(x, t) on a dataset's time grid.

Each interval between consecutive sample times is split into a fixed number
of equal substeps, so the state lands exactly on every observed time and no
interpolation is needed.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from odeforge.data.dataset import Dataset
from odeforge.discovery.expression.compiler import (
    CompiledExpression,
    DomainError,
    compile_tree,
)
from odeforge.discovery.expression.nodes import Node
from odeforge.discovery.expression.tree import ExpressionTree


DEFAULT_SUBSTEPS = 4


@dataclass
class Trajectory:
    """Predicted positions aligned 1:1 with a dataset's time_data.

    Attributes:
        positions: Predicted position per sample (NaN from failed_at onward)
        failed_at: Index of the first sample that could not be reached,
                   or None if integration completed
    """

    positions: np.ndarray
    failed_at: int | None = None

    @property
    def ok(self) -> bool:
        return self.failed_at is None

    def __len__(self) -> int:
        return len(self.positions)


def rk4_step(f: CompiledExpression, t: float, x: float, h: float) -> float:
    """Advance x by one classical Runge-Kutta step of size h.

    Raises:
        DomainError: If f is undefined at any stage
    """
    h2 = 0.5 * h
    k1 = f(x, t)
    k2 = f(x + h2 * k1, t + h2)
    k3 = f(x + h2 * k2, t + h2)
    k4 = f(x + h * k3, t + h)
    return x + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


def integrate(
    tree: ExpressionTree | Node,
    dataset: Dataset,
    substeps: int = DEFAULT_SUBSTEPS,
) -> Trajectory:
    """Simulate x' = f(x, t) from the dataset's initial condition.

    Args:
        tree: Candidate right-hand side f
        dataset: Observed samples (time grid and initial condition)
        substeps: RK4 steps per sample interval

    Returns:
        Trajectory; on a DomainError or non-finite state the trajectory
        stops and failed_at marks the first unreachable sample
    """
    if substeps < 1:
        raise ValueError(f"substeps must be >= 1, got {substeps}")

    f = compile_tree(tree)
    times = dataset.time_data
    n = len(times)

    positions = np.full(n, np.nan)
    _, x = dataset.initial_condition
    positions[0] = x

    for i in range(1, n):
        t_start = float(times[i - 1])
        h = (float(times[i]) - t_start) / substeps

        try:
            for k in range(substeps):
                x = rk4_step(f, t_start + k * h, x, h)
                if not math.isfinite(x):
                    return Trajectory(positions=positions, failed_at=i)
        except DomainError:
            return Trajectory(positions=positions, failed_at=i)

        positions[i] = x

    return Trajectory(positions=positions)


class RK4Integrator:
    """Reusable RK4 integrator bound to a substep count."""

    def __init__(self, substeps: int = DEFAULT_SUBSTEPS):
        if substeps < 1:
            raise ValueError(f"substeps must be >= 1, got {substeps}")
        self.substeps = substeps

    def integrate(self, tree: ExpressionTree | Node, dataset: Dataset) -> Trajectory:
        return integrate(tree, dataset, self.substeps)
