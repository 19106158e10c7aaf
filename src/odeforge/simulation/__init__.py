"""ODE simulation and trajectory-matching fitness."""

from odeforge.simulation.integrator import (
    RK4Integrator,
    Trajectory,
    integrate,
    rk4_step,
)
from odeforge.simulation.fitness import (
    FitnessEvaluator,
    FitnessResult,
    WORST_FITNESS,
    error_to_fitness,
    evaluate_fitness,
)

__all__ = [
    "RK4Integrator",
    "Trajectory",
    "integrate",
    "rk4_step",
    "FitnessEvaluator",
    "FitnessResult",
    "WORST_FITNESS",
    "error_to_fitness",
    "evaluate_fitness",
]
