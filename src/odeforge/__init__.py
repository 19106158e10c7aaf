"""
odeforge: Genetic-programming discovery of first-order ODEs from trajectories.

Given paired (time, position) samples, searches for an expression f(x, t)
such that integrating x' = f(x, t) from the first sample reproduces the
observed trajectory.
"""

__version__ = "0.1.0"

from odeforge.data.dataset import Dataset, ValidationError
from odeforge.discovery.evolution.engine import EvolutionConfig, EvolutionEngine
from odeforge.discovery.orchestrator import DiscoveryOrchestrator, DiscoveryResult

__all__ = [
    "__version__",
    "Dataset",
    "ValidationError",
    "EvolutionConfig",
    "EvolutionEngine",
    "DiscoveryOrchestrator",
    "DiscoveryResult",
]
