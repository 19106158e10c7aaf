"""Evolution engine for ODE discovery.

Generational genetic programming over expression trees:
- Tournament selection with elitism
- Subtree crossover and mixed mutation
- Parallel, barrier-synchronised fitness evaluation
"""

from odeforge.discovery.evolution.engine import (
    EvolutionConfig,
    EvolutionEngine,
    RunResult,
)
from odeforge.discovery.evolution.population import (
    Population,
    PopulationStats,
    create_initial_population,
)

__all__ = [
    "EvolutionConfig",
    "EvolutionEngine",
    "RunResult",
    "Population",
    "PopulationStats",
    "create_initial_population",
]
