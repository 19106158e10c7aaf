"""ODE Discovery System.

This module implements a genetic-programming engine that searches for an
expression f(x, t) whose ODE x' = f(x, t) reproduces an observed trajectory:
- Expression tree genetic programming
- Fixed-step RK4 simulation for fitness
- Tournament selection, subtree crossover, mutation, elitism
"""

from odeforge.discovery.expression.tree import ExpressionTree, TreeGenerator
from odeforge.discovery.expression.types import NodeType, OperatorRegistry
from odeforge.discovery.evolution.engine import (
    EvolutionConfig,
    EvolutionEngine,
    RunResult,
)
from odeforge.discovery.orchestrator import DiscoveryOrchestrator, DiscoveryResult

__all__ = [
    "ExpressionTree",
    "TreeGenerator",
    "NodeType",
    "OperatorRegistry",
    "EvolutionConfig",
    "EvolutionEngine",
    "RunResult",
    "DiscoveryOrchestrator",
    "DiscoveryResult",
]
