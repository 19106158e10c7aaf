"""
Pytest fixtures for odeforge tests.

Trajectories are generated from closed-form solutions so expected
fitness values are known exactly.
"""

import random

import numpy as np
import pytest


@pytest.fixture
def square_dataset():
    """x = t^2 sampled at t = 0, 1, 2, 3 (solution of x' = 2t)."""
    from odeforge.data.dataset import Dataset

    return Dataset([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 4.0, 9.0])


@pytest.fixture
def exponential_dataset():
    """x = e^t sampled on [0, 2] (solution of x' = x)."""
    from odeforge.data.dataset import Dataset

    t = np.linspace(0.0, 2.0, 11)
    return Dataset(t, np.exp(t))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def two_t():
    """Tree for f(x, t) = 2 * t."""
    from odeforge.discovery.expression.tree import ExpressionTree
    from odeforge.discovery.expression.nodes import OperatorNode, VariableNode, ConstantNode

    return ExpressionTree(
        root=OperatorNode(
            name="mul",
            children=[ConstantNode(value=2.0), VariableNode(name="t")],
        )
    )


@pytest.fixture
def divide_by_zero():
    """Tree for f(x, t) = x / 0."""
    from odeforge.discovery.expression.tree import ExpressionTree
    from odeforge.discovery.expression.nodes import OperatorNode, VariableNode, ConstantNode

    return ExpressionTree(
        root=OperatorNode(
            name="div",
            children=[VariableNode(name="x"), ConstantNode(value=0.0)],
        )
    )
