"""Tests for fitness evaluation."""

import math

import pytest

from odeforge.discovery.expression.tree import ExpressionTree, TreeGenerator
from odeforge.discovery.expression.nodes import ConstantNode
from odeforge.simulation.fitness import (
    FitnessEvaluator,
    error_to_fitness,
    evaluate_fitness,
)


class TestFitness:
    """Test fitness = 1 / (1 + SSE)."""

    def test_exact_fit(self, square_dataset, two_t):
        result = FitnessEvaluator(square_dataset).evaluate(two_t)

        assert result.fitness == pytest.approx(1.0)
        assert result.error == pytest.approx(0.0, abs=1e-20)
        assert not result.failed

    def test_failure_scores_zero(self, square_dataset, divide_by_zero):
        result = FitnessEvaluator(square_dataset).evaluate(divide_by_zero)

        assert result.fitness == 0.0
        assert result.error == math.inf
        assert result.failed_at == 1
        assert result.failed

    def test_known_error(self, square_dataset):
        """x' = 0 keeps x at 0, so SSE = 0 + 1 + 16 + 81 = 98."""
        tree = ExpressionTree(root=ConstantNode(value=0.0))

        assert evaluate_fitness(tree, square_dataset) == pytest.approx(1 / 99)
        assert FitnessEvaluator(square_dataset).evaluate(tree).error == pytest.approx(98.0)

    def test_error_to_fitness(self):
        assert error_to_fitness(0.0) == 1.0
        assert error_to_fitness(1.0) == 0.5

    def test_callable(self, square_dataset, two_t):
        evaluator = FitnessEvaluator(square_dataset)
        assert evaluator(two_t) == evaluator.evaluate(two_t).fitness

    def test_deterministic_and_bounded(self, exponential_dataset):
        evaluator = FitnessEvaluator(exponential_dataset)
        generator = TreeGenerator(max_depth=5, seed=8)

        for _ in range(50):
            tree = generator.generate()
            first = evaluator.evaluate(tree)
            second = evaluator.evaluate(tree)
            assert first == second
            assert 0.0 <= first.fitness <= 1.0
            if first.failed:
                assert first.error == math.inf
