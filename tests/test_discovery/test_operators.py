"""Tests for genetic operators."""

import pytest
import random

from odeforge.discovery.expression.tree import ExpressionTree, TreeGenerator
from odeforge.discovery.expression.types import OperatorRegistry
from odeforge.discovery.expression.nodes import (
    OperatorNode,
    VariableNode,
    ConstantNode,
    collect_nodes,
)
from odeforge.discovery.operators.crossover import (
    crossover,
    crossover_subtree,
)
from odeforge.discovery.operators.mutation import (
    mutate,
    mutate_subtree,
    mutate_constant,
    mutate_operator,
    mutate_variable,
)
from odeforge.discovery.operators.selection import (
    Individual,
    tournament_select,
    tournament_selection,
    select_elites,
)


def _node_ids(tree: ExpressionTree) -> set[int]:
    return {id(n) for n in collect_nodes(tree.root)}


def _chain(depth: int) -> ExpressionTree:
    """neg(neg(...(x))) with the given depth."""
    node = VariableNode(name="x")
    for _ in range(depth - 1):
        node = OperatorNode(name="neg", children=[node])
    return ExpressionTree(root=node)


class TestCrossoverOperators:
    """Test crossover operators."""

    @pytest.fixture
    def parent_trees(self):
        """Create two parent trees for crossover."""
        generator = TreeGenerator(max_depth=5, seed=42)
        parent1 = generator.generate(method="full")
        parent2 = generator.generate(method="full")
        return parent1, parent2

    def test_crossover_subtree(self, parent_trees):
        """Test subtree crossover."""
        parent1, parent2 = parent_trees
        rng = random.Random(42)

        child1, child2 = crossover_subtree(parent1, parent2, rng, max_depth=5)

        assert child1.is_valid(max_depth=5)
        assert child2.is_valid(max_depth=5)

    def test_children_share_no_nodes_with_parents(self, parent_trees):
        """Offspring never alias a parent's nodes."""
        parent1, parent2 = parent_trees
        rng = random.Random(7)
        parent_ids = _node_ids(parent1) | _node_ids(parent2)

        for _ in range(20):
            child1, child2 = crossover(parent1, parent2, rng, max_depth=5)
            assert not (_node_ids(child1) & parent_ids)
            assert not (_node_ids(child2) & parent_ids)
            assert not (_node_ids(child1) & _node_ids(child2))

    def test_parents_unchanged(self, parent_trees):
        parent1, parent2 = parent_trees
        before = (parent1.formula, parent2.formula)

        crossover(parent1, parent2, random.Random(3), max_depth=5)

        assert (parent1.formula, parent2.formula) == before

    def test_crossover_respects_max_depth(self):
        """Random valid parents always give valid children within the limit."""
        generator = TreeGenerator(max_depth=4, seed=1)
        rng = random.Random(1)

        for _ in range(200):
            parent1 = generator.generate()
            parent2 = generator.generate()
            child1, child2 = crossover(parent1, parent2, rng, max_depth=4)
            assert child1.is_valid(max_depth=4)
            assert child2.is_valid(max_depth=4)

    def test_depth_overflow_falls_back_to_parent(self):
        """A child that would be too deep is replaced by a clone of its parent."""
        deep = _chain(4)
        shallow_root = OperatorNode(
            name="neg",
            children=[OperatorNode(name="neg", children=[
                OperatorNode(name="neg", children=[VariableNode(name="t")])
            ])],
        )
        other = ExpressionTree(root=shallow_root)
        rng = random.Random(0)

        for _ in range(50):
            child1, child2 = crossover_subtree(deep, other, rng, max_depth=4)
            for child, parent in ((child1, deep), (child2, other)):
                assert child.depth <= 4
                if child.formula == parent.formula:
                    assert child.root is not parent.root

    def test_crossover_without_limit(self):
        """Without max_depth the children may grow."""
        rng = random.Random(0)
        depths = set()
        for _ in range(50):
            child1, _ = crossover_subtree(_chain(4), _chain(4), rng)
            depths.add(child1.depth)
        assert max(depths) > 4

    def test_unknown_method(self, parent_trees):
        with pytest.raises(ValueError):
            crossover(*parent_trees, rng=random.Random(0), method="uniform")


class TestMutationOperators:
    """Test mutation operators."""

    @pytest.fixture
    def tree(self):
        """Create a tree for mutation."""
        generator = TreeGenerator(max_depth=4, seed=42)
        return generator.generate(method="full")

    def test_mutate_subtree(self, tree):
        """Test subtree mutation."""
        rng = random.Random(42)
        generator = TreeGenerator(max_depth=4, rng=rng)

        mutated = mutate_subtree(tree, rng, generator)

        assert mutated.is_valid(max_depth=4)
        assert not (_node_ids(mutated) & _node_ids(tree))

    def test_mutate_subtree_respects_depth_budget(self):
        rng = random.Random(5)
        generator = TreeGenerator(max_depth=5, rng=rng)

        for _ in range(200):
            tree = generator.generate()
            mutated = mutate_subtree(tree, rng, generator)
            assert mutated.depth <= 5
            assert mutated.is_valid(max_depth=5)

    def test_mutate_constant(self):
        """Test constant mutation."""
        root = OperatorNode(
            name="mul",
            children=[ConstantNode(value=2.0), VariableNode(name="t")],
        )
        tree = ExpressionTree(root=root)
        rng = random.Random(42)

        mutated = mutate_constant(tree, rng, value_range=(-10.0, 10.0))

        before_const = tree.get_nodes()[1]
        mutated_const = mutated.get_nodes()[1]
        assert isinstance(mutated_const, ConstantNode)
        assert mutated_const.value != before_const.value
        assert -10.0 <= mutated_const.value <= 10.0
        assert before_const.value == 2.0

    def test_mutate_constant_clips_to_range(self):
        tree = ExpressionTree(root=ConstantNode(value=1.0))
        rng = random.Random(0)
        for _ in range(50):
            tree = mutate_constant(tree, rng, scale=5.0, value_range=(0.5, 1.5))
            assert 0.5 <= tree.root.value <= 1.5

    def test_mutate_constant_without_constants(self):
        tree = ExpressionTree(root=VariableNode(name="x"))
        mutated = mutate_constant(tree, random.Random(0))
        assert mutated.formula == "x"
        assert mutated.root is not tree.root

    def test_mutate_operator(self):
        """Operator mutation keeps structure and arity."""
        root = OperatorNode(
            name="add",
            children=[VariableNode(name="x"), OperatorNode(name="sin", children=[VariableNode(name="t")])],
        )
        tree = ExpressionTree(root=root)
        rng = random.Random(42)
        generator = TreeGenerator(operators=OperatorRegistry(("add", "mul", "sin", "cos")), rng=rng)

        for _ in range(10):
            mutated = mutate_operator(tree, rng, generator)
            assert mutated.size == tree.size
            assert mutated.depth == tree.depth
            assert mutated.formula != tree.formula
            assert set(mutated.get_operators()) <= {"add", "mul", "sin", "cos"}

    def test_mutate_variable(self):
        tree = ExpressionTree(root=VariableNode(name="x"))
        mutated = mutate_variable(tree, random.Random(0))
        assert mutated.formula == "t"

    def test_mutate_dispatch(self, tree):
        rng = random.Random(0)
        generator = TreeGenerator(max_depth=4, rng=rng)
        for _ in range(50):
            tree = mutate(tree, rng, generator)
            assert tree.is_valid(max_depth=4)

    def test_mutate_only_subtree(self, tree):
        rng = random.Random(0)
        generator = TreeGenerator(max_depth=4, rng=rng)
        mutated = mutate(tree, rng, generator, weights={"subtree": 1.0})
        assert mutated.is_valid(max_depth=4)

    def test_mutate_rejects_unknown_kind(self, tree):
        with pytest.raises(ValueError):
            mutate(tree, random.Random(0), weights={"hoist": 1.0})


class TestSelectionOperators:
    """Test selection operators."""

    @pytest.fixture
    def population(self):
        """Create a population with distinct fitness values."""
        individuals = []
        for i, fitness in enumerate([0.1, 0.9, 0.0, 0.5]):
            tree = ExpressionTree(root=ConstantNode(value=float(i)))
            individuals.append(Individual(tree=tree, fitness=fitness, error=1 / max(fitness, 1e-9) - 1))
        return individuals

    def test_tournament_selection(self, population):
        """Test tournament selection."""
        rng = random.Random(42)

        selected = tournament_selection(population, n_select=10, tournament_size=2, rng=rng)

        assert len(selected) == 10
        assert all(ind in population for ind in selected)

    def test_large_tournament_favours_fittest(self, population):
        rng = random.Random(1)
        winners = tournament_selection(population, n_select=20, tournament_size=80, rng=rng)
        assert all(ind.fitness == 0.9 for ind in winners)

    def test_zero_fitness_still_selectable(self):
        """Fitness-0 individuals can win when they are all that is drawn."""
        tree = ExpressionTree(root=VariableNode(name="x"))
        population = [Individual(tree=tree, fitness=0.0)]
        assert tournament_select(population, 3, random.Random(0)).fitness == 0.0

    def test_tournament_winner_is_fittest_contestant(self, population):
        """Replaying the draws shows the winner is the best contestant."""
        for seed in range(20):
            winner = tournament_select(population, 3, random.Random(seed))
            replay = random.Random(seed)
            contestants = [replay.choice(population) for _ in range(3)]
            assert winner.fitness == max(c.fitness for c in contestants)

    def test_unevaluated_population_rejected(self):
        population = [Individual(tree=ExpressionTree(root=VariableNode(name="x")))]
        with pytest.raises(ValueError):
            tournament_select(population, 2, random.Random(0))

    def test_select_elites(self, population):
        elites = select_elites(population, 2)

        assert [e.fitness for e in elites] == [0.9, 0.5]
        assert elites[0].tree.root is not population[1].tree.root

    def test_select_no_elites(self, population):
        assert select_elites(population, 0) == []
