import pytest

from conftest import DISTANCE, StubbornSolution, VectorSolution, with_fitness
from evosearch.evolution.operators import (
    RandomSelection,
    RankCrowdingTournamentSelection,
    RankSelection,
    RouletteWheelSelection,
    SinglePointCrossover,
    SinglePointRelativeCrossover,
    TournamentSelection,
    cross_over_with_retries,
    mutate_until_changed,
    retry_operator,
)
from evosearch.exceptions import (
    ConfigurationError,
    ConstructionFailedError,
    OperatorRetryExhaustedError,
)
from evosearch.solutions import FitnessAggregator


@pytest.fixture
def aggregator():
    return FitnessAggregator([DISTANCE])


@pytest.fixture
def population():
    return [with_fitness([i], float(i)) for i in range(10)]


class TestSelection:
    def test_full_tournament_picks_best(self, aggregator, population):
        selection = TournamentSelection(tournament_size=200)
        assert selection.select(population, aggregator) is population[0]

    def test_selection_leaves_population_untouched(self, aggregator, population):
        before = [s.id for s in population]
        for selection in (
            TournamentSelection(),
            RankSelection(),
            RouletteWheelSelection(),
            RandomSelection(),
            RankCrowdingTournamentSelection(),
        ):
            chosen = selection.select_many(population, aggregator, 20)
            assert len(chosen) == 20
            assert all(any(c is s for s in population) for c in chosen)
        assert [s.id for s in population] == before

    def test_rank_selection_prefers_good_solutions(self, aggregator, population):
        picks = RankSelection(bias=2.0).select_many(population, aggregator, 500)
        top_half = sum(1 for p in picks if p.get_fitness(DISTANCE.id) < 5)
        assert top_half > 300

    def test_rank_crowding_prefers_lower_rank_then_distance(self, aggregator):
        low_rank = with_fitness([1], 1.0)
        low_rank.rank, low_rank.distance = 0, 0.1
        high_rank = with_fitness([2], 1.0)
        high_rank.rank, high_rank.distance = 1, 99.0

        selection = RankCrowdingTournamentSelection()
        picks = selection.select_many([low_rank, high_rank], aggregator, 200)
        # the higher rank only wins when both draws hit it
        assert sum(1 for p in picks if p is high_rank) < 100

        crowded = with_fitness([3], 1.0)
        crowded.rank, crowded.distance = 0, 0.5
        picks = selection.select_many([low_rank, crowded], aggregator, 50)
        assert all(p is crowded or p is low_rank for p in picks)
        assert any(p is crowded for p in picks)

    def test_empty_population(self, aggregator):
        with pytest.raises(ValueError):
            TournamentSelection().select([], aggregator)

    def test_invalid_parameters(self):
        with pytest.raises(ConfigurationError):
            TournamentSelection(0)
        with pytest.raises(ConfigurationError):
            RankSelection(bias=1.0)


class TestCrossover:
    def test_single_point_swaps_tails(self):
        a = VectorSolution(genes=[1, 1, 1, 1])
        b = VectorSolution(genes=[2, 2, 2, 2])
        SinglePointCrossover().cross_over(a, b)

        assert len(a.genes) == 4 and len(b.genes) == 4
        assert a.genes[0] == 1 and b.genes[0] == 2
        assert sorted(a.genes + b.genes) == [1, 1, 1, 1, 2, 2, 2, 2]
        assert a.changed and b.changed

    def test_relative_crossover_keeps_material(self):
        a = VectorSolution(genes=[1] * 4)
        b = VectorSolution(genes=[2] * 8)
        SinglePointRelativeCrossover().cross_over(a, b)
        assert sorted(a.genes + b.genes) == [1] * 4 + [2] * 8

    def test_short_parents_are_left_alone(self):
        a = VectorSolution(genes=[1])
        b = VectorSolution(genes=[2, 2])
        SinglePointCrossover().cross_over(a, b)
        assert a.genes == [1] and b.genes == [2, 2]

    def test_crossover_works_on_clones(self):
        a = VectorSolution(genes=[1, 1, 1])
        b = VectorSolution(genes=[2, 2, 2])
        child1, child2 = cross_over_with_retries(SinglePointCrossover(), a, b)
        assert a.genes == [1, 1, 1] and b.genes == [2, 2, 2]
        assert child1 is not a and child2 is not b


class TestRetry:
    def test_retries_until_success(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConstructionFailedError("not yet")
            return "done"

        assert retry_operator(flaky, max_attempts=5) == "done"
        assert len(attempts) == 3

    def test_exhaustion(self):
        def broken():
            raise ConstructionFailedError("never")

        with pytest.raises(OperatorRetryExhaustedError):
            retry_operator(broken, max_attempts=3, operation_name="broken")

    def test_other_errors_propagate(self):
        def crash():
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            retry_operator(crash)

    def test_mutate_until_changed_returns_changed_clone(self):
        parent = with_fitness([0, 0, 0], 0.0)
        offspring = mutate_until_changed(parent)

        assert offspring.changed
        assert offspring is not parent
        assert parent.genes == [0, 0, 0]
        assert not parent.changed

    def test_mutate_until_changed_gives_up(self):
        parent = StubbornSolution(genes=[1, 2])
        with pytest.raises(OperatorRetryExhaustedError):
            mutate_until_changed(parent, max_attempts=4)
