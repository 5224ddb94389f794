import pytest

from conftest import (
    DISTANCE,
    StubbornSolution,
    VectorFactory,
    VectorOracle,
    VectorSolution,
    make_goals,
    with_fitness,
)
from evosearch.evolution.engine import EvaluationResult, SearchContext
from evosearch.evolution.secondary import BloatControl, SecondaryObjectiveChain, TotalLengthObjective
from evosearch.evolution.strategies import (
    MOSA,
    CellularConfig,
    CellularGA,
    MOSAConfig,
    MuCommaLambdaEA,
    MuLambdaConfig,
    MuPlusLambdaEA,
    NoveltyFunction,
    NoveltySearch,
    NoveltySearchConfig,
    OnePlusLambdaLambdaGA,
    StrategyKind,
    StrategyState,
    build_strategy,
)
from evosearch.evolution.topology import NeighbourhoodModel
from evosearch.exceptions import ConfigurationError, ConstructionFailedError, EvolutionError
from evosearch.solutions import SolutionFactory


class RecordingMuCommaLambdaEA(MuCommaLambdaEA):
    def _offspring(self):
        self.last_offspring = super()._offspring()
        return self.last_offspring


class StubbornFactory(SolutionFactory):
    def create(self):
        return StubbornSolution(genes=[1, 2, 3])


class FlatOracle(VectorOracle):
    """Every solution scores the same, so only secondary objectives can decide."""

    async def evaluate(self, solution, objectives):
        self.calls += 1
        return EvaluationResult(fitness={o.id: 1.0 for o in objectives})

    async def coverage_vector(self, solution):
        return set()


class ResizingSolution(VectorSolution):
    """Mutation only changes the length, by ``step`` genes."""

    step: int = -1

    def mutate(self) -> None:
        if self.step < 0 and len(self.genes) <= 1:
            raise ConstructionFailedError("already minimal")
        if self.step < 0:
            self.genes = self.genes[: self.step]
        else:
            self.genes = self.genes + [1] * self.step
        self.changed = True


class ResizingFactory(SolutionFactory):
    def __init__(self, step: int):
        self.step = step

    def create(self):
        return ResizingSolution(genes=[1] * 6, step=self.step)


class ConstantNovelty(NoveltyFunction):
    def __init__(self, value: float):
        self.value = value

    def novelty(self, solution, others):
        return self.value


class TestMuCommaLambda:
    def test_lambda_below_mu_is_a_configuration_error(self, factory, context):
        with pytest.raises(ConfigurationError):
            MuCommaLambdaEA(factory, context, mu=5, lambda_=3)

    async def test_initialize_rejects_mu_above_lambda(self, factory, context):
        strategy = MuCommaLambdaEA(factory, context, mu=2, lambda_=3)
        with pytest.raises(ConfigurationError):
            await strategy.initialize(4)

    async def test_must_initialize_before_evolving(self, factory, context):
        strategy = MuCommaLambdaEA(factory, context, mu=1, lambda_=1)
        assert strategy.state == StrategyState.IDLE
        with pytest.raises(EvolutionError):
            await strategy.evolve_one_generation()

    async def test_survivors_are_best_of_offspring(self, factory, context):
        strategy = RecordingMuCommaLambdaEA(factory, context, mu=3, lambda_=10)
        await strategy.initialize()
        aggregator = context.aggregator

        for _ in range(5):
            await strategy.evolve_one_generation()
            assert len(strategy.population) == 3
            assert len(strategy.last_offspring) == 10

            third_best = sorted(aggregator.key(o) for o in strategy.last_offspring)[2]
            assert all(aggregator.key(s) <= third_best for s in strategy.population)
            assert all(any(s is o for o in strategy.last_offspring) for s in strategy.population)

    async def test_terminated_strategy_stops_evolving(self, factory, context):
        strategy = MuCommaLambdaEA(factory, context, mu=2, lambda_=4)
        await strategy.initialize()
        strategy.terminate()

        assert strategy.is_finished()
        await strategy.evolve_one_generation()
        assert strategy.generation == 0

    async def test_offspring_record_their_generation(self, factory, context):
        strategy = MuCommaLambdaEA(factory, context, mu=2, lambda_=4)
        await strategy.initialize()
        await strategy.evolve_one_generation()
        await strategy.evolve_one_generation()
        assert all(s.age == 2 for s in strategy.population)

    async def test_mutation_failures_fall_back_to_clones(self):
        context = SearchContext([DISTANCE], VectorOracle(), max_operator_attempts=2)
        strategy = MuCommaLambdaEA(StubbornFactory(), context, mu=2, lambda_=3)
        await strategy.initialize()
        await strategy.evolve_one_generation()

        assert len(strategy.population) == 2
        assert context.progress.operator_failures == 3
        assert all(s.genes == [1, 2, 3] for s in strategy.population)


class TestMuPlusLambda:
    async def test_elitist(self, factory, context):
        strategy = MuPlusLambdaEA(factory, context, mu=3, lambda_=2)
        await strategy.initialize()
        aggregator = context.aggregator

        best = aggregator.key(strategy.best_individual())
        for _ in range(10):
            await strategy.evolve_one_generation()
            assert len(strategy.population) == 3
            current = aggregator.key(strategy.best_individual())
            assert current <= best
            best = current

    async def test_lambda_may_be_below_mu(self, factory, context):
        strategy = MuPlusLambdaEA(factory, context, mu=4, lambda_=1)
        await strategy.initialize()
        await strategy.evolve_one_generation()
        assert len(strategy.population) == 4


class TestOnePlusLambdaLambda:
    def test_requires_positive_lambda(self, factory, context):
        with pytest.raises(ConfigurationError):
            OnePlusLambdaLambdaGA(factory, context, lambda_=0)

    async def test_population_is_fixed_at_one(self, factory, context):
        strategy = OnePlusLambdaLambdaGA(factory, context, lambda_=4)
        with pytest.raises(ConfigurationError):
            await strategy.initialize(2)

    async def test_never_gets_worse(self, factory, context):
        strategy = OnePlusLambdaLambdaGA(factory, context, lambda_=3)
        await strategy.initialize()
        aggregator = context.aggregator

        previous = aggregator.key(strategy.best_individual())
        for _ in range(10):
            await strategy.evolve_one_generation()
            assert len(strategy.population) == 1
            current = aggregator.key(strategy.population[0])
            assert current <= previous
            previous = current

    async def test_evaluates_both_phases(self, factory, context, oracle):
        strategy = OnePlusLambdaLambdaGA(factory, context, lambda_=3)
        await strategy.initialize()
        calls = oracle.calls
        await strategy.evolve_one_generation()
        # three mutants and three crossover children
        assert oracle.calls - calls == 6


class TestNoveltySearch:
    async def test_threshold_increases_when_many_pass(self, factory, context):
        strategy = NoveltySearch(
            factory, context, population_size=30, novelty_function=ConstantNovelty(1.0), p_min=0.5
        )
        await strategy.initialize()

        assert strategy.last_admitted == 30
        assert strategy.p_min == pytest.approx(0.625)
        assert len(strategy.novelty_archive) == 30

    async def test_threshold_decreases_when_few_pass(self, factory, context):
        strategy = NoveltySearch(
            factory, context, population_size=12, novelty_function=ConstantNovelty(0.1), p_min=0.5
        )
        await strategy.initialize()

        assert strategy.last_admitted == 0
        assert strategy.p_min == pytest.approx(0.425)
        assert strategy.novelty_archive == []

    async def test_threshold_is_per_instance(self, factory, context, oracle):
        other_context = SearchContext([DISTANCE], oracle)
        adapting = NoveltySearch(
            factory, context, population_size=12, novelty_function=ConstantNovelty(0.0), p_min=0.5
        )
        untouched = NoveltySearch(factory, other_context, population_size=12, p_min=0.5)
        await adapting.initialize()

        assert adapting.p_min < 0.5
        assert untouched.p_min == 0.5

    async def test_threshold_floor(self, factory, context):
        strategy = NoveltySearch(
            factory, context, population_size=5, novelty_function=ConstantNovelty(0.0), p_min=0.0
        )
        await strategy.initialize()
        # novelty 0 >= p_min 0, but five admissions are still "few"
        assert strategy.p_min == 0.0

    async def test_population_and_archive_sorted_by_novelty(self, factory, context):
        strategy = NoveltySearch(factory, context, population_size=10, p_min=0.0)
        await strategy.initialize()
        for _ in range(3):
            await strategy.evolve_one_generation()
            assert len(strategy.population) == 10

            novelties = [s.novelty for s in strategy.population]
            assert novelties == sorted(novelties, reverse=True)
            archived = [s.novelty for s in strategy.novelty_archive]
            assert archived == sorted(archived, reverse=True)

    async def test_bloated_offspring_replaced_by_parent(self, oracle):
        context = SearchContext([DISTANCE], oracle, bloat=BloatControl(bloat_factor=0.1))
        strategy = NoveltySearch(
            VectorFactory(length=6), context, population_size=8, crossover_rate=0.0
        )
        await strategy.initialize()
        parents = [s.genes for s in strategy.population]
        best = context.aggregator.key(strategy.best_individual())
        await strategy.evolve_one_generation()

        # every offspring exceeds 0.1 x 6, so only improving ones survive
        assert len(strategy.population) == 8
        for solution in strategy.population:
            assert context.aggregator.key(solution) < best or solution.genes in parents

    @pytest.mark.parametrize("step, expected_length", [(-1, 5), (2, 6)])
    async def test_tied_fitness_keeps_the_shorter_pair(self, step, expected_length):
        context = SearchContext(
            [DISTANCE], FlatOracle(), secondary=SecondaryObjectiveChain([TotalLengthObjective()])
        )
        strategy = NoveltySearch(
            ResizingFactory(step), context, population_size=6, crossover_rate=0.0
        )
        await strategy.initialize()
        await strategy.evolve_one_generation()

        # shrunk children beat their parents; grown children lose to them
        assert len(strategy.population) == 6
        assert all(s.size() == expected_length for s in strategy.population)

    def test_select_survivors(self, factory, oracle):
        context = SearchContext(
            [DISTANCE], oracle, secondary=SecondaryObjectiveChain([TotalLengthObjective()])
        )
        strategy = NoveltySearch(factory, context, population_size=4)
        parent1 = with_fitness([1] * 4, 4.0)
        parent2 = with_fitness([2] * 4, 4.0)

        short = [with_fitness([0, 4], 4.0), with_fitness([4, 0], 4.0)]
        survivors = strategy.select_survivors(parent1, parent2, *short, parent1)
        assert survivors[0] is short[0] and survivors[1] is short[1]

        long = [with_fitness([1] * 6, 4.0), with_fitness([2] * 6, 4.0)]
        survivors = strategy.select_survivors(parent1, parent2, *long, parent1)
        assert [s.genes for s in survivors] == [parent1.genes, parent2.genes]
        assert all(s is not parent1 and s is not parent2 for s in survivors)

        better_but_long = [with_fitness([1] * 6, 1.0), with_fitness([2] * 6, 9.0)]
        survivors = strategy.select_survivors(parent1, parent2, *better_but_long, parent1)
        assert survivors[0] is better_but_long[0]

    def test_negative_threshold(self, factory, context):
        with pytest.raises(ConfigurationError):
            NoveltySearch(factory, context, p_min=-0.1)


class TestCellularGA:
    async def test_population_size_is_stable(self, factory, context):
        strategy = CellularGA(factory, context, population_size=9)
        await strategy.initialize()
        for _ in range(3):
            await strategy.evolve_one_generation()
            assert len(strategy.population) == 9

    async def test_non_square_population(self, factory, context):
        strategy = CellularGA(
            factory, context, population_size=11, model=NeighbourhoodModel.COMPACT_THIRTEEN
        )
        await strategy.initialize()
        await strategy.evolve_one_generation()
        assert len(strategy.population) == 11

    def test_replacement_keeps_better_cells(self, factory, context):
        strategy = CellularGA(factory, context, population_size=9)
        main = [with_fitness([0], 10.0) for _ in range(9)]
        temp = [with_fitness([0], 5.0 if i == 0 else 15.0) for i in range(9)]

        merged = strategy.replace_populations(main, temp)

        assert merged[0] is temp[0]
        assert all(merged[i] is main[i] for i in range(1, 9))

    def test_replacement_ties_use_secondary_objectives(self, factory, oracle):
        context = SearchContext(
            [DISTANCE], oracle, secondary=SecondaryObjectiveChain([TotalLengthObjective()])
        )
        strategy = CellularGA(factory, context, population_size=3)
        main = [with_fitness([0, 0], 1.0) for _ in range(3)]
        temp = [
            with_fitness([0], 1.0),
            with_fitness([0, 0, 0], 1.0),
            with_fitness([1, 1], 1.0),
        ]

        merged = strategy.replace_populations(main, temp)

        assert merged[0] is temp[0]
        assert merged[1] is main[1]
        assert merged[2] is temp[2]


class TestMOSA:
    async def test_ranks_over_active_goals(self, factory, oracle):
        context = SearchContext([DISTANCE], oracle, goals=make_goals(4))
        strategy = MOSA(VectorFactory(length=4, low=-20, high=20), context, population_size=8)
        await strategy.initialize()

        for _ in range(3):
            await strategy.evolve_one_generation()
            assert len(strategy.population) == 8
            if context.archive.active_goals():
                assert min(s.rank for s in strategy.population) == 0

    async def test_no_active_goals_means_single_front(self, factory, oracle):
        context = SearchContext([DISTANCE], oracle)
        strategy = MOSA(factory, context, population_size=6)
        await strategy.initialize()
        await strategy.evolve_one_generation()

        assert len(strategy.population) == 6
        assert all(s.rank == 0 for s in strategy.population)
        keys = [context.aggregator.key(s) for s in strategy.population]
        assert keys == sorted(keys)


class TestBuildStrategy:
    @pytest.mark.parametrize(
        "kind, config, expected",
        [
            (StrategyKind.MU_COMMA_LAMBDA, MuLambdaConfig(mu=2, lambda_=4), MuCommaLambdaEA),
            (StrategyKind.MU_PLUS_LAMBDA, None, MuPlusLambdaEA),
            ("one_plus_lambda_lambda", None, OnePlusLambdaLambdaGA),
            (StrategyKind.NOVELTY, NoveltySearchConfig(population_size=4), NoveltySearch),
            (StrategyKind.CELLULAR, CellularConfig(population_size=4), CellularGA),
            (StrategyKind.MOSA, MOSAConfig(population_size=4), MOSA),
        ],
    )
    def test_builds_each_kind(self, factory, context, kind, config, expected):
        strategy = build_strategy(kind, factory, context, config)
        assert type(strategy) is expected

    def test_rejects_unknown_kind(self, factory, context):
        with pytest.raises(ConfigurationError):
            build_strategy("simulated_annealing", factory, context)

    def test_rejects_mismatched_config(self, factory, context):
        with pytest.raises(ConfigurationError):
            build_strategy(StrategyKind.MOSA, factory, context, CellularConfig())

    def test_config_validation(self):
        with pytest.raises(ValueError):
            MuLambdaConfig(mu=0)
        with pytest.raises(ValueError):
            CellularConfig(crossover_rate=1.5)

    def test_mu_lambda_variant_follows_kind(self, factory, context):
        config = MuLambdaConfig(mu=5, lambda_=3)

        plus = build_strategy(StrategyKind.MU_PLUS_LAMBDA, factory, context, config)
        assert type(plus) is MuPlusLambdaEA
        assert (plus.mu, plus.lambda_) == (5, 3)
        with pytest.raises(ConfigurationError):
            build_strategy(StrategyKind.MU_COMMA_LAMBDA, factory, context, config)
