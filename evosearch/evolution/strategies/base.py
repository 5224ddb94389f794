from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import BaseModel, Field, computed_field

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.operators.selection import SelectionFunction, TournamentSelection
from evosearch.evolution.operators.variation import (
    CrossoverFunction,
    SinglePointCrossover,
    cross_over_with_retries,
    mutate_until_changed,
    retry_operator,
)
from evosearch.exceptions import (
    ConfigurationError,
    EvolutionError,
    InvariantViolationError,
    OperatorRetryExhaustedError,
)
from evosearch.solutions.solution import Solution, SolutionFactory


class StrategyState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    EVOLVING = "evolving"
    TERMINATED = "terminated"


class StrategyMetrics(BaseModel):
    """Generic metrics that any evolution strategy can provide."""

    state: StrategyState = Field(default=StrategyState.IDLE)
    generation: int = Field(default=0, ge=0, description="Completed generations")
    population_size: int = Field(
        default=0, ge=0, description="Current number of individuals"
    )
    best_fitness: Optional[float] = Field(
        default=None, description="Aggregated fitness of the best individual"
    )
    total_goals: int = Field(default=0, ge=0)
    covered_goals: int = Field(default=0, ge=0)
    strategy_specific_metrics: Optional[Dict[str, Any]] = Field(
        default=None, description="Strategy-specific metrics and statistics"
    )

    @computed_field
    @property
    def coverage(self) -> float:
        """Fraction of registered goals already covered."""
        if self.total_goals == 0:
            return 0.0
        return self.covered_goals / self.total_goals

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with computed fields."""
        result = {
            "state": self.state.value,
            "generation": self.generation,
            "population_size": self.population_size,
            "best_fitness": self.best_fitness,
            "coverage": round(self.coverage, 4),
        }
        if self.strategy_specific_metrics:
            result.update(self.strategy_specific_metrics)
        return result


class EvolutionStrategy(ABC):
    """
    Abstract base class for generational search strategies.

    Life cycle: IDLE -> INITIALIZING -> EVOLVING -> TERMINATED. A strategy
    owns its population; everything else it needs (fitness aggregation,
    evaluation, archive, stopping conditions, secondary objectives, bloat
    control) comes from the injected SearchContext.
    """

    name: str = "strategy"

    def __init__(
        self,
        factory: SolutionFactory,
        context: SearchContext,
        population_size: int,
        selection: SelectionFunction | None = None,
        crossover: CrossoverFunction | None = None,
    ):
        if population_size < 1:
            raise ConfigurationError(
                f"population_size must be positive, got {population_size}"
            )
        self.factory = factory
        self.context = context
        self.population_size = population_size
        self.selection = selection if selection is not None else TournamentSelection(2)
        self.crossover = crossover if crossover is not None else SinglePointCrossover()
        self.state = StrategyState.IDLE
        self._population: list[Solution] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def population(self) -> list[Solution]:
        return list(self._population)

    @property
    def generation(self) -> int:
        return self.context.progress.generation

    async def initialize(self, size: int | None = None) -> None:
        if self.state == StrategyState.EVOLVING:
            raise EvolutionError(f"{self.name} is already initialized")
        if size is not None:
            self._validate_population_size(size)
            self.population_size = size

        self.state = StrategyState.INITIALIZING
        self.context.stopping.search_started()
        self._population = [self._create() for _ in range(self.population_size)]
        await self.context.evaluate(self._population)
        await self._after_initialization()
        self._record_progress()
        self.state = StrategyState.EVOLVING
        logger.info(
            "[{}] Initialized population of {} | best={}",
            self.name,
            len(self._population),
            self.context.progress.best_fitness,
        )

    async def evolve_one_generation(self) -> None:
        if self.state == StrategyState.IDLE:
            raise EvolutionError(f"{self.name} must be initialized before evolving")
        if self.state == StrategyState.TERMINATED:
            logger.debug("[{}] Already terminated; generation skipped", self.name)
            return

        if self.context.bloat is not None:
            self.context.bloat.start_generation(self.best_individual())

        await self._evolve()

        self.context.progress.generation += 1
        self._check_population_size()
        self._record_progress()
        logger.info(
            "[{}] Generation {} | best={} | active goals={} | evaluations={}",
            self.name,
            self.generation,
            self.context.progress.best_fitness,
            self.context.progress.active_goals,
            self.context.progress.fitness_evaluations,
        )

    def is_finished(self) -> bool:
        if self.state == StrategyState.TERMINATED:
            return True
        if self.context.is_finished():
            self.state = StrategyState.TERMINATED
            return True
        return False

    def terminate(self) -> None:
        self.state = StrategyState.TERMINATED

    def best_individual(self) -> Solution:
        if not self._population:
            raise EvolutionError(f"{self.name} has no population yet")
        return self.context.aggregator.best(self._population)

    async def get_metrics(self) -> StrategyMetrics:
        archive = self.context.archive
        return StrategyMetrics(
            state=self.state,
            generation=self.generation,
            population_size=len(self._population),
            best_fitness=self.context.progress.best_fitness,
            total_goals=archive.number_of_goals,
            covered_goals=archive.number_of_covered_goals,
            strategy_specific_metrics=self._specific_metrics() or None,
        )

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _evolve(self) -> None:
        """Replace ``self._population`` with the next generation."""

    async def _after_initialization(self) -> None:
        """Called once the initial population has been evaluated."""

    def _canonical_size(self) -> int:
        return self.population_size

    def _specific_metrics(self) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _validate_population_size(self, size: int) -> None:
        if size < 1:
            raise ConfigurationError(f"population size must be positive, got {size}")

    def _create(self) -> Solution:
        try:
            return retry_operator(
                self.factory.create, self.context.max_operator_attempts, "construction"
            )
        except OperatorRetryExhaustedError as exc:
            raise EvolutionError(f"Could not build the initial population: {exc}") from exc

    def _mutate(self, parent: Solution) -> Solution:
        """Mutated clone of ``parent``; a clone of the parent if mutation keeps failing."""
        try:
            offspring = mutate_until_changed(parent, self.context.max_operator_attempts)
        except OperatorRetryExhaustedError as exc:
            self._on_operator_failure(exc)
            offspring = parent.clone()
        offspring.update_age(self.generation + 1)
        return offspring

    def _cross_over(self, parent1: Solution, parent2: Solution) -> tuple[Solution, Solution]:
        """Crossed clones of both parents; plain clones if crossover keeps failing."""
        try:
            offspring1, offspring2 = cross_over_with_retries(
                self.crossover, parent1, parent2, self.context.max_operator_attempts
            )
        except OperatorRetryExhaustedError as exc:
            self._on_operator_failure(exc)
            offspring1, offspring2 = parent1.clone(), parent2.clone()
        return offspring1, offspring2

    def _select(self) -> Solution:
        return self.selection.select(self._population, self.context.aggregator)

    def _on_operator_failure(self, exc: Exception) -> None:
        self.context.progress.operator_failures += 1
        logger.warning(
            "[{}] Generation {}: {}; falling back to a parent clone",
            self.name,
            self.generation + 1,
            exc,
        )

    def _check_population_size(self) -> None:
        expected = self._canonical_size()
        if len(self._population) != expected:
            logger.error(
                "[{}] Population size drifted: {} != {}",
                self.name,
                len(self._population),
                expected,
            )
            raise InvariantViolationError(
                f"{self.name}: population size {len(self._population)} != {expected}"
            )

    def _record_progress(self) -> None:
        self.context.evaluator.sync_goal_counters()
        self.context.record_best(self.best_individual() if self._population else None)
