from __future__ import annotations

from abc import ABC, abstractmethod
import math
import time
from typing import Callable

from loguru import logger
from pydantic import BaseModel, Field

from evosearch.exceptions import ConfigurationError


class SearchProgress(BaseModel):
    """Counters shared by the strategy, the evaluator and the stopping conditions."""

    generation: int = Field(default=0, ge=0, description="Completed generations")
    fitness_evaluations: int = Field(
        default=0, ge=0, description="Oracle calls that produced fitness values"
    )
    tests_executed: int = Field(default=0, ge=0)
    statements_executed: int = Field(default=0, ge=0)
    oracle_failures: int = Field(
        default=0, ge=0, description="Oracle calls that reported an execution failure"
    )
    operator_failures: int = Field(
        default=0, ge=0, description="Variation attempts that exhausted their retries"
    )
    best_fitness: float | None = Field(
        default=None, description="Aggregated fitness of the best individual"
    )
    total_goals: int = Field(default=0, ge=0)
    active_goals: int = Field(default=0, ge=0, description="Goals not yet covered")


class StoppingCondition(ABC):
    """A polled predicate deciding whether the search should end."""

    name: str = "stopping_condition"

    def __init__(self, limit: float = math.inf):
        if limit < 0:
            raise ConfigurationError(f"{type(self).__name__} limit must be >= 0, got {limit}")
        self._limit = limit

    @property
    def limit(self) -> float:
        return self._limit

    def set_limit(self, limit: float) -> None:
        if limit < 0:
            raise ConfigurationError(f"{type(self).__name__} limit must be >= 0, got {limit}")
        self._limit = limit

    def search_started(self) -> None:
        """Hook called once when the search begins."""

    @abstractmethod
    def current_value(self, progress: SearchProgress) -> float:
        ...

    def is_finished(self, progress: SearchProgress) -> bool:
        return self.current_value(progress) >= self._limit

    def reset(self) -> None:
        """Forget any state accumulated during a previous search."""

    def pause(self) -> None:
        pass

    def resume(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(limit={self._limit})"


class MaxTimeStoppingCondition(StoppingCondition):
    """Wall-clock budget in seconds on a monotonic clock.

    Reading the elapsed time has no side effects, so the condition can be
    queried any number of times mid-generation. Time spent paused is not
    counted.
    """

    name = "max_time"

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        super().__init__(seconds)
        self._clock = clock
        self._start: float | None = None
        self._paused_at: float | None = None

    def search_started(self) -> None:
        self._start = self._clock()
        self._paused_at = None

    def elapsed(self) -> float:
        if self._start is None:
            return 0.0
        now = self._paused_at if self._paused_at is not None else self._clock()
        return max(0.0, now - self._start)

    def current_value(self, progress: SearchProgress) -> float:
        return self.elapsed()

    def pause(self) -> None:
        if self._start is not None and self._paused_at is None:
            self._paused_at = self._clock()

    def resume(self) -> None:
        if self._start is not None and self._paused_at is not None:
            self._start += self._clock() - self._paused_at
            self._paused_at = None

    def reset(self) -> None:
        self._start = None
        self._paused_at = None


class MaxFitnessEvaluationsStoppingCondition(StoppingCondition):
    name = "max_fitness_evaluations"

    def current_value(self, progress: SearchProgress) -> float:
        return progress.fitness_evaluations


class MaxTestsStoppingCondition(StoppingCondition):
    name = "max_tests"

    def current_value(self, progress: SearchProgress) -> float:
        return progress.tests_executed


class MaxStatementsStoppingCondition(StoppingCondition):
    name = "max_statements"

    def current_value(self, progress: SearchProgress) -> float:
        return progress.statements_executed


class MaxGenerationsStoppingCondition(StoppingCondition):
    name = "max_generations"

    def current_value(self, progress: SearchProgress) -> float:
        return progress.generation


class ZeroFitnessStoppingCondition(StoppingCondition):
    """Stops once the best individual reaches the optimal aggregated fitness 0."""

    name = "zero_fitness"

    def __init__(self):
        super().__init__(0.0)

    def current_value(self, progress: SearchProgress) -> float:
        return math.inf if progress.best_fitness is None else progress.best_fitness

    def is_finished(self, progress: SearchProgress) -> bool:
        return progress.best_fitness is not None and progress.best_fitness <= 0.0


class AllGoalsCoveredStoppingCondition(StoppingCondition):
    name = "all_goals_covered"

    def __init__(self):
        super().__init__(0.0)

    def current_value(self, progress: SearchProgress) -> float:
        return progress.active_goals

    def is_finished(self, progress: SearchProgress) -> bool:
        return progress.total_goals > 0 and progress.active_goals == 0


class ExternalStoppingCondition(StoppingCondition):
    """Cooperative cancellation flag, honoured at the next generation boundary."""

    name = "external"

    def __init__(self):
        super().__init__(1.0)
        self._requested = False

    def request_stop(self) -> None:
        if not self._requested:
            logger.info("[StoppingConditions] External stop requested")
        self._requested = True

    @property
    def stop_requested(self) -> bool:
        return self._requested

    def current_value(self, progress: SearchProgress) -> float:
        return 1.0 if self._requested else 0.0

    def reset(self) -> None:
        self._requested = False


class StoppingConditionRegistry:
    """Disjunction over the registered conditions."""

    def __init__(self, conditions: list[StoppingCondition] | None = None):
        self._conditions: list[StoppingCondition] = []
        for condition in conditions or []:
            self.add(condition)

    def add(self, condition: StoppingCondition) -> None:
        if any(existing is condition for existing in self._conditions):
            return
        self._conditions.append(condition)

    def remove(self, condition: StoppingCondition) -> bool:
        for i, existing in enumerate(self._conditions):
            if existing is condition:
                del self._conditions[i]
                return True
        return False

    def get(self, condition_type: type[StoppingCondition]) -> StoppingCondition | None:
        for condition in self._conditions:
            if isinstance(condition, condition_type):
                return condition
        return None

    @property
    def conditions(self) -> list[StoppingCondition]:
        return list(self._conditions)

    def search_started(self) -> None:
        for condition in self._conditions:
            condition.search_started()

    def reset(self) -> None:
        for condition in self._conditions:
            condition.reset()

    def pause(self) -> None:
        for condition in self._conditions:
            condition.pause()

    def resume(self) -> None:
        for condition in self._conditions:
            condition.resume()

    def finished_by(self, progress: SearchProgress) -> StoppingCondition | None:
        for condition in self._conditions:
            if condition.is_finished(progress):
                return condition
        return None

    def is_finished(self, progress: SearchProgress) -> bool:
        condition = self.finished_by(progress)
        if condition is None:
            return False
        logger.info(
            "[StoppingConditions] {} reached: {} >= {}",
            condition.name,
            condition.current_value(progress),
            condition.limit,
        )
        return True

    def __len__(self) -> int:
        return len(self._conditions)
