from __future__ import annotations

from typing import Sequence

from evosearch.evolution.engine.evaluation import Evaluator
from evosearch.evolution.engine.oracle import ExecutionOracle
from evosearch.evolution.operators.variation import DEFAULT_MAX_OPERATOR_ATTEMPTS
from evosearch.evolution.secondary.bloat import BloatControl
from evosearch.evolution.secondary.objectives import SecondaryObjectiveChain
from evosearch.evolution.stopping.conditions import (
    ExternalStoppingCondition,
    SearchProgress,
    StoppingConditionRegistry,
)
from evosearch.evolution.storage.archive_storage import GoalArchive
from evosearch.evolution.storage.memory_archive import MemoryGoalArchive
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.fitness import FitnessAggregator
from evosearch.solutions.solution import Goal, Objective, Solution


class SearchContext:
    """Collaborators shared by every strategy of one search run.

    Each run owns its own context, so nothing here is process-wide: two
    searches in the same interpreter never see each other's archive,
    counters or stopping state.
    """

    def __init__(
        self,
        objectives: Sequence[Objective],
        oracle: ExecutionOracle,
        *,
        goals: Sequence[Goal] = (),
        archive: GoalArchive | None = None,
        stopping: StoppingConditionRegistry | None = None,
        secondary: SecondaryObjectiveChain | None = None,
        bloat: BloatControl | None = None,
        progress: SearchProgress | None = None,
        max_concurrent_evaluations: int = 1,
        max_operator_attempts: int = DEFAULT_MAX_OPERATOR_ATTEMPTS,
    ):
        if max_operator_attempts < 1:
            raise ConfigurationError(
                f"max_operator_attempts must be >= 1, got {max_operator_attempts}"
            )
        self.objectives = list(objectives)
        self.aggregator = FitnessAggregator(self.objectives)
        self.archive = archive if archive is not None else MemoryGoalArchive()
        self.archive.register_goals(goals)
        self.progress = progress if progress is not None else SearchProgress()
        self.stopping = stopping if stopping is not None else StoppingConditionRegistry()
        self.secondary = secondary if secondary is not None else SecondaryObjectiveChain()
        self.bloat = bloat
        self.max_operator_attempts = max_operator_attempts
        self.evaluator = Evaluator(
            oracle, self.archive, self.progress, max_concurrent_evaluations
        )
        self.evaluator.sync_goal_counters()

    async def evaluate(self, solutions: Sequence[Solution], force: bool = False) -> int:
        return await self.evaluator.evaluate_all(solutions, self.objectives, force=force)

    def record_best(self, best: Solution | None) -> None:
        self.progress.best_fitness = None if best is None else self.aggregator.key(best)

    def is_finished(self) -> bool:
        self.evaluator.sync_goal_counters()
        return self.stopping.is_finished(self.progress)

    def request_stop(self) -> None:
        """Cooperative cancellation, effective at the next generation boundary."""
        external = self.stopping.get(ExternalStoppingCondition)
        if external is None:
            external = ExternalStoppingCondition()
            self.stopping.add(external)
        external.request_stop()
