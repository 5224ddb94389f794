"""Fitness evaluation through the execution oracle.

Offspring of one generation are executed concurrently (bounded by a
semaphore) but their results are applied strictly in submission order, so
completion order never changes fitness ties, archive contents or counters.
An error other than an OracleFailure discards the whole batch, but only after
every sibling call has finished.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from loguru import logger

from evosearch.evolution.engine.oracle import EvaluationResult, ExecutionOracle
from evosearch.evolution.stopping.conditions import SearchProgress
from evosearch.evolution.storage.archive_storage import GoalArchive
from evosearch.exceptions import ConfigurationError, OracleFailure
from evosearch.solutions.fitness import worst_value
from evosearch.solutions.solution import Objective, Solution

__all__ = ["Evaluator"]


class Evaluator:
    def __init__(
        self,
        oracle: ExecutionOracle,
        archive: GoalArchive,
        progress: SearchProgress,
        max_concurrent_evaluations: int = 1,
    ):
        if max_concurrent_evaluations < 1:
            raise ConfigurationError(
                f"max_concurrent_evaluations must be >= 1, got {max_concurrent_evaluations}"
            )
        self.oracle = oracle
        self.archive = archive
        self.progress = progress
        self._semaphore = asyncio.Semaphore(max_concurrent_evaluations)

    def requested_objectives(self, objectives: Sequence[Objective]) -> list[Objective]:
        """Primary objectives plus one distance objective per active goal."""
        requested = list(objectives)
        known = {objective.id for objective in requested}
        for goal in self.archive.active_goals():
            if goal.id not in known:
                requested.append(goal.objective)
                known.add(goal.id)
        return requested

    async def evaluate(
        self, solution: Solution, objectives: Sequence[Objective], force: bool = False
    ) -> bool:
        """Evaluate one solution; returns False if it was already up to date."""
        return await self.evaluate_all([solution], objectives, force=force) == 1

    async def evaluate_all(
        self,
        solutions: Sequence[Solution],
        objectives: Sequence[Objective],
        force: bool = False,
    ) -> int:
        """Evaluate every solution that changed since its last evaluation.

        Returns the number of oracle calls made.
        """
        pending = [s for s in solutions if force or self._needs_evaluation(s, objectives)]
        if not pending:
            return 0

        requested = self.requested_objectives(objectives)
        # every call settles before anything is applied or re-raised
        outcomes = await asyncio.gather(
            *(self._execute(s, requested) for s in pending), return_exceptions=True
        )
        errors = [
            o for o in outcomes if isinstance(o, BaseException) and not isinstance(o, OracleFailure)
        ]
        if errors:
            logger.error(
                "[Evaluator] {} of {} evaluation(s) raised; batch discarded",
                len(errors),
                len(pending),
            )
            raise errors[0]

        for solution, outcome in zip(pending, outcomes):
            await self._apply(solution, requested, outcome)

        self.sync_goal_counters()
        logger.debug(
            "[Evaluator] Evaluated {} solution(s) | evaluations={}, oracle_failures={}",
            len(pending),
            self.progress.fitness_evaluations,
            self.progress.oracle_failures,
        )
        return len(pending)

    def sync_goal_counters(self) -> None:
        self.progress.total_goals = self.archive.number_of_goals
        self.progress.active_goals = len(self.archive.active_goals())

    @staticmethod
    def _needs_evaluation(solution: Solution, objectives: Sequence[Objective]) -> bool:
        if solution.changed:
            return True
        return not all(solution.has_fitness(o.id) for o in objectives)

    async def _execute(
        self, solution: Solution, objectives: list[Objective]
    ) -> tuple[EvaluationResult, set[str]] | OracleFailure:
        async with self._semaphore:
            try:
                result = await self.oracle.evaluate(solution, objectives)
                if result.covered_goals is not None:
                    covered = set(result.covered_goals)
                else:
                    covered = set(await self.oracle.coverage_vector(solution))
                return result, covered
            except OracleFailure as exc:
                return exc

    async def _apply(
        self,
        solution: Solution,
        objectives: list[Objective],
        outcome: tuple[EvaluationResult, set[str]] | OracleFailure,
    ) -> None:
        self.progress.fitness_evaluations += 1
        solution.changed = False

        if isinstance(outcome, OracleFailure):
            self.progress.oracle_failures += 1
            solution.evaluation_failed = True
            solution.covered_goals = set()
            for objective in objectives:
                solution.set_fitness(objective.id, worst_value(objective))
            logger.warning(
                "[Evaluator] Oracle failure on {} ({}): {}",
                solution.short_id,
                type(outcome).__name__,
                outcome,
            )
            return

        result, covered = outcome
        solution.evaluation_failed = False
        solution.covered_goals = covered
        self.progress.tests_executed += result.tests_executed
        self.progress.statements_executed += result.statements_executed

        for objective in objectives:
            if objective.id in result.fitness:
                solution.set_fitness(objective.id, result.fitness[objective.id])
            elif objective.id in covered:
                solution.set_fitness(objective.id, 0.0)
            else:
                logger.warning(
                    "[Evaluator] Oracle returned no value for '{}' on {}; using worst",
                    objective.id,
                    solution.short_id,
                )
                solution.set_fitness(objective.id, worst_value(objective))

        await self._update_archive(solution, covered)

    async def _update_archive(self, solution: Solution, covered: set[str]) -> None:
        for goal in self.archive.active_goals():
            distance = 0.0 if goal.id in covered else solution.fitness_values.get(goal.id)
            if distance is None:
                continue
            await self.archive.update(goal, solution, distance)
