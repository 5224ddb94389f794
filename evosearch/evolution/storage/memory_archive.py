# -*- coding: utf-8 -*-
"""In-memory GoalArchive.

Keeps a dictionary mapping *goal id* -> ArchiveEntry. Each goal slot has its
own asyncio.Lock, so concurrent evaluations that hit the same goal always
compare-and-keep-better, while updates for different goals never wait on
each other.
"""

from __future__ import annotations

import asyncio
import math
from typing import Dict, Iterable, List, Optional

from loguru import logger

from evosearch.evolution.storage.archive_storage import ArchiveEntry, GoalArchive
from evosearch.solutions.solution import Goal, Solution


class MemoryGoalArchive(GoalArchive):
    """GoalArchive kept in process memory; its contents end with the run."""

    def __init__(self, goals: Iterable[Goal] = ()) -> None:
        self._goals: Dict[str, Goal] = {}
        self._active: Dict[str, Goal] = {}
        self._entries: Dict[str, ArchiveEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self.register_goals(goals)

    # ------------------------------------------------------------------
    # GoalArchive interface
    # ------------------------------------------------------------------

    def register_goals(self, goals: Iterable[Goal]) -> None:
        for goal in goals:
            if goal.id in self._goals:
                continue
            logger.debug("[GoalArchive] Registering goal '{}'", goal.id)
            self._goals[goal.id] = goal
            self._locks[goal.id] = asyncio.Lock()
            if not goal.covered:
                self._active[goal.id] = goal

    async def update(self, goal: Goal, solution: Solution, distance: float) -> bool:
        if math.isnan(distance) or distance < 0:
            raise ValueError(f"Goal distance must be non-negative, got {distance}")
        if goal.id not in self._goals:
            self.register_goals([goal])

        async with self._locks[goal.id]:
            current = self._entries.get(goal.id)
            if current is not None and distance > current.distance:
                return False

            # store *copy* so later variation of the population cannot touch it
            self._entries[goal.id] = ArchiveEntry(
                goal_id=goal.id, solution=solution.model_copy(deep=True), distance=distance
            )
            if distance == 0.0:
                self._mark_covered(goal)
            logger.debug(
                "[GoalArchive] goal '{}' -> solution {} (distance={})",
                goal.id,
                solution.short_id,
                distance,
            )
            return True

    def get(self, goal_id: str) -> Optional[ArchiveEntry]:
        return self._entries.get(goal_id)

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return self._goals.get(goal_id)

    def active_goals(self) -> List[Goal]:
        return list(self._active.values())

    def covered_goals(self) -> List[Goal]:
        return [goal for goal in self._goals.values() if goal.covered]

    def snapshot(self, covered_only: bool = False) -> Dict[str, Solution]:
        return {
            goal_id: entry.solution.model_copy(deep=True)
            for goal_id, entry in self._entries.items()
            if entry.covers or not covered_only
        }

    def solutions(self) -> List[Solution]:
        """Distinct covering solutions, in goal registration order."""
        seen: set[str] = set()
        result: List[Solution] = []
        for goal_id in self._goals:
            entry = self._entries.get(goal_id)
            if entry is None or not entry.covers or entry.solution.id in seen:
                continue
            seen.add(entry.solution.id)
            result.append(entry.solution)
        return result

    @property
    def number_of_goals(self) -> int:
        return len(self._goals)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mark_covered(self, goal: Goal) -> None:
        registered = self._goals[goal.id]
        newly_covered = not registered.covered
        goal.covered = True
        registered.covered = True
        self._active.pop(goal.id, None)
        if newly_covered:
            logger.info(
                "[GoalArchive] Goal '{}' covered ({}/{})",
                goal.id,
                self.number_of_covered_goals,
                self.number_of_goals,
            )
