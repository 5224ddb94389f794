from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from evosearch.solutions.solution import Goal, Solution


class ArchiveEntry(BaseModel):
    """Best solution recorded for one goal."""

    goal_id: str = Field(..., min_length=1)
    solution: Solution = Field(description="Archived copy of the best solution")
    distance: float = Field(ge=0.0, description="Fitness distance to covering the goal")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def covers(self) -> bool:
        return self.distance == 0.0


class GoalArchive(ABC):
    """Per-goal record of the best solution found so far."""

    @abstractmethod
    def register_goals(self, goals: Iterable[Goal]) -> None: ...

    @abstractmethod
    async def update(self, goal: Goal, solution: Solution, distance: float) -> bool: ...

    @abstractmethod
    def get(self, goal_id: str) -> ArchiveEntry | None: ...

    @abstractmethod
    def get_goal(self, goal_id: str) -> Goal | None: ...

    @abstractmethod
    def active_goals(self) -> list[Goal]: ...

    @abstractmethod
    def covered_goals(self) -> list[Goal]: ...

    @abstractmethod
    def snapshot(self, covered_only: bool = False) -> dict[str, Solution]: ...

    @abstractmethod
    def solutions(self) -> list[Solution]: ...

    @property
    @abstractmethod
    def number_of_goals(self) -> int: ...

    @property
    def number_of_covered_goals(self) -> int:
        return len(self.covered_goals())

    def coverage(self) -> float:
        total = self.number_of_goals
        return self.number_of_covered_goals / total if total else 0.0
