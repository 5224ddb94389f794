from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from pydantic import BaseModel, Field

from evosearch.solutions.solution import Objective, Solution


class EvaluationResult(BaseModel):
    """What one execution of a candidate reported back."""

    fitness: dict[str, float] = Field(
        default_factory=dict, description="Objective id -> measured fitness value"
    )
    tests_executed: int = Field(default=1, ge=0)
    statements_executed: int = Field(default=0, ge=0)
    covered_goals: set[str] | None = Field(
        default=None,
        description="Goals reached by the execution; None to ask coverage_vector()",
    )


class ExecutionOracle(ABC):
    """Runs candidates against the program under test.

    Implementations must be deterministic for a fixed solution and objective
    set, and must raise an ``OracleFailure`` subclass when the execution
    could not be measured instead of returning a made-up worst fitness.
    """

    @abstractmethod
    async def evaluate(
        self, solution: Solution, objectives: Sequence[Objective]
    ) -> EvaluationResult:
        ...

    @abstractmethod
    async def coverage_vector(self, solution: Solution) -> set[str]:
        ...
