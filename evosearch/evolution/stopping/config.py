from __future__ import annotations

from pydantic import BaseModel, Field

from evosearch.evolution.stopping.conditions import (
    AllGoalsCoveredStoppingCondition,
    ExternalStoppingCondition,
    MaxFitnessEvaluationsStoppingCondition,
    MaxGenerationsStoppingCondition,
    MaxStatementsStoppingCondition,
    MaxTestsStoppingCondition,
    MaxTimeStoppingCondition,
    StoppingConditionRegistry,
    ZeroFitnessStoppingCondition,
)


class SearchBudgetConfig(BaseModel):
    """Declarative search budget; ``None`` disables a limit."""

    max_time_seconds: float | None = Field(default=None, gt=0)
    max_fitness_evaluations: int | None = Field(default=None, gt=0)
    max_tests: int | None = Field(default=None, gt=0)
    max_statements: int | None = Field(default=None, gt=0)
    max_generations: int | None = Field(default=None, gt=0)
    stop_on_zero_fitness: bool = Field(
        default=True, description="Stop once the best individual is optimal"
    )
    stop_on_all_goals_covered: bool = Field(
        default=True, description="Stop once the archive has no active goals left"
    )

    def build_registry(self) -> StoppingConditionRegistry:
        registry = StoppingConditionRegistry()
        if self.max_time_seconds is not None:
            registry.add(MaxTimeStoppingCondition(self.max_time_seconds))
        if self.max_fitness_evaluations is not None:
            registry.add(MaxFitnessEvaluationsStoppingCondition(self.max_fitness_evaluations))
        if self.max_tests is not None:
            registry.add(MaxTestsStoppingCondition(self.max_tests))
        if self.max_statements is not None:
            registry.add(MaxStatementsStoppingCondition(self.max_statements))
        if self.max_generations is not None:
            registry.add(MaxGenerationsStoppingCondition(self.max_generations))
        if self.stop_on_zero_fitness:
            registry.add(ZeroFitnessStoppingCondition())
        if self.stop_on_all_goals_covered:
            registry.add(AllGoalsCoveredStoppingCondition())
        registry.add(ExternalStoppingCondition())
        return registry
