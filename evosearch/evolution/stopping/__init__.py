from evosearch.evolution.stopping.conditions import (
    AllGoalsCoveredStoppingCondition,
    ExternalStoppingCondition,
    MaxFitnessEvaluationsStoppingCondition,
    MaxGenerationsStoppingCondition,
    MaxStatementsStoppingCondition,
    MaxTestsStoppingCondition,
    MaxTimeStoppingCondition,
    SearchProgress,
    StoppingCondition,
    StoppingConditionRegistry,
    ZeroFitnessStoppingCondition,
)
from evosearch.evolution.stopping.config import SearchBudgetConfig

__all__ = [
    "AllGoalsCoveredStoppingCondition",
    "ExternalStoppingCondition",
    "MaxFitnessEvaluationsStoppingCondition",
    "MaxGenerationsStoppingCondition",
    "MaxStatementsStoppingCondition",
    "MaxTestsStoppingCondition",
    "MaxTimeStoppingCondition",
    "SearchBudgetConfig",
    "SearchProgress",
    "StoppingCondition",
    "StoppingConditionRegistry",
    "ZeroFitnessStoppingCondition",
]
