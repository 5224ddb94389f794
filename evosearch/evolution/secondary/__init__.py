from evosearch.evolution.secondary.bloat import BloatConfig, BloatControl
from evosearch.evolution.secondary.objectives import (
    ExceptionCountObjective,
    MaxLengthObjective,
    SecondaryObjective,
    SecondaryObjectiveChain,
    SolutionCountObjective,
    TotalLengthObjective,
)

__all__ = [
    "BloatConfig",
    "BloatControl",
    "ExceptionCountObjective",
    "MaxLengthObjective",
    "SecondaryObjective",
    "SecondaryObjectiveChain",
    "SolutionCountObjective",
    "TotalLengthObjective",
]
