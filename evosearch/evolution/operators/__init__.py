from evosearch.evolution.operators.selection import (
    RandomSelection,
    RankCrowdingTournamentSelection,
    RankSelection,
    RouletteWheelSelection,
    SelectionFunction,
    TournamentSelection,
)
from evosearch.evolution.operators.variation import (
    DEFAULT_MAX_OPERATOR_ATTEMPTS,
    CrossoverFunction,
    SinglePointCrossover,
    SinglePointRelativeCrossover,
    cross_over_with_retries,
    mutate_until_changed,
    retry_operator,
)

__all__ = [
    "DEFAULT_MAX_OPERATOR_ATTEMPTS",
    "CrossoverFunction",
    "RandomSelection",
    "RankCrowdingTournamentSelection",
    "RankSelection",
    "RouletteWheelSelection",
    "SelectionFunction",
    "SinglePointCrossover",
    "SinglePointRelativeCrossover",
    "TournamentSelection",
    "cross_over_with_retries",
    "mutate_until_changed",
    "retry_operator",
]
