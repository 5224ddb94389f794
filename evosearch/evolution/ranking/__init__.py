from evosearch.evolution.ranking.dominance import (
    compare,
    dominates,
    extract_fitness_values,
)
from evosearch.evolution.ranking.sorting import (
    FastNonDominatedSorting,
    assign_crowding_distance,
)

__all__ = [
    "FastNonDominatedSorting",
    "assign_crowding_distance",
    "compare",
    "dominates",
    "extract_fitness_values",
]
