from evosearch.evolution.storage.ambiguity import (
    AmbiguityScorer,
    ambiguity,
    coverage_matrix,
    group_goals,
)
from evosearch.evolution.storage.archive_storage import ArchiveEntry, GoalArchive
from evosearch.evolution.storage.memory_archive import MemoryGoalArchive

__all__ = [
    "AmbiguityScorer",
    "ArchiveEntry",
    "GoalArchive",
    "MemoryGoalArchive",
    "ambiguity",
    "coverage_matrix",
    "group_goals",
]
