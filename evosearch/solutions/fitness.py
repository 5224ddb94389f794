import math
from typing import Iterable, Sequence

from evosearch.exceptions import ConfigurationError
from evosearch.solutions.solution import Objective, Solution


def normalize(value: float) -> float:
    """Map a non-negative fitness value into [0, 1) via x / (x + 1)."""
    if math.isnan(value) or value < 0:
        raise ValueError(f"Values to normalize must be non-negative, got {value}")
    if math.isinf(value):
        return 1.0
    return value / (value + 1.0)


def worst_value(objective: Objective) -> float:
    """Fitness assigned to an objective when the oracle could not measure it."""
    return 0.0 if objective.maximize else math.inf


class FitnessAggregator:
    """Collapses a solution's objective values into one lower-is-better score.

    Each value is normalised first so minimisation and maximisation
    objectives contribute on the same scale: a minimised objective adds
    ``normalize(v)``, a maximised one adds ``1 - normalize(v)``.
    """

    def __init__(self, objectives: Sequence[Objective]):
        if not objectives:
            raise ConfigurationError("objectives cannot be empty")
        self.objectives = list(objectives)

    def key(self, solution: Solution) -> float:
        total = 0.0
        for objective in self.objectives:
            value = normalize(solution.get_fitness(objective.id))
            total += 1.0 - value if objective.maximize else value
        return total

    def is_better(self, a: Solution, b: Solution) -> bool:
        return self.key(a) < self.key(b)

    def is_better_or_equal(self, a: Solution, b: Solution) -> bool:
        return self.key(a) <= self.key(b)

    def sort(self, solutions: Iterable[Solution]) -> list[Solution]:
        """Best first; stable, so equal solutions keep their input order."""
        return sorted(solutions, key=self.key)

    def best(self, solutions: Sequence[Solution]) -> Solution:
        if not solutions:
            raise ValueError("Cannot pick the best of an empty collection")
        return min(solutions, key=self.key)

    def is_optimal(self, solution: Solution) -> bool:
        return self.key(solution) == 0.0
