from abc import ABC, abstractmethod
from typing import Sequence

from loguru import logger

from evosearch.solutions.fitness import FitnessAggregator
from evosearch.solutions.solution import Solution


class SecondaryObjective(ABC):
    """Tie-breaker on a size-like metric; smaller is always preferred."""

    name: str = "secondary"

    @abstractmethod
    def metric(self, solution: Solution) -> float:
        """Metric to minimise."""

    def compare_chromosomes(self, a: Solution, b: Solution) -> float:
        """Negative if ``a`` is preferred, positive if ``b`` is preferred."""
        return self.metric(a) - self.metric(b)

    def compare_generations(
        self,
        parent1: Solution,
        parent2: Solution,
        child1: Solution,
        child2: Solution,
    ) -> float:
        """Positive if the child pair is preferred over the parent pair."""
        return min(self.metric(parent1), self.metric(parent2)) - min(
            self.metric(child1), self.metric(child2)
        )


class TotalLengthObjective(SecondaryObjective):
    name = "total_length"

    def metric(self, solution: Solution) -> float:
        return solution.size()


class SolutionCountObjective(SecondaryObjective):
    name = "solution_count"

    def metric(self, solution: Solution) -> float:
        return solution.num_tests()


class ExceptionCountObjective(SecondaryObjective):
    name = "exception_count"

    def metric(self, solution: Solution) -> float:
        return solution.num_exceptions()


class MaxLengthObjective(SecondaryObjective):
    name = "max_length"

    def metric(self, solution: Solution) -> float:
        return solution.max_length()


class SecondaryObjectiveChain:
    """Lexicographic chain of secondary objectives."""

    def __init__(self, objectives: Sequence[SecondaryObjective] = ()):
        self.objectives = list(objectives)

    def compare_chromosomes(self, a: Solution, b: Solution) -> float:
        for objective in self.objectives:
            result = objective.compare_chromosomes(a, b)
            if result != 0:
                return result
        return 0

    def compare_generations(
        self,
        parent1: Solution,
        parent2: Solution,
        child1: Solution,
        child2: Solution,
    ) -> float:
        for objective in self.objectives:
            result = objective.compare_generations(parent1, parent2, child1, child2)
            if result != 0:
                logger.debug(
                    "[SecondaryObjectives] {} decided generations: {:+}",
                    objective.name,
                    result,
                )
                return result
        return 0

    def keep_offspring(
        self,
        parent1: Solution,
        parent2: Solution,
        child1: Solution,
        child2: Solution,
        aggregator: FitnessAggregator,
    ) -> bool:
        """True if the children should replace their parents.

        Primary fitness decides first; on a tie the chain does, and a
        complete tie keeps the children.
        """
        best_parent = min(aggregator.key(parent1), aggregator.key(parent2))
        best_child = min(aggregator.key(child1), aggregator.key(child2))
        if best_child < best_parent:
            return True
        if best_child > best_parent:
            return False
        return self.compare_generations(parent1, parent2, child1, child2) >= 0
