import math
from typing import Sequence

from loguru import logger

from evosearch.evolution.ranking.dominance import compare
from evosearch.exceptions import InvariantViolationError
from evosearch.solutions.solution import Objective, Solution


class FastNonDominatedSorting:
    """Fast non-dominated sorting into ranked fronts.

    Every unordered pair is compared exactly once, so the cost is
    O(M * N^2) for M objectives and N solutions. Front membership follows
    index order; ties inside a front are left to secondary objectives.
    """

    def __init__(self) -> None:
        self._ranking: list[list[Solution]] = []

    def rank(
        self, population: Sequence[Solution], objectives: Sequence[Objective]
    ) -> list[list[int]]:
        """Partition ``population`` into fronts of indices and write ``rank``
        (front index, 0 = best) back onto every solution."""
        size = len(population)
        if size == 0:
            self._ranking = []
            return []

        for solution in population:
            solution.distance = math.inf

        # dominated_count[i]: how many solutions dominate i
        dominated_count = [0] * size
        # dominated_by[i]: indices that i dominates
        dominated_by: list[list[int]] = [[] for _ in range(size)]

        for p in range(size - 1):
            for q in range(p + 1, size):
                flag = compare(population[p], population[q], objectives)
                if flag == -1:
                    dominated_by[p].append(q)
                    dominated_count[q] += 1
                elif flag == 1:
                    dominated_by[q].append(p)
                    dominated_count[p] += 1

        fronts: list[list[int]] = []
        current = [p for p in range(size) if dominated_count[p] == 0]
        while current:
            front_index = len(fronts)
            for p in current:
                population[p].rank = front_index
            fronts.append(current)

            following: list[int] = []
            for p in current:
                for q in dominated_by[p]:
                    dominated_count[q] -= 1
                    if dominated_count[q] == 0:
                        following.append(q)
            current = following

        if sum(len(front) for front in fronts) != size:
            raise InvariantViolationError("fronts must partition the population")

        self._ranking = [[population[i] for i in front] for front in fronts]
        logger.debug(
            "[FastNonDominatedSorting] {} solutions -> {} front(s), front sizes={}",
            size,
            len(fronts),
            [len(front) for front in fronts],
        )
        return fronts

    def get_subfront(self, rank: int) -> list[Solution]:
        """Solutions of the given front from the last ranking."""
        return list(self._ranking[rank])

    @property
    def number_of_subfronts(self) -> int:
        return len(self._ranking)


def assign_crowding_distance(
    front: Sequence[Solution], objectives: Sequence[Objective]
) -> None:
    """NSGA-II crowding distance, written into each solution's ``distance``."""
    if len(front) <= 2:
        for solution in front:
            solution.distance = math.inf
        return

    for solution in front:
        solution.distance = 0.0

    for objective in objectives:
        ordered = sorted(front, key=lambda s: s.get_fitness(objective.id))
        lowest = ordered[0].get_fitness(objective.id)
        highest = ordered[-1].get_fitness(objective.id)

        # Boundary solutions get infinite distance
        ordered[0].distance = math.inf
        ordered[-1].distance = math.inf

        value_range = highest - lowest
        if not math.isfinite(value_range) or value_range <= 1e-10:
            continue
        for i in range(1, len(ordered) - 1):
            previous_value = ordered[i - 1].get_fitness(objective.id)
            next_value = ordered[i + 1].get_fitness(objective.id)
            ordered[i].distance += (next_value - previous_value) / value_range
