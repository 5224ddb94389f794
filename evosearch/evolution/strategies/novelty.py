"""Novelty search.

Individuals are rewarded for behaving differently from the rest of the
population and from a separate novelty archive, not for primary fitness.
Whoever scores at least ``p_min`` joins the archive, and ``p_min`` adapts to
the admission rate of each generation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import random
from typing import Any, Dict, Sequence

from loguru import logger

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.operators.selection import SelectionFunction
from evosearch.evolution.operators.variation import CrossoverFunction
from evosearch.evolution.strategies.base import EvolutionStrategy
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.fitness import FitnessAggregator
from evosearch.solutions.solution import Objective, Solution, SolutionFactory

NOVELTY_OBJECTIVE = Objective(id="novelty", maximize=True)

# admission counts steering the threshold adaptation
MANY_ADMITTED = 25
FEW_ADMITTED = 10
P_MIN_INCREASE = 1.25
P_MIN_DECREASE = 0.85


class NoveltyFunction(ABC):
    """Scores how distinct one solution is from a reference set."""

    @abstractmethod
    def novelty(self, solution: Solution, others: Sequence[Solution]) -> float:
        """Non-negative novelty of ``solution``; ``others`` excludes it."""


def jaccard_distance(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return 1.0 - len(a & b) / len(union)


class CoverageNoveltyFunction(NoveltyFunction):
    """Mean Jaccard distance between coverage sets of the k nearest neighbours."""

    def __init__(self, k_nearest: int = 15):
        if k_nearest < 1:
            raise ConfigurationError(f"k_nearest must be >= 1, got {k_nearest}")
        self.k_nearest = k_nearest

    def novelty(self, solution: Solution, others: Sequence[Solution]) -> float:
        if not others:
            return 1.0
        distances = sorted(
            jaccard_distance(solution.covered_goals, other.covered_goals) for other in others
        )
        nearest = distances[: self.k_nearest]
        return sum(nearest) / len(nearest)


class NoveltySearch(EvolutionStrategy):
    name = "NoveltySearch"

    def __init__(
        self,
        factory: SolutionFactory,
        context: SearchContext,
        population_size: int = 50,
        novelty_function: NoveltyFunction | None = None,
        p_min: float = 0.3,
        crossover_rate: float = 0.75,
        max_archive_size: int | None = None,
        selection: SelectionFunction | None = None,
        crossover: CrossoverFunction | None = None,
    ):
        super().__init__(factory, context, population_size, selection, crossover)
        if p_min < 0:
            raise ConfigurationError(f"p_min must be >= 0, got {p_min}")
        if not 0.0 <= crossover_rate <= 1.0:
            raise ConfigurationError(f"crossover_rate must be in [0, 1], got {crossover_rate}")
        if max_archive_size is not None and max_archive_size < 1:
            raise ConfigurationError(f"max_archive_size must be >= 1, got {max_archive_size}")
        self.novelty_function = novelty_function or CoverageNoveltyFunction()
        self.p_min = p_min
        self.crossover_rate = crossover_rate
        self.max_archive_size = max_archive_size
        self.novelty_aggregator = FitnessAggregator([NOVELTY_OBJECTIVE])
        self._archive: list[Solution] = []
        self.last_admitted = 0

    @property
    def novelty_archive(self) -> list[Solution]:
        return list(self._archive)

    async def _after_initialization(self) -> None:
        self.update_novelty()

    async def _evolve(self) -> None:
        families = await self._breed()
        best = self.best_individual()
        next_generation: list[Solution] = []
        for parent1, parent2, offspring1, offspring2 in families:
            next_generation.extend(
                self.select_survivors(parent1, parent2, offspring1, offspring2, best)
            )
        self._population = next_generation[: self.population_size]
        self.update_novelty()

    async def _breed(self) -> list[tuple[Solution, Solution, Solution, Solution]]:
        """(parent1, parent2, offspring1, offspring2) families, offspring evaluated."""
        families: list[tuple[Solution, Solution, Solution, Solution]] = []
        while 2 * len(families) < self.population_size:
            parent1 = self.selection.select(self._population, self.novelty_aggregator)
            parent2 = self.selection.select(self._population, self.novelty_aggregator)

            if random.random() <= self.crossover_rate:
                offspring1, offspring2 = self._cross_over(parent1, parent2)
            else:
                offspring1, offspring2 = parent1, parent2
            families.append((parent1, parent2, self._mutate(offspring1), self._mutate(offspring2)))

        await self.context.evaluate([o for family in families for o in family[2:]])
        return families

    def select_survivors(
        self,
        parent1: Solution,
        parent2: Solution,
        offspring1: Solution,
        offspring2: Solution,
        best: Solution,
    ) -> list[Solution]:
        """The two members one family contributes to the next generation.

        The offspring replace their parents unless the secondary objective
        chain prefers the parents; an offspring that is too long is still
        swapped back for its own parent.
        """
        aggregator = self.context.aggregator
        if not self.context.secondary.keep_offspring(
            parent1, parent2, offspring1, offspring2, aggregator
        ):
            return [parent1.clone(), parent2.clone()]

        bloat = self.context.bloat
        survivors: list[Solution] = []
        for parent, offspring in ((parent1, offspring1), (parent2, offspring2)):
            if bloat is not None and bloat.is_too_long(offspring, best, aggregator):
                survivors.append(parent.clone())
            else:
                survivors.append(offspring)
        return survivors

    def update_novelty(self) -> int:
        """Score population and archive, admit novel individuals, adapt ``p_min``.

        Returns the number of individuals admitted to the archive.
        """
        union = self._population + self._archive
        for solution in union:
            others = [other for other in union if other is not solution]
            self._set_novelty(solution, self.novelty_function.novelty(solution, others))

        admitted = [s for s in self._population if s.novelty >= self.p_min]
        self._archive.extend(s.clone() for s in admitted)
        self._adapt_threshold(len(admitted))

        self._population = self.novelty_aggregator.sort(self._population)
        self._archive = self.novelty_aggregator.sort(self._archive)
        if self.max_archive_size is not None:
            del self._archive[self.max_archive_size :]

        self.last_admitted = len(admitted)
        logger.debug(
            "[{}] admitted={} archive={} p_min={:.4f}",
            self.name,
            len(admitted),
            len(self._archive),
            self.p_min,
        )
        return len(admitted)

    def _adapt_threshold(self, admitted: int) -> None:
        if admitted > MANY_ADMITTED:
            self.p_min *= P_MIN_INCREASE
        elif admitted < FEW_ADMITTED:
            self.p_min = max(0.0, self.p_min * P_MIN_DECREASE)

    @staticmethod
    def _set_novelty(solution: Solution, value: float) -> None:
        solution.novelty = value
        solution.set_fitness(NOVELTY_OBJECTIVE.id, value)

    def _specific_metrics(self) -> Dict[str, Any]:
        return {
            "p_min": self.p_min,
            "novelty_archive_size": len(self._archive),
            "last_admitted": self.last_admitted,
        }
