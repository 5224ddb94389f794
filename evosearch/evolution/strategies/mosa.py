from __future__ import annotations

import math
import random
from typing import Any, Dict

from loguru import logger

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.operators.selection import (
    RankCrowdingTournamentSelection,
    SelectionFunction,
)
from evosearch.evolution.operators.variation import CrossoverFunction
from evosearch.evolution.ranking.sorting import (
    FastNonDominatedSorting,
    assign_crowding_distance,
)
from evosearch.evolution.strategies.base import EvolutionStrategy
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.solution import Objective, Solution, SolutionFactory


class MOSA(EvolutionStrategy):
    """Many-objective sorting algorithm.

    Every goal still active in the archive is a separate minimisation
    objective. Survivors of parents + offspring are chosen front by front
    from fast non-dominated sorting; the front that does not fit entirely is
    truncated by descending crowding distance. With no active goals left,
    everybody is rank 0 and survival falls back to aggregated fitness.
    """

    name = "MOSA"

    def __init__(
        self,
        factory: SolutionFactory,
        context: SearchContext,
        population_size: int = 50,
        crossover_rate: float = 0.75,
        selection: SelectionFunction | None = None,
        crossover: CrossoverFunction | None = None,
    ):
        super().__init__(
            factory,
            context,
            population_size,
            selection if selection is not None else RankCrowdingTournamentSelection(),
            crossover,
        )
        if not 0.0 <= crossover_rate <= 1.0:
            raise ConfigurationError(f"crossover_rate must be in [0, 1], got {crossover_rate}")
        self.crossover_rate = crossover_rate
        self.sorting = FastNonDominatedSorting()

    def goal_objectives(self) -> list[Objective]:
        return [goal.objective for goal in self.context.archive.active_goals()]

    async def _after_initialization(self) -> None:
        self._population = self._survivors(self._population)

    async def _evolve(self) -> None:
        offspring = self._breed()
        await self.context.evaluate(offspring)
        self._population = self._survivors(self._population + offspring)

    def _breed(self) -> list[Solution]:
        offspring: list[Solution] = []
        while len(offspring) < self.population_size:
            parent1 = self._select()
            parent2 = self._select()
            if random.random() <= self.crossover_rate:
                child1, child2 = self._cross_over(parent1, parent2)
            else:
                child1, child2 = parent1, parent2
            offspring.append(self._mutate(child1))
            offspring.append(self._mutate(child2))
        return offspring[: self.population_size]

    def _survivors(self, union: list[Solution]) -> list[Solution]:
        objectives = self.goal_objectives()
        if not objectives:
            for solution in union:
                solution.rank = 0
                solution.distance = math.inf
            return self.context.aggregator.sort(union)[: self.population_size]

        fronts = self.sorting.rank(union, objectives)
        survivors: list[Solution] = []
        for indices in fronts:
            front = [union[i] for i in indices]
            assign_crowding_distance(front, objectives)
            remaining = self.population_size - len(survivors)
            if len(front) <= remaining:
                survivors.extend(front)
            else:
                front.sort(key=lambda s: s.distance, reverse=True)
                survivors.extend(front[:remaining])
            if len(survivors) == self.population_size:
                break

        logger.debug(
            "[{}] {} objective(s), {} front(s), front 0 size={}",
            self.name,
            len(objectives),
            len(fronts),
            len(fronts[0]) if fronts else 0,
        )
        return survivors

    def _specific_metrics(self) -> Dict[str, Any]:
        return {
            "active_objectives": len(self.context.archive.active_goals()),
            "fronts": self.sorting.number_of_subfronts,
        }
