from __future__ import annotations

import random
from typing import Any, Dict

from loguru import logger

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.operators.selection import SelectionFunction
from evosearch.evolution.operators.variation import CrossoverFunction
from evosearch.evolution.strategies.base import EvolutionStrategy
from evosearch.evolution.topology.neighbourhood import NeighbourhoodGrid, NeighbourhoodModel
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.solution import Solution, SolutionFactory


class CellularGA(EvolutionStrategy):
    """Cellular genetic algorithm on a toroidal grid.

    Every cell breeds only with its neighbourhood. The best offspring of a
    cell goes into a temporary population built from the previous
    generation; the two populations are then merged cell by cell.
    """

    name = "CellularGA"

    def __init__(
        self,
        factory: SolutionFactory,
        context: SearchContext,
        population_size: int = 49,
        model: NeighbourhoodModel = NeighbourhoodModel.LINEAR_FIVE,
        crossover_rate: float = 0.75,
        selection: SelectionFunction | None = None,
        crossover: CrossoverFunction | None = None,
    ):
        super().__init__(factory, context, population_size, selection, crossover)
        if not 0.0 <= crossover_rate <= 1.0:
            raise ConfigurationError(f"crossover_rate must be in [0, 1], got {crossover_rate}")
        self.model = model
        self.crossover_rate = crossover_rate
        self._grid: NeighbourhoodGrid | None = None

    @property
    def grid(self) -> NeighbourhoodGrid:
        if self._grid is None or self._grid.population_size != len(self._population):
            self._grid = NeighbourhoodGrid(len(self._population))
            logger.debug(
                "[{}] Built {}-cell grid with {} columns",
                self.name,
                self._grid.population_size,
                self._grid.columns,
            )
        return self._grid

    async def _evolve(self) -> None:
        grid = self.grid
        bloat = self.context.bloat
        best = self.best_individual()

        candidates: list[tuple[Solution, Solution]] = []
        for index in range(len(self._population)):
            neighbours = grid.get_neighbours(self._population, index, self.model)
            parent1 = self.selection.select(neighbours, self.context.aggregator)
            parent2 = self.selection.select(neighbours, self.context.aggregator)
            if random.random() <= self.crossover_rate:
                offspring1, offspring2 = self._cross_over(parent1, parent2)
            else:
                offspring1, offspring2 = parent1, parent2
            candidates.append((self._mutate(offspring1), self._mutate(offspring2)))

        await self.context.evaluate([o for pair in candidates for o in pair])

        temp: list[Solution] = []
        for index, (offspring1, offspring2) in enumerate(candidates):
            offspring = self.context.aggregator.best([offspring1, offspring2])
            if bloat is not None and bloat.is_too_long(offspring, best, self.context.aggregator):
                temp.append(self._population[index].clone())
            else:
                temp.append(offspring)

        self._population = self.replace_populations(self._population, temp)

    def replace_populations(
        self, main: list[Solution], temp: list[Solution]
    ) -> list[Solution]:
        """Cell-wise merge: a candidate takes the cell when better or equal.

        On equal primary fitness the secondary objectives decide, and a full
        tie goes to the candidate.
        """
        if len(main) != len(temp):
            raise ValueError(f"Population sizes differ: {len(main)} != {len(temp)}")
        aggregator = self.context.aggregator
        merged: list[Solution] = []
        replaced = 0
        for current, candidate in zip(main, temp):
            current_key, candidate_key = aggregator.key(current), aggregator.key(candidate)
            if candidate_key < current_key:
                take = True
            elif candidate_key > current_key:
                take = False
            else:
                take = self.context.secondary.compare_chromosomes(candidate, current) <= 0
            merged.append(candidate if take else current)
            replaced += take
        logger.debug("[{}] {} of {} cells replaced", self.name, replaced, len(main))
        return merged

    def _specific_metrics(self) -> Dict[str, Any]:
        return {"neighbourhood_model": self.model.value}
