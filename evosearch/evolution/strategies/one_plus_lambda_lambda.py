from __future__ import annotations

from typing import Any, Dict

from loguru import logger

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.operators.variation import CrossoverFunction
from evosearch.evolution.strategies.base import EvolutionStrategy
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.solution import Solution, SolutionFactory


class OnePlusLambdaLambdaGA(EvolutionStrategy):
    """1+(λ,λ) genetic algorithm on a single-individual population.

    Each generation runs three phases:

    1. Mutation: λ mutated clones of the parent are evaluated and the best
       mutant is kept.
    2. Crossover: the parent is crossed with the best mutant until λ
       children exist (both children of a pair are used while there is
       room), and the best child is kept.
    3. Selection: the best of {parent, best child} is compared against the
       best mutant. Ties favour the crossover child over the parent, and that
       winner over the mutant.
    """

    name = "OnePlusLambdaLambdaGA"

    def __init__(
        self,
        factory: SolutionFactory,
        context: SearchContext,
        lambda_: int = 1,
        crossover: CrossoverFunction | None = None,
    ):
        if lambda_ < 1:
            raise ConfigurationError(f"{self.name} requires lambda >= 1, got {lambda_}")
        super().__init__(factory, context, population_size=1, crossover=crossover)
        self.lambda_ = lambda_

    def _validate_population_size(self, size: int) -> None:
        if size != 1:
            raise ConfigurationError(f"{self.name} population size is fixed at 1, got {size}")

    async def _mutation_phase(self, parent: Solution) -> Solution:
        mutants = [self._mutate(parent) for _ in range(self.lambda_)]
        await self.context.evaluate(mutants)
        return self.context.aggregator.best(mutants)

    async def _crossover_phase(self, parent: Solution, best_mutant: Solution) -> Solution:
        children: list[Solution] = []
        while len(children) < self.lambda_:
            child1, child2 = self._cross_over(parent, best_mutant)
            children.append(child1)
            if len(children) < self.lambda_:
                children.append(child2)
        await self.context.evaluate(children)
        return self.context.aggregator.best(children)

    async def _evolve(self) -> None:
        aggregator = self.context.aggregator
        parent = self._population[0]

        best_mutant = await self._mutation_phase(parent)
        best_child = await self._crossover_phase(parent, best_mutant)

        candidate = best_child if aggregator.is_better_or_equal(best_child, parent) else parent
        next_parent = (
            candidate if aggregator.is_better_or_equal(candidate, best_mutant) else best_mutant
        )
        logger.debug(
            "[{}] parent={:.4f} mutant={:.4f} child={:.4f} -> {}",
            self.name,
            aggregator.key(parent),
            aggregator.key(best_mutant),
            aggregator.key(best_child),
            next_parent.short_id,
        )
        self._population = [next_parent]

    def _specific_metrics(self) -> Dict[str, Any]:
        return {"lambda": self.lambda_}
