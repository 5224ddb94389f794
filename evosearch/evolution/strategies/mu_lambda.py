from __future__ import annotations

from typing import Any, Dict

from loguru import logger

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.strategies.base import EvolutionStrategy
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.solution import Solution, SolutionFactory


class MuCommaLambdaEA(EvolutionStrategy):
    """(μ,λ) evolutionary algorithm.

    Each generation mutates ``population[i mod μ]`` for i in 0..λ-1, evaluates
    the λ offspring and keeps the best μ of them. Parents never survive on
    their own; the offspring pool replaces the population entirely.
    """

    name = "MuCommaLambdaEA"

    def __init__(
        self,
        factory: SolutionFactory,
        context: SearchContext,
        mu: int = 1,
        lambda_: int = 1,
    ):
        super().__init__(factory, context, population_size=mu)
        if lambda_ < 1:
            raise ConfigurationError(f"lambda must be positive, got {lambda_}")
        self.lambda_ = lambda_
        self._validate_population_size(mu)

    @property
    def mu(self) -> int:
        return self.population_size

    def _validate_population_size(self, size: int) -> None:
        super()._validate_population_size(size)
        if self.lambda_ < size:
            raise ConfigurationError(
                f"{self.name} requires lambda >= mu, got lambda={self.lambda_}, mu={size}"
            )

    def _offspring(self) -> list[Solution]:
        return [
            self._mutate(self._population[i % self.mu]) for i in range(self.lambda_)
        ]

    async def _evolve(self) -> None:
        offspring = self._offspring()
        await self.context.evaluate(offspring)
        ranked = self.context.aggregator.sort(offspring)
        self._population = ranked[: self.mu]
        logger.debug(
            "[{}] Kept {} of {} offspring",
            self.name,
            len(self._population),
            len(offspring),
        )

    def _specific_metrics(self) -> Dict[str, Any]:
        return {"mu": self.mu, "lambda": self.lambda_}


class MuPlusLambdaEA(MuCommaLambdaEA):
    """(μ+λ) evolutionary algorithm.

    Offspring are appended to the μ parents before the stable sort, so a
    parent only loses its slot to an offspring that is strictly better.
    """

    name = "MuPlusLambdaEA"

    def _validate_population_size(self, size: int) -> None:
        EvolutionStrategy._validate_population_size(self, size)

    async def _evolve(self) -> None:
        offspring = self._offspring()
        await self.context.evaluate(offspring)
        ranked = self.context.aggregator.sort(self._population + offspring)
        survivors = ranked[: self.mu]
        replaced = sum(1 for s in survivors if any(s is o for o in offspring))
        self._population = survivors
        logger.debug(
            "[{}] {} offspring entered the population of {}",
            self.name,
            replaced,
            self.mu,
        )
