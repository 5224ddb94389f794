from abc import ABC, abstractmethod
import math
import random
from typing import Sequence

from loguru import logger

from evosearch.exceptions import ConfigurationError
from evosearch.solutions.fitness import FitnessAggregator
from evosearch.solutions.solution import Solution


class SelectionFunction(ABC):
    """Picks one parent from a population; never modifies the population."""

    @abstractmethod
    def select(
        self, population: Sequence[Solution], aggregator: FitnessAggregator
    ) -> Solution:
        ...

    def select_many(
        self,
        population: Sequence[Solution],
        aggregator: FitnessAggregator,
        count: int,
    ) -> list[Solution]:
        return [self.select(population, aggregator) for _ in range(count)]

    @staticmethod
    def _require(population: Sequence[Solution]) -> None:
        if not population:
            raise ValueError("Cannot select from an empty population")


class RandomSelection(SelectionFunction):
    def select(
        self, population: Sequence[Solution], aggregator: FitnessAggregator
    ) -> Solution:
        self._require(population)
        return random.choice(population)


class TournamentSelection(SelectionFunction):
    def __init__(self, tournament_size: int = 2):
        if tournament_size < 1:
            raise ConfigurationError(f"tournament_size must be at least 1, got {tournament_size}")
        self.tournament_size = tournament_size

    def select(
        self, population: Sequence[Solution], aggregator: FitnessAggregator
    ) -> Solution:
        self._require(population)
        candidates = [random.randrange(len(population)) for _ in range(self.tournament_size)]
        winner = min(candidates, key=lambda i: aggregator.key(population[i]))
        return population[winner]


class RankSelection(SelectionFunction):
    """Linear ranking with selective pressure ``bias`` in (1, 2]."""

    def __init__(self, bias: float = 1.7):
        if not 1.0 < bias <= 2.0:
            raise ConfigurationError(f"bias must be in (1, 2], got {bias}")
        self.bias = bias

    def select(
        self, population: Sequence[Solution], aggregator: FitnessAggregator
    ) -> Solution:
        self._require(population)
        ranked = aggregator.sort(population)
        r = random.random()
        d = self.bias * self.bias - 4.0 * (self.bias - 1.0) * r
        index = int(len(ranked) * (self.bias - math.sqrt(d)) / 2.0 / (self.bias - 1.0))
        return ranked[min(max(index, 0), len(ranked) - 1)]


class RouletteWheelSelection(SelectionFunction):
    """Fitness-proportional selection on the lower-is-better aggregate."""

    def select(
        self, population: Sequence[Solution], aggregator: FitnessAggregator
    ) -> Solution:
        self._require(population)
        weights = [1.0 / (1.0 + aggregator.key(s)) for s in population]
        return random.choices(population, weights=weights, k=1)[0]


class RankCrowdingTournamentSelection(SelectionFunction):
    """Binary tournament on front rank, then larger crowding distance."""

    def select(
        self, population: Sequence[Solution], aggregator: FitnessAggregator
    ) -> Solution:
        self._require(population)
        first = population[random.randrange(len(population))]
        second = population[random.randrange(len(population))]
        if first.rank != second.rank:
            return first if first.rank < second.rank else second
        if first.distance != second.distance:
            return first if first.distance > second.distance else second
        winner = random.choice((first, second))
        logger.debug(
            "[RankCrowdingTournament] tie between {} and {} -> {}",
            first.short_id,
            second.short_id,
            winner.short_id,
        )
        return winner
