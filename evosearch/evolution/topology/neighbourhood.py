from enum import Enum
import math
from typing import Sequence, TypeVar

from loguru import logger

from evosearch.exceptions import ConfigurationError

T = TypeVar("T")


class NeighbourhoodModel(Enum):
    """Neighbourhood shapes available for cellular mating."""

    ONE_DIMENSION = "one_dimension"  # ring: left, self, right
    LINEAR_FIVE = "linear_five"  # N, S, E, W, self
    COMPACT_NINE = "compact_nine"  # linear five + diagonals
    COMPACT_THIRTEEN = "compact_thirteen"  # compact nine + second-order cardinals


class Position(Enum):
    N = 0
    S = 1
    E = 2
    W = 3
    NW = 4
    SW = 5
    NE = 6
    SE = 7


class NeighbourhoodGrid:
    """Toroidal adjacency grid over population indices.

    The grid has ``floor(sqrt(P))`` columns. When ``P`` does not fill the
    last row, wraparound indices on that row are remapped so every cell has
    exactly one neighbour in each direction. Diagonals are always derived
    from the cardinal neighbours.

    The grid is immutable once built; every query returns a new list.
    """

    def __init__(self, population_size: int):
        if population_size < 1:
            raise ConfigurationError(
                f"population_size must be positive, got {population_size}"
            )
        self.population_size = population_size
        self.columns = int(math.isqrt(population_size))
        self._neighbours: list[list[int]] = [[0] * len(Position) for _ in range(population_size)]
        self._construct()
        logger.debug(
            "[NeighbourhoodGrid] Built grid | size={}, columns={}, short_row={}",
            population_size,
            self.columns,
            population_size % self.columns,
        )

    def _construct(self) -> None:
        size = self.population_size
        columns = self.columns
        remainder = size % columns

        for i in range(size):
            cell = self._neighbours[i]

            # North
            if i > columns - 1:
                cell[Position.N.value] = i - columns
            elif remainder != 0:
                wrapped = (i - columns + size) % size
                if i == 0:
                    cell[Position.N.value] = size - remainder
                elif remainder > 1:
                    cell[Position.N.value] = wrapped - remainder if i >= remainder else wrapped + 1
                else:
                    cell[Position.N.value] = wrapped - 1
            else:
                cell[Position.N.value] = (i - columns + size) % size

            # South
            if remainder != 0 and i + columns >= size:
                cell[Position.S.value] = i % columns
            else:
                cell[Position.S.value] = (i + columns) % size

            # East
            if (i + 1) % columns == 0:
                cell[Position.E.value] = i - (columns - 1)
            elif remainder != 0 and i == size - 1:
                cell[Position.E.value] = (i % columns) + 1
            else:
                cell[Position.E.value] = i + 1

            # West
            if i % columns == 0:
                west = i + (columns - 1)
                cell[Position.W.value] = cell[Position.E.value] if west >= size else west
            else:
                cell[Position.W.value] = i - 1

        for i in range(size):
            cell = self._neighbours[i]
            north = self._neighbours[cell[Position.N.value]]
            south = self._neighbours[cell[Position.S.value]]
            cell[Position.NW.value] = north[Position.W.value]
            cell[Position.SW.value] = south[Position.W.value]
            cell[Position.NE.value] = north[Position.E.value]
            cell[Position.SE.value] = south[Position.E.value]

    def neighbour(self, index: int, position: Position) -> int:
        return self._neighbours[index][position.value]

    # ------------------------------------------------------------------
    # Index queries
    # ------------------------------------------------------------------

    def ring_indices(self, index: int) -> list[int]:
        left = index - 1 if index > 0 else self.population_size - 1
        right = index + 1 if index < self.population_size - 1 else 0
        return [left, index, right]

    def linear_five_indices(self, index: int) -> list[int]:
        return [
            self.neighbour(index, Position.N),
            self.neighbour(index, Position.S),
            self.neighbour(index, Position.E),
            self.neighbour(index, Position.W),
            index,
        ]

    def compact_nine_indices(self, index: int) -> list[int]:
        return [
            self.neighbour(index, Position.N),
            self.neighbour(index, Position.S),
            self.neighbour(index, Position.E),
            self.neighbour(index, Position.W),
            self.neighbour(index, Position.NW),
            self.neighbour(index, Position.SW),
            self.neighbour(index, Position.NE),
            self.neighbour(index, Position.SE),
            index,
        ]

    def compact_thirteen_indices(self, index: int) -> list[int]:
        north = self.neighbour(index, Position.N)
        south = self.neighbour(index, Position.S)
        east = self.neighbour(index, Position.E)
        west = self.neighbour(index, Position.W)
        indices = self.compact_nine_indices(index)[:-1]
        indices.extend(
            [
                self.neighbour(north, Position.N),
                self.neighbour(south, Position.S),
                self.neighbour(east, Position.E),
                self.neighbour(west, Position.W),
                index,
            ]
        )
        return indices

    def indices(self, index: int, model: NeighbourhoodModel = NeighbourhoodModel.LINEAR_FIVE) -> list[int]:
        if not 0 <= index < self.population_size:
            raise IndexError(f"index {index} out of range for population of {self.population_size}")
        if model is NeighbourhoodModel.ONE_DIMENSION:
            return self.ring_indices(index)
        if model is NeighbourhoodModel.COMPACT_NINE:
            return self.compact_nine_indices(index)
        if model is NeighbourhoodModel.COMPACT_THIRTEEN:
            return self.compact_thirteen_indices(index)
        return self.linear_five_indices(index)

    # ------------------------------------------------------------------
    # Member queries
    # ------------------------------------------------------------------

    def get_neighbours(
        self,
        population: Sequence[T],
        index: int,
        model: NeighbourhoodModel = NeighbourhoodModel.LINEAR_FIVE,
    ) -> list[T]:
        """Members of ``population`` around ``index``, self last."""
        if len(population) != self.population_size:
            raise ValueError(
                f"Grid was built for {self.population_size} members, got {len(population)}"
            )
        return [population[i] for i in self.indices(index, model)]

    def ring_topology(self, population: Sequence[T], index: int) -> list[T]:
        return self.get_neighbours(population, index, NeighbourhoodModel.ONE_DIMENSION)

    def linear_five(self, population: Sequence[T], index: int) -> list[T]:
        return self.get_neighbours(population, index, NeighbourhoodModel.LINEAR_FIVE)

    def compact_nine(self, population: Sequence[T], index: int) -> list[T]:
        return self.get_neighbours(population, index, NeighbourhoodModel.COMPACT_NINE)

    def compact_thirteen(self, population: Sequence[T], index: int) -> list[T]:
        return self.get_neighbours(population, index, NeighbourhoodModel.COMPACT_THIRTEEN)
