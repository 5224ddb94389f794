import asyncio
import random
from typing import Sequence

import pytest
from pydantic import Field

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.engine.oracle import EvaluationResult, ExecutionOracle
from evosearch.exceptions import ConstructionFailedError, OracleCrashError
from evosearch.solutions.solution import Goal, Objective, Solution, SolutionFactory

DISTANCE = Objective(id="distance")


class VectorSolution(Solution):
    """Toy candidate: a vector of integers the search drives towards zero."""

    genes: list[int] = Field(default_factory=list)

    def mutate(self) -> None:
        if not self.genes:
            raise ConstructionFailedError("cannot mutate an empty vector")
        index = random.randrange(len(self.genes))
        self.genes[index] += random.choice((-1, 1))
        self.changed = True

    def cross_over(self, other: Solution, position1: int, position2: int) -> None:
        self.genes = self.genes[:position1] + list(other.genes[position2:])
        self.changed = True

    def size(self) -> int:
        return len(self.genes)


class StubbornSolution(VectorSolution):
    """Mutation never changes anything."""

    def mutate(self) -> None:
        pass


class VectorFactory(SolutionFactory):
    def __init__(self, length: int = 4, low: int = -5, high: int = 5):
        self.length = length
        self.low = low
        self.high = high

    def create(self) -> Solution:
        return VectorSolution(
            genes=[random.randint(self.low, self.high) for _ in range(self.length)]
        )


class VectorOracle(ExecutionOracle):
    """Deterministic oracle over VectorSolution.

    ``distance`` is the sum of absolute genes; goal ``g{i}`` has distance
    ``abs(genes[i])`` and is covered when that gene is zero. Solutions whose
    first gene equals ``crash_on`` make the oracle fail.
    """

    def __init__(self, crash_on: int | None = None, delay: bool = False):
        self.crash_on = crash_on
        self.delay = delay
        self.calls = 0

    async def evaluate(
        self, solution: Solution, objectives: Sequence[Objective]
    ) -> EvaluationResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(random.random() * 0.01)
        if self.crash_on is not None and solution.genes and solution.genes[0] == self.crash_on:
            raise OracleCrashError("runner crashed")

        fitness: dict[str, float] = {}
        for objective in objectives:
            if objective.id == DISTANCE.id:
                fitness[objective.id] = float(sum(abs(g) for g in solution.genes))
            elif objective.id.startswith("g"):
                index = int(objective.id[1:])
                if index < len(solution.genes):
                    fitness[objective.id] = float(abs(solution.genes[index]))
                else:
                    fitness[objective.id] = float("inf")
        return EvaluationResult(
            fitness=fitness, tests_executed=1, statements_executed=len(solution.genes)
        )

    async def coverage_vector(self, solution: Solution) -> set[str]:
        return {f"g{i}" for i, gene in enumerate(solution.genes) if gene == 0}


def make_goals(count: int) -> list[Goal]:
    return [Goal(id=f"g{i}") for i in range(count)]


def with_fitness(genes: list[int], distance: float) -> VectorSolution:
    solution = VectorSolution(genes=genes)
    solution.set_fitness(DISTANCE.id, distance)
    solution.changed = False
    return solution


@pytest.fixture(autouse=True)
def seeded_random():
    random.seed(12345)
    yield


@pytest.fixture
def oracle():
    return VectorOracle()


@pytest.fixture
def factory():
    return VectorFactory()


@pytest.fixture
def context(oracle):
    return SearchContext([DISTANCE], oracle, goals=make_goals(4))
