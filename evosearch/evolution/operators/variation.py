"""Crossover operators and the retry helpers that wrap variation."""

from __future__ import annotations

from abc import ABC, abstractmethod
import random
from typing import Callable, TypeVar

from loguru import logger

from evosearch.exceptions import ConstructionFailedError, OperatorRetryExhaustedError
from evosearch.solutions.solution import Solution

T = TypeVar("T")

DEFAULT_MAX_OPERATOR_ATTEMPTS = 10


class CrossoverFunction(ABC):
    """Recombines two offspring in place; may raise ConstructionFailedError."""

    @abstractmethod
    def cross_over(self, parent1: Solution, parent2: Solution) -> None:
        ...


class SinglePointCrossover(CrossoverFunction):
    """Both offspring are cut at the same point."""

    def cross_over(self, parent1: Solution, parent2: Solution) -> None:
        if parent1.size() < 2 or parent2.size() < 2:
            return
        point = random.randint(1, min(parent1.size(), parent2.size()) - 1)
        original = parent1.model_copy(deep=True)
        parent1.cross_over(parent2, point, point)
        parent2.cross_over(original, point, point)


class SinglePointRelativeCrossover(CrossoverFunction):
    """Each offspring is cut at the same relative position."""

    def cross_over(self, parent1: Solution, parent2: Solution) -> None:
        if parent1.size() < 2 or parent2.size() < 2:
            return
        split = random.random()
        position1 = int(round((parent1.size() - 1) * split)) + 1
        position2 = int(round((parent2.size() - 1) * split)) + 1
        original = parent1.model_copy(deep=True)
        parent1.cross_over(parent2, position1, position2)
        parent2.cross_over(original, position2, position1)


def retry_operator(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_OPERATOR_ATTEMPTS,
    operation_name: str = "operator",
) -> T:
    """Run ``operation`` until it stops raising ConstructionFailedError."""
    for attempt in range(max_attempts):
        try:
            return operation()
        except ConstructionFailedError as exc:
            logger.debug(
                "[variation] {} attempt {}/{} failed: {}",
                operation_name,
                attempt + 1,
                max_attempts,
                exc,
            )

    raise OperatorRetryExhaustedError(
        f"{operation_name} failed {max_attempts} times in a row"
    )


def mutate_until_changed(
    parent: Solution,
    max_attempts: int = DEFAULT_MAX_OPERATOR_ATTEMPTS,
) -> Solution:
    """Clone ``parent`` and mutate the clone until it reports a change.

    Each attempt starts from a fresh clone, so a failed or no-op mutation
    never leaves a partially mutated offspring behind.
    """

    def attempt() -> Solution:
        offspring = parent.clone()
        offspring.changed = False
        offspring.mutate()
        if not offspring.changed:
            raise ConstructionFailedError("mutation left the offspring unchanged")
        return offspring

    return retry_operator(attempt, max_attempts, "mutation")


def cross_over_with_retries(
    crossover: CrossoverFunction,
    parent1: Solution,
    parent2: Solution,
    max_attempts: int = DEFAULT_MAX_OPERATOR_ATTEMPTS,
) -> tuple[Solution, Solution]:
    """Cross clones of both parents; retried on construction failure."""

    def attempt() -> tuple[Solution, Solution]:
        offspring1 = parent1.clone()
        offspring2 = parent2.clone()
        crossover.cross_over(offspring1, offspring2)
        return offspring1, offspring2

    return retry_operator(attempt, max_attempts, "crossover")
