"""Ambiguity scoring over a test-execution x goal coverage matrix.

Goals whose coverage columns are identical cannot be told apart by the
executed tests. Each group of ``c > 1`` indistinguishable goals adds
``c / G * (c - 1) / 2`` to the score, where ``G`` is the number of grouped
goals. Singletons add nothing.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from loguru import logger
import numpy as np

from evosearch.solutions.fitness import normalize
from evosearch.solutions.solution import Goal, Solution


def coverage_matrix(
    coverage_vectors: Sequence[set[str]], goals: Sequence[Goal]
) -> np.ndarray:
    """Binary matrix with one row per test execution and one column per goal."""
    matrix = np.zeros((len(coverage_vectors), len(goals)), dtype=np.uint8)
    for row, covered in enumerate(coverage_vectors):
        for column, goal in enumerate(goals):
            if goal.id in covered:
                matrix[row, column] = 1
    return matrix


def group_goals(matrix: np.ndarray) -> dict[tuple[int, ...], int]:
    """Group goal columns by identical coverage vector -> group cardinality."""
    matrix = np.asarray(matrix, dtype=np.uint8)
    if matrix.ndim != 2:
        raise ValueError(f"Coverage matrix must be 2-D, got shape {matrix.shape}")

    num_executions, num_goals = matrix.shape
    if num_goals == 0:
        return {}
    if num_executions == 0:
        # no test executed: every goal is indistinguishable from the others
        return {(): num_goals}

    transposed = matrix.T
    vectors, counts = np.unique(transposed, axis=0, return_counts=True)
    return {
        tuple(int(bit) for bit in vector): int(count)
        for vector, count in zip(vectors, counts)
    }


def ambiguity(groups: Mapping[object, int], num_components: int) -> float:
    """Raw (unnormalised) ambiguity score of a grouping."""
    if num_components <= 0:
        return 0.0
    score = 0.0
    for cardinality in groups.values():
        if cardinality <= 1:
            continue
        score += (cardinality / num_components) * ((cardinality - 1) / 2.0)
    return score


class AmbiguityScorer:
    """Diagnostic fitness rewarding suites whose tests tell goals apart."""

    def score(self, matrix: np.ndarray) -> float:
        matrix = np.asarray(matrix, dtype=np.uint8)
        groups = group_goals(matrix)
        return ambiguity(groups, sum(groups.values()))

    def fitness(self, matrix: np.ndarray) -> float:
        """Normalised ambiguity in [0, 1); lower is better."""
        return normalize(self.score(matrix))

    def fitness_of(self, solutions: Sequence[Solution], goals: Sequence[Goal]) -> float:
        """Ambiguity of the coverage recorded on ``solutions`` for ``goals``."""
        matrix = coverage_matrix([s.covered_goals for s in solutions], goals)
        value = self.fitness(matrix)
        logger.debug(
            "[AmbiguityScorer] {} execution(s) x {} goal(s) -> ambiguity={:.4f}",
            len(solutions),
            len(goals),
            value,
        )
        return value
