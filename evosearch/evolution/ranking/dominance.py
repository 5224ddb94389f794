from typing import Sequence

from evosearch.solutions.solution import Objective, Solution


def extract_fitness_values(
    solution: Solution,
    objectives: Sequence[Objective],
) -> list[float]:
    """Objective values oriented so that higher is always better."""
    values = []
    for objective in objectives:
        value = solution.get_fitness(objective.id)
        values.append(value if objective.maximize else -value)
    return values


def dominates(p: Sequence[float], q: Sequence[float]) -> bool:
    """Returns True if p Pareto-dominates q (i.e., p is >= in all and > in at least one)."""
    return all(p_i >= q_i for p_i, q_i in zip(p, q)) and any(
        p_i > q_i for p_i, q_i in zip(p, q)
    )


def compare(a: Solution, b: Solution, objectives: Sequence[Objective]) -> int:
    """Dominance comparison.

    Returns -1 if ``a`` dominates ``b``, 1 if ``b`` dominates ``a`` and 0 if
    they are equal or incomparable. Each objective is judged in its own
    direction.
    """
    values_a = extract_fitness_values(a, objectives)
    values_b = extract_fitness_values(b, objectives)
    if dominates(values_a, values_b):
        return -1
    if dominates(values_b, values_a):
        return 1
    return 0
