from evosearch.solutions.fitness import FitnessAggregator, normalize, worst_value
from evosearch.solutions.solution import Goal, Objective, Solution, SolutionFactory

__all__ = [
    "FitnessAggregator",
    "Goal",
    "Objective",
    "Solution",
    "SolutionFactory",
    "normalize",
    "worst_value",
]
