from evosearch.evolution.engine.config import EngineConfig
from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.engine.evaluation import Evaluator
from evosearch.evolution.engine.metrics import EngineMetrics
from evosearch.evolution.engine.oracle import EvaluationResult, ExecutionOracle
from evosearch.evolution.engine.core import EvolutionEngine

__all__ = [
    "EngineConfig",
    "EngineMetrics",
    "EvaluationResult",
    "Evaluator",
    "EvolutionEngine",
    "ExecutionOracle",
    "SearchContext",
]
