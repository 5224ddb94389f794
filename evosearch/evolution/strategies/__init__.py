from evosearch.evolution.strategies.base import (
    EvolutionStrategy,
    StrategyMetrics,
    StrategyState,
)
from evosearch.evolution.strategies.cellular import CellularGA
from evosearch.evolution.strategies.config import (
    CellularConfig,
    MOSAConfig,
    MuLambdaConfig,
    NoveltySearchConfig,
    OnePlusLambdaLambdaConfig,
    StrategyKind,
)
from evosearch.evolution.strategies.factory import build_strategy
from evosearch.evolution.strategies.mosa import MOSA
from evosearch.evolution.strategies.mu_lambda import MuCommaLambdaEA, MuPlusLambdaEA
from evosearch.evolution.strategies.novelty import (
    CoverageNoveltyFunction,
    NoveltyFunction,
    NoveltySearch,
)
from evosearch.evolution.strategies.one_plus_lambda_lambda import OnePlusLambdaLambdaGA

__all__ = [
    "CellularConfig",
    "CellularGA",
    "CoverageNoveltyFunction",
    "EvolutionStrategy",
    "MOSA",
    "MOSAConfig",
    "MuCommaLambdaEA",
    "MuLambdaConfig",
    "MuPlusLambdaEA",
    "NoveltyFunction",
    "NoveltySearch",
    "NoveltySearchConfig",
    "OnePlusLambdaLambdaConfig",
    "OnePlusLambdaLambdaGA",
    "StrategyKind",
    "StrategyMetrics",
    "StrategyState",
    "build_strategy",
]
