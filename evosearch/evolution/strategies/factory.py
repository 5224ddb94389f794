from __future__ import annotations

from typing import Union

from loguru import logger
from pydantic import BaseModel

from evosearch.evolution.engine.context import SearchContext
from evosearch.evolution.operators.selection import SelectionFunction
from evosearch.evolution.operators.variation import CrossoverFunction
from evosearch.evolution.strategies.base import EvolutionStrategy
from evosearch.evolution.strategies.cellular import CellularGA
from evosearch.evolution.strategies.config import (
    CellularConfig,
    MOSAConfig,
    MuLambdaConfig,
    NoveltySearchConfig,
    OnePlusLambdaLambdaConfig,
    StrategyKind,
)
from evosearch.evolution.strategies.mosa import MOSA
from evosearch.evolution.strategies.mu_lambda import MuCommaLambdaEA, MuPlusLambdaEA
from evosearch.evolution.strategies.novelty import CoverageNoveltyFunction, NoveltySearch
from evosearch.evolution.strategies.one_plus_lambda_lambda import OnePlusLambdaLambdaGA
from evosearch.exceptions import ConfigurationError
from evosearch.solutions.solution import SolutionFactory

StrategyConfig = Union[
    MuLambdaConfig,
    OnePlusLambdaLambdaConfig,
    NoveltySearchConfig,
    CellularConfig,
    MOSAConfig,
]

_CONFIG_TYPES: dict[StrategyKind, type[BaseModel]] = {
    StrategyKind.MU_COMMA_LAMBDA: MuLambdaConfig,
    StrategyKind.MU_PLUS_LAMBDA: MuLambdaConfig,
    StrategyKind.ONE_PLUS_LAMBDA_LAMBDA: OnePlusLambdaLambdaConfig,
    StrategyKind.NOVELTY: NoveltySearchConfig,
    StrategyKind.CELLULAR: CellularConfig,
    StrategyKind.MOSA: MOSAConfig,
}


def build_strategy(
    kind: StrategyKind | str,
    factory: SolutionFactory,
    context: SearchContext,
    config: StrategyConfig | None = None,
    selection: SelectionFunction | None = None,
    crossover: CrossoverFunction | None = None,
) -> EvolutionStrategy:
    """Instantiate the strategy ``kind`` from its configuration model."""
    try:
        kind = StrategyKind(kind)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown strategy kind: {kind!r}") from exc

    expected = _CONFIG_TYPES[kind]
    if config is None:
        config = expected()
    if not isinstance(config, expected):
        raise ConfigurationError(
            f"{kind.value} expects {expected.__name__}, got {type(config).__name__}"
        )

    strategy: EvolutionStrategy
    if kind == StrategyKind.MU_COMMA_LAMBDA:
        strategy = MuCommaLambdaEA(factory, context, mu=config.mu, lambda_=config.lambda_)
    elif kind == StrategyKind.MU_PLUS_LAMBDA:
        strategy = MuPlusLambdaEA(factory, context, mu=config.mu, lambda_=config.lambda_)
    elif kind == StrategyKind.ONE_PLUS_LAMBDA_LAMBDA:
        strategy = OnePlusLambdaLambdaGA(
            factory, context, lambda_=config.lambda_, crossover=crossover
        )
    elif kind == StrategyKind.NOVELTY:
        strategy = NoveltySearch(
            factory,
            context,
            population_size=config.population_size,
            novelty_function=CoverageNoveltyFunction(config.k_nearest),
            p_min=config.p_min,
            crossover_rate=config.crossover_rate,
            max_archive_size=config.max_archive_size,
            selection=selection,
            crossover=crossover,
        )
    elif kind == StrategyKind.CELLULAR:
        strategy = CellularGA(
            factory,
            context,
            population_size=config.population_size,
            model=config.model,
            crossover_rate=config.crossover_rate,
            selection=selection,
            crossover=crossover,
        )
    else:
        strategy = MOSA(
            factory,
            context,
            population_size=config.population_size,
            crossover_rate=config.crossover_rate,
            selection=selection,
            crossover=crossover,
        )

    logger.info("[build_strategy] {} with {}", strategy.name, config.model_dump())
    return strategy
