from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from evosearch.evolution.topology.neighbourhood import NeighbourhoodModel


class StrategyKind(str, Enum):
    """The closed set of search strategies."""

    MU_COMMA_LAMBDA = "mu_comma_lambda"
    MU_PLUS_LAMBDA = "mu_plus_lambda"
    ONE_PLUS_LAMBDA_LAMBDA = "one_plus_lambda_lambda"
    NOVELTY = "novelty"
    CELLULAR = "cellular"
    MOSA = "mosa"


class MuLambdaConfig(BaseModel):
    """Shared by (μ,λ) and (μ+λ).

    The strategy kind picks the variant; (μ,λ) rejects ``lambda_ < mu`` when
    the strategy is built.
    """

    mu: int = Field(default=1, gt=0, description="Parent population size")
    lambda_: int = Field(default=1, gt=0, description="Offspring per generation")


class OnePlusLambdaLambdaConfig(BaseModel):
    lambda_: int = Field(default=1, ge=1, description="Mutants and crossover children per phase")


class NoveltySearchConfig(BaseModel):
    population_size: int = Field(default=50, gt=0)
    p_min: float = Field(default=0.3, ge=0, description="Initial archive admission threshold")
    crossover_rate: float = Field(default=0.75, ge=0, le=1)
    k_nearest: int = Field(default=15, gt=0, description="Neighbours averaged by the novelty metric")
    max_archive_size: int | None = Field(default=None, gt=0)


class CellularConfig(BaseModel):
    population_size: int = Field(default=49, gt=0)
    model: NeighbourhoodModel = Field(default=NeighbourhoodModel.LINEAR_FIVE)
    crossover_rate: float = Field(default=0.75, ge=0, le=1)


class MOSAConfig(BaseModel):
    population_size: int = Field(default=50, gt=0)
    crossover_rate: float = Field(default=0.75, ge=0, le=1)
