from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from evosearch.exceptions import ConfigurationError
from evosearch.solutions.fitness import FitnessAggregator
from evosearch.solutions.solution import Solution


class BloatControl:
    """Rejects offspring that grow too long without improving fitness.

    ``current_max_size`` is the size of the best individual at the start of
    the current generation. An offspring is too long when it is not strictly
    better than the best individual and its size exceeds
    ``bloat_factor * current_max_size``. Sizes exactly at the threshold are
    accepted.
    """

    def __init__(self, bloat_factor: float = 2.0):
        if bloat_factor <= 0:
            raise ConfigurationError(f"bloat_factor must be positive, got {bloat_factor}")
        self.bloat_factor = bloat_factor
        self.current_max_size: int | None = None

    def start_generation(self, best: Solution | None) -> None:
        self.current_max_size = best.size() if best is not None else None

    def is_too_long(
        self,
        offspring: Solution,
        best: Solution | None,
        aggregator: FitnessAggregator,
    ) -> bool:
        if self.current_max_size is None:
            return False
        if best is not None and aggregator.is_better(offspring, best):
            return False

        too_long = offspring.size() > self.bloat_factor * self.current_max_size
        if too_long:
            logger.debug(
                "[BloatControl] Rejected {}: size {} > {} x {}",
                offspring.short_id,
                offspring.size(),
                self.bloat_factor,
                self.current_max_size,
            )
        return too_long


class BloatConfig(BaseModel):
    enabled: bool = Field(default=True)
    bloat_factor: float = Field(
        default=2.0, gt=0, description="Allowed growth over the best individual's size"
    )

    def build(self) -> BloatControl | None:
        return BloatControl(self.bloat_factor) if self.enabled else None
