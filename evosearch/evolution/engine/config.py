from __future__ import annotations

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """Configuration options controlling EvolutionEngine behaviour."""

    loop_interval: float = Field(
        default=0.0, ge=0, description="Pause in seconds between generations"
    )
    generation_timeout: float = Field(
        default=4800.0,
        gt=0,
        description="Wall-clock budget in seconds for one generation; an overrun is "
        "counted as a failed generation once it finishes, never cancelled",
    )
    max_generations: int | None = Field(
        default=None,
        gt=0,
        description="Maximum number of generations to run (None = unlimited)",
    )
    max_consecutive_errors: int = Field(
        default=5, gt=0, description="Stop the loop after this many failed generations"
    )
    log_interval: int = Field(
        default=1, ge=0, description="Log metrics every N generations (0 = never)"
    )
    initial_population_size: int | None = Field(
        default=None,
        gt=0,
        description="Population size used by run() when the strategy is not initialized",
    )
