from __future__ import annotations

from collections import deque
from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from evosearch.evolution.stopping.conditions import SearchProgress


class EngineMetrics(BaseModel):
    """Run-level counters maintained by the EvolutionEngine."""

    total_generations: int = Field(
        default=0, description="Total number of generations run"
    )
    errors_encountered: int = Field(
        default=0, description="Total number of failed generations"
    )
    generation_overruns: int = Field(
        default=0, description="Generations that finished after generation_timeout"
    )
    fitness_evaluations: int = Field(default=0, description="Oracle calls so far")
    oracle_failures: int = Field(default=0, description="Oracle calls that failed")
    operator_failures: int = Field(
        default=0, description="Variation attempts that exhausted their retries"
    )
    best_fitness: float | None = Field(
        default=None, description="Aggregated fitness of the best individual"
    )
    covered_goals: int = Field(default=0, description="Goals covered so far")
    total_goals: int = Field(default=0, description="Goals registered in the archive")
    last_generation_time: datetime | None = Field(
        default=None, description="Timestamp of last generation"
    )
    evaluations_per_generation: deque = Field(
        default_factory=lambda: deque(maxlen=5),
        description="Rolling window of oracle calls per generation",
    )

    @computed_field
    @property
    def avg_evaluations(self) -> float:
        """Average number of oracle calls over the rolling window."""
        return sum(self.evaluations_per_generation) / max(
            1, len(self.evaluations_per_generation)
        )

    @computed_field
    @property
    def coverage(self) -> float:
        return self.covered_goals / self.total_goals if self.total_goals else 0.0

    def record_generation(self, progress: SearchProgress) -> None:
        """Record counters after one generation."""
        self.evaluations_per_generation.append(
            progress.fitness_evaluations - self.fitness_evaluations
        )
        self.fitness_evaluations = progress.fitness_evaluations
        self.oracle_failures = progress.oracle_failures
        self.operator_failures = progress.operator_failures
        self.best_fitness = progress.best_fitness
        self.total_goals = progress.total_goals
        self.covered_goals = progress.total_goals - progress.active_goals

    def to_dict(self) -> dict[str, int | float | str | None]:
        return {
            "total_generations": self.total_generations,
            "errors_encountered": self.errors_encountered,
            "generation_overruns": self.generation_overruns,
            "fitness_evaluations": self.fitness_evaluations,
            "oracle_failures": self.oracle_failures,
            "operator_failures": self.operator_failures,
            "best_fitness": self.best_fitness,
            "coverage": self.coverage,
            "last_generation_time": self.last_generation_time,
            "avg_evaluations": self.avg_evaluations,
        }

    model_config = {"arbitrary_types_allowed": True}
