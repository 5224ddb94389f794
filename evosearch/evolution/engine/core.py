from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import time
from typing import TYPE_CHECKING, Optional

from loguru import logger

from evosearch.evolution.engine.config import EngineConfig
from evosearch.evolution.engine.metrics import EngineMetrics
from evosearch.exceptions import EvolutionError
from evosearch.solutions.solution import Solution

if TYPE_CHECKING:
    from evosearch.evolution.strategies.base import EvolutionStrategy

__all__ = ["EvolutionEngine"]


class EvolutionEngine:
    """
    Generational driver:
    - one generation completes before the next one starts;
    - stopping conditions are polled only at generation boundaries;
    - stop() is cooperative and takes effect at the next boundary.
    """

    def __init__(self, strategy: EvolutionStrategy, config: EngineConfig | None = None):
        self.strategy = strategy
        self.config = config if config is not None else EngineConfig()
        self.metrics = EngineMetrics()

        self._active = False
        self._on_hold = False
        self._error_streak = 0

        logger.info(
            "[EvolutionEngine] Ready | strategy={} | generation cap={}",
            self.strategy.name,
            self.config.max_generations,
        )

    @property
    def context(self):
        return self.strategy.context

    async def initialize_population(self, size: int | None = None) -> None:
        await self.strategy.initialize(size)
        self.metrics.record_generation(self.context.progress)

    async def evolve_one_generation(self) -> None:
        if self.strategy.is_finished():
            logger.debug("[EvolutionEngine] Search finished; generation skipped")
            return
        await self.evolve_step()

    def is_finished(self) -> bool:
        return self.strategy.is_finished()

    def best_individual(self) -> Solution:
        return self.strategy.best_individual()

    def archive_snapshot(self) -> dict[str, Solution]:
        return self.context.archive.snapshot()

    async def run(self) -> None:
        """Initialize if needed, then evolve until a stop reason appears."""
        self._active = True
        self._error_streak = 0
        logger.info("[EvolutionEngine] Search started")

        try:
            if not self.strategy.population:
                await self.initialize_population(self.config.initial_population_size)

            while self._active:
                if self._on_hold:
                    await asyncio.sleep(max(self.config.loop_interval, 0.01))
                    continue

                reason = self._stop_reason()
                if reason is not None:
                    logger.info("[EvolutionEngine] Stopping: {}", reason)
                    break

                await self._guarded_generation()
                if self._error_streak >= self.config.max_consecutive_errors:
                    logger.critical(
                        "[EvolutionEngine] Giving up after {} failed generations in a row",
                        self._error_streak,
                    )
                    break

                await asyncio.sleep(self.config.loop_interval)
        finally:
            self._active = False
            logger.info(
                "[EvolutionEngine] Search ended after {} generation(s)",
                self.metrics.total_generations,
            )

    async def evolve_step(self) -> None:
        """One generation; failures other than invariant violations become EvolutionError."""
        try:
            await self.strategy.evolve_one_generation()
        except (EvolutionError, AssertionError):
            raise
        except Exception as exc:
            raise EvolutionError(f"Generation failed: {exc}") from exc

        self.metrics.total_generations += 1
        self.metrics.last_generation_time = datetime.now(timezone.utc)
        self.metrics.record_generation(self.context.progress)

    async def _guarded_generation(self) -> None:
        # never cancelled: in-flight oracle calls always run to completion
        started = time.monotonic()
        try:
            await self.evolve_step()
        except EvolutionError as exc:
            self._record_failure(str(exc))
            return

        elapsed = time.monotonic() - started
        if elapsed > self.config.generation_timeout:
            self.metrics.generation_overruns += 1
            self._record_failure(
                f"generation took {elapsed:.3f}s, budget is {self.config.generation_timeout}s"
            )
            return

        self._error_streak = 0
        interval = self.config.log_interval
        if interval > 0 and self.metrics.total_generations % interval == 0:
            self._log_metrics()

    def _stop_reason(self) -> Optional[str]:
        cap = self.config.max_generations
        if cap is not None and self.metrics.total_generations >= cap:
            return f"reached {cap} generation(s)"
        if self.strategy.is_finished():
            return "stopping condition met"
        return None

    def _record_failure(self, msg: str) -> None:
        self._error_streak += 1
        self.metrics.errors_encountered += 1
        logger.error("[EvolutionEngine] Failed generation ({} in a row): {}", self._error_streak, msg)

    def _log_metrics(self) -> None:
        fields = self.metrics.to_dict()
        logger.info(
            "[EvolutionEngine] {}",
            " | ".join(
                f"{k}={v:.4f}" if isinstance(v, float) else f"{k}={v}"
                for k, v in fields.items()
            ),
        )

    def stop(self) -> None:
        """Request the search to end at the next generation boundary."""
        self._active = False
        self.context.request_stop()

    def pause(self) -> None:
        """Pause new generations; time budgets stop counting."""
        self._on_hold = True
        self.context.stopping.pause()

    def resume(self) -> None:
        self._on_hold = False
        self.context.stopping.resume()

    def is_running(self) -> bool:
        return self._active

    async def get_status(self) -> dict[str, object]:
        strategy_metrics = await self.strategy.get_metrics()
        return {
            "running": self._active,
            "paused": self._on_hold,
            "consecutive_errors": self._error_streak,
            **self.metrics.to_dict(),
            **strategy_metrics.to_dict(),
        }
