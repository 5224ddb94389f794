"""
Logging setup for search runs.

Every component logs through loguru with a ``[Component]`` prefix, e.g.
``[Evaluator]`` or ``[MOSA]``. ``setup_logger`` installs a console sink and,
when a log directory is configured, a rotating per-run file sink. Noisy
components can be given their own minimum level.
"""

from datetime import datetime, timezone
import os
import re
import sys
from typing import Dict, Optional

from loguru import logger
from pydantic import BaseModel, Field

_COMPONENT = re.compile(r"^\[([^\]]+)\]")

_PLAIN_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | run={extra[run_id]} | {message}"
)
_COLORED_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>run={extra[run_id]}</cyan> | "
    "<level>{message}</level>"
)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    log_dir: Optional[str] = Field(
        default=None, description="Directory for the run log; console only when unset"
    )
    run_id: Optional[str] = Field(
        default=None, description="Tag attached to every record; a UTC timestamp when unset"
    )
    rotation: str = Field(default="50 MB")
    retention: str = Field(default="30 days")
    enable_colors: bool = Field(default=True)
    component_levels: Dict[str, str] = Field(
        default_factory=dict,
        description="Minimum level per component prefix, e.g. {'Evaluator': 'WARNING'}",
    )


def component_of(message: str) -> Optional[str]:
    """Component name from a ``[Component] ...`` message, if any."""
    match = _COMPONENT.match(message)
    return match.group(1) if match else None


def _make_filter(config: LoggingConfig):
    thresholds = {
        name: logger.level(level.upper()).no
        for name, level in config.component_levels.items()
    }

    def _filter(record) -> bool:
        if not thresholds:
            return True
        threshold = thresholds.get(component_of(record["message"]))
        return threshold is None or record["level"].no >= threshold

    return _filter


def setup_logger(config: Optional[LoggingConfig] = None, **overrides) -> Optional[str]:
    """
    Install console (and optionally file) sinks for a search run.

    Args:
        config: Logging settings; defaults are used when omitted
        **overrides: Field overrides applied on top of ``config``

    Returns:
        Path to the run log file, or None for console-only logging
    """
    config = config if config is not None else LoggingConfig()
    if overrides:
        config = config.model_copy(update=overrides)

    run_id = config.run_id or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    record_filter = _make_filter(config)

    logger.remove()
    logger.configure(extra={"run_id": run_id})

    colorize = config.enable_colors and sys.stderr.isatty()
    logger.add(
        sys.stderr,
        level=config.level,
        format=_COLORED_FORMAT if colorize else _PLAIN_FORMAT,
        colorize=colorize,
        filter=record_filter,
        backtrace=True,
        diagnose=False,
    )

    log_file = None
    if config.log_dir is not None:
        os.makedirs(config.log_dir, exist_ok=True)
        log_file = os.path.join(config.log_dir, f"search_{run_id}.log")
        logger.add(
            log_file,
            level=config.level,
            format=_PLAIN_FORMAT,
            filter=record_filter,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
        )

    logger.info("[Logging] Run {} | level={} | file={}", run_id, config.level, log_file)
    return log_file
