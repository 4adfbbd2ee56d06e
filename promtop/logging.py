"""Logging configuration for promtop.

Structured logging via loguru. Logging is disabled by default (library
behavior) and only ever writes to a file: the terminal belongs to the
dashboard while it runs.

Example:
    from promtop.logging import LogConfig, setup_logging, teardown_logging

    ids = setup_logging(LogConfig(level="DEBUG", file="promtop.log"))
    try:
        ...
    finally:
        teardown_logging(ids)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, cast

from loguru import logger

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]

LOG_LEVELS: tuple[LogLevel, ...] = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR")

LOG_FILE_ENV = "PROMTOP_LOG_FILE"
LOG_LEVEL_ENV = "PROMTOP_LOG_LEVEL"

_CONTEXT_KEYS = ("component", "endpoint", "url")


def _format_context(record: Any) -> str:
    extra = record.get("extra", {})
    parts = [f"{k}={extra[k]}" for k in _CONTEXT_KEYS if k in extra]
    return f" [{' '.join(parts)}]" if parts else ""


FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line}{extra[_ctx]} - {message}"
)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Minimum log level.
        file: Path of the log file.
        rotation: File rotation policy (e.g., "10 MB", "1 day").
        retention: Number of old log files to keep.
    """

    level: LogLevel = "DEBUG"
    file: str = "promtop.log"
    rotation: str = "10 MB"
    retention: int = 3

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> LogConfig | None:
        """Build a config from ``PROMTOP_LOG_FILE``/``PROMTOP_LOG_LEVEL``, if set."""
        path = environ.get(LOG_FILE_ENV, "").strip()
        if not path:
            return None
        level = environ.get(LOG_LEVEL_ENV, "DEBUG").strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid {LOG_LEVEL_ENV} '{level}'. Valid: {', '.join(LOG_LEVELS)}"
            )
        return cls(level=cast(LogLevel, level), file=path)


def setup_logging(config: LogConfig) -> list[int]:
    """Enable promtop logging and return the handler IDs for cleanup."""
    # Remove default handler (ID=0); stderr is drawn over by the dashboard
    logger.remove()
    logger.enable("promtop")
    logger.configure(patcher=lambda r: r["extra"].update(_ctx=_format_context(r)))

    Path(config.file).parent.mkdir(parents=True, exist_ok=True)
    hid = logger.add(
        config.file,
        level=config.level,
        format=FILE_FORMAT,
        filter="promtop",
        rotation=config.rotation,
        retention=config.retention,
        diagnose=False,
        enqueue=False,
    )
    return [hid]


def teardown_logging(handler_ids: list[int]) -> None:
    """Remove handlers and disable logging."""
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable("promtop")
