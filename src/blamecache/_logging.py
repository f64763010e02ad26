"""Logging utilities for blamecache.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to stderr or a log file. Each logger
is self-contained and does not modify global structlog configuration.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from blamecache.config import BlameConfig

LogFormatType = Literal["json", "text"]


def _log_level_from_string(level: str | None) -> int:
    """Convert a log level string to a logging level integer.

    BLAMECACHE_DEBUG overrides everything with DEBUG. Without an explicit
    level, BLAMECACHE_LOG_LEVEL is used, defaulting to INFO.

    Args:
        level: Log level string (debug, info, warning, error), or None.

    Returns:
        The logging level as an integer.
    """
    if getenv("BLAMECACHE_DEBUG", None):
        return logging.DEBUG

    effective = level if level is not None else getenv("BLAMECACHE_LOG_LEVEL", "info")
    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(effective.upper(), logging.INFO)


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    log_file: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        level: Log level threshold (debug, info, warning, error). Falls back
            to the BLAMECACHE_LOG_LEVEL environment variable.
        log_format: Output format, either "json" or "text".
        log_file: Path to a log file opened in append mode. Logs go to
            stderr if empty.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = _log_level_from_string(level)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        raw_logger = structlog.WriteLoggerFactory(file=log_path.open("a"))()
    else:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )


def create_logger_from_config(
    config: "BlameConfig",  # noqa: UP037
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger from the logging section of a configuration.

    Args:
        config: The blame configuration.

    Returns:
        A FilteringBoundLogger instance.
    """
    return create_logger(
        level=config.logging.level.value,
        log_format=config.logging.format.value,
        log_file=config.logging.file,
    )
