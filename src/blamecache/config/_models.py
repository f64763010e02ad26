"""Configuration models.

This module provides the Pydantic models for blamecache settings.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""


class BlameConfig(BaseModel):
    """Settings for running and watching blames.

    Attributes:
        git_executable: Name or path of the git executable.
        timeout: Seconds a single blame process may run, or None for no limit.
        terminate_grace: Seconds between SIGTERM and SIGKILL when stopping
            a blame process.
        ignore_whitespace: Pass ``-w`` to git blame.
        extra_args: Additional arguments inserted before the file name.
        debounce_ms: Milliseconds the file watcher groups changes for.
        logging: Logging settings.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    git_executable: str = "git"
    timeout: float | None = Field(default=30.0, gt=0)
    terminate_grace: float = Field(default=2.0, ge=0)
    ignore_whitespace: bool = False
    extra_args: tuple[str, ...] = ()
    debounce_ms: int = Field(default=200, ge=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
