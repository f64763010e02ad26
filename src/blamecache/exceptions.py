"""blamecache exceptions."""

from pathlib import Path  # noqa: TC003 - Used in runtime type annotations


class BlameCacheError(Exception):
    """Base exception for blamecache errors."""


class EntryDisposedError(BlameCacheError):
    """Raised when a disposed cache entry is queried.

    Attributes:
        file_name: Path of the entry that was already disposed.
    """

    def __init__(self, message: str, *, file_name: Path) -> None:
        """Initialize with error message and entry context."""
        super().__init__(message)
        self.file_name: Path = file_name


# =============================================================================
# Blame Process Exceptions
# =============================================================================


class BlameProcessError(BlameCacheError):
    """Raised when the blame process fails or its output cannot be used.

    These errors never reach ``get_blame()`` callers. They travel on the
    stream's end event, get logged, and turn into the blank result.

    Attributes:
        file_name: Path of the blamed file.
        exit_code: Exit code of the process, if it exited.
        stderr: Captured standard error output, if any.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        file_name: Path | None = None,
        exit_code: int | None = None,
        stderr: str = "",
        cause: BaseException | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            file_name: Path of the blamed file.
            exit_code: Exit code of the process, if it exited.
            stderr: Captured standard error output.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.file_name: Path | None = file_name
        self.exit_code: int | None = exit_code
        self.stderr: str = stderr
        self.cause: BaseException | None = cause


class BlameParseError(BlameProcessError):
    """Raised when the incremental blame output is malformed.

    Attributes:
        line_number: 1-based line of the process output that failed to parse.
    """

    def __init__(
        self,
        message: str,
        *,
        line_number: int | None = None,
        file_name: Path | None = None,
    ) -> None:
        """Initialize with error message and output location."""
        super().__init__(message, file_name=file_name)
        self.line_number: int | None = line_number


class BlameTimeoutError(BlameProcessError):
    """Raised when the blame process exceeds its configured timeout.

    Attributes:
        timeout: The timeout in seconds that was exceeded.
    """

    def __init__(
        self,
        message: str,
        *,
        timeout: float,
        file_name: Path | None = None,
    ) -> None:
        """Initialize with error message and timeout."""
        super().__init__(message, file_name=file_name)
        self.timeout: float = timeout


class BlameTerminatedError(BlameProcessError):
    """Raised when the blame process was terminated on request."""


# =============================================================================
# Watch Exceptions
# =============================================================================


class WatchError(BlameCacheError):
    """Raised when the file watcher cannot be set up or stops delivering.

    Attributes:
        file_name: Path being watched.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        file_name: Path,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize with error message and watch context."""
        super().__init__(message)
        self.file_name: Path = file_name
        self.cause: BaseException | None = cause


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(BlameCacheError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column
