"""Accumulation of blame stream events into a BlameInfo."""

from collections.abc import Iterable
from types import MappingProxyType
from typing import final

from blamecache.exceptions import BlameCacheError, BlameProcessError

from ._models import (
    BlameEvent,
    BlameInfo,
    CommitFound,
    CommitInfo,
    LineBlamed,
    StreamEnded,
    blank_blame_info,
)


@final
class ResultBuilder:
    """Builds the result of one blame run from its events.

    Commit and line events may arrive in any relative order; later events
    for the same commit or line replace earlier ones. A failed run yields
    the blank result, never partial attribution.
    """

    __slots__ = ("_commits", "_error", "_lines", "_result")

    def __init__(self) -> None:
        self._commits: dict[str, CommitInfo] = {}
        self._lines: dict[int, str] = {}
        self._error: BlameProcessError | None = None
        self._result: BlameInfo | None = None

    @property
    def finished(self) -> bool:
        """Return True once the end of the stream was seen."""
        return self._result is not None

    @property
    def result(self) -> BlameInfo | None:
        """Return the final result, or None while the stream is running."""
        return self._result

    @property
    def error(self) -> BlameProcessError | None:
        """Return the error that ended the stream, if any."""
        return self._error

    @property
    def commit_count(self) -> int:
        """Return the number of commits in the final result."""
        return len(self._result.commits) if self._result is not None else 0

    def add(self, event: BlameEvent) -> BlameInfo | None:
        """Apply one event.

        Args:
            event: The next event of the stream.

        Returns:
            The final result if the event ended the stream, otherwise None.

        Raises:
            BlameCacheError: If the stream already ended.
        """
        if self._result is not None:
            msg = f"Event received after the end of the blame stream: {event!r}"
            raise BlameCacheError(msg)

        match event:
            case CommitFound(hash=commit_hash, commit=commit):
                self._commits[commit_hash] = commit
            case LineBlamed(line=line, hash=commit_hash):
                self._lines[line] = commit_hash
            case StreamEnded(error=error):
                return self.finish(error)
        return None

    def finish(self, error: BlameProcessError | None = None) -> BlameInfo:
        """End the run.

        Args:
            error: The failure that ended the stream, or None on success.

        Returns:
            The final result; the blank result if `error` is set.

        Raises:
            BlameCacheError: If the run already ended.
        """
        if self._result is not None:
            msg = "Blame stream already ended"
            raise BlameCacheError(msg)
        self._error = error
        if error is not None:
            self._result = blank_blame_info()
        else:
            self._result = BlameInfo(
                lines=MappingProxyType(dict(sorted(self._lines.items()))),
                commits=MappingProxyType(dict(self._commits)),
            )
        self._commits.clear()
        self._lines.clear()
        return self._result


def build_blame_info(events: Iterable[BlameEvent]) -> BlameInfo:
    """Fold a complete event sequence into its result.

    Args:
        events: Events ending with a StreamEnded.

    Returns:
        The final result.

    Raises:
        BlameCacheError: If the events do not end with a StreamEnded.
    """
    builder = ResultBuilder()
    for event in events:
        result = builder.add(event)
        if result is not None:
            return result
    msg = "Blame events ended without a StreamEnded event"
    raise BlameCacheError(msg)
