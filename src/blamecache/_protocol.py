"""Protocol definitions for the collaborators of a blame cache entry.

This module defines the interfaces that decouple the cache core from
processes, file watching and UI:
- BlameProcess: One run of the blame tool, delivering events over a channel
- Watch: File watcher reporting modified and renamed-or-removed events
- ProgressIndicator: Fire-and-forget progress signal for the UI
"""

from collections.abc import Callable
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import Protocol, runtime_checkable

from anyio.streams.memory import MemoryObjectReceiveStream

from blamecache.exceptions import WatchError  # noqa: TC001

from ._models import BlameEvent  # noqa: TC001

type ProcessFactory = Callable[[], BlameProcess]
type WatchFactory = Callable[[], Watch]


@runtime_checkable
class BlameProcess(Protocol):
    """Protocol for one run of the blame tool.

    Implementations deliver ``CommitFound`` and ``LineBlamed`` events in any
    order, followed by exactly one ``StreamEnded``, after which the channel
    closes.
    """

    def start(self, file_name: Path) -> MemoryObjectReceiveStream[BlameEvent]:
        """Start blaming a file.

        Must be called exactly once per instance. The returned channel exists
        before this method returns, so no event can be missed.

        Args:
            file_name: Path of the file to blame.

        Returns:
            The receiving end of the event channel.
        """
        ...

    def terminate(self) -> None:
        """Cancel the run.

        Safe to call at any time. Unless the stream already ended, it ends
        with an error.
        """
        ...


@runtime_checkable
class Watch(Protocol):
    """Protocol for watching a single file."""

    def start(
        self,
        file_name: Path,
        on_modified: Callable[[], None],
        on_renamed_or_removed: Callable[[], None],
        on_error: Callable[[WatchError], None] | None = None,
    ) -> None:
        """Start delivering events for a file.

        Args:
            file_name: Path of the file to watch.
            on_modified: Called when the file content changed.
            on_renamed_or_removed: Called once when the file is gone.
            on_error: Called if the platform watcher fails.
        """
        ...

    def stop(self) -> None:
        """Stop delivering events and release the watcher. Idempotent."""
        ...


@runtime_checkable
class ProgressIndicator(Protocol):
    """Protocol for the UI progress signal.

    Called on every blame request from any number of entries; must not
    raise and must not block.
    """

    def start_progress(self, file_name: Path) -> None:
        """Signal that a blame for a file was requested."""
        ...
