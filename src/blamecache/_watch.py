"""File watcher for a single file using watchfiles.

The parent directory is watched non-recursively and filtered down to the
watched file name, so renames and deletions of the file itself are seen.
Raw watchfiles changes are reduced to two events: modified and
renamed-or-removed.
"""

from collections.abc import Callable, Iterable
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc
from watchfiles import Change, awatch

from blamecache.exceptions import BlameCacheError, WatchError

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


class WatchEvent(StrEnum):
    """Events reported by a FileWatch."""

    MODIFIED = "modified"
    RENAMED_OR_REMOVED = "renamed_or_removed"


def classify_changes(
    changes: Iterable[tuple[Change, str]],
    file_name: Path,
) -> WatchEvent | None:
    """Reduce a batch of raw changes to one watch event.

    A batch is a removal if it deleted the file and the file no longer
    exists. Any other change of the file, including one that replaced it
    with a new file, is a modification.

    Args:
        changes: Changes reported by watchfiles for one debounce period.
        file_name: The watched file.

    Returns:
        The event for the batch, or None if the file was not touched.
    """
    kinds = {change for change, path in changes if Path(path).name == file_name.name}
    if not kinds:
        return None
    if Change.deleted in kinds and not file_name.exists():
        return WatchEvent.RENAMED_OR_REMOVED
    return WatchEvent.MODIFIED


@final
class FileWatch:
    """Watches one file and reports changes until stopped.

    Events are delivered from a task in the given task group. After a
    renamed-or-removed event the watch is exhausted and delivers nothing
    more.
    """

    __slots__ = (
        "_cancel_scope",
        "_debounce_ms",
        "_logger",
        "_started",
        "_stop_event",
        "_stopped",
        "_task_group",
    )

    def __init__(
        self,
        task_group: anyio.abc.TaskGroup,
        *,
        debounce_ms: int = 200,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize the watch.

        Args:
            task_group: Task group the watcher runs in.
            debounce_ms: Milliseconds to group raw changes for.
            logger: Logger for failures without an error callback.
        """
        self._task_group = task_group
        self._debounce_ms = debounce_ms
        self._logger = logger
        self._cancel_scope: anyio.CancelScope | None = None
        self._stop_event: anyio.Event | None = None
        self._started = False
        self._stopped = False

    @property
    def stopped(self) -> bool:
        """Return True once the watch was stopped or exhausted."""
        return self._stopped

    def start(
        self,
        file_name: Path,
        on_modified: Callable[[], None],
        on_renamed_or_removed: Callable[[], None],
        on_error: Callable[[WatchError], None] | None = None,
    ) -> None:
        """Start watching a file.

        Args:
            file_name: Path of the file to watch.
            on_modified: Called once per batch of content changes.
            on_renamed_or_removed: Called once when the file is gone.
            on_error: Called if the platform watcher fails.

        Raises:
            BlameCacheError: If the watch was already started.
        """
        if self._started:
            msg = f"Watch for '{file_name}' was already started"
            raise BlameCacheError(msg)
        self._started = True
        self._stop_event = anyio.Event()
        self._task_group.start_soon(
            self._watch,
            file_name,
            on_modified,
            on_renamed_or_removed,
            on_error,
            name=f"watch {file_name}",
        )

    def stop(self) -> None:
        """Stop watching and release the watcher. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        if self._stop_event is not None:
            self._stop_event.set()
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    async def _watch(
        self,
        file_name: Path,
        on_modified: Callable[[], None],
        on_renamed_or_removed: Callable[[], None],
        on_error: Callable[[WatchError], None] | None,
    ) -> None:
        """Deliver watch events until stopped or the file is gone."""
        if self._stopped:
            return
        with anyio.CancelScope() as self._cancel_scope:
            try:
                async for changes in awatch(
                    file_name.parent,
                    watch_filter=lambda _change, path: Path(path).name == file_name.name,
                    stop_event=self._stop_event,
                    debounce=self._debounce_ms,
                    recursive=False,
                ):
                    if self._stopped:
                        continue
                    event = classify_changes(changes, file_name)
                    if event is WatchEvent.RENAMED_OR_REMOVED:
                        # Ends the iteration at its next checkpoint
                        self.stop()
                        on_renamed_or_removed()
                        continue
                    if event is WatchEvent.MODIFIED:
                        on_modified()
            except (OSError, RuntimeError) as e:
                msg = f"Watching '{file_name}' failed: {e}"
                error = WatchError(msg, file_name=file_name, cause=e)
                if on_error is not None:
                    on_error(error)
                elif self._logger is not None:
                    self._logger.error("watch_failed", file=str(file_name), error=str(error))
