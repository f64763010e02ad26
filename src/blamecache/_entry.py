"""Blame cache entry for a single file.

This module provides the BlameCacheEntry class that caches the blame of one
file, deduplicates concurrent requests into one blame process, and reacts
to file watch events by invalidating or disposing itself.
"""

from collections.abc import Callable
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import TYPE_CHECKING, final

import anyio.abc
from anyio.streams.memory import MemoryObjectReceiveStream

from blamecache.exceptions import BlameProcessError, EntryDisposedError, WatchError

from ._builder import ResultBuilder
from ._future import BlameFuture
from ._logging import create_logger
from ._models import BlameEvent, BlameInfo
from ._progress import NullProgressIndicator
from ._protocol import BlameProcess, ProcessFactory, ProgressIndicator, Watch

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


@final
class BlameCacheEntry:
    """Cached blame of one file.

    At most one blame computation is pending per entry. Every caller of
    ``get_blame()`` receives the pending future until a modification of the
    file clears it. A rename or removal of the file disposes the entry.

    All state transitions happen in synchronous methods, so no two tasks can
    interleave between checking and setting the pending future.
    """

    __slots__ = (
        "_active_process",
        "_disposed",
        "_file_name",
        "_logger",
        "_on_dispose",
        "_pending",
        "_process_factory",
        "_progress",
        "_task_group",
        "_watch",
    )

    def __init__(
        self,
        file_name: Path,
        *,
        task_group: anyio.abc.TaskGroup,
        process_factory: ProcessFactory,
        watch: Watch | None = None,
        progress: ProgressIndicator | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
        on_dispose: "Callable[[BlameCacheEntry], None] | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize the entry and start watching the file.

        Args:
            file_name: Path of the file.
            task_group: Task group that collects blame results.
            process_factory: Creates one blame process per computation.
            watch: Watch for the file, owned by the entry from now on.
            progress: Receives a signal on every blame request.
            logger: Logger for blame results and watch failures.
            on_dispose: Called once when the entry is disposed.
        """
        self._file_name = file_name
        self._task_group = task_group
        self._process_factory = process_factory
        self._progress: ProgressIndicator = progress or NullProgressIndicator()
        self._logger: FilteringBoundLogger = logger or create_logger()
        self._on_dispose = on_dispose
        self._pending: BlameFuture | None = None
        self._active_process: BlameProcess | None = None
        self._disposed = False
        self._watch = watch

        if watch is not None:
            watch.start(file_name, self._changed, self.dispose, self._watch_failed)

    @property
    def file_name(self) -> Path:
        """Return the path of the file."""
        return self._file_name

    @property
    def pending(self) -> BlameFuture | None:
        """Return the pending or completed blame, if one is cached."""
        return self._pending

    @property
    def active_process(self) -> BlameProcess | None:
        """Return the blame process of the latest computation while it runs."""
        return self._active_process

    @property
    def watch(self) -> Watch | None:
        """Return the watch, or None once it was released."""
        return self._watch

    @property
    def disposed(self) -> bool:
        """Return True once the entry was disposed."""
        return self._disposed

    def get_blame(self) -> BlameFuture:
        """Return the blame of the file.

        Returns the cached future if there is one. Otherwise starts a blame
        process and caches its future before returning it. The future always
        resolves to a BlameInfo, which is blank if the blame failed.

        Returns:
            The future blame result.

        Raises:
            EntryDisposedError: If the entry was disposed.
        """
        if self._disposed:
            msg = f"Blame cache entry for '{self._file_name}' was disposed"
            raise EntryDisposedError(msg, file_name=self._file_name)

        self._progress.start_progress(self._file_name)

        if self._pending is not None:
            return self._pending
        return self._find_blame_info()

    def dispose(self) -> None:
        """Terminate the running blame and release the watch. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._pending = None

        if self._active_process is not None:
            self._active_process.terminate()
            self._active_process = None

        if self._watch is not None:
            self._watch.stop()
            self._watch = None

        self._logger.debug("entry_disposed", file=str(self._file_name))

        if self._on_dispose is not None:
            self._on_dispose(self)

    def _find_blame_info(self) -> BlameFuture:
        future = BlameFuture()
        process = self._process_factory()
        events = process.start(self._file_name)

        self._pending = future
        self._active_process = process
        self._task_group.start_soon(
            self._collect,
            process,
            events,
            future,
            name=f"collect blame {self._file_name}",
        )
        return future

    async def _collect(
        self,
        process: BlameProcess,
        events: MemoryObjectReceiveStream[BlameEvent],
        future: BlameFuture,
    ) -> None:
        """Build the result from the process events and resolve the future."""
        builder = ResultBuilder()
        try:
            async with events:
                async for event in events:
                    if builder.add(event) is not None:
                        break
        finally:
            if self._active_process is process:
                self._active_process = None
            future.set_result(self._finish(builder))

    def _finish(self, builder: ResultBuilder) -> BlameInfo:
        result = builder.result
        if result is None:
            msg = f"Blame stream for '{self._file_name}' closed without an end event"
            result = builder.finish(BlameProcessError(msg, file_name=self._file_name))

        if builder.error is not None:
            self._logger.error(
                "blame_failed",
                file=str(self._file_name),
                error=str(builder.error),
                error_type=type(builder.error).__name__,
            )
        else:
            self._logger.info(
                "blame_completed",
                file=str(self._file_name),
                commits=builder.commit_count,
            )

        return result

    def _changed(self) -> None:
        self._pending = None
        self._logger.debug("blame_invalidated", file=str(self._file_name))

    def _watch_failed(self, error: WatchError) -> None:
        # The entry keeps serving its cached result without invalidation
        self._logger.error(
            "watch_failed",
            file=str(self._file_name),
            error=str(error),
        )
