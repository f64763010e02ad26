"""Registry of blame cache entries.

This module provides the BlameCache class that keeps one BlameCacheEntry per
file, and open_blame_cache() which runs a cache inside its own task group.
"""

import contextlib
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc

from blamecache.config import BlameConfig
from blamecache.exceptions import BlameCacheError

from ._entry import BlameCacheEntry
from ._future import BlameFuture  # noqa: TC001
from ._logging import create_logger_from_config
from ._protocol import BlameProcess, ProcessFactory, ProgressIndicator, Watch, WatchFactory
from ._stream import BlameStream
from ._watch import FileWatch

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


@final
class BlameCache:
    """Keeps one blame cache entry per file.

    Entries are created on the first request for a path and forgotten when
    they are disposed, so a file that is recreated after removal gets a
    fresh entry.
    """

    __slots__ = (
        "_config",
        "_disposed",
        "_entries",
        "_logger",
        "_process_factory",
        "_progress",
        "_task_group",
        "_watch_factory",
    )

    def __init__(
        self,
        task_group: anyio.abc.TaskGroup,
        *,
        config: BlameConfig | None = None,
        progress: ProgressIndicator | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
        process_factory: ProcessFactory | None = None,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            task_group: Task group for blame processes, collectors and watches.
            config: Blame settings. Uses defaults if None.
            progress: Receives a signal on every blame request.
            logger: Logger shared by all entries. Created from config if None.
            process_factory: Creates blame processes. Uses BlameStream if None.
            watch_factory: Creates file watches. Uses FileWatch if None.
        """
        self._task_group = task_group
        self._config = config or BlameConfig()
        self._progress = progress
        self._logger: FilteringBoundLogger = logger or create_logger_from_config(self._config)
        self._process_factory: ProcessFactory = process_factory or self._create_process
        self._watch_factory: WatchFactory = watch_factory or self._create_watch
        self._entries: dict[Path, BlameCacheEntry] = {}
        self._disposed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_name: object) -> bool:
        if not isinstance(file_name, (str, Path)):
            return False
        return Path(file_name).resolve() in self._entries

    def entry(self, file_name: str | Path) -> BlameCacheEntry:
        """Return the live entry for a file, creating it if needed.

        Args:
            file_name: Path of the file.

        Returns:
            The entry for the resolved path.

        Raises:
            BlameCacheError: If the cache was disposed.
        """
        if self._disposed:
            msg = "Blame cache was disposed"
            raise BlameCacheError(msg)

        path = Path(file_name).resolve()
        entry = self._entries.get(path)
        if entry is None or entry.disposed:
            entry = BlameCacheEntry(
                path,
                task_group=self._task_group,
                process_factory=self._process_factory,
                watch=self._watch_factory(),
                progress=self._progress,
                logger=self._logger,
                on_dispose=self._forget_entry,
            )
            self._entries[path] = entry
        return entry

    def get_blame(self, file_name: str | Path) -> BlameFuture:
        """Return the blame of a file.

        Args:
            file_name: Path of the file.

        Returns:
            The future blame result.

        Raises:
            BlameCacheError: If the cache was disposed.
        """
        return self.entry(file_name).get_blame()

    def forget(self, file_name: str | Path) -> None:
        """Dispose and remove the entry for a file, if there is one."""
        entry = self._entries.get(Path(file_name).resolve())
        if entry is not None:
            entry.dispose()

    def dispose(self) -> None:
        """Dispose all entries. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for entry in list(self._entries.values()):
            entry.dispose()
        self._entries.clear()

    def _forget_entry(self, entry: BlameCacheEntry) -> None:
        if self._entries.get(entry.file_name) is entry:
            del self._entries[entry.file_name]

    def _create_process(self) -> BlameProcess:
        return BlameStream(self._task_group, self._config)

    def _create_watch(self) -> Watch:
        return FileWatch(
            self._task_group,
            debounce_ms=self._config.debounce_ms,
            logger=self._logger,
        )


@contextlib.asynccontextmanager
async def open_blame_cache(
    config: BlameConfig | None = None,
    *,
    progress: ProgressIndicator | None = None,
    logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
) -> AsyncIterator[BlameCache]:
    """Run a blame cache in its own task group.

    On exit all entries are disposed and remaining background tasks are
    cancelled.

    Example:
        >>> async with open_blame_cache() as cache:
        ...     info = await cache.get_blame("src/module.py")

    Args:
        config: Blame settings. Uses defaults if None.
        progress: Receives a signal on every blame request.
        logger: Logger shared by all entries. Created from config if None.

    Yields:
        The blame cache.
    """
    async with anyio.create_task_group() as tg:
        cache = BlameCache(tg, config=config, progress=progress, logger=logger)
        try:
            yield cache
        finally:
            cache.dispose()
            tg.cancel_scope.cancel()
