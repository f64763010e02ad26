"""Per-file git blame cache with file watch invalidation.

This package runs ``git blame --incremental`` for files on request, caches
the result per file, and keeps it coherent with the file on disk.

Key Components:
    - BlameInfo, CommitInfo, Signature: Blame results
    - CommitFound, LineBlamed, StreamEnded: Events of a blame stream
    - IncrementalBlameParser: Parser for incremental blame output
    - BlameStream: Runs one blame process and streams its events
    - ResultBuilder: Folds stream events into a BlameInfo
    - FileWatch: Reports modifications and removals of one file
    - BlameCacheEntry: Cached, deduplicated blame of one file
    - BlameCache: One entry per file
    - open_blame_cache: Runs a BlameCache in its own task group

Example:
    >>> from blamecache import open_blame_cache
    >>> async with open_blame_cache() as cache:
    ...     info = await cache.get_blame("README.md")
    ...     commit = info.commit_for_line(1)
"""

from ._builder import ResultBuilder, build_blame_info
from ._cache import BlameCache, open_blame_cache
from ._entry import BlameCacheEntry
from ._future import BlameFuture
from ._logging import create_logger, create_logger_from_config
from ._models import (
    UNCOMMITTED_HASH,
    BlameEvent,
    BlameInfo,
    CommitFound,
    CommitInfo,
    LineBlamed,
    Signature,
    StreamEnded,
    blank_blame_info,
)
from ._parser import IncrementalBlameParser
from ._progress import ConsoleProgressIndicator, NullProgressIndicator
from ._protocol import BlameProcess, ProcessFactory, ProgressIndicator, Watch, WatchFactory
from ._stream import BlameStream
from ._watch import FileWatch, WatchEvent, classify_changes

__all__ = [
    "UNCOMMITTED_HASH",
    "BlameCache",
    "BlameCacheEntry",
    "BlameEvent",
    "BlameFuture",
    "BlameInfo",
    "BlameProcess",
    "BlameStream",
    "CommitFound",
    "CommitInfo",
    "ConsoleProgressIndicator",
    "FileWatch",
    "IncrementalBlameParser",
    "LineBlamed",
    "NullProgressIndicator",
    "ProcessFactory",
    "ProgressIndicator",
    "ResultBuilder",
    "Signature",
    "StreamEnded",
    "Watch",
    "WatchEvent",
    "WatchFactory",
    "blank_blame_info",
    "build_blame_info",
    "classify_changes",
    "create_logger",
    "create_logger_from_config",
    "open_blame_cache",
]
