"""Single-assignment awaitable result shared by all callers of one blame."""

from collections.abc import Generator
from typing import Any, final

import anyio

from blamecache.exceptions import BlameCacheError

from ._models import BlameInfo


@final
class BlameFuture:
    """A blame result that may not be available yet.

    Every caller that receives the same instance observes the same value.
    The result is set exactly once; awaiting the future blocks until then.
    """

    __slots__ = ("_done", "_result")

    def __init__(self) -> None:
        self._done = anyio.Event()
        self._result: BlameInfo | None = None

    def done(self) -> bool:
        """Return True if the result has been set."""
        return self._done.is_set()

    def set_result(self, result: BlameInfo) -> None:
        """Set the result and wake all waiters.

        Raises:
            BlameCacheError: If the result was already set.
        """
        if self._done.is_set():
            msg = "Blame result is already set"
            raise BlameCacheError(msg)
        self._result = result
        self._done.set()

    def result(self) -> BlameInfo:
        """Return the result without waiting.

        Raises:
            BlameCacheError: If the result is not available yet.
        """
        if self._result is None:
            msg = "Blame result is not available yet"
            raise BlameCacheError(msg)
        return self._result

    async def wait(self) -> BlameInfo:
        """Wait for the result and return it."""
        await self._done.wait()
        return self.result()

    def __await__(self) -> Generator[Any, None, BlameInfo]:  # pyright: ignore[reportExplicitAny]
        return self.wait().__await__()
