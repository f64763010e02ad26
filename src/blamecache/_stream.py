"""Blame process runner delivering events over a memory channel.

This module provides the BlameStream class that runs
``git blame --incremental`` for one file and streams the parsed events to a
single consumer.
"""

import contextlib
import math
import subprocess
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import final

import anyio
import anyio.abc
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from anyio.streams.text import TextReceiveStream

from blamecache.config import BlameConfig
from blamecache.exceptions import (
    BlameCacheError,
    BlameParseError,
    BlameProcessError,
    BlameTerminatedError,
    BlameTimeoutError,
)

from ._models import BlameEvent, StreamEnded
from ._parser import IncrementalBlameParser


async def _collect_text(stream: TextReceiveStream, chunks: list[str]) -> None:
    """Read a text stream to its end into a list of chunks."""
    with contextlib.suppress(anyio.ClosedResourceError):
        async for chunk in stream:
            chunks.append(chunk)


@final
class BlameStream:
    """Runs one blame process and streams its events.

    The process runs in a task of the given task group. Events are sent over
    an unbounded memory channel, so the producer never waits on the consumer.
    The channel always ends with a StreamEnded event unless the task group
    itself is cancelled, in which case the channel is closed without it.
    """

    __slots__ = (
        "_cancel_scope",
        "_config",
        "_ended",
        "_started",
        "_task_group",
        "_terminate_requested",
    )

    def __init__(
        self,
        task_group: anyio.abc.TaskGroup,
        config: BlameConfig | None = None,
    ) -> None:
        """Initialize the stream.

        Args:
            task_group: Task group the process runs in.
            config: Blame settings. Uses defaults if None.
        """
        self._task_group = task_group
        self._config = config or BlameConfig()
        self._cancel_scope: anyio.CancelScope | None = None
        self._started = False
        self._ended = False
        self._terminate_requested = False

    def command(self, file_name: Path) -> list[str]:
        """Return the command line used to blame a file."""
        args = [self._config.git_executable, "blame", "--incremental"]
        if self._config.ignore_whitespace:
            args.append("-w")
        args.extend(self._config.extra_args)
        args.extend(["--", file_name.name])
        return args

    def start(self, file_name: Path) -> MemoryObjectReceiveStream[BlameEvent]:
        """Start blaming a file.

        Args:
            file_name: Path of the file to blame.

        Returns:
            The receiving end of the event channel.

        Raises:
            BlameCacheError: If the stream was already started.
        """
        if self._started:
            msg = f"Blame stream for '{file_name}' was already started"
            raise BlameCacheError(msg)
        self._started = True

        send, receive = anyio.create_memory_object_stream[BlameEvent](math.inf)
        self._task_group.start_soon(self._run, file_name, send, name=f"blame {file_name}")
        return receive

    def terminate(self) -> None:
        """Cancel the blame process.

        The process is killed and the stream ends with a
        BlameTerminatedError. Has no effect once the stream has ended.
        """
        if self._ended:
            return
        self._terminate_requested = True
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    async def _run(
        self,
        file_name: Path,
        send: MemoryObjectSendStream[BlameEvent],
    ) -> None:
        """Run the process and send all events, ending with StreamEnded."""
        with send:
            error: BlameProcessError | None = None
            scope = self._cancel_scope = anyio.CancelScope()
            if not self._terminate_requested:
                with scope:
                    try:
                        with anyio.fail_after(self._config.timeout):
                            error = await self._blame(file_name, send)
                    except TimeoutError:
                        timeout = self._config.timeout or 0.0
                        msg = f"Blame for '{file_name}' timed out after {timeout}s"
                        error = BlameTimeoutError(msg, timeout=timeout, file_name=file_name)

            # Terminated before the process was spawned, or while it ran
            if self._terminate_requested and (scope.cancelled_caught or error is None):
                msg = f"Blame for '{file_name}' was terminated"
                error = BlameTerminatedError(msg, file_name=file_name)

            self._ended = True
            with contextlib.suppress(anyio.BrokenResourceError):
                send.send_nowait(StreamEnded(error=error))

    async def _blame(
        self,
        file_name: Path,
        send: MemoryObjectSendStream[BlameEvent],
    ) -> BlameProcessError | None:
        """Run git blame and forward parsed events.

        Returns:
            The error that ended the run, or None on success.
        """
        try:
            process = await anyio.open_process(
                self.command(file_name),
                cwd=file_name.parent,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            msg = f"Failed to start blame for '{file_name}': {e}"
            return BlameProcessError(msg, file_name=file_name, cause=e)

        parser = IncrementalBlameParser()
        parse_error: BlameParseError | None = None
        abandoned = False
        exit_code: int | None = None
        stderr_chunks: list[str] = []

        try:
            async with anyio.create_task_group() as tg:
                if process.stderr is not None:
                    stderr_stream = TextReceiveStream(process.stderr, errors="replace")
                    tg.start_soon(_collect_text, stderr_stream, stderr_chunks)

                if process.stdout is not None:
                    try:
                        async for chunk in TextReceiveStream(process.stdout, errors="replace"):
                            for event in parser.feed(chunk):
                                send.send_nowait(event)
                        for event in parser.close():
                            send.send_nowait(event)
                    except BlameParseError as e:
                        parse_error = e
                        tg.cancel_scope.cancel()
                    except anyio.BrokenResourceError:
                        # Nobody is listening anymore
                        abandoned = True
                        tg.cancel_scope.cancel()

            if parse_error is None and not abandoned:
                exit_code = await process.wait()
        finally:
            with anyio.CancelScope(shield=True):
                await self._reap(process)

        if abandoned:
            return None

        if parse_error is not None:
            parse_error.file_name = file_name
            return parse_error

        if exit_code != 0:
            stderr = "".join(stderr_chunks).strip()
            msg = f"git blame for '{file_name}' exited with code {exit_code}: {stderr}"
            return BlameProcessError(
                msg,
                file_name=file_name,
                exit_code=exit_code,
                stderr=stderr,
            )
        return None

    async def _reap(self, process: anyio.abc.Process) -> None:
        """Stop the process if it is still running and release its streams.

        Sends SIGTERM first and SIGKILL if the process does not exit within
        the configured grace period.
        """
        try:
            if process.returncode is None:
                process.terminate()
                with anyio.move_on_after(self._config.terminate_grace):
                    _ = await process.wait()
                if process.returncode is None:
                    process.kill()
                    _ = await process.wait()
        except ProcessLookupError:
            # Process already exited
            pass
        finally:
            await process.aclose()
