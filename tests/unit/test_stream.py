"""Tests for blamecache._stream module.

The blame process is a shell script standing in for git, so these tests
exercise real subprocess handling without a repository.
"""

import stat
import sys
from pathlib import Path

import anyio
import pytest
from anyio.streams.memory import MemoryObjectReceiveStream

from blamecache import BlameEvent, BlameStream, CommitFound, LineBlamed, StreamEnded
from blamecache.config import BlameConfig
from blamecache.exceptions import (
    BlameCacheError,
    BlameParseError,
    BlameProcessError,
    BlameTerminatedError,
    BlameTimeoutError,
)

pytestmark = [
    pytest.mark.anyio,
    pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell"),
]

HASH = "3" * 40

BLAME_OUTPUT = f"""\
{HASH} 1 1 2
author Alice Example
author-mail <alice@example.com>
author-time 1700000000
author-tz +0000
committer Alice Example
committer-mail <alice@example.com>
committer-time 1700000000
committer-tz +0000
summary Initial commit
filename notes.txt
"""


def fake_git(tmp_path: Path, body: str) -> BlameConfig:
    """Write an executable script standing in for git and configure it."""
    script = tmp_path / "fake-git"
    _ = script.write_text(f"#!/bin/sh\n{body}\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return BlameConfig(git_executable=str(script), terminate_grace=0.5)


def printing(output: str) -> str:
    return f"cat <<'EOF'\n{output}EOF"


async def collect(receive: MemoryObjectReceiveStream[BlameEvent]) -> list[BlameEvent]:
    events: list[BlameEvent] = []
    with anyio.fail_after(10):
        async with receive:
            async for event in receive:
                events.append(event)
    return events


async def run_blame(config: BlameConfig, file_name: Path) -> list[BlameEvent]:
    async with anyio.create_task_group() as tg:
        stream = BlameStream(tg, config)
        return await collect(stream.start(file_name))


def end_of(events: list[BlameEvent]) -> StreamEnded:
    last = events[-1]
    assert isinstance(last, StreamEnded)
    assert sum(isinstance(event, StreamEnded) for event in events) == 1
    return last


class TestCommand:
    def test_default_command(self) -> None:
        stream = BlameStream(None, BlameConfig())  # pyright: ignore[reportArgumentType]

        assert stream.command(Path("/repo/src/module.py")) == [
            "git",
            "blame",
            "--incremental",
            "--",
            "module.py",
        ]

    def test_flags_precede_file_name(self) -> None:
        config = BlameConfig(
            git_executable="/usr/local/bin/git",
            ignore_whitespace=True,
            extra_args=("-M", "-C"),
        )
        stream = BlameStream(None, config)  # pyright: ignore[reportArgumentType]

        assert stream.command(Path("/repo/-dash.py")) == [
            "/usr/local/bin/git",
            "blame",
            "--incremental",
            "-w",
            "-M",
            "-C",
            "--",
            "-dash.py",
        ]


class TestBlameStream:
    async def test_successful_run(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, printing(BLAME_OUTPUT))

        events = await run_blame(config, tmp_path / "notes.txt")

        assert isinstance(events[0], CommitFound)
        assert events[0].commit.summary == "Initial commit"
        assert events[1:3] == [LineBlamed(line=1, hash=HASH), LineBlamed(line=2, hash=HASH)]
        assert end_of(events).ok

    async def test_runs_in_file_directory(self, tmp_path: Path) -> None:
        subdir = tmp_path / "sub"
        subdir.mkdir()
        check_cwd = f'[ "$(pwd -P)" = "{subdir.resolve()}" ] || exit 3'
        config = fake_git(tmp_path, f"{check_cwd}\n{printing(BLAME_OUTPUT)}")

        events = await run_blame(config, subdir / "notes.txt")

        assert end_of(events).ok

    async def test_non_zero_exit(self, tmp_path: Path) -> None:
        fail = "echo \"fatal: no such path 'notes.txt' in HEAD\" >&2\nexit 128"
        config = fake_git(tmp_path, fail)

        events = await run_blame(config, tmp_path / "notes.txt")

        error = end_of(events).error
        assert isinstance(error, BlameProcessError)
        assert error.exit_code == 128
        assert "no such path" in error.stderr
        assert error.file_name == tmp_path / "notes.txt"
        assert len(events) == 1

    async def test_missing_executable(self, tmp_path: Path) -> None:
        config = BlameConfig(git_executable=str(tmp_path / "no-such-git"))

        events = await run_blame(config, tmp_path / "notes.txt")

        error = end_of(events).error
        assert isinstance(error, BlameProcessError)
        assert isinstance(error.cause, OSError)
        assert error.exit_code is None

    async def test_malformed_output(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, "echo 'not blame output'")

        events = await run_blame(config, tmp_path / "notes.txt")

        error = end_of(events).error
        assert isinstance(error, BlameParseError)
        assert error.file_name == tmp_path / "notes.txt"

    async def test_timeout(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, "exec sleep 30").model_copy(update={"timeout": 0.2})

        events = await run_blame(config, tmp_path / "notes.txt")

        error = end_of(events).error
        assert isinstance(error, BlameTimeoutError)
        assert error.timeout == 0.2


class TestTerminate:
    async def test_terminate_running_process(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, f"{printing(BLAME_OUTPUT)}\nexec sleep 30")

        async with anyio.create_task_group() as tg:
            stream = BlameStream(tg, config)
            receive = stream.start(tmp_path / "notes.txt")
            with anyio.fail_after(10):
                first = await receive.receive()
            stream.terminate()
            rest = await collect(receive)

        assert isinstance(first, CommitFound)
        assert isinstance(end_of(rest).error, BlameTerminatedError)

    async def test_terminate_before_process_starts(self, tmp_path: Path) -> None:
        marker = tmp_path / "spawned"
        config = fake_git(tmp_path, f"touch '{marker}'\n{printing(BLAME_OUTPUT)}")

        async with anyio.create_task_group() as tg:
            stream = BlameStream(tg, config)
            receive = stream.start(tmp_path / "notes.txt")
            stream.terminate()
            events = await collect(receive)

        assert len(events) == 1
        assert isinstance(end_of(events).error, BlameTerminatedError)
        assert not marker.exists()

    async def test_terminate_before_start(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, printing(BLAME_OUTPUT))

        async with anyio.create_task_group() as tg:
            stream = BlameStream(tg, config)
            stream.terminate()
            events = await collect(stream.start(tmp_path / "notes.txt"))

        assert len(events) == 1
        assert isinstance(end_of(events).error, BlameTerminatedError)

    async def test_terminate_after_end_is_ignored(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, printing(BLAME_OUTPUT))

        async with anyio.create_task_group() as tg:
            stream = BlameStream(tg, config)
            events = await collect(stream.start(tmp_path / "notes.txt"))
            stream.terminate()
            stream.terminate()

        assert end_of(events).ok

    async def test_start_twice_raises(self, tmp_path: Path) -> None:
        config = fake_git(tmp_path, printing(BLAME_OUTPUT))

        async with anyio.create_task_group() as tg:
            stream = BlameStream(tg, config)
            receive = stream.start(tmp_path / "notes.txt")

            with pytest.raises(BlameCacheError, match="already started"):
                _ = stream.start(tmp_path / "notes.txt")

            _ = await collect(receive)
