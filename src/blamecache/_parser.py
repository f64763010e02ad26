"""Parser for the output of ``git blame --incremental``.

The incremental format reports blame in groups. Each group starts with a
line of the form::

    <hash> <original line> <final line> <number of lines>

followed by header lines. The full commit headers (author, committer,
summary, ...) appear only the first time a commit is reported. Every group
ends with a ``filename`` header. Groups arrive in the order git resolves
them, not in line order.
"""

import re
from dataclasses import dataclass, field
from typing import final

import pendulum

from blamecache.exceptions import BlameParseError

from ._models import BlameEvent, CommitFound, CommitInfo, LineBlamed, Signature

_GROUP_START = re.compile(r"^([0-9a-f]{40}|[0-9a-f]{64}) (\d+) (\d+) (\d+)$")
_TZ_OFFSET = re.compile(r"^([+-])(\d{2})(\d{2})$")


@dataclass(slots=True)
class _Group:
    hash: str
    final_line: int
    num_lines: int
    headers: dict[str, str] = field(default_factory=dict)
    boundary: bool = False


def parse_tz_offset(value: str) -> int:
    """Convert a git timezone offset such as ``+0130`` to seconds.

    Args:
        value: The offset as printed by git.

    Returns:
        The offset east of UTC in seconds.

    Raises:
        ValueError: If the value is not a valid offset.
    """
    match = _TZ_OFFSET.match(value)
    if match is None:
        msg = f"Invalid timezone offset: {value!r}"
        raise ValueError(msg)
    sign, hours, minutes = match.groups()
    seconds = int(hours) * 3600 + int(minutes) * 60
    return -seconds if sign == "-" else seconds


def _signature(headers: dict[str, str], role: str) -> Signature:
    timestamp = int(headers[f"{role}-time"])
    offset = parse_tz_offset(headers.get(f"{role}-tz", "+0000"))
    return Signature(
        name=headers[role],
        mail=headers.get(f"{role}-mail", ""),
        time=pendulum.from_timestamp(timestamp, tz=pendulum.fixed_timezone(offset)),
    )


@final
class IncrementalBlameParser:
    """Incremental parser turning blame output into stream events.

    Text may be fed in chunks of any size; partial lines are buffered until
    their newline arrives.
    """

    __slots__ = ("_buffer", "_group", "_line_number", "_seen")

    def __init__(self) -> None:
        self._buffer = ""
        self._group: _Group | None = None
        self._line_number = 0
        self._seen: set[str] = set()

    def feed(self, chunk: str) -> list[BlameEvent]:
        """Parse a chunk of output.

        Args:
            chunk: Text as read from the process.

        Returns:
            Events completed by this chunk, in output order.

        Raises:
            BlameParseError: If a complete line is malformed.
        """
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        events: list[BlameEvent] = []
        for line in lines:
            self._line_number += 1
            events.extend(self._parse_line(line.rstrip("\r")))
        return events

    def close(self) -> list[BlameEvent]:
        """Finish parsing after the output ended.

        Returns:
            Events completed by a final unterminated line.

        Raises:
            BlameParseError: If the output ended in the middle of a group.
        """
        events: list[BlameEvent] = []
        if self._buffer:
            rest, self._buffer = self._buffer, ""
            self._line_number += 1
            events.extend(self._parse_line(rest.rstrip("\r")))
        if self._group is not None:
            msg = f"Blame output ended inside the group for {self._group.hash}"
            raise BlameParseError(msg, line_number=self._line_number)
        return events

    def _parse_line(self, line: str) -> list[BlameEvent]:
        if self._group is None:
            if not line:
                return []
            self._group = self._start_group(line)
            return []

        key, _, value = line.partition(" ")
        if key == "filename":
            group, self._group = self._group, None
            group.headers["filename"] = value
            return self._finish_group(group)
        if key == "boundary":
            self._group.boundary = True
        elif not key:
            msg = "Empty header line inside a blame group"
            raise BlameParseError(msg, line_number=self._line_number)
        else:
            self._group.headers[key] = value
        return []

    def _start_group(self, line: str) -> _Group:
        match = _GROUP_START.match(line)
        if match is None:
            msg = f"Expected a blame group header, got {line!r}"
            raise BlameParseError(msg, line_number=self._line_number)
        commit_hash, _orig, final_line, num_lines = match.groups()
        if int(final_line) < 1:
            msg = f"Invalid line number {final_line} for {commit_hash}"
            raise BlameParseError(msg, line_number=self._line_number)
        return _Group(
            hash=commit_hash,
            final_line=int(final_line),
            num_lines=int(num_lines),
        )

    def _finish_group(self, group: _Group) -> list[BlameEvent]:
        events: list[BlameEvent] = []
        if group.hash not in self._seen:
            events.append(CommitFound(hash=group.hash, commit=self._commit(group)))
            self._seen.add(group.hash)
        events.extend(
            LineBlamed(line=line, hash=group.hash)
            for line in range(group.final_line, group.final_line + group.num_lines)
        )
        return events

    def _commit(self, group: _Group) -> CommitInfo:
        headers = group.headers
        previous = headers.get("previous")
        try:
            return CommitInfo(
                hash=group.hash,
                author=_signature(headers, "author"),
                committer=_signature(headers, "committer"),
                summary=headers.get("summary", ""),
                filename=headers["filename"],
                previous=previous.split(" ", 1)[0] if previous else None,
                boundary=group.boundary,
            )
        except (KeyError, ValueError) as e:
            msg = f"Incomplete headers for commit {group.hash}: {e}"
            raise BlameParseError(msg, line_number=self._line_number) from e
