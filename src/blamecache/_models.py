"""Data models for blame results and blame stream events.

This module defines the core data types:
- Signature: Author or committer identity with timestamp
- CommitInfo: Metadata for one commit reported by the blame tool
- BlameInfo: Immutable line-to-commit attribution for one file
- CommitFound, LineBlamed, StreamEnded: Events of a blame stream
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pendulum import DateTime  # noqa: TC002 - Used in runtime type annotations

from blamecache.exceptions import BlameProcessError  # noqa: TC001

UNCOMMITTED_HASH = "0" * 40


@dataclass(frozen=True, slots=True)
class Signature:
    """Identity and time of a commit author or committer.

    Attributes:
        name: Display name.
        mail: Email address including angle brackets, as git reports it.
        time: Time of the signature in its original UTC offset.
    """

    name: str
    mail: str
    time: DateTime


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """Metadata for a commit that owns at least one blamed line.

    Attributes:
        hash: Full commit hash.
        author: Author signature.
        committer: Committer signature.
        summary: First line of the commit message.
        filename: Path of the file in that commit (differs after renames).
        previous: Hash of the previous commit touching the file, if reported.
        boundary: Whether the commit is a boundary commit.
    """

    hash: str
    author: Signature
    committer: Signature
    summary: str
    filename: str
    previous: str | None = None
    boundary: bool = False

    @property
    def is_uncommitted(self) -> bool:
        """Return True for the placeholder commit of uncommitted lines."""
        return self.hash == UNCOMMITTED_HASH


def _empty_lines() -> Mapping[int, str]:
    return MappingProxyType({})


def _empty_commits() -> Mapping[str, CommitInfo]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class BlameInfo:
    """Line attribution for one file.

    The instance with both mappings empty is the blank result, meaning no
    attribution is available.

    Attributes:
        lines: Line number (1-based) to commit hash, in ascending line order.
        commits: Commit hash to commit metadata.
    """

    lines: Mapping[int, str] = field(default_factory=_empty_lines)
    commits: Mapping[str, CommitInfo] = field(default_factory=_empty_commits)

    @property
    def is_blank(self) -> bool:
        """Return True if this is the blank result."""
        return not self.lines and not self.commits

    def commit_for_line(self, line: int) -> CommitInfo | None:
        """Return the commit owning a line, if both are known.

        Args:
            line: 1-based line number.

        Returns:
            The commit metadata, or None if the line or commit is unknown.
        """
        commit_hash = self.lines.get(line)
        if commit_hash is None:
            return None
        return self.commits.get(commit_hash)


def blank_blame_info() -> BlameInfo:
    """Return the blank result."""
    return BlameInfo()


# =============================================================================
# Stream Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class CommitFound:
    """A commit was described by the blame tool."""

    hash: str
    commit: CommitInfo


@dataclass(frozen=True, slots=True)
class LineBlamed:
    """A line was attributed to a commit."""

    line: int
    hash: str


@dataclass(frozen=True, slots=True)
class StreamEnded:
    """The blame stream finished; always the last event of a stream.

    Attributes:
        error: The failure that ended the stream, or None on success.
    """

    error: BlameProcessError | None = None

    @property
    def ok(self) -> bool:
        """Return True if the stream ended without error."""
        return self.error is None


type BlameEvent = CommitFound | LineBlamed | StreamEnded
