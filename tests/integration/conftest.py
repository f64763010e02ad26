import shutil
from collections.abc import Callable
from pathlib import Path

import pytest
from dulwich.porcelain import add, commit
from dulwich.repo import Repo


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)
            if shutil.which("git") is None:
                item.add_marker(pytest.mark.skip(reason="git executable not found"))


type CommitFile = Callable[[str, str, str], str]


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    """Create an empty git repository and return its working tree."""
    path = (tmp_path / "repo").resolve()
    path.mkdir()
    _ = Repo.init(str(path))
    return path


@pytest.fixture
def commit_file(repo_path: Path) -> CommitFile:
    """Return a function that writes a file, commits it and returns the hash.

    Args of the returned function: relative file name, content, message.
    """

    def _commit(name: str, content: str, message: str) -> str:
        file_path = repo_path / name
        _ = file_path.write_text(content)
        add(str(repo_path), paths=[str(file_path)])
        sha = commit(
            str(repo_path),
            message=message.encode(),
            author=b"Alice Example <alice@example.com>",
            committer=b"Alice Example <alice@example.com>",
            sign=False,
        )
        return sha.decode() if isinstance(sha, bytes) else str(sha)

    return _commit
