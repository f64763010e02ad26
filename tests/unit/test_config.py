# pyright: reportAny=false, reportUnknownArgumentType=false
"""Tests for blamecache.config."""

import os
from pathlib import Path

import pytest
from pyfakefs.fake_filesystem import FakeFilesystem  # noqa: TC002

from blamecache.config import (
    BlameConfig,
    LogFormat,
    LogLevel,
    deep_merge,
    load_config,
    parse_env_vars,
    read_toml_file,
)
from blamecache.config._loader import _parse_env_value  # pyright: ignore[reportPrivateUsage]
from blamecache.exceptions import ConfigLoadError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("BLAMECACHE_"):
            monkeypatch.delenv(key)


class TestBlameConfig:
    def test_defaults(self) -> None:
        config = BlameConfig()

        assert config.git_executable == "git"
        assert config.timeout == 30.0
        assert config.terminate_grace == 2.0
        assert config.ignore_whitespace is False
        assert config.extra_args == ()
        assert config.debounce_ms == 200
        assert config.logging.level is LogLevel.INFO
        assert config.logging.format is LogFormat.JSON
        assert config.logging.file == ""

    def test_timeout_can_be_disabled(self) -> None:
        assert BlameConfig(timeout=None).timeout is None

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError, match="greater than 0"):
            _ = BlameConfig(timeout=0)

    def test_is_frozen(self) -> None:
        config = BlameConfig()

        with pytest.raises(ValueError, match="frozen"):
            config.git_executable = "other"  # pyright: ignore[reportAttributeAccessIssue]

    def test_ignores_unknown_keys(self) -> None:
        config = BlameConfig.model_validate({"colour": "blue", "debounce_ms": 10})

        assert config.debounce_ms == 10


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        path = Path("/config/blamecache.toml")
        _ = fs.create_file(path, contents='git_executable = "/usr/bin/git"\n')

        assert read_toml_file(path) == {"git_executable": "/usr/bin/git"}

    def test_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(Path("/config/missing.toml"))

    def test_reports_error_location(self, fs: FakeFilesystem) -> None:
        path = Path("/config/broken.toml")
        _ = fs.create_file(path, contents='timeout = 5\n\n[logging\nlevel = "debug"\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 3
        assert error.column is not None


class TestDeepMerge:
    def test_merges_nested_sections(self) -> None:
        base = {"timeout": 5, "logging": {"level": "info", "format": "json"}}
        override = {"logging": {"level": "debug"}}

        result = deep_merge(base, override)

        assert result == {"timeout": 5, "logging": {"level": "debug", "format": "json"}}
        assert base["logging"] == {"level": "info", "format": "json"}

    def test_non_dict_replaces(self) -> None:
        assert deep_merge({"extra_args": ["-M"]}, {"extra_args": ["-C"]}) == {
            "extra_args": ["-C"]
        }


class TestParseEnvVars:
    def test_nested_keys(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLAMECACHE_LOGGING__LEVEL", "debug")
        monkeypatch.setenv("BLAMECACHE_TIMEOUT", "2.5")
        monkeypatch.setenv("OTHER_TIMEOUT", "9")

        assert parse_env_vars() == {"logging": {"level": "debug"}, "timeout": 2.5}

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("0.5", 0.5),
            ('["-M", "-C"]', ["-M", "-C"]),
            ("[not json", "[not json"),
            ("git", "git"),
            ("1.2.3", "1.2.3"),
        ],
    )
    def test_value_inference(self, value: str, expected: object) -> None:
        assert _parse_env_value(value) == expected


class TestLoadConfig:
    def test_defaults_without_file(self) -> None:
        assert load_config() == BlameConfig()

    def test_file_values(self, fs: FakeFilesystem) -> None:
        path = Path("/config/blamecache.toml")
        _ = fs.create_file(
            path,
            contents=(
                "ignore_whitespace = true\n"
                'extra_args = ["-M"]\n'
                "\n"
                "[logging]\n"
                'format = "text"\n'
            ),
        )

        config = load_config(path)

        assert config.ignore_whitespace is True
        assert config.extra_args == ("-M",)
        assert config.logging.format is LogFormat.TEXT

    def test_environment_overrides_file(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = Path("/config/blamecache.toml")
        _ = fs.create_file(path, contents="timeout = 10\n[logging]\nlevel = \"warning\"\n")
        monkeypatch.setenv("BLAMECACHE_TIMEOUT", "60")

        config = load_config(path)

        assert config.timeout == 60
        assert config.logging.level is LogLevel.WARNING

    def test_missing_file(self, fs: FakeFilesystem) -> None:
        path = Path("/config/missing.toml")

        with pytest.raises(ConfigLoadError, match="Failed to read") as exc_info:
            _ = load_config(path)

        assert exc_info.value.path == path
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_invalid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLAMECACHE_DEBOUNCE_MS", "-5")

        with pytest.raises(ConfigLoadError, match="Invalid configuration"):
            _ = load_config()
