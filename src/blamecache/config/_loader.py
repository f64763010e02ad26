# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Loading of blamecache settings from TOML files and the environment."""

import contextlib
import json
import os
import re
import tomllib
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import Any

from pydantic import ValidationError

from blamecache.exceptions import ConfigLoadError

from ._models import BlameConfig

ENV_PREFIX = "BLAMECACHE_"

_TOML_LOCATION = re.compile(r"\(at line (\d+), column (\d+)\)")


def _error_location(error: tomllib.TOMLDecodeError) -> tuple[int | None, int | None]:
    """Return the line and column of a TOML error, if known."""
    lineno: int | None = getattr(error, "lineno", None)
    colno: int | None = getattr(error, "colno", None)
    if lineno is None:
        # Older interpreters only report the location in the message
        match = _TOML_LOCATION.search(str(error))
        if match is not None:
            lineno, colno = int(match.group(1)), int(match.group(2))
    return lineno, colno


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Return the tables of a TOML file.

    Raises:
        FileNotFoundError: If there is no file at `path`.
        ConfigLoadError: If the file is not valid TOML. Carries the line and
            column of the problem when known.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        line, column = _error_location(e)
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=line,
            column=column,
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Combine two config tables, with `override` taking precedence.

    Tables present on both sides are combined key by key; every other value
    from `override` wins outright. The inputs are left untouched.

    Args:
        base: Lower precedence values, e.g. from the TOML file.
        override: Higher precedence values, e.g. from the environment.

    Returns:
        A new dictionary holding the combined values.
    """
    merged: dict[str, Any] = dict(base)  # pyright: ignore[reportExplicitAny]
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def parse_env_vars(
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect config values from environment variables.

    A double underscore separates nesting levels, so
    ``BLAMECACHE_LOGGING__LEVEL=debug`` sets ``logging.level``.

    Args:
        prefix: Prefix marking the variables to read.

    Returns:
        Nested dictionary of the values found.
    """
    values: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    for name, raw in os.environ.items():
        dotted = name.removeprefix(prefix)
        if dotted == name or not dotted:
            continue

        *sections, key = dotted.lower().split("__")
        table = values
        for section in sections:
            table = table.setdefault(section, {})
        table[key] = _parse_env_value(raw)
    return values


def _parse_env_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Convert an environment value to the type its text suggests.

    ``true`` and ``false`` become booleans, whole numbers become integers,
    numbers with a decimal point become floats and ``[...]`` is read as a
    JSON list. Anything else stays a string.
    """
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"

    with contextlib.suppress(ValueError):
        return int(value)

    if "." in value:
        with contextlib.suppress(ValueError):
            return float(value)

    if value.startswith("[") and value.endswith("]"):
        with contextlib.suppress(json.JSONDecodeError):
            return json.loads(value)

    return value


def load_config(path: Path | None = None) -> BlameConfig:
    """Load the blame configuration.

    Sources, from lowest to highest precedence: built-in defaults, the TOML
    file at `path` (if given), and ``BLAMECACHE_*`` environment variables.

    Args:
        path: Optional TOML configuration file.

    Returns:
        The validated configuration.

    Raises:
        ConfigLoadError: If the file cannot be read, parsed or validated.
    """
    values: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    if path is not None:
        try:
            values = read_toml_file(path)
        except OSError as e:
            msg = f"Failed to read config file: {e}"
            raise ConfigLoadError(msg, path=path) from e

    values = deep_merge(values, parse_env_vars())

    try:
        return BlameConfig.model_validate(values)
    except ValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigLoadError(msg, path=path) from e
