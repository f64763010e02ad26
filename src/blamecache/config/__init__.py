"""Configuration for blamecache.

Settings come from built-in defaults, an optional TOML file and
``BLAMECACHE_*`` environment variables, validated by Pydantic models.
"""

from ._loader import ENV_PREFIX, deep_merge, load_config, parse_env_vars, read_toml_file
from ._models import BlameConfig, LogFormat, LoggingConfig, LogLevel

__all__ = [
    "ENV_PREFIX",
    "BlameConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]
