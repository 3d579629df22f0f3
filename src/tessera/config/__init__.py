"""Tessera configuration."""

from ._load import get_project_config_path, get_user_config_path, load_config
from ._loader import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    Config,
    ConfigSource,
    ConfigSourceName,
    LoaderConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "LogFormat",
    "LogLevel",
    "LoaderConfig",
    "LoggingConfig",
    "deep_merge",
    "get_project_config_path",
    "get_user_config_path",
    "load_config",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "set_nested_key",
]
