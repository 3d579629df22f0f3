# pyright: reportAny=false, reportExplicitAny=false
"""Configuration discovery and loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import platformdirs
from pydantic import ValidationError

from tessera.exceptions import ConfigLoadError, ConfigValidationError

from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import Config, ConfigSource, ConfigSourceName

PROJECT_CONFIG_FILENAME = "tessera.toml"
USER_CONFIG_FILENAME = "config.toml"


def get_user_config_path() -> Path:
    r"""Get the platform-specific user config file path.

    - Linux: ``~/.config/tessera/config.toml``
    - macOS: ``~/Library/Application Support/tessera/config.toml``
    - Windows: ``%APPDATA%\tessera\config.toml``

    The path is returned whether or not the file exists.
    """
    return platformdirs.user_config_path("tessera") / USER_CONFIG_FILENAME


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Get the project config file path (``tessera.toml`` in ``cwd``)."""
    return (cwd or Path.cwd()) / PROJECT_CONFIG_FILENAME


def _file_source(name: ConfigSourceName, path: Path) -> ConfigSource | None:
    try:
        values = read_toml_file(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        msg = f"Failed to read config file {path}: {e}"
        raise ConfigLoadError(msg, path=path) from e
    return ConfigSource(name=name, path=path, values=values)


def _validation_error(
    error: ValidationError, sources: list[ConfigSource]
) -> ConfigValidationError:
    first = error.errors()[0]
    key = ".".join(str(part) for part in first["loc"])
    source_names = ", ".join(source.name.value for source in sources) or None
    msg = f"Invalid configuration value for '{key}': {first['msg']}"
    return ConfigValidationError(
        msg,
        key=key,
        value=first.get("input"),
        expected=first["type"],
        source=source_names,
    )


def load_config(
    config_path: Path | None = None,
    *,
    cwd: Path | None = None,
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
    include_user: bool = True,
) -> Config:
    """Load configuration from all sources.

    Precedence, highest first: ``overrides`` (CLI), ``TESSERA_SECTION__KEY``
    environment variables, the project file (``config_path`` or
    ``./tessera.toml``), the user file, then built-in defaults.

    Args:
        config_path: Explicit config file. It must exist.
        cwd: Directory searched for ``tessera.toml``.
        overrides: Highest-precedence values, nested by section.
        environ: Environment mapping; ``os.environ`` when None.
        include_user: Whether to read the user config file.

    Returns:
        The validated Config.

    Raises:
        ConfigLoadError: If a file cannot be read or parsed.
        ConfigValidationError: If the merged values are invalid.
    """
    sources: list[ConfigSource] = []

    if include_user:
        user = _file_source(ConfigSourceName.USER, get_user_config_path())
        if user is not None:
            sources.append(user)

    if config_path is not None:
        project = _file_source(ConfigSourceName.PROJECT, config_path)
        if project is None:
            msg = f"Config file not found: {config_path}"
            raise ConfigLoadError(msg, path=config_path)
        sources.append(project)
    else:
        project = _file_source(ConfigSourceName.PROJECT, get_project_config_path(cwd))
        if project is not None:
            sources.append(project)

    env_values = parse_env_vars(environ=environ)
    if env_values:
        sources.append(ConfigSource(name=ConfigSourceName.ENV, path=None, values=env_values))

    if overrides:
        sources.append(ConfigSource(name=ConfigSourceName.CLI, path=None, values=overrides))

    merged: dict[str, Any] = {}
    for source in sources:
        merged = deep_merge(merged, source.values)

    try:
        return Config.model_validate({**merged, "sources": tuple(reversed(sources))})
    except ValidationError as e:
        raise _validation_error(e, sources) from e
