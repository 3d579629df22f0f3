# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading, environment parsing and merging."""

from __future__ import annotations

import os
import tomllib
from typing import TYPE_CHECKING, Any

import orjson

from tessera.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path

ENV_PREFIX = "TESSERA_"
ENV_SECTION_SEPARATOR = "__"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file {path}: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def copy_value(value: Any) -> Any:  # pyright: ignore[reportExplicitAny]
    """Return a copy of a configuration value that shares no dicts or lists."""
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries into a new one.

    Merge rules:
        - Dictionaries are recursively merged
        - Lists and scalars from ``override`` replace those in ``base``
        - Keys missing from ``override`` keep their ``base`` values
    """
    result = copy_value(base)
    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = copy_value(override_val)
    return result


def parse_string_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse a string with type inference.

    Used for environment variables, ``--set`` bindings and config overrides.

    Order of inference: boolean (true/false), integer, float (with a decimal
    point), JSON array or object, then plain string.

    Examples:
        >>> parse_string_value("true")
        True
        >>> parse_string_value("42")
        42
        >>> parse_string_value("[1, 2]")
        [1, 2]
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    if "." not in value:
        try:
            return int(value)
        except ValueError:
            pass
    else:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError:
            pass

    return value


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Set a value at a dotted key path, creating intermediate dictionaries.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "render.max_depth", 8)
        >>> d
        {'render': {'max_depth': 8}}
    """
    *parents, last = key_path.split(".")
    current = d
    for part in parents:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[last] = value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse ``PREFIX_SECTION__KEY`` environment variables into a config dict.

    Only variables naming a section (containing ``__``) are considered, so
    flags such as ``TESSERA_DEBUG`` are left alone.

    Example:
        ``TESSERA_RENDER__ERROR_POLICY=fail`` -> ``{"render": {"error_policy": "fail"}}``
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    source = os.environ if environ is None else environ

    for key, value in source.items():
        if not key.startswith(prefix):
            continue
        config_key = key[len(prefix) :]
        if ENV_SECTION_SEPARATOR not in config_key:
            continue
        config_path = config_key.replace(ENV_SECTION_SEPARATOR, ".").lower()
        set_nested_key(result, config_path, parse_string_value(value))

    return result
