# pyright: reportExplicitAny=false, reportAny=false
"""Shared CLI utilities.

This module provides common utilities used by the CLI commands:
- Standardized exit codes
- Console utilities for error handling
- Loading template bindings from data files and ``--set`` assignments
"""

from __future__ import annotations

import tomllib
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

import orjson
import yaml

from tessera.config import parse_string_value, set_nested_key

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

__all__ = [
    "DataFileError",
    "ExitCode",
    "exit_with_error",
    "get_error_console",
    "load_bindings",
    "load_data_file",
    "parse_assignments",
]


class ExitCode(IntEnum):
    """Standard exit codes for Tessera CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    RENDER_ERROR = 5


class DataFileError(ValueError):
    """Raised when a bindings data file or assignment cannot be used."""


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    from rich.console import Console  # noqa: PLC0415

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.RENDER_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", highlight=False)
    raise SystemExit(code)


def load_data_file(path: Path) -> dict[str, Any]:
    """Load template bindings from a JSON, YAML or TOML file.

    The format is chosen by file extension; unknown extensions are read as
    YAML, which also accepts JSON.

    Raises:
        OSError: If the file cannot be read.
        DataFileError: If the file cannot be parsed or is not a mapping.
    """
    suffix = path.suffix.lower()
    content = path.read_bytes()
    try:
        if suffix == ".json":
            data = orjson.loads(content)
        elif suffix == ".toml":
            data = tomllib.loads(content.decode("utf-8"))
        else:
            data = yaml.safe_load(content)
    except (orjson.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        msg = f"Failed to parse data file {path}: {e}"
        raise DataFileError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Data file {path} must contain a mapping at the top level"
        raise DataFileError(msg)
    return data


def parse_assignments(assignments: list[str]) -> dict[str, Any]:
    """Parse ``key=value`` assignments into nested bindings.

    Dotted keys create nested mappings and values get type inference:
    ``user.age=26`` becomes ``{"user": {"age": 26}}``.

    Raises:
        DataFileError: If an assignment has no ``=`` or an empty key.
    """
    result: dict[str, Any] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            msg = f"Invalid assignment {assignment!r}; expected key=value"
            raise DataFileError(msg)
        set_nested_key(result, key, parse_string_value(value))
    return result


def load_bindings(data: Path | None, assignments: list[str] | None) -> dict[str, Any]:
    """Combine a data file with ``--set`` assignments (assignments win)."""
    from tessera.config import deep_merge  # noqa: PLC0415

    bindings = load_data_file(data) if data is not None else {}
    if assignments:
        bindings = deep_merge(bindings, parse_assignments(assignments))
    return bindings
