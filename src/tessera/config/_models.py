"""Configuration models.

This module provides the Pydantic models for each configuration section and
the Config container that aggregates them.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from tessera.engine import RenderOptions
from tessera.loaders import DEFAULT_EXTENSION


class LogLevel(StrEnum):
    """Log level threshold values, from most to least verbose."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ConfigSourceName(StrEnum):
    """Configuration source names in precedence order.

    Values are ordered from highest precedence (CLI) to lowest (DEFAULT).
    """

    CLI = "cli"
    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """A configuration source that contributed values.

    Attributes:
        name: The source type identifier.
        path: Path to the config file, or None for non-file sources.
        values: Configuration values from this source.
    """

    name: ConfigSourceName
    path: Path | None
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]


class LoaderConfig(BaseModel):
    """Template loader configuration section.

    Attributes:
        paths: Template search directories, highest precedence first.
        extension: File extension appended to template names.
        encoding: Encoding of template files.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    paths: list[str] = Field(
        default_factory=lambda: ["templates"],
        description="Template search directories.",
    )
    extension: str = Field(
        default=DEFAULT_EXTENSION, description="Template file extension."
    )
    encoding: str = Field(default="utf-8", description="Template file encoding.")

    def resolved_paths(self, base: Path) -> list[Path]:
        """Return the search paths, relative ones resolved against ``base``."""
        return [p if p.is_absolute() else base / p for p in map(Path, self.paths)]


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class Config(BaseModel):
    """Tessera configuration.

    Use ``load_config()`` to build one from files,
    environment variables and overrides.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    render: RenderOptions = Field(default_factory=RenderOptions)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sources: tuple[ConfigSource, ...] = Field(default=(), exclude=True)
