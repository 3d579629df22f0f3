"""Logging utilities for Tessera.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to stderr or to a log file. Each logger
is self-contained and does not modify global structlog configuration.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "TESSERA_DEBUG"
LOG_LEVEL_ENV_VAR = "TESSERA_LOG_LEVEL"


def _get_log_level(default: str = "warning") -> int:
    """Get the log level from environment variables.

    Checks TESSERA_DEBUG first (sets DEBUG if present), then TESSERA_LOG_LEVEL.

    Args:
        default: Level name used when neither variable is set.

    Returns:
        The logging level as an integer.
    """
    if getenv(DEBUG_ENV_VAR, None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    level = getenv(LOG_LEVEL_ENV_VAR, default).upper()
    return log_levels.get(level, logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, TESSERA_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv(DEBUG_ENV_VAR, None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    *,
    log_file: str = "",
    log_level: int | None = None,
    log_format: LogFormatType = "json",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        log_file: Path to a log file opened in append mode. Empty writes to
            stderr.
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = log_level if log_level is not None else _get_log_level()

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))
    else:
        logger_factory = structlog.WriteLoggerFactory(file=sys.stderr)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    # wrap_logger leaves the global structlog configuration untouched
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_engine_logger(
    level: str | None = None,
    *,
    log_format: LogFormatType = "text",
    log_file: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the default logger for a TemplateEngine.

    The log level is determined by (in order of precedence):
    1. TESSERA_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. TESSERA_LOG_LEVEL environment variable
    4. Default: WARNING, so only template diagnostics are reported

    Args:
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to a log file; stderr when empty.

    Returns:
        A FilteringBoundLogger instance bound to the engine component.
    """
    effective_level: int | None = None
    if level is not None:
        effective_level = _log_level_from_string(level, respect_env=True)

    logger = create_logger(
        log_file=log_file, log_level=effective_level, log_format=log_format
    )
    return logger.bind(component="engine")


def create_cli_logger(
    *,
    level: str = "warning",
    log_format: LogFormatType = "json",
    log_file: str = "",
    command: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger for CLI commands.

    The logger automatically binds the command name to all log entries.
    TESSERA_DEBUG overrides the configured level to DEBUG.

    Args:
        level: Log level threshold (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to log file; stderr when empty.
        command: Name of the CLI command for context (bound to all entries).

    Returns:
        A FilteringBoundLogger instance configured for CLI logging.
    """
    effective_level = _log_level_from_string(level, respect_env=True)

    logger = create_logger(
        log_file=log_file,
        log_level=effective_level,
        log_format=log_format,
    )

    if command:
        return logger.bind(command=command)
    return logger
