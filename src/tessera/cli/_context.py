# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

The CLIContext is set once at CLI startup by the meta app and made
available to all commands via contextvars.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from tessera.config import Config

_current_cli_context: contextvars.ContextVar[CLIContext | None] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and consoles.

    Attributes:
        config: Loaded configuration object.
        console: Console for command output.
        error_console: Console for error messages.
        config_path: Explicit config file given with ``--config``.
        logger: Structured logger for CLI commands.
    """

    config: Config = field(repr=False)
    console: Console = field(default_factory=Console, repr=False)
    error_console: Console = field(
        default_factory=lambda: Console(stderr=True), repr=False
    )
    config_path: Path | None = None
    logger: FilteringBoundLogger | None = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> CLIContext:
        """Get the active CLIContext, or a default one if none is set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx

        from tessera.config import Config  # noqa: PLC0415

        return cls(config=Config())

    @classmethod
    def set_current(cls, ctx: CLIContext) -> None:
        """Set the active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Clear the active context. Mainly useful between tests."""
        _ = _current_cli_context.set(None)
