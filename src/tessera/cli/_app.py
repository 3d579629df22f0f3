"""The command-line interface for Tessera."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from tessera.config import load_config
from tessera.exceptions import ConfigLoadError, ConfigValidationError
from tessera.utils import create_cli_logger

from ._commands import register_commands
from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

APP_HELP = "Render Tessera templates from the command line."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the CLI application.

    Args:
        console: Console for command output.
        error_console: Console for errors and cyclopts messages.
        exit_on_error: Whether cyclopts exits on parse errors.

    Returns:
        The configured cyclopts App.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="tessera",
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        verbose: Annotated[
            bool, Parameter(name=["--verbose", "-v"], help="Enable debug logging")
        ] = False,
    ) -> None:
        """Launch the Tessera CLI with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to a config file.
            verbose: Log at debug level.
        """
        overrides = {"logging": {"level": "debug"}} if verbose else None
        try:
            loaded_config = load_config(config, overrides=overrides)
        except ConfigLoadError as e:
            exit_with_error(str(e), ExitCode.LOAD_ERROR, console=error_console)
        except ConfigValidationError as e:
            exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=error_console)

        cli_logger = create_cli_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # pyright: ignore[reportArgumentType]
            log_file=loaded_config.logging.file,
        )

        ctx = CLIContext(
            config=loaded_config,
            console=console,
            error_console=error_console,
            config_path=config,
            logger=cli_logger,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `tessera` CLI."""
    app = create_app()
    app.meta()
