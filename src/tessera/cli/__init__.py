"""Tessera command-line interface."""

from ._app import create_app, main
from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

__all__ = ["CLIContext", "ExitCode", "create_app", "exit_with_error", "main"]
