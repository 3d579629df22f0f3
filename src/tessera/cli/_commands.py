# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: TC003, FBT001, FBT002  # Path needed at runtime for cyclopts parameter parsing
"""Tessera CLI commands."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

from cyclopts import Parameter
from pydantic import ValidationError
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from tessera.engine import (
    RenderOptions,
    TemplateEngine,
    builtin_functions,
    children,
    describe,
)
from tessera.enums import ErrorPolicy
from tessera.exceptions import (
    ResourceLimitExceededError,
    TemplateNotFoundError,
    TesseraError,
)
from tessera.loaders import FileSystemLoader
from tessera.utils import create_engine_logger

from ._context import CLIContext
from ._shared import DataFileError, ExitCode, exit_with_error, load_bindings

if TYPE_CHECKING:
    from cyclopts import App

    from tessera.engine import Node


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------


def _render_options(ctx: CLIContext, overrides: dict[str, Any]) -> RenderOptions:
    try:
        return ctx.config.render.merged(**overrides)
    except ValidationError as e:
        exit_with_error(
            f"Invalid render options: {e}",
            ExitCode.VALIDATION_ERROR,
            console=ctx.error_console,
        )


def _build_engine(
    ctx: CLIContext,
    search_paths: list[Path] | None,
    options: RenderOptions,
) -> TemplateEngine:
    loader_config = ctx.config.loader
    paths = search_paths or loader_config.resolved_paths(Path.cwd())
    loader = FileSystemLoader(
        paths, extension=loader_config.extension, encoding=loader_config.encoding
    )
    logging_config = ctx.config.logging
    logger = create_engine_logger(
        logging_config.level.value,
        log_format=logging_config.format.value,  # pyright: ignore[reportArgumentType]
        log_file=logging_config.file,
    )
    return TemplateEngine(loader, options=options, logger=logger)


def _load_source(ctx: CLIContext, engine: TemplateEngine, name: str) -> str:
    if engine.loader is None:
        exit_with_error(
            f"Template '{name}' not found", ExitCode.NOT_FOUND, console=ctx.error_console
        )
    try:
        return engine.loader.load(name)
    except TemplateNotFoundError as e:
        exit_with_error(str(e), ExitCode.NOT_FOUND, console=ctx.error_console)
    except (OSError, UnicodeDecodeError) as e:
        exit_with_error(
            f"Failed to read template '{name}': {e}",
            ExitCode.IO_ERROR,
            console=ctx.error_console,
        )


def _add_branch(tree: Tree, nodes: "tuple[Node, ...]") -> None:
    for node in nodes:
        branch = tree.add(Text(describe(node)))
        for label, body in children(node):
            _add_branch(branch.add(Text(label)), body)


def _summary(function: object) -> str:
    doc = type(function).__doc__ or ""
    return doc.strip().splitlines()[0] if doc.strip() else ""


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


def render_command(
    name: str,
    /,
    *,
    data: Annotated[
        Path | None,
        Parameter(name=["--data", "-d"], help="JSON, YAML or TOML file of bindings"),
    ] = None,
    assignments: Annotated[
        list[str] | None,
        Parameter(name=["--set", "-s"], help="Binding as key=value (repeatable)"),
    ] = None,
    search_paths: Annotated[
        list[Path] | None,
        Parameter(name=["--search-path", "-p"], help="Template directory (repeatable)"),
    ] = None,
    policy: Annotated[
        ErrorPolicy | None,
        Parameter(name="--policy", help="How diagnostics are surfaced"),
    ] = None,
    raw: Annotated[
        bool, Parameter(name="--raw", help="Disable HTML escaping of values")
    ] = False,
    debug: Annotated[
        bool, Parameter(name="--debug", help="Report non-iterable loop targets")
    ] = False,
    output: Annotated[
        Path | None,
        Parameter(name=["--output", "-o"], help="Write output to a file"),
    ] = None,
    string: Annotated[
        bool, Parameter(name="--string", help="Treat NAME as template text")
    ] = False,
) -> None:
    """Render a template

    Loads NAME through the configured search paths (or renders NAME itself
    with --string) against bindings from --data and --set, and prints the
    result.
    """
    ctx = CLIContext.get_current()

    overrides: dict[str, Any] = {}
    if policy is not None:
        overrides["error_policy"] = policy
    if raw:
        overrides["autoescape"] = False
    if debug:
        overrides["debug"] = True
    options = _render_options(ctx, overrides)
    engine = _build_engine(ctx, search_paths, options)

    try:
        bindings = load_bindings(data, assignments)
    except DataFileError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=ctx.error_console)
    except OSError as e:
        exit_with_error(
            f"Failed to read data file: {e}", ExitCode.IO_ERROR, console=ctx.error_console
        )

    if ctx.logger is not None:
        ctx.logger.info("render_command", template=name, string=string)

    try:
        if string:
            result = engine.render_string(name, bindings)
        else:
            result = engine.render(name, bindings)
    except TemplateNotFoundError as e:
        exit_with_error(str(e), ExitCode.NOT_FOUND, console=ctx.error_console)
    except (OSError, UnicodeDecodeError) as e:
        exit_with_error(
            f"Failed to read template '{name}': {e}",
            ExitCode.IO_ERROR,
            console=ctx.error_console,
        )
    except ResourceLimitExceededError as e:
        exit_with_error(
            f"Resource limit '{e.limit}' exceeded: {e}",
            ExitCode.RENDER_ERROR,
            console=ctx.error_console,
        )
    except TesseraError as e:
        exit_with_error(str(e), ExitCode.RENDER_ERROR, console=ctx.error_console)

    if output is not None:
        try:
            output.write_text(result, encoding="utf-8")
        except OSError as e:
            exit_with_error(
                f"Failed to write {output}: {e}",
                ExitCode.IO_ERROR,
                console=ctx.error_console,
            )
        return

    ctx.console.out(result, end="" if result.endswith("\n") else "\n")


def tree_command(
    name: str,
    /,
    *,
    search_paths: Annotated[
        list[Path] | None,
        Parameter(name=["--search-path", "-p"], help="Template directory (repeatable)"),
    ] = None,
    string: Annotated[
        bool, Parameter(name="--string", help="Treat NAME as template text")
    ] = False,
) -> None:
    """Show the parsed block tree of a template"""
    ctx = CLIContext.get_current()
    engine = _build_engine(ctx, search_paths, ctx.config.render)

    source = name if string else _load_source(ctx, engine, name)
    template = engine.parse(source, name=None if string else name)

    tree = Tree(Text(f"Template {template.name or '<string>'}"))
    _add_branch(tree, template.nodes)
    ctx.console.print(tree)


def functions_command() -> None:
    """List the functions templates may call"""
    ctx = CLIContext.get_current()

    table = Table(title="Template functions", highlight=False)
    table.add_column("Name", no_wrap=True)
    table.add_column("Description")
    for function_name, function in sorted(builtin_functions().items()):
        table.add_row(function_name, _summary(function))
    ctx.console.print(table)


def register_commands(app: "App") -> None:
    """Register all Tessera commands on an app."""
    app.command(render_command, name="render")
    app.command(tree_command, name="tree")
    app.command(functions_command, name="functions")
