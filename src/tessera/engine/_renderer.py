"""Render driver: walks the block tree and produces output text.

A Renderer is created for a single render call. It owns the per-call
counters (steps, depth, produced bytes, include stack) and the diagnostic
reporter, so engines can be shared between threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from markupsafe import escape

from tessera.enums import DiagnosticKind
from tessera.exceptions import (
    DisallowedFunctionError,
    FunctionInvocationError,
    IncludeCycleError,
    IncludeDepthError,
    ResourceLimitExceededError,
    TemplateLoadError,
    TemplateNotFoundError,
)

from ._conditionals import render_if, render_switch, render_ternary
from ._diagnostics import Diagnostic, DiagnosticReporter
from ._functions import call_function
from ._loops import render_for
from ._nodes import (
    CommentNode,
    DiagnosticNode,
    ForNode,
    FunctionCallNode,
    IfNode,
    IncludeNode,
    SwitchNode,
    TernaryNode,
    TextNode,
    VariableNode,
    describe,
)
from ._parser import parse
from ._paths import resolve
from ._values import to_display

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from tessera.loaders import TemplateLoader

    from ._functions import FunctionRegistry
    from ._nodes import Node, Template
    from ._options import RenderOptions
    from ._scope import Scope


@dataclass(slots=True)
class RenderState:
    """Counters for one render call.

    Attributes:
        steps: Nodes evaluated so far.
        depth: Current body nesting.
        output_bytes: UTF-8 size of the text produced so far.
        include_depth: Current include nesting.
        include_stack: Names of the templates currently being rendered.
    """

    steps: int = 0
    depth: int = 0
    output_bytes: int = 0
    include_depth: int = 0
    include_stack: list[str] = field(default_factory=list)


class Renderer:
    """Renders one template against one scope."""

    def __init__(
        self,
        *,
        options: RenderOptions,
        functions: FunctionRegistry,
        logger: FilteringBoundLogger,
        loader: TemplateLoader | None = None,
    ) -> None:
        self.options: RenderOptions = options
        self.functions: FunctionRegistry = functions
        self.loader: TemplateLoader | None = loader
        self.logger: FilteringBoundLogger = logger
        self.state: RenderState = RenderState()
        self.reporter: DiagnosticReporter = DiagnosticReporter(
            policy=options.error_policy, logger=logger
        )

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def render(self, template: Template, scope: Scope) -> str:
        """Render a parsed template.

        Raises:
            ResourceLimitExceededError: If any ceiling is exceeded.
            TesseraError: For diagnostics under the ``fail`` policy.
        """
        if template.name is not None:
            self.state.include_stack.append(template.name)
        try:
            output = self.render_nodes(template.nodes, scope)
        except RecursionError as e:
            # max_depth set beyond what the interpreter stack can hold
            msg = (
                "Template nesting exhausted the interpreter stack before "
                f"reaching max_depth {self.options.max_depth}"
            )
            raise ResourceLimitExceededError(
                msg, limit="max_depth", value=self.options.max_depth
            ) from e
        finally:
            if template.name is not None:
                _ = self.state.include_stack.pop()

        self.state.output_bytes = len(output.encode("utf-8"))
        self.check_memory()
        return output

    # -------------------------------------------------------------------------
    # Hooks used by the loop and conditional engines
    # -------------------------------------------------------------------------

    def render_nodes(self, nodes: tuple[Node, ...], scope: Scope) -> str:
        """Render a body against a scope.

        Raises:
            ResourceLimitExceededError: If nesting exceeds ``max_depth``.
        """
        self.state.depth += 1
        try:
            if self.state.depth > self.options.max_depth:
                msg = f"Render depth exceeded {self.options.max_depth}"
                raise ResourceLimitExceededError(
                    msg, limit="max_depth", value=self.options.max_depth
                )
            return "".join(self.render_node(node, scope) for node in nodes)
        finally:
            self.state.depth -= 1

    def check_memory(self) -> None:
        """Raise if the produced output exceeds ``memory_ceiling_bytes``."""
        ceiling = self.options.memory_ceiling_bytes
        if self.state.output_bytes > ceiling:
            msg = f"Rendered output exceeded {ceiling} bytes"
            raise ResourceLimitExceededError(
                msg, limit="memory_ceiling_bytes", value=ceiling
            )

    def report(self, diagnostic: Diagnostic) -> str:
        """Apply the error policy to a diagnostic and emit the resulting text."""
        return self.emit_text(self.reporter.report(diagnostic))

    def emit_text(self, text: str) -> str:
        """Emit template text as is, counting its size."""
        self.state.output_bytes += len(text.encode("utf-8"))
        return text

    def emit_value(self, value: object) -> str:
        """Emit the display form of a value, escaped when autoescape is on."""
        text = to_display(value)
        if self.options.autoescape and not hasattr(value, "__html__"):
            text = str(escape(text))
        return self.emit_text(text)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _step(self) -> None:
        self.state.steps += 1
        if self.state.steps > self.options.max_steps:
            msg = f"Render exceeded {self.options.max_steps} steps"
            raise ResourceLimitExceededError(
                msg, limit="max_steps", value=self.options.max_steps
            )

    def render_node(self, node: Node, scope: Scope) -> str:
        """Render a single node."""
        self._step()
        if self.options.debug:
            self.logger.debug(
                "node_dispatch", node=describe(node), location=str(node.location)
            )

        match node:
            case TextNode(text=text):
                return self.emit_text(text)
            case CommentNode():
                return ""
            case VariableNode(path=path):
                return self.emit_value(resolve(path, scope))
            case IfNode():
                return render_if(node, scope, self)
            case ForNode():
                return render_for(node, scope, self)
            case SwitchNode():
                return render_switch(node, scope, self)
            case TernaryNode():
                return render_ternary(node, scope, self)
            case FunctionCallNode():
                return self._render_call(node, scope)
            case IncludeNode():
                return self._render_include(node, scope)
            case DiagnosticNode(kind=kind, message=message, fallback=fallback):
                marker = self.report(
                    Diagnostic(kind=kind, message=message, location=node.location)
                )
                return marker + self.emit_text(fallback)

    def _render_call(self, node: FunctionCallNode, scope: Scope) -> str:
        error: DisallowedFunctionError | FunctionInvocationError
        try:
            result = call_function(node.call, scope, self.functions)
        except DisallowedFunctionError as e:
            kind, error = DiagnosticKind.DISALLOWED_FUNCTION, e
        except FunctionInvocationError as e:
            kind, error = DiagnosticKind.FUNCTION_INVOCATION, e
        else:
            return self.emit_value(result)
        return self.report(
            Diagnostic(
                kind=kind, message=str(error), location=node.location, error=error
            )
        )

    def _render_include(self, node: IncludeNode, scope: Scope) -> str:
        self.check_memory()
        name = node.name
        stack = self.state.include_stack
        limit = self.options.max_include_depth

        if name in stack:
            chain = (*stack, name)
            msg = f"Include cycle detected: {' -> '.join(chain)}"
            raise IncludeCycleError(msg, chain=chain, value=limit)
        if self.state.include_depth >= limit:
            msg = f"Include depth exceeded {limit} at '{name}'"
            raise IncludeDepthError(msg, limit="max_include_depth", value=limit)

        try:
            if self.loader is None:
                msg = f"Template '{name}' not found (no loader configured)"
                raise TemplateNotFoundError(msg, name=name)
            source = self.loader.load(name)
        except TemplateNotFoundError as e:
            return self.report(
                Diagnostic(
                    kind=DiagnosticKind.NOT_FOUND,
                    message=str(e),
                    location=node.location,
                    error=e,
                )
            )
        except (OSError, UnicodeDecodeError) as e:
            error = TemplateLoadError(
                f"Failed to load template '{name}': {e}", name=name
            )
            error.__cause__ = e
            return self.report(
                Diagnostic(
                    kind=DiagnosticKind.LOAD_ERROR,
                    message=str(error),
                    location=node.location,
                    error=error,
                )
            )

        template = parse(
            source,
            name=name,
            open_delimiter=self.options.open_delimiter,
            close_delimiter=self.options.close_delimiter,
        )
        self.state.include_depth += 1
        self.logger.debug(
            "include_loaded", name=name, depth=self.state.include_depth
        )

        stack.append(name)
        try:
            return self.render_nodes(template.nodes, scope)
        finally:
            _ = stack.pop()
            self.state.include_depth -= 1
