"""Public engine facade."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from pydantic import BaseModel

from tessera.exceptions import TemplateNotFoundError
from tessera.utils import create_engine_logger

from ._functions import FunctionRegistry, create_function_registry
from ._options import RenderOptions
from ._parser import parse
from ._renderer import Renderer
from ._scope import Scope

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from tessera.loaders import TemplateLoader

    from ._nodes import Template

type Bindings = Mapping[str, object] | BaseModel
type OptionsLike = RenderOptions | Mapping[str, object]
type FunctionsLike = FunctionRegistry | Mapping[str, Callable[..., object]]


def _to_bindings(bindings: Bindings | None) -> Mapping[str, object]:
    if bindings is None:
        return {}
    if isinstance(bindings, BaseModel):
        return bindings.model_dump()
    return bindings


class TemplateEngine:
    """Parses and renders templates.

    One engine holds a loader, default options and the function allow-list.
    All per-render state lives in a fresh Renderer, so an engine can be shared
    between threads.

    Example:
        >>> engine = TemplateEngine(DictLoader({"hello": "Hello {name}!"}))
        >>> engine.render("hello", {"name": "World"})
        'Hello World!'
    """

    def __init__(
        self,
        loader: TemplateLoader | None = None,
        *,
        options: OptionsLike | None = None,
        functions: FunctionsLike | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            loader: Source of named templates and includes.
            options: Default render options, or overrides of the defaults.
            functions: A FunctionRegistry, or extra functions to allow-list on
                top of the built-ins.
            logger: Structured logger; a stderr logger is created when None.

        Raises:
            FunctionRegistrationError: If extra functions are invalid.
            pydantic.ValidationError: If options are invalid.
        """
        self.loader: TemplateLoader | None = loader
        self.options: RenderOptions = self._resolve_options(RenderOptions(), options)
        if isinstance(functions, FunctionRegistry):
            self.functions: FunctionRegistry = functions
        else:
            self.functions = create_function_registry(functions)
        self.logger: FilteringBoundLogger = (
            logger if logger is not None else create_engine_logger()
        )

    @staticmethod
    def _resolve_options(
        base: RenderOptions, options: OptionsLike | None
    ) -> RenderOptions:
        if options is None:
            return base
        if isinstance(options, RenderOptions):
            return options
        return base.merged(**options)

    def parse(
        self,
        text: str,
        options: OptionsLike | None = None,
        *,
        name: str | None = None,
    ) -> Template:
        """Parse template text into a block tree without rendering it."""
        effective = self._resolve_options(self.options, options)
        return parse(
            text,
            name=name,
            open_delimiter=effective.open_delimiter,
            close_delimiter=effective.close_delimiter,
        )

    def render_string(
        self,
        text: str,
        bindings: Bindings | None = None,
        options: OptionsLike | None = None,
    ) -> str:
        """Render template text.

        Args:
            text: Template source.
            bindings: Root values visible to the template.
            options: Options for this call, or overrides of the engine defaults.

        Returns:
            The rendered output.

        Raises:
            ResourceLimitExceededError: If a ceiling is exceeded.
            TesseraError: For diagnostics under the ``fail`` policy.
        """
        effective = self._resolve_options(self.options, options)
        template = self.parse(text, effective)
        return self._render(template, bindings, effective)

    def render(
        self,
        name: str,
        bindings: Bindings | None = None,
        options: OptionsLike | None = None,
    ) -> str:
        """Load a template by name and render it.

        A missing top-level template always raises, whatever the error policy.

        Raises:
            TemplateNotFoundError: If the loader has no such template.
            ResourceLimitExceededError: If a ceiling is exceeded.
            TesseraError: For diagnostics under the ``fail`` policy.
        """
        if self.loader is None:
            msg = f"Template '{name}' not found (no loader configured)"
            raise TemplateNotFoundError(msg, name=name)
        effective = self._resolve_options(self.options, options)
        source = self.loader.load(name)
        template = self.parse(source, effective, name=name)
        return self._render(template, bindings, effective)

    def _render(
        self, template: Template, bindings: Bindings | None, options: RenderOptions
    ) -> str:
        scope = Scope.from_bindings(_to_bindings(bindings))
        renderer = Renderer(
            options=options,
            functions=self.functions,
            logger=self.logger,
            loader=self.loader,
        )

        log = self.logger.bind(template=template.name or "<string>")
        log.debug("render_started", policy=options.error_policy.value)
        started = time.perf_counter()
        output = renderer.render(template, scope)
        log.debug(
            "render_completed",
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
            steps=renderer.state.steps,
            output_bytes=renderer.state.output_bytes,
            diagnostics=len(renderer.reporter.diagnostics),
        )
        return output


def render(
    template_text: str,
    root_bindings: Bindings | None = None,
    options: OptionsLike | None = None,
    *,
    loader: TemplateLoader | None = None,
    functions: FunctionsLike | None = None,
) -> str:
    """Render template text in one call.

    Example:
        >>> render("{if user.age == 26}Hello {user.name}{else}No{endif}",
        ...        {"user": {"name": "John", "age": 26}})
        'Hello John'
    """
    engine = TemplateEngine(loader, options=options, functions=functions)
    return engine.render_string(template_text, root_bindings)
