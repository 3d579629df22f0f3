"""Diagnostics and error policy.

Non-fatal render problems are collected as Diagnostic records. The active
ErrorPolicy decides what each one turns into: an inline HTML comment marker,
an exception, or nothing. Every diagnostic is also logged as a structured
``template_diagnostic`` warning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tessera.enums import DiagnosticKind, ErrorPolicy
from tessera.exceptions import (
    DisallowedFunctionError,
    FunctionInvocationError,
    NotIterableError,
    TemplateLoadError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    TesseraError,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._nodes import SourceLocation

MARKER_PREFIX = "tessera"


def format_marker(kind: DiagnosticKind, message: str) -> str:
    """Format an inline diagnostic marker.

    Example:
        >>> format_marker(DiagnosticKind.NOT_FOUND, "Template 'nav' not found")
        "<!-- tessera: not_found: Template 'nav' not found -->"
    """
    # A literal "--" would end the HTML comment early.
    safe = message.replace("\n", " ")
    while "--" in safe:
        safe = safe.replace("--", "- -")
    return f"<!-- {MARKER_PREFIX}: {kind.value}: {safe} -->"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal problem found while rendering.

    Attributes:
        kind: Diagnostic category.
        message: Human-readable description.
        location: Where in the template the problem occurred.
        error: Exception raised for this diagnostic under the ``fail`` policy.
    """

    kind: DiagnosticKind
    message: str
    location: SourceLocation | None = None
    error: TesseraError | None = None

    def to_exception(self) -> TesseraError:
        """Return the exception that represents this diagnostic."""
        if self.error is not None:
            return self.error
        line = self.location.line if self.location else None
        column = self.location.column if self.location else None
        match self.kind:
            case DiagnosticKind.NOT_FOUND:
                return TemplateNotFoundError(self.message, name="")
            case DiagnosticKind.LOAD_ERROR:
                return TemplateLoadError(self.message, name="")
            case DiagnosticKind.DISALLOWED_FUNCTION:
                return DisallowedFunctionError(self.message, function="")
            case DiagnosticKind.FUNCTION_INVOCATION:
                return FunctionInvocationError(self.message, function="")
            case DiagnosticKind.NOT_ITERABLE:
                return NotIterableError(self.message, path="")
            case _:
                return TemplateSyntaxError(self.message, line=line, column=column)


@dataclass(slots=True)
class DiagnosticReporter:
    """Applies the error policy to diagnostics raised during one render call."""

    policy: ErrorPolicy
    logger: FilteringBoundLogger
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def report(self, diagnostic: Diagnostic) -> str:
        """Record a diagnostic and return the text to emit in its place.

        Raises:
            TesseraError: The diagnostic's exception, under the ``fail`` policy.
        """
        self.diagnostics.append(diagnostic)
        self.logger.warning(
            "template_diagnostic",
            kind=diagnostic.kind.value,
            message=diagnostic.message,
            location=str(diagnostic.location) if diagnostic.location else None,
            policy=self.policy.value,
        )
        match self.policy:
            case ErrorPolicy.FAIL:
                raise diagnostic.to_exception()
            case ErrorPolicy.SILENT:
                return ""
            case _:
                return format_marker(diagnostic.kind, diagnostic.message)
