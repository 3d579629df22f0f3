"""Tessera exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class TesseraError(Exception):
    """Base exception for Tessera errors."""


# =============================================================================
# Template Exceptions
# =============================================================================


class TemplateNotFoundError(TesseraError, KeyError):
    """Raised when a template or include cannot be found by the loader.

    Attributes:
        name: The template name that was requested.
    """

    def __init__(self, message: str, *, name: str) -> None:
        """Initialize with error message and template context.

        Args:
            message: Human-readable error message.
            name: The template name that was not found.
        """
        super().__init__(message)
        self.name: str = name

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class TemplateLoadError(TesseraError):
    """Raised when a template exists but its source cannot be read or decoded.

    Attributes:
        name: The template name that was requested.
    """

    def __init__(self, message: str, *, name: str) -> None:
        super().__init__(message)
        self.name: str = name


class TemplateSyntaxError(TesseraError):
    """Raised when a control tag is malformed and the policy is ``fail``."""

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        tag: str | None = None,
    ) -> None:
        """Initialize with error message and source location."""
        super().__init__(message)
        self.line: int | None = line
        self.column: int | None = column
        self.tag: str | None = tag


class ExpressionError(TesseraError):
    """Raised when an expression is invalid or cannot be evaluated."""

    def __init__(
        self,
        message: str,
        *,
        expression: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and expression context."""
        super().__init__(message)
        self.expression: str = expression
        self.cause: Exception | None = cause


class NotIterableError(TesseraError):
    """Raised in debug mode when a loop target is not a sequence or mapping.

    Attributes:
        path: The loop target path.
    """

    def __init__(self, message: str, *, path: str) -> None:
        """Initialize with error message and the loop target path."""
        super().__init__(message)
        self.path: str = path


# =============================================================================
# Function Exceptions
# =============================================================================


class FunctionError(TesseraError):
    """Base exception for template function errors."""


class DisallowedFunctionError(FunctionError):
    """Raised when a template calls a function that is not allow-listed.

    Attributes:
        function: The function name that was requested.
    """

    def __init__(self, message: str, *, function: str) -> None:
        """Initialize with error message and function name."""
        super().__init__(message)
        self.function: str = function


class FunctionInvocationError(FunctionError):
    """Raised when an allow-listed function fails during a call."""

    def __init__(
        self,
        message: str,
        *,
        function: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message, function name and cause."""
        super().__init__(message)
        self.function: str = function
        self.cause: Exception | None = cause


class FunctionRegistrationError(FunctionError, ValueError):
    """Raised when a function registry is built with an invalid entry."""

    def __init__(self, message: str, *, function: str) -> None:
        """Initialize with error message and function name."""
        super().__init__(message)
        self.function: str = function


# =============================================================================
# Resource Limit Exceptions
# =============================================================================


class ResourceLimitExceededError(TesseraError):
    """Raised when a render exceeds one of its configured ceilings.

    Attributes:
        limit: Name of the option that was exceeded.
        value: The configured ceiling.
    """

    def __init__(self, message: str, *, limit: str, value: int) -> None:
        """Initialize with error message and the exceeded limit.

        Args:
            message: Human-readable error message.
            limit: Name of the exceeded option (e.g. ``max_steps``).
            value: The configured ceiling.
        """
        super().__init__(message)
        self.limit: str = limit
        self.value: int = value


class IncludeDepthError(ResourceLimitExceededError):
    """Includes nested deeper than ``max_include_depth``."""


class IncludeCycleError(ResourceLimitExceededError):
    """A template includes itself, directly or indirectly.

    Attributes:
        chain: The include chain that closed the cycle.
    """

    def __init__(self, message: str, *, chain: tuple[str, ...], value: int) -> None:
        """Initialize with error message and the include chain."""
        super().__init__(message, limit="max_include_depth", value=value)
        self.chain: tuple[str, ...] = chain


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(TesseraError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source
