"""Tessera: a small, safe text template engine."""

from tessera.engine import (
    FunctionRegistry,
    RenderOptions,
    Template,
    TemplateEngine,
    create_function_registry,
    render,
)
from tessera.enums import DiagnosticKind, ErrorPolicy, ValueKind
from tessera.exceptions import (
    ConfigError,
    DisallowedFunctionError,
    ExpressionError,
    FunctionError,
    FunctionInvocationError,
    IncludeCycleError,
    IncludeDepthError,
    NotIterableError,
    ResourceLimitExceededError,
    TemplateLoadError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    TesseraError,
)
from tessera.loaders import DictLoader, FileSystemLoader, TemplateLoader

__all__ = [
    "ConfigError",
    "DiagnosticKind",
    "DictLoader",
    "DisallowedFunctionError",
    "ErrorPolicy",
    "ExpressionError",
    "FileSystemLoader",
    "FunctionError",
    "FunctionInvocationError",
    "FunctionRegistry",
    "IncludeCycleError",
    "IncludeDepthError",
    "NotIterableError",
    "RenderOptions",
    "ResourceLimitExceededError",
    "Template",
    "TemplateEngine",
    "TemplateLoader",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "TemplateSyntaxError",
    "TesseraError",
    "ValueKind",
    "create_function_registry",
    "render",
]
