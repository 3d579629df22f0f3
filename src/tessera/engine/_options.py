"""Render options.

This module provides the RenderOptions Pydantic model for per-engine and
per-call render settings.
"""

from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tessera.enums import ErrorPolicy

from ._lexer import COMMENT_MARKER, DEFAULT_CLOSE_DELIMITER, DEFAULT_OPEN_DELIMITER

DEFAULT_MAX_STEPS = 100_000
DEFAULT_MAX_DEPTH = 64
DEFAULT_MAX_INCLUDE_DEPTH = 16
DEFAULT_MEMORY_CEILING_BYTES = 16 * 1024 * 1024


class RenderOptions(BaseModel):
    """Settings controlling a render call.

    Attributes:
        max_steps: Maximum node evaluations per render call.
        max_depth: Maximum nesting of blocks and includes while rendering.
        max_include_depth: Maximum include nesting.
        memory_ceiling_bytes: Maximum UTF-8 size of the rendered output.
        error_policy: How non-fatal diagnostics are surfaced.
        debug: Emit extra diagnostics (non-iterable loops) and dispatch logs.
        autoescape: HTML-escape variable, function and ternary output.
        open_delimiter: Tag opening delimiter.
        close_delimiter: Tag closing delimiter.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    max_steps: int = Field(
        default=DEFAULT_MAX_STEPS, gt=0, description="Node evaluations per render."
    )
    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH, gt=0, description="Render recursion depth."
    )
    max_include_depth: int = Field(
        default=DEFAULT_MAX_INCLUDE_DEPTH, gt=0, description="Include nesting depth."
    )
    memory_ceiling_bytes: int = Field(
        default=DEFAULT_MEMORY_CEILING_BYTES,
        gt=0,
        description="Maximum UTF-8 size of the rendered output.",
    )
    error_policy: ErrorPolicy = Field(
        default=ErrorPolicy.COMMENT, description="How diagnostics are surfaced."
    )
    debug: bool = Field(default=False, description="Emit debug diagnostics.")
    autoescape: bool = Field(default=True, description="HTML-escape output values.")
    open_delimiter: str = Field(
        default=DEFAULT_OPEN_DELIMITER, min_length=1, description="Tag opening delimiter."
    )
    close_delimiter: str = Field(
        default=DEFAULT_CLOSE_DELIMITER, min_length=1, description="Tag closing delimiter."
    )

    @model_validator(mode="after")
    def _check_delimiters(self) -> Self:
        if self.open_delimiter == self.close_delimiter:
            msg = "open_delimiter and close_delimiter must differ"
            raise ValueError(msg)
        for delimiter in (self.open_delimiter, self.close_delimiter):
            if delimiter.strip() != delimiter or COMMENT_MARKER in delimiter:
                msg = f"Delimiter {delimiter!r} must not contain whitespace or '#'"
                raise ValueError(msg)
        return self

    def merged(self, **overrides: object) -> Self:
        """Return a copy with the given fields replaced and re-validated."""
        data = self.model_dump()
        data.update(overrides)
        return self.model_validate(data)
