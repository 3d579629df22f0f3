"""Enumeration types for Tessera."""

from enum import StrEnum


class ErrorPolicy(StrEnum):
    """How non-fatal render diagnostics are surfaced."""

    COMMENT = "comment"
    FAIL = "fail"
    SILENT = "silent"


class ValueKind(StrEnum):
    """Kinds of values a template can see."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


class DiagnosticKind(StrEnum):
    """Categories of inline render diagnostics."""

    NOT_FOUND = "not_found"
    LOAD_ERROR = "load_error"
    DISALLOWED_FUNCTION = "disallowed_function"
    FUNCTION_INVOCATION = "function_invocation"
    MALFORMED_TAG = "malformed_tag"
    NOT_ITERABLE = "not_iterable"


class TokenKind(StrEnum):
    """Token types produced by the tag scanner."""

    TEXT = "text"
    VARIABLE = "variable"
    COMMENT = "comment"
    IF = "if"
    ELSEIF = "elseif"
    ELSE = "else"
    ENDIF = "endif"
    FOR = "for"
    ENDFOR = "endfor"
    SWITCH = "switch"
    CASE = "case"
    ENDSWITCH = "endswitch"
    INCLUDE = "include"
    FUNCTION = "function"
    TERNARY = "ternary"
