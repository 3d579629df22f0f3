"""Value model: classification, truthiness, coercion and comparison.

Template values are plain Python objects. This module defines how each kind
behaves inside conditions and how it is displayed in output:

- ``None`` is Null, ``bool`` is Bool (never a Number), ``int``/``float`` are
  Number, ``str`` is String, lists and tuples are Sequence, any ``Mapping`` is
  Mapping.
- Loose equality compares numerically when both sides look numeric and falls
  back to string comparison otherwise.
- Strict equality requires matching kinds.
- Ordering is defined only between numeric-coercible operands and is ``False``
  for anything else.
"""

import math
import re
from collections.abc import Mapping, Sequence

from tessera.enums import ValueKind

_NUMERIC_PATTERN = re.compile(
    r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$",
)


def kind_of(value: object) -> ValueKind:
    """Classify a value into one of the template value kinds.

    Args:
        value: Any Python value.

    Returns:
        The ValueKind of the value. Unknown objects are treated as strings.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int | float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, bytes | bytearray):
        return ValueKind.SEQUENCE
    return ValueKind.STRING


def is_numeric_string(value: object) -> bool:
    """Check whether a value is a string matching the numeric literal pattern."""
    return isinstance(value, str) and _NUMERIC_PATTERN.match(value) is not None


def is_number_like(value: object) -> bool:
    """Check whether a value coerces to Number (Number or numeric string)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return not (isinstance(value, float) and math.isnan(value))
    return is_numeric_string(value)


def to_number(value: object) -> float | None:
    """Coerce a value to a float.

    Returns:
        The numeric value, or None if the value is not number-like.
    """
    if not is_number_like(value):
        return None
    if isinstance(value, str):
        return float(value.strip())
    return float(value)  # pyright: ignore[reportArgumentType]


def parse_number(text: str) -> int | float:
    """Parse a numeric literal into an int when integral, a float otherwise."""
    stripped = text.strip()
    if re.fullmatch(r"[+-]?\d+", stripped):
        return int(stripped)
    return float(stripped)


def is_truthy(value: object) -> bool:
    """Apply template truthiness to a value.

    Null is false, Bool is itself, Number is nonzero, and strings, sequences
    and mappings are true when non-empty.
    """
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return False
    if kind is ValueKind.BOOL:
        return bool(value)
    if kind is ValueKind.NUMBER:
        return value != 0
    if kind is ValueKind.STRING:
        return len(str(value)) > 0
    return len(value) > 0  # pyright: ignore[reportArgumentType]


def _format_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def to_display(value: object) -> str:
    """Convert a value to the text shown in rendered output.

    Null and containers display as an empty string; containers must be
    iterated with a loop to be shown.
    """
    kind = kind_of(value)
    if kind in (ValueKind.NULL, ValueKind.SEQUENCE, ValueKind.MAPPING):
        return ""
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return _format_number(value)  # pyright: ignore[reportArgumentType]
    return str(value)


def _comparison_string(value: object) -> str:
    if value is None:
        return ""
    return to_display(value)


def loose_equals(left: object, right: object) -> bool:
    """Compare two values with ``==`` semantics.

    Both numeric-coercible: numeric comparison. Both containers: structural
    equality. One container: unequal. Otherwise the canonical string forms are
    compared without case folding.
    """
    if is_number_like(left) and is_number_like(right):
        return to_number(left) == to_number(right)

    left_kind = kind_of(left)
    right_kind = kind_of(right)
    containers = (ValueKind.SEQUENCE, ValueKind.MAPPING)
    if left_kind in containers or right_kind in containers:
        if left_kind in containers and right_kind in containers:
            return left == right
        return False

    return _comparison_string(left) == _comparison_string(right)


def strict_equals(left: object, right: object) -> bool:
    """Compare two values with ``===`` semantics (no coercion)."""
    left_kind = kind_of(left)
    if left_kind is not kind_of(right):
        return False
    if left_kind is ValueKind.NULL:
        return True
    return left == right


def compare(left: object, right: object, operator: str) -> bool:
    """Apply an ordering operator.

    Args:
        left: Left operand.
        right: Right operand.
        operator: One of ``>``, ``<``, ``>=``, ``<=``.

    Returns:
        The comparison result, or False when either side is not numeric.
    """
    left_number = to_number(left)
    right_number = to_number(right)
    if left_number is None or right_number is None:
        return False
    if operator == ">":
        return left_number > right_number
    if operator == "<":
        return left_number < right_number
    if operator == ">=":
        return left_number >= right_number
    if operator == "<=":
        return left_number <= right_number
    msg = f"Unknown ordering operator: {operator}"
    raise ValueError(msg)


def length_of(value: object) -> int | None:
    """Return the element count of a container or character count of a string.

    Returns:
        The length, or None for values without a length.
    """
    kind = kind_of(value)
    if kind is ValueKind.STRING and isinstance(value, str):
        return len(value)
    if kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
        return len(value)  # pyright: ignore[reportArgumentType]
    return None
