"""Property path normalization and resolution.

Paths may be written in dotted (``a.b.c``), bracketed (``a[b][c]``) or mixed
(``a[b].c``, ``a.b[c]``) notation. All forms are normalized to a tuple of
segments before lookup. Resolution never raises: any missing key, bad index or
non-container yields None.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import TYPE_CHECKING

from tessera.enums import ValueKind

from ._scope import LOOP_FRAME_FIELDS, LoopFrame
from ._values import kind_of, length_of

if TYPE_CHECKING:
    from ._scope import Scope

LENGTH_SEGMENT = "length"

_QUOTES = ("'", '"')


def _repair_brackets(path: str) -> str:
    """Drop bracket characters that have no partner.

    A ``]`` without a preceding open ``[`` is removed and any ``[`` left open
    at the end of the path becomes a plain segment separator.
    """
    chars: list[str] = []
    open_positions: list[int] = []
    for char in path:
        if char == "[":
            open_positions.append(len(chars))
            chars.append(char)
        elif char == "]":
            if open_positions:
                _ = open_positions.pop()
                chars.append(char)
        else:
            chars.append(char)

    for position in reversed(open_positions):
        chars[position] = "."
    return "".join(chars)


def _strip_quotes(segment: str) -> str:
    if len(segment) >= 2 and segment[0] == segment[-1] and segment[0] in _QUOTES:
        return segment[1:-1]
    return segment


@lru_cache(maxsize=1024)
def normalize_path(path: str) -> tuple[str, ...]:
    """Normalize a path in any notation to its segments.

    Args:
        path: Path text such as ``user[address]["city"]`` or ``items.0.name``.

    Returns:
        Tuple of non-empty segments, e.g. ``("user", "address", "city")``.

    Example:
        >>> normalize_path("a[b].c")
        ('a', 'b', 'c')
        >>> normalize_path("a[b")
        ('a', 'b')
    """
    repaired = _repair_brackets(path.strip())

    segments: list[str] = []
    buffer: list[str] = []
    index = 0
    while index < len(repaired):
        char = repaired[index]
        if char == "[":
            if buffer:
                segments.append("".join(buffer))
                buffer = []
            close = repaired.find("]", index + 1)
            if close == -1:
                close = len(repaired)
            segments.append(_strip_quotes(repaired[index + 1 : close].strip()))
            index = close + 1
            continue
        if char == ".":
            if buffer:
                segments.append("".join(buffer))
                buffer = []
        else:
            buffer.append(char)
        index += 1
    if buffer:
        segments.append("".join(buffer))

    return tuple(segment for segment in segments if segment)


def canonical_path(path: str) -> str:
    """Return the dotted canonical form of a path."""
    return ".".join(normalize_path(path))


def _index_of(segment: str) -> int | None:
    # Unicode digits such as "²" satisfy isdigit() but are not int() literals.
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


def step(value: object, segment: str) -> tuple[bool, object]:
    """Descend one segment into a value.

    Returns:
        Tuple of (found, child). ``found`` is False when the segment does not
        exist on the value.
    """
    if isinstance(value, LoopFrame):
        if segment in LOOP_FRAME_FIELDS:
            return True, value.get(segment)
        return False, None

    kind = kind_of(value)
    if kind is ValueKind.MAPPING and isinstance(value, Mapping):
        if segment in value:
            return True, value[segment]
        return False, None

    if kind is ValueKind.SEQUENCE:
        index = _index_of(segment)
        if index is not None and index < len(value):  # pyright: ignore[reportArgumentType]
            return True, value[index]  # pyright: ignore[reportIndexIssue]
        return False, None

    return False, None


def resolve_segments(segments: tuple[str, ...], scope: Scope) -> object:
    """Resolve normalized segments against a scope.

    The final ``length`` segment is a pseudo-property yielding the size of the
    value reached so far, unless that value is a mapping that really contains
    a ``length`` key.
    """
    if not segments:
        return None

    head, *rest = segments
    if head not in scope:
        return None
    current = scope.lookup(head)

    for position, segment in enumerate(rest):
        is_last = position == len(rest) - 1
        found, child = step(current, segment)
        if found:
            current = child
            continue
        if is_last and segment == LENGTH_SEGMENT:
            return length_of(current)
        return None

    return current


def resolve(path: str, scope: Scope) -> object:
    """Resolve a path in any notation against a scope.

    Args:
        path: Path text.
        scope: Scope providing the root bindings.

    Returns:
        The value at the path, or None when any segment is missing.
    """
    return resolve_segments(normalize_path(path), scope)
