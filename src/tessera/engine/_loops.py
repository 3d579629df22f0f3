"""Loop engine.

A loop target that is not a sequence or mapping renders nothing (with a
``not_iterable`` diagnostic in debug mode). Otherwise each element gets its
own derived scope holding the item, the optional key and a fresh LoopFrame
whose ``parent`` is the frame active before the loop. Strings are not
iterable.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from tessera.enums import DiagnosticKind, ValueKind
from tessera.exceptions import NotIterableError

from ._diagnostics import Diagnostic
from ._paths import resolve
from ._scope import LoopFrame
from ._values import kind_of

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._nodes import ForNode
    from ._renderer import Renderer
    from ._scope import Scope


def loop_items(value: object) -> list[tuple[object, object]] | None:
    """Return ``(key, item)`` pairs for a loop target.

    Mappings yield their keys, sequences their indices.

    Returns:
        The pairs, or None when the value cannot be iterated by a loop.
    """
    kind = kind_of(value)
    if kind is ValueKind.MAPPING and isinstance(value, Mapping):
        return list(value.items())
    if kind is ValueKind.SEQUENCE:
        return list(enumerate(value))  # pyright: ignore[reportArgumentType]
    return None


def iteration_scopes(
    node: ForNode, items: list[tuple[object, object]], scope: Scope
) -> Iterator[Scope]:
    """Yield one derived scope per element.

    The enclosing scope is never modified, so bindings made for one iteration
    are invisible to the next and to the code after the loop.
    """
    parent = scope.loop
    length = len(items)
    for index0, (key, item) in enumerate(items):
        bindings: dict[str, object] = {node.item_name: item}
        if node.key_name is not None:
            bindings[node.key_name] = key
        frame = LoopFrame(index0=index0, length=length, key=key, parent=parent)
        yield scope.child(bindings, loop=frame)


def render_for(node: ForNode, scope: Scope, renderer: Renderer) -> str:
    """Render a loop node."""
    value = resolve(node.iterable, scope)
    items = loop_items(value)
    if items is None:
        if not renderer.options.debug:
            return ""
        msg = f"'{node.iterable}' is not a sequence or mapping"
        return renderer.report(
            Diagnostic(
                kind=DiagnosticKind.NOT_ITERABLE,
                message=msg,
                location=node.location,
                error=NotIterableError(msg, path=node.iterable),
            )
        )

    parts: list[str] = []
    for child_scope in iteration_scopes(node, items, scope):
        renderer.check_memory()
        parts.append(renderer.render_nodes(node.body, child_scope))
    return "".join(parts)
