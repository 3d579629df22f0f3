"""Render scope and loop frames.

A Scope is an immutable set of name bindings plus the active loop frame. Every
derived scope is a fresh copy, so loop iterations and nested blocks can never
leak bindings into their siblings or into the enclosing scope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

LOOP_BINDING = "loop"


@dataclass(frozen=True, slots=True)
class LoopFrame:
    """Metadata for the current loop iteration.

    Attributes:
        index: 1-based iteration number.
        index0: 0-based iteration number.
        length: Number of elements in the iterated collection.
        key: Mapping key or sequence index of the current element.
        parent: Frame of the enclosing loop, if any.
    """

    index0: int
    length: int
    key: object = None
    parent: LoopFrame | None = None

    @property
    def index(self) -> int:
        return self.index0 + 1

    @property
    def first(self) -> bool:
        return self.index0 == 0

    @property
    def last(self) -> bool:
        return self.index0 == self.length - 1

    @property
    def revindex(self) -> int:
        return self.length - self.index0

    @property
    def revindex0(self) -> int:
        return self.length - self.index0 - 1

    def get(self, name: str) -> object:
        """Look up a frame field by name, returning None for unknown names."""
        if name in LOOP_FRAME_FIELDS:
            return getattr(self, name)
        return None


LOOP_FRAME_FIELDS: frozenset[str] = frozenset(
    {"index", "index0", "first", "last", "length", "key", "parent", "revindex", "revindex0"}
)


@dataclass(frozen=True, slots=True)
class Scope:
    """Immutable name bindings visible to a render call."""

    _bindings: Mapping[str, object] = field(
        default_factory=lambda: MappingProxyType({})
    )
    loop: LoopFrame | None = None

    @classmethod
    def from_bindings(cls, bindings: Mapping[str, object] | None = None) -> Scope:
        """Create the root scope from caller-supplied bindings.

        The bindings are copied, so later changes by the caller do not affect
        a render in progress.
        """
        return cls(_bindings=MappingProxyType(dict(bindings or {})))

    def child(
        self,
        bindings: Mapping[str, object] | None = None,
        *,
        loop: LoopFrame | None = None,
    ) -> Scope:
        """Derive a new scope with extra bindings and optionally a new loop frame.

        Args:
            bindings: Names to add or overwrite in the derived scope.
            loop: Loop frame for the derived scope. Keeps the current frame
                when None.

        Returns:
            A new Scope; this scope is left unchanged.
        """
        merged = dict(self._bindings)
        if bindings:
            merged.update(bindings)
        return Scope(
            _bindings=MappingProxyType(merged),
            loop=loop if loop is not None else self.loop,
        )

    def lookup(self, name: str) -> object:
        """Return the value bound to a name, or None when unbound.

        The reserved name ``loop`` yields the active loop frame unless the
        caller bound ``loop`` explicitly and no loop is running.
        """
        if name == LOOP_BINDING and self.loop is not None:
            return self.loop
        return self._bindings.get(name)

    def __contains__(self, name: object) -> bool:
        if name == LOOP_BINDING and self.loop is not None:
            return True
        return name in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def names(self) -> tuple[str, ...]:
        """Return the bound names in insertion order."""
        return tuple(self._bindings)
