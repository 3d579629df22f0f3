"""Block tree produced by the parser.

Nodes are plain immutable data; the renderer dispatches on their type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tessera.enums import DiagnosticKind

    from ._functions import CallSpec


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Position of a construct in the template source."""

    line: int = 1
    column: int = 1
    template: str | None = None

    def __str__(self) -> str:
        prefix = f"{self.template}:" if self.template else ""
        return f"{prefix}{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class TextNode:
    text: str
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class CommentNode:
    text: str
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class VariableNode:
    path: str
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class ConditionalBranch:
    """One ``if``/``elseif`` arm: a condition and the body it guards."""

    condition: str
    body: tuple[Node, ...]
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class IfNode:
    branches: tuple[ConditionalBranch, ...]
    else_body: tuple[Node, ...] | None = None
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class ForNode:
    """A loop over the value at ``iterable``.

    Attributes:
        item_name: Name bound to each element.
        key_name: Name bound to the mapping key or sequence index, if given.
        iterable: Path of the collection to iterate.
        body: Nodes rendered once per element.
    """

    item_name: str
    iterable: str
    body: tuple[Node, ...]
    key_name: str | None = None
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class SwitchCase:
    operand: str
    body: tuple[Node, ...]
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class SwitchNode:
    subject: str
    cases: tuple[SwitchCase, ...]
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class IncludeNode:
    name: str
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class FunctionCallNode:
    call: CallSpec
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class TernaryNode:
    condition: str
    when_true: str
    when_false: str
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True, slots=True)
class DiagnosticNode:
    """A problem found while parsing, surfaced according to the error policy.

    Attributes:
        kind: Diagnostic category.
        message: Human-readable description.
        fallback: Text emitted in place of the diagnostic (besides any marker),
            e.g. the literal source of an unclosed tag.
    """

    kind: DiagnosticKind
    message: str
    fallback: str = ""
    location: SourceLocation = field(default_factory=SourceLocation)


type Node = (
    TextNode
    | CommentNode
    | VariableNode
    | IfNode
    | ForNode
    | SwitchNode
    | IncludeNode
    | FunctionCallNode
    | TernaryNode
    | DiagnosticNode
)


@dataclass(frozen=True, slots=True)
class Template:
    """A parsed template.

    Attributes:
        source: The original template text.
        nodes: Top-level nodes of the block tree.
        name: Loader name of the template, if it was loaded by name.
    """

    source: str
    nodes: tuple[Node, ...]
    name: str | None = None


def describe(node: Node) -> str:
    """Return a one-line label for a node, used by tree dumps."""
    match node:
        case TextNode(text=text):
            preview = text if len(text) <= 40 else text[:37] + "..."
            return f"Text {preview!r}"
        case CommentNode():
            return "Comment"
        case VariableNode(path=path):
            return f"Variable {path}"
        case IfNode(branches=branches, else_body=else_body):
            suffix = " + else" if else_body is not None else ""
            return f"If ({len(branches)} branch{'es' if len(branches) != 1 else ''}{suffix})"
        case ForNode(item_name=item, key_name=key, iterable=iterable):
            names = f"{key}, {item}" if key else item
            return f"For {names} in {iterable}"
        case SwitchNode(subject=subject, cases=cases):
            return f"Switch {subject} ({len(cases)} cases)"
        case IncludeNode(name=name):
            return f"Include {name!r}"
        case FunctionCallNode(call=call):
            return f"Call {call.name}"
        case TernaryNode(condition=condition):
            return f"Ternary {condition}"
        case DiagnosticNode(kind=kind, message=message):
            return f"Diagnostic {kind.value}: {message}"


def children(node: Node) -> list[tuple[str, tuple[Node, ...]]]:
    """Return the labelled child bodies of a node, in source order."""
    match node:
        case IfNode(branches=branches, else_body=else_body):
            bodies = [(f"if {branch.condition}", branch.body) for branch in branches]
            if else_body is not None:
                bodies.append(("else", else_body))
            return bodies
        case ForNode(body=body):
            return [("body", body)]
        case SwitchNode(cases=cases):
            return [(f"case {case.operand}", case.body) for case in cases]
        case _:
            return []
