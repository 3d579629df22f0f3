"""Conditional engine: if/elseif/else, switch/case and inline ternaries.

An invalid condition is reported as a malformed-tag diagnostic and counts as
false, so rendering continues with the next branch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tessera.enums import DiagnosticKind
from tessera.exceptions import ExpressionError

from ._diagnostics import Diagnostic
from ._expression import PathReference, compile_expression, compile_operand
from ._values import loose_equals

if TYPE_CHECKING:
    from ._nodes import IfNode, Node, SourceLocation, SwitchNode, TernaryNode
    from ._renderer import Renderer
    from ._scope import Scope


def _invalid(
    renderer: Renderer, error: ExpressionError, what: str, location: SourceLocation
) -> str:
    return renderer.report(
        Diagnostic(
            kind=DiagnosticKind.MALFORMED_TAG,
            message=f"Invalid {what} {error.expression!r}: {error}",
            location=location,
            error=error,
        )
    )


def render_if(node: IfNode, scope: Scope, renderer: Renderer) -> str:
    """Render the first branch whose condition holds, else the else body."""
    markers: list[str] = []
    selected: tuple[Node, ...] | None = None
    for branch in node.branches:
        try:
            matched = compile_expression(branch.condition).evaluate(scope)
        except ExpressionError as e:
            markers.append(_invalid(renderer, e, "condition", branch.location))
            continue
        if matched:
            selected = branch.body
            break

    if selected is None:
        selected = node.else_body
    if selected is None:
        return "".join(markers)
    return "".join(markers) + renderer.render_nodes(selected, scope)


def render_switch(node: SwitchNode, scope: Scope, renderer: Renderer) -> str:
    """Render the first case equal (``==``) to the subject.

    There is no default case; with no match the switch renders nothing.
    """
    try:
        subject = compile_operand(node.subject).value(scope)
    except ExpressionError as e:
        return _invalid(renderer, e, "switch subject", node.location)

    markers: list[str] = []
    for case in node.cases:
        try:
            candidate = compile_operand(case.operand).value(scope)
        except ExpressionError as e:
            markers.append(_invalid(renderer, e, "case operand", case.location))
            continue
        if loose_equals(subject, candidate):
            return "".join(markers) + renderer.render_nodes(case.body, scope)
    return "".join(markers)


def _render_branch(text: str, scope: Scope, renderer: Renderer) -> str:
    try:
        operand = compile_operand(text)
    except ExpressionError:
        return renderer.emit_text(text)
    value = operand.value(scope)
    if value is None and isinstance(operand.root, PathReference):
        return renderer.emit_text(text)
    return renderer.emit_value(value)


def render_ternary(node: TernaryNode, scope: Scope, renderer: Renderer) -> str:
    """Render the branch chosen by the condition.

    A branch that is a literal or a bound path renders its display form. Any
    other branch, such as a bare word or markup, is template text and is
    emitted unchanged.
    """
    try:
        matched = compile_expression(node.condition).evaluate(scope)
    except ExpressionError as e:
        return _invalid(renderer, e, "inline conditional", node.location)
    return _render_branch(node.when_true if matched else node.when_false, scope, renderer)
