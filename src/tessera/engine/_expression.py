"""Expression evaluation for template conditions.

Grammar (``&&`` binds tighter than ``||``, so an expression is an OR of ANDs)::

    expr       := orTerm ('||' orTerm)*
    orTerm     := andTerm ('&&' andTerm)*
    andTerm    := '!' andTerm | comparison
    comparison := primary (op primary)?
    primary    := '(' expr ')' | operand
    op         := '===' | '!==' | '==' | '!=' | '>=' | '<=' | '>' | '<'
    operand    := quoted string | number | true | false | null | path

Expressions are compiled once into a small tree and evaluated against a
Scope. Comparison semantics come from the value model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Protocol

from tessera.exceptions import ExpressionError

from ._paths import normalize_path, resolve_segments
from ._values import compare, is_truthy, loose_equals, parse_number, strict_equals

if TYPE_CHECKING:
    from ._scope import Scope

COMPARISON_OPERATORS: frozenset[str] = frozenset(
    {"===", "!==", "==", "!=", ">=", "<=", ">", "<"}
)

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    | (?P<op>===|!==|==|!=|>=|<=|&&|\|\||[<>!()])
    | (?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?(?![\w.\[]))
    | (?P<path>[A-Za-z_][\w]*(?:\.[\w]+|\[(?:"[^"]*"|'[^']*'|[^\]])*\])*)
    """,
    re.VERBOSE,
)

_ESCAPE_PATTERN = re.compile(r"\\(.)")

_KEYWORDS: dict[str, object] = {"true": True, "false": False, "null": None}


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    position: int


def _tokenize(expression: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    while position < len(expression):
        match = _TOKEN_PATTERN.match(expression, position)
        if match is None:
            msg = f"Unexpected character {expression[position]!r} at {position}"
            raise ExpressionError(msg, expression=expression)
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(_Token(kind=kind, text=match.group(), position=position))
        position = match.end()
    return tokens


def unquote(text: str) -> str:
    """Strip the surrounding quotes of a string literal and resolve escapes."""
    return _ESCAPE_PATTERN.sub(r"\1", text[1:-1])


# =============================================================================
# Expression tree
# =============================================================================


class ExpressionNode(Protocol):
    """A compiled expression node."""

    def value(self, scope: Scope) -> object:
        """Evaluate to a template value."""
        ...


@dataclass(frozen=True, slots=True)
class Literal:
    """A literal operand: string, number, bool or null."""

    constant: object

    def value(self, scope: Scope) -> object:  # noqa: ARG002
        return self.constant


@dataclass(frozen=True, slots=True)
class PathReference:
    """An operand resolved from the scope."""

    path: str
    segments: tuple[str, ...]

    def value(self, scope: Scope) -> object:
        return resolve_segments(self.segments, scope)


@dataclass(frozen=True, slots=True)
class Not:
    operand: ExpressionNode

    def value(self, scope: Scope) -> object:
        return not is_truthy(self.operand.value(scope))


@dataclass(frozen=True, slots=True)
class Comparison:
    left: ExpressionNode
    operator: str
    right: ExpressionNode

    def value(self, scope: Scope) -> object:
        left = self.left.value(scope)
        right = self.right.value(scope)
        match self.operator:
            case "==":
                return loose_equals(left, right)
            case "!=":
                return not loose_equals(left, right)
            case "===":
                return strict_equals(left, right)
            case "!==":
                return not strict_equals(left, right)
            case _:
                return compare(left, right, self.operator)


@dataclass(frozen=True, slots=True)
class AllOf:
    terms: tuple[ExpressionNode, ...]

    def value(self, scope: Scope) -> object:
        return all(is_truthy(term.value(scope)) for term in self.terms)


@dataclass(frozen=True, slots=True)
class AnyOf:
    terms: tuple[ExpressionNode, ...]

    def value(self, scope: Scope) -> object:
        return any(is_truthy(term.value(scope)) for term in self.terms)


def parse_operand_token(token_kind: str, text: str) -> ExpressionNode:
    """Build an operand node from a single token's kind and text."""
    if token_kind == "string":
        return Literal(unquote(text))
    if token_kind == "number":
        return Literal(parse_number(text))
    if text in _KEYWORDS:
        return Literal(_KEYWORDS[text])
    return PathReference(path=text, segments=normalize_path(text))


class _Parser:
    def __init__(self, expression: str) -> None:
        self.expression: str = expression
        self.tokens: list[_Token] = _tokenize(expression)
        self.position: int = 0

    def _peek(self) -> _Token | None:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self) -> _Token:
        token = self.tokens[self.position]
        self.position += 1
        return token

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text == text:
            self.position += 1
            return True
        return False

    def _error(self, message: str) -> ExpressionError:
        return ExpressionError(message, expression=self.expression)

    def parse(self) -> ExpressionNode:
        if not self.tokens:
            raise self._error("Empty expression")
        node = self._parse_or()
        token = self._peek()
        if token is not None:
            msg = f"Unexpected {token.text!r} at {token.position}"
            raise self._error(msg)
        return node

    def _parse_or(self) -> ExpressionNode:
        terms = [self._parse_and()]
        while self._accept("||"):
            terms.append(self._parse_and())
        return terms[0] if len(terms) == 1 else AnyOf(tuple(terms))

    def _parse_and(self) -> ExpressionNode:
        terms = [self._parse_unary()]
        while self._accept("&&"):
            terms.append(self._parse_unary())
        return terms[0] if len(terms) == 1 else AllOf(tuple(terms))

    def _parse_unary(self) -> ExpressionNode:
        if self._accept("!"):
            return Not(self._parse_unary())
        return self._parse_comparison()

    def _parse_comparison(self) -> ExpressionNode:
        left = self._parse_primary()
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in COMPARISON_OPERATORS:
            _ = self._advance()
            right = self._parse_primary()
            return Comparison(left=left, operator=token.text, right=right)
        return left

    def _parse_primary(self) -> ExpressionNode:
        if self._accept("("):
            node = self._parse_or()
            if not self._accept(")"):
                raise self._error("Missing closing parenthesis")
            return node
        token = self._peek()
        if token is None:
            raise self._error("Unexpected end of expression")
        if token.kind == "op":
            msg = f"Unexpected {token.text!r} at {token.position}"
            raise self._error(msg)
        _ = self._advance()
        return parse_operand_token(token.kind, token.text)


@dataclass(frozen=True, slots=True)
class ExpressionEvaluator:
    """A compiled condition expression.

    Compile an expression string once and evaluate it against any number of
    scopes.
    """

    expression: str
    root: ExpressionNode

    @classmethod
    def compile(cls, expression: str) -> ExpressionEvaluator:
        """Compile an expression string.

        Args:
            expression: The expression to compile.

        Returns:
            An ExpressionEvaluator instance.

        Raises:
            ExpressionError: If the expression is empty or syntactically invalid.
        """
        root = _Parser(expression).parse()
        return cls(expression=expression, root=root)

    @property
    def is_operand(self) -> bool:
        """Whether the expression is a single literal or path."""
        return isinstance(self.root, Literal | PathReference)

    def value(self, scope: Scope) -> object:
        """Evaluate to a raw value (the operand itself for single operands)."""
        return self.root.value(scope)

    def evaluate(self, scope: Scope) -> bool:
        """Evaluate the expression to a boolean using template truthiness."""
        return is_truthy(self.root.value(scope))


@lru_cache(maxsize=512)
def compile_expression(expression: str) -> ExpressionEvaluator:
    """Compile an expression, reusing earlier compilations of the same text.

    Raises:
        ExpressionError: If the expression is invalid.
    """
    return ExpressionEvaluator.compile(expression)


def compile_operand(text: str) -> ExpressionEvaluator:
    """Compile text that must be a single literal or path.

    Raises:
        ExpressionError: If the text is not a single operand.
    """
    evaluator = compile_expression(text)
    if not evaluator.is_operand:
        msg = f"Expected a literal or path, got {text!r}"
        raise ExpressionError(msg, expression=text)
    return evaluator


def evaluate_condition(expression: str, scope: Scope) -> bool:
    """Convenience function to compile and evaluate an expression.

    Raises:
        ExpressionError: If the expression is invalid.
    """
    return compile_expression(expression).evaluate(scope)
