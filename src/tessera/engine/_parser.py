"""Parser: turns the token stream into a block tree.

The parser keeps a stack of open block frames. Recovery from malformed input
never fails the parse:

- a closing or middle tag with no matching open block is stripped and replaced
  by a malformed-tag diagnostic;
- a block still open at end of input (or when an outer block closes) keeps
  its opening tag as literal text and its contents are spliced into the
  parent body, again with a diagnostic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from tessera.enums import DiagnosticKind, TokenKind
from tessera.exceptions import ExpressionError

from ._functions import parse_call
from ._lexer import DEFAULT_CLOSE_DELIMITER, DEFAULT_OPEN_DELIMITER, Lexer, Token
from ._nodes import (
    CommentNode,
    ConditionalBranch,
    DiagnosticNode,
    ForNode,
    FunctionCallNode,
    IfNode,
    IncludeNode,
    Node,
    SourceLocation,
    SwitchCase,
    SwitchNode,
    Template,
    TernaryNode,
    TextNode,
    VariableNode,
)

_LOOP_HEADER_PATTERN = re.compile(
    r"^([A-Za-z_]\w*)(?:\s*,\s*([A-Za-z_]\w*))?\s+in\s+(\S.*)$", re.DOTALL
)

_OPENERS: frozenset[TokenKind] = frozenset(
    {TokenKind.IF, TokenKind.FOR, TokenKind.SWITCH}
)
_CLOSERS: dict[TokenKind, TokenKind] = {
    TokenKind.ENDIF: TokenKind.IF,
    TokenKind.ENDFOR: TokenKind.FOR,
    TokenKind.ENDSWITCH: TokenKind.SWITCH,
}
_MIDDLES: dict[TokenKind, TokenKind] = {
    TokenKind.ELSEIF: TokenKind.IF,
    TokenKind.ELSE: TokenKind.IF,
    TokenKind.CASE: TokenKind.SWITCH,
}


def split_ternary(text: str) -> tuple[str, str, str] | None:
    """Split ``cond ? a : b`` on the first top-level ``?`` and following ``:``.

    Quoted strings are skipped. Returns None when either separator is missing.
    """
    quote: str | None = None
    escaped = False
    question = -1
    for index, char in enumerate(text):
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "?" and question == -1:
            question = index
        elif char == ":" and question != -1:
            condition = text[:question].strip()
            when_true = text[question + 1 : index].strip()
            when_false = text[index + 1 :].strip()
            if condition and when_true and when_false:
                return condition, when_true, when_false
            return None
    return None


@dataclass(slots=True)
class _Section:
    """A run of body nodes introduced by an opening or middle tag."""

    token: Token | None
    nodes: list[Node] = field(default_factory=list)


@dataclass(slots=True)
class _Frame:
    """An open block on the parser stack."""

    token: Token | None
    sections: list[_Section] = field(default_factory=list)

    @property
    def kind(self) -> TokenKind | None:
        return self.token.kind if self.token is not None else None

    @property
    def body(self) -> list[Node]:
        return self.sections[-1].nodes

    @property
    def has_else(self) -> bool:
        return any(
            section.token is not None and section.token.kind is TokenKind.ELSE
            for section in self.sections
        )


class Parser:
    """Builds a Template from source text."""

    def __init__(
        self,
        source: str,
        *,
        name: str | None = None,
        open_delimiter: str = DEFAULT_OPEN_DELIMITER,
        close_delimiter: str = DEFAULT_CLOSE_DELIMITER,
    ) -> None:
        self.source: str = source
        self.name: str | None = name
        self.tokens: list[Token] = Lexer(
            source, open_delimiter=open_delimiter, close_delimiter=close_delimiter
        ).tokenize()
        self._stack: list[_Frame] = []

    def _location(self, token: Token) -> SourceLocation:
        return SourceLocation(line=token.line, column=token.column, template=self.name)

    def _malformed(self, token: Token, message: str, fallback: str = "") -> DiagnosticNode:
        return DiagnosticNode(
            kind=DiagnosticKind.MALFORMED_TAG,
            message=message,
            fallback=fallback,
            location=self._location(token),
        )

    @property
    def _top(self) -> _Frame:
        return self._stack[-1]

    def parse(self) -> Template:
        """Parse the whole source.

        Returns:
            The parsed Template.
        """
        root = _Frame(token=None, sections=[_Section(token=None)])
        self._stack = [root]

        for token in self.tokens:
            if token.kind in _OPENERS:
                self._stack.append(
                    _Frame(token=token, sections=[_Section(token=token)])
                )
            elif token.kind in _MIDDLES:
                self._handle_middle(token)
            elif token.kind in _CLOSERS:
                self._handle_closer(token)
            else:
                self._top.body.append(self._leaf(token))

        while len(self._stack) > 1:
            self._unwind_top()

        return Template(source=self.source, nodes=tuple(root.body), name=self.name)

    def _leaf(self, token: Token) -> Node:
        location = self._location(token)
        match token.kind:
            case TokenKind.TEXT:
                return TextNode(text=token.raw, location=location)
            case TokenKind.COMMENT:
                return CommentNode(text=token.raw, location=location)
            case TokenKind.VARIABLE:
                return VariableNode(path=token.argument, location=location)
            case TokenKind.INCLUDE:
                return IncludeNode(name=token.argument, location=location)
            case TokenKind.FUNCTION:
                try:
                    call = parse_call(token.argument)
                except ExpressionError as e:
                    return self._malformed(token, f"Invalid function call {token.raw}: {e}")
                return FunctionCallNode(call=call, location=location)
            case TokenKind.TERNARY:
                parts = split_ternary(token.argument)
                if parts is None:
                    return self._malformed(
                        token, f"Invalid inline conditional {token.raw}", token.raw
                    )
                condition, when_true, when_false = parts
                return TernaryNode(
                    condition=condition,
                    when_true=when_true,
                    when_false=when_false,
                    location=location,
                )
            case _:
                msg = f"Unexpected {token.keyword} tag {token.raw}"
                return self._malformed(token, msg)

    def _handle_middle(self, token: Token) -> None:
        frame = self._top
        if frame.kind is not _MIDDLES[token.kind]:
            msg = f"Stray {token.raw} outside of a {{{_MIDDLES[token.kind].value}}} block"
            frame.body.append(self._malformed(token, msg))
            return
        if frame.kind is TokenKind.IF and frame.has_else:
            msg = f"{token.raw} after {{else}} is ignored"
            frame.body.append(self._malformed(token, msg))
            return
        frame.sections.append(_Section(token=token))

    def _handle_closer(self, token: Token) -> None:
        opener = _CLOSERS[token.kind]
        if not any(frame.kind is opener for frame in self._stack):
            self._top.body.append(
                self._malformed(token, f"Stray {token.raw} without matching opening tag")
            )
            return
        while self._top.kind is not opener:
            self._unwind_top()
        frame = self._stack.pop()
        self._top.body.append(self._build_block(frame))

    def _unwind_top(self) -> None:
        """Flatten the unclosed block on top of the stack into its parent."""
        frame = self._stack.pop()
        opening = frame.token
        parent = self._top.body
        if opening is not None:
            msg = f"Unclosed {opening.raw} block"
            parent.append(self._malformed(opening, msg, opening.raw))
        for section in frame.sections:
            if section.token is not None and section.token is not opening:
                msg = f"{section.token.raw} inside unclosed block"
                parent.append(self._malformed(section.token, msg, section.token.raw))
            parent.extend(section.nodes)

    def _build_block(self, frame: _Frame) -> Node:
        opening = frame.token
        assert opening is not None  # noqa: S101
        location = self._location(opening)
        match opening.kind:
            case TokenKind.IF:
                return self._build_if(frame, location)
            case TokenKind.FOR:
                return self._build_for(frame, opening, location)
            case _:
                return self._build_switch(frame, location)

    def _build_if(self, frame: _Frame, location: SourceLocation) -> IfNode:
        branches: list[ConditionalBranch] = []
        else_body: tuple[Node, ...] | None = None
        for section in frame.sections:
            token = section.token
            assert token is not None  # noqa: S101
            if token.kind is TokenKind.ELSE:
                else_body = tuple(section.nodes)
            else:
                branches.append(
                    ConditionalBranch(
                        condition=token.argument,
                        body=tuple(section.nodes),
                        location=self._location(token),
                    )
                )
        return IfNode(branches=tuple(branches), else_body=else_body, location=location)

    def _build_for(self, frame: _Frame, opening: Token, location: SourceLocation) -> Node:
        header = _LOOP_HEADER_PATTERN.match(opening.argument)
        if header is None:
            msg = f"Invalid loop header {opening.raw}; expected 'item in path'"
            return self._malformed(opening, msg)
        first, second, iterable = header.group(1), header.group(2), header.group(3)
        if second is None:
            item_name, key_name = first, None
        else:
            item_name, key_name = second, first
        return ForNode(
            item_name=item_name,
            key_name=key_name,
            iterable=iterable.strip(),
            body=tuple(frame.body),
            location=location,
        )

    def _build_switch(self, frame: _Frame, location: SourceLocation) -> SwitchNode:
        # Content between {switch} and the first {case} is ignored.
        cases = tuple(
            SwitchCase(
                operand=section.token.argument,
                body=tuple(section.nodes),
                location=self._location(section.token),
            )
            for section in frame.sections[1:]
            if section.token is not None
        )
        assert frame.token is not None  # noqa: S101
        return SwitchNode(subject=frame.token.argument, cases=cases, location=location)


def parse(
    source: str,
    *,
    name: str | None = None,
    open_delimiter: str = DEFAULT_OPEN_DELIMITER,
    close_delimiter: str = DEFAULT_CLOSE_DELIMITER,
) -> Template:
    """Parse template source into a Template."""
    parser = Parser(
        source,
        name=name,
        open_delimiter=open_delimiter,
        close_delimiter=close_delimiter,
    )
    return parser.parse()
