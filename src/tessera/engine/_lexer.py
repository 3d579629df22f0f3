"""Tag scanner: splits template text into a flat token stream.

A tag is an opening delimiter followed by content up to the first closing
delimiter that is not inside a quoted string. Tag content that does not form a
known construct is left in the output as literal text, which keeps inline CSS
or script blocks such as ``{ color: red }`` intact.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass

from tessera.enums import TokenKind

DEFAULT_OPEN_DELIMITER = "{"
DEFAULT_CLOSE_DELIMITER = "}"
COMMENT_MARKER = "#"

_CLAUSE_PATTERN = re.compile(
    r"^(if|elseif|elif|for|switch|case|include)\s+(.+?)\s*$", re.DOTALL
)
_BARE_KEYWORDS: dict[str, TokenKind] = {
    "else": TokenKind.ELSE,
    "endif": TokenKind.ENDIF,
    "endfor": TokenKind.ENDFOR,
    "endswitch": TokenKind.ENDSWITCH,
}
_CLAUSE_KINDS: dict[str, TokenKind] = {
    "if": TokenKind.IF,
    "elseif": TokenKind.ELSEIF,
    "elif": TokenKind.ELSEIF,
    "for": TokenKind.FOR,
    "switch": TokenKind.SWITCH,
    "case": TokenKind.CASE,
    "include": TokenKind.INCLUDE,
}
_INCLUDE_NAME_PATTERN = re.compile(r"""^(?:"([^"]+)"|'([^']+)')$""")
_FUNCTION_PATTERN = re.compile(r"^([A-Za-z_]\w*)\((.*)\)\s*$", re.DOTALL)
_TERNARY_PATTERN = re.compile(r"^\[(.+)\]\s*$", re.DOTALL)
_VARIABLE_PATTERN = re.compile(r"^[A-Za-z_][^\s{}()]*$")


@dataclass(frozen=True, slots=True)
class Token:
    """A scanned piece of template source.

    Attributes:
        kind: What the token represents.
        raw: The exact source text, delimiters included.
        argument: The construct payload (condition, path, loop header,
            include name, function call text); empty for bare keywords.
        line: 1-based line of the token start.
        column: 1-based column of the token start.
    """

    kind: TokenKind
    raw: str
    argument: str = ""
    line: int = 1
    column: int = 1

    @property
    def keyword(self) -> str:
        return self.kind.value


def classify(content: str) -> tuple[TokenKind, str] | None:
    """Classify the content between a pair of delimiters.

    Args:
        content: Tag content without delimiters.

    Returns:
        Tuple of (kind, argument), or None when the content is not a
        recognised construct and must stay literal.
    """
    if not content or content[0].isspace():
        return None

    stripped = content.rstrip()
    if stripped in _BARE_KEYWORDS:
        return _BARE_KEYWORDS[stripped], ""

    clause = _CLAUSE_PATTERN.match(stripped)
    if clause is not None:
        keyword, argument = clause.group(1), clause.group(2)
        kind = _CLAUSE_KINDS[keyword]
        if kind is TokenKind.INCLUDE:
            name = _INCLUDE_NAME_PATTERN.match(argument)
            if name is None:
                return None
            return kind, name.group(1) or name.group(2)
        return kind, argument

    ternary = _TERNARY_PATTERN.match(stripped)
    if ternary is not None:
        return TokenKind.TERNARY, ternary.group(1)

    if _FUNCTION_PATTERN.match(stripped) is not None:
        return TokenKind.FUNCTION, stripped

    if _VARIABLE_PATTERN.match(stripped) is not None:
        return TokenKind.VARIABLE, stripped

    return None


class Lexer:
    """Chops template source into a list of tokens."""

    def __init__(
        self,
        source: str,
        *,
        open_delimiter: str = DEFAULT_OPEN_DELIMITER,
        close_delimiter: str = DEFAULT_CLOSE_DELIMITER,
    ) -> None:
        self.source: str = source
        self.open_delimiter: str = open_delimiter
        self.close_delimiter: str = close_delimiter
        self.comment_open: str = open_delimiter + COMMENT_MARKER
        self.comment_close: str = COMMENT_MARKER + close_delimiter
        # Multi-character delimiters cannot collide with CSS or script braces,
        # so padding inside them is allowed: {{ name }}.
        self.allow_padding: bool = len(open_delimiter) > 1
        self._line_starts: list[int] = [0] + [
            match.end() for match in re.finditer("\n", source)
        ]
        self._tokens: list[Token] = []
        self._text: list[str] = []
        self._text_start: int = 0

    def _location(self, index: int) -> tuple[int, int]:
        line = bisect_right(self._line_starts, index)
        return line, index - self._line_starts[line - 1] + 1

    def _append_text(self, text: str, index: int) -> None:
        if not self._text:
            self._text_start = index
        self._text.append(text)

    def _flush_text(self) -> None:
        if self._text:
            line, column = self._location(self._text_start)
            self._tokens.append(
                Token(TokenKind.TEXT, "".join(self._text), line=line, column=column)
            )
            self._text = []

    def _emit(self, kind: TokenKind, raw: str, argument: str, index: int) -> None:
        self._flush_text()
        line, column = self._location(index)
        self._tokens.append(Token(kind, raw, argument, line=line, column=column))

    def _find_close(self, start: int) -> int:
        """Find the closing delimiter for a tag whose content starts at ``start``.

        Quoted strings are skipped. If a quote is never closed, the first
        closing delimiter is used instead.
        """
        source = self.source
        quote: str | None = None
        index = start
        while index < len(source):
            char = source[index]
            if quote is not None:
                if char == "\\":
                    index += 2
                    continue
                if char == quote:
                    quote = None
            elif char in ("'", '"'):
                quote = char
            elif source.startswith(self.close_delimiter, index):
                return index
            index += 1
        return source.find(self.close_delimiter, start)

    def tokenize(self) -> list[Token]:
        """Scan the whole source.

        Returns:
            The token list; adjacent literal text is merged into one TEXT token.
        """
        source = self.source
        index = 0
        while index < len(source):
            open_index = source.find(self.open_delimiter, index)
            if open_index == -1:
                self._append_text(source[index:], index)
                break
            if open_index > index:
                self._append_text(source[index:open_index], index)

            if source.startswith(self.comment_open, open_index):
                close_index = source.find(
                    self.comment_close, open_index + len(self.comment_open)
                )
                if close_index != -1:
                    end = close_index + len(self.comment_close)
                    self._emit(TokenKind.COMMENT, source[open_index:end], "", open_index)
                    index = end
                    continue

            content_start = open_index + len(self.open_delimiter)
            close_index = self._find_close(content_start)
            classified: tuple[TokenKind, str] | None = None
            if close_index != -1:
                content = source[content_start:close_index]
                if self.allow_padding:
                    content = content.strip()
                classified = classify(content)
            if classified is None:
                # Not a tag: keep the delimiter literal and rescan after it.
                self._append_text(self.open_delimiter, open_index)
                index = content_start
                continue

            kind, argument = classified
            end = close_index + len(self.close_delimiter)
            self._emit(kind, source[open_index:end], argument, open_index)
            index = end

        self._flush_text()
        return self._tokens


def tokenize(
    source: str,
    *,
    open_delimiter: str = DEFAULT_OPEN_DELIMITER,
    close_delimiter: str = DEFAULT_CLOSE_DELIMITER,
) -> list[Token]:
    """Tokenize template source with the given delimiter pair."""
    lexer = Lexer(
        source, open_delimiter=open_delimiter, close_delimiter=close_delimiter
    )
    return lexer.tokenize()
