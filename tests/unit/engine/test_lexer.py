"""Tests for the tag scanner."""

import pytest

from tessera.engine._lexer import Lexer, Token, classify, tokenize
from tessera.enums import TokenKind


def kinds(tokens: list[Token]) -> list[TokenKind]:
    return [token.kind for token in tokens]


class TestClassify:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("name", (TokenKind.VARIABLE, "name")),
            ("user.address[city]", (TokenKind.VARIABLE, "user.address[city]")),
            ("if a == 1", (TokenKind.IF, "a == 1")),
            ("elseif b", (TokenKind.ELSEIF, "b")),
            ("elif b", (TokenKind.ELSEIF, "b")),
            ("else", (TokenKind.ELSE, "")),
            ("endif", (TokenKind.ENDIF, "")),
            ("for x in items", (TokenKind.FOR, "x in items")),
            ("endfor", (TokenKind.ENDFOR, "")),
            ("switch role", (TokenKind.SWITCH, "role")),
            ("case 'admin'", (TokenKind.CASE, "'admin'")),
            ("endswitch", (TokenKind.ENDSWITCH, "")),
            ('include "header"', (TokenKind.INCLUDE, "header")),
            ("include 'partials/nav'", (TokenKind.INCLUDE, "partials/nav")),
            ("upper(name)", (TokenKind.FUNCTION, "upper(name)")),
            ("[a ? 'x' : 'y']", (TokenKind.TERNARY, "a ? 'x' : 'y'")),
        ],
    )
    def test_known_constructs(
        self, content: str, expected: tuple[TokenKind, str]
    ) -> None:
        assert classify(content) == expected

    @pytest.mark.parametrize(
        "content",
        [
            "",
            " name",
            "color: red",
            "margin: 0 auto;",
            "include header",
            "1abc",
            "a b",
        ],
    )
    def test_unrecognised_content_stays_literal(self, content: str) -> None:
        assert classify(content) is None


class TestTokenize:
    def test_plain_text(self) -> None:
        tokens = tokenize("Hello world")
        assert tokens == [Token(TokenKind.TEXT, "Hello world")]

    def test_variable_between_text(self) -> None:
        tokens = tokenize("Hello {name}!")
        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.VARIABLE, TokenKind.TEXT]
        assert tokens[1].argument == "name"
        assert tokens[1].raw == "{name}"

    def test_css_braces_kept_as_text(self) -> None:
        source = "<style>body { color: red }</style>"
        tokens = tokenize(source)
        assert kinds(tokens) == [TokenKind.TEXT]
        assert tokens[0].raw == source

    def test_unterminated_tag_kept_as_text(self) -> None:
        tokens = tokenize("Hello {name")
        assert kinds(tokens) == [TokenKind.TEXT]
        assert tokens[0].raw == "Hello {name"

    def test_comment(self) -> None:
        tokens = tokenize("a{# note {name} #}b")
        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.COMMENT, TokenKind.TEXT]
        assert tokens[1].raw == "{# note {name} #}"

    def test_unterminated_comment_is_text(self) -> None:
        tokens = tokenize("{# never closed")
        assert kinds(tokens) == [TokenKind.TEXT]

    def test_close_delimiter_inside_quotes(self) -> None:
        tokens = tokenize("{if x == '}'}yes{endif}")
        assert kinds(tokens) == [TokenKind.IF, TokenKind.TEXT, TokenKind.ENDIF]
        assert tokens[0].argument == "x == '}'"

    def test_block_tags(self) -> None:
        tokens = tokenize("{for x in xs}{x}{endfor}")
        assert kinds(tokens) == [TokenKind.FOR, TokenKind.VARIABLE, TokenKind.ENDFOR]

    def test_locations(self) -> None:
        tokens = tokenize("line one\n  {name}")
        variable = tokens[1]
        assert (variable.line, variable.column) == (2, 3)
        assert (tokens[0].line, tokens[0].column) == (1, 1)

    def test_custom_delimiters(self) -> None:
        tokens = tokenize("a {{ name }} {b}", open_delimiter="{{", close_delimiter="}}")
        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.VARIABLE, TokenKind.TEXT]
        assert tokens[1].argument == "name"
        assert tokens[2].raw == " {b}"

    def test_custom_delimiter_comments(self) -> None:
        tokens = tokenize("<%# hidden #%>x", open_delimiter="<%", close_delimiter="%>")
        assert kinds(tokens) == [TokenKind.COMMENT, TokenKind.TEXT]

    def test_adjacent_literal_text_merged(self) -> None:
        tokens = tokenize("{ a } { b }")
        assert len(tokens) == 1


class TestLexer:
    def test_keyword_property(self) -> None:
        token = Lexer("{endif}").tokenize()[0]
        assert token.keyword == "endif"
