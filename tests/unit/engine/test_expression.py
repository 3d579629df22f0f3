"""Tests for condition expression compilation and evaluation."""

import pytest

from tessera.engine._expression import (
    AllOf,
    AnyOf,
    Comparison,
    ExpressionEvaluator,
    Literal,
    Not,
    PathReference,
    compile_expression,
    compile_operand,
    evaluate_condition,
    unquote,
)
from tessera.engine._scope import Scope
from tessera.exceptions import ExpressionError


@pytest.fixture
def scope() -> Scope:
    return Scope.from_bindings(
        {
            "user": {"name": "John", "age": 26, "role": "admin", "tags": []},
            "count": "5",
            "active": True,
            "empty": "",
        }
    )


class TestCompile:
    def test_single_path(self) -> None:
        evaluator = ExpressionEvaluator.compile("user.name")
        assert isinstance(evaluator.root, PathReference)
        assert evaluator.root.segments == ("user", "name")
        assert evaluator.is_operand

    def test_literals(self) -> None:
        assert compile_expression("'x'").root == Literal("x")
        assert compile_expression("42").root == Literal(42)
        assert compile_expression("true").root == Literal(True)
        assert compile_expression("null").root == Literal(None)

    def test_and_binds_tighter_than_or(self) -> None:
        root = compile_expression("a || b && c").root
        assert isinstance(root, AnyOf)
        assert isinstance(root.terms[1], AllOf)

    def test_not(self) -> None:
        assert isinstance(compile_expression("!a").root, Not)

    def test_comparison(self) -> None:
        root = compile_expression("user.age >= 18").root
        assert isinstance(root, Comparison)
        assert root.operator == ">="

    def test_compilation_is_cached(self) -> None:
        assert compile_expression("user.age > 1") is compile_expression("user.age > 1")

    @pytest.mark.parametrize(
        "expression",
        ["", "   ", "a ==", "(a", "a b", "== 1", "a && ", "a $ b", "a)"],
    )
    def test_invalid_expressions_raise(self, expression: str) -> None:
        with pytest.raises(ExpressionError) as exc_info:
            _ = ExpressionEvaluator.compile(expression)
        assert exc_info.value.expression == expression


class TestEvaluate:
    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("user.age == 26", True),
            ("user.age == '26'", True),
            ("user.age === 26", True),
            ("count === 5", False),
            ("count == 5", True),
            ("count !== 5", True),
            ("user.role != 'admin'", False),
            ("user.age > 18 && user.role == 'admin'", True),
            ("user.age < 18 || active", True),
            ("!(user.age > 18)", False),
            ("!user.tags", True),
            ("empty", False),
            ("missing", False),
            ("missing == null", True),
            ("3 > '2'", True),
            ("'abc' > '2'", False),
            ("'5' == 5", True),
            ("'5' === 5", False),
        ],
    )
    def test_conditions(self, scope: Scope, expression: str, expected: bool) -> None:  # noqa: FBT001
        assert evaluate_condition(expression, scope) is expected

    def test_value_returns_operand(self, scope: Scope) -> None:
        assert compile_expression("user.name").value(scope) == "John"

    def test_escaped_quotes_in_strings(self, scope: Scope) -> None:
        assert compile_expression(r"'it\'s'").value(scope) == "it's"


class TestCompileOperand:
    def test_accepts_path_and_literal(self) -> None:
        assert compile_operand("user.name").is_operand
        assert compile_operand("'text'").is_operand

    def test_rejects_expression(self) -> None:
        with pytest.raises(ExpressionError, match="Expected a literal or path"):
            _ = compile_operand("a == b")


class TestUnquote:
    def test_strips_quotes(self) -> None:
        assert unquote('"hello"') == "hello"

    def test_resolves_escapes(self) -> None:
        assert unquote(r'"say \"hi\""') == 'say "hi"'
