"""Tests for template function implementations and the registry."""

import datetime as dt
import hashlib

import pendulum
import pytest

from tessera.engine._functions import (
    CallSpec,
    CapitalizeFunction,
    DateFunction,
    DefaultFunction,
    FunctionRegistry,
    HashFunction,
    IsEmptyFunction,
    IsNumericFunction,
    JoinFunction,
    JsonFunction,
    KindCheckFunction,
    LengthFunction,
    LowerFunction,
    NumberFormatFunction,
    RoundFunction,
    TitleFunction,
    TrimFunction,
    TruncateFunction,
    UpperFunction,
    builtin_functions,
    call_function,
    create_function_registry,
    parse_call,
    split_arguments,
)
from tessera.engine._scope import Scope
from tessera.enums import ValueKind
from tessera.exceptions import (
    DisallowedFunctionError,
    ExpressionError,
    FunctionInvocationError,
    FunctionRegistrationError,
)


class TestSplitArguments:
    def test_empty(self) -> None:
        assert split_arguments("  ") == []

    def test_commas_inside_quotes_and_calls(self) -> None:
        assert split_arguments("a, 'x, y', f(b, c)") == ["a", "'x, y'", "f(b, c)"]

    def test_empty_argument_raises(self) -> None:
        with pytest.raises(ExpressionError, match="Empty argument"):
            _ = split_arguments("a,,b")

    def test_unbalanced_parentheses_raise(self) -> None:
        with pytest.raises(ExpressionError):
            _ = split_arguments("a)")
        with pytest.raises(ExpressionError):
            _ = split_arguments("f(a")

    def test_unterminated_string_raises(self) -> None:
        with pytest.raises(ExpressionError):
            _ = split_arguments("'abc")


class TestParseCall:
    def test_no_arguments(self) -> None:
        call = parse_call("now()")
        assert call == CallSpec(name="now", arguments=(), source="now()")

    def test_one_level_nesting(self) -> None:
        call = parse_call("upper(trim(name))")
        inner = call.arguments[0]
        assert isinstance(inner, CallSpec)
        assert inner.name == "trim"

    def test_two_levels_of_nesting_rejected(self) -> None:
        with pytest.raises(ExpressionError, match="nest only"):
            _ = parse_call("a(b(c(d)))")

    def test_expression_argument_rejected(self) -> None:
        with pytest.raises(ExpressionError, match="Expected a literal or path"):
            _ = parse_call("upper(a == b)")

    def test_not_a_call(self) -> None:
        with pytest.raises(ExpressionError, match="Not a function call"):
            _ = parse_call("upper")


class TestCaseFunctions:
    def test_upper_and_lower(self) -> None:
        assert UpperFunction()("abc") == "ABC"
        assert LowerFunction()("ABC") == "abc"

    def test_capitalize_leaves_rest(self) -> None:
        assert CapitalizeFunction()("hELLO world") == "HELLO world"
        assert CapitalizeFunction()("") == ""

    def test_title(self) -> None:
        assert TitleFunction()("hello big\tworld") == "Hello Big\tWorld"

    def test_non_strings_use_display_form(self) -> None:
        assert UpperFunction()(True) == "TRUE"
        assert UpperFunction()(None) == ""


class TestTrimFunction:
    def test_both_sides(self) -> None:
        assert TrimFunction()("  x  ") == "x"

    def test_left_with_characters(self) -> None:
        assert TrimFunction(side="left")("//path/", "/") == "path/"

    def test_right(self) -> None:
        assert TrimFunction(side="right")("end...", ".") == "end"


class TestNumericFunctions:
    def test_number_format_groups_thousands(self) -> None:
        assert NumberFormatFunction()(1234567) == "1,234,567"

    def test_number_format_decimals(self) -> None:
        assert NumberFormatFunction()(1234.5, 2) == "1,234.50"

    def test_number_format_rounds_half_up(self) -> None:
        assert NumberFormatFunction()(2.5) == "3"
        assert NumberFormatFunction()("0.125", 2) == "0.13"

    def test_number_format_custom_separators(self) -> None:
        assert NumberFormatFunction()(1234.5, 2, ",", ".") == "1.234,50"

    def test_number_format_rejects_text(self) -> None:
        with pytest.raises(ValueError, match="expects a number"):
            _ = NumberFormatFunction()("abc")

    def test_round(self) -> None:
        assert RoundFunction()(2.5) == 3
        assert RoundFunction()(-2.5) == -3
        assert RoundFunction()("3.14159", 2) == 3.14

    def test_round_to_integer_returns_int(self) -> None:
        assert isinstance(RoundFunction()(7.4), int)


class TestIntrospectionFunctions:
    def test_length(self) -> None:
        length = LengthFunction()
        assert length([1, 2]) == 2
        assert length("abc") == 3
        assert length(12345) == 5

    def test_kind_checks(self) -> None:
        is_array = KindCheckFunction(
            kinds=frozenset({ValueKind.SEQUENCE, ValueKind.MAPPING})
        )
        assert is_array([1]) is True
        assert is_array({"a": 1}) is True
        assert is_array("a") is False

    def test_is_numeric(self) -> None:
        assert IsNumericFunction()("12.5") is True
        assert IsNumericFunction()("12px") is False

    def test_is_empty(self) -> None:
        assert IsEmptyFunction()([]) is True
        assert IsEmptyFunction()("0") is False


class TestCollectionFunctions:
    def test_join_sequence(self) -> None:
        assert JoinFunction()(["a", 1, True], ", ") == "a, 1, true"

    def test_join_mapping_values(self) -> None:
        assert JoinFunction()({"x": "a", "y": "b"}, "-") == "a-b"

    def test_join_scalar(self) -> None:
        assert JoinFunction()("abc", ",") == "abc"

    def test_default(self) -> None:
        default = DefaultFunction()
        assert default(None, "anon") == "anon"
        assert default("", "anon") == "anon"
        assert default(0, "anon") == 0
        assert default("set", "anon") == "set"

    def test_truncate(self) -> None:
        truncate = TruncateFunction()
        assert truncate("Hello world", 5) == "Hello..."
        assert truncate("Hello", 5) == "Hello"
        assert truncate("Hello world", 5, "") == "Hello"

    def test_truncate_negative_length(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            _ = TruncateFunction()("abc", -1)


class TestDateFunction:
    def test_formats_iso_string(self) -> None:
        assert DateFunction()("2024-03-05T10:20:00") == "2024-03-05"

    def test_custom_format(self) -> None:
        assert DateFunction()("2024-03-05", "D MMMM YYYY") == "5 March 2024"

    def test_python_datetime(self) -> None:
        value = dt.datetime(2024, 1, 2, 3, 4, tzinfo=dt.UTC)
        assert DateFunction()(value, "YYYY-MM-DD HH:mm") == "2024-01-02 03:04"

    def test_python_date(self) -> None:
        assert DateFunction()(dt.date(2020, 2, 29)) == "2020-02-29"

    def test_epoch_timestamp(self) -> None:
        assert DateFunction()(0, "YYYY") == "1970"

    def test_now(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fixed = pendulum.datetime(2025, 6, 1, 12, tz="UTC")
        monkeypatch.setattr("pendulum.now", lambda *_args, **_kwargs: fixed)
        assert DateFunction()("now") == "2025-06-01"

    def test_unparseable(self) -> None:
        with pytest.raises(ValueError):  # noqa: PT011
            _ = DateFunction()("not a date")


class TestEncodingFunctions:
    def test_hash(self) -> None:
        expected = hashlib.sha256(b"abc").hexdigest()
        assert HashFunction(algorithm="sha256")("abc") == expected

    def test_json(self) -> None:
        assert JsonFunction()({"a": [1, None]}) == '{"a":[1,null]}'

    def test_json_falls_back_to_str(self) -> None:
        assert JsonFunction()({"d": dt.date(2024, 1, 1)}) == '{"d":"2024-01-01"}'


class TestFunctionRegistry:
    def test_builtins_registered(self) -> None:
        registry = create_function_registry()
        for name in ("upper", "ucfirst", "ucwords", "count", "md5", "json", "date"):
            assert name in registry

    def test_aliases_share_implementation(self) -> None:
        functions = builtin_functions()
        assert functions["ucfirst"] is functions["capitalize"]
        assert functions["count"] is functions["length"]

    def test_names_sorted(self) -> None:
        names = create_function_registry().names()
        assert names == sorted(names)

    def test_extra_functions_override_builtins(self) -> None:
        registry = create_function_registry({"upper": lambda value: "custom"})
        function = registry.get("upper")
        assert function is not None
        assert function("x") == "custom"

    def test_without_builtins(self) -> None:
        registry = create_function_registry({"shout": str.upper}, include_builtins=False)
        assert registry.names() == ["shout"]

    def test_unknown_name_returns_none(self) -> None:
        assert FunctionRegistry().get("eval") is None

    def test_invalid_name_rejected(self) -> None:
        with pytest.raises(FunctionRegistrationError):
            _ = FunctionRegistry(_functions={"not valid": str})

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(FunctionRegistrationError, match="not callable"):
            _ = FunctionRegistry(_functions={"value": 42})  # pyright: ignore[reportArgumentType]

    def test_all_functions_returns_copy(self) -> None:
        registry = create_function_registry()
        functions = registry.all_functions()
        functions.clear()
        assert "upper" in registry


class TestCallFunction:
    @pytest.fixture
    def scope(self) -> Scope:
        return Scope.from_bindings({"name": "  ada  ", "price": 1234.5})

    def test_resolves_path_arguments(self, scope: Scope) -> None:
        result = call_function(
            parse_call("number_format(price, 2)"), scope, create_function_registry()
        )
        assert result == "1,234.50"

    def test_nested_call(self, scope: Scope) -> None:
        result = call_function(
            parse_call("upper(trim(name))"), scope, create_function_registry()
        )
        assert result == "ADA"

    def test_disallowed_function(self, scope: Scope) -> None:
        with pytest.raises(DisallowedFunctionError) as exc_info:
            _ = call_function(parse_call("exec(name)"), scope, create_function_registry())
        assert exc_info.value.function == "exec"
        assert str(exc_info.value) == "Function 'exec' is not allowed"

    def test_failure_wrapped(self, scope: Scope) -> None:
        with pytest.raises(FunctionInvocationError) as exc_info:
            _ = call_function(
                parse_call("number_format(name)"), scope, create_function_registry()
            )
        assert exc_info.value.function == "number_format"
        assert isinstance(exc_info.value.cause, ValueError)

    def test_wrong_arity_wrapped(self, scope: Scope) -> None:
        with pytest.raises(FunctionInvocationError):
            _ = call_function(parse_call("upper()"), scope, create_function_registry())
