"""Function gateway: the closed registry of callable template functions.

Templates may only call functions registered in a FunctionRegistry. Each
built-in is implemented as a frozen dataclass with a ``__call__`` method.

Note: Parameters are typed as ``object`` because templates can pass values of
any kind. Functions coerce what they can and raise ``ValueError`` or
``TypeError`` for input they cannot handle; the renderer reports that as a
function invocation diagnostic.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

import orjson
import pendulum

from tessera.enums import ValueKind
from tessera.exceptions import (
    DisallowedFunctionError,
    ExpressionError,
    FunctionError,
    FunctionInvocationError,
    FunctionRegistrationError,
)

from ._expression import ExpressionEvaluator, compile_operand
from ._values import is_number_like, is_truthy, kind_of, length_of, to_display, to_number

if TYPE_CHECKING:
    from ._scope import Scope

MAX_CALL_NESTING = 1

_CALL_PATTERN = re.compile(r"^([A-Za-z_]\w*)\((.*)\)$", re.DOTALL)
_NAME_PATTERN = re.compile(r"^[A-Za-z_]\w*$")
_WORD_START_PATTERN = re.compile(r"(^|\s)(\S)")


# =============================================================================
# Call parsing
# =============================================================================


@dataclass(frozen=True, slots=True)
class CallSpec:
    """A parsed function call.

    Attributes:
        name: Function name as written in the template.
        arguments: Compiled operands or nested calls, in order.
        source: The call text, e.g. ``upper(user.name)``.
    """

    name: str
    arguments: tuple[ExpressionEvaluator | CallSpec, ...]
    source: str


def split_arguments(text: str) -> list[str]:
    """Split an argument list on commas outside quotes and parentheses.

    Raises:
        ExpressionError: If an argument is empty or parentheses are unbalanced.
    """
    if not text.strip():
        return []

    arguments: list[str] = []
    current: list[str] = []
    quote: str | None = None
    depth = 0
    escaped = False
    for char in text:
        if quote is not None:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                msg = "Unbalanced parentheses in argument list"
                raise ExpressionError(msg, expression=text)
        elif char == "," and depth == 0:
            arguments.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    if quote is not None or depth != 0:
        msg = "Unterminated string or parenthesis in argument list"
        raise ExpressionError(msg, expression=text)
    arguments.append("".join(current).strip())

    if any(not argument for argument in arguments):
        msg = "Empty argument in function call"
        raise ExpressionError(msg, expression=text)
    return arguments


def parse_call(text: str, *, nesting: int = 0) -> CallSpec:
    """Parse function call text such as ``number_format(price, 2)``.

    Args:
        text: The call text.
        nesting: Current nesting level; calls may nest one level deep.

    Returns:
        The parsed CallSpec.

    Raises:
        ExpressionError: If the call or one of its arguments is malformed.
    """
    stripped = text.strip()
    match = _CALL_PATTERN.match(stripped)
    if match is None:
        msg = f"Not a function call: {stripped!r}"
        raise ExpressionError(msg, expression=text)

    name, argument_text = match.group(1), match.group(2)
    arguments: list[ExpressionEvaluator | CallSpec] = []
    for argument in split_arguments(argument_text):
        if _CALL_PATTERN.match(argument):
            if nesting >= MAX_CALL_NESTING:
                msg = f"Function calls may nest only {MAX_CALL_NESTING} level deep"
                raise ExpressionError(msg, expression=text)
            arguments.append(parse_call(argument, nesting=nesting + 1))
        else:
            arguments.append(compile_operand(argument))
    return CallSpec(name=name, arguments=tuple(arguments), source=stripped)


# =============================================================================
# Case functions
# =============================================================================


@dataclass(frozen=True, slots=True)
class UpperFunction:
    """Uppercase a value.

    Template usage: {upper(value)}
    """

    def __call__(self, value: object) -> str:
        return to_display(value).upper()


@dataclass(frozen=True, slots=True)
class LowerFunction:
    """Lowercase a value.

    Template usage: {lower(value)}
    """

    def __call__(self, value: object) -> str:
        return to_display(value).lower()


@dataclass(frozen=True, slots=True)
class CapitalizeFunction:
    """Uppercase the first character, leaving the rest unchanged.

    Template usage: {capitalize(value)} or {ucfirst(value)}
    """

    def __call__(self, value: object) -> str:
        text = to_display(value)
        return text[:1].upper() + text[1:]


@dataclass(frozen=True, slots=True)
class TitleFunction:
    """Uppercase the first character of every whitespace-separated word.

    Template usage: {title(value)} or {ucwords(value)}
    """

    def __call__(self, value: object) -> str:
        return _WORD_START_PATTERN.sub(
            lambda match: match.group(1) + match.group(2).upper(), to_display(value)
        )


# =============================================================================
# Trimming functions
# =============================================================================


@dataclass(frozen=True, slots=True)
class TrimFunction:
    """Strip characters from one or both ends of a value.

    Template usage: {trim(value)}, {ltrim(value, "/")}, {rtrim(value, ".")}

    Attributes:
        side: ``both``, ``left`` or ``right``.
    """

    side: str = "both"

    def __call__(self, value: object, characters: object = None) -> str:
        text = to_display(value)
        chars = None if characters is None else to_display(characters)
        if self.side == "left":
            return text.lstrip(chars)
        if self.side == "right":
            return text.rstrip(chars)
        return text.strip(chars)


# =============================================================================
# Numeric functions
# =============================================================================


def _require_number(value: object, function: str) -> float:
    number = to_number(value)
    if number is None:
        msg = f"{function}() expects a number, got {to_display(value)!r}"
        raise ValueError(msg)
    return number


def _require_int(value: object, function: str) -> int:
    return int(_require_number(value, function))


@dataclass(frozen=True, slots=True)
class NumberFormatFunction:
    """Format a number with grouped thousands.

    Template usage: {number_format(price, 2)}, {number_format(n, 2, ",", ".")}
    """

    def __call__(
        self,
        value: object,
        decimals: object = 0,
        decimal_point: object = ".",
        thousands_separator: object = ",",
    ) -> str:
        number = _require_number(value, "number_format")
        places = max(_require_int(decimals, "number_format"), 0)
        rounded = Decimal(str(number)).quantize(
            Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
        )
        formatted = f"{rounded:,.{places}f}"
        integer, _, fraction = formatted.partition(".")
        integer = integer.replace(",", to_display(thousands_separator))
        if not fraction:
            return integer
        return integer + to_display(decimal_point) + fraction


@dataclass(frozen=True, slots=True)
class RoundFunction:
    """Round a number half away from zero.

    Template usage: {round(value)}, {round(value, 2)}
    """

    def __call__(self, value: object, digits: object = 0) -> int | float:
        number = _require_number(value, "round")
        places = _require_int(digits, "round")
        rounded = Decimal(str(number)).quantize(
            Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
        )
        if places <= 0:
            return int(rounded)
        return float(rounded)


# =============================================================================
# Introspection functions
# =============================================================================


@dataclass(frozen=True, slots=True)
class LengthFunction:
    """Count elements of a container or characters of a string.

    Template usage: {length(items)} or {count(items)}
    """

    def __call__(self, value: object) -> int:
        length = length_of(value)
        if length is None:
            return len(to_display(value))
        return length


@dataclass(frozen=True, slots=True)
class KindCheckFunction:
    """Check whether a value is of one of the given kinds.

    Template usage: {is_array(value)}, {is_string(value)}, {is_bool(value)},
    {is_null(value)}
    """

    kinds: frozenset[ValueKind]

    def __call__(self, value: object) -> bool:
        return kind_of(value) in self.kinds


@dataclass(frozen=True, slots=True)
class IsNumericFunction:
    """Check whether a value is a number or a numeric string.

    Template usage: {is_numeric(value)}
    """

    def __call__(self, value: object) -> bool:
        return is_number_like(value)


@dataclass(frozen=True, slots=True)
class IsEmptyFunction:
    """Check whether a value is falsy under template truthiness.

    Template usage: {is_empty(value)}
    """

    def __call__(self, value: object) -> bool:
        return not is_truthy(value)


# =============================================================================
# String and collection functions
# =============================================================================


@dataclass(frozen=True, slots=True)
class JoinFunction:
    """Join the elements of a sequence (or the values of a mapping).

    Template usage: {join(tags, ", ")}
    """

    def __call__(self, value: object, separator: object = "") -> str:
        kind = kind_of(value)
        if kind is ValueKind.MAPPING and isinstance(value, Mapping):
            items = list(value.values())
        elif kind is ValueKind.SEQUENCE:
            items = list(value)  # pyright: ignore[reportArgumentType]
        else:
            return to_display(value)
        return to_display(separator).join(to_display(item) for item in items)


@dataclass(frozen=True, slots=True)
class DefaultFunction:
    """Substitute a fallback for null or empty-string values.

    Template usage: {default(user.nickname, "anonymous")}
    """

    def __call__(self, value: object, fallback: object = "") -> object:
        if value is None or value == "":
            return fallback
        return value


@dataclass(frozen=True, slots=True)
class TruncateFunction:
    """Cut text to a number of characters, appending a suffix when cut.

    Template usage: {truncate(summary, 80)}, {truncate(summary, 80, "")}
    """

    def __call__(self, value: object, length: object, suffix: object = "...") -> str:
        text = to_display(value)
        limit = _require_int(length, "truncate")
        if limit < 0:
            msg = f"truncate() length must be non-negative, got {limit}"
            raise ValueError(msg)
        if len(text) <= limit:
            return text
        return text[:limit] + to_display(suffix)


# =============================================================================
# Date, hashing and encoding functions
# =============================================================================


def _to_datetime(value: object) -> pendulum.DateTime | pendulum.Date:
    if isinstance(value, dt.datetime):
        return pendulum.instance(value)
    if isinstance(value, dt.date):
        return pendulum.date(value.year, value.month, value.day)
    if is_number_like(value):
        return pendulum.from_timestamp(_require_number(value, "date"))
    if isinstance(value, str):
        if value.strip().lower() == "now":
            return pendulum.now()
        parsed = pendulum.parse(value)
        # pendulum.parse can also return Time or Duration
        if isinstance(parsed, pendulum.DateTime | pendulum.Date):
            return parsed
    msg = f"date() cannot interpret {to_display(value)!r} as a date"
    raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class DateFunction:
    """Format a date, datetime, ISO string or epoch timestamp.

    Template usage: {date(created_at)}, {date(created_at, "D MMMM YYYY")}

    Format tokens are pendulum's (``YYYY``, ``MM``, ``DD``, ``HH``, ...).
    """

    def __call__(self, value: object, fmt: object = "YYYY-MM-DD") -> str:
        return _to_datetime(value).format(to_display(fmt))


@dataclass(frozen=True, slots=True)
class HashFunction:
    """Hex digest of the display form of a value.

    Template usage: {md5(email)}, {sha1(value)}, {sha256(value)}
    """

    algorithm: str

    def __call__(self, value: object) -> str:
        return hashlib.new(self.algorithm, to_display(value).encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class JsonFunction:
    """Encode a value as JSON.

    Template usage: {json(settings)}
    """

    def __call__(self, value: object) -> str:
        return orjson.dumps(value, default=str).decode("utf-8")


# =============================================================================
# Registry
# =============================================================================


@dataclass(frozen=True, slots=True)
class FunctionRegistry:
    """Registry of functions callable from templates.

    Names not in the registry are rejected at call time; there is no fallback
    to Python builtins or module attributes.
    """

    _functions: dict[str, Callable[..., object]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, function in self._functions.items():
            if not isinstance(name, str) or _NAME_PATTERN.match(name) is None:
                msg = f"Invalid function name: {name!r}"
                raise FunctionRegistrationError(msg, function=str(name))
            if not callable(function):
                msg = f"Function {name!r} is not callable"
                raise FunctionRegistrationError(msg, function=name)

    def get(self, name: str) -> Callable[..., object] | None:
        """Get a function by name.

        Returns:
            The function callable, or None if the name is not allow-listed.
        """
        return self._functions.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def names(self) -> list[str]:
        """Return the registered names, sorted."""
        return sorted(self._functions)

    def all_functions(self) -> dict[str, Callable[..., object]]:
        """Get all registered functions.

        Returns:
            A copy of the function registry dictionary.
        """
        return dict(self._functions)


def builtin_functions() -> dict[str, Callable[..., object]]:
    """Return the built-in allow-list, keyed by template name."""
    capitalize = CapitalizeFunction()
    title = TitleFunction()
    length = LengthFunction()
    return {
        # Case
        "upper": UpperFunction(),
        "lower": LowerFunction(),
        "capitalize": capitalize,
        "ucfirst": capitalize,
        "title": title,
        "ucwords": title,
        # Trimming
        "trim": TrimFunction(),
        "ltrim": TrimFunction(side="left"),
        "rtrim": TrimFunction(side="right"),
        # Numeric
        "number_format": NumberFormatFunction(),
        "round": RoundFunction(),
        # Introspection
        "length": length,
        "count": length,
        "is_array": KindCheckFunction(
            kinds=frozenset({ValueKind.SEQUENCE, ValueKind.MAPPING})
        ),
        "is_string": KindCheckFunction(kinds=frozenset({ValueKind.STRING})),
        "is_numeric": IsNumericFunction(),
        "is_bool": KindCheckFunction(kinds=frozenset({ValueKind.BOOL})),
        "is_null": KindCheckFunction(kinds=frozenset({ValueKind.NULL})),
        "is_empty": IsEmptyFunction(),
        # Strings and collections
        "join": JoinFunction(),
        "default": DefaultFunction(),
        "truncate": TruncateFunction(),
        # Dates, hashing and encoding
        "date": DateFunction(),
        "md5": HashFunction(algorithm="md5"),
        "sha1": HashFunction(algorithm="sha1"),
        "sha256": HashFunction(algorithm="sha256"),
        "json": JsonFunction(),
    }


def create_function_registry(
    extra: Mapping[str, Callable[..., object]] | None = None,
    *,
    include_builtins: bool = True,
) -> FunctionRegistry:
    """Create a registry with the built-in template functions.

    Args:
        extra: Additional functions to allow-list. Entries override built-ins
            of the same name.
        include_builtins: Start from the built-in allow-list. When False only
            ``extra`` is registered.

    Returns:
        A validated FunctionRegistry.

    Raises:
        FunctionRegistrationError: If a name is not an identifier or a value
            is not callable.
    """
    functions: dict[str, Callable[..., object]] = (
        builtin_functions() if include_builtins else {}
    )
    if extra:
        functions.update(extra)
    return FunctionRegistry(_functions=functions)


# =============================================================================
# Invocation
# =============================================================================


def _argument_value(
    argument: ExpressionEvaluator | CallSpec, scope: Scope, registry: FunctionRegistry
) -> object:
    if isinstance(argument, CallSpec):
        return call_function(argument, scope, registry)
    return argument.value(scope)


def call_function(call: CallSpec, scope: Scope, registry: FunctionRegistry) -> object:
    """Invoke an allow-listed function with arguments resolved from a scope.

    Args:
        call: The parsed call.
        scope: Scope used to resolve path arguments.
        registry: The allow-list.

    Returns:
        Whatever the function returns.

    Raises:
        DisallowedFunctionError: If the name is not registered.
        FunctionInvocationError: If the function raises.
    """
    function = registry.get(call.name)
    if function is None:
        msg = f"Function '{call.name}' is not allowed"
        raise DisallowedFunctionError(msg, function=call.name)

    arguments = [_argument_value(argument, scope, registry) for argument in call.arguments]
    try:
        return function(*arguments)
    except FunctionError:
        raise
    except Exception as e:  # noqa: BLE001
        msg = f"Function '{call.name}' failed: {e}"
        raise FunctionInvocationError(msg, function=call.name, cause=e) from e
