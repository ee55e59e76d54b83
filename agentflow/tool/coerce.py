"""
Parameter Coercion

Adapts raw argument values sent by a model to a tool's declared types.

Rules:
- None, or a blank string for a non-string target, yields None
- A value that already has the target's runtime type passes through
- ANY passes every value through
- Otherwise the value is stringified, trimmed and parsed
- Temporal targets take ISO 8601 text, DECIMAL takes plain decimal text
- Targets without a parser (LIST, MAP) yield None ("could not adapt")
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable

from agentflow.errors import InvalidArgumentError
from agentflow.tool.parameter import ToolCallParameterType

_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")
_NUMBER_PATTERN = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")


def _parse_boolean(text: str) -> bool:
    lowered = text.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise InvalidArgumentError("Cannot convert to boolean", text=text)


def _parse_integer(text: str) -> int:
    # int() alone would accept "1_000" and non-ASCII digits
    if not _INTEGER_PATTERN.match(text):
        raise InvalidArgumentError("Cannot convert to integer", text=text)
    return int(text, 10)


def _parse_float(text: str) -> float:
    # float() alone would accept "1_000", "inf" and "nan"
    if not _NUMBER_PATTERN.match(text):
        raise InvalidArgumentError("Cannot convert to float", text=text)
    return float(text)


def _parse_decimal(text: str) -> Decimal:
    if not _NUMBER_PATTERN.match(text):
        raise InvalidArgumentError("Cannot convert to decimal", text=text)
    return Decimal(text)


def _iso_parser(parse: Callable[[str], Any], label: str) -> Callable[[str], Any]:
    def parser(text: str) -> Any:
        try:
            return parse(text)
        except ValueError as e:
            raise InvalidArgumentError(f"Cannot convert to {label}", text=text) from e

    return parser


_PARSERS: dict[ToolCallParameterType, Callable[[str], Any]] = {
    ToolCallParameterType.STRING: str,
    ToolCallParameterType.BOOLEAN: _parse_boolean,
    ToolCallParameterType.INTEGER: _parse_integer,
    ToolCallParameterType.LONG: _parse_integer,
    ToolCallParameterType.DOUBLE: _parse_float,
    ToolCallParameterType.FLOAT: _parse_float,
    ToolCallParameterType.DECIMAL: _parse_decimal,
    ToolCallParameterType.DATE: _iso_parser(date.fromisoformat, "date"),
    ToolCallParameterType.DATETIME: _iso_parser(datetime.fromisoformat, "datetime"),
    ToolCallParameterType.TIME: _iso_parser(time.fromisoformat, "time"),
}


def _satisfies(value: Any, target: ToolCallParameterType) -> bool:
    python_type = target.python_type
    if python_type is None:
        return False
    # bool is an int subclass; True must not pass as an integer
    if isinstance(value, bool) and python_type is not bool:
        return False
    return isinstance(value, python_type)


def coerce(value: Any, target: ToolCallParameterType) -> Any:
    """
    Coerce a raw value to the target parameter type.

    Args:
        value: Raw value from decoded tool-call arguments
        target: Declared parameter type

    Returns:
        The adapted value, or None when the value is absent or
        the target type has no parser

    Raises:
        InvalidArgumentError: If the text cannot be parsed as the target
    """
    if value is None:
        return None
    if isinstance(value, str) and target != ToolCallParameterType.STRING and not value.strip():
        return None
    if target == ToolCallParameterType.ANY:
        return value
    if _satisfies(value, target):
        return value

    text = str(value).strip()
    if not text:
        return None

    parser = _PARSERS.get(target)
    if parser is None:
        return None
    return parser(text)
