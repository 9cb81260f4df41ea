"""Semantic comparison of column default values.

Defaults are stored as strings. Two defaults are equal when they denote
the same value for the column's type, not when the strings match:

    >>> from schema_delta.schema.types import TypeCapabilities
    >>> caps = TypeCapabilities()
    >>> defaults_equal("DOUBLE", "10", "1e+1", caps)
    True
    >>> defaults_equal("TIMESTAMP", "2024-01-01 10:00:00.0", "2024-01-01T10:00:00", caps)
    True
    >>> defaults_equal("VARCHAR", "abc", "ABC", caps)
    False

Pure logic; strings that do not parse for their type compare verbatim.
"""

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from schema_delta.schema.types import TypeCapabilities, TypeCode

_TRUE_VALUES = {"true", "1", "t", "y", "yes"}
_FALSE_VALUES = {"false", "0", "f", "n", "no"}


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _parse_numeric(value: str) -> Decimal | None:
    try:
        return Decimal(_strip_quotes(value))
    except InvalidOperation:
        return None


def _parse_boolean(value: str) -> bool | None:
    lowered = _strip_quotes(value).lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def _parse_temporal(type_code: str, value: str) -> date | time | datetime | None:
    text = _strip_quotes(value)
    try:
        if type_code == TypeCode.DATE.value:
            return date.fromisoformat(text)
        if type_code == TypeCode.TIME.value:
            return time.fromisoformat(text)
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def normalize_default(type_code: str, value: str | None, type_info: TypeCapabilities) -> object:
    """Map a default string onto a comparable value for its type.

    Returns ``None`` for no default and the original string when the
    value cannot be interpreted for the type.
    """
    if value is None:
        return None

    code = type_info.canonical(type_code)
    category = type_info.category(code)

    parsed: object | None = None
    if category == "numeric":
        parsed = _parse_numeric(value)
    elif category == "boolean":
        parsed = _parse_boolean(value)
    elif category == "datetime":
        parsed = _parse_temporal(code, value)

    return value if parsed is None else parsed


def defaults_equal(
    type_code: str,
    current: str | None,
    desired: str | None,
    type_info: TypeCapabilities,
) -> bool:
    """Whether two default values are semantically the same for a type.

    Args:
        type_code: Canonical (or aliased) type of the column.
        current: Default in the current model.
        desired: Default in the desired model.
        type_info: Type capability lookup used to pick the comparison.

    Returns:
        True when both are absent or both denote the same value.
    """
    if current is None or desired is None:
        return current is None and desired is None
    if current == desired:
        return True
    return normalize_default(type_code, current, type_info) == normalize_default(
        type_code, desired, type_info
    )
