"""
Loose value coercion used by condition comparisons and functions.

Dump values mostly arrive as strings, so comparisons treat numeric strings
as numbers: "5" > 3 is true and "10" == "1e1" is true.
"""

import math
import re
from typing import Any

NUMERIC_STRING = re.compile(
    r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$"
)


def is_numeric(value: Any) -> bool:
    """Check whether a value is a number or a numeric string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and NUMERIC_STRING.match(value) is not None


def to_number(value: Any) -> int | float:
    """
    Convert a value to int or float.

    Raises:
        ValueError: If the value is a non-numeric string or a list
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and is_numeric(value):
        number = float(value)
        text = value.strip().lstrip("+-")
        if number.is_integer() and text.isdigit():
            return int(value)
        return number
    raise ValueError(f"A numeric value was expected, got {value!r}")


def to_int(value: Any) -> int:
    """Convert a value to int, truncating floats."""
    return int(to_number(value))


def to_bool(value: Any) -> bool:
    """
    Truthiness of a value.

    None, False, 0, 0.0, "", "0" and empty lists are false.
    """
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def to_string(value: Any) -> str:
    """Convert a value to its string form."""
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return format(value, ".14G")
    if isinstance(value, list):
        return "Array"
    return str(value)


def _sign(difference: int | float) -> int:
    return (difference > 0) - (difference < 0)


def _compare_plain(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def loose_compare(left: Any, right: Any) -> int:
    """
    Compare two values with loose typing rules.

    Returns:
        -1, 0 or 1
    """
    if left is None and isinstance(right, str):
        left = ""
    elif right is None and isinstance(left, str):
        right = ""

    if isinstance(left, bool) or isinstance(right, bool) or left is None or right is None:
        return _compare_plain(to_bool(left), to_bool(right))

    if isinstance(left, list) or isinstance(right, list):
        if not isinstance(left, list):
            return -1
        if not isinstance(right, list):
            return 1
        if len(left) != len(right):
            return _sign(len(left) - len(right))
        for left_item, right_item in zip(left, right):
            result = loose_compare(left_item, right_item)
            if result:
                return result
        return 0

    if is_numeric(left) and is_numeric(right):
        return _sign(to_number(left) - to_number(right))

    return _compare_plain(to_string(left), to_string(right))


def loose_equals(left: Any, right: Any) -> bool:
    """Loose equality (==)."""
    return loose_compare(left, right) == 0


def strict_equals(left: Any, right: Any) -> bool:
    """Strict equality (===): same type and same value."""
    return type(left) is type(right) and left == right
