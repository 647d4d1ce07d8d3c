"""
Native conversion routines.

The conversion triangle (stringify, numify, boolify) synthesizes missing
conversions from a present one. The synthesized directions need the host's
own string and number handling; this module provides defaults, and an
evaluator can inject its own through NativeConversions.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

Number = Union[int, float]

# Leading decimal number, optionally signed, with optional fraction and exponent
_NUMBER_PREFIX = re.compile(
    r"""
    ^\s*
    (?P<number>
        [+-]?
        (?: \d+ (?: \.\d* )? | \.\d+ )
        (?: [eE][+-]?\d+ )?
    )
    """,
    re.VERBOSE,
)
_SPECIAL_FLOAT = re.compile(r"^\s*(?P<special>[+-]?(?:inf(?:inity)?|nan))", re.IGNORECASE)


def format_number(value: Number) -> str:
    """
    Format a number the way it is shown to users.

    Integral floats drop their fractional part, and other floats keep
    fifteen significant digits.

    Examples:
        >>> format_number(3)
        '3'
        >>> format_number(2.0)
        '2'
        >>> format_number(0.1 + 0.2)
        '0.3'
    """
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return format(value, ".15g")


def parse_number(text: str) -> Number:
    """
    Parse the leading number of a string.

    Anything after the numeric prefix is ignored; a string with no numeric
    prefix parses as 0.

    Examples:
        >>> parse_number("42")
        42
        >>> parse_number("  3.5 apples")
        3.5
        >>> parse_number("abc")
        0
    """
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        special = _SPECIAL_FLOAT.match(text)
        if special is not None:
            return float(special.group("special"))
        return 0
    literal = match.group("number")
    if any(ch in literal for ch in ".eE"):
        return float(literal)
    return int(literal)


def native_string(value: Any) -> str:
    """Convert a non-overloaded value to its string form."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    return str(value)


def native_number(value: Any) -> Number:
    """Convert a non-overloaded value to a number."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return parse_number(value)
    return float(value)


def native_bool(value: Any) -> bool:
    """Convert a non-overloaded value to a truth value."""
    return bool(value)


@dataclass(frozen=True, slots=True)
class NativeConversions:
    """
    The host's own conversion routines.

    Attributes:
        to_string: Formats a value that has no stringify handler
        to_number: Converts a value that has no numify handler
        to_bool: Tests a value that has no boolify handler
        parse: Reads a number from a string (stringify -> numify)
        format: Writes a number as a string (numify -> stringify)
    """
    to_string: Callable[[Any], str] = native_string
    to_number: Callable[[Any], Number] = native_number
    to_bool: Callable[[Any], bool] = native_bool
    parse: Callable[[str], Number] = parse_number
    format: Callable[[Number], str] = format_number


DEFAULT_NATIVES = NativeConversions()
