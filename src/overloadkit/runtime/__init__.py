"""
overloadkit Runtime Package.

Native conversion routines, iteration support, and the adapter that binds
resolved handlers onto Python classes (overloadkit.runtime.python_binding).
"""

from overloadkit.runtime.conversions import (
    DEFAULT_NATIVES,
    NativeConversions,
    format_number,
    native_bool,
    native_number,
    native_string,
    parse_number,
)
from overloadkit.runtime.iterators import EXHAUSTED, drain, is_exhausted

__all__ = [
    "NativeConversions",
    "DEFAULT_NATIVES",
    "format_number",
    "parse_number",
    "native_string",
    "native_number",
    "native_bool",
    "EXHAUSTED",
    "is_exhausted",
    "drain",
]
