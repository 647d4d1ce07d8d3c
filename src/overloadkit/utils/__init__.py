"""
overloadkit Utilities Package.

Error types and error codes shared by the catalog, registry and resolver.
"""

from overloadkit.utils.errors import (
    ERROR_DESCRIPTIONS,
    DereferenceError,
    DerivationExhaustedError,
    DerivationGraphError,
    DuplicateHandlerError,
    ErrorCode,
    FallbackHandlerError,
    InvalidHandlerError,
    OverloadError,
    ProfileFrozenError,
    UnknownOperatorError,
    UnsupportedOperatorError,
)

__all__ = [
    # Error codes
    "ErrorCode",
    "ERROR_DESCRIPTIONS",
    # Errors
    "OverloadError",
    "DuplicateHandlerError",
    "ProfileFrozenError",
    "UnknownOperatorError",
    "InvalidHandlerError",
    "DerivationExhaustedError",
    "DerivationGraphError",
    "UnsupportedOperatorError",
    "FallbackHandlerError",
    "DereferenceError",
]
