"""
Error types and error codes for the overload resolution core.

Every error raised by overloadkit derives from OverloadError, which carries
the offending operator and type name so that an evaluator can report
failures against the user's own declarations.

Error codes are organized by phase:
- E01xx: Registration errors
- E02xx: Derivation errors
- E03xx: Resolution and invocation errors
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """Centralized catalog of error codes."""

    # Registration errors: E01xx
    E0101 = "E0101"  # duplicate handler
    E0102 = "E0102"  # profile frozen
    E0103 = "E0103"  # unknown operator
    E0104 = "E0104"  # invalid handler

    # Derivation errors: E02xx
    E0201 = "E0201"  # derivation exhausted
    E0202 = "E0202"  # malformed derivation graph

    # Resolution errors: E03xx
    E0301 = "E0301"  # unsupported operator
    E0302 = "E0302"  # fallback handler failure
    E0303 = "E0303"  # bad dereference substitute


ERROR_DESCRIPTIONS: dict[str, str] = {
    ErrorCode.E0101: "duplicate handler",
    ErrorCode.E0102: "profile frozen",
    ErrorCode.E0103: "unknown operator",
    ErrorCode.E0104: "invalid handler",
    ErrorCode.E0201: "derivation exhausted",
    ErrorCode.E0202: "malformed derivation graph",
    ErrorCode.E0301: "unsupported operator",
    ErrorCode.E0302: "fallback handler failure",
    ErrorCode.E0303: "bad dereference substitute",
}


def _describe_operator(operator: Any) -> str:
    symbol = getattr(operator, "symbol", None)
    if symbol is not None:
        return symbol
    name = getattr(operator, "name", None)
    return name if name is not None else str(operator)


# =============================================================================
# Exceptions
# =============================================================================


class OverloadError(Exception):
    """Base exception for all overloadkit errors."""

    code: str = ""

    def __init__(
        self,
        message: str,
        operator: Any = None,
        type_name: Optional[str] = None,
    ) -> None:
        self.message = message
        self.operator = operator
        self.type_name = type_name
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.code:
            parts.append(f"[{self.code}]")

        parts.append(self.message)

        context = []
        if self.operator is not None:
            context.append(f"operator '{_describe_operator(self.operator)}'")
        if self.type_name:
            context.append(f"type '{self.type_name}'")
        if context:
            parts.append(f"({', '.join(context)})")

        return " ".join(parts)


class DuplicateHandlerError(OverloadError):
    """Raised when a type registers a second handler for the same operator."""

    code = ErrorCode.E0101


class ProfileFrozenError(OverloadError):
    """Raised when a profile is modified after its declaration phase ended."""

    code = ErrorCode.E0102


class UnknownOperatorError(OverloadError):
    """Raised when an operator name or key is not part of the catalog."""

    code = ErrorCode.E0103


class InvalidHandlerError(OverloadError):
    """Raised when a registered handler is not callable."""

    code = ErrorCode.E0104


class DerivationExhaustedError(OverloadError):
    """
    Raised by the derivation graph when no strategy can be satisfied.

    This is an internal signal: the resolver recovers from it by falling
    through to the catch-all handler or reporting absence. It never reaches
    the evaluator.
    """

    code = ErrorCode.E0201

    def __init__(
        self,
        message: str,
        operator: Any = None,
        type_name: Optional[str] = None,
        tried: Optional[list[str]] = None,
    ) -> None:
        self.tried = tried or []
        super().__init__(message, operator, type_name)


class DerivationGraphError(OverloadError):
    """Raised when a derivation rule table is malformed."""

    code = ErrorCode.E0202


class UnsupportedOperatorError(OverloadError):
    """
    Raised when no handler resolves for an operator use.

    This is raised by the evaluator-facing helpers only; plain resolution
    reports absence as None and leaves the decision to the caller.
    """

    code = ErrorCode.E0301


class FallbackHandlerError(OverloadError):
    """
    Raised by a type's catch-all handler to signal failure.

    The resolver propagates it unchanged and never inspects the payload.
    """

    code = ErrorCode.E0302

    def __init__(
        self,
        message: str,
        operator: Any = None,
        type_name: Optional[str] = None,
        payload: Any = None,
    ) -> None:
        self.payload = payload
        super().__init__(message, operator, type_name)


class DereferenceError(OverloadError):
    """Raised when a dereference handler returns a substitute of the wrong shape."""

    code = ErrorCode.E0303
