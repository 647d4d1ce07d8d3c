"""
Handler descriptors and per-type overload profiles.

A TypeOverloadProfile is the set of operator handlers one type declares,
together with its catch-all configuration. Profiles are built during a
type's declaration phase and frozen before their first use; a frozen
profile is shared read-only by every resolution for that type.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from overloadkit.core.operators import OperatorCategory, OperatorKind
from overloadkit.utils.errors import (
    DuplicateHandlerError,
    InvalidHandlerError,
    ProfileFrozenError,
    UnknownOperatorError,
)

logger = logging.getLogger("overloadkit.profile")

Handler = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class HandlerDescriptor:
    """
    A handler bound to one operator.

    Calling conventions:
        unary:     func(operand)
        binary:    func(operand, other, swapped)
        catch-all: func(operand, other, swapped, operator)

    Attributes:
        operator: The operator this handler implements
        func: The user callable
        mutating: Whether the handler alters its receiver in place
    """
    operator: OperatorKind
    func: Handler
    mutating: bool = False

    def __repr__(self) -> str:
        tag = "mutating" if self.mutating else "pure"
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"HandlerDescriptor({self.operator.name}, {name}, {tag})"


def _type_name(owner: Any) -> str:
    return getattr(owner, "__qualname__", None) or str(owner)


class TypeOverloadProfile:
    """
    The overload declarations of a single type.

    Keys are unique: a type owns at most one direct handler per operator.
    Re-registration must go through replace(), never a silent overwrite.
    """

    def __init__(self, owner: Any) -> None:
        self.owner = owner
        self._handlers: dict[OperatorKind, HandlerDescriptor] = {}
        self.fallback_handler: Optional[Handler] = None
        self.fallback_enabled: bool = True
        self.derivation_enabled: bool = True
        self._frozen = False

    @property
    def type_name(self) -> str:
        return _type_name(self.owner)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def handlers(self) -> Mapping[OperatorKind, HandlerDescriptor]:
        return dict(self._handlers)

    # -------------------------------------------------------------------------
    # Declaration phase
    # -------------------------------------------------------------------------

    def _check_mutable(self, operator: Optional[OperatorKind] = None) -> None:
        if self._frozen:
            raise ProfileFrozenError(
                "profile can no longer be modified after its declaration phase",
                operator,
                self.type_name,
            )

    def _make_descriptor(self, operator: Any, handler: Handler, mutating: bool) -> HandlerDescriptor:
        if not isinstance(operator, OperatorKind):
            raise UnknownOperatorError(
                f"'{operator}' is not an overridable operator", type_name=self.type_name
            )
        if not callable(handler):
            raise InvalidHandlerError(
                f"handler must be callable, got {type(handler).__name__}",
                operator,
                self.type_name,
            )
        return HandlerDescriptor(operator=operator, func=handler, mutating=mutating)

    def register(self, operator: OperatorKind, handler: Handler, mutating: bool = False) -> HandlerDescriptor:
        """
        Add a direct handler for an operator.

        Args:
            operator: The operator being overloaded
            handler: The callable implementing it
            mutating: Whether the handler performs its own in-place update

        Returns:
            The stored descriptor

        Raises:
            DuplicateHandlerError: If the operator already has a handler
            ProfileFrozenError: If the declaration phase has ended
        """
        descriptor = self._make_descriptor(operator, handler, mutating)
        self._check_mutable(operator)
        if operator in self._handlers:
            raise DuplicateHandlerError(
                "a handler is already registered; use replace() to overwrite it",
                operator,
                self.type_name,
            )
        self._handlers[operator] = descriptor
        logger.debug("registered %s for %s", descriptor, self.type_name)
        return descriptor

    def replace(self, operator: OperatorKind, handler: Handler, mutating: bool = False) -> Optional[HandlerDescriptor]:
        """Explicitly overwrite a handler, returning the previous one if any."""
        descriptor = self._make_descriptor(operator, handler, mutating)
        self._check_mutable(operator)
        previous = self._handlers.get(operator)
        self._handlers[operator] = descriptor
        logger.debug("replaced %s for %s", descriptor, self.type_name)
        return previous

    def set_fallback(self, handler: Optional[Handler]) -> None:
        """Install (or clear, with None) the catch-all handler."""
        self._check_mutable()
        if handler is not None and not callable(handler):
            raise InvalidHandlerError(
                f"fallback handler must be callable, got {type(handler).__name__}",
                type_name=self.type_name,
            )
        self.fallback_handler = handler

    def set_fallback_enabled(self, enabled: bool) -> None:
        self._check_mutable()
        self.fallback_enabled = bool(enabled)

    def set_derivation_enabled(self, enabled: bool) -> None:
        self._check_mutable()
        self.derivation_enabled = bool(enabled)

    def snapshot(self) -> tuple[Any, ...]:
        """Capture the declaration state, for restore()."""
        return (
            dict(self._handlers),
            self.fallback_handler,
            self.fallback_enabled,
            self.derivation_enabled,
        )

    def restore(self, state: tuple[Any, ...]) -> None:
        """Roll the declaration state back to a snapshot."""
        handlers, self.fallback_handler, self.fallback_enabled, self.derivation_enabled = state
        self._handlers = dict(handlers)

    def freeze(self) -> None:
        """End the declaration phase. Idempotent."""
        if not self._frozen:
            self._frozen = True
            logger.debug(
                "froze profile for %s with %d handler(s)", self.type_name, len(self._handlers)
            )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, operator: OperatorKind) -> Optional[HandlerDescriptor]:
        """Get the direct handler for an operator. Never derives."""
        return self._handlers.get(operator)

    def has_direct(self, operator: OperatorKind) -> bool:
        return operator in self._handlers

    def has_all(self, operators: tuple[OperatorKind, ...]) -> bool:
        return all(op in self._handlers for op in operators)

    def operators(self) -> list[OperatorKind]:
        return list(self._handlers)

    def capabilities(self) -> set[OperatorCategory]:
        """Categories for which the type declares at least one handler."""
        return {op.category for op in self._handlers}

    def supports(self, category: OperatorCategory) -> bool:
        return any(op.category is category for op in self._handlers)

    @property
    def catch_all_active(self) -> bool:
        return self.fallback_enabled and self.fallback_handler is not None

    def __contains__(self, operator: object) -> bool:
        return operator in self._handlers

    def __iter__(self) -> Iterator[HandlerDescriptor]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        ops = ", ".join(op.name for op in self._handlers)
        state = "frozen" if self._frozen else "open"
        return f"TypeOverloadProfile({self.type_name}, [{ops}], {state})"
