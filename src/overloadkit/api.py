"""
Functional interface over a process-wide registry and resolver.

Evaluators that manage a single overload universe can use these functions
instead of threading a HandlerRegistry and Resolver through their code.
Separate universes (e.g., in tests) should construct their own pair.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

from overloadkit.core.operators import OperatorKind
from overloadkit.core.profile import Handler, HandlerDescriptor
from overloadkit.core.registry import HandlerRegistry
from overloadkit.core.resolver import ResolvedHandler, Resolver
from overloadkit.core.resolver import invoke as _invoke

default_registry = HandlerRegistry()
default_resolver = Resolver(default_registry)


def register_handler(
    owner: Any,
    operator: OperatorKind | str,
    handler: Handler,
    mutating: bool = False,
) -> HandlerDescriptor:
    """Register a direct handler; raises DuplicateHandlerError on re-registration."""
    return default_registry.register_handler(owner, operator, handler, mutating)


def register_fallback(owner: Any, handler: Optional[Handler]) -> None:
    """Install a type's catch-all handler."""
    default_registry.register_fallback(owner, handler)


def set_fallback_enabled(owner: Any, enabled: bool) -> None:
    default_registry.set_fallback_enabled(owner, enabled)


def resolve(owner: Any, operator: OperatorKind | str) -> Optional[ResolvedHandler]:
    """Resolve an operator for a type; None when nothing applies."""
    return default_resolver.resolve(owner, operator)


def invoke(resolved: ResolvedHandler, operands: Sequence[Any], swapped: bool = False) -> Any:
    return _invoke(resolved, operands, swapped)
