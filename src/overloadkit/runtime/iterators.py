"""
Iteration support for overloaded types.

An ITERATE handler returns one element per invocation, and EXHAUSTED once
its sequence has run out. The resolver never caches or replays elements:
every call re-invokes the handler, so whether a sequence can be restarted
depends only on the handler's own state.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from overloadkit.core.resolver import Resolver


class _Exhausted:
    """Marker returned by an iterate handler when it has no more elements."""

    __slots__ = ()
    _instance: Optional[_Exhausted] = None

    def __new__(cls) -> _Exhausted:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EXHAUSTED"

    def __reduce__(self) -> str:
        return "EXHAUSTED"


EXHAUSTED = _Exhausted()


def is_exhausted(value: Any) -> bool:
    """Check if an iterate result marks the end of the sequence."""
    return value is EXHAUSTED


def drain(resolver: Resolver, operand: Any, limit: Optional[int] = None) -> Iterator[Any]:
    """
    Yield successive iterate results until the handler reports exhaustion.

    Args:
        resolver: Resolver used to find the operand's ITERATE handler
        operand: The overloaded value being iterated
        limit: Stop after this many elements even if not exhausted

    Yields:
        Each element the handler produces

    Raises:
        UnsupportedOperatorError: If the operand's type cannot iterate
    """
    count = 0
    while limit is None or count < limit:
        item = resolver.iterate(operand)
        if item is EXHAUSTED:
            return
        yield item
        count += 1
