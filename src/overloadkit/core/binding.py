"""
Mutable operand bindings.

Mutating operators (increment, decrement and compound assignment) alter the
value bound to their receiver rather than merely returning a new value. The
evaluator hands such a receiver to the resolver as a Binding, a small cell
that stands for the variable, element or field holding the value.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Binding(Generic[T]):
    """
    A rebindable slot holding an operand's current value.

    Attributes:
        value: The currently bound value
        rebind_count: How many times the slot has been rebound
    """

    __slots__ = ("value", "rebind_count")

    def __init__(self, value: T) -> None:
        self.value = value
        self.rebind_count = 0

    def rebind(self, new_value: T) -> None:
        """Point the slot at a new value."""
        self.value = new_value
        self.rebind_count += 1

    def __repr__(self) -> str:
        return f"Binding({self.value!r})"


def write_back(
    binding: Binding[Any],
    new_value: Any,
    equal: Callable[[Any, Any], bool],
) -> bool:
    """
    Rebind a receiver only when its value actually changed.

    Args:
        binding: The receiver's slot
        new_value: The value computed by the pure handler
        equal: Equality used to decide whether the value changed

    Returns:
        True if the binding was rebound
    """
    old_value = binding.value
    if new_value is old_value or equal(old_value, new_value):
        return False
    binding.rebind(new_value)
    return True
