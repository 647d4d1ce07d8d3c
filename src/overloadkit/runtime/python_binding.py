"""
Python special-method binding.

Lets ordinary Python expressions drive the resolver: for every operator a
class resolves directly or by derivation, the matching special method
(__add__, __radd__, __lt__, __str__, __iadd__, ...) is installed on the
class and forwards to the resolver.

Example:
    with registry.declare(Money) as profile:
        profile.register(OperatorKind.ADD, money_add)
        profile.register(OperatorKind.SPACESHIP, money_cmp)
    bind_python_operators(Money, resolver)

    Money(3) + Money(4)   # ADD handler
    Money(3) < Money(4)   # LT derived from SPACESHIP
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Optional

from overloadkit.core.binding import Binding
from overloadkit.core.operators import OperatorCategory, OperatorKind
from overloadkit.core.resolver import Resolver
from overloadkit.runtime.iterators import drain


def _binary_method(resolver: Resolver, operator: OperatorKind) -> Callable[..., Any]:
    def method(self: Any, other: Any) -> Any:
        return resolver.binary(operator, self, other)

    return method


def _reflected_method(resolver: Resolver, operator: OperatorKind) -> Callable[..., Any]:
    def method(self: Any, other: Any) -> Any:
        return resolver.binary(operator, other, self)

    return method


def _unary_method(resolver: Resolver, operator: OperatorKind) -> Callable[..., Any]:
    def method(self: Any) -> Any:
        return resolver.unary(operator, self)

    return method


def _assign_method(resolver: Resolver, operator: OperatorKind) -> Callable[..., Any]:
    def method(self: Any, other: Any) -> Any:
        binding = Binding(self)
        return resolver.assign(operator, binding, other)

    return method


def _str_method(resolver: Resolver) -> Callable[..., str]:
    def __str__(self: Any) -> str:
        result = resolver.unary(OperatorKind.STRINGIFY, self)
        if result is self:
            return object.__repr__(self)
        return result if isinstance(result, str) else resolver.natives.to_string(result)

    return __str__


def _float_method(resolver: Resolver) -> Callable[..., float]:
    def __float__(self: Any) -> float:
        return float(resolver.to_number(self))

    return __float__


def _bool_method(resolver: Resolver) -> Callable[..., bool]:
    def __bool__(self: Any) -> bool:
        return resolver.to_bool(self)

    return __bool__


def _iter_method(resolver: Resolver) -> Callable[..., Any]:
    def __iter__(self: Any) -> Any:
        return drain(resolver, self)

    return __iter__


def _call_method(resolver: Resolver) -> Callable[..., Any]:
    def __call__(self: Any, *args: Any, **kwargs: Any) -> Any:
        target = resolver.dereference(OperatorKind.DEREF_FUNCTION, self)
        if target is self:
            raise TypeError(f"'{type(self).__name__}' object is not callable")
        return target(*args, **kwargs)

    return __call__


_SPECIAL_BUILDERS: dict[OperatorKind, Callable[[Resolver], Callable[..., Any]]] = {
    OperatorKind.STRINGIFY: _str_method,
    OperatorKind.NUMIFY: _float_method,
    OperatorKind.BOOLIFY: _bool_method,
    OperatorKind.ITERATE: _iter_method,
    OperatorKind.DEREF_FUNCTION: _call_method,
}


def python_methods_for(resolver: Resolver, operator: OperatorKind) -> dict[str, Callable[..., Any]]:
    """Build the special methods that forward one operator to the resolver."""
    info = operator.info
    if info.python_magic is None:
        return {}

    if operator in _SPECIAL_BUILDERS:
        return {info.python_magic: _SPECIAL_BUILDERS[operator](resolver)}
    if info.category is OperatorCategory.ASSIGNMENT:
        return {info.python_magic: _assign_method(resolver, operator)}
    if not operator.is_binary:
        return {info.python_magic: _unary_method(resolver, operator)}

    methods = {info.python_magic: _binary_method(resolver, operator)}
    if info.python_reflected is not None:
        methods[info.python_reflected] = _reflected_method(resolver, operator)
    return methods


def bind_python_operators(
    cls: type,
    resolver: Resolver,
    operators: Optional[list[OperatorKind]] = None,
    overwrite: bool = False,
) -> list[str]:
    """
    Install special methods on a class for the operators it resolves.

    Args:
        cls: The class whose profile is registered with the resolver
        resolver: Resolver the installed methods forward to
        operators: Restrict binding to these operators (default: every
            operator the class resolves directly or by derivation)
        overwrite: Replace special methods the class defines itself

    Returns:
        Names of the installed methods, in catalog order
    """
    resolvable = resolver.resolvable_operators(cls)
    requested = list(resolvable) if operators is None else operators
    chosen = [op for op in requested if op in resolvable]

    installed = []
    for operator in chosen:
        for name, method in python_methods_for(resolver, operator).items():
            if not overwrite and name in cls.__dict__:
                continue
            method.__name__ = name
            method.__qualname__ = f"{cls.__qualname__}.{name}"
            setattr(cls, name, method)
            installed.append(name)
    return installed
