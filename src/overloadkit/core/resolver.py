"""
Overload Resolver.

The resolver answers, for every operator use, which handler applies:

1. A direct handler from the type's profile
2. A handler derived from the type's direct handlers (see derivation.py)
3. The type's catch-all handler, if it has one and fallback is enabled
4. Nothing: resolve() returns None and the evaluator decides what to do

Mutating operators (++, --, compound assignment) take a Binding as their
receiver. When such an operator is served by a pure handler, whether
derived, registered without the mutating flag, or a catch-all, the resolver
performs the write-back itself and rebinds only when the value changed.
Handlers registered as mutating update their receiver themselves and are
never written back a second time.

Binary operators pick their receiver per call: the left operand's type is
tried first, then the right operand's with swapped=True.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional

from overloadkit.core.binding import Binding, write_back
from overloadkit.core.config import ResolverConfig
from overloadkit.core.derivation import DEFAULT_GRAPH, DerivationGraph
from overloadkit.core.operators import OperatorCategory, OperatorKind, lookup_operator
from overloadkit.core.profile import HandlerDescriptor, TypeOverloadProfile
from overloadkit.core.registry import HandlerRegistry
from overloadkit.runtime.conversions import DEFAULT_NATIVES, NativeConversions
from overloadkit.utils.errors import (
    DereferenceError,
    DerivationExhaustedError,
    UnsupportedOperatorError,
)

logger = logging.getLogger("overloadkit.resolver")


class Origin(Enum):
    """Where a resolved handler came from."""
    DIRECT = "direct"
    DERIVED = "derived"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class ResolvedHandler:
    """
    An executable handler for one operator on one type.

    Attributes:
        operator: The operator it implements
        origin: Direct, derived or catch-all
        descriptor: The handler actually invoked
        owner: The type it was resolved for
        strategy: Name of the derivation strategy, for derived handlers
    """
    operator: OperatorKind
    origin: Origin
    descriptor: HandlerDescriptor
    owner: Any
    strategy: Optional[str] = None
    call: Callable[[Sequence[Any], bool], Any] = field(default=None, repr=False, compare=False)

    @property
    def mutating(self) -> bool:
        return self.operator.is_mutating

    def invoke(self, operands: Sequence[Any], swapped: bool = False) -> Any:
        """
        Run the handler.

        Args:
            operands: (receiver,) for unary operators, (receiver, other) for
                binary ones. The receiver of a mutating operator is a Binding.
            swapped: Whether the receiver was the right operand

        Returns:
            The operator's result; for mutating operators, the receiver's
            value after the operation
        """
        expected = self.operator.arity.value
        if len(operands) != expected:
            raise TypeError(
                f"operator '{self.operator.symbol}' takes {expected} operand(s), got {len(operands)}"
            )
        return self.call(operands, swapped)

    def __call__(self, *operands: Any, swapped: bool = False) -> Any:
        return self.invoke(operands, swapped)


def invoke(resolved: ResolvedHandler, operands: Sequence[Any], swapped: bool = False) -> Any:
    """Run a resolved handler on its operands."""
    return resolved.invoke(operands, swapped)


class _Resolution(NamedTuple):
    own: Optional[ResolvedHandler]
    fallback: Optional[ResolvedHandler]


class Resolver:
    """
    Resolves operators against a registry's profiles.

    The resolver also serves as the derivation context: derived handlers call
    back into to_string/to_number/to_bool to convert operands of other types.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        graph: Optional[DerivationGraph] = None,
        config: Optional[ResolverConfig] = None,
        natives: Optional[NativeConversions] = None,
    ) -> None:
        self.registry = registry
        self.config = config or ResolverConfig()
        graph = graph or DEFAULT_GRAPH
        if self.config.abs_strategy_order is not None:
            graph = graph.reordered(OperatorKind.ABS, self.config.abs_strategy_order)
        self.graph = graph
        self.natives = natives or DEFAULT_NATIVES
        self._cache: dict[tuple[Any, OperatorKind], tuple[TypeOverloadProfile, _Resolution]] = {}

    @property
    def increment_step(self) -> int:
        return self.config.increment_step

    def clear_cache(self) -> None:
        self._cache.clear()

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(self, owner: Any, operator: OperatorKind | str) -> Optional[ResolvedHandler]:
        """
        Find the handler for an operator on a type.

        Args:
            owner: The operand's type
            operator: The operator, as a kind or a symbol

        Returns:
            The resolved handler, or None if the type cannot handle it
        """
        parts = self._resolve_parts(owner, lookup_operator(operator))
        return parts.own or parts.fallback

    def resolve_own(self, owner: Any, operator: OperatorKind | str) -> Optional[ResolvedHandler]:
        """Like resolve(), but ignoring the catch-all handler."""
        return self._resolve_parts(owner, lookup_operator(operator)).own

    def resolve_binary(
        self, operator: OperatorKind | str, left: Any, right: Any
    ) -> Optional[tuple[ResolvedHandler, bool]]:
        """
        Choose the receiver of a binary operator.

        The left operand's type is tried first, then the right operand's;
        catch-all handlers are considered only after neither type can handle
        the operator directly or by derivation.

        Returns:
            (handler, swapped), or None if neither operand's type applies
        """
        operator = lookup_operator(operator)
        left_parts = self._resolve_parts(type(left), operator)
        if left_parts.own is not None:
            return left_parts.own, False
        right_parts = self._resolve_parts(type(right), operator)
        if right_parts.own is not None:
            return right_parts.own, True
        if left_parts.fallback is not None:
            return left_parts.fallback, False
        if right_parts.fallback is not None:
            return right_parts.fallback, True
        return None

    def resolvable_operators(self, owner: Any) -> dict[OperatorKind, ResolvedHandler]:
        """Every operator the type handles directly or by derivation."""
        found = {}
        for operator in OperatorKind:
            resolved = self.resolve_own(owner, operator)
            if resolved is not None:
                found[operator] = resolved
        return found

    def _resolve_parts(self, owner: Any, operator: OperatorKind) -> _Resolution:
        profile = self.registry.profile_for(owner)
        if profile is None:
            return _Resolution(None, None)

        # A subclass declared after its base was resolved gets its own profile
        key = (owner, operator)
        cached = self._cache.get(key)
        if cached is not None and cached[0] is profile:
            return cached[1]

        if self.config.freeze_on_resolve:
            profile.freeze()

        parts = _Resolution(
            self._resolve_own(owner, profile, operator),
            self._resolve_fallback(owner, profile, operator),
        )
        if self.config.cache_resolutions and profile.frozen:
            self._cache[key] = (profile, parts)
        return parts

    def _resolve_own(
        self, owner: Any, profile: TypeOverloadProfile, operator: OperatorKind
    ) -> Optional[ResolvedHandler]:
        descriptor = profile.lookup(operator)
        if descriptor is not None:
            return self._bind(owner, profile, descriptor, Origin.DIRECT)

        if not profile.derivation_enabled:
            return None
        try:
            strategy, descriptor = self.graph.derive(profile, operator, self)
        except DerivationExhaustedError as exc:
            if exc.tried:
                logger.debug("%s", exc)
            return None
        return self._bind(owner, profile, descriptor, Origin.DERIVED, strategy.name)

    def _resolve_fallback(
        self, owner: Any, profile: TypeOverloadProfile, operator: OperatorKind
    ) -> Optional[ResolvedHandler]:
        if not profile.catch_all_active:
            return None
        catch_all = profile.fallback_handler

        if operator.is_binary:
            def on_fallback(x: Any, y: Any, swapped: bool) -> Any:
                logger.debug("catch-all handles %s for %s", operator.name, profile.type_name)
                return catch_all(x, y, swapped, operator)
        else:
            def on_fallback(x: Any) -> Any:
                logger.debug("catch-all handles %s for %s", operator.name, profile.type_name)
                return catch_all(x, None, False, operator)

        descriptor = HandlerDescriptor(operator=operator, func=on_fallback, mutating=False)
        return self._bind(owner, profile, descriptor, Origin.FALLBACK)

    # -------------------------------------------------------------------------
    # Invocation
    # -------------------------------------------------------------------------

    def _bind(
        self,
        owner: Any,
        profile: TypeOverloadProfile,
        descriptor: HandlerDescriptor,
        origin: Origin,
        strategy: Optional[str] = None,
    ) -> ResolvedHandler:
        operator = descriptor.operator
        func = descriptor.func
        binary = operator.is_binary

        if not operator.is_mutating:
            def call(operands: Sequence[Any], swapped: bool) -> Any:
                if binary:
                    return func(operands[0], operands[1], swapped)
                return func(operands[0])
        elif descriptor.mutating:
            copy = profile.lookup(OperatorKind.COPY)

            def call(operands: Sequence[Any], swapped: bool) -> Any:
                binding = _receiver(operator, operands[0])
                current = binding.value
                target = copy.func(current) if copy is not None else current
                if binary:
                    func(target, operands[1], swapped)
                else:
                    func(target)
                if target is not current:
                    binding.rebind(target)
                return binding.value
        else:
            def call(operands: Sequence[Any], swapped: bool) -> Any:
                binding = _receiver(operator, operands[0])
                if binary:
                    new_value = func(binding.value, operands[1], swapped)
                else:
                    new_value = func(binding.value)
                if write_back(binding, new_value, self.values_equal):
                    logger.debug("rebound receiver of %s", operator.name)
                return binding.value

        return ResolvedHandler(
            operator=operator,
            origin=origin,
            descriptor=descriptor,
            owner=owner,
            strategy=strategy,
            call=call,
        )

    def values_equal(self, old: Any, new: Any) -> bool:
        """
        Decide whether a write-back would change the receiver's value.

        The receiver type's own equality (direct or derived) is used when the
        new value has the same type; otherwise native equality applies.
        """
        if type(new) is type(old):
            equality = self.resolve_own(type(old), OperatorKind.EQ)
            if equality is not None:
                return self.natives.to_bool(equality(old, new))
        return bool(old == new)

    # -------------------------------------------------------------------------
    # Derivation context
    # -------------------------------------------------------------------------

    def to_string(self, value: Any) -> str:
        resolved = self.resolve(type(value), OperatorKind.STRINGIFY)
        if resolved is None:
            return self.natives.to_string(value)
        result = resolved(value)
        return result if isinstance(result, str) else self.natives.to_string(result)

    def to_number(self, value: Any) -> Any:
        resolved = self.resolve(type(value), OperatorKind.NUMIFY)
        if resolved is None:
            return self.natives.to_number(value)
        result = resolved(value)
        if isinstance(result, (int, float)):
            return result
        return self.natives.to_number(result)

    def to_bool(self, value: Any) -> bool:
        resolved = self.resolve(type(value), OperatorKind.BOOLIFY)
        if resolved is None:
            return self.natives.to_bool(value)
        result = resolved(value)
        return result if isinstance(result, bool) else self.natives.to_bool(result)

    # -------------------------------------------------------------------------
    # Evaluator-facing helpers
    # -------------------------------------------------------------------------

    def _require(self, owner: Any, operator: OperatorKind) -> ResolvedHandler:
        resolved = self.resolve(owner, operator)
        if resolved is None:
            raise UnsupportedOperatorError(
                "no handler, derivation or catch-all applies",
                operator,
                getattr(owner, "__qualname__", str(owner)),
            )
        return resolved

    def unary(self, operator: OperatorKind | str, operand: Any) -> Any:
        """Apply a non-mutating unary operator."""
        operator = lookup_operator(operator)
        return self._require(type(operand), operator).invoke((operand,))

    def binary(self, operator: OperatorKind | str, left: Any, right: Any) -> Any:
        """
        Apply a non-mutating binary operator, choosing the receiver.

        Raises:
            UnsupportedOperatorError: If neither operand's type applies
        """
        operator = lookup_operator(operator)
        found = self.resolve_binary(operator, left, right)
        if found is None:
            raise UnsupportedOperatorError(
                "no handler, derivation or catch-all applies to either operand",
                operator,
                f"{type(left).__qualname__}, {type(right).__qualname__}",
            )
        resolved, swapped = found
        operands = (right, left) if swapped else (left, right)
        return resolved.invoke(operands, swapped)

    def mutate(self, operator: OperatorKind | str, binding: Binding[Any]) -> Any:
        """Apply ++ or -- to a binding and return its new value."""
        operator = lookup_operator(operator)
        receiver = _receiver(operator, binding)
        return self._require(type(receiver.value), operator).invoke((receiver,))

    def assign(self, operator: OperatorKind | str, binding: Binding[Any], other: Any) -> Any:
        """
        Apply a compound assignment such as += to a binding.

        If the bound value's type cannot handle the assignment, the right
        operand's type may supply the base operator (swapped); its result is
        written back into the binding.

        Returns:
            The binding's value after the assignment
        """
        operator = lookup_operator(operator)
        receiver = _receiver(operator, binding)
        left_parts = self._resolve_parts(type(receiver.value), operator)
        if left_parts.own is not None:
            return left_parts.own.invoke((receiver, other))

        base = operator.info.base
        right_parts = (
            self._resolve_parts(type(other), base) if base is not None else _Resolution(None, None)
        )
        if right_parts.own is not None:
            return self._assign_swapped(right_parts.own, receiver, other)
        if left_parts.fallback is not None:
            return left_parts.fallback.invoke((receiver, other))
        if right_parts.fallback is not None:
            return self._assign_swapped(right_parts.fallback, receiver, other)
        raise UnsupportedOperatorError(
            "no handler, derivation or catch-all applies to either operand",
            operator,
            f"{type(receiver.value).__qualname__}, {type(other).__qualname__}",
        )

    def _assign_swapped(self, resolved: ResolvedHandler, binding: Binding[Any], other: Any) -> Any:
        new_value = resolved.invoke((other, binding.value), swapped=True)
        write_back(binding, new_value, self.values_equal)
        return binding.value

    def convert(self, operator: OperatorKind | str, operand: Any) -> Any:
        """
        Apply a conversion operator, or return None if the type has none.

        Absence is reported rather than raised so that the evaluator can
        apply its own default conversion.
        """
        operator = lookup_operator(operator)
        if operator.category is not OperatorCategory.CONVERSION:
            raise ValueError(f"'{operator.symbol}' is not a conversion operator")
        resolved = self.resolve(type(operand), operator)
        return None if resolved is None else resolved.invoke((operand,))

    def iterate(self, operand: Any) -> Any:
        """
        Fetch the next element from an iterable operand.

        Returns:
            The next element, or EXHAUSTED when the sequence has run out
        """
        return self._require(type(operand), OperatorKind.ITERATE).invoke((operand,))

    def dereference(self, operator: OperatorKind | str, operand: Any) -> Any:
        """
        Get the aggregate to use in place of an operand for one access.

        The substitute is not cached: every access calls the handler again.
        An operand without a handler, or whose handler returns the operand
        itself, is dereferenced natively and returned unchanged.

        Raises:
            DereferenceError: If the substitute has the wrong shape
        """
        operator = lookup_operator(operator)
        if operator.category is not OperatorCategory.DEREFERENCE:
            raise ValueError(f"'{operator.symbol}' is not a dereference operator")
        resolved = self.resolve(type(operand), operator)
        if resolved is None:
            return operand
        substitute = resolved.invoke((operand,))
        if substitute is operand:
            return operand
        if not _has_shape(operator, substitute):
            raise DereferenceError(
                f"handler returned {type(substitute).__name__}, which cannot be dereferenced this way",
                operator,
                getattr(type(operand), "__qualname__", None),
            )
        return substitute


def _receiver(operator: OperatorKind, operand: Any) -> Binding[Any]:
    if not isinstance(operand, Binding):
        raise TypeError(
            f"operator '{operator.symbol}' mutates its receiver and needs a Binding, "
            f"got {type(operand).__name__}"
        )
    return operand


def _has_shape(operator: OperatorKind, substitute: Any) -> bool:
    if operator is OperatorKind.DEREF_ARRAY:
        return isinstance(substitute, Sequence) and not isinstance(substitute, (str, bytes))
    if operator is OperatorKind.DEREF_HASH:
        return isinstance(substitute, Mapping)
    if operator is OperatorKind.DEREF_FUNCTION:
        return callable(substitute)
    if operator is OperatorKind.DEREF_SCALAR:
        return isinstance(substitute, Binding)
    return substitute is not None
