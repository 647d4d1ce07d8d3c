"""
Derivation Graph for autogenerated handlers.

When a type declares no handler for an operator, the resolver consults this
graph for a rule that computes the operator from handlers the type did
declare. Each rule lists its strategies in a fixed priority order, and the
first strategy whose required operators are all directly registered wins.

Rules:
- NEG          <= SUB, as 0 - x
- ABS          <= {LT | SPACESHIP} + {NEG | SUB}
- NOT          <= BOOLIFY | STRINGIFY | NUMIFY, negated
- CONCAT       <= STRINGIFY on both operands
- LT .. NE     <= SPACESHIP, by the sign of the three-way result
- lt .. ne     <= COMPARE, by the sign of the three-way result
- ++ / --      <= ADD / SUB with the increment step, or += / -=
- op=          <= op
- conversions  <= any other conversion (the conversion triangle)

Derivation depth is exactly one: strategies are satisfied by direct handlers
only, never by other derived handlers. This bounds resolution cost by the
number of strategies and rules out cyclic chains.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from overloadkit.core.operators import OperatorCategory, OperatorKind, operators_in_category
from overloadkit.core.profile import Handler, HandlerDescriptor, TypeOverloadProfile
from overloadkit.runtime.conversions import NativeConversions
from overloadkit.utils.errors import DerivationExhaustedError, DerivationGraphError

logger = logging.getLogger("overloadkit.derivation")

K = OperatorKind


class DerivationContext(Protocol):
    """What a composition needs from the resolver at call time."""

    natives: NativeConversions
    increment_step: int

    def to_string(self, value: Any) -> str: ...

    def to_number(self, value: Any) -> Any: ...

    def to_bool(self, value: Any) -> bool: ...


Sources = Mapping[OperatorKind, HandlerDescriptor]
Composer = Callable[[Sources, DerivationContext], Handler]


@dataclass(frozen=True, slots=True)
class DerivationStrategy:
    """
    One way of computing an operator from others.

    Attributes:
        name: Stable identifier (e.g., "lt+neg"), used to reorder strategies
        requires: Operators that must all be directly registered
        compose: Builds the derived callable from the source descriptors
        mutation_from: Source whose mutating flag the derived handler inherits
    """
    name: str
    requires: tuple[OperatorKind, ...]
    compose: Composer
    mutation_from: Optional[OperatorKind] = None

    def build(self, target: OperatorKind, profile: TypeOverloadProfile, context: DerivationContext) -> HandlerDescriptor:
        sources = {op: profile.lookup(op) for op in self.requires}
        mutating = False
        if self.mutation_from is not None:
            mutating = sources[self.mutation_from].mutating
        return HandlerDescriptor(
            operator=target,
            func=self.compose(sources, context),
            mutating=mutating,
        )


@dataclass(frozen=True, slots=True)
class DerivationRule:
    """All strategies for one target operator, highest priority first."""
    target: OperatorKind
    strategies: tuple[DerivationStrategy, ...] = field(default_factory=tuple)

    def strategy(self, name: str) -> Optional[DerivationStrategy]:
        for strategy in self.strategies:
            if strategy.name == name:
                return strategy
        return None


# =============================================================================
# Value helpers
# =============================================================================


def _text(value: Any, context: DerivationContext) -> str:
    return value if isinstance(value, str) else context.natives.to_string(value)


def _number(value: Any, context: DerivationContext) -> Any:
    if isinstance(value, (int, float)):
        return value
    return context.natives.to_number(value)


def _truth(value: Any, context: DerivationContext) -> bool:
    return value if isinstance(value, bool) else context.natives.to_bool(value)


# =============================================================================
# Compositions
# =============================================================================


def _neg_via_sub(sources: Sources, context: DerivationContext) -> Handler:
    sub = sources[K.SUB].func

    def neg(x: Any) -> Any:
        # receiver on the right: 0 - x
        return sub(x, 0, True)

    return neg


def _abs_via(test: OperatorKind, negate: OperatorKind) -> Composer:
    def compose(sources: Sources, context: DerivationContext) -> Handler:
        test_func = sources[test].func
        negate_func = sources[negate].func

        def is_negative(x: Any) -> bool:
            if test is K.LT:
                return _truth(test_func(x, 0, False), context)
            order = test_func(x, 0, False)
            return order is not None and _number(order, context) < 0

        def absolute(x: Any) -> Any:
            if not is_negative(x):
                return x
            if negate is K.NEG:
                return negate_func(x)
            return negate_func(x, 0, True)

        return absolute

    return compose


def _not_via_bool(sources: Sources, context: DerivationContext) -> Handler:
    boolify = sources[K.BOOLIFY].func
    return lambda x: not _truth(boolify(x), context)


def _not_via_string(sources: Sources, context: DerivationContext) -> Handler:
    stringify = sources[K.STRINGIFY].func
    return lambda x: _text(stringify(x), context) == ""


def _not_via_number(sources: Sources, context: DerivationContext) -> Handler:
    numify = sources[K.NUMIFY].func
    return lambda x: _number(numify(x), context) == 0


def _concat_via_string(sources: Sources, context: DerivationContext) -> Handler:
    stringify = sources[K.STRINGIFY].func

    def concat(x: Any, y: Any, swapped: bool) -> str:
        own = _text(stringify(x), context)
        other = context.to_string(y)
        return other + own if swapped else own + other

    return concat


_SIGN_TESTS: dict[str, Callable[[Any], bool]] = {
    "LT": lambda order: order < 0,
    "LE": lambda order: order <= 0,
    "GT": lambda order: order > 0,
    "GE": lambda order: order >= 0,
    "EQ": lambda order: order == 0,
    "NE": lambda order: order != 0,
}


def _relation_by_sign(three_way: OperatorKind, relation: str) -> Composer:
    test = _SIGN_TESTS[relation]
    unordered = relation == "NE"

    def compose(sources: Sources, context: DerivationContext) -> Handler:
        compare = sources[three_way].func

        def relate(x: Any, y: Any, swapped: bool) -> bool:
            order = compare(x, y, swapped)
            if order is None:
                return unordered
            return test(_number(order, context))

        return relate

    return compose


def _step_via_binary(source: OperatorKind) -> Composer:
    def compose(sources: Sources, context: DerivationContext) -> Handler:
        apply = sources[source].func
        return lambda x: apply(x, context.increment_step, False)

    return compose


def _assign_via_base(base: OperatorKind) -> Composer:
    def compose(sources: Sources, context: DerivationContext) -> Handler:
        return sources[base].func

    return compose


def _string_via_number(sources: Sources, context: DerivationContext) -> Handler:
    numify = sources[K.NUMIFY].func
    return lambda x: context.natives.format(_number(numify(x), context))


def _string_via_bool(sources: Sources, context: DerivationContext) -> Handler:
    boolify = sources[K.BOOLIFY].func
    return lambda x: "1" if _truth(boolify(x), context) else ""


def _number_via_string(sources: Sources, context: DerivationContext) -> Handler:
    stringify = sources[K.STRINGIFY].func
    return lambda x: context.natives.parse(_text(stringify(x), context))


def _number_via_bool(sources: Sources, context: DerivationContext) -> Handler:
    boolify = sources[K.BOOLIFY].func
    return lambda x: 1 if _truth(boolify(x), context) else 0


def _bool_via_string(sources: Sources, context: DerivationContext) -> Handler:
    stringify = sources[K.STRINGIFY].func
    return lambda x: _text(stringify(x), context) != ""


def _bool_via_number(sources: Sources, context: DerivationContext) -> Handler:
    numify = sources[K.NUMIFY].func
    return lambda x: _number(numify(x), context) != 0


# =============================================================================
# Graph
# =============================================================================


class DerivationGraph:
    """
    The immutable table of derivation rules.

    Built once and shared by every resolver; it holds no per-type state.
    """

    def __init__(self, rules: Iterable[DerivationRule]) -> None:
        table: dict[OperatorKind, DerivationRule] = {}
        for rule in rules:
            if rule.target in table:
                raise DerivationGraphError("operator has more than one rule", rule.target)
            _validate_rule(rule)
            table[rule.target] = rule
        self._rules: Mapping[OperatorKind, DerivationRule] = table

    def rule_for(self, target: OperatorKind) -> Optional[DerivationRule]:
        return self._rules.get(target)

    def strategies_for(self, target: OperatorKind) -> tuple[DerivationStrategy, ...]:
        rule = self._rules.get(target)
        return rule.strategies if rule is not None else ()

    def targets(self) -> list[OperatorKind]:
        return list(self._rules)

    def derive(
        self,
        profile: TypeOverloadProfile,
        target: OperatorKind,
        context: DerivationContext,
    ) -> tuple[DerivationStrategy, HandlerDescriptor]:
        """
        Synthesize a handler from the profile's direct handlers.

        Args:
            profile: The type's frozen profile
            target: The operator being derived
            context: Supplies conversions and the increment step at call time

        Returns:
            The chosen strategy and the composed descriptor

        Raises:
            DerivationExhaustedError: If no strategy's sources are all present
        """
        tried: list[str] = []
        for strategy in self.strategies_for(target):
            if profile.has_all(strategy.requires):
                logger.debug(
                    "deriving %s for %s via %s", target.name, profile.type_name, strategy.name
                )
                return strategy, strategy.build(target, profile, context)
            tried.append(strategy.name)
        raise DerivationExhaustedError(
            "no derivation strategy is satisfied by the registered handlers",
            target,
            profile.type_name,
            tried=tried,
        )

    def derivable_from(self, direct: Iterable[OperatorKind]) -> set[OperatorKind]:
        """Operators that can be derived from a set of direct handlers."""
        available = set(direct)
        return {
            target
            for target, rule in self._rules.items()
            if target not in available
            and any(available.issuperset(s.requires) for s in rule.strategies)
        }

    def reordered(self, target: OperatorKind, order: Iterable[str]) -> DerivationGraph:
        """
        Return a graph whose strategies for one operator follow a new order.

        Strategies not named keep their relative order after the named ones.

        Raises:
            DerivationGraphError: If a name matches no strategy of the rule
        """
        rule = self._rules.get(target)
        if rule is None:
            raise DerivationGraphError("operator has no derivation rule", target)
        names = list(order)
        chosen = []
        for name in names:
            strategy = rule.strategy(name)
            if strategy is None:
                raise DerivationGraphError(f"unknown derivation strategy '{name}'", target)
            chosen.append(strategy)
        chosen.extend(s for s in rule.strategies if s.name not in names)
        rules = dict(self._rules)
        rules[target] = DerivationRule(target, tuple(chosen))
        return DerivationGraph(rules.values())

    def __contains__(self, target: object) -> bool:
        return target in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"DerivationGraph({len(self._rules)} rules)"


def _validate_rule(rule: DerivationRule) -> None:
    seen: set[str] = set()
    for strategy in rule.strategies:
        if strategy.name in seen:
            raise DerivationGraphError(f"duplicate strategy name '{strategy.name}'", rule.target)
        seen.add(strategy.name)
        if not strategy.requires:
            raise DerivationGraphError(f"strategy '{strategy.name}' requires nothing", rule.target)
        for source in strategy.requires:
            if not isinstance(source, OperatorKind):
                raise DerivationGraphError(
                    f"strategy '{strategy.name}' requires unknown operator '{source}'", rule.target
                )
            if source is rule.target:
                raise DerivationGraphError(
                    f"strategy '{strategy.name}' requires its own target", rule.target
                )
        if strategy.mutation_from is not None and strategy.mutation_from not in strategy.requires:
            raise DerivationGraphError(
                f"strategy '{strategy.name}' inherits mutation from an operator it does not require",
                rule.target,
            )


def _strategy(name: str, requires: tuple[OperatorKind, ...], compose: Composer, **kw: Any) -> DerivationStrategy:
    return DerivationStrategy(name=name, requires=requires, compose=compose, **kw)


def default_rules() -> list[DerivationRule]:
    """The standard autogeneration rules, highest priority strategy first."""
    rules = [
        DerivationRule(K.NEG, (_strategy("sub", (K.SUB,), _neg_via_sub),)),
        DerivationRule(
            K.ABS,
            (
                _strategy("lt+neg", (K.LT, K.NEG), _abs_via(K.LT, K.NEG)),
                _strategy("lt+sub", (K.LT, K.SUB), _abs_via(K.LT, K.SUB)),
                _strategy("spaceship+neg", (K.SPACESHIP, K.NEG), _abs_via(K.SPACESHIP, K.NEG)),
                _strategy("spaceship+sub", (K.SPACESHIP, K.SUB), _abs_via(K.SPACESHIP, K.SUB)),
            ),
        ),
        DerivationRule(
            K.NOT,
            (
                _strategy("boolify", (K.BOOLIFY,), _not_via_bool),
                _strategy("stringify", (K.STRINGIFY,), _not_via_string),
                _strategy("numify", (K.NUMIFY,), _not_via_number),
            ),
        ),
        DerivationRule(K.CONCAT, (_strategy("stringify", (K.STRINGIFY,), _concat_via_string),)),
        DerivationRule(
            K.PRE_INCREMENT,
            (
                _strategy("add", (K.ADD,), _step_via_binary(K.ADD)),
                _strategy(
                    "add_assign",
                    (K.ADD_ASSIGN,),
                    _step_via_binary(K.ADD_ASSIGN),
                    mutation_from=K.ADD_ASSIGN,
                ),
            ),
        ),
        DerivationRule(
            K.PRE_DECREMENT,
            (
                _strategy("sub", (K.SUB,), _step_via_binary(K.SUB)),
                _strategy(
                    "sub_assign",
                    (K.SUB_ASSIGN,),
                    _step_via_binary(K.SUB_ASSIGN),
                    mutation_from=K.SUB_ASSIGN,
                ),
            ),
        ),
        # Conversion triangle
        DerivationRule(
            K.STRINGIFY,
            (
                _strategy("numify", (K.NUMIFY,), _string_via_number),
                _strategy("boolify", (K.BOOLIFY,), _string_via_bool),
            ),
        ),
        DerivationRule(
            K.NUMIFY,
            (
                _strategy("stringify", (K.STRINGIFY,), _number_via_string),
                _strategy("boolify", (K.BOOLIFY,), _number_via_bool),
            ),
        ),
        DerivationRule(
            K.BOOLIFY,
            (
                _strategy("stringify", (K.STRINGIFY,), _bool_via_string),
                _strategy("numify", (K.NUMIFY,), _bool_via_number),
            ),
        ),
    ]

    # Relational families
    for prefix, three_way in (("", K.SPACESHIP), ("STR_", K.COMPARE)):
        for relation in _SIGN_TESTS:
            target = OperatorKind[prefix + relation]
            name = three_way.name.lower()
            rules.append(
                DerivationRule(target, (_strategy(name, (three_way,), _relation_by_sign(three_way, relation)),))
            )

    # Compound assignment
    for assign in operators_in_category(OperatorCategory.ASSIGNMENT):
        base = assign.info.base
        rules.append(
            DerivationRule(assign, (_strategy(base.name.lower(), (base,), _assign_via_base(base)),))
        )

    return rules


def build_default_graph(abs_strategy_order: Optional[Iterable[str]] = None) -> DerivationGraph:
    """
    Build the standard derivation graph.

    Args:
        abs_strategy_order: Optional names of ABS strategies in the desired
            priority order

    Raises:
        DerivationGraphError: If an ABS strategy name is unknown
    """
    graph = DerivationGraph(default_rules())
    if abs_strategy_order is not None:
        graph = graph.reordered(K.ABS, abs_strategy_order)
    return graph


DEFAULT_GRAPH = build_default_graph()
