"""
Unit tests for the derivation graph, independent of the resolver.
"""

import pytest

from overloadkit.core.derivation import (
    DEFAULT_GRAPH,
    DerivationGraph,
    DerivationRule,
    DerivationStrategy,
    build_default_graph,
)
from overloadkit.core.operators import OperatorCategory, OperatorKind, operators_in_category
from overloadkit.core.profile import TypeOverloadProfile
from overloadkit.runtime.conversions import DEFAULT_NATIVES
from overloadkit.utils.errors import DerivationExhaustedError, DerivationGraphError

K = OperatorKind


class _Context:
    """Minimal derivation context backed by the native conversions."""

    natives = DEFAULT_NATIVES
    increment_step = 1

    def to_string(self, value):
        return DEFAULT_NATIVES.to_string(value)

    def to_number(self, value):
        return DEFAULT_NATIVES.to_number(value)

    def to_bool(self, value):
        return DEFAULT_NATIVES.to_bool(value)


def _profile(handlers, mutating=()):
    profile = TypeOverloadProfile("Sample")
    for operator, handler in handlers.items():
        profile.register(operator, handler, mutating=operator in mutating)
    profile.freeze()
    return profile


def _derive(handlers, target, graph=DEFAULT_GRAPH, mutating=()):
    strategy, descriptor = graph.derive(_profile(handlers, mutating), target, _Context())
    return strategy, descriptor


def _int_sub(a, b, swapped):
    return b - a if swapped else a - b


def _int_spaceship(a, b, swapped):
    if swapped:
        a, b = b, a
    return (a > b) - (a < b)


class TestGraphStructure:
    """Tests for the shape of the default rule table."""

    def test_every_compound_assignment_has_a_rule(self):
        """Test that op= derives from op."""
        for assign in operators_in_category(OperatorCategory.ASSIGNMENT):
            strategies = DEFAULT_GRAPH.strategies_for(assign)
            assert len(strategies) == 1
            assert strategies[0].requires == (assign.info.base,)

    def test_relational_families(self):
        """Test that both relational families use their own three-way operator."""
        for name in ("LT", "LE", "GT", "GE", "EQ", "NE"):
            assert DEFAULT_GRAPH.strategies_for(K[name])[0].requires == (K.SPACESHIP,)
            assert DEFAULT_GRAPH.strategies_for(K["STR_" + name])[0].requires == (K.COMPARE,)

    def test_abs_default_priority(self):
        """Test the default order of ABS strategies."""
        names = [s.name for s in DEFAULT_GRAPH.strategies_for(K.ABS)]
        assert names == ["lt+neg", "lt+sub", "spaceship+neg", "spaceship+sub"]

    def test_not_priority(self):
        """Test the order of NOT strategies."""
        names = [s.name for s in DEFAULT_GRAPH.strategies_for(K.NOT)]
        assert names == ["boolify", "stringify", "numify"]

    def test_no_rule_requires_its_target(self):
        """Test that no strategy can feed on its own result."""
        for target in DEFAULT_GRAPH.targets():
            for strategy in DEFAULT_GRAPH.strategies_for(target):
                assert target not in strategy.requires

    def test_underivable_operators(self):
        """Test that some operators have no rule at all."""
        assert K.ADD not in DEFAULT_GRAPH
        assert K.ITERATE not in DEFAULT_GRAPH
        assert DEFAULT_GRAPH.strategies_for(K.DEREF_ARRAY) == ()

    def test_derivable_from(self):
        """Test the set of operators derivable from direct handlers."""
        derivable = DEFAULT_GRAPH.derivable_from({K.SPACESHIP})
        assert {K.LT, K.LE, K.GT, K.GE, K.EQ, K.NE} == derivable
        derivable = DEFAULT_GRAPH.derivable_from({K.STRINGIFY})
        assert derivable == {K.NUMIFY, K.BOOLIFY, K.NOT, K.CONCAT}

    def test_derivable_from_excludes_direct(self):
        """Test that directly available operators are not reported."""
        derivable = DEFAULT_GRAPH.derivable_from({K.STRINGIFY, K.NUMIFY})
        assert K.STRINGIFY not in derivable
        assert K.NUMIFY not in derivable
        assert K.BOOLIFY in derivable


class TestGraphConstruction:
    """Tests for graph validation and reordering."""

    def test_self_requirement_rejected(self):
        """Test that a strategy requiring its own target is rejected."""
        rule = DerivationRule(K.NEG, (DerivationStrategy("loop", (K.NEG,), lambda s, c: None),))
        with pytest.raises(DerivationGraphError):
            DerivationGraph([rule])

    def test_duplicate_rule_rejected(self):
        """Test that one operator cannot have two rules."""
        strategy = DerivationStrategy("sub", (K.SUB,), lambda s, c: None)
        with pytest.raises(DerivationGraphError):
            DerivationGraph([DerivationRule(K.NEG, (strategy,)), DerivationRule(K.NEG, (strategy,))])

    def test_duplicate_strategy_name_rejected(self):
        """Test that strategy names are unique within a rule."""
        strategy = DerivationStrategy("sub", (K.SUB,), lambda s, c: None)
        with pytest.raises(DerivationGraphError):
            DerivationGraph([DerivationRule(K.NEG, (strategy, strategy))])

    def test_empty_requirement_rejected(self):
        """Test that a strategy must require something."""
        with pytest.raises(DerivationGraphError):
            DerivationGraph([DerivationRule(K.NEG, (DerivationStrategy("none", (), lambda s, c: None),))])

    def test_reordered_abs(self):
        """Test that ABS priority can be configured."""
        graph = build_default_graph(["spaceship+sub", "lt+neg"])
        names = [s.name for s in graph.strategies_for(K.ABS)]
        assert names == ["spaceship+sub", "lt+neg", "lt+sub", "spaceship+neg"]
        # the shared default graph is untouched
        assert DEFAULT_GRAPH.strategies_for(K.ABS)[0].name == "lt+neg"

    def test_reordered_unknown_name(self):
        """Test that unknown strategy names are rejected."""
        with pytest.raises(DerivationGraphError):
            build_default_graph(["gt+neg"])


class TestDerive:
    """Tests for deriving handlers from a profile."""

    def test_neg_from_sub(self):
        """Test that NEG computes 0 - x with the receiver on the right."""
        calls = []

        def sub(a, b, swapped):
            calls.append((a, b, swapped))
            return _int_sub(a, b, swapped)

        strategy, descriptor = _derive({K.SUB: sub}, K.NEG)
        assert strategy.name == "sub"
        assert descriptor.func(5) == -5
        assert calls == [(5, 0, True)]

    def test_exhausted(self):
        """Test that missing sources raise the internal signal."""
        with pytest.raises(DerivationExhaustedError) as exc_info:
            _derive({K.ADD: lambda a, b, s: a}, K.NEG)
        assert exc_info.value.tried == ["sub"]

    def test_no_rule_is_exhausted(self):
        """Test that an operator without rules is exhausted immediately."""
        with pytest.raises(DerivationExhaustedError) as exc_info:
            _derive({K.SUB: _int_sub}, K.ITERATE)
        assert exc_info.value.tried == []

    def test_first_satisfied_strategy_wins(self):
        """Test priority among satisfiable strategies."""
        handlers = {K.NUMIFY: lambda x: 0, K.STRINGIFY: lambda x: "hello"}
        strategy, descriptor = _derive(handlers, K.BOOLIFY)
        assert strategy.name == "stringify"
        assert descriptor.func(object()) is True

    def test_depth_is_one(self):
        """Test that derived operators never feed other derivations."""
        # .= would need CONCAT, which is itself only derivable from STRINGIFY
        with pytest.raises(DerivationExhaustedError):
            _derive({K.STRINGIFY: lambda x: "s"}, K.CONCAT_ASSIGN)

    @pytest.mark.parametrize("value,expected", [(-4, 4), (0, 0), (7, 7)])
    def test_abs_via_spaceship_and_sub(self, value, expected):
        """Test ABS from a three-way comparison and subtraction."""
        strategy, descriptor = _derive({K.SPACESHIP: _int_spaceship, K.SUB: _int_sub}, K.ABS)
        assert strategy.name == "spaceship+sub"
        assert descriptor.func(value) == expected

    def test_abs_prefers_lt_neg(self):
        """Test the default ABS priority when every source is present."""
        handlers = {
            K.LT: lambda a, b, s: a < b,
            K.NEG: lambda a: -a,
            K.SPACESHIP: _int_spaceship,
            K.SUB: _int_sub,
        }
        strategy, descriptor = _derive(handlers, K.ABS)
        assert strategy.name == "lt+neg"
        assert descriptor.func(-3) == 3

    def test_increment_inherits_mutation(self):
        """Test that ++ via a mutating += is itself mutating."""
        _, descriptor = _derive({K.ADD_ASSIGN: lambda a, b, s: None}, K.PRE_INCREMENT, mutating={K.ADD_ASSIGN})
        assert descriptor.mutating
        _, descriptor = _derive({K.ADD: lambda a, b, s: a + b}, K.PRE_INCREMENT)
        assert not descriptor.mutating
        assert descriptor.func(41) == 42

    @pytest.mark.parametrize(
        "relation,expected",
        [("LT", True), ("LE", True), ("GT", False), ("GE", False), ("EQ", False), ("NE", True)],
    )
    def test_relations_by_sign(self, relation, expected):
        """Test sign predicates for 1 vs 2."""
        _, descriptor = _derive({K.SPACESHIP: _int_spaceship}, K[relation])
        assert descriptor.func(1, 2, False) is expected

    @pytest.mark.parametrize("relation", ["LT", "LE", "GT", "GE", "EQ"])
    def test_unordered_result(self, relation):
        """Test that a None three-way result satisfies only NE."""
        _, descriptor = _derive({K.SPACESHIP: lambda a, b, s: None}, K[relation])
        assert descriptor.func(1, 2, False) is False
        _, descriptor = _derive({K.SPACESHIP: lambda a, b, s: None}, K.NE)
        assert descriptor.func(1, 2, False) is True

    def test_concat_order(self):
        """Test that CONCAT respects the swapped flag."""
        _, descriptor = _derive({K.STRINGIFY: lambda x: "<obj>"}, K.CONCAT)
        assert descriptor.func(object(), "tail", False) == "<obj>tail"
        assert descriptor.func(object(), "head", True) == "head<obj>"

    @pytest.mark.parametrize(
        "source,handler,target,value",
        [
            (K.STRINGIFY, lambda x: "", K.NOT, True),
            (K.STRINGIFY, lambda x: "a", K.NOT, False),
            (K.NUMIFY, lambda x: 0, K.NOT, True),
            (K.NUMIFY, lambda x: 3, K.NOT, False),
            (K.BOOLIFY, lambda x: False, K.NOT, True),
            (K.NUMIFY, lambda x: 2.0, K.STRINGIFY, "2"),
            (K.NUMIFY, lambda x: 2.5, K.STRINGIFY, "2.5"),
            (K.BOOLIFY, lambda x: True, K.STRINGIFY, "1"),
            (K.BOOLIFY, lambda x: False, K.STRINGIFY, ""),
            (K.STRINGIFY, lambda x: "12abc", K.NUMIFY, 12),
            (K.BOOLIFY, lambda x: True, K.NUMIFY, 1),
            (K.NUMIFY, lambda x: 0, K.BOOLIFY, False),
            (K.STRINGIFY, lambda x: "0", K.BOOLIFY, True),
        ],
    )
    def test_conversions(self, source, handler, target, value):
        """Test the conversion triangle and NOT compositions."""
        _, descriptor = _derive({source: handler}, target)
        assert descriptor.func(object()) == value
