"""
End-to-end tests: declaring types and evaluating operator uses through
the resolver, the way an evaluator would.
"""

import random
from dataclasses import dataclass, field

import pytest

from overloadkit.core.binding import Binding
from overloadkit.core.operators import OperatorKind
from overloadkit.core.resolver import Origin
from overloadkit.runtime.iterators import EXHAUSTED, drain
from overloadkit.utils.errors import FallbackHandlerError

from samples import Vector

K = OperatorKind


@dataclass(frozen=True)
class Temperature:
    degrees: float


@dataclass(frozen=True)
class Version:
    raw: str


@dataclass
class Bag:
    items: list = field(default_factory=list)
    rng: random.Random = field(default_factory=lambda: random.Random(7))


def _temperature_cmp(a, b, swapped):
    left = a.degrees
    right = b.degrees if isinstance(b, Temperature) else b
    if swapped:
        left, right = right, left
    return (left > right) - (left < right)


def _bag_iterate(bag):
    if not bag.items:
        return EXHAUSTED
    return bag.items.pop(bag.rng.randrange(len(bag.items)))


class TestVectorArithmetic:
    """Vector type declaring ADD and SUB only."""

    def test_add(self, resolver, vector_type):
        """Test direct addition."""
        assert resolver.resolve(vector_type, K.ADD)(Vector(3, 6), Vector(5, 8)) == Vector(8, 14)

    def test_sub(self, resolver, vector_type):
        """Test direct subtraction."""
        assert resolver.resolve(vector_type, K.SUB)(Vector(5, 8), Vector(3, 6)) == Vector(2, 2)

    def test_compound_and_increment_are_derived(self, resolver, vector_type):
        """Test that += and -= come for free."""
        position = Binding(Vector(0, 0))
        resolver.assign(K.ADD_ASSIGN, position, Vector(1, 2))
        resolver.assign(K.SUB_ASSIGN, position, Vector(0, 1))
        assert position.value == Vector(1, 1)
        assert resolver.resolve(vector_type, K.ADD_ASSIGN).origin is Origin.DERIVED


class TestThreeWayComparison:
    """Temperature type declaring SPACESHIP only."""

    SAMPLES = [Temperature(-4.0), Temperature(0.0), Temperature(21.5), Temperature(21.5)]

    @pytest.fixture(autouse=True)
    def _declare(self, declare):
        declare(Temperature, {K.SPACESHIP: _temperature_cmp})

    def test_relations_agree_with_fields(self, resolver):
        """Test LT and GT against direct field comparison."""
        lt = resolver.resolve(Temperature, K.LT)
        gt = resolver.resolve(Temperature, K.GT)
        for a in self.SAMPLES:
            for b in self.SAMPLES:
                assert lt(a, b) is (a.degrees < b.degrees)
                assert gt(a, b) is (b.degrees < a.degrees)

    def test_sorting_key(self, resolver):
        """Test ordering a list through the derived relation."""
        readings = [Temperature(30.0), Temperature(-1.0), Temperature(12.0)]
        ordered = sorted(
            readings, key=lambda t: sum(1 for other in readings if resolver.binary(K.LT, other, t))
        )
        assert [t.degrees for t in ordered] == [-1.0, 12.0, 30.0]

    def test_mixed_operands(self, resolver):
        """Test comparing against plain numbers on either side."""
        assert resolver.binary(K.GE, Temperature(5.0), 5) is True
        assert resolver.binary(K.LT, 10, Temperature(5.0)) is False

    def test_abs(self, resolver):
        """Test that ABS is not derivable without NEG or SUB."""
        assert resolver.resolve(Temperature, K.ABS) is None


class TestConversionTriangle:
    """Version type declaring STRINGIFY only."""

    @pytest.fixture(autouse=True)
    def _declare(self, declare):
        declare(Version, {K.STRINGIFY: lambda v: v.raw})

    def test_numify_parses_string(self, resolver):
        """Test numify synthesized from stringify."""
        numify = resolver.resolve(Version, K.NUMIFY)
        assert numify.origin is Origin.DERIVED
        assert numify(Version("3.25")) == 3.25
        assert numify(Version("12 rc1")) == 12

    @pytest.mark.parametrize("raw,expected", [("", False), ("0", True), ("1.0", True)])
    def test_boolify_is_emptiness(self, resolver, raw, expected):
        """Test boolify synthesized from stringify."""
        assert resolver.resolve(Version, K.BOOLIFY)(Version(raw)) is expected

    def test_not_and_concat(self, resolver):
        """Test further operators derived from the same handler."""
        assert resolver.unary(K.NOT, Version("")) is True
        assert resolver.binary(K.CONCAT, "v", Version("2")) == "v2"


class TestRandomIteration:
    """Bag type whose iterate handler removes random elements."""

    def test_six_distinct_then_exhausted(self, resolver, declare):
        """Test that each element is returned once, then the sentinel."""
        declare(Bag, {K.ITERATE: _bag_iterate})
        contents = ["a", "b", "c", "d", "e", "f"]
        bag = Bag(items=list(contents))
        iterate = resolver.resolve(Bag, K.ITERATE)

        seen = [iterate(bag) for _ in range(6)]
        assert sorted(seen) == contents
        assert iterate(bag) is EXHAUSTED

    def test_drain(self, resolver, declare):
        """Test consuming the same sequence with drain."""
        declare(Bag, {K.ITERATE: _bag_iterate})
        assert sorted(drain(resolver, Bag(items=[1, 2, 3]))) == [1, 2, 3]


class TestCatchAllEvaluator:
    """A type forwarding everything it does not handle to its catch-all."""

    def test_unit_checked_arithmetic(self, resolver, declare, fresh_class):
        """Test a catch-all that refuses mismatched operands."""
        meters = fresh_class("Meters", Temperature)

        def nomethod(x, y, swapped, operator):
            raise FallbackHandlerError(
                f"cannot apply {operator.symbol} to meters and {type(y).__name__}",
                operator,
                "Meters",
                payload=y,
            )

        declare(meters, {K.SPACESHIP: _temperature_cmp}, fallback=nomethod)
        assert resolver.binary(K.LT, meters(1.0), meters(2.0)) is True
        with pytest.raises(FallbackHandlerError) as exc_info:
            resolver.binary(K.ADD, meters(1.0), "3")
        assert exc_info.value.payload == "3"
        assert "cannot apply +" in str(exc_info.value)
