"""
Pytest configuration and shared fixtures for overloadkit tests.
"""

import pytest

from overloadkit.core.config import ResolverConfig
from overloadkit.core.operators import OperatorKind
from overloadkit.core.registry import HandlerRegistry
from overloadkit.core.resolver import Resolver

from samples import Vector, vector_add, vector_sub


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def registry():
    """A fresh, empty handler registry."""
    return HandlerRegistry()


@pytest.fixture
def resolver_factory(registry):
    """Factory fixture for creating resolvers over the test registry."""

    def _create_resolver(config=None, **overrides) -> Resolver:
        if overrides:
            config = (config or ResolverConfig()).with_overrides(**overrides)
        return Resolver(registry, config=config)

    return _create_resolver


@pytest.fixture
def resolver(resolver_factory):
    """A resolver with the default configuration."""
    return resolver_factory()


@pytest.fixture
def declare(registry):
    """
    Fixture to declare a type's handlers in one call.

    Handlers are given as {operator: callable}; operators listed in
    `mutating` are registered with the mutating flag.
    """

    def _declare(owner, handlers, mutating=(), fallback=None, fallback_enabled=True):
        with registry.declare(owner) as profile:
            for operator, handler in handlers.items():
                profile.register(operator, handler, mutating=operator in mutating)
            if fallback is not None:
                profile.set_fallback(fallback)
            profile.set_fallback_enabled(fallback_enabled)
        return profile

    return _declare


@pytest.fixture
def vector_type(declare):
    """Vector declaring ADD and SUB only."""
    declare(Vector, {OperatorKind.ADD: vector_add, OperatorKind.SUB: vector_sub})
    return Vector


@pytest.fixture
def fresh_class():
    """Factory for throwaway classes, so profiles never collide between tests."""

    def _make(name="Sample", base=object, **namespace):
        return type(name, (base,), dict(namespace))

    return _make
