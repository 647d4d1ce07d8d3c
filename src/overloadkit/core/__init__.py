"""
overloadkit Core Package.

The operator catalog, handler registry, derivation graph and resolver.
"""

from overloadkit.core.binding import Binding, write_back
from overloadkit.core.config import ResolverConfig
from overloadkit.core.derivation import (
    DEFAULT_GRAPH,
    DerivationGraph,
    DerivationRule,
    DerivationStrategy,
    build_default_graph,
)
from overloadkit.core.operators import (
    OPERATOR_CATALOG,
    Arity,
    OperatorCategory,
    OperatorInfo,
    OperatorKind,
    compound_assignment_for,
    is_mutating,
    lookup_operator,
    operator_info,
    operators_in_category,
)
from overloadkit.core.profile import HandlerDescriptor, TypeOverloadProfile
from overloadkit.core.registry import HandlerRegistry
from overloadkit.core.resolver import Origin, ResolvedHandler, Resolver, invoke

__all__ = [
    # Catalog
    "OperatorKind",
    "OperatorInfo",
    "OperatorCategory",
    "Arity",
    "OPERATOR_CATALOG",
    "operator_info",
    "lookup_operator",
    "operators_in_category",
    "compound_assignment_for",
    "is_mutating",
    # Registry
    "HandlerDescriptor",
    "TypeOverloadProfile",
    "HandlerRegistry",
    # Derivation
    "DerivationStrategy",
    "DerivationRule",
    "DerivationGraph",
    "DEFAULT_GRAPH",
    "build_default_graph",
    # Resolution
    "Binding",
    "write_back",
    "ResolverConfig",
    "Origin",
    "ResolvedHandler",
    "Resolver",
    "invoke",
]
