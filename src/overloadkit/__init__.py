"""
overloadkit - Dynamic operator overloading with autogenerated handlers.

Types register handlers for a fixed catalog of operators (arithmetic,
comparison, conversion, assignment, dereference, iteration). For every
operator use the resolver finds the handler that applies: a direct one,
one derived from related handlers the type did register, or the type's
catch-all handler.
"""

from overloadkit.api import (
    default_registry,
    default_resolver,
    invoke,
    register_fallback,
    register_handler,
    resolve,
    set_fallback_enabled,
)
from overloadkit.core import (
    Binding,
    DerivationGraph,
    HandlerDescriptor,
    HandlerRegistry,
    OperatorCategory,
    OperatorKind,
    Origin,
    ResolvedHandler,
    Resolver,
    ResolverConfig,
    TypeOverloadProfile,
    build_default_graph,
)
from overloadkit.runtime import EXHAUSTED, NativeConversions
from overloadkit.runtime.python_binding import bind_python_operators
from overloadkit.utils.errors import (
    DereferenceError,
    DuplicateHandlerError,
    FallbackHandlerError,
    OverloadError,
    ProfileFrozenError,
    UnknownOperatorError,
    UnsupportedOperatorError,
)

__version__ = "0.1.0"
__all__ = [
    # Functional interface
    "register_handler",
    "register_fallback",
    "set_fallback_enabled",
    "resolve",
    "invoke",
    "default_registry",
    "default_resolver",
    # Core
    "OperatorKind",
    "OperatorCategory",
    "HandlerDescriptor",
    "TypeOverloadProfile",
    "HandlerRegistry",
    "DerivationGraph",
    "build_default_graph",
    "Binding",
    "ResolverConfig",
    "Resolver",
    "ResolvedHandler",
    "Origin",
    # Runtime
    "EXHAUSTED",
    "NativeConversions",
    "bind_python_operators",
    # Errors
    "OverloadError",
    "DuplicateHandlerError",
    "ProfileFrozenError",
    "UnknownOperatorError",
    "UnsupportedOperatorError",
    "FallbackHandlerError",
    "DereferenceError",
]
