"""
Handler Registry.

The registry is a pure data store: it maps each declaring type to its
TypeOverloadProfile and answers direct lookups. It never derives handlers;
autogeneration is the resolver's job.

Example:
    registry = HandlerRegistry()
    with registry.declare(Vector) as profile:
        profile.register(OperatorKind.ADD, vector_add)
        profile.register(OperatorKind.SUB, vector_sub)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

from overloadkit.core.operators import OperatorKind, lookup_operator
from overloadkit.core.profile import Handler, HandlerDescriptor, TypeOverloadProfile
from overloadkit.utils.errors import ProfileFrozenError

logger = logging.getLogger("overloadkit.registry")


class HandlerRegistry:
    """
    Per-type overload profiles.

    Profiles are keyed by the declaring type. Lookups for a type without its
    own profile walk the type's MRO, so subclasses share the nearest declared
    ancestor's profile.
    """

    def __init__(self) -> None:
        self._profiles: dict[Any, TypeOverloadProfile] = {}

    # -------------------------------------------------------------------------
    # Declaration
    # -------------------------------------------------------------------------

    @contextmanager
    def declare(self, owner: Any) -> Iterator[TypeOverloadProfile]:
        """
        Declare a type's handlers and freeze the profile afterwards.

        If the block raises, the declarations it made are undone: a new
        profile is discarded, and a profile opened earlier by flat
        registration is restored to its state before the block.
        """
        existed = owner in self._profiles
        profile = self._open_profile(owner)
        state = profile.snapshot()
        try:
            yield profile
        except BaseException:
            if existed:
                profile.restore(state)
            else:
                del self._profiles[owner]
            raise
        profile.freeze()

    def _open_profile(self, owner: Any) -> TypeOverloadProfile:
        profile = self._profiles.get(owner)
        if profile is None:
            profile = TypeOverloadProfile(owner)
            self._profiles[owner] = profile
            logger.debug("created overload profile for %s", profile.type_name)
        elif profile.frozen:
            raise ProfileFrozenError(
                "profile can no longer be modified after its declaration phase",
                type_name=profile.type_name,
            )
        return profile

    def register_handler(
        self,
        owner: Any,
        operator: OperatorKind | str,
        handler: Handler,
        mutating: bool = False,
    ) -> HandlerDescriptor:
        """Add a direct handler to a type's profile."""
        return self._open_profile(owner).register(lookup_operator(operator), handler, mutating)

    def replace_handler(
        self,
        owner: Any,
        operator: OperatorKind | str,
        handler: Handler,
        mutating: bool = False,
    ) -> Optional[HandlerDescriptor]:
        """Explicitly overwrite a type's handler for an operator."""
        return self._open_profile(owner).replace(lookup_operator(operator), handler, mutating)

    def register_fallback(self, owner: Any, handler: Optional[Handler]) -> None:
        self._open_profile(owner).set_fallback(handler)

    def set_fallback_enabled(self, owner: Any, enabled: bool) -> None:
        self._open_profile(owner).set_fallback_enabled(enabled)

    def set_derivation_enabled(self, owner: Any, enabled: bool) -> None:
        self._open_profile(owner).set_derivation_enabled(enabled)

    def freeze(self, owner: Any) -> None:
        profile = self._profiles.get(owner)
        if profile is not None:
            profile.freeze()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def profile_for(self, owner: Any) -> Optional[TypeOverloadProfile]:
        """
        Get the profile governing a type.

        Args:
            owner: The type of an operand

        Returns:
            The type's own profile, else the nearest ancestor's, else None
        """
        profile = self._profiles.get(owner)
        if profile is not None:
            return profile
        for ancestor in getattr(owner, "__mro__", ())[1:]:
            profile = self._profiles.get(ancestor)
            if profile is not None:
                return profile
        return None

    def lookup(self, owner: Any, operator: OperatorKind | str) -> Optional[HandlerDescriptor]:
        """Get a type's direct handler, or None. Never derives."""
        profile = self.profile_for(owner)
        if profile is None:
            return None
        return profile.lookup(lookup_operator(operator))

    def declared_types(self) -> list[Any]:
        return list(self._profiles)

    def __contains__(self, owner: object) -> bool:
        return self.profile_for(owner) is not None

    def __len__(self) -> int:
        return len(self._profiles)
