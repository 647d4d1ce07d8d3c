"""
Resolver configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """
    Options controlling resolution.

    Attributes:
        cache_resolutions: Memoize resolve() results per (type, operator).
            Only frozen profiles are cached.
        abs_strategy_order: Priority order of the ABS derivation strategies
            by name (e.g., ("spaceship+sub", "lt+neg")). None keeps the
            graph's default order.
        freeze_on_resolve: Freeze a still-open profile the first time it is
            resolved against.
        increment_step: Literal added or subtracted by derived ++ and --.
    """
    cache_resolutions: bool = True
    abs_strategy_order: Optional[tuple[str, ...]] = None
    freeze_on_resolve: bool = True
    increment_step: int = 1

    def with_overrides(self, **changes: Any) -> ResolverConfig:
        """Return a copy with some options changed."""
        return replace(self, **changes)
