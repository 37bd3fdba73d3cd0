"""
Tier registry for the entitlements engine.

The registry is the single place tier ordering is decided. Callers compare
tiers through ``rank()``; they never compare tier names directly.
"""

from typing import Dict, Any, Iterator, List, Optional, Sequence, Tuple

from shared.errors import RulesetError, UnknownTierError
from .models import Tier


class TierRegistry:
    """Immutable, rank-ordered collection of canonical tiers."""

    def __init__(self, tiers: Sequence[Tier]):
        self._tiers: Tuple[Tier, ...] = tuple(sorted(tiers, key=lambda t: t.rank))
        self._validate()
        self._by_name: Dict[str, Tier] = {t.name: t for t in self._tiers}
        self._by_product: Dict[str, Tier] = {
            t.product_id: t for t in self._tiers if t.product_id
        }

    def _validate(self):
        if not self._tiers:
            raise RulesetError("Tier registry must define at least one tier")

        names = [t.name for t in self._tiers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise RulesetError("Duplicate tier names", {"tiers": duplicates})

        for name in names:
            if name != name.strip().lower() or not name:
                raise RulesetError(
                    "Tier names must be non-empty, lowercase and trimmed",
                    {"tier": name}
                )

        ranks = [t.rank for t in self._tiers]
        if ranks != list(range(len(ranks))):
            raise RulesetError(
                "Tier ranks must be unique and contiguous from 0",
                {"ranks": ranks}
            )

        product_ids = [t.product_id for t in self._tiers if t.product_id]
        if len(product_ids) != len(set(product_ids)):
            raise RulesetError("Duplicate tier product ids", {"product_ids": product_ids})

    def __iter__(self) -> Iterator[Tier]:
        return iter(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def default(self) -> Tier:
        """Fail-safe tier (rank 0)."""
        return self._tiers[0]

    @property
    def highest(self) -> Tier:
        return self._tiers[-1]

    @property
    def names(self) -> List[str]:
        return [t.name for t in self._tiers]

    def find(self, name: str) -> Optional[Tier]:
        """Exact canonical lookup; no case folding or alias handling."""
        return self._by_name.get(name)

    def get(self, name: str) -> Tier:
        tier = self._by_name.get(name)
        if tier is None:
            raise UnknownTierError(name)
        return tier

    def rank(self, name: str) -> int:
        return self.get(name).rank

    def next_tier(self, tier: Tier) -> Optional[Tier]:
        """Next tier up for upgrade prompts, or None at the top."""
        if tier.rank + 1 < len(self._tiers):
            return self._tiers[tier.rank + 1]
        return None

    def by_product_id(self, product_id: Optional[str]) -> Tier:
        """Tier sold under a billing product id; unknown ids get the default."""
        if not product_id:
            return self.default
        return self._by_product.get(product_id, self.default)

    def previewable_tiers(self) -> List[Dict[str, Any]]:
        """Tiers an administrator may pick from when previewing."""
        return [
            {"id": t.name, "name": t.display_name, "price": t.price}
            for t in self._tiers
        ]
