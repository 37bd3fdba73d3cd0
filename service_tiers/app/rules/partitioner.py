"""
Catalog partitioner for priced add-ons and bundles.

Add-on purchases cost money, so this path is stricter than plain
normalization: a tier that is missing, not a string, or only resolvable
through the fail-safe fallback locks every item instead of being treated
as the rank-0 tier.
"""

from typing import Any, List, Optional, Sequence

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .engine import AccessEvaluator
from .models import Partition, PricedItem


class CatalogPartitioner:
    """Splits priced items into available and locked for a raw tier."""

    def __init__(self, evaluator: AccessEvaluator, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("entitlements.partitioner")
        self.evaluator = evaluator
        self.metrics = metrics

    def partition(self, raw_tier: Any, items: Sequence[PricedItem]) -> Partition:
        """Split ``items`` for ``raw_tier``.

        The tier is resolved once per call; items are compared by registry
        rank directly, so listings are not counted as entitlement checks.
        """
        items = list(items)

        resolution = self.evaluator.normalizer.resolve(raw_tier) if isinstance(raw_tier, str) else None
        if resolution is None or resolution.is_fallback:
            self.logger.warning(
                "catalog_partition_locked_out",
                raw_tier=raw_tier if isinstance(raw_tier, str) else None,
                raw_type=type(raw_tier).__name__,
                items=len(items)
            )
            if self.metrics:
                self.metrics.record_partition("locked_out")
            return Partition(available=(), locked=tuple(items))

        registry = self.evaluator.ruleset.registry
        rank = resolution.tier.rank
        available: List[PricedItem] = []
        locked: List[PricedItem] = []
        for item in items:
            # Rank always comes from this registry, not the item's Tier instance.
            if rank >= registry.get(item.required_tier.name).rank:
                available.append(item)
            else:
                locked.append(item)

        if self.metrics:
            self.metrics.record_partition("normal")
        return Partition(available=tuple(available), locked=tuple(locked))
