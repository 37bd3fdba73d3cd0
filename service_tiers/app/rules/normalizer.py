"""
Tier normalization.

Maps any raw tier value (canonical name, legacy alias, garbage, None) onto
exactly one canonical tier. Normalization never raises: values that cannot
be resolved fall back to the rank-0 tier so mistakes deny rather than grant.
"""

from typing import Any, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .aliases import AliasTable
from .models import Tier, TierResolution, ResolutionSource
from .registry import TierRegistry


class TierNormalizer:
    """Resolves raw tier values against a registry and alias table."""

    def __init__(
        self,
        registry: TierRegistry,
        aliases: AliasTable,
        metrics: Optional[MetricsCollector] = None
    ):
        self.logger = get_logger("entitlements.normalizer")
        self.registry = registry
        self.aliases = aliases
        self.metrics = metrics

    def resolve(self, raw: Any) -> TierResolution:
        """Normalize ``raw`` and report which path resolved it."""
        resolution = self._resolve(raw)
        if self.metrics:
            self.metrics.record_normalization(resolution.source.value)
        return resolution

    def normalize(self, raw: Any) -> Tier:
        return self.resolve(raw).tier

    def _resolve(self, raw: Any) -> TierResolution:
        if raw is None:
            return TierResolution(self.registry.default, ResolutionSource.EMPTY)

        if not isinstance(raw, str):
            self.logger.warning(
                "tier_normalization_fallback",
                reason="not_a_string",
                raw_type=type(raw).__name__,
                fallback=self.registry.default.name
            )
            return TierResolution(self.registry.default, ResolutionSource.FALLBACK)

        value = raw.strip().lower()
        if not value:
            return TierResolution(self.registry.default, ResolutionSource.EMPTY)

        tier = self.registry.find(value)
        if tier is not None:
            return TierResolution(tier, ResolutionSource.CANONICAL)

        tier = self.aliases.lookup(value)
        if tier is not None:
            return TierResolution(tier, ResolutionSource.ALIAS)

        self.logger.warning(
            "tier_normalization_fallback",
            reason="unrecognized",
            raw_tier=raw,
            fallback=self.registry.default.name
        )
        return TierResolution(self.registry.default, ResolutionSource.FALLBACK)
