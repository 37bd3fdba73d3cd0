"""
Per-tier numeric limits (e.g. saved CV versions).
"""

from typing import Dict, Iterator, Mapping, Union

from shared.errors import RulesetError, UnknownQuotaError
from .models import Limit, Tier, Unbounded, UNBOUNDED
from .registry import TierRegistry

DEFAULT_QUOTA = "cv_versions"


class QuotaTable:
    """quota name -> tier name -> limit.

    Every quota covers every tier, limits never shrink as rank rises, and
    the top tier is always ``UNBOUNDED``.
    """

    def __init__(self, registry: TierRegistry, quotas: Mapping[str, Mapping[str, Limit]]):
        self._limits: Dict[str, Dict[str, Limit]] = {}
        for quota, limits in quotas.items():
            self._limits[quota] = self._validate(registry, quota, limits)

    @staticmethod
    def _validate(registry: TierRegistry, quota: str, limits: Mapping[str, Limit]) -> Dict[str, Limit]:
        unknown = sorted(set(limits) - set(registry.names))
        if unknown:
            raise RulesetError(
                "Quota references unknown tiers",
                {"quota": quota, "tiers": unknown}
            )
        missing = [name for name in registry.names if name not in limits]
        if missing:
            raise RulesetError(
                "Quota does not cover every tier",
                {"quota": quota, "missing": missing}
            )

        previous: Limit = 0
        for tier in registry:
            limit = limits[tier.name]
            if not isinstance(limit, Unbounded) and (
                isinstance(limit, bool) or not isinstance(limit, int) or limit < 0
            ):
                raise RulesetError(
                    "Quota limits must be non-negative integers or unbounded",
                    {"quota": quota, "tier": tier.name, "limit": repr(limit)}
                )
            if limit < previous:
                raise RulesetError(
                    "Quota limits must not decrease as tier rank rises",
                    {"quota": quota, "tier": tier.name}
                )
            previous = limit

        if limits[registry.highest.name] is not UNBOUNDED:
            raise RulesetError(
                "Top tier quota must be unbounded",
                {"quota": quota, "tier": registry.highest.name}
            )
        return {tier.name: limits[tier.name] for tier in registry}

    def __iter__(self) -> Iterator[str]:
        return iter(self._limits)

    def __contains__(self, quota: object) -> bool:
        return quota in self._limits

    def limit_for(self, tier: Tier, quota: str = DEFAULT_QUOTA) -> Limit:
        limits = self._limits.get(quota)
        if limits is None:
            raise UnknownQuotaError(quota)
        return limits[tier.name]

    def is_within_limit(self, tier: Tier, used: Union[int, float], quota: str = DEFAULT_QUOTA) -> bool:
        """True while another unit may still be created."""
        return used < self.limit_for(tier, quota)

    def as_dict(self) -> Dict[str, Dict[str, Limit]]:
        return {quota: dict(limits) for quota, limits in self._limits.items()}
