"""
Access evaluation engine for the tier entitlements engine.
"""

from typing import Dict, Any, Iterable, Optional, Tuple, Union

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .models import (
    AccessDecision, AccessSummary, Feature, SubscriptionSnapshot, Tier
)
from .ruleset import Ruleset

GENERIC_UPGRADE_MESSAGE = "Upgrade to {tier} to unlock this feature"


class AccessEvaluator:
    """Evaluates tier-based access against one ruleset snapshot.

    An evaluator is bound to a single immutable ``Ruleset``. Build a new one
    (or go through ``RulesetStore``) to pick up a reloaded ruleset.
    """

    def __init__(self, ruleset: Ruleset, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("entitlements.engine")
        self.ruleset = ruleset
        self.metrics = metrics
        self.normalizer = ruleset.normalizer(metrics)

    def evaluate(
        self,
        current_raw: Any,
        required_tier: Union[Tier, str],
        is_preview: bool = False,
        upgrade_message: Optional[str] = None,
        feature_id: Optional[str] = None
    ) -> AccessDecision:
        """Decide whether ``current_raw`` reaches ``required_tier``.

        A preview only ever adds access: a denial becomes a grant flagged
        ``via_preview``; a real grant stays unflagged.
        """
        if self.metrics:
            with self.metrics.time_operation("entitlement_check_duration_seconds"):
                decision = self._evaluate(current_raw, required_tier, is_preview, upgrade_message, feature_id)
        else:
            decision = self._evaluate(current_raw, required_tier, is_preview, upgrade_message, feature_id)

        if self.metrics:
            if decision.via_preview:
                self.metrics.record_decision("preview")
            else:
                self.metrics.record_decision("granted" if decision.granted else "denied")
        return decision

    def _evaluate(
        self,
        current_raw: Any,
        required_tier: Union[Tier, str],
        is_preview: bool,
        upgrade_message: Optional[str],
        feature_id: Optional[str]
    ) -> AccessDecision:
        current = self.normalizer.normalize(current_raw)
        required = self._required(required_tier)

        if current.rank >= required.rank:
            return AccessDecision(
                granted=True,
                via_preview=False,
                upgrade_message=None,
                tier=current,
                required_tier=required,
                feature_id=feature_id
            )

        if is_preview:
            self.logger.info(
                "preview_access_granted",
                tier=current.name,
                required_tier=required.name,
                feature_id=feature_id
            )
            return AccessDecision(
                granted=True,
                via_preview=True,
                upgrade_message=None,
                tier=current,
                required_tier=required,
                feature_id=feature_id
            )

        return AccessDecision(
            granted=False,
            via_preview=False,
            upgrade_message=upgrade_message or GENERIC_UPGRADE_MESSAGE.format(tier=required.display_name),
            tier=current,
            required_tier=required,
            feature_id=feature_id
        )

    def _required(self, required_tier: Union[Tier, str]) -> Tier:
        if isinstance(required_tier, Tier):
            # Rank always comes from this registry, not the caller's instance.
            return self.ruleset.registry.get(required_tier.name)
        return self.ruleset.registry.get(required_tier)

    def has_access(self, current_raw: Any, feature_id: str, is_preview: bool = False) -> AccessDecision:
        """Evaluate a catalog feature. Unknown feature ids raise."""
        feature = self.ruleset.features.get(feature_id)
        return self.evaluate(
            current_raw,
            feature.required_tier,
            is_preview=is_preview,
            upgrade_message=feature.upgrade_message,
            feature_id=feature.feature_id
        )

    def has_access_many(
        self,
        current_raw: Any,
        feature_ids: Iterable[str],
        is_preview: bool = False
    ) -> AccessSummary:
        decisions: Dict[str, AccessDecision] = {}
        for feature_id in feature_ids:
            decisions[feature_id] = self.has_access(current_raw, feature_id, is_preview)
        return AccessSummary(decisions=decisions)

    def has_access_for(self, snapshot: SubscriptionSnapshot, feature_id: str) -> AccessDecision:
        """Evaluate a feature for a subscription record supplied by the caller."""
        return self.has_access(snapshot.raw_tier, feature_id, is_preview=snapshot.is_admin_preview)

    def tier_meets_requirement(self, current_raw: Any, required_raw: Any) -> bool:
        """Compare two raw tier values after normalizing both sides."""
        current = self.normalizer.normalize(current_raw)
        required = self.normalizer.normalize(required_raw)
        return current.rank >= required.rank

    def features_unlocked_for(self, current_raw: Any, include_internal: bool = True) -> Tuple[Feature, ...]:
        return self.ruleset.features.unlocked_for(self.normalizer.normalize(current_raw), include_internal)

    def features_locked_for(self, current_raw: Any, include_internal: bool = True) -> Tuple[Feature, ...]:
        return self.ruleset.features.locked_for(self.normalizer.normalize(current_raw), include_internal)

    def get_engine_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        return {
            "ruleset_version": self.ruleset.version,
            "tiers": self.ruleset.registry.names,
            "total_aliases": len(self.ruleset.aliases),
            "total_features": len(self.ruleset.features),
            "total_addons": len(self.ruleset.addons),
            "total_bundles": len(self.ruleset.bundles),
            "quotas": list(self.ruleset.quotas),
        }
