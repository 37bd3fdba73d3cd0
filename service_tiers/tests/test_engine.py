"""
Unit tests for the access evaluator.
"""

import dataclasses

import pytest

from shared.errors import UnknownFeatureError, UnknownTierError
from service_tiers.app.rules.models import AccessSummary, SubscriptionSnapshot, Tier


class TestAccessEvaluator:
    """Test cases for AccessEvaluator."""

    def test_scenario_denied_with_upgrade_message(self, evaluator):
        """starter cannot reach a pro feature and is told how to upgrade."""
        decision = evaluator.has_access("starter", "reports")

        assert decision.granted is False
        assert decision.via_preview is False
        assert decision.upgrade_message.startswith("Upgrade to Pro")
        assert decision.tier.name == "starter"
        assert decision.required_tier.name == "pro"
        assert decision.feature_id == "reports"

    def test_scenario_preview_grants_and_flags(self, evaluator):
        """Preview turns a denial into a flagged grant."""
        decision = evaluator.has_access("starter", "reports", is_preview=True)

        assert decision.granted is True
        assert decision.via_preview is True
        assert decision.upgrade_message is None

    def test_preview_not_flagged_when_already_entitled(self, evaluator):
        """A real entitlement is never reported as a preview."""
        decision = evaluator.has_access("elite", "reports", is_preview=True)

        assert decision.granted is True
        assert decision.via_preview is False

    def test_evaluate_with_tier_object(self, evaluator, scenario_ruleset):
        """evaluate() accepts a Tier from the registry."""
        elite = scenario_ruleset.registry.get("elite")

        low = evaluator.evaluate("free", elite, is_preview=True)
        high = evaluator.evaluate("elite", scenario_ruleset.registry.get("free"), is_preview=True)

        assert low.granted is True and low.via_preview is True
        assert high.granted is True and high.via_preview is False

    def test_evaluate_uses_registry_rank_for_foreign_tier(self, evaluator):
        """A caller-built Tier is re-resolved by name against the registry."""
        forged = Tier(name="free", rank=99, display_name="Free")

        decision = evaluator.evaluate("starter", forged)

        assert decision.granted is True
        assert decision.required_tier.rank == 0

    def test_generic_upgrade_message(self, evaluator):
        """Features without a message get the generic one."""
        decision = evaluator.has_access("pro", "vault")

        assert decision.granted is False
        assert decision.upgrade_message == "Upgrade to Elite to unlock this feature"

    def test_granted_has_no_upgrade_message(self, evaluator):
        decision = evaluator.has_access("pro", "reports")

        assert decision.granted is True
        assert decision.upgrade_message is None

    def test_alias_input(self, evaluator):
        """Legacy tier names unlock what their canonical tier unlocks."""
        assert evaluator.has_access("build", "reports").granted is True
        assert evaluator.has_access("BUILD", "vault").granted is False

    @pytest.mark.parametrize("raw", [None, "", "nonsense", 12])
    def test_unknown_tier_keeps_free_features(self, evaluator, raw):
        """General feature checks treat unknown tiers as the free tier."""
        assert evaluator.has_access(raw, "dashboard").granted is True
        assert evaluator.has_access(raw, "reports").granted is False

    def test_unknown_feature_fails_loudly(self, evaluator):
        """An unknown feature id is a programming error."""
        with pytest.raises(UnknownFeatureError) as exc_info:
            evaluator.has_access("elite", "time_travel")

        assert exc_info.value.code == "UNKNOWN_FEATURE"
        assert exc_info.value.feature_id == "time_travel"

    def test_unknown_required_tier_fails_loudly(self, evaluator):
        """Required tiers are configuration, so they are looked up strictly."""
        with pytest.raises(UnknownTierError):
            evaluator.evaluate("elite", "build")

    def test_monotonic_in_tier_rank(self, default_evaluator, default_ruleset):
        """Raising a tier never removes access a lower tier had."""
        tiers = list(default_ruleset.registry)

        for feature in default_ruleset.features:
            for low in tiers:
                for high in tiers:
                    if low.rank > high.rank:
                        continue
                    if default_evaluator.has_access(low.name, feature.feature_id).granted:
                        assert default_evaluator.has_access(high.name, feature.feature_id).granted

    def test_has_access_many(self, evaluator):
        summary = evaluator.has_access_many("pro", ["dashboard", "reports", "vault"])

        assert isinstance(summary, AccessSummary)
        assert summary.access_map() == {"dashboard": True, "reports": True, "vault": False}
        assert summary.has_any is True
        assert summary.has_all is False

    def test_has_access_many_with_preview(self, evaluator):
        summary = evaluator.has_access_many("free", ["reports", "vault"], is_preview=True)

        assert summary.has_all is True
        assert all(d.via_preview for d in summary.decisions.values())

    def test_has_access_for_snapshot(self, evaluator):
        """Admin preview on the subscription snapshot maps to the preview flag."""
        admin = SubscriptionSnapshot(raw_tier="starter", is_admin_preview=True)
        customer = SubscriptionSnapshot(raw_tier="starter")

        assert evaluator.has_access_for(admin, "vault").via_preview is True
        assert evaluator.has_access_for(customer, "vault").granted is False

    def test_tier_meets_requirement_normalizes_both_sides(self, evaluator):
        assert evaluator.tier_meets_requirement("ELITE", "build") is True
        assert evaluator.tier_meets_requirement("starter", "Pro") is False
        assert evaluator.tier_meets_requirement("nonsense", None) is True

    @pytest.mark.parametrize("tier", ["free", "starter", "pro", "elite", "nonsense"])
    def test_unlocked_and_locked_partition_features(self, default_evaluator, default_ruleset, tier):
        """unlocked ∪ locked == all features and unlocked ∩ locked == ∅."""
        unlocked = set(default_evaluator.features_unlocked_for(tier))
        locked = set(default_evaluator.features_locked_for(tier))

        assert unlocked | locked == set(default_ruleset.features)
        assert unlocked & locked == set()

    @pytest.mark.parametrize("tier", ["free", "starter", "pro", "elite", "nonsense"])
    def test_customer_listings_hide_internal_features(self, default_evaluator, default_ruleset, tier):
        """Customer listings drop internal features and still partition the rest."""
        unlocked = set(default_evaluator.features_unlocked_for(tier, include_internal=False))
        locked = set(default_evaluator.features_locked_for(tier, include_internal=False))
        customer = {f for f in default_ruleset.features if not f.internal}

        assert default_ruleset.features.get("admin_preview") not in unlocked | locked
        assert unlocked | locked == customer
        assert unlocked & locked == set()

    def test_free_tier_unlocks_core_features_only(self, default_evaluator):
        unlocked = {f.feature_id for f in default_evaluator.features_unlocked_for("free")}

        assert unlocked == {"dashboard", "marketplace_access", "profile_management", "admin_preview"}

    def test_elite_unlocks_everything(self, default_evaluator):
        assert default_evaluator.features_locked_for("elite") == ()

    def test_decision_is_immutable(self, evaluator):
        decision = evaluator.has_access("pro", "reports")

        with pytest.raises(dataclasses.FrozenInstanceError):
            decision.granted = False

    def test_decision_to_dict(self, evaluator):
        data = evaluator.has_access("starter", "reports").to_dict()

        assert data == {
            "granted": False,
            "via_preview": False,
            "upgrade_message": "Upgrade to Pro to unlock reports",
            "tier": "starter",
            "required_tier": "pro",
            "feature_id": "reports",
        }

    def test_decisions_are_counted(self, evaluator, metrics_registry):
        evaluator.has_access("pro", "reports")
        evaluator.has_access("free", "reports")
        evaluator.has_access("free", "reports", is_preview=True)

        def count(decision):
            return metrics_registry.get_sample_value(
                "entitlement_checks_total", {"decision": decision}
            )

        assert count("granted") == 1
        assert count("denied") == 1
        assert count("preview") == 1
        assert metrics_registry.get_sample_value("entitlement_check_duration_seconds_count") == 3

    def test_get_engine_stats(self, evaluator):
        stats = evaluator.get_engine_stats()

        assert stats["ruleset_version"] == "test-1"
        assert stats["tiers"] == ["free", "starter", "pro", "elite"]
        assert stats["total_aliases"] == 1
        assert stats["total_features"] == 3
        assert stats["total_addons"] == 2
        assert stats["total_bundles"] == 1
        assert stats["quotas"] == ["cv_versions"]
