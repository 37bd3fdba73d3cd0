"""
Function-level API of the tier entitlements engine.

This is the surface the serving/UI layer calls. Every function reads the
process-wide ``RulesetStore``; it is created on first use from
``EngineConfig`` (embedded ruleset unless ``TIERS_RULESET_PATH`` is set).
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from shared.config import EngineConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from .rules.catalog import savings_percentage as _savings_percentage
from .rules.models import (
    AccessDecision, AccessSummary, Feature, Limit, Partition, PricedItem,
    SubscriptionSnapshot, Tier
)
from .rules.quotas import DEFAULT_QUOTA
from .rules.ruleset import Ruleset, load_default_ruleset, load_ruleset
from .rules.store import RulesetStore

logger = get_logger("entitlements.api")

_store: Optional[RulesetStore] = None
_metrics: Optional[MetricsCollector] = None
_init_lock = threading.RLock()


def init_engine(config: Optional[EngineConfig] = None, ruleset: Optional[Ruleset] = None) -> RulesetStore:
    """Configure logging/metrics and install the process-wide store.

    Call once at startup so a broken ruleset fails before serving. Passing
    ``ruleset`` skips loading from configuration.
    """
    global _store, _metrics

    config = config or get_config()
    with _init_lock:
        configure_logging(config.service_name, config.log_level)
        if config.enable_metrics and _metrics is None:
            _metrics = get_metrics_collector(config.service_name)

        if ruleset is None:
            ruleset = load_ruleset(config.ruleset_path) if config.ruleset_path else load_default_ruleset()

        _store = RulesetStore(ruleset, _metrics if config.enable_metrics else None)

    logger.info("Entitlements engine initialized", env=config.env, version=ruleset.version)
    return _store


def get_store() -> RulesetStore:
    store = _store
    if store is None:
        with _init_lock:
            store = _store if _store is not None else init_engine()
    return store


def reload_ruleset(path: Optional[Union[str, Path]] = None) -> Ruleset:
    """Atomically replace the active ruleset; the old one stays on failure."""
    return get_store().reload(path)


def normalize_tier(raw: Any) -> Tier:
    return get_store().evaluator.normalizer.normalize(raw)


def tier_rank(name: Any) -> int:
    """Rank used for ordering and badges; unknown names rank as the default tier."""
    return normalize_tier(name).rank


def evaluate(raw_tier: Any, required_tier: Union[Tier, str], is_preview: bool = False) -> AccessDecision:
    return get_store().evaluator.evaluate(raw_tier, required_tier, is_preview=is_preview)


def has_access(raw_tier: Any, feature_id: str, is_preview: bool = False) -> AccessDecision:
    return get_store().evaluator.has_access(raw_tier, feature_id, is_preview=is_preview)


def has_access_many(raw_tier: Any, feature_ids: Sequence[str], is_preview: bool = False) -> AccessSummary:
    return get_store().evaluator.has_access_many(raw_tier, feature_ids, is_preview=is_preview)


def has_access_for(snapshot: SubscriptionSnapshot, feature_id: str) -> AccessDecision:
    return get_store().evaluator.has_access_for(snapshot, feature_id)


def tier_meets_requirement(raw_tier: Any, required_raw: Any) -> bool:
    return get_store().evaluator.tier_meets_requirement(raw_tier, required_raw)


def features_for_tier(raw_tier: Any, include_internal: bool = True) -> Tuple[Feature, ...]:
    """Unlocked features; customer-facing pages pass ``include_internal=False``."""
    return get_store().evaluator.features_unlocked_for(raw_tier, include_internal)


def locked_features_for_tier(raw_tier: Any, include_internal: bool = True) -> Tuple[Feature, ...]:
    return get_store().evaluator.features_locked_for(raw_tier, include_internal)


def get_feature(feature_id: str) -> Feature:
    return get_store().ruleset.features.get(feature_id)


def upgrade_message_for(feature_id: str) -> Optional[str]:
    return get_store().ruleset.features.upgrade_message_for(feature_id)


def partition_catalog(raw_tier: Any, items: Sequence[PricedItem]) -> Partition:
    return get_store().partitioner.partition(raw_tier, items)


def partition_addons(raw_tier: Any) -> Partition:
    active = get_store().snapshot()
    return active.partitioner.partition(raw_tier, active.ruleset.addons.items)


def partition_bundles(raw_tier: Any) -> Partition:
    active = get_store().snapshot()
    return active.partitioner.partition(raw_tier, active.ruleset.bundles.items)


def get_addon(item_id: str) -> PricedItem:
    return get_store().ruleset.addons.get(item_id)


def get_bundle(item_id: str) -> PricedItem:
    return get_store().ruleset.bundles.get(item_id)


def addons_by_category(category: str) -> List[PricedItem]:
    return get_store().ruleset.addons.by_category(category)


def bundle_contents(bundle_id: str) -> List[PricedItem]:
    """Add-ons included in a bundle, in bundle order."""
    ruleset = get_store().ruleset
    bundle = ruleset.bundles.get(bundle_id)
    return [ruleset.addons.get(item_id) for item_id in bundle.included_item_ids]


def savings_percentage(bundle_id: str) -> int:
    return _savings_percentage(get_bundle(bundle_id))


def limit_for(raw_tier: Any, quota: str = DEFAULT_QUOTA) -> Limit:
    active = get_store().snapshot()
    return active.ruleset.quotas.limit_for(active.evaluator.normalizer.normalize(raw_tier), quota)


def is_within_limit(raw_tier: Any, used: Union[int, float], quota: str = DEFAULT_QUOTA) -> bool:
    active = get_store().snapshot()
    return active.ruleset.quotas.is_within_limit(active.evaluator.normalizer.normalize(raw_tier), used, quota)


def tier_from_product_id(product_id: Optional[str]) -> Tier:
    return get_store().ruleset.registry.by_product_id(product_id)


def next_tier(raw_tier: Any) -> Optional[Tier]:
    active = get_store().snapshot()
    return active.ruleset.registry.next_tier(active.evaluator.normalizer.normalize(raw_tier))


def previewable_tiers() -> List[Dict[str, Any]]:
    return get_store().ruleset.registry.previewable_tiers()
