"""
Ruleset snapshots.

A ``Ruleset`` bundles every table the engine consults (tiers, aliases,
features, add-ons, bundles, quotas). It is compiled once from a YAML
document, validated as a whole, and never mutated afterwards. Any
inconsistency raises ``RulesetError`` before a single evaluation is served.
"""

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from shared.errors import RulesetError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .aliases import AliasTable
from .catalog import FeatureCatalog, ItemCatalog
from .models import Feature, ItemKind, Limit, PricedItem, PricingKind, Tier, UNBOUNDED
from .normalizer import TierNormalizer
from .quotas import QuotaTable
from .registry import TierRegistry
from .schema import AddOnSpec, BundleSpec, RulesetDocument

DEFAULT_RULESET_PACKAGE = "service_tiers.app.data"
DEFAULT_RULESET_FILE = "default_ruleset.yaml"

logger = get_logger("entitlements.ruleset")


@dataclass(frozen=True)
class Ruleset:
    """Immutable snapshot of the entitlement configuration."""
    version: str
    registry: TierRegistry
    aliases: AliasTable
    features: FeatureCatalog
    addons: ItemCatalog
    bundles: ItemCatalog
    quotas: QuotaTable

    def normalizer(self, metrics: Optional[MetricsCollector] = None) -> TierNormalizer:
        return TierNormalizer(self.registry, self.aliases, metrics)


def build_ruleset(document: Union[RulesetDocument, Mapping[str, Any]]) -> Ruleset:
    """Compile and validate a ruleset document."""
    if not isinstance(document, RulesetDocument):
        try:
            document = RulesetDocument.model_validate(document)
        except ValidationError as e:
            raise RulesetError(
                "Ruleset document failed schema validation",
                {"errors": e.errors(include_url=False, include_context=False)}
            ) from e

    registry = TierRegistry(_build_tiers(document))
    aliases = AliasTable(registry, document.aliases)

    features = FeatureCatalog([
        Feature(
            feature_id=spec.id,
            required_tier=_required_tier(registry, spec.required_tier, "feature", spec.id),
            description=spec.description,
            upgrade_message=spec.upgrade_message,
            category=spec.category,
            internal=spec.internal,
        )
        for spec in document.features
    ])

    addons = ItemCatalog(ItemKind.ADDON, [_build_addon(registry, spec) for spec in document.addons])
    bundles = ItemCatalog(ItemKind.BUNDLE, [_build_bundle(registry, addons, spec) for spec in document.bundles])

    quotas = QuotaTable(registry, {
        quota: {tier: _quota_limit(limit) for tier, limit in limits.items()}
        for quota, limits in document.quotas.items()
    })

    return Ruleset(
        version=document.version,
        registry=registry,
        aliases=aliases,
        features=features,
        addons=addons,
        bundles=bundles,
        quotas=quotas,
    )


def _build_tiers(document: RulesetDocument) -> List[Tier]:
    explicit = [spec.rank is not None for spec in document.tiers]
    if any(explicit) and not all(explicit):
        raise RulesetError("Either every tier sets a rank or none does")

    return [
        Tier(
            name=spec.name.strip().lower(),
            rank=spec.rank if spec.rank is not None else position,
            display_name=spec.display_name,
            price=spec.price,
            annual_price=spec.annual_price,
            product_id=spec.product_id,
            price_id=spec.price_id,
            annual_price_id=spec.annual_price_id,
        )
        for position, spec in enumerate(document.tiers)
    ]


def _required_tier(registry: TierRegistry, name: str, kind: str, owner_id: str) -> Tier:
    tier = registry.find(name.strip().lower())
    if tier is None:
        raise RulesetError(
            f"{kind.capitalize()} requires an unknown tier",
            {kind: owner_id, "required_tier": name}
        )
    return tier


def _build_addon(registry: TierRegistry, spec: AddOnSpec) -> PricedItem:
    return PricedItem(
        item_id=spec.id,
        kind=ItemKind.ADDON,
        name=spec.name,
        description=spec.description,
        required_tier=_required_tier(registry, spec.required_tier, "addon", spec.id),
        pricing_kind=spec.pricing_type,
        category=spec.category,
        price=spec.price,
        recurring_price=spec.recurring_price,
        recurring_interval=spec.recurring_interval,
    )


def _build_bundle(registry: TierRegistry, addons: ItemCatalog, spec: BundleSpec) -> PricedItem:
    unknown = [item_id for item_id in spec.included_addon_ids if item_id not in addons]
    if unknown:
        raise RulesetError(
            "Bundle includes unknown add-ons",
            {"bundle": spec.id, "addons": unknown}
        )
    return PricedItem(
        item_id=spec.id,
        kind=ItemKind.BUNDLE,
        name=spec.name,
        description=spec.description,
        required_tier=_required_tier(registry, spec.required_tier, "bundle", spec.id),
        pricing_kind=PricingKind.ONE_TIME,
        price=spec.bundle_price,
        included_item_ids=tuple(spec.included_addon_ids),
        original_price=spec.original_price,
        bundle_price=spec.bundle_price,
        savings=spec.savings,
        recommended_for=spec.recommended_for,
        badge=spec.badge,
    )


def _quota_limit(value: Union[int, str]) -> Limit:
    return UNBOUNDED if value == "unbounded" else value


def parse_ruleset(text: str, source: str = "<string>") -> Ruleset:
    """Parse YAML text into a validated ruleset."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RulesetError("Invalid YAML in ruleset", {"source": source, "error": str(e)}) from e

    if not isinstance(data, dict):
        raise RulesetError("Ruleset must be a YAML mapping", {"source": source})

    ruleset = build_ruleset(data)
    logger.info(
        "Ruleset loaded",
        source=source,
        version=ruleset.version,
        tiers=len(ruleset.registry),
        features=len(ruleset.features)
    )
    return ruleset


def load_ruleset(path: Union[str, Path]) -> Ruleset:
    """Load a ruleset from a YAML file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesetError("Cannot read ruleset file", {"path": str(path), "error": str(e)}) from e
    return parse_ruleset(text, source=str(path))


def load_default_ruleset() -> Ruleset:
    """Load the ruleset embedded in the package."""
    text = resources.files(DEFAULT_RULESET_PACKAGE).joinpath(DEFAULT_RULESET_FILE).read_text(encoding="utf-8")
    return parse_ruleset(text, source=DEFAULT_RULESET_FILE)


def describe_ruleset(ruleset: Ruleset) -> Dict[str, Any]:
    """Summary used by tooling and logs."""
    return {
        "version": ruleset.version,
        "tiers": [{"name": t.name, "rank": t.rank, "price": str(t.price)} for t in ruleset.registry],
        "aliases": ruleset.aliases.as_dict(),
        "features": len(ruleset.features),
        "addons": len(ruleset.addons),
        "bundles": len(ruleset.bundles),
        "quotas": {
            quota: {tier: str(limit) for tier, limit in limits.items()}
            for quota, limits in ruleset.quotas.as_dict().items()
        },
    }
