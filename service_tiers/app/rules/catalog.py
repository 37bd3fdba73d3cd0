"""
Entitlement catalog: gated features and the priced add-on/bundle collections.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from shared.errors import RulesetError, UnknownFeatureError, UnknownItemError
from .models import Feature, ItemKind, PricedItem, Tier


class FeatureCatalog:
    """Feature id -> required tier, in declaration order."""

    def __init__(self, features: Sequence[Feature]):
        self._features: Dict[str, Feature] = {}
        for feature in features:
            if feature.feature_id in self._features:
                raise RulesetError(
                    "Duplicate feature id",
                    {"feature_id": feature.feature_id}
                )
            self._features[feature.feature_id] = feature

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features.values())

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._features

    def get(self, feature_id: str) -> Feature:
        feature = self._features.get(feature_id)
        if feature is None:
            raise UnknownFeatureError(feature_id)
        return feature

    def upgrade_message_for(self, feature_id: str) -> Optional[str]:
        return self.get(feature_id).upgrade_message

    def unlocked_for(self, tier: Tier, include_internal: bool = True) -> Tuple[Feature, ...]:
        """Features the tier unlocks on its own (preview never applies).

        Pass ``include_internal=False`` for customer-facing listings.
        """
        return tuple(
            f for f in self._listed(include_internal) if tier.rank >= f.required_tier.rank
        )

    def locked_for(self, tier: Tier, include_internal: bool = True) -> Tuple[Feature, ...]:
        """Complement of ``unlocked_for``; used for upsell listings."""
        return tuple(
            f for f in self._listed(include_internal) if tier.rank < f.required_tier.rank
        )

    def _listed(self, include_internal: bool) -> Iterator[Feature]:
        return (f for f in self._features.values() if include_internal or not f.internal)


class ItemCatalog:
    """One namespace of priced items (all add-ons, or all bundles)."""

    def __init__(self, kind: ItemKind, items: Sequence[PricedItem]):
        self.kind = kind
        self._items: Dict[str, PricedItem] = {}
        for item in items:
            if item.kind != kind:
                raise RulesetError(
                    "Item placed in the wrong collection",
                    {"item_id": item.item_id, "kind": item.kind.value, "collection": kind.value}
                )
            if item.item_id in self._items:
                raise RulesetError(
                    f"Duplicate {kind.value} id",
                    {"item_id": item.item_id}
                )
            self._items[item.item_id] = item

    def __iter__(self) -> Iterator[PricedItem]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    @property
    def items(self) -> List[PricedItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> PricedItem:
        item = self._items.get(item_id)
        if item is None:
            raise UnknownItemError(self.kind.value, item_id)
        return item

    def by_category(self, category: str) -> List[PricedItem]:
        return [item for item in self._items.values() if item.category == category]


def savings_percentage(bundle: PricedItem) -> int:
    """Bundle savings as a whole percentage of the original price."""
    if not bundle.savings or not bundle.original_price:
        return 0
    ratio = bundle.savings / bundle.original_price * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
