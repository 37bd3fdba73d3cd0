"""
Data models for the tier entitlements engine.

Every value here is frozen: rulesets are shared read-only across threads
and decisions are handed to callers as plain values.
"""

from typing import Dict, Any, Optional, Tuple, Union
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from numbers import Real


class PricingKind(str, Enum):
    """How a priced item is billed."""
    ONE_TIME = "one_time"
    RECURRING = "recurring"
    HYBRID = "hybrid"


class ItemKind(str, Enum):
    """Priced item collections. Ids are unique per collection."""
    ADDON = "addon"
    BUNDLE = "bundle"


class RecurringInterval(str, Enum):
    MONTH = "month"
    YEAR = "year"


class ResolutionSource(str, Enum):
    """Path a raw tier value took through normalization."""
    CANONICAL = "canonical"
    ALIAS = "alias"
    EMPTY = "empty"
    FALLBACK = "fallback"


class Unbounded:
    """Quota limit with no ceiling.

    Use the module-level ``UNBOUNDED`` instance; it is greater than every real
    number and serializes as ``"unbounded"``.
    """

    _instance: Optional["Unbounded"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNBOUNDED"

    def __str__(self) -> str:
        return "unbounded"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Unbounded)

    def __hash__(self) -> int:
        return hash("unbounded")

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, (Real, Unbounded)):
            return False
        return NotImplemented

    def __le__(self, other: Any) -> bool:
        if isinstance(other, Unbounded):
            return True
        if isinstance(other, Real):
            return False
        return NotImplemented

    def __gt__(self, other: Any) -> bool:
        if isinstance(other, Unbounded):
            return False
        if isinstance(other, Real):
            return True
        return NotImplemented

    def __ge__(self, other: Any) -> bool:
        if isinstance(other, (Real, Unbounded)):
            return True
        return NotImplemented


UNBOUNDED = Unbounded()

Limit = Union[int, Unbounded]


@dataclass(frozen=True)
class Tier:
    """Canonical subscription tier."""
    name: str
    rank: int
    display_name: str
    price: Decimal = Decimal("0")
    annual_price: Decimal = Decimal("0")
    product_id: Optional[str] = None
    price_id: Optional[str] = None
    annual_price_id: Optional[str] = None


@dataclass(frozen=True)
class TierAlias:
    """Legacy tier name mapped onto a canonical tier."""
    alias: str
    tier: Tier


@dataclass(frozen=True)
class TierResolution:
    """Outcome of normalizing a raw tier value."""
    tier: Tier
    source: ResolutionSource

    @property
    def is_fallback(self) -> bool:
        return self.source in (ResolutionSource.EMPTY, ResolutionSource.FALLBACK)


@dataclass(frozen=True)
class Feature:
    """Gated feature and the minimum tier that unlocks it."""
    feature_id: str
    required_tier: Tier
    description: str
    upgrade_message: Optional[str] = None
    category: Optional[str] = None
    internal: bool = False


@dataclass(frozen=True)
class PricedItem:
    """Marketplace add-on or bundle."""
    item_id: str
    kind: ItemKind
    name: str
    required_tier: Tier
    pricing_kind: PricingKind
    description: str = ""
    category: Optional[str] = None
    price: Optional[Decimal] = None
    recurring_price: Optional[Decimal] = None
    recurring_interval: Optional[RecurringInterval] = None
    # Bundle-only fields
    included_item_ids: Tuple[str, ...] = ()
    original_price: Optional[Decimal] = None
    bundle_price: Optional[Decimal] = None
    savings: Optional[Decimal] = None
    recommended_for: Optional[str] = None
    badge: Optional[str] = None


@dataclass(frozen=True)
class AccessDecision:
    """Result of a single access evaluation."""
    granted: bool
    via_preview: bool
    upgrade_message: Optional[str]
    tier: Tier
    required_tier: Tier
    feature_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "granted": self.granted,
            "via_preview": self.via_preview,
            "upgrade_message": self.upgrade_message,
            "tier": self.tier.name,
            "required_tier": self.required_tier.name,
            "feature_id": self.feature_id,
        }


@dataclass(frozen=True)
class AccessSummary:
    """Decisions for several features evaluated against one tier."""
    decisions: Dict[str, AccessDecision] = field(default_factory=dict)

    @property
    def has_all(self) -> bool:
        return all(d.granted for d in self.decisions.values())

    @property
    def has_any(self) -> bool:
        return any(d.granted for d in self.decisions.values())

    def access_map(self) -> Dict[str, bool]:
        return {feature_id: d.granted for feature_id, d in self.decisions.items()}


@dataclass(frozen=True)
class Partition:
    """Priced items split by eligibility, each side in input order."""
    available: Tuple[PricedItem, ...] = ()
    locked: Tuple[PricedItem, ...] = ()


@dataclass(frozen=True)
class SubscriptionSnapshot:
    """Subscription facts supplied by the calling system."""
    raw_tier: Optional[str] = None
    is_admin_preview: bool = False
