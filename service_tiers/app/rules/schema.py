"""
Ruleset document schema.

Validates the shape of a YAML ruleset before it is compiled into a
``Ruleset``. Cross-references (tier names, included add-ons) are checked
later, when the snapshot is built.
"""

from decimal import Decimal
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator

from .models import PricingKind, RecurringInterval

QuotaLimit = Union[StrictInt, Literal["unbounded"]]


class _Spec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class TierSpec(_Spec):
    """Tier entry; list order defines rank unless ``rank`` is given."""
    name: str = Field(..., min_length=1, description="Canonical tier name")
    display_name: str = Field(..., description="Name shown to customers")
    rank: Optional[int] = Field(None, ge=0, description="Explicit rank")
    price: Decimal = Field(Decimal("0"), ge=0, description="Monthly price")
    annual_price: Decimal = Field(Decimal("0"), ge=0, description="Annual price")
    product_id: Optional[str] = Field(None, description="Billing product id")
    price_id: Optional[str] = Field(None, description="Monthly billing price id")
    annual_price_id: Optional[str] = Field(None, description="Annual billing price id")


class FeatureSpec(_Spec):
    id: str = Field(..., min_length=1, description="Feature id")
    required_tier: str = Field(..., description="Minimum tier")
    description: str = Field(..., description="What the feature unlocks")
    upgrade_message: Optional[str] = Field(None, description="Shown when locked")
    category: Optional[str] = Field(None, description="Grouping for listings")
    internal: bool = Field(False, description="Admin-only; left out of listings built with include_internal=False")


class AddOnSpec(_Spec):
    id: str = Field(..., min_length=1, description="Add-on id")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="Display description")
    pricing_type: PricingKind = Field(..., description="How the add-on is billed")
    required_tier: str = Field(..., description="Minimum tier to purchase")
    category: Optional[str] = Field(None, description="Marketplace category")
    price: Optional[Decimal] = Field(None, ge=0, description="One-time or setup price")
    recurring_price: Optional[Decimal] = Field(None, ge=0, description="Recurring price")
    recurring_interval: Optional[RecurringInterval] = Field(None, description="Billing interval")

    @model_validator(mode="after")
    def check_pricing(self) -> "AddOnSpec":
        needs_setup = self.pricing_type in (PricingKind.ONE_TIME, PricingKind.HYBRID)
        needs_recurring = self.pricing_type in (PricingKind.RECURRING, PricingKind.HYBRID)
        if needs_setup and self.price is None:
            raise ValueError(f"{self.pricing_type.value} add-on {self.id!r} needs a price")
        if needs_recurring and (self.recurring_price is None or self.recurring_interval is None):
            raise ValueError(
                f"{self.pricing_type.value} add-on {self.id!r} needs recurring_price and recurring_interval"
            )
        return self


class BundleSpec(_Spec):
    id: str = Field(..., min_length=1, description="Bundle id")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="Display description")
    required_tier: str = Field(..., description="Minimum tier to purchase")
    included_addon_ids: List[str] = Field(..., min_length=1, description="Add-ons in the bundle")
    original_price: Decimal = Field(..., ge=0, description="Sum of individual prices")
    bundle_price: Decimal = Field(..., ge=0, description="Bundle price")
    savings: Decimal = Field(..., ge=0, description="Advertised savings")
    recommended_for: Optional[str] = Field(None, description="Audience blurb")
    badge: Optional[str] = Field(None, description="Marketing badge")


class RulesetDocument(_Spec):
    """Top-level ruleset document."""
    version: str = Field(..., min_length=1, description="Ruleset version label")
    tiers: List[TierSpec] = Field(..., min_length=1)
    aliases: Dict[str, str] = Field(default_factory=dict)
    features: List[FeatureSpec] = Field(default_factory=list)
    addons: List[AddOnSpec] = Field(default_factory=list)
    bundles: List[BundleSpec] = Field(default_factory=list)
    quotas: Dict[str, Dict[str, QuotaLimit]] = Field(default_factory=dict)
