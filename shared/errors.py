"""
Shared error handling for the tier entitlements engine.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class EntitlementsException(Exception):
    """Base exception for the entitlements engine."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class RulesetError(EntitlementsException):
    """Ruleset configuration is malformed and must not be served."""

    def __init__(self, message: str = "Invalid ruleset", details: Optional[Dict[str, Any]] = None):
        super().__init__("RULESET_ERROR", message, details)


class UnknownFeatureError(EntitlementsException):
    """Feature id is not present in the catalog."""

    def __init__(self, feature_id: str, details: Optional[Dict[str, Any]] = None):
        self.feature_id = feature_id
        super().__init__("UNKNOWN_FEATURE", f"Unknown feature: {feature_id!r}", details)


class UnknownTierError(EntitlementsException):
    """Tier name is not a canonical tier of the registry."""

    def __init__(self, tier_name: Any, details: Optional[Dict[str, Any]] = None):
        self.tier_name = tier_name
        super().__init__("UNKNOWN_TIER", f"Unknown tier: {tier_name!r}", details)


class UnknownItemError(EntitlementsException):
    """Add-on or bundle id is not present in its collection."""

    def __init__(self, kind: str, item_id: str, details: Optional[Dict[str, Any]] = None):
        self.kind = kind
        self.item_id = item_id
        super().__init__("UNKNOWN_ITEM", f"Unknown {kind}: {item_id!r}", details)


class UnknownQuotaError(EntitlementsException):
    """Quota name is not configured."""

    def __init__(self, quota: str, details: Optional[Dict[str, Any]] = None):
        self.quota = quota
        super().__init__("UNKNOWN_QUOTA", f"Unknown quota: {quota!r}", details)
