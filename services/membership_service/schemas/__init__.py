"""Membership Service schemas package."""

from services.membership_service.schemas.records import (
    MemberSnapshot,
    PaymentRecord,
    PricingRule,
    Product,
)
from services.membership_service.schemas.status import (
    ExtensionPlan,
    MembershipStatus,
    PriceQuote,
    PurchaseDecision,
)

__all__ = [
    "ExtensionPlan",
    "MemberSnapshot",
    "MembershipStatus",
    "PaymentRecord",
    "PriceQuote",
    "PricingRule",
    "Product",
    "PurchaseDecision",
]
