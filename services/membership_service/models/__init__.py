"""Membership Service models package."""

from services.membership_service.models.enums import (
    MembershipState,
    ProductCategory,
    TimeWindow,
)

__all__ = [
    "MembershipState",
    "ProductCategory",
    "TimeWindow",
]
