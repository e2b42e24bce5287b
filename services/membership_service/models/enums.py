"""Enum definitions for the membership engine."""

import enum


class MembershipState(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class TimeWindow(str, enum.Enum):
    """Hours of the business day a pass may be sold in."""

    OFFPEAK = "offpeak"  # 06:00-14:59
    DAILY = "daily"  # 15:00-21:59


class ProductCategory(str, enum.Enum):
    """How a catalog item is grouped at the front desk."""

    GYM_ONLY = "gym_only"
    COACH_ONLY = "coach_only"
    BUNDLE = "bundle"
    MERCH = "merch"
