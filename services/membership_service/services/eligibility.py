"""Front-desk purchase rules.

A purchase is checked against the member's current status and the hour of
day in the business zone. Rules run in a fixed order and the first rejection
is returned as a message the desk shows as is.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta
from libs.common.config import get_settings
from libs.common.datetime_utils import (
    business_tz,
    hour_in_zone,
    today_in_zone,
    utc_now,
    zone_label,
)
from libs.common.logging import get_logger
from services.membership_service.models import ProductCategory, TimeWindow
from services.membership_service.schemas import (
    MembershipStatus,
    MemberSnapshot,
    Product,
    PurchaseDecision,
)
from services.membership_service.services.status_resolver import Category, infer_category

logger = get_logger(__name__)

# Hours are [start, end) on the business-zone clock
OFFPEAK_HOURS = range(6, 15)
DAILY_HOURS = range(15, 22)

_OFFPEAK_WORDS = re.compile(r"off\s*-?\s*peak", re.IGNORECASE)
_DAILY_WORDS = re.compile(r"\bdaily\b|daily\s*pass|1[- ]?day", re.IGNORECASE)
_DISCOUNT_WORDS = re.compile(r"student|senior|discount|disc", re.IGNORECASE)

MEMBERSHIP_CONFLICT_ERROR = "Daily pass not allowed: member has active membership"
COACH_CONFLICT_ERROR = (
    "Coach session not allowed: member has active coach subscription"
)
DISCOUNT_ERROR = "Discounted pass is restricted to students and seniors"
COACH_NEEDS_MEMBERSHIP_ERROR = "Coach subscription requires an active gym membership"


# ---------------------------------------------------------------------------
# Product classification
# ---------------------------------------------------------------------------


def _window_from_field(product: Product) -> Optional[TimeWindow]:
    return product.time_window


def _window_from_sku(product: Product) -> Optional[TimeWindow]:
    if "OFFPEAK" in product.sku:
        return TimeWindow.OFFPEAK
    if product.sku.startswith("DAILY"):
        return TimeWindow.DAILY
    return None


def _window_from_name(product: Product) -> Optional[TimeWindow]:
    if _OFFPEAK_WORDS.search(product.particulars):
        return TimeWindow.OFFPEAK
    if _DAILY_WORDS.search(product.particulars):
        return TimeWindow.DAILY
    return None


WINDOW_SIGNALS = (_window_from_field, _window_from_sku, _window_from_name)


def resolve_time_window(product: Product) -> Optional[TimeWindow]:
    """Selling window of a product; the first signal that names one wins.

    A one-day product with no window signal is a standard daily pass.
    """
    found = []
    for signal in WINDOW_SIGNALS:
        window = signal(product)
        if window is not None:
            found.append((signal.__name__, window))
    if not found:
        return TimeWindow.DAILY if product.validity_days == 1 else None

    chosen = found[0][1]
    conflicting = [name for name, window in found[1:] if window != chosen]
    if conflicting:
        logger.warning(
            "Conflicting time window for %r: using %s from %s, ignoring %s",
            product.particulars or product.sku,
            chosen.value,
            found[0][0],
            ", ".join(conflicting),
        )
    return chosen


def is_daily_pass(product: Product) -> bool:
    """Single-day access: repeatable, sold per visit."""
    return (
        product.validity_days == 1
        or product.sku.startswith("DAILY")
        or product.time_window == TimeWindow.DAILY
        or bool(_DAILY_WORDS.search(product.particulars))
    )


def is_discounted(product: Product) -> bool:
    if product.discount is not None:
        return product.discount
    return bool(_DISCOUNT_WORDS.search(f"{product.sku} {product.particulars}"))


def product_category(product: Product) -> Category:
    """What the product grants. Catalog flags win; unflagged items are guessed."""
    if product.is_gym_membership or product.is_coach_subscription:
        return Category(
            gym=product.is_gym_membership, coach=product.is_coach_subscription
        )
    guessed = infer_category(f"{product.sku} {product.particulars}", {})
    # A day pass is gym access even when its name does not say so
    return Category(gym=guessed.gym or is_daily_pass(product), coach=guessed.coach)


def classify_product(product: Any) -> ProductCategory:
    category = product_category(Product.from_raw(product))
    if category.gym and category.coach:
        return ProductCategory.BUNDLE
    if category.gym:
        return ProductCategory.GYM_ONLY
    if category.coach:
        return ProductCategory.COACH_ONLY
    return ProductCategory.MERCH


# ---------------------------------------------------------------------------
# Member eligibility
# ---------------------------------------------------------------------------


def is_senior(
    birth_date: Optional[date],
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> bool:
    if birth_date is None:
        return False
    today = today_in_zone(now or utc_now(), tz or business_tz())
    return relativedelta(today, birth_date).years >= get_settings().SENIOR_AGE


def has_discount_eligibility(
    member: Optional[MemberSnapshot],
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> bool:
    if member is None:
        return False
    return member.is_student or is_senior(member.birth_date, now, tz)


# ---------------------------------------------------------------------------
# Purchase validation
# ---------------------------------------------------------------------------


def validate_purchase(
    status: MembershipStatus,
    product: Any,
    now: Optional[datetime] = None,
    *,
    member: Any = None,
    tz: Optional[ZoneInfo] = None,
) -> PurchaseDecision:
    """Decide whether ``product`` may be sold to a member right now.

    Checked in order: day pass over an active membership, coach product
    over an active coach subscription, discount eligibility (student, or
    senior by age), then the selling window for the current hour. Coach-only
    day passes may be sold at any hour.
    """
    tz = tz or business_tz()
    effective_now = now or utc_now()
    if isinstance(status, Mapping):
        status = MembershipStatus.model_validate(status)
    product = Product.from_raw(product)
    snapshot = MemberSnapshot.from_raw(member, tz) if member is not None else None
    category = product_category(product)
    coach_only = category.coach and not category.gym
    daily = is_daily_pass(product)

    if daily and not coach_only and status.membership_active:
        return PurchaseDecision.reject(MEMBERSHIP_CONFLICT_ERROR)

    if category.coach and status.coach_active:
        return PurchaseDecision.reject(COACH_CONFLICT_ERROR)

    if is_discounted(product) and not has_discount_eligibility(
        snapshot, effective_now, tz
    ):
        return PurchaseDecision.reject(DISCOUNT_ERROR)

    window = resolve_time_window(product)
    if window is None or (coach_only and daily):
        return PurchaseDecision.allow()

    hour = hour_in_zone(effective_now, tz)
    label = zone_label(tz)
    if window == TimeWindow.OFFPEAK and hour not in OFFPEAK_HOURS:
        return PurchaseDecision.reject(
            f"Off-peak pass only available 6am-3pm ({label} time)"
        )
    if window == TimeWindow.DAILY and hour not in DAILY_HOURS:
        return PurchaseDecision.reject(
            f"Daily pass only available 3pm-10pm ({label} time)"
        )

    return PurchaseDecision.allow()


def filter_eligible_products(
    products: Iterable[Any],
    status: MembershipStatus,
    now: Optional[datetime] = None,
    *,
    member: Any = None,
    tz: Optional[ZoneInfo] = None,
) -> list[Product]:
    """Catalog items the desk may offer this member at this hour.

    On top of ``validate_purchase``, coach-only items are only offered to
    members whose gym membership is active.
    """
    effective_now = now or utc_now()
    offered: list[Product] = []
    for raw in products or ():
        product = Product.from_raw(raw)
        if classify_product(product) == ProductCategory.COACH_ONLY and not (
            status.membership_active
        ):
            logger.debug(
                "Hiding %r: %s", product.particulars, COACH_NEEDS_MEMBERSHIP_ERROR
            )
            continue
        if validate_purchase(
            status, product, effective_now, member=member, tz=tz
        ).ok:
            offered.append(product)
    return offered
