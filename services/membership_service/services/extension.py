"""New expiry dates produced by a purchase.

End dates are inclusive: a 30-day pass starting on the 1st ends on the 30th.
A purchase made while the entitlement is still running starts the day after
the current end, so periods stack with no gap and no overlap. Gym and coach
legs are always extended separately, each from its own current end.
"""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from libs.common.datetime_utils import (
    add_days,
    business_tz,
    day_in_zone,
    today_in_zone,
    utc_now,
)
from libs.common.logging import get_logger
from services.membership_service.schemas import ExtensionPlan, MembershipStatus, Product

logger = get_logger(__name__)


def _validity(validity_days: Any) -> int:
    if validity_days is None or isinstance(validity_days, bool):
        return 0
    try:
        return int(float(validity_days))
    except (TypeError, ValueError):
        return 0


def _extend(
    existing_day: Optional[date],
    start_day: Optional[date],
    days: int,
    today: date,
) -> str:
    if days <= 0:
        return ""
    try:
        if existing_day is not None and existing_day >= today:
            base = date.fromisoformat(add_days(existing_day, 1))
        else:
            base = start_day or today
        return add_days(base, days - 1)
    except OverflowError:
        logger.debug(
            "No end day: %s + %d days is past year 9999",
            existing_day or start_day or today,
            days,
        )
        return ""


def compute_extension(
    existing_end: Any,
    start_date: Optional[str],
    validity_days: Any,
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> str:
    """Inclusive end day (``YYYY-MM-DD``) after buying ``validity_days`` of access.

    - still covered (existing end >= today): continue from existing end + 1
    - expired or never covered: start at ``start_date``, else today
    - no validity (merchandise): ``""``
    """
    days = _validity(validity_days)
    if days <= 0:
        return ""

    tz = tz or business_tz()
    today = today_in_zone(now or utc_now(), tz)

    start_day = None
    if start_date:
        start_day = day_in_zone(start_date, tz)
        if start_day is None:
            logger.debug("Ignoring unreadable start date %r", start_date)

    return _extend(day_in_zone(existing_end, tz), start_day, days, today)


def plan_extension(
    status: MembershipStatus,
    product: Any,
    start_date: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> ExtensionPlan:
    """New gym and coach end days for buying ``product`` on top of ``status``."""
    product = Product.from_raw(product)
    effective_now = now or utc_now()

    gym_until = ""
    if product.is_gym_membership:
        gym_until = compute_extension(
            status.membership_end,
            start_date,
            product.validity_days,
            now=effective_now,
            tz=tz,
        )

    coach_until = ""
    if product.is_coach_subscription:
        coach_until = compute_extension(
            status.coach_end,
            start_date,
            product.validity_days,
            now=effective_now,
            tz=tz,
        )

    return ExtensionPlan(gym_valid_until=gym_until, coach_valid_until=coach_until)


def replay_purchases(
    purchases: Iterable[tuple[Any, Any]],
    *,
    tz: Optional[ZoneInfo] = None,
) -> ExtensionPlan:
    """Rebuild gym and coach end days from ``(paid_on, product)`` pairs.

    Each purchase is applied as of its own payment day, in payment order, the
    way the desk would have extended it at the time. Pairs with an
    unreadable payment date are skipped.
    """
    tz = tz or business_tz()

    dated: list[tuple[date, Product]] = []
    for paid_on, raw_product in purchases:
        paid_day = day_in_zone(paid_on, tz)
        if paid_day is None:
            logger.debug("Skipping purchase with unreadable date %r", paid_on)
            continue
        dated.append((paid_day, Product.from_raw(raw_product)))
    dated.sort(key=lambda item: item[0])

    gym_end: Optional[date] = None
    coach_end: Optional[date] = None
    for paid_day, product in dated:
        if product.is_gym_membership:
            extended = _extend(gym_end, paid_day, product.validity_days, paid_day)
            if extended:
                gym_end = date.fromisoformat(extended)
        if product.is_coach_subscription:
            extended = _extend(coach_end, paid_day, product.validity_days, paid_day)
            if extended:
                coach_end = date.fromisoformat(extended)

    return ExtensionPlan(
        gym_valid_until=gym_end.isoformat() if gym_end else "",
        coach_valid_until=coach_end.isoformat() if coach_end else "",
    )
