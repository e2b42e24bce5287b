"""Usage-based promotion: a free day pass for frequent day-pass buyers.

A member who bought the exact same day pass ``PROMO_FREE_AFTER_USES`` times
within the trailing ``PROMO_WINDOW_DAYS`` gets the next one at zero cost.
Every payment counts, including several on the same day.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

from libs.common.config import get_settings
from libs.common.datetime_utils import business_tz, parse_date_like, utc_now
from libs.common.logging import get_logger
from services.membership_service.schemas import PaymentRecord, PriceQuote, Product
from services.membership_service.services.eligibility import is_daily_pass

logger = get_logger(__name__)


def count_recent_purchases(
    payments: Iterable[Any],
    member_id: Optional[str],
    particulars: str,
    *,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
    tz: Optional[ZoneInfo] = None,
) -> int:
    """Payments of ``particulars`` by the member within the trailing window.

    Names must match exactly after trimming. Payments without a readable
    date do not count, and without a member id nothing counts.
    """
    tz = tz or business_tz()
    if window_days is None:
        window_days = get_settings().PROMO_WINDOW_DAYS
    effective_now = parse_date_like(now, tz) if now else utc_now()
    cutoff = effective_now - timedelta(days=window_days)
    name = particulars.strip()
    target = member_id.strip().lower() if member_id else ""
    if not target:
        return 0

    count = 0
    for raw in payments or ():
        payment = PaymentRecord.from_raw(raw, tz)
        if payment.member_id != target:
            continue
        if payment.particulars != name or payment.paid_at is None:
            continue
        if payment.paid_at >= cutoff:
            count += 1
    return count


def quote_price(
    product: Any,
    payments: Iterable[Any],
    member_id: Optional[str],
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> PriceQuote:
    """Price of ``product`` for this member, with the day-pass promo applied."""
    settings = get_settings()
    product = Product.from_raw(product)
    list_price = product.price

    if not is_daily_pass(product):
        return PriceQuote(price=list_price, list_price=list_price)

    uses = count_recent_purchases(
        payments,
        member_id,
        product.particulars,
        now=now,
        window_days=settings.PROMO_WINDOW_DAYS,
        tz=tz,
    )
    if uses < settings.PROMO_FREE_AFTER_USES:
        return PriceQuote(price=list_price, list_price=list_price, recent_uses=uses)

    logger.info(
        "Free day pass promo applied",
        extra={"member_id": member_id, "particulars": product.particulars, "uses": uses},
    )
    return PriceQuote(
        price=0, list_price=list_price, promo_applied=True, recent_uses=uses
    )
