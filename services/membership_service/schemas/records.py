"""Typed input records.

Raw rows (any key spelling, any date encoding) are resolved here, once, into
canonical records. Nothing past this module reads a raw row.
"""

from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from libs.common.datetime_utils import business_tz, day_in_zone, parse_date_like
from libs.common.logging import get_logger
from pydantic import BaseModel, ConfigDict, Field
from services.membership_service.models import TimeWindow
from services.membership_service.schemas import aliases as fa

logger = get_logger(__name__)


def _date_field(
    row: dict[str, Any], aliases: tuple[str, ...], tz: ZoneInfo
) -> Optional[datetime]:
    raw = fa.first_of(row, aliases)
    if raw is None:
        return None
    parsed = parse_date_like(raw, tz)
    if parsed is None:
        logger.debug("Skipping unreadable date %r (fields %s)", raw, aliases[0])
    return parsed


def _member_id(row: dict[str, Any]) -> Optional[str]:
    text = fa.first_text(row, fa.MEMBER_ID).lower()
    return text or None


def _number(value: Any, default: float = 0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return default


class PaymentRecord(BaseModel):
    """One purchase event of one member."""

    member_id: Optional[str] = None
    particulars: str = ""
    gym_valid_until: Optional[datetime] = None
    coach_valid_until: Optional[datetime] = None
    generic_end: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, row: Any, tz: Optional[ZoneInfo] = None) -> "PaymentRecord":
        if isinstance(row, cls):
            return row
        tz = tz or business_tz()
        n = fa.normalize_row(row)
        return cls(
            member_id=_member_id(n),
            particulars=fa.first_text(n, fa.PARTICULARS),
            gym_valid_until=_date_field(n, fa.GYM_VALID_UNTIL, tz),
            coach_valid_until=_date_field(n, fa.COACH_VALID_UNTIL, tz),
            generic_end=_date_field(n, fa.GENERIC_END, tz),
            paid_at=_date_field(n, fa.PAYMENT_DATE, tz),
        )


class PricingRule(BaseModel):
    """Category flags for a product name. Names match case-insensitively."""

    particulars: str
    is_gym_membership: bool = False
    is_coach_subscription: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, row: Any) -> "PricingRule":
        if isinstance(row, cls):
            return row
        if isinstance(row, Product):
            return row.as_pricing_rule()
        n = fa.normalize_row(row)
        return cls(
            particulars=fa.first_text(n, fa.PRICING_NAME),
            is_gym_membership=bool(fa.truthy_flag(fa.first_of(n, fa.PRICING_GYM_FLAG))),
            is_coach_subscription=bool(
                fa.truthy_flag(fa.first_of(n, fa.PRICING_COACH_FLAG))
            ),
        )


class MemberSnapshot(BaseModel):
    """The member row as stored; only used for fallbacks and discount checks."""

    member_id: Optional[str] = None
    membership_state: Optional[str] = None
    membership_end: Optional[datetime] = None
    is_student: bool = False
    birth_date: Optional[date] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, row: Any, tz: Optional[ZoneInfo] = None) -> "MemberSnapshot":
        if isinstance(row, cls):
            return row
        tz = tz or business_tz()
        n = fa.normalize_row(row)
        state = fa.first_of(n, fa.MEMBER_STATE)
        # A bare boolean "membership: true" flag means active
        if state is True:
            state = "active"
        state_text = state.strip().lower() if isinstance(state, str) else None
        return cls(
            member_id=_member_id(n),
            membership_state=state_text or None,
            membership_end=_date_field(n, fa.MEMBER_END, tz),
            is_student=bool(fa.truthy_flag(fa.first_of(n, fa.MEMBER_STUDENT))),
            birth_date=day_in_zone(fa.first_of(n, fa.MEMBER_BIRTH_DATE), tz),
        )


class Product(BaseModel):
    """A catalog item offered at the front desk."""

    sku: str = ""
    particulars: str = ""
    price: float = Field(default=0, ge=0)
    validity_days: int = Field(default=0, ge=0)
    is_gym_membership: bool = False
    is_coach_subscription: bool = False
    time_window: Optional[TimeWindow] = None
    # None means "not stated": inferred from the name
    discount: Optional[bool] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, row: Any) -> "Product":
        if isinstance(row, cls):
            return row
        n = fa.normalize_row(row)
        window_text = fa.first_text(n, fa.PRICING_TIME_WINDOW).lower()
        window_text = fa.canonical_key(window_text)
        return cls(
            sku=fa.first_text(n, fa.PRICING_SKU).upper(),
            particulars=fa.first_text(n, fa.PRICING_NAME),
            price=max(_number(fa.first_of(n, fa.PRICING_PRICE)), 0),
            validity_days=max(int(_number(fa.first_of(n, fa.PRICING_VALIDITY))), 0),
            is_gym_membership=bool(fa.truthy_flag(fa.first_of(n, fa.PRICING_GYM_FLAG))),
            is_coach_subscription=bool(
                fa.truthy_flag(fa.first_of(n, fa.PRICING_COACH_FLAG))
            ),
            time_window=(
                TimeWindow(window_text)
                if window_text in {w.value for w in TimeWindow}
                else None
            ),
            discount=fa.truthy_flag(fa.first_of(n, fa.PRICING_DISCOUNT)),
        )

    def as_pricing_rule(self) -> PricingRule:
        return PricingRule(
            particulars=self.particulars,
            is_gym_membership=self.is_gym_membership,
            is_coach_subscription=self.is_coach_subscription,
        )
