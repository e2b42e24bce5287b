"""Current gym membership and coach subscription state from payment history.

Every payment row may carry the resulting expiry of what it bought. The
member's current end is simply the latest such expiry, so the reduction is a
max over business-zone days and does not depend on row order.

Where a row does not say which entitlement an end date belongs to, the
product name decides: a pricing rule for that name when one exists,
otherwise keywords in the name.
"""

import re
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

from libs.common.datetime_utils import business_tz, today_in_zone, utc_now
from libs.common.logging import get_logger
from services.membership_service.models import MembershipState
from services.membership_service.schemas import (
    MembershipStatus,
    MemberSnapshot,
    PaymentRecord,
    PricingRule,
)

logger = get_logger(__name__)

_GYM_WORDS = re.compile(r"member|gym", re.IGNORECASE)
_COACH_WORDS = re.compile(r"coach|trainer|pt", re.IGNORECASE)

MemberRef = Union[str, MemberSnapshot, Mapping[str, Any], None]


@dataclass(frozen=True)
class Category:
    gym: bool
    coach: bool


def build_category_lookup(pricing_rules: Iterable[Any]) -> dict[str, Category]:
    """Map lower-cased product name -> category flags."""
    lookup: dict[str, Category] = {}
    for raw in pricing_rules or ():
        rule = PricingRule.from_raw(raw)
        name = rule.particulars.strip().lower()
        if not name:
            continue
        lookup[name] = Category(
            gym=rule.is_gym_membership, coach=rule.is_coach_subscription
        )
    return lookup


def infer_category(particulars: str, lookup: Mapping[str, Category]) -> Category:
    """Pricing rule flags when the name is in the catalog, else keywords."""
    rule = lookup.get(particulars.strip().lower())
    if rule is not None:
        return rule
    return Category(
        gym=bool(_GYM_WORDS.search(particulars)),
        coach=bool(_COACH_WORDS.search(particulars)),
    )


# Candidate strategies, tried in order per payment; the first hit is that
# payment's end date for the entitlement.
Strategy = Callable[[PaymentRecord, Category], Optional[datetime]]


def _explicit_gym_end(payment: PaymentRecord, category: Category) -> Optional[datetime]:
    return payment.gym_valid_until


def _generic_end_if_gym(payment: PaymentRecord, category: Category) -> Optional[datetime]:
    return payment.generic_end if category.gym else None


def _explicit_coach_end(
    payment: PaymentRecord, category: Category
) -> Optional[datetime]:
    return payment.coach_valid_until


def _generic_end_if_coach(
    payment: PaymentRecord, category: Category
) -> Optional[datetime]:
    # A bare end date never counts as coach time without a coach signal
    return payment.generic_end if category.coach else None


MEMBERSHIP_STRATEGIES: tuple[Strategy, ...] = (_explicit_gym_end, _generic_end_if_gym)
COACH_STRATEGIES: tuple[Strategy, ...] = (_explicit_coach_end, _generic_end_if_coach)


def first_candidate(
    strategies: Iterable[Strategy], payment: PaymentRecord, category: Category
) -> Optional[datetime]:
    for strategy in strategies:
        found = strategy(payment, category)
        if found is not None:
            return found
    return None


# (business-zone day, instant); tuple order makes "latest" total and commutative
_Best = Optional[tuple[date, datetime]]


def _keep_latest(best: _Best, candidate: Optional[datetime], tz: ZoneInfo) -> _Best:
    if candidate is None:
        return best
    entry = (candidate.astimezone(tz).date(), candidate)
    if best is None or entry > best:
        return entry
    return best


def _target_member_id(member: MemberRef, snapshot: Optional[MemberSnapshot]) -> Optional[str]:
    if isinstance(member, str):
        return member.strip().lower() or None
    if snapshot is not None:
        return snapshot.member_id
    return None


def resolve_status(
    payments: Iterable[Any],
    member: MemberRef = None,
    pricing_rules: Iterable[Any] = (),
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> MembershipStatus:
    """Derive a member's membership and coach status from their payments.

    ``member`` is either a member id or a member row/snapshot. With a row,
    its own end date (or an explicit "active" state) is used when no payment
    yields a membership date. Unreadable dates are skipped, never raised.
    """
    tz = tz or business_tz()
    effective_now = now or utc_now()
    today = today_in_zone(effective_now, tz)
    lookup = build_category_lookup(pricing_rules)

    snapshot = None
    if member is not None and not isinstance(member, str):
        snapshot = MemberSnapshot.from_raw(member, tz)
    target_id = _target_member_id(member, snapshot)

    membership: _Best = None
    coach: _Best = None
    for raw in payments or ():
        payment = PaymentRecord.from_raw(raw, tz)
        if target_id and payment.member_id != target_id:
            continue
        category = infer_category(payment.particulars, lookup)
        membership = _keep_latest(
            membership, first_candidate(MEMBERSHIP_STRATEGIES, payment, category), tz
        )
        coach = _keep_latest(
            coach, first_candidate(COACH_STRATEGIES, payment, category), tz
        )

    coach_end = coach[1] if coach else None
    coach_end_day = coach[0].isoformat() if coach else None
    coach_active = bool(coach and coach[0] >= today)

    # Member-level fallbacks, in order: explicit "active" state, then the
    # member's own end date.
    if membership is None and snapshot is not None:
        if snapshot.membership_state == MembershipState.ACTIVE.value:
            return MembershipStatus(
                membership_state=MembershipState.ACTIVE,
                coach_end=coach_end,
                coach_active=coach_active,
                coach_end_day=coach_end_day,
            )
        membership = _keep_latest(membership, snapshot.membership_end, tz)

    membership_state = None
    if membership is not None:
        membership_state = (
            MembershipState.ACTIVE if membership[0] >= today else MembershipState.EXPIRED
        )

    return MembershipStatus(
        membership_end=membership[1] if membership else None,
        membership_state=membership_state,
        coach_end=coach_end,
        coach_active=coach_active,
        membership_end_day=membership[0].isoformat() if membership else None,
        coach_end_day=coach_end_day,
    )


def resolve_statuses(
    payments: Iterable[Any],
    members: Optional[Iterable[MemberRef]] = None,
    pricing_rules: Iterable[Any] = (),
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> dict[str, MembershipStatus]:
    """Resolve every member of a payment export in one pass over the rows.

    Without ``members``, every member id seen in ``payments`` is resolved.
    """
    tz = tz or business_tz()
    effective_now = now or utc_now()
    rules = [PricingRule.from_raw(r) for r in pricing_rules or ()]

    by_member: dict[str, list[PaymentRecord]] = defaultdict(list)
    for raw in payments or ():
        payment = PaymentRecord.from_raw(raw, tz)
        if payment.member_id:
            by_member[payment.member_id].append(payment)

    refs: list[MemberRef] = list(members) if members is not None else list(by_member)

    results: dict[str, MembershipStatus] = {}
    for ref in refs:
        snapshot = None if isinstance(ref, str) else MemberSnapshot.from_raw(ref, tz)
        member_id = _target_member_id(ref, snapshot)
        if not member_id:
            logger.debug("Skipping member without an id: %r", ref)
            continue
        results[member_id] = resolve_status(
            by_member.get(member_id, []),
            snapshot if snapshot is not None else member_id,
            rules,
            now=effective_now,
            tz=tz,
        )
    return results
