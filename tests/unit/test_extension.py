"""Unit tests for extension rules (Manila business days).

Time is frozen at 2025-11-16T00:00:00Z, which is 08:00 on the 16th in Manila.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from services.membership_service.schemas import MembershipStatus, Product
from services.membership_service.services import (
    compute_extension,
    plan_extension,
    replay_purchases,
    resolve_status,
)

MONTHLY_GYM = Product(
    sku="MONTHLY", particulars="Monthly Membership", validity_days=30, is_gym_membership=True
)
MONTHLY_COACH = Product(
    sku="COACH_MONTHLY",
    particulars="Coach Monthly",
    validity_days=30,
    is_coach_subscription=True,
)
MONTHLY_BUNDLE = Product(
    sku="BUNDLE_MONTHLY",
    particulars="Gym + Coach Monthly",
    validity_days=30,
    is_gym_membership=True,
    is_coach_subscription=True,
)


# ---------------------------------------------------------------------------
# compute_extension
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_starts_from_given_start_when_no_existing_end(frozen_now):
    assert compute_extension(None, "2025-11-16", 30, now=frozen_now) == "2025-12-15"


@pytest.mark.unit
def test_extends_from_day_after_active_end(frozen_now):
    assert compute_extension("2025-11-20", None, 30, now=frozen_now) == "2025-12-20"


@pytest.mark.unit
def test_active_end_ignores_requested_start(frozen_now):
    assert compute_extension("2025-11-20", "2025-11-16", 30, now=frozen_now) == "2025-12-20"


@pytest.mark.unit
def test_end_today_still_counts_as_active(frozen_now):
    assert compute_extension("2025-11-16", None, 1, now=frozen_now) == "2025-11-17"


@pytest.mark.unit
def test_expired_end_starts_today(frozen_now):
    assert compute_extension("2025-11-10", None, 30, now=frozen_now) == "2025-12-15"


@pytest.mark.unit
def test_expired_end_with_future_start(frozen_now):
    assert compute_extension("2025-11-01", "2025-12-01", 7, now=frozen_now) == "2025-12-07"


@pytest.mark.unit
def test_extends_gym_and_coach_independently(frozen_now):
    gym_new = compute_extension("2025-11-20", None, 30, now=frozen_now)
    coach_new = compute_extension("2025-11-10", "2025-11-16", 30, now=frozen_now)

    assert gym_new == "2025-12-20"
    assert coach_new == "2025-12-15"


@pytest.mark.unit
@pytest.mark.parametrize("validity", [0, -5, None, "", "abc"])
def test_no_validity_means_no_end_date(validity, frozen_now):
    assert compute_extension("2025-11-20", "2025-11-16", validity, now=frozen_now) == ""


@pytest.mark.unit
def test_validity_from_a_spreadsheet_cell(frozen_now):
    assert compute_extension(None, "2025-11-16", "30", now=frozen_now) == "2025-12-15"


@pytest.mark.unit
@pytest.mark.parametrize("days_ahead", [0, 1, 4, 45, 400])
@pytest.mark.parametrize("validity", [1, 7, 30, 365])
def test_active_extension_is_existing_end_plus_validity(days_ahead, validity, frozen_now):
    existing = date(2025, 11, 16) + timedelta(days=days_ahead)

    result = compute_extension(existing.isoformat(), None, validity, now=frozen_now)

    assert result == (existing + timedelta(days=validity)).isoformat()


@pytest.mark.unit
def test_existing_end_instant_is_read_in_business_zone(frozen_now):
    # 15:00 UTC is 23:00 on the 20th in Manila; 17:00 UTC is already the 21st
    before_midnight = datetime(2025, 11, 20, 15, 0, tzinfo=timezone.utc)
    after_midnight = datetime(2025, 11, 20, 17, 0, tzinfo=timezone.utc)

    assert compute_extension(before_midnight, None, 30, now=frozen_now) == "2025-12-20"
    assert compute_extension(after_midnight, None, 30, now=frozen_now) == "2025-12-21"


@pytest.mark.unit
@pytest.mark.parametrize("existing", ["9999-12-31", "9999-12-20"])
def test_extension_past_the_calendar_gives_no_end_date(existing, frozen_now):
    assert compute_extension(existing, None, 30, now=frozen_now) == ""


@pytest.mark.unit
def test_unreadable_far_future_end_extends_from_today(frozen_now):
    assert compute_extension("9999-12-31T23:59:59Z", None, 30, now=frozen_now) == (
        "2025-12-15"
    )


@pytest.mark.unit
def test_unreadable_start_falls_back_to_today(frozen_now):
    assert compute_extension(None, "someday", 30, now=frozen_now) == "2025-12-15"


# ---------------------------------------------------------------------------
# plan_extension
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_bundle_extends_each_leg_from_its_own_end(frozen_now):
    status = resolve_status(
        [
            {"MemberID": "m1", "GymValidUntil": "2025-11-20"},
            {"MemberID": "m1", "CoachValidUntil": "2025-11-10"},
        ],
        "m1",
        now=frozen_now,
    )

    plan = plan_extension(status, MONTHLY_BUNDLE, now=frozen_now)

    assert plan.gym_valid_until == "2025-12-20"
    assert plan.coach_valid_until == "2025-12-15"


@pytest.mark.unit
def test_single_leg_products_leave_the_other_leg_untouched(frozen_now):
    status = MembershipStatus()

    gym_plan = plan_extension(status, MONTHLY_GYM, "2025-11-18", now=frozen_now)
    coach_plan = plan_extension(status, MONTHLY_COACH, now=frozen_now)

    assert gym_plan.gym_valid_until == "2025-12-17"
    assert gym_plan.coach_valid_until == ""
    assert coach_plan.gym_valid_until == ""
    assert coach_plan.coach_valid_until == "2025-12-15"


@pytest.mark.unit
def test_merchandise_produces_no_dates(frozen_now):
    towel = {"Particulars": "Towel", "Cost": "150", "Validity": "0"}

    plan = plan_extension(MembershipStatus(), towel, now=frozen_now)

    assert plan.gym_valid_until == ""
    assert plan.coach_valid_until == ""


# ---------------------------------------------------------------------------
# replay_purchases
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_replay_stacks_purchases_in_payment_order():
    purchases = [
        ("2025-12-15", MONTHLY_COACH),
        ("2025-10-20", MONTHLY_GYM),
        ("2025-10-01", MONTHLY_GYM),
    ]

    plan = replay_purchases(purchases)

    # 10-01..10-30, then 10-31..11-29
    assert plan.gym_valid_until == "2025-11-29"
    assert plan.coach_valid_until == "2026-01-13"


@pytest.mark.unit
def test_replay_restarts_after_a_gap():
    purchases = [
        ("2025-10-01", MONTHLY_GYM),
        ("2025-12-10", MONTHLY_GYM),
        ("not a date", MONTHLY_BUNDLE),
    ]

    plan = replay_purchases(purchases)

    assert plan.gym_valid_until == "2026-01-08"
    assert plan.coach_valid_until == ""


@pytest.mark.unit
def test_replay_keeps_last_end_when_extension_overflows():
    purchases = [
        ("9999-12-01", MONTHLY_GYM),
        ("9999-12-15", MONTHLY_GYM),
    ]

    plan = replay_purchases(purchases)

    assert plan.gym_valid_until == "9999-12-30"
