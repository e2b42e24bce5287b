"""Membership Service business logic package."""

from services.membership_service.services.eligibility import (
    classify_product,
    filter_eligible_products,
    is_daily_pass,
    is_senior,
    resolve_time_window,
    validate_purchase,
)
from services.membership_service.services.extension import (
    compute_extension,
    plan_extension,
    replay_purchases,
)
from services.membership_service.services.promotions import (
    count_recent_purchases,
    quote_price,
)
from services.membership_service.services.status_resolver import (
    resolve_status,
    resolve_statuses,
)
from services.membership_service.services.visits import unique_session_count

__all__ = [
    "classify_product",
    "compute_extension",
    "count_recent_purchases",
    "filter_eligible_products",
    "is_daily_pass",
    "is_senior",
    "plan_extension",
    "quote_price",
    "replay_purchases",
    "resolve_status",
    "resolve_statuses",
    "resolve_time_window",
    "unique_session_count",
    "validate_purchase",
]
