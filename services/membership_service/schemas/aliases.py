"""Historical column names for payment, pricing and member rows.

Rows arrive from spreadsheets, the relational store and the document mirror,
each with its own spelling of the same field. Keys are canonicalised
(lower-case, no spaces/underscores/hyphens) and every logical field has an
ordered alias list; the first alias holding a non-empty value wins.
"""

import re
from collections.abc import Mapping
from typing import Any, Optional

_KEY_NOISE = re.compile(r"[\s_\-]+")

MEMBER_ID = ("memberid", "id")
PARTICULARS = (
    "particulars",
    "particular",
    "type",
    "item",
    "category",
    "product",
    "paymentfor",
    "plan",
    "description",
)
GYM_VALID_UNTIL = ("gymvaliduntil", "gymuntil", "gymvalid")
COACH_VALID_UNTIL = ("coachvaliduntil", "coachuntil", "coachend")
GENERIC_END = ("enddate", "validuntil", "expiry", "expires", "until", "end")
PAYMENT_DATE = ("date", "datepaid", "datetime", "timestamp", "createdat")

PRICING_NAME = ("particulars", "name")
PRICING_GYM_FLAG = ("gymmembership", "isgymmembership", "membership")
PRICING_COACH_FLAG = ("coachsubscription", "iscoachsubscription", "coach")
PRICING_SKU = ("sku",)
PRICING_PRICE = ("cost", "price", "amount")
PRICING_VALIDITY = ("validitydays", "validity")
PRICING_TIME_WINDOW = ("timewindow", "time")
PRICING_DISCOUNT = ("discount",)

MEMBER_STATE = ("membershipstate", "membership", "status")
MEMBER_END = (
    "membershipend",
    "gymvaliduntil",
    "gymuntil",
    "enddate",
    "validuntil",
    "expiry",
    "expires",
    "until",
    "end",
    "gymvalid",
    "gymvalidity",
)
MEMBER_STUDENT = ("student", "isstudent")
MEMBER_BIRTH_DATE = ("birthdate", "dateofbirth", "dob", "birthday")

VISIT_MEMBER_ID = ("memberid", "member", "id")
VISIT_MEMBER_NAME = ("nickname", "nick", "membername")
VISIT_COACH = ("coach", "coachname")
VISIT_DATE = ("date", "timein", "timestamp")

_TRUTHY = {"yes", "y", "true", "1"}


def canonical_key(key: Any) -> str:
    return _KEY_NOISE.sub("", str(key)).lower()


def normalize_row(row: Any) -> dict[str, Any]:
    """Return ``row`` with canonical keys. Non-mapping input yields ``{}``."""
    if hasattr(row, "model_dump"):
        row = row.model_dump()
    if not isinstance(row, Mapping):
        return {}
    return {canonical_key(k): v for k, v in row.items()}


def first_of(row: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    """First non-empty value among ``aliases`` in an already-normalized row."""
    for alias in aliases:
        value = row.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def first_text(row: Mapping[str, Any], aliases: tuple[str, ...]) -> str:
    value = first_of(row, aliases)
    return "" if value is None else str(value).strip()


def truthy_flag(value: Any) -> Optional[bool]:
    """Spreadsheet-style yes/no flag; None when the flag is absent."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    return text in _TRUTHY
