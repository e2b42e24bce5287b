"""Coaching session counts from check-in rows."""

import re
from collections.abc import Iterable
from typing import Any, Optional
from zoneinfo import ZoneInfo

from libs.common.datetime_utils import business_tz, day_string
from services.membership_service.schemas import aliases as fa

_DAY_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_COACH_WORD = re.compile(r"\bcoach\b")
_WHITESPACE = re.compile(r"\s+")


def _coach_token(raw: Any) -> str:
    # "Coach Jojo", "jojo" and "JoJo " are the same coach
    name = "" if raw is None else str(raw).strip().lower()
    name = _WHITESPACE.sub("", _COACH_WORD.sub("", name))
    return name or "none"


def _visit_day(raw: Any, tz: ZoneInfo) -> Optional[str]:
    if isinstance(raw, str) and _DAY_PREFIX.match(raw.strip()):
        return raw.strip()[:10]
    return day_string(raw, tz)


def unique_session_count(
    rows: Iterable[Any], tz: Optional[ZoneInfo] = None
) -> int:
    """Distinct (member, coach, day) sessions among check-in rows.

    Several check-ins by one member with one coach on one day are a single
    session. Rows without a member or a readable day are ignored.
    """
    tz = tz or business_tz()
    sessions: set[tuple[str, str, str]] = set()
    for raw in rows or ():
        row = fa.normalize_row(raw)
        member = fa.first_text(row, fa.VISIT_MEMBER_ID) or fa.first_text(
            row, fa.VISIT_MEMBER_NAME
        )
        day = _visit_day(fa.first_of(row, fa.VISIT_DATE), tz)
        if not member or not day:
            continue
        coach = _coach_token(fa.first_of(row, fa.VISIT_COACH))
        sessions.add((member.lower(), coach, day))
    return len(sessions)
