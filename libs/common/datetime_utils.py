"""Datetime utilities for timezone-aware timestamps and business-zone days.

Every "is it still valid?" question is answered on calendar days in the
business time zone (``Settings.TIMEZONE``), never on raw instants.

Usage:
    from libs.common.datetime_utils import day_string, today_in_zone, utc_now

    now = utc_now()
    if day_string(expires_at) >= today_in_zone(now).isoformat():
        ...
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser
from libs.common.config import get_settings

_DAY_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Two distinct fill-in values for python-dateutil, see _parse_loose
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Callers pass the result into the membership engine as ``now``.
    """
    return datetime.now(timezone.utc)


def business_tz() -> ZoneInfo:
    """Return the configured business time zone."""
    return ZoneInfo(get_settings().TIMEZONE)


def zone_label(tz: ZoneInfo) -> str:
    """Human label for a zone, e.g. ``Asia/Manila`` -> ``Manila``."""
    return str(tz.key).split("/")[-1].replace("_", " ")


def _from_seconds(seconds: Any) -> Optional[datetime]:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _in_zone(parsed: Optional[datetime], tz: ZoneInfo) -> Optional[datetime]:
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    try:
        return parsed.astimezone(tz)
    except OverflowError:
        # e.g. 9999-12-31T23:59:59Z is already year 10000 in an eastern zone
        return None


def _parse_loose(text: str) -> Optional[datetime]:
    # Missing fields would be filled from the real current date; a string is
    # only a date when two different defaults agree on its calendar day.
    try:
        first = date_parser.parse(text, default=_DEFAULT_A)
        second = date_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first


def _parse_raw(value: Any, tz: ZoneInfo) -> Optional[datetime]:
    if value is None or isinstance(value, (bool, int, float, timedelta)):
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        return _from_seconds(seconds)

    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        try:
            converted = to_datetime()
        except (TypeError, ValueError):
            return None
        return converted if isinstance(converted, datetime) else None

    if hasattr(value, "seconds"):
        return _from_seconds(getattr(value, "seconds"))

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _DAY_ONLY.match(text):
        try:
            return datetime.combine(date.fromisoformat(text), time.min, tzinfo=tz)
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(
            text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        )
    except ValueError:
        return _parse_loose(text)


def parse_date_like(value: Any, tz: Optional[ZoneInfo] = None) -> Optional[datetime]:
    """Normalize a date-like value to an aware datetime in the business zone.

    Accepted inputs:
    - ``datetime`` (naive values are read as business-zone wall time)
    - ``date`` (business-zone midnight)
    - ``{"seconds": n}`` / ``{"_seconds": n}`` mappings and objects with a
      numeric ``seconds`` attribute (Unix seconds, e.g. document-store timestamps)
    - objects exposing ``to_datetime()``
    - ``YYYY-MM-DD`` strings (business-zone midnight)
    - ISO-8601 strings, then anything python-dateutil can read as a full
      calendar day (``"March"`` alone is not a date)

    Never raises: unreadable input, and instants the business zone cannot
    represent, yield None.
    """
    tz = tz or business_tz()
    return _in_zone(_parse_raw(value, tz), tz)


def day_in_zone(value: Any, tz: Optional[ZoneInfo] = None) -> Optional[date]:
    """Calendar day of a date-like value in the business zone."""
    tz = tz or business_tz()
    parsed = parse_date_like(value, tz)
    if parsed is None:
        return None
    return parsed.astimezone(tz).date()


def day_string(value: Any, tz: Optional[ZoneInfo] = None) -> Optional[str]:
    """``YYYY-MM-DD`` of a date-like value in the business zone."""
    day = day_in_zone(value, tz)
    return day.isoformat() if day else None


def today_in_zone(now: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """Today's calendar day in the business zone as of ``now``."""
    tz = tz or business_tz()
    return (parse_date_like(now, tz) or now).astimezone(tz).date()


def hour_in_zone(now: datetime, tz: Optional[ZoneInfo] = None) -> int:
    """Hour of day (0-23) in the business zone as of ``now``."""
    tz = tz or business_tz()
    return (parse_date_like(now, tz) or now).astimezone(tz).hour


def add_days(day: date | str, days: int) -> str:
    """Shift a calendar day by ``days`` and return it as ``YYYY-MM-DD``."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return (day + timedelta(days=days)).isoformat()
