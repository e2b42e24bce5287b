import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from dotenv import load_dotenv

# Optional overrides for local runs; the fixtures below still pin what tests rely on
env_test_path = os.path.join(os.path.dirname(__file__), "..", ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

from libs.common.config import get_settings

MANILA = ZoneInfo("Asia/Manila")


@pytest.fixture(autouse=True)
def business_settings(monkeypatch):
    """
    Pin the settings every engine rule depends on and drop the cached instance
    so each test sees them.
    """
    monkeypatch.setenv("TIMEZONE", "Asia/Manila")
    monkeypatch.setenv("PROMO_FREE_AFTER_USES", "12")
    monkeypatch.setenv("PROMO_WINDOW_DAYS", "30")
    monkeypatch.setenv("SENIOR_AGE", "60")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def manila() -> ZoneInfo:
    return MANILA


@pytest.fixture
def frozen_now() -> datetime:
    """2025-11-16 00:00 UTC, i.e. 08:00 on 2025-11-16 in Manila."""
    return datetime(2025, 11, 16, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def at_manila():
    """Build an instant from a Manila wall-clock time on 2025-11-16."""

    def _at(hour: int, minute: int = 0, day: int = 16) -> datetime:
        return datetime(2025, 11, day, hour, minute, tzinfo=MANILA)

    return _at
