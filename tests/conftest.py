"""
Pytest configuration and shared fixtures.
"""

import asyncio
from datetime import date
from unittest.mock import patch

import pytest

from fetch.cache import FetchOptions


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings for all tests."""
    with patch("config.settings") as mock_settings:
        mock_settings.api_base_url = "https://api.test"
        mock_settings.api_timeout = 5.0
        mock_settings.fetch_stale_time = 60.0
        mock_settings.fetch_cache_time = 120.0
        mock_settings.fetch_retry_count = 3
        mock_settings.fetch_retry_delay = 0.5
        mock_settings.refetch_on_window_focus = True
        mock_settings.refetch_on_reconnect = True
        mock_settings.booking_max_days_ahead = 30
        mock_settings.timezone = "Asia/Kolkata"
        mock_settings.log_level = "INFO"
        mock_settings.log_dir = "logs"
        mock_settings.environment = "test"
        mock_settings.is_production = False

        # Modules that bound settings at import time
        with patch("fetch.cache.settings", mock_settings), patch(
            "validation.booking.settings", mock_settings
        ), patch("api.client.settings", mock_settings):
            yield mock_settings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fetch_options():
    """Short windows: stale after 60s, expired after 120s."""
    return FetchOptions(stale_time=60, cache_time=120, retry_count=3, retry_delay=0.5)


@pytest.fixture
def today():
    """Fixed reference date for booking validation."""
    return date(2026, 3, 10)


@pytest.fixture
def salon_booking(today):
    """Valid salon booking payload relative to ``today``."""
    return {
        "serviceId": "64f1c2a9e4b0a1b2c3d4e5f6",
        "date": "2026-03-12",
        "timeSlot": "10:30",
        "location": "salon",
    }


@pytest.fixture
def home_booking(salon_booking):
    """Valid home booking payload."""
    return {
        **salon_booking,
        "location": "home",
        "address": {
            "street": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "zipCode": "560001",
        },
    }
