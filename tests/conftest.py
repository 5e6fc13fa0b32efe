"""Shared test configuration and fixtures for calendarkit."""

import logging
import os
from datetime import timedelta
from typing import Any, Callable, Iterator

import pytest

from calendarkit.calendar import Calendar
from calendarkit.config import CalendarKitSettings
from calendarkit.models import Event
from calendarkit.timezone import Instant, resolve


def pytest_configure(config: Any) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests across several modules or files")
    config.addinivalue_line("markers", "fast: Tests that finish in well under a second")


@pytest.fixture(autouse=True)
def clean_calendarkit_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CALENDARKIT_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("CALENDARKIT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo setup_logging() so caplog sees calendarkit records in every test."""
    yield
    logger = logging.getLogger("calendarkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def settings() -> CalendarKitSettings:
    """Default settings, built without reading the environment."""
    return CalendarKitSettings(_env_file=None)


@pytest.fixture
def utc() -> Callable[[str], Instant]:
    """Resolve a civil string in UTC."""

    def _utc(civil: str) -> Instant:
        return resolve(civil, "UTC")

    return _utc


@pytest.fixture
def make_event(utc: Callable[[str], Instant]) -> Callable[..., Event]:
    """Build a UTC event from a civil start and a duration in minutes."""

    def _make_event(title: str, start: str, minutes: int = 60, **kwargs: Any) -> Event:
        return Event.from_duration(title, utc(start), timedelta(minutes=minutes), **kwargs)

    return _make_event


@pytest.fixture
def calendar(settings: CalendarKitSettings) -> Calendar:
    """Empty UTC calendar."""
    return Calendar("Test Calendar", timezone="UTC", settings=settings)
