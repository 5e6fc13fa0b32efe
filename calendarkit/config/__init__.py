"""Configuration for calendarkit."""

from .settings import CalendarKitSettings, get_settings, load_settings

__all__ = [
    "CalendarKitSettings",
    "get_settings",
    "load_settings",
]
