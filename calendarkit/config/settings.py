"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "CALENDARKIT_"

VALID_LOG_LEVELS = ("DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL")


class CalendarKitSettings(BaseSettings):
    """Library settings with environment variable support."""

    # Occurrence expansion
    max_occurrences_per_event: int = Field(
        default=1000,
        ge=0,
        description="Per-event cap on generated occurrences for a calendar query",
    )
    default_timezone: str = Field(default="UTC", description="Zone used when none is given")

    # Availability analysis
    slot_lookback_hours: int = Field(
        default=24,
        ge=0,
        description="How far before a slot to look for occurrences that run into it",
    )
    suggestion_step_minutes: int = Field(
        default=60, gt=0, description="Spacing of suggested start times inside a free gap"
    )
    busy_threshold_percent: float = Field(
        default=60.0, ge=0.0, le=100.0, description="Occupancy above which a window is busy"
    )
    light_threshold_percent: float = Field(
        default=30.0, ge=0.0, le=100.0, description="Occupancy below which a window is light"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level '{value}'. Must be one of: {VALID_LOG_LEVELS}")
        return level

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, value: str) -> str:
        # Imported lazily: the timezone package does not depend on settings
        from ..exceptions import InvalidTimeZoneError  # noqa: PLC0415
        from ..timezone import parse_timezone  # noqa: PLC0415

        try:
            parse_timezone(value)
        except InvalidTimeZoneError as e:
            raise ValueError(e.message) from e
        return value


def _read_yaml_config(config_file: Path) -> dict[str, Any]:
    """Read a YAML config file into a flat dict of known setting names."""
    with config_file.open(encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    if not isinstance(config_data, dict):
        logger.warning("Ignoring YAML config %s: top level is not a mapping", config_file)
        return {}

    # Sections are optional; nested keys are flattened onto the top level
    flat: dict[str, Any] = {}
    for key, value in config_data.items():
        if isinstance(value, dict):
            flat.update(value)
        else:
            flat[key] = value

    known = set(CalendarKitSettings.model_fields)
    unknown = sorted(set(flat) - known)
    if unknown:
        logger.debug("Ignoring unknown config keys in %s: %s", config_file, unknown)

    return {key: value for key, value in flat.items() if key in known}


def load_settings(
    config_file: Optional[Union[str, Path]] = None, **overrides: Any
) -> CalendarKitSettings:
    """Build settings from a YAML file, the environment and explicit overrides.

    Precedence, highest first: ``overrides``, ``CALENDARKIT_*`` environment
    variables, the YAML file, field defaults.
    """
    values: dict[str, Any] = {}

    if config_file is not None:
        path = Path(config_file)
        if path.exists():
            yaml_values = _read_yaml_config(path)
            for key, value in yaml_values.items():
                if f"{ENV_PREFIX}{key.upper()}" not in os.environ:
                    values[key] = value
            logger.debug("Loaded %d settings from %s", len(values), path)
        else:
            logger.warning("Config file %s not found, using defaults", path)

    values.update(overrides)
    return CalendarKitSettings(**values)


_settings: Optional[CalendarKitSettings] = None


def get_settings() -> CalendarKitSettings:
    """Get the shared settings instance, built from the environment on first use."""
    if "_settings" not in globals() or globals()["_settings"] is None:
        globals()["_settings"] = CalendarKitSettings()
    return globals()["_settings"]
