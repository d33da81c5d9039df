"""
Centralized configuration with environment variable overrides.

Working hours, booking horizon, filler-booking policy and notification
settings are all configurable here. The scheduling engine itself never
reads these directly: it receives an immutable ``SchedulingSettings``
built from ``settings.schedule`` or from the persisted key-value rows.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class ScheduleConfig:
    """Default working hours and booking windows."""

    work_start: str = os.getenv("WORK_START", "09:00")
    work_end: str = os.getenv("WORK_END", "18:00")
    break_between: int = _safe_int("BREAK_BETWEEN", "15")
    booking_days_ahead: int = _safe_int("BOOKING_DAYS_AHEAD", "60")
    cancel_hours_before: int = _safe_int("CANCEL_HOURS_BEFORE", "24")
    slot_granularity: int = _safe_int("SLOT_GRANULARITY", "30")
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "Europe/Vilnius")


@dataclass(frozen=True)
class FillerConfig:
    """Policy for the synthetic filler bookings."""

    granularity: int = _safe_int("FILLER_GRANULARITY", "15")
    cancel_probability: float = _safe_float("FILLER_CANCEL_PROBABILITY", "0.5")
    placeholder_name: str = os.getenv("FILLER_PLACEHOLDER_NAME", "SISTEMA")
    placeholder_phone: str = os.getenv("FILLER_PLACEHOLDER_PHONE", "SYSTEM-INTERNAL")


@dataclass(frozen=True)
class NotificationConfig:
    """Addresses and links used when rendering notification templates."""

    admin_email: str = os.getenv("ADMIN_EMAIL", "info@example.com")
    contact_phone: str = os.getenv("CONTACT_PHONE", "+37060000000")
    manage_base_url: str = os.getenv("MANAGE_BASE_URL", "https://example.com/booking")
    logo_url: str = os.getenv("EMAIL_LOGO_URL", "")
    email_enabled: bool = _safe_bool("EMAIL_ENABLED", "true")
    sms_enabled: bool = _safe_bool("SMS_ENABLED", "true")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    filler: FillerConfig = field(default_factory=FillerConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    business_name: str = os.getenv("BUSINESS_NAME", "Salon")


def _parse_clock(env_var: str, value: str) -> datetime:
    try:
        return datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValueError(f"{env_var} must be HH:MM, got {value!r}") from None


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    start = _parse_clock("WORK_START", config.schedule.work_start)
    end = _parse_clock("WORK_END", config.schedule.work_end)
    if start >= end:
        raise ValueError(
            f"WORK_START must be before WORK_END, got "
            f"{config.schedule.work_start} - {config.schedule.work_end}"
        )
    if config.schedule.break_between < 0:
        raise ValueError(
            f"BREAK_BETWEEN must be >= 0, got {config.schedule.break_between}"
        )
    if config.schedule.booking_days_ahead < 1:
        raise ValueError(
            f"BOOKING_DAYS_AHEAD must be >= 1, got {config.schedule.booking_days_ahead}"
        )
    if config.schedule.cancel_hours_before < 0:
        raise ValueError(
            f"CANCEL_HOURS_BEFORE must be >= 0, got {config.schedule.cancel_hours_before}"
        )

    for name, value in [
        ("SLOT_GRANULARITY", config.schedule.slot_granularity),
        ("FILLER_GRANULARITY", config.filler.granularity),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if not 0.0 <= config.filler.cancel_probability <= 1.0:
        raise ValueError(
            "FILLER_CANCEL_PROBABILITY must be between 0.0 and 1.0, "
            f"got {config.filler.cancel_probability}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business_name)
    return config


# Singleton instance
settings = load_config()
