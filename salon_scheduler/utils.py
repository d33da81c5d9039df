"""Shared utilities used across the scheduler."""

import re
import secrets
from datetime import datetime
from zoneinfo import ZoneInfo


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Clients are keyed by the normalized form, so "+370 612 34567" and
    "+37061234567" refer to the same person.

    Examples:
        >>> normalize_phone("8 612 34567")
        '861234567'
        >>> normalize_phone("+370 (612) 34-567")
        '+37061234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def generate_manage_token() -> str:
    """Opaque URL-safe token for customer self-service links."""
    return secrets.token_urlsafe(24)


def business_now(timezone: str) -> datetime:
    """Current wall-clock time in the business timezone, as a naive datetime.

    Booking dates and times are stored as local wall-clock values, so every
    comparison against them uses this form.
    """
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)
