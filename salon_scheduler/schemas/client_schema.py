"""Client (customer) records keyed by phone number."""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_NO_SHOW_REASON = "no-show"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Client(BaseModel):
    """Customer record. ``phone`` is the normalized natural key."""

    phone: str
    name: Optional[str] = None
    email: Optional[str] = None
    is_blacklisted: bool = False
    blacklist_reason: Optional[str] = None
    no_show_count: int = Field(default=0, ge=0)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)
    bookings_count: Optional[int] = None


class ClientCheck(BaseModel):
    """Public blacklist check result."""

    found: bool
    is_blacklisted: bool = False
    no_show_count: int = 0
