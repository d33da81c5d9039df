"""Notification requests, results and stored templates."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationKind(str, Enum):
    BOOKING_CREATED = "booking_created"
    CANCELLATION = "cancellation"
    RESCHEDULE = "reschedule"
    BLACKLIST_WARNING = "blacklist_warning"
    PENDING_APPROVAL = "pending_approval"


class Channel(str, Enum):
    ADMIN_EMAIL = "admin_email"
    CUSTOMER_EMAIL = "customer_email"
    CUSTOMER_SMS = "customer_sms"


class NotificationRequest(BaseModel):
    """Everything a dispatcher needs to render and send one notification."""

    kind: NotificationKind
    booking_id: str
    manage_token: Optional[str] = None
    service_name: str
    service_price: Optional[str] = None
    date: dt.date
    start_time: str
    end_time: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    send_sms: bool = True
    send_email: bool = True
    blacklist_reason: Optional[str] = None


class NotificationResult(BaseModel):
    """Per-channel delivery outcome."""

    kind: NotificationKind
    sent: dict[Channel, bool] = Field(default_factory=dict)
    errors: dict[Channel, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(self.sent.values())


class NotificationTemplate(BaseModel):
    """Admin-editable message template with ``{{placeholder}}`` fields."""

    type: str
    name: str
    subject: Optional[str] = None
    body: str
    is_active: bool = True
