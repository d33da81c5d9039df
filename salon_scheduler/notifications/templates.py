"""
Notification templates with ``{{placeholder}}`` substitution.

Templates are stored per type and edited by the admin. A conditional block
``{{#if logo_url}}...{{/if}}`` is kept only when a logo URL is configured.
"""

import re
from typing import Mapping, Optional

from salon_scheduler.config import NotificationConfig
from salon_scheduler.schemas.notification_schema import (
    Channel,
    NotificationKind,
    NotificationRequest,
    NotificationTemplate,
)

_LOGO_BLOCK = re.compile(r"{{#if logo_url}}(.*?){{/if}}", re.DOTALL)
_PLACEHOLDER = re.compile(r"{{(\w+)}}")

# (kind, channel) -> template type
TEMPLATE_TYPES: dict[tuple[NotificationKind, Channel], str] = {
    (NotificationKind.BOOKING_CREATED, Channel.ADMIN_EMAIL): "email_admin",
    (NotificationKind.BOOKING_CREATED, Channel.CUSTOMER_EMAIL): "email_customer",
    (NotificationKind.BOOKING_CREATED, Channel.CUSTOMER_SMS): "sms_customer",
    (NotificationKind.CANCELLATION, Channel.CUSTOMER_EMAIL): "email_cancel_customer",
    (NotificationKind.CANCELLATION, Channel.CUSTOMER_SMS): "sms_cancel_customer",
    (NotificationKind.RESCHEDULE, Channel.CUSTOMER_EMAIL): "email_reschedule_customer",
    (NotificationKind.RESCHEDULE, Channel.CUSTOMER_SMS): "sms_reschedule_customer",
    (NotificationKind.BLACKLIST_WARNING, Channel.ADMIN_EMAIL): "email_blacklist_warning",
    (NotificationKind.PENDING_APPROVAL, Channel.ADMIN_EMAIL): "email_pending_admin",
    (NotificationKind.PENDING_APPROVAL, Channel.CUSTOMER_EMAIL): "email_pending_customer",
    (NotificationKind.PENDING_APPROVAL, Channel.CUSTOMER_SMS): "sms_pending_customer",
}

DEFAULT_TEMPLATES: list[NotificationTemplate] = [
    NotificationTemplate(
        type="email_admin",
        name="New booking (admin)",
        subject="New booking: {{service_name}} on {{date}} {{start_time}}",
        body=(
            "{{customer_name}} ({{customer_phone}}) booked {{service_name}} "
            "on {{date}} {{start_time}}-{{end_time}}. {{admin_link}}"
        ),
    ),
    NotificationTemplate(
        type="email_customer",
        name="Booking confirmation (customer)",
        subject="Your booking on {{date}}",
        body=(
            "{{#if logo_url}}<img src=\"{{logo_url}}\">{{/if}}"
            "Hi {{customer_name}}, your {{service_name}} is booked for {{date}} "
            "at {{start_time}}. Manage your booking: {{manage_link}}"
        ),
    ),
    NotificationTemplate(
        type="sms_customer",
        name="Booking confirmation SMS",
        body="{{service_name}} {{date}} {{start_time}}. Manage: {{manage_link}}",
    ),
    NotificationTemplate(
        type="email_cancel_customer",
        name="Cancellation (customer)",
        subject="Your booking on {{date}} was cancelled",
        body=(
            "Hi {{customer_name}}, your {{service_name}} on {{date}} at "
            "{{start_time}} was cancelled. Book again: {{booking_link}}"
        ),
    ),
    NotificationTemplate(
        type="sms_cancel_customer",
        name="Cancellation SMS",
        body="Your {{service_name}} on {{date}} {{start_time}} was cancelled. {{contact_phone}}",
    ),
    NotificationTemplate(
        type="email_reschedule_customer",
        name="Reschedule (customer)",
        subject="Your booking moved to {{date}}",
        body=(
            "Hi {{customer_name}}, your {{service_name}} now takes place on "
            "{{date}} at {{start_time}}. {{manage_link}}"
        ),
    ),
    NotificationTemplate(
        type="sms_reschedule_customer",
        name="Reschedule SMS",
        body="Your {{service_name}} moved to {{date}} {{start_time}}. {{contact_phone}}",
    ),
    NotificationTemplate(
        type="email_blacklist_warning",
        name="Blacklisted client booked (admin)",
        subject="Blacklisted client booking: {{customer_phone}}",
        body=(
            "{{customer_name}} ({{customer_phone}}) is blacklisted "
            "({{blacklist_reason}}) and booked {{service_name}} on {{date}} {{start_time}}."
        ),
    ),
    NotificationTemplate(
        type="email_pending_admin",
        name="Booking awaiting approval (admin)",
        subject="Booking awaiting approval: {{date}} {{start_time}}",
        body="Approve or cancel: {{admin_link}}",
    ),
    NotificationTemplate(
        type="email_pending_customer",
        name="Booking awaiting approval (customer)",
        subject="We received your booking request for {{date}}",
        body=(
            "Hi {{customer_name}}, your request for {{service_name}} on {{date}} "
            "at {{start_time}} will be confirmed by the salon shortly."
        ),
    ),
    NotificationTemplate(
        type="sms_pending_customer",
        name="Booking awaiting approval SMS",
        body="Request for {{service_name}} {{date}} {{start_time}} received, awaiting confirmation.",
    ),
]


def render_template(template: str, data: Mapping[str, Optional[str]]) -> str:
    """Fill ``{{key}}`` placeholders; unknown keys render as empty strings."""
    if data.get("logo_url"):
        result = _LOGO_BLOCK.sub(lambda m: m.group(1), template)
    else:
        result = _LOGO_BLOCK.sub("", template)
    return _PLACEHOLDER.sub(lambda m: data.get(m.group(1)) or "", result)


def build_template_data(
    request: NotificationRequest, config: NotificationConfig
) -> dict[str, str]:
    """Placeholder values for one notification."""
    base = config.manage_base_url.rstrip("/")
    manage_link = f"{base}/{request.manage_token}" if request.manage_token else base
    return {
        "customer_name": request.customer_name,
        "service_name": request.service_name,
        "price": request.service_price or "",
        "date": request.date.isoformat(),
        "start_time": request.start_time,
        "end_time": request.end_time,
        "customer_phone": request.customer_phone,
        "customer_email": request.customer_email or "",
        "booking_id": request.booking_id,
        "manage_link": manage_link,
        "booking_link": base,
        "admin_link": f"{base}/admin?booking={request.booking_id}",
        "logo_url": config.logo_url,
        "contact_phone": config.contact_phone,
        "blacklist_reason": request.blacklist_reason or "",
    }
