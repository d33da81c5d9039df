"""
Notification dispatch.

``TemplateNotifier`` renders the stored templates for a notification kind
and hands the messages to pluggable email/SMS senders. The booking
lifecycle never waits on the outcome: it goes through ``fire_and_forget``,
which logs and swallows every failure.
"""

import logging
from typing import Callable, Iterable, Optional, Protocol

from salon_scheduler.config import NotificationConfig, settings
from salon_scheduler.notifications.templates import (
    DEFAULT_TEMPLATES,
    TEMPLATE_TYPES,
    build_template_data,
    render_template,
)
from salon_scheduler.schemas.notification_schema import (
    Channel,
    NotificationRequest,
    NotificationResult,
    NotificationTemplate,
)

logger = logging.getLogger(__name__)

# Senders raise on delivery failure.
EmailSender = Callable[[str, str, str], None]  # (to, subject, body)
SmsSender = Callable[[str, str], None]  # (phone, body)

DEFAULT_COUNTRY_CODE = "+370"


class NotificationDispatcher(Protocol):
    def dispatch(self, request: NotificationRequest) -> NotificationResult: ...


def format_sms_number(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Put a local number into international form.

    Examples:
        >>> format_sms_number("861234567")
        '+37061234567'
        >>> format_sms_number("+37061234567")
        '+37061234567'
    """
    cleaned = phone.replace(" ", "").replace("-", "")
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith("8"):
        return country_code + cleaned[1:]
    return country_code + cleaned


def log_email_sender(to: str, subject: str, body: str) -> None:
    logger.info("Email to %s: %s", to, subject)


def log_sms_sender(phone: str, body: str) -> None:
    logger.info("SMS to %s (%d chars)", phone, len(body))


class TemplateNotifier:
    """Renders stored templates and sends them per channel."""

    def __init__(
        self,
        templates: Callable[[], Iterable[NotificationTemplate]],
        config: Optional[NotificationConfig] = None,
        email_sender: EmailSender = log_email_sender,
        sms_sender: SmsSender = log_sms_sender,
    ) -> None:
        self._templates = templates
        self._config = config or settings.notifications
        self._email_sender = email_sender
        self._sms_sender = sms_sender

    def _load_templates(self) -> dict[str, NotificationTemplate]:
        loaded = {t.type: t for t in DEFAULT_TEMPLATES}
        loaded.update({t.type: t for t in self._templates()})
        return loaded

    def _channels_for(self, request: NotificationRequest) -> list[Channel]:
        channels = []
        for kind, channel in TEMPLATE_TYPES:
            if kind != request.kind:
                continue
            if channel == Channel.CUSTOMER_EMAIL and not (
                request.send_email and request.customer_email and self._config.email_enabled
            ):
                continue
            if channel == Channel.CUSTOMER_SMS and not (
                request.send_sms and request.customer_phone and self._config.sms_enabled
            ):
                continue
            if channel == Channel.ADMIN_EMAIL and not self._config.email_enabled:
                continue
            channels.append(channel)
        return channels

    def dispatch(self, request: NotificationRequest) -> NotificationResult:
        """Send every channel that applies to the request.

        A failing channel is recorded in the result and does not stop the
        remaining channels.
        """
        templates = self._load_templates()
        data = build_template_data(request, self._config)
        result = NotificationResult(kind=request.kind)

        for channel in self._channels_for(request):
            template = templates.get(TEMPLATE_TYPES[(request.kind, channel)])
            if template is None or not template.is_active:
                continue
            subject = render_template(template.subject or "", data)
            body = render_template(template.body, data)
            try:
                if channel == Channel.ADMIN_EMAIL:
                    self._email_sender(self._config.admin_email, subject, body)
                elif channel == Channel.CUSTOMER_EMAIL:
                    self._email_sender(request.customer_email, subject, body)
                else:
                    self._sms_sender(format_sms_number(request.customer_phone), body)
                result.sent[channel] = True
            except Exception as exc:
                logger.warning(
                    "%s via %s failed for booking %s: %s",
                    request.kind.value, channel.value, request.booking_id, exc,
                )
                result.sent[channel] = False
                result.errors[channel] = str(exc)

        logger.info(
            "Notification %s for booking %s: %s",
            request.kind.value, request.booking_id,
            {c.value: ok for c, ok in result.sent.items()},
        )
        return result


class RecordingNotifier:
    """Keeps every request in memory without sending anything."""

    def __init__(self) -> None:
        self.requests: list[NotificationRequest] = []

    def dispatch(self, request: NotificationRequest) -> NotificationResult:
        self.requests.append(request)
        return NotificationResult(kind=request.kind)

    def reset(self) -> None:
        self.requests.clear()


def fire_and_forget(
    notifier: NotificationDispatcher, request: NotificationRequest
) -> Optional[NotificationResult]:
    """Dispatch without letting any failure reach the caller."""
    try:
        return notifier.dispatch(request)
    except Exception:
        logger.exception(
            "Notification %s failed for booking %s", request.kind.value, request.booking_id
        )
        return None
