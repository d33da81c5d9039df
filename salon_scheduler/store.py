"""
Persistence collaborator.

``SchedulingStore`` is the query interface the engine and lifecycle manager
talk to. ``InMemoryStore`` implements it with plain dicts and a re-entrant
lock; in production the same interface sits in front of a relational
database, with ``transaction()`` mapped to a serializable transaction.
"""

import datetime as dt
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import ContextManager, Iterable, Iterator, Optional, Protocol

from salon_scheduler.schemas.booking_schema import Booking, BookingStatus
from salon_scheduler.schemas.client_schema import Client
from salon_scheduler.schemas.exception_schema import AnyException
from salon_scheduler.schemas.notification_schema import NotificationTemplate
from salon_scheduler.schemas.service_schema import Service

logger = logging.getLogger(__name__)


def new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


class SchedulingStore(Protocol):
    """Storage operations the scheduling core depends on."""

    def transaction(self) -> ContextManager[None]: ...

    # Services
    def get_service(self, service_id: str) -> Optional[Service]: ...
    def list_services(self, active_only: bool = False) -> list[Service]: ...
    def save_service(self, service: Service) -> Service: ...

    # Bookings
    def get_booking(self, booking_id: str) -> Optional[Booking]: ...
    def get_booking_by_token(self, token: str) -> Optional[Booking]: ...
    def list_bookings(
        self,
        date: Optional[dt.date] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        system_only: bool = False,
    ) -> list[Booking]: ...
    def insert_booking(self, booking: Booking) -> Booking: ...
    def update_booking(self, booking: Booking) -> Booking: ...

    # Clients
    def get_client(self, phone: str) -> Optional[Client]: ...
    def save_client(self, client: Client) -> Client: ...
    def list_clients(self) -> list[Client]: ...

    # Schedule exceptions
    def list_exceptions(self) -> list[AnyException]: ...
    def get_exception(self, exception_id: str) -> Optional[AnyException]: ...
    def save_exception(self, exception: AnyException) -> AnyException: ...
    def delete_exception(self, exception_id: str) -> bool: ...

    # Settings and templates
    def get_settings_rows(self) -> dict[str, str]: ...
    def save_settings_rows(self, rows: dict[str, str]) -> None: ...
    def list_templates(self) -> list[NotificationTemplate]: ...
    def save_template(self, template: NotificationTemplate) -> NotificationTemplate: ...


class InMemoryStore:
    """Dict-backed store. Used by tests, the CLI and local development."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._services: dict[str, Service] = {}
        self._bookings: dict[str, Booking] = {}
        self._clients: dict[str, Client] = {}
        self._exceptions: dict[str, AnyException] = {}
        self._settings: dict[str, str] = {}
        self._templates: dict[str, NotificationTemplate] = {}

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Serialize read-validate-write sequences."""
        with self._lock:
            yield

    # ------------------------------------------------------------------ #
    # Services
    # ------------------------------------------------------------------ #

    def get_service(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    def list_services(self, active_only: bool = False) -> list[Service]:
        services = [s for s in self._services.values() if s.is_active or not active_only]
        return sorted(services, key=lambda s: (s.sort_order, s.name))

    def save_service(self, service: Service) -> Service:
        with self._lock:
            self._services[service.id] = service
        return service

    # ------------------------------------------------------------------ #
    # Bookings
    # ------------------------------------------------------------------ #

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def get_booking_by_token(self, token: str) -> Optional[Booking]:
        for booking in self._bookings.values():
            if booking.manage_token == token:
                return booking
        return None

    def list_bookings(
        self,
        date: Optional[dt.date] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        system_only: bool = False,
    ) -> list[Booking]:
        wanted = set(statuses) if statuses is not None else None
        result = []
        for booking in self._bookings.values():
            if date is not None and booking.date != date:
                continue
            if date_from is not None and booking.date < date_from:
                continue
            if date_to is not None and booking.date > date_to:
                continue
            if wanted is not None and booking.status not in wanted:
                continue
            if system_only and not booking.is_system_booking:
                continue
            result.append(booking)
        return sorted(result, key=lambda b: (b.date, b.start_time, b.id))

    def insert_booking(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.id in self._bookings:
                raise KeyError(f"Booking {booking.id} already exists")
            self._bookings[booking.id] = booking
        logger.debug("Inserted booking %s", booking.id)
        return booking

    def update_booking(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.id not in self._bookings:
                raise KeyError(f"Booking {booking.id} does not exist")
            self._bookings[booking.id] = booking
        logger.debug("Updated booking %s", booking.id)
        return booking

    # ------------------------------------------------------------------ #
    # Clients
    # ------------------------------------------------------------------ #

    def get_client(self, phone: str) -> Optional[Client]:
        return self._clients.get(phone)

    def save_client(self, client: Client) -> Client:
        with self._lock:
            self._clients[client.phone] = client
        return client

    def list_clients(self) -> list[Client]:
        return sorted(self._clients.values(), key=lambda c: c.created_at)

    # ------------------------------------------------------------------ #
    # Schedule exceptions
    # ------------------------------------------------------------------ #

    def list_exceptions(self) -> list[AnyException]:
        return list(self._exceptions.values())

    def get_exception(self, exception_id: str) -> Optional[AnyException]:
        return self._exceptions.get(exception_id)

    def save_exception(self, exception: AnyException) -> AnyException:
        with self._lock:
            self._exceptions[exception.id] = exception
        return exception

    def delete_exception(self, exception_id: str) -> bool:
        with self._lock:
            return self._exceptions.pop(exception_id, None) is not None

    # ------------------------------------------------------------------ #
    # Settings and templates
    # ------------------------------------------------------------------ #

    def get_settings_rows(self) -> dict[str, str]:
        return dict(self._settings)

    def save_settings_rows(self, rows: dict[str, str]) -> None:
        with self._lock:
            self._settings.update(rows)

    def list_templates(self) -> list[NotificationTemplate]:
        return list(self._templates.values())

    def save_template(self, template: NotificationTemplate) -> NotificationTemplate:
        with self._lock:
            self._templates[template.type] = template
        return template

    def reset(self) -> None:
        """Clear all data. Used by test fixtures for isolation."""
        with self._lock:
            self._services.clear()
            self._bookings.clear()
            self._clients.clear()
            self._exceptions.clear()
            self._settings.clear()
            self._templates.clear()
