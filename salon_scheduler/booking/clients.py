"""
Client registry.

Clients are keyed by normalized phone number. A record is created the first
time a phone books, and again on demand when an admin blacklists a number
that has never booked.
"""

import datetime as dt
import logging
from collections import Counter
from typing import Optional

from salon_scheduler.errors import ClientNotFoundError
from salon_scheduler.schemas.client_schema import DEFAULT_NO_SHOW_REASON, Client, ClientCheck
from salon_scheduler.store import SchedulingStore
from salon_scheduler.utils import normalize_phone

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ClientRegistry:
    """Lookup, blacklist and no-show bookkeeping for clients."""

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    def get_by_phone(self, phone: str) -> Optional[Client]:
        return self._store.get_client(normalize_phone(phone))

    def check(self, phone: str) -> ClientCheck:
        """Public blacklist check used before a customer books."""
        client = self.get_by_phone(phone)
        if client is None:
            return ClientCheck(found=False)
        return ClientCheck(
            found=True,
            is_blacklisted=client.is_blacklisted,
            no_show_count=client.no_show_count,
        )

    def is_blacklisted(self, phone: str) -> bool:
        client = self.get_by_phone(phone)
        return client is not None and client.is_blacklisted

    def list_clients(
        self, blacklist_only: bool = False, search: Optional[str] = None
    ) -> list[Client]:
        """All clients with their booking counts, newest first."""
        counts = Counter(
            normalize_phone(b.customer_phone)
            for b in self._store.list_bookings()
            if not b.is_system_booking
        )
        needle = search.strip().lower() if search else ""

        result = []
        for client in self._store.list_clients():
            if blacklist_only and not client.is_blacklisted:
                continue
            if needle and needle not in client.phone.lower() and needle not in (client.name or "").lower():
                continue
            result.append(client.model_copy(update={"bookings_count": counts.get(client.phone, 0)}))
        result.reverse()
        return result

    def ensure(self, phone: str, name: Optional[str] = None, email: Optional[str] = None) -> Client:
        """Return the client for ``phone``, creating it on first contact.

        An existing record only gains a name or email it did not have.
        """
        key = normalize_phone(phone)
        client = self._store.get_client(key)
        if client is None:
            client = Client(phone=key, name=name, email=email)
            logger.info("New client created: %s", key)
            return self._store.save_client(client)

        changes = {}
        if name and not client.name:
            changes["name"] = name
        if email and not client.email:
            changes["email"] = email
        if changes:
            changes["updated_at"] = _utcnow()
            client = self._store.save_client(client.model_copy(update=changes))
        return client

    def update(
        self,
        phone: str,
        is_blacklisted: Optional[bool] = None,
        blacklist_reason: Optional[str] = None,
        no_show_count: Optional[int] = None,
    ) -> Client:
        """Admin edit of the blacklist fields.

        Raises:
            ClientNotFoundError: If no client has this phone.
        """
        client = self.get_by_phone(phone)
        if client is None:
            raise ClientNotFoundError(f"No client with phone {phone}")

        changes: dict = {"updated_at": _utcnow()}
        if is_blacklisted is not None:
            changes["is_blacklisted"] = is_blacklisted
        if blacklist_reason:
            changes["blacklist_reason"] = blacklist_reason
        if no_show_count is not None:
            changes["no_show_count"] = no_show_count
        updated = self._store.save_client(client.model_copy(update=changes))
        logger.info("Client %s updated: blacklisted=%s", updated.phone, updated.is_blacklisted)
        return updated

    def blacklist(
        self, phone: str, name: Optional[str] = None, reason: Optional[str] = None
    ) -> Client:
        """Blacklist a phone, creating the client if needed.

        Counts as one more no-show. An explicit ``reason`` replaces the stored
        one; otherwise an existing reason is kept.
        """
        with self._store.transaction():
            client = self.ensure(phone, name=name)
            updated = client.model_copy(
                update={
                    "is_blacklisted": True,
                    "blacklist_reason": reason or client.blacklist_reason or DEFAULT_NO_SHOW_REASON,
                    "no_show_count": client.no_show_count + 1,
                    "updated_at": _utcnow(),
                }
            )
            self._store.save_client(updated)
        logger.warning(
            "Client %s blacklisted (no-shows: %d, reason: %s)",
            updated.phone, updated.no_show_count, updated.blacklist_reason,
        )
        return updated

    def record_no_show(self, phone: str, name: Optional[str] = None) -> Client:
        """Escalate a client after a booking was marked as a no-show."""
        return self.blacklist(phone, name=name)
