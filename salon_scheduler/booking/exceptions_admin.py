"""
Schedule exception administration.

Creating, editing or deleting an exception never touches existing bookings;
it only changes what the slot generator offers from then on.
"""

import logging
from typing import Any, Mapping, Union

from salon_scheduler.errors import ExceptionNotFoundError
from salon_scheduler.schemas.exception_schema import (
    AnyException,
    build_exception,
    exception_to_row,
)
from salon_scheduler.store import SchedulingStore

logger = logging.getLogger(__name__)

ExceptionInput = Union[AnyException, Mapping[str, Any]]


class ExceptionAdmin:
    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    def list(self) -> list[AnyException]:
        """Dated exceptions by date, then recurring ones by weekday."""
        def sort_key(exc: AnyException):
            date = getattr(exc, "date", None)
            if date is None:
                return (1, "", exc.day_of_week, exc.start_minutes)
            return (0, date.isoformat(), 0, exc.start_minutes)

        return sorted(self._store.list_exceptions(), key=sort_key)

    def get(self, exception_id: str) -> AnyException:
        exception = self._store.get_exception(exception_id)
        if exception is None:
            raise ExceptionNotFoundError(f"Schedule exception {exception_id} not found")
        return exception

    def create(self, data: ExceptionInput) -> AnyException:
        """Store a new exception given as a variant or a stored-row mapping.

        Raises:
            InvalidFormatError: If the row is not a valid exception.
        """
        exception = data if not isinstance(data, Mapping) else build_exception(data)
        self._store.save_exception(exception)
        logger.info(
            "Schedule exception created: %s %s %s-%s",
            exception.kind, exception.exception_type.value,
            exception.start_time, exception.end_time,
        )
        return exception

    def update(self, exception_id: str, changes: Mapping[str, Any]) -> AnyException:
        """Apply row-shaped changes. The variant may change along with them."""
        current = self.get(exception_id)
        row = exception_to_row(current)
        row.update(changes)
        row["id"] = exception_id
        updated = build_exception(row)
        self._store.save_exception(updated)
        logger.info("Schedule exception updated: %s", exception_id)
        return updated

    def delete(self, exception_id: str) -> None:
        if not self._store.delete_exception(exception_id):
            raise ExceptionNotFoundError(f"Schedule exception {exception_id} not found")
        logger.info("Schedule exception deleted: %s", exception_id)
