"""Service catalog administration."""

import logging
import uuid
from typing import Optional

from salon_scheduler.errors import InvalidServiceDurationError, ServiceNotFoundError
from salon_scheduler.schemas.service_schema import Service, ServiceUpdate
from salon_scheduler.store import SchedulingStore

logger = logging.getLogger(__name__)


def _check_duration(duration: int) -> None:
    if duration <= 0:
        raise InvalidServiceDurationError(f"Service duration must be positive, got {duration}")


class ServiceCatalog:
    """Create, edit and deactivate the services customers can book."""

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    def list_services(self, active_only: bool = False) -> list[Service]:
        """Services ordered by sort order, then name."""
        return sorted(
            self._store.list_services(active_only=active_only),
            key=lambda s: (s.sort_order, s.name),
        )

    def get(self, service_id: str) -> Service:
        service = self._store.get_service(service_id)
        if service is None:
            raise ServiceNotFoundError(f"Service {service_id} not found")
        return service

    def create(
        self,
        name: str,
        duration: int,
        price: float = 0.0,
        preparation_time: int = 0,
        sort_order: int = 0,
        description: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> Service:
        _check_duration(duration)
        service = Service(
            id=service_id or uuid.uuid4().hex[:12],
            name=name,
            duration=duration,
            preparation_time=preparation_time,
            price=price,
            sort_order=sort_order,
            description=description,
        )
        self._store.save_service(service)
        logger.info("Service created: %s (%s, %d min)", service.id, service.name, service.duration)
        return service

    def update(self, service_id: str, changes: ServiceUpdate) -> Service:
        service = self.get(service_id)
        fields = changes.model_dump(exclude_none=True)
        if "duration" in fields:
            _check_duration(fields["duration"])
        updated = self._store.save_service(service.model_copy(update=fields))
        logger.info("Service updated: %s %s", service_id, sorted(fields))
        return updated

    def deactivate(self, service_id: str) -> Service:
        """Hide a service from booking. Existing bookings are untouched."""
        return self.update(service_id, ServiceUpdate(is_active=False))
