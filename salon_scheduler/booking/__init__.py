from salon_scheduler.booking.availability import AvailabilityService, DayAvailability
from salon_scheduler.booking.catalog import ServiceCatalog
from salon_scheduler.booking.clients import ClientRegistry
from salon_scheduler.booking.exceptions_admin import ExceptionAdmin
from salon_scheduler.booking.lifecycle import BookingManager
from salon_scheduler.booking.self_service import SelfServicePortal, can_modify

__all__ = [
    "AvailabilityService", "DayAvailability",
    "BookingManager", "ClientRegistry", "ExceptionAdmin", "ServiceCatalog",
    "SelfServicePortal", "can_modify",
]
