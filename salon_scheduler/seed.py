"""Demo data for local development and the command-line tool."""

import logging

from salon_scheduler.notifications.templates import DEFAULT_TEMPLATES
from salon_scheduler.schemas.exception_schema import ExceptionType, RecurringException
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.store import SchedulingStore

logger = logging.getLogger(__name__)

DEMO_SERVICES: list[Service] = [
    Service(id="haircut", name="Haircut", duration=45, price=25.0, sort_order=1),
    Service(id="colouring", name="Colouring", duration=120, preparation_time=15, price=70.0, sort_order=2),
    Service(id="styling", name="Styling", duration=60, price=35.0, sort_order=3),
    Service(id="beard-trim", name="Beard trim", duration=30, price=15.0, sort_order=4),
    Service(id="keratin", name="Keratin treatment", duration=180, price=120.0, sort_order=5, is_active=False),
]

# Saturday lunch break.
DEMO_EXCEPTIONS = [
    RecurringException(
        id="saturday-lunch",
        exception_type=ExceptionType.BLOCK,
        day_of_week=6,
        start_time="13:00",
        end_time="14:00",
        description="Lunch",
    ),
]


def seed_demo(store: SchedulingStore) -> None:
    """Load demo services, templates and exceptions into ``store``."""
    for service in DEMO_SERVICES:
        store.save_service(service)
    for template in DEFAULT_TEMPLATES:
        store.save_template(template)
    for exception in DEMO_EXCEPTIONS:
        store.save_exception(exception)
    logger.info(
        "Seeded %d service(s), %d template(s), %d exception(s)",
        len(DEMO_SERVICES), len(DEFAULT_TEMPLATES), len(DEMO_EXCEPTIONS),
    )
