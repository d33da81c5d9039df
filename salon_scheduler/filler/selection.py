"""
Pure candidate selection for filler bookings.

Randomness comes only from the ``random.Random`` passed in, so a seeded
generator reproduces the same choices.
"""

import datetime as dt
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from salon_scheduler.engine.resolver import ResolvedInterval
from salon_scheduler.engine.slot_generator import Slot, generate_slots
from salon_scheduler.engine.timeutils import time_to_minutes
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.service_schema import Service
from salon_scheduler.schemas.settings_schema import SchedulingSettings


@dataclass(frozen=True)
class Candidate:
    """A service that fits at a free slot."""

    service: Service
    slot: Slot

    @property
    def start_time(self) -> str:
        return self.slot.start_time


def collect_candidates(
    services: Iterable[Service],
    settings: SchedulingSettings,
    bookings: Iterable[Booking],
    intervals: Iterable[ResolvedInterval],
    target: dt.date,
    granularity: int,
    exclude_booking_id: Optional[str] = None,
) -> list[Candidate]:
    """Every (service, slot) pair free on ``target``.

    Each service is checked with its duration plus preparation time.
    Inactive services are skipped.
    """
    bookings = list(bookings)
    intervals = list(intervals)
    candidates = []
    for service in services:
        if not service.is_active or service.total_minutes <= 0:
            continue
        slots = generate_slots(
            settings,
            service.total_minutes,
            bookings,
            intervals,
            target,
            granularity=granularity,
            exclude_booking_id=exclude_booking_id,
        )
        candidates.extend(Candidate(service, slot) for slot in slots)
    return candidates


def pick_candidate(candidates: list[Candidate], rng: random.Random) -> Optional[Candidate]:
    """Pick a start time uniformly, then a service uniformly among those fitting it.

    Every distinct free start time has the same weight, whatever the number
    of services that fit there.
    """
    if not candidates:
        return None
    starts = sorted({c.start_time for c in candidates}, key=time_to_minutes)
    start = rng.choice(starts)
    return rng.choice([c for c in candidates if c.start_time == start])
