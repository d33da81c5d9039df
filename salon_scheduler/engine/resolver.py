"""
Exception resolver.

Given a date and every stored schedule exception, returns the intervals in
effect that day. This is a pure lookup: overlapping intervals are returned
as-is and the meaning of block/allow is left to the slot generator.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterable

from salon_scheduler.schemas.exception_schema import AnyException, ExceptionType

logger = logging.getLogger(__name__)

# Tie-break order for intervals with equal start: most specific first.
_KIND_ORDER = {"one_off": 0, "range": 1, "recurring": 2}


@dataclass(frozen=True)
class ResolvedInterval:
    """One exception interval in effect on a date, in minutes since midnight."""

    start: int
    end: int
    type: ExceptionType
    source_kind: str
    exception_id: str = ""

    @property
    def is_block(self) -> bool:
        return self.type == ExceptionType.BLOCK

    @property
    def is_allow(self) -> bool:
        return self.type == ExceptionType.ALLOW


def resolve_exceptions(
    target: dt.date,
    exceptions: Iterable[AnyException],
) -> list[ResolvedInterval]:
    """Select the exceptions that apply to ``target``.

    Matches one-off exceptions on the date, range exceptions whose closed
    range covers it, and recurring exceptions on its weekday.
    """
    resolved = [
        ResolvedInterval(
            start=exc.start_minutes,
            end=exc.end_minutes,
            type=exc.exception_type,
            source_kind=exc.kind,
            exception_id=exc.id,
        )
        for exc in exceptions
        if exc.applies_to(target)
    ]
    resolved.sort(key=lambda r: (r.start, _KIND_ORDER[r.source_kind], r.end))
    logger.debug("Resolved %d exception interval(s) for %s", len(resolved), target)
    return resolved
