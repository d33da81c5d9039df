"""
Schedule exceptions as a tagged variant.

An exception is exactly one of:
    OneOffException(date)             applies to a single date
    RecurringException(day_of_week)   applies to every matching weekday
    RangeException(date, end_date)    applies to every date in the closed range

Each carries an exception type (block or allow) and the affected
sub-interval of the day. A full-day exception is 00:00-23:59.
"""

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from salon_scheduler.engine.timeutils import day_of_week, time_to_minutes
from salon_scheduler.errors import InvalidFormatError

FULL_DAY_START = "00:00"
FULL_DAY_END = "23:59"


class ExceptionType(str, Enum):
    BLOCK = "block"
    ALLOW = "allow"


def _new_id() -> str:
    return uuid.uuid4().hex


class _ExceptionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    exception_type: ExceptionType
    start_time: str = FULL_DAY_START
    end_time: str = FULL_DAY_END
    description: Optional[str] = None

    @field_validator("exception_type", mode="before")
    @classmethod
    def _accept_legacy_type(cls, value: Any) -> Any:
        # Older rows were written as "blocked".
        if value == "blocked":
            return ExceptionType.BLOCK
        return value

    @model_validator(mode="after")
    def _check_interval(self):
        try:
            start = time_to_minutes(self.start_time)
            end = time_to_minutes(self.end_time)
        except InvalidFormatError as exc:
            raise ValueError(str(exc)) from None
        if start >= end:
            raise ValueError(
                f"start_time {self.start_time} must be before end_time {self.end_time}"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def is_recurring(self) -> bool:
        return False

    def applies_to(self, target: dt.date) -> bool:
        raise NotImplementedError


class OneOffException(_ExceptionBase):
    kind: Literal["one_off"] = "one_off"
    date: dt.date

    def applies_to(self, target: dt.date) -> bool:
        return self.date == target


class RecurringException(_ExceptionBase):
    kind: Literal["recurring"] = "recurring"
    day_of_week: int = Field(ge=0, le=6)

    @property
    def is_recurring(self) -> bool:
        return True

    def applies_to(self, target: dt.date) -> bool:
        return day_of_week(target) == self.day_of_week


class RangeException(_ExceptionBase):
    kind: Literal["range"] = "range"
    date: dt.date
    end_date: dt.date

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.date:
            raise ValueError(f"end_date {self.end_date} is before date {self.date}")
        return self

    def applies_to(self, target: dt.date) -> bool:
        return self.date <= target <= self.end_date


AnyException = Union[OneOffException, RecurringException, RangeException]


def build_exception(row: Mapping[str, Any]) -> AnyException:
    """Build the right variant from a stored row with nullable columns.

    Rows use the persisted shape: ``date``, ``day_of_week``, ``end_date``,
    ``is_recurring``, ``start_time``, ``end_time``, ``exception_type``,
    ``description`` and optionally ``id``.

    Raises:
        InvalidFormatError: If the row is both recurring and ranged, names no
            date or weekday, or fails field validation.
    """
    is_recurring = bool(row.get("is_recurring"))
    end_date = row.get("end_date")
    common = {
        key: row[key]
        for key in ("id", "exception_type", "start_time", "end_time", "description")
        if row.get(key) is not None
    }

    if end_date and is_recurring:
        raise InvalidFormatError("A date-range exception cannot also be recurring")

    try:
        if is_recurring:
            if row.get("day_of_week") is None:
                raise InvalidFormatError("Recurring exception requires day_of_week")
            return RecurringException(day_of_week=row["day_of_week"], **common)
        if row.get("date") is None:
            raise InvalidFormatError("Exception requires a date or a recurring day_of_week")
        if end_date:
            return RangeException(date=row["date"], end_date=end_date, **common)
        return OneOffException(date=row["date"], **common)
    except ValidationError as exc:
        raise InvalidFormatError(f"Invalid schedule exception: {exc}") from None


def exception_to_row(exception: _ExceptionBase) -> dict[str, Any]:
    """Inverse of ``build_exception``: the nullable-column row shape."""
    row: dict[str, Any] = {
        "id": exception.id,
        "exception_type": exception.exception_type.value,
        "start_time": exception.start_time,
        "end_time": exception.end_time,
        "description": exception.description,
        "is_recurring": exception.is_recurring,
        "date": None,
        "end_date": None,
        "day_of_week": None,
    }
    if isinstance(exception, RecurringException):
        row["day_of_week"] = exception.day_of_week
    elif isinstance(exception, RangeException):
        row["date"] = exception.date
        row["end_date"] = exception.end_date
    elif isinstance(exception, OneOffException):
        row["date"] = exception.date
    return row
