"""Immutable scheduling settings consumed by the engine."""

from typing import Any, Iterable, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from salon_scheduler.config import ScheduleConfig
from salon_scheduler.engine.timeutils import time_to_minutes
from salon_scheduler.errors import InvalidFormatError

# Persisted key -> field name. Several keys were used over time for the same value.
ROW_KEYS: dict[str, str] = {
    "workStart": "work_start",
    "M-F Start": "work_start",
    "workEnd": "work_end",
    "M-F Finish": "work_end",
    "breakBetween": "break_between",
    "break_between": "break_between",
    "bookingDaysAhead": "booking_days_ahead",
    "booking_days_ahead": "booking_days_ahead",
    "cancelHoursBefore": "cancel_hours_before",
    "cancel_hours_before": "cancel_hours_before",
    "slotGranularity": "slot_granularity",
}


class SchedulingSettings(BaseModel):
    """Working-hour bounds and booking windows, passed explicitly into the engine."""

    model_config = ConfigDict(frozen=True)

    work_start: str = "09:00"
    work_end: str = "18:00"
    break_between: int = Field(default=15, ge=0)
    booking_days_ahead: int = Field(default=60, ge=1)
    cancel_hours_before: int = Field(default=24, ge=0)
    slot_granularity: int = Field(default=30, ge=1)

    @model_validator(mode="after")
    def _check_hours(self):
        try:
            start = time_to_minutes(self.work_start)
            end = time_to_minutes(self.work_end)
        except InvalidFormatError as exc:
            raise ValueError(str(exc)) from None
        if start >= end:
            raise ValueError(f"work_start {self.work_start} must be before work_end {self.work_end}")
        return self

    @property
    def work_start_minutes(self) -> int:
        return time_to_minutes(self.work_start)

    @property
    def work_end_minutes(self) -> int:
        return time_to_minutes(self.work_end)

    @classmethod
    def from_config(cls, schedule: ScheduleConfig) -> "SchedulingSettings":
        return cls(
            work_start=schedule.work_start,
            work_end=schedule.work_end,
            break_between=schedule.break_between,
            booking_days_ahead=schedule.booking_days_ahead,
            cancel_hours_before=schedule.cancel_hours_before,
            slot_granularity=schedule.slot_granularity,
        )

    @classmethod
    def from_rows(
        cls, rows: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]
    ) -> "SchedulingSettings":
        """Build from persisted key-value rows.

        Accepts either a ``{key: value}`` mapping or an iterable of
        ``{"key": ..., "value": ...}`` rows. Unknown keys are ignored and
        missing keys keep their defaults.

        Raises:
            InvalidFormatError: If a known key holds an unparsable value.
        """
        if isinstance(rows, Mapping):
            pairs = rows.items()
        else:
            pairs = ((row.get("key"), row.get("value")) for row in rows)

        values: dict[str, Any] = {}
        for key, value in pairs:
            name = ROW_KEYS.get(key)
            if name is None or value is None or value == "":
                continue
            values[name] = value

        try:
            return cls(**values)
        except ValidationError as exc:
            raise InvalidFormatError(f"Invalid settings: {exc}") from None

    def to_rows(self) -> dict[str, str]:
        """Key-value form using the canonical keys."""
        return {
            "workStart": self.work_start,
            "workEnd": self.work_end,
            "breakBetween": str(self.break_between),
            "bookingDaysAhead": str(self.booking_days_ahead),
            "cancelHoursBefore": str(self.cancel_hours_before),
            "slotGranularity": str(self.slot_granularity),
        }
