from salon_scheduler.notifications.calendar_sync import (
    CalendarAction,
    NullCalendarSync,
    RecordingCalendarSync,
)
from salon_scheduler.notifications.dispatcher import (
    RecordingNotifier,
    TemplateNotifier,
    fire_and_forget,
)
from salon_scheduler.notifications.templates import render_template

__all__ = [
    "CalendarAction", "NullCalendarSync", "RecordingCalendarSync",
    "TemplateNotifier", "RecordingNotifier", "fire_and_forget",
    "render_template",
]
