"""
Domain layer - Pure business logic without external dependencies.
"""

from .busy_intervals import BusyIntervalSet
from .exceptions import AuthenticationError, ConfigurationError, ExternalFetchError, SchedulingError
from .models import (
    BusyInterval,
    MeetingSlot,
    SchedulingFailure,
    SchedulingRequest,
    SchedulingResult,
    TimeRange,
    WorkingWindow,
)
from .slot_scheduler import FreeSlotScheduler

__all__ = [
    "AuthenticationError",
    "BusyInterval",
    "BusyIntervalSet",
    "ConfigurationError",
    "ExternalFetchError",
    "FreeSlotScheduler",
    "MeetingSlot",
    "SchedulingError",
    "SchedulingFailure",
    "SchedulingRequest",
    "SchedulingResult",
    "TimeRange",
    "WorkingWindow",
]
