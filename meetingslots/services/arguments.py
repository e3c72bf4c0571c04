"""
Tool-style arguments for a meeting suggestion call.

Callers send camelCase keys (``meetingLengthMinutes``, ``calendarIds`` ...);
snake_case names are accepted as well.
"""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.exceptions import ConfigurationError
from ..domain.models import DEFAULT_TIMEZONE, SchedulingRequest


class MeetingSuggestionArguments(BaseModel):
    """Raw meeting suggestion arguments with their defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    meeting_length_minutes: int = Field(default=60, alias="meetingLengthMinutes")
    working_hours_start: int = Field(default=9, alias="workingHoursStart")
    working_hours_end: int = Field(default=17, alias="workingHoursEnd")
    timezone: str = DEFAULT_TIMEZONE
    slots_per_day: int = Field(default=1, alias="slotsPerDay")
    days_to_search: int = Field(default=3, alias="daysToSearch")
    max_days_to_look_ahead: int = Field(default=30, alias="maxDaysToLookAhead")
    bank_holidays: List[str] = Field(default_factory=list, alias="bankHolidays")
    calendar_ids: List[str] = Field(default_factory=lambda: ["primary"], alias="calendarIds")
    start_date: Optional[str] = Field(default=None, alias="startDate")

    def to_request(self) -> SchedulingRequest:
        """Build a validated SchedulingRequest."""
        return SchedulingRequest(
            meeting_length_minutes=self.meeting_length_minutes,
            working_hours_start=self.working_hours_start,
            working_hours_end=self.working_hours_end,
            timezone=self.timezone,
            slots_per_day=self.slots_per_day,
            days_to_search=self.days_to_search,
            max_days_to_look_ahead=self.max_days_to_look_ahead,
            bank_holidays=frozenset(self.bank_holidays),
            calendar_ids=tuple(self.calendar_ids),
            start_date=self.start_date,
        )


def parse_arguments(arguments: Optional[Mapping[str, Any]]) -> SchedulingRequest:
    """
    Validate raw arguments into a SchedulingRequest.

    Raises:
        ConfigurationError: If any argument is missing its expected shape
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ConfigurationError(
            f"Meeting suggestion arguments must be a mapping, got {type(arguments).__name__}"
        )

    try:
        parsed = MeetingSuggestionArguments.model_validate(dict(arguments))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid meeting suggestion arguments: {e}") from e

    return parsed.to_request()
