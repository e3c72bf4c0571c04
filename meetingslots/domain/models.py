"""
Domain models for time ranges, working windows and scheduling requests.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

import pendulum
from pendulum import Date, DateTime

from .exceptions import ConfigurationError

DEFAULT_TIMEZONE = "America/Sao_Paulo"
DATE_FORMAT = "YYYY-MM-DD"

StartDateInput = Union[DateTime, datetime, date, str, None]


def validate_timezone(name: str) -> str:
    """Return the timezone name if pendulum knows it, raise otherwise."""
    if not name:
        raise ConfigurationError("timezone must not be empty")
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError) as e:
        raise ConfigurationError(f"Unknown timezone: {name!r}") from e
    return name


def validate_hour(hour: int, label: str) -> int:
    """Validate hour is between 0 and 23."""
    if not isinstance(hour, int) or isinstance(hour, bool) or not 0 <= hour <= 23:
        raise ConfigurationError(f"{label} must be an hour between 0 and 23, got {hour!r}")
    return hour


def parse_holiday(value: str) -> str:
    """Normalise a bank holiday to YYYY-MM-DD."""
    try:
        return pendulum.from_format(str(value), DATE_FORMAT).to_date_string()
    except ValueError as e:
        raise ConfigurationError(
            f"Bank holiday {value!r} is not a valid YYYY-MM-DD date"
        ) from e


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies completely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusyInterval(TimeRange):
    """A busy time range reported by one calendar."""
    calendar_id: str = ""


@dataclass(frozen=True)
class MeetingSlot(TimeRange):
    """A suggested meeting time of exactly the requested length."""

    def to_dict(self, timezone: str) -> Dict[str, str]:
        """Serialise to ISO-8601 instants in the given timezone."""
        return {
            "start": self.start.in_timezone(timezone).isoformat(),
            "end": self.end.in_timezone(timezone).isoformat(),
        }

    def format_display(self, timezone: str) -> str:
        """
        Format the slot for display.
        Format: Weekday, DD.MM.YYYY | HH:mm - HH:mm (N min)
        """
        start = self.start.in_timezone(timezone)
        end = self.end.in_timezone(timezone)

        date_str = start.format("ddd, DD.MM.YYYY")
        time_str = f"{start.format('HH:mm')} - {end.format('HH:mm')}"

        return f"{date_str} | {time_str} ({self.duration_minutes()} min)"


@dataclass(frozen=True)
class WorkingWindow:
    """
    Working hours on one calendar day in a given timezone.
    """
    date: Date
    start_hour: int
    end_hour: int
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        validate_hour(self.start_hour, "start_hour")
        validate_hour(self.end_hour, "end_hour")
        if self.end_hour <= self.start_hour:
            raise ConfigurationError(
                f"end_hour ({self.end_hour}) must be later than start_hour ({self.start_hour})"
            )

    def to_time_range(self) -> TimeRange:
        """Materialise the window as absolute instants for this day."""
        start = pendulum.datetime(
            self.date.year, self.date.month, self.date.day,
            self.start_hour, tz=self.timezone
        )
        end = pendulum.datetime(
            self.date.year, self.date.month, self.date.day,
            self.end_hour, tz=self.timezone
        )
        return TimeRange(start=start, end=end)


@dataclass
class SchedulingRequest:
    """
    Parameters of one meeting suggestion run.

    Values are validated on construction; anything invalid raises
    ConfigurationError before the calendar provider is contacted.
    """
    meeting_length_minutes: int = 60
    working_hours_start: int = 9
    working_hours_end: int = 17
    timezone: str = DEFAULT_TIMEZONE
    slots_per_day: int = 1
    days_to_search: int = 3
    max_days_to_look_ahead: int = 30
    bank_holidays: FrozenSet[str] = field(default_factory=frozenset)
    calendar_ids: Tuple[str, ...] = ("primary",)
    start_date: Optional[DateTime] = None

    def __post_init__(self):
        if isinstance(self.meeting_length_minutes, bool) or not isinstance(self.meeting_length_minutes, int) \
                or self.meeting_length_minutes <= 0:
            raise ConfigurationError(
                f"meeting_length_minutes must be a positive integer, got {self.meeting_length_minutes!r}"
            )

        validate_hour(self.working_hours_start, "working_hours_start")
        validate_hour(self.working_hours_end, "working_hours_end")
        if self.working_hours_end <= self.working_hours_start:
            raise ConfigurationError(
                f"working_hours_end ({self.working_hours_end}) must be later than "
                f"working_hours_start ({self.working_hours_start})"
            )

        validate_timezone(self.timezone)

        for name in ("slots_per_day", "days_to_search", "max_days_to_look_ahead"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")

        self.bank_holidays = frozenset(parse_holiday(day) for day in self.bank_holidays)

        if isinstance(self.calendar_ids, str):
            self.calendar_ids = (self.calendar_ids,)
        self.calendar_ids = tuple(dict.fromkeys(cid.strip() for cid in self.calendar_ids if cid and cid.strip()))
        if not self.calendar_ids:
            raise ConfigurationError("At least one calendar ID is required")

        self.start_date = self._normalize_start_date(self.start_date)

    def _normalize_start_date(self, value: StartDateInput) -> Optional[DateTime]:
        if value is None:
            return None

        if isinstance(value, datetime):
            return pendulum.instance(value, tz=self.timezone)

        if isinstance(value, date):
            return pendulum.datetime(value.year, value.month, value.day, tz=self.timezone)

        if isinstance(value, str):
            try:
                parsed = pendulum.parse(value, tz=self.timezone)
            except ValueError as e:
                raise ConfigurationError(f"Could not parse start date: {value!r}") from e

            if isinstance(parsed, DateTime):
                return parsed
            if isinstance(parsed, Date):
                return pendulum.datetime(parsed.year, parsed.month, parsed.day, tz=self.timezone)

        raise ConfigurationError(f"Unsupported start date: {value!r}")

    def is_holiday(self, day: Date) -> bool:
        """Check whether the day is one of the bank holidays."""
        return day.to_date_string() in self.bank_holidays


@dataclass
class SchedulingResult:
    """
    Ordered meeting slot suggestions for one request.
    """
    slots: List[MeetingSlot]
    timezone: str
    examined_days: List[Date] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self):
        return iter(self.slots)

    def to_list(self) -> List[Dict[str, str]]:
        """Serialise slots in chronological order."""
        return [slot.to_dict(self.timezone) for slot in self.slots]


@dataclass(frozen=True)
class SchedulingFailure:
    """
    Structured failure returned to the caller instead of raising.
    """
    error: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.error, "message": self.message}
