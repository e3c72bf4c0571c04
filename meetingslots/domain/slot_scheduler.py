"""
Core business logic for suggesting meeting slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from typing import List, Optional, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from .busy_intervals import BusyIntervalSet
from .models import MeetingSlot, SchedulingRequest, SchedulingResult, TimeRange, WorkingWindow

SATURDAY = 6
SUNDAY = 7


class FreeSlotScheduler:
    """
    Suggests meeting slots by walking calendar days forward.

    Algorithm:
    1. Resolve the start date (explicit date, or tomorrow in the request timezone)
    2. Walk day by day until enough eligible days were examined or the horizon ends
    3. Skip weekends and bank holidays
    4. Pack back-to-back slots into the free gaps of each working window
    5. Keep the first ``slots_per_day`` slots of every eligible day
    """

    def resolve_start_date(
        self,
        request: SchedulingRequest,
        now: Optional[DateTime] = None
    ) -> Date:
        """
        First calendar day of the search, in the request timezone.

        An explicit start date is used as-is (its local date). Without one the
        search starts tomorrow, so no same-day meetings are suggested.
        """
        if request.start_date is not None:
            return request.start_date.in_timezone(request.timezone).date()

        current = (now or pendulum.now(request.timezone)).in_timezone(request.timezone)
        return current.date().add(days=1)

    def search_horizon(
        self,
        request: SchedulingRequest,
        now: Optional[DateTime] = None
    ) -> Tuple[DateTime, DateTime]:
        """
        Local midnight of the start date and of the end-exclusive last day.
        """
        first_day = self.resolve_start_date(request, now=now)
        last_day = first_day.add(days=request.max_days_to_look_ahead)

        return _local_midnight(first_day, request.timezone), _local_midnight(last_day, request.timezone)

    def is_eligible_day(self, day: Date, request: SchedulingRequest) -> bool:
        """Check if a day is neither a weekend day nor a bank holiday."""
        if day.isoweekday() in (SATURDAY, SUNDAY):
            return False
        return not request.is_holiday(day)

    def suggest(
        self,
        request: SchedulingRequest,
        busy_intervals: BusyIntervalSet,
        now: Optional[DateTime] = None
    ) -> SchedulingResult:
        """
        Walk the horizon and collect slot suggestions.

        Every eligible day counts toward ``days_to_search``, whether or not it
        produced a slot.

        Args:
            request: Validated scheduling request
            busy_intervals: Busy time for the whole horizon
            now: Reference time used when the request has no start date

        Returns:
            SchedulingResult with slots in chronological order
        """
        first_day = self.resolve_start_date(request, now=now)
        end_day = first_day.add(days=request.max_days_to_look_ahead)

        slots: List[MeetingSlot] = []
        examined_days: List[Date] = []
        day = first_day

        while len(examined_days) < request.days_to_search and day < end_day:
            if self.is_eligible_day(day, request):
                window = WorkingWindow(
                    date=day,
                    start_hour=request.working_hours_start,
                    end_hour=request.working_hours_end,
                    timezone=request.timezone
                ).to_time_range()

                free_slots = self.find_free_slots(
                    window=window,
                    busy=busy_intervals.for_window(window),
                    meeting_length_minutes=request.meeting_length_minutes
                )
                slots.extend(free_slots[:request.slots_per_day])
                examined_days.append(day)

            day = day.add(days=1)

        return SchedulingResult(
            slots=slots,
            timezone=request.timezone,
            examined_days=examined_days
        )

    def find_free_slots(
        self,
        window: TimeRange,
        busy: Sequence[TimeRange],
        meeting_length_minutes: int
    ) -> List[MeetingSlot]:
        """
        Pack back-to-back slots into the free gaps of one working window.

        Example (60 min):
        Working: 09:00 - 12:00
        Busy: [10:00-10:30]
        Result: [09:00-10:00, 10:30-11:30]

        Args:
            window: The day's working hours
            busy: Busy ranges intersecting the window, sorted by start
            meeting_length_minutes: Length of each slot

        Returns:
            All packed slots for the day in chronological order
        """
        if meeting_length_minutes <= 0:
            return []

        slots: List[MeetingSlot] = []
        cursor = window.start

        for interval in busy:
            if cursor < interval.start:
                slots.extend(self._pack_gap(cursor, interval.start, meeting_length_minutes))

            # Overlapping or adjacent busy ranges coalesce here
            cursor = max(cursor, interval.end)

        if cursor < window.end:
            slots.extend(self._pack_gap(cursor, window.end, meeting_length_minutes))

        return slots

    def _pack_gap(
        self,
        gap_start: DateTime,
        gap_end: DateTime,
        meeting_length_minutes: int
    ) -> List[MeetingSlot]:
        """Fill a gap with as many consecutive slots as fit."""
        gap_minutes = (gap_end - gap_start).total_seconds() / 60
        count = int(gap_minutes // meeting_length_minutes)

        slots: List[MeetingSlot] = []
        slot_start = gap_start

        for _ in range(count):
            slot_end = slot_start.add(minutes=meeting_length_minutes)
            slots.append(MeetingSlot(start=slot_start, end=slot_end))
            slot_start = slot_end

        return slots


def _local_midnight(day: Date, timezone: str) -> DateTime:
    return pendulum.datetime(day.year, day.month, day.day, tz=timezone)
