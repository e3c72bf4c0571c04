"""
Normalisation of provider-reported busy intervals.

The calendar provider is queried once for the whole search horizon; this
module flattens the per-calendar answer into one collection and derives the
per-day view the scheduler works on.
"""

from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Sequence

import pendulum
from pendulum import DateTime

from .models import BusyInterval, TimeRange


class BusyIntervalSet:
    """
    Union of busy time across all requested calendars.

    Calendar identity is kept on each interval for reference only; a time is
    unavailable if any calendar is busy then. Duplicates are kept.
    """

    def __init__(self, intervals: Sequence[BusyInterval] = (), discarded: int = 0):
        self._intervals: List[BusyInterval] = list(intervals)
        self.discarded = discarded

    @classmethod
    def from_freebusy(
        cls,
        calendars: Mapping[str, Sequence[Mapping[str, Any]]],
        calendar_ids: Sequence[str],
    ) -> "BusyIntervalSet":
        """
        Build the set from a raw free/busy answer.

        Args:
            calendars: Mapping of calendar ID to raw ``{"start", "end"}`` entries
            calendar_ids: Calendars to read, in request order

        Entries without start or end, or with values that cannot be parsed
        into a valid range, are dropped and counted in ``discarded``.
        """
        intervals: List[BusyInterval] = []
        discarded = 0

        for calendar_id in calendar_ids:
            for raw in calendars.get(calendar_id) or []:
                interval = cls._parse_entry(raw, calendar_id)
                if interval is None:
                    discarded += 1
                    continue
                intervals.append(interval)

        return cls(intervals, discarded=discarded)

    @staticmethod
    def _parse_entry(raw: Mapping[str, Any], calendar_id: str) -> Optional[BusyInterval]:
        if not isinstance(raw, Mapping):
            return None

        start = _to_datetime(raw.get("start"))
        end = _to_datetime(raw.get("end"))
        if start is None or end is None or start >= end:
            return None

        return BusyInterval(start=start, end=end, calendar_id=calendar_id)

    def for_window(self, window: TimeRange) -> List[BusyInterval]:
        """
        Busy intervals intersecting the window, ascending by start.

        Intervals sharing a start time keep their insertion order.
        """
        overlapping = [
            busy for busy in self._intervals
            if busy.start < window.end and busy.end > window.start
        ]
        return sorted(overlapping, key=lambda busy: busy.start)

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[BusyInterval]:
        return iter(self._intervals)


def _to_datetime(value: Any) -> Optional[DateTime]:
    """Parse an ISO string or datetime into a pendulum DateTime."""
    if not value:
        return None

    if isinstance(value, datetime):
        return pendulum.instance(value)

    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value)
        except ValueError:
            return None
        if isinstance(parsed, DateTime):
            return parsed

    return None
