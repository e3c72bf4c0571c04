"""
Application service for suggesting meeting slots.

The service fetches busy times once for the whole search horizon via a
calendar client adapter and delegates the day walk to the domain-level
``FreeSlotScheduler``. The calendar dependency is a simple protocol so the
Google adapter, the mock client or a test stub can be plugged in.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import pendulum
from pendulum import DateTime

from ..domain.busy_intervals import BusyIntervalSet
from ..domain.exceptions import ExternalFetchError, SchedulingError
from ..domain.models import SchedulingFailure, SchedulingRequest, SchedulingResult
from ..domain.slot_scheduler import FreeSlotScheduler
from .arguments import parse_arguments

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def get_freebusy(
        self,
        calendar_ids: List[str],
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Return raw busy entries per calendar ID."""


class MeetingSuggestionService:
    """
    Orchestrates busy-time retrieval and slot suggestion.

    Failures never escape ``suggest_meetings``; they come back as a
    ``SchedulingFailure`` so the caller decides how to present them.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        scheduler: Optional[FreeSlotScheduler] = None,
    ) -> None:
        self._calendar_client = calendar_client
        self._scheduler = scheduler or FreeSlotScheduler()

    async def suggest_meetings(
        self,
        request: SchedulingRequest,
        *,
        now: Optional[DateTime] = None,
    ) -> Union[SchedulingResult, SchedulingFailure]:
        """
        Fetch busy data for the horizon and compute suggestions.

        The clock is read once so the fetch and the day walk share one start date.
        """
        now = now or pendulum.now(request.timezone)

        try:
            busy_intervals = await self.fetch_busy_intervals(request, now=now)
        except SchedulingError as e:
            return SchedulingFailure(error=e.error_type, message=str(e))

        return self._scheduler.suggest(request, busy_intervals, now=now)

    async def fetch_busy_intervals(
        self,
        request: SchedulingRequest,
        *,
        now: Optional[DateTime] = None,
    ) -> BusyIntervalSet:
        """
        Fetch busy times for all requested calendars in a single call.

        Raises:
            ExternalFetchError: If the calendar client fails in any way
        """
        time_min, time_max = self._scheduler.search_horizon(request, now=now)
        calendar_ids = list(request.calendar_ids)

        try:
            calendars = await self._calendar_client.get_freebusy(
                calendar_ids=calendar_ids,
                time_min=time_min,
                time_max=time_max,
                timezone=request.timezone,
            )
        except ExternalFetchError:
            raise
        except Exception as e:
            raise ExternalFetchError(f"Failed to fetch busy times: {e}") from e

        if not isinstance(calendars, Mapping):
            raise ExternalFetchError(
                f"Calendar client returned {type(calendars).__name__}, expected a mapping"
            )

        busy_intervals = BusyIntervalSet.from_freebusy(calendars, calendar_ids)
        if busy_intervals.discarded:
            logger.debug("Dropped %d malformed busy intervals", busy_intervals.discarded)

        return busy_intervals

    async def handle_arguments(
        self,
        arguments: Optional[Mapping[str, Any]],
        *,
        now: Optional[DateTime] = None,
    ) -> Dict[str, Any]:
        """
        Tool-style entry point: raw arguments in, JSON-ready payload out.

        Returns ``{"slots": [...]}`` on success or
        ``{"error": ..., "message": ..., "isError": True}`` on failure.
        """
        try:
            request = parse_arguments(arguments)
        except SchedulingError as e:
            return _failure_payload(SchedulingFailure(error=e.error_type, message=str(e)))

        outcome = await self.suggest_meetings(request, now=now)

        if isinstance(outcome, SchedulingFailure):
            return _failure_payload(outcome)

        return {"slots": outcome.to_list()}


def _failure_payload(failure: SchedulingFailure) -> Dict[str, Any]:
    payload: Dict[str, Any] = failure.to_dict()
    payload["isError"] = True
    return payload
