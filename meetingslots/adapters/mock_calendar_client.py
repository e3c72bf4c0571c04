"""
Mock Google Calendar client for running without Google credentials.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime


class MockCalendarClient:
    """
    Mock client that simulates free/busy responses.

    Busy entries are loaded from mock_calendar_data.json, or passed in
    directly, for demos and tests without Google authentication.
    """

    def __init__(self, events: Optional[List[Dict[str, Any]]] = None, data_file: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            events: Events with ``calendarId``, ``start`` and ``end`` keys
            data_file: JSON file to load events from when none are given
        """
        self.calls: List[Dict[str, Any]] = []
        if events is not None:
            self.calendar_events = list(events)
        else:
            self.calendar_events = self._load_calendar_data(
                data_file or Path(__file__).parent / "mock_calendar_data.json"
            )

    @staticmethod
    def _load_calendar_data(data_file: Path) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            return []

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    async def get_freebusy(
        self,
        calendar_ids: List[str],
        time_min: DateTime,
        time_max: DateTime,
        timezone: str = "America/Sao_Paulo"
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Return busy entries from the mock data that overlap the window.

        Entries are returned raw, so malformed ones reach the caller as they
        would from the real API.
        """
        self.calls.append({
            "calendar_ids": tuple(calendar_ids),
            "time_min": time_min,
            "time_max": time_max,
            "timezone": timezone,
        })

        busy_times: Dict[str, List[Dict[str, Any]]] = {}

        for calendar_id in calendar_ids:
            entries: List[Dict[str, Any]] = []

            for event in self.calendar_events:
                if event.get("calendarId") != calendar_id:
                    continue

                if not self._overlaps(event, time_min, time_max):
                    continue

                entries.append({"start": event.get("start"), "end": event.get("end")})

            busy_times[calendar_id] = entries

        return busy_times

    @staticmethod
    def _overlaps(event: Dict[str, Any], time_min: DateTime, time_max: DateTime) -> bool:
        # Read like the busy-interval parser: no offset means UTC. Malformed entries pass through
        try:
            start = pendulum.parse(event["start"])
            end = pendulum.parse(event["end"])
        except (KeyError, TypeError, ValueError):
            return True

        return start < time_max and end > time_min


class MockAuthenticator:
    """
    Mock authenticator that bypasses Google authentication.
    """

    def __init__(self, *args, **kwargs):
        pass

    def get_access_token(self, force_refresh: bool = False) -> str:
        """Return a mock access token."""
        return "mock_access_token_12345"

    def clear_cache(self) -> None:
        """Mock cache clear (does nothing)."""
