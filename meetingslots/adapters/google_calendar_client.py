"""
Google Calendar API client for fetching free/busy data.
"""

import asyncio
import logging
from typing import Any, Dict, List

import requests
from pendulum import DateTime

from ..domain.exceptions import AuthenticationError, ExternalFetchError

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar API free/busy queries.

    Uses the /freeBusy endpoint, which answers for several calendars in one
    request.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, timeout: float = 30):
        """
        Initialize the Calendar API client.

        Args:
            access_token: Valid Google OAuth access token
            timeout: Request timeout in seconds
        """
        self.access_token = access_token
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    async def get_freebusy(
        self,
        calendar_ids: List[str],
        time_min: DateTime,
        time_max: DateTime,
        timezone: str
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Async wrapper running the blocking query in a worker thread."""
        return await asyncio.to_thread(
            self.query_freebusy,
            calendar_ids,
            time_min,
            time_max,
            timezone
        )

    def query_freebusy(
        self,
        calendar_ids: List[str],
        time_min: DateTime,
        time_max: DateTime,
        timezone: str = "America/Sao_Paulo"
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Get busy intervals for several calendars.

        Args:
            calendar_ids: Calendar IDs to query
            time_min: Start of the time window
            time_max: End of the time window
            timezone: IANA timezone the response is expressed in

        Returns:
            Dictionary mapping calendar ID -> list of raw busy entries

        Raises:
            AuthenticationError: If the token is rejected
            ExternalFetchError: If the API call fails or reports calendar errors
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/freeBusy"

        payload = {
            "timeMin": time_min.in_timezone("UTC").to_iso8601_string(),
            "timeMax": time_max.in_timezone("UTC").to_iso8601_string(),
            "timeZone": timezone,
            "items": [{"id": calendar_id} for calendar_id in calendar_ids]
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise ExternalFetchError(f"Failed to fetch free/busy data from Google Calendar: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Google Calendar rejected the access token (HTTP {response.status_code})"
            )

        try:
            response.raise_for_status()
            data = response.json()
        except ValueError as e:
            raise ExternalFetchError(f"Google Calendar returned invalid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ExternalFetchError(f"Failed to fetch free/busy data from Google Calendar: {e}") from e

        return self._parse_freebusy_response(data, calendar_ids)

    def _parse_freebusy_response(
        self,
        response_data: Dict[str, Any],
        calendar_ids: List[str]
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Extract the busy lists from the freeBusy response.

        Response format:
        {
            "kind": "calendar#freeBusy",
            "timeMin": "...",
            "timeMax": "...",
            "calendars": {
                "primary": {
                    "busy": [{"start": "...", "end": "..."}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendars = response_data.get("calendars")
        if not isinstance(calendars, dict):
            raise ExternalFetchError("Google Calendar response has no 'calendars' mapping")

        busy_times: Dict[str, List[Dict[str, Any]]] = {}

        for calendar_id in calendar_ids:
            calendar = calendars.get(calendar_id, {})

            errors = calendar.get("errors") or []
            if errors:
                reasons = ", ".join(error.get("reason", "unknown") for error in errors)
                raise ExternalFetchError(
                    f"Google Calendar could not return busy times for '{calendar_id}': {reasons}"
                )

            busy_times[calendar_id] = list(calendar.get("busy") or [])
            logger.debug("Calendar %s: %d busy intervals", calendar_id, len(busy_times[calendar_id]))

        return busy_times

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and authentication by fetching the primary calendar.

        Returns:
            Calendar list entry of the primary calendar

        Raises:
            ExternalFetchError: If connection test fails
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/users/me/calendarList/primary"

        try:
            response = requests.get(url, headers=self.headers, timeout=10)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise ExternalFetchError(f"Connection test failed: {e}") from e
