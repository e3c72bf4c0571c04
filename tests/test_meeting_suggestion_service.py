"""
Tests for the MeetingSuggestionService orchestration layer.
"""

import asyncio
from typing import Any, Dict, List

import pendulum

from meetingslots.domain.exceptions import AuthenticationError, ExternalFetchError
from meetingslots.domain.models import SchedulingFailure, SchedulingRequest, SchedulingResult
from meetingslots.services.meeting_suggester import MeetingSuggestionService

TZ = "America/Sao_Paulo"


class StubCalendarClient:
    """Minimal stub matching CalendarClientProtocol."""

    def __init__(self, schedule: Any = None, error: Exception = None):
        self._schedule = schedule if schedule is not None else {}
        self._error = error
        self.calls: List[Dict[str, Any]] = []

    async def get_freebusy(self, calendar_ids, time_min, time_max, timezone):
        self.calls.append(
            {
                "calendar_ids": tuple(calendar_ids),
                "time_min": time_min,
                "time_max": time_max,
                "timezone": timezone,
            }
        )
        if self._error is not None:
            raise self._error
        return self._schedule


def test_fetches_whole_horizon_once():
    """A single call covers start date to start date + look-ahead."""
    client = StubCalendarClient()
    service = MeetingSuggestionService(calendar_client=client)
    request = SchedulingRequest(
        start_date="2024-11-25",
        max_days_to_look_ahead=14,
        calendar_ids=["primary", "team@example.com"]
    )

    outcome = asyncio.run(service.suggest_meetings(request))

    assert isinstance(outcome, SchedulingResult)
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["calendar_ids"] == ("primary", "team@example.com")
    assert call["time_min"] == pendulum.datetime(2024, 11, 25, tz=TZ)
    assert call["time_max"] == pendulum.datetime(2024, 12, 9, tz=TZ)
    assert call["timezone"] == TZ


def test_suggestions_use_fetched_busy_times():
    """Busy time from any calendar blocks the slot."""
    schedule = {
        "primary": [{"start": "2024-11-25T12:00:00Z", "end": "2024-11-25T13:00:00Z"}],
        "team@example.com": [
            {"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:30:00Z"},
            {"start": "2024-11-25T15:00:00Z"},
        ],
    }
    service = MeetingSuggestionService(calendar_client=StubCalendarClient(schedule))
    request = SchedulingRequest(
        start_date="2024-11-25",
        days_to_search=1,
        calendar_ids=["primary", "team@example.com"]
    )

    outcome = asyncio.run(service.suggest_meetings(request))

    assert outcome.to_list() == [
        {"start": "2024-11-25T11:30:00-03:00", "end": "2024-11-25T12:30:00-03:00"}
    ]


def test_fetch_error_returns_failure():
    """Fetch failures abort the run without partial output."""
    client = StubCalendarClient(error=ExternalFetchError("timed out"))
    service = MeetingSuggestionService(calendar_client=client)

    outcome = asyncio.run(service.suggest_meetings(SchedulingRequest(start_date="2024-11-25")))

    assert outcome == SchedulingFailure(error="external_fetch_error", message="timed out")


def test_authentication_error_keeps_its_type():
    client = StubCalendarClient(error=AuthenticationError("token revoked"))
    service = MeetingSuggestionService(calendar_client=client)

    outcome = asyncio.run(service.suggest_meetings(SchedulingRequest(start_date="2024-11-25")))

    assert isinstance(outcome, SchedulingFailure)
    assert outcome.error == "authentication_error"


def test_unexpected_client_error_is_wrapped():
    client = StubCalendarClient(error=TimeoutError("socket timeout"))
    service = MeetingSuggestionService(calendar_client=client)

    outcome = asyncio.run(service.suggest_meetings(SchedulingRequest(start_date="2024-11-25")))

    assert isinstance(outcome, SchedulingFailure)
    assert outcome.error == "external_fetch_error"
    assert "socket timeout" in outcome.message


def test_malformed_response_returns_failure():
    service = MeetingSuggestionService(calendar_client=StubCalendarClient(schedule=["not", "a", "mapping"]))

    outcome = asyncio.run(service.suggest_meetings(SchedulingRequest(start_date="2024-11-25")))

    assert isinstance(outcome, SchedulingFailure)
    assert outcome.error == "external_fetch_error"


def test_default_start_is_tomorrow():
    client = StubCalendarClient()
    service = MeetingSuggestionService(calendar_client=client)
    now = pendulum.datetime(2024, 11, 24, 10, tz=TZ)

    outcome = asyncio.run(service.suggest_meetings(SchedulingRequest(days_to_search=1), now=now))

    assert client.calls[0]["time_min"] == pendulum.datetime(2024, 11, 25, tz=TZ)
    assert outcome.to_list()[0]["start"] == "2024-11-25T09:00:00-03:00"


class TestHandleArguments:
    """Tests for the tool-style entry point."""

    def test_camel_case_arguments(self):
        client = StubCalendarClient()
        service = MeetingSuggestionService(calendar_client=client)
        arguments = {
            "meetingLengthMinutes": 30,
            "workingHoursStart": 14,
            "workingHoursEnd": 16,
            "timezone": "Europe/Berlin",
            "slotsPerDay": 2,
            "daysToSearch": 1,
            "bankHolidays": ["2024-11-25"],
            "calendarIds": ["team@example.com"],
            "startDate": "2024-11-25",
        }

        payload = asyncio.run(service.handle_arguments(arguments))

        assert payload == {
            "slots": [
                {"start": "2024-11-26T14:00:00+01:00", "end": "2024-11-26T14:30:00+01:00"},
                {"start": "2024-11-26T14:30:00+01:00", "end": "2024-11-26T15:00:00+01:00"},
            ]
        }
        assert client.calls[0]["calendar_ids"] == ("team@example.com",)

    def test_snake_case_arguments(self):
        service = MeetingSuggestionService(calendar_client=StubCalendarClient())

        payload = asyncio.run(service.handle_arguments({
            "meeting_length_minutes": 120,
            "days_to_search": 1,
            "start_date": "2024-11-25",
        }))

        assert payload["slots"] == [
            {"start": "2024-11-25T09:00:00-03:00", "end": "2024-11-25T11:00:00-03:00"}
        ]

    def test_defaults_without_arguments(self):
        client = StubCalendarClient()
        service = MeetingSuggestionService(calendar_client=client)
        now = pendulum.datetime(2024, 11, 25, 8, tz=TZ)

        payload = asyncio.run(service.handle_arguments(None, now=now))

        assert len(payload["slots"]) == 3
        assert client.calls[0]["calendar_ids"] == ("primary",)

    def test_invalid_arguments_fail_before_fetch(self):
        client = StubCalendarClient()
        service = MeetingSuggestionService(calendar_client=client)

        payload = asyncio.run(service.handle_arguments({"meetingLengthMinutes": 0}))

        assert payload["isError"] is True
        assert payload["error"] == "configuration_error"
        assert client.calls == []

    def test_wrong_argument_types_are_configuration_errors(self):
        client = StubCalendarClient()
        service = MeetingSuggestionService(calendar_client=client)

        payload = asyncio.run(service.handle_arguments({"calendarIds": "primary", "daysToSearch": "many"}))

        assert payload["error"] == "configuration_error"
        assert client.calls == []

    def test_non_mapping_arguments_are_configuration_errors(self):
        client = StubCalendarClient()
        service = MeetingSuggestionService(calendar_client=client)

        payload = asyncio.run(service.handle_arguments(["meetingLengthMinutes"]))

        assert payload["isError"] is True
        assert payload["error"] == "configuration_error"
        assert "mapping" in payload["message"]
        assert client.calls == []

    def test_fetch_failure_payload(self):
        service = MeetingSuggestionService(calendar_client=StubCalendarClient(error=ExternalFetchError("boom")))

        payload = asyncio.run(service.handle_arguments({"startDate": "2024-11-25"}))

        assert payload == {"error": "external_fetch_error", "message": "boom", "isError": True}


def test_clock_is_read_once(monkeypatch):
    """Fetch window and day walk start on the same day even across midnight."""
    readings = iter([
        pendulum.datetime(2024, 11, 24, 23, 59, 59, tz=TZ),
        pendulum.datetime(2024, 11, 25, 0, 0, 1, tz=TZ),
    ])
    monkeypatch.setattr(pendulum, "now", lambda tz=None: next(readings))
    client = StubCalendarClient()
    service = MeetingSuggestionService(calendar_client=client)

    outcome = asyncio.run(service.suggest_meetings(SchedulingRequest(days_to_search=1)))

    assert client.calls[0]["time_min"] == pendulum.datetime(2024, 11, 25, tz=TZ)
    assert outcome.examined_days == [pendulum.date(2024, 11, 25)]
