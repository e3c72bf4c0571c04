"""
Tests for busy interval normalisation.
"""

import pendulum

from meetingslots.domain.busy_intervals import BusyIntervalSet
from meetingslots.domain.models import TimeRange

TZ = "America/Sao_Paulo"


def _window(day: str = "2024-11-25", start: str = "09:00", end: str = "17:00") -> TimeRange:
    return TimeRange(
        start=pendulum.parse(f"{day} {start}", tz=TZ),
        end=pendulum.parse(f"{day} {end}", tz=TZ)
    )


class TestFromFreebusy:
    """Tests for building the set from raw provider data."""

    def test_flattens_requested_calendars(self):
        calendars = {
            "primary": [{"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"}],
            "team@example.com": [{"start": "2024-11-25T15:00:00Z", "end": "2024-11-25T16:00:00Z"}],
        }

        busy = BusyIntervalSet.from_freebusy(calendars, ["primary", "team@example.com"])

        assert len(busy) == 2
        assert [interval.calendar_id for interval in busy] == ["primary", "team@example.com"]
        assert busy.discarded == 0

    def test_ignores_calendars_not_requested(self):
        calendars = {
            "primary": [{"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"}],
            "other@example.com": [{"start": "2024-11-25T15:00:00Z", "end": "2024-11-25T16:00:00Z"}],
        }

        busy = BusyIntervalSet.from_freebusy(calendars, ["primary", "missing@example.com"])

        assert len(busy) == 1

    def test_drops_malformed_entries(self):
        calendars = {
            "primary": [
                {"start": "2024-11-25T13:00:00Z"},
                {"end": "2024-11-25T14:00:00Z"},
                {"start": None, "end": "2024-11-25T14:00:00Z"},
                {"start": "not a date", "end": "2024-11-25T14:00:00Z"},
                {"start": "2024-11-25T14:00:00Z", "end": "2024-11-25T13:00:00Z"},
                "garbage",
                {"start": "2024-11-25T15:00:00Z", "end": "2024-11-25T16:00:00Z"},
            ],
        }

        busy = BusyIntervalSet.from_freebusy(calendars, ["primary"])

        assert len(busy) == 1
        assert busy.discarded == 6

    def test_keeps_duplicates(self):
        entry = {"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"}

        busy = BusyIntervalSet.from_freebusy({"primary": [entry], "team": [entry]}, ["primary", "team"])

        assert len(busy) == 2

    def test_accepts_datetime_values(self):
        start = pendulum.datetime(2024, 11, 25, 10, tz=TZ)
        calendars = {"primary": [{"start": start, "end": start.add(hours=1)}]}

        busy = BusyIntervalSet.from_freebusy(calendars, ["primary"])

        interval = next(iter(busy))
        assert interval.start == start
        assert interval.duration_minutes() == 60

    def test_does_not_mutate_input(self):
        entries = [{"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"}]
        calendars = {"primary": entries}

        BusyIntervalSet.from_freebusy(calendars, ["primary"])

        assert calendars == {"primary": [{"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"}]}


class TestForWindow:
    """Tests for the per-day view."""

    def test_filters_to_intersecting_and_sorts(self):
        calendars = {
            "primary": [
                {"start": "2024-11-25T18:00:00Z", "end": "2024-11-25T19:00:00Z"},  # 15-16 local
                {"start": "2024-11-26T13:00:00Z", "end": "2024-11-26T14:00:00Z"},  # next day
                {"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"},  # 10-11 local
                {"start": "2024-11-25T10:00:00Z", "end": "2024-11-25T12:30:00Z"},  # 07:00-09:30 local
            ],
        }
        busy = BusyIntervalSet.from_freebusy(calendars, ["primary"])

        view = busy.for_window(_window())

        assert [interval.start.in_timezone(TZ).format("HH:mm") for interval in view] == [
            "07:00", "10:00", "15:00"
        ]

    def test_touching_intervals_are_excluded(self):
        calendars = {
            "primary": [
                {"start": "2024-11-25T11:00:00Z", "end": "2024-11-25T12:00:00Z"},  # ends at 09:00 local
                {"start": "2024-11-25T20:00:00Z", "end": "2024-11-25T21:00:00Z"},  # starts at 17:00 local
            ],
        }
        busy = BusyIntervalSet.from_freebusy(calendars, ["primary"])

        assert busy.for_window(_window()) == []

    def test_equal_start_times_keep_insertion_order(self):
        calendars = {
            "team@example.com": [{"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T15:00:00Z"}],
            "primary": [{"start": "2024-11-25T13:00:00Z", "end": "2024-11-25T14:00:00Z"}],
        }
        busy = BusyIntervalSet.from_freebusy(calendars, ["primary", "team@example.com"])

        view = busy.for_window(_window())

        assert [interval.calendar_id for interval in view] == ["primary", "team@example.com"]
