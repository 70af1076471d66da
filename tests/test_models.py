"""Tests for value types and timestamp helpers in models.py."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from wakasync.errors import ValidationError
from wakasync.models import RemoteEntry, TimeRange, format_datetime, format_duration, parse_datetime


def utc(text: str) -> datetime:
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# TimeRange
# ---------------------------------------------------------------------------

class TestTimeRange:
    def test_reversed_bounds_rejected(self):
        with pytest.raises(ValidationError):
            TimeRange(utc("2024-01-15 10:00:00"), utc("2024-01-15 09:00:00"))

    def test_naive_bounds_rejected(self):
        with pytest.raises(ValidationError):
            TimeRange(datetime(2024, 1, 15, 9), datetime(2024, 1, 15, 10))

    def test_zero_length_allowed(self):
        moment = utc("2024-01-15 10:00:00")
        assert TimeRange(moment, moment).seconds == 0

    def test_bounds_normalised_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        tr = TimeRange(datetime(2024, 1, 15, 12, tzinfo=plus_two), datetime(2024, 1, 15, 13, tzinfo=plus_two))
        assert tr.start == utc("2024-01-15 10:00:00")
        assert tr.start.tzinfo == timezone.utc
        assert tr.format() == "2024-01-15 10:00:00 - 2024-01-15 11:00:00"

    def test_contains_and_intersects(self):
        day = TimeRange(utc("2024-01-15 00:00:00"), utc("2024-01-16 00:00:00"))
        inside = TimeRange(utc("2024-01-15 08:00:00"), utc("2024-01-15 09:00:00"))
        crossing = TimeRange(utc("2024-01-15 23:00:00"), utc("2024-01-16 01:00:00"))

        assert day.contains(inside)
        assert not day.contains(crossing)
        assert day.intersects(crossing)
        assert not inside.intersects(crossing)

    def test_format_local_same_day(self):
        tr = TimeRange(utc("2024-01-15 08:00:00"), utc("2024-01-15 09:30:00"))
        assert tr.format_local(ZoneInfo("Europe/Berlin")) == "2024-01-15 09:00:00 - 10:30:00"

    def test_format_duration(self):
        tr = TimeRange(utc("2024-01-15 08:00:00"), utc("2024-01-16 09:02:03"))
        assert tr.format_duration() == "1d 1h 2m 3s"
        assert format_duration(timedelta(seconds=59)) == "0d 0h 0m 59s"


class TestDays:
    def test_utc_days(self):
        tr = TimeRange(utc("2024-01-15 00:00:00"), utc("2024-01-18 00:00:00"))
        windows = tr.days()
        assert len(windows) == 3
        assert windows[0].end == windows[1].start
        assert windows[-1].end == tr.end

    def test_partial_day(self):
        tr = TimeRange(utc("2024-01-15 12:00:00"), utc("2024-01-16 06:00:00"))
        windows = tr.days()
        assert [w.format() for w in windows] == [
            "2024-01-15 12:00:00 - 2024-01-16 00:00:00",
            "2024-01-16 00:00:00 - 2024-01-16 06:00:00",
        ]

    def test_local_midnight(self):
        berlin = ZoneInfo("Europe/Berlin")
        tr = TimeRange(utc("2024-01-14 23:00:00"), utc("2024-01-16 23:00:00"))
        windows = tr.days(berlin)
        assert len(windows) == 2
        assert windows[0].end == utc("2024-01-15 23:00:00")


# ---------------------------------------------------------------------------
# Quarter-hour rounding
# ---------------------------------------------------------------------------

class TestQuarterHourRounding:
    @pytest.mark.parametrize("value,expected", [
        ("10:07:29", "10:00:00"),
        ("10:07:30", "10:15:00"),
        ("10:52:40", "11:00:00"),
        ("10:15:00", "10:15:00"),
        ("23:53:00", "00:00:00"),
    ])
    def test_rounds_to_nearest_quarter(self, value, expected):
        moment = utc(f"2024-01-15 {value}")
        rounded = TimeRange(moment, moment).round_to_quarter_hour()
        assert rounded.start.strftime("%H:%M:%S") == expected

    def test_rounding_can_carry_to_next_day(self):
        moment = utc("2024-01-15 23:53:00")
        rounded = TimeRange(moment, moment).round_to_quarter_hour()
        assert rounded.start == utc("2024-01-16 00:00:00")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

class TestParseDatetime:
    @pytest.mark.parametrize("text", [
        "2024-01-15 10:00:00",
        "2024-01-15T10:00:00Z",
        "2024-01-15 10:00:00+00:00",
        "2024-01-15 11:00:00+01:00",
        "2024-01-15 11:00:00+0100",
        "2024-01-15 10:00:00.000000000+00:00",
    ])
    def test_variants(self, text):
        assert parse_datetime(text) == utc("2024-01-15 10:00:00")

    def test_fraction_truncated_to_microseconds(self):
        parsed = parse_datetime("2024-01-15 10:00:00.123456789+00:00")
        assert parsed.microsecond == 123456

    @pytest.mark.parametrize("value", ["", "yesterday", "2024-13-01 10:00:00", None, 1705312800])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_datetime(value)

    def test_format_datetime(self):
        plus_one = timezone(timedelta(hours=1))
        assert format_datetime(datetime(2024, 1, 15, 11, tzinfo=plus_one)) == "2024-01-15T10:00:00Z"


def test_remote_entry_running():
    entry = RemoteEntry(id="1", start=utc("2024-01-15 10:00:00"), end=None, description=None, project_id=None)
    assert entry.is_running
