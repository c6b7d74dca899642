"""
Tests for utils/time.py - backend timestamp parsing and query formatting.
"""

from datetime import datetime, timezone, timedelta

from emojimap.utils.time import parse_timestamp, format_timestamp, DISTANT_PAST, DISTANT_FUTURE


class TestParseTimestamp:
    """Tests for the two accepted backend formats."""

    def test_fractional_and_whole_seconds_same_instant(self):
        a = parse_timestamp("2024-01-01T00:00:00.000000+00:00")
        b = parse_timestamp("2024-01-01T00:00:00+00:00")
        assert a is not None
        assert a == b

    def test_normalizes_offset_to_utc(self):
        d = parse_timestamp("2024-01-01T02:00:00+02:00")
        assert d == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert d.utcoffset() == timedelta(0)

    def test_keeps_microseconds(self):
        d = parse_timestamp("2024-05-06T07:08:09.123456+00:00")
        assert d.microsecond == 123456

    def test_short_fraction(self):
        d = parse_timestamp("2024-05-06T07:08:09.5+00:00")
        assert d.microsecond == 500000

    def test_invalid_returns_none(self):
        assert parse_timestamp("not-a-timestamp") is None

    def test_missing_offset_returns_none(self):
        assert parse_timestamp("2024-01-01T00:00:00") is None

    def test_date_only_returns_none(self):
        assert parse_timestamp("2024-01-01") is None

    def test_none_and_non_string(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp(12345) is None


class TestFormatTimestamp:
    """Tests for outgoing query timestamps."""

    def test_milliseconds_and_z(self):
        d = datetime(2024, 1, 1, 12, 30, 45, 123999, tzinfo=timezone.utc)
        assert format_timestamp(d) == "2024-01-01T12:30:45.123Z"

    def test_converts_to_utc(self):
        d = datetime(2024, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(d) == "2024-01-01T12:00:00.000Z"

    def test_naive_is_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"

    def test_output_parses_back(self):
        d = datetime(2024, 3, 4, 5, 6, 7, 8000, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(d)) == d


class TestFallbackBounds:
    def test_ordering(self):
        now = datetime.now(timezone.utc)
        assert DISTANT_PAST < now < DISTANT_FUTURE
