"""
Unit tests for utils.py module.

Tests numeric coercion, currency formatting, date ranges and block time
derivation.
"""

from datetime import date, datetime, timezone

import pytest

from gigledger.utils import (
    BlockTimes,
    block_minutes,
    calculate_missing_time,
    coerce_integer,
    coerce_nullable_integer,
    coerce_nullable_number,
    coerce_number,
    date_in_range,
    format_currency,
    format_currency_compact,
    format_duration,
    hours_to_minutes,
    minutes_to_hours,
    month_key,
    month_range,
    parse_date,
    parse_datetime,
    round_currency,
    trailing_window,
    week_range,
)


class TestCoercion:
    """Test fail-soft number parsing."""

    def test_numbers_pass_through(self):
        assert coerce_number(12) == 12.0
        assert coerce_number(3.5) == 3.5

    def test_numeric_strings(self):
        """Decimal columns arrive as strings."""
        assert coerce_number("42.50") == 42.5
        assert coerce_number("  7 ") == 7.0

    def test_invalid_values_fall_back(self):
        assert coerce_number(None) == 0.0
        assert coerce_number("") == 0.0
        assert coerce_number("abc") == 0.0
        assert coerce_number(float("nan")) == 0.0
        assert coerce_number(float("inf")) == 0.0
        assert coerce_number(object()) == 0.0

    def test_custom_fallback(self):
        assert coerce_number("x", fallback=-1.0) == -1.0

    def test_nullable_number(self):
        assert coerce_nullable_number(None) is None
        assert coerce_nullable_number("   ") is None
        assert coerce_nullable_number("nan") is None
        assert coerce_nullable_number("1.25") == 1.25

    def test_integer_truncates(self):
        assert coerce_integer("3.9") == 3
        assert coerce_integer(-2.7) == -2
        assert coerce_integer("bad", fallback=1) == 1

    def test_nullable_integer(self):
        assert coerce_nullable_integer(None) is None
        assert coerce_nullable_integer("240") == 240


class TestCurrency:
    """Test rounding and display formatting."""

    def test_round_half_up(self):
        assert round_currency(2.675) == 2.68
        assert round_currency(1.005) == 1.01
        assert round_currency(-1.005) == -1.01

    def test_round_non_finite(self):
        assert round_currency(float("nan")) == 0.0

    def test_format_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(0) == "$0.00"
        assert format_currency(-12) == "-$12.00"

    def test_format_currency_compact(self):
        assert format_currency_compact(1234.56) == "$1,235"
        assert format_currency_compact(99.5) == "$99.50"
        assert format_currency_compact(-250.4) == "-$250"


class TestDates:
    """Test date parsing and ranges."""

    def test_parse_date_variants(self):
        assert parse_date("2025-01-31") == date(2025, 1, 31)
        assert parse_date("2025-01-31T23:00:00Z") == date(2025, 1, 31)
        assert parse_date(datetime(2025, 2, 1, 10, 0)) == date(2025, 2, 1)
        assert parse_date(date(2025, 2, 1)) == date(2025, 2, 1)

    def test_parse_date_invalid(self):
        assert parse_date(None) is None
        assert parse_date("") is None
        assert parse_date("not-a-date") is None
        assert parse_date(20250101) is None

    def test_parse_datetime_z_suffix(self):
        parsed = parse_datetime("2025-01-01T10:00:00Z")
        assert parsed == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_parse_datetime_invalid(self):
        assert parse_datetime("10am") is None
        assert parse_datetime(None) is None

    def test_date_in_range_inclusive(self):
        start, end = date(2025, 1, 1), date(2025, 1, 31)
        assert date_in_range(start, start, end)
        assert date_in_range(end, start, end)
        assert not date_in_range(date(2025, 2, 1), start, end)
        assert not date_in_range(None, start, end)

    def test_week_range_starts_sunday(self):
        # 2025-01-15 is a Wednesday
        assert week_range(date(2025, 1, 15)) == (date(2025, 1, 12), date(2025, 1, 18))
        # A Sunday is the first day of its own week
        assert week_range(date(2025, 1, 12)) == (date(2025, 1, 12), date(2025, 1, 18))

    def test_month_range(self):
        assert month_range(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_range(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))

    def test_month_key(self):
        assert month_key(date(2025, 3, 9)) == "2025-03"

    def test_trailing_window(self):
        # Window ending Tuesday starts the previous Wednesday
        assert trailing_window(date(2025, 1, 14)) == (date(2025, 1, 8), date(2025, 1, 14))


class TestBlockTimes:
    """Test block duration helpers."""

    def test_block_minutes(self):
        assert block_minutes("2025-01-01T10:00:00", "2025-01-01T14:30:00") == 270

    def test_block_minutes_overnight(self):
        """End before start on the same day wraps by 24 hours."""
        assert block_minutes("2025-01-01T22:00:00", "2025-01-01T02:00:00") == 240

    def test_block_minutes_partial_minute(self):
        assert block_minutes("2025-01-01T10:00:00", "2025-01-01T10:30:45") == 30

    def test_block_minutes_unparseable(self):
        assert block_minutes("2025-01-01T10:00:00", None) is None

    def test_missing_length_from_times(self):
        result = calculate_missing_time(
            "2024-01-01T10:00:00", "2024-01-01T14:00:00", None, "end"
        )
        assert result == BlockTimes("2024-01-01T10:00:00", "2024-01-01T14:00:00", 240)

    def test_changed_start_moves_end(self):
        result = calculate_missing_time("2024-01-01T09:00:00", None, 180, "start")
        assert result.end == "2024-01-01T12:00:00"
        assert result.length == 180

    def test_changed_end_moves_start(self):
        result = calculate_missing_time(None, "2024-01-01T12:00:00", 120, "end")
        assert result.start == "2024-01-01T10:00:00"

    def test_changed_length_prefers_start(self):
        result = calculate_missing_time(
            "2024-01-01T09:00:00", "2024-01-01T10:00:00", 240, "length"
        )
        assert result.end == "2024-01-01T13:00:00"

    def test_insufficient_input_unchanged(self):
        result = calculate_missing_time(None, None, 240, "start")
        assert result == BlockTimes(None, None, 240)

    def test_hour_conversions(self):
        assert minutes_to_hours(90) == 1.5
        assert hours_to_minutes(3.5) == 210

    def test_format_duration(self):
        assert format_duration(270) == "4h 30m"
        assert format_duration(120) == "2h"
        assert format_duration(45) == "45m"
