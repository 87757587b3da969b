"""General utilities for GigLedger

Contents
--------
- Numeric coercion (fail-soft number parsing for dashboard sums)
- Currency helpers (rounding, display formatting)
- Date helpers (parsing, week/month ranges, trailing windows)
- Block time helpers (overnight-aware durations, missing-field derivation)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Literal, Optional, Tuple

import numpy as np
import pandas as pd

from .constants import MINUTES_PER_DAY, MINUTES_PER_HOUR, ROLLING_WINDOW_DAYS, SECONDS_PER_MINUTE

__all__ = [
    # Coercion
    "coerce_number",
    "coerce_nullable_number",
    "coerce_integer",
    "coerce_nullable_integer",
    # Currency
    "round_currency",
    "format_currency",
    "format_currency_compact",
    # Dates
    "parse_date",
    "parse_datetime",
    "date_in_range",
    "week_range",
    "month_range",
    "month_key",
    "trailing_window",
    # Block times
    "BlockTimes",
    "block_minutes",
    "calculate_missing_time",
    "minutes_to_hours",
    "hours_to_minutes",
    "format_duration",
]


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------

def coerce_number(value: Any, fallback: float = 0.0) -> float:
    """Convert *value* to a finite float, returning *fallback* otherwise.

    Accepts numbers and numeric strings (database numerics often arrive as
    strings). NaN, infinities, None, blanks and garbage map to *fallback*.
    """
    if value is None:
        return fallback
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            parsed = float(text)
        except ValueError:
            return fallback
    else:
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return fallback
    return parsed if np.isfinite(parsed) else fallback


def coerce_nullable_number(value: Any) -> Optional[float]:
    """Like coerce_number, but missing or invalid input becomes None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    parsed = coerce_number(value, fallback=float("nan"))
    return parsed if np.isfinite(parsed) else None


def coerce_integer(value: Any, fallback: int = 0) -> int:
    """Coerce to float, then truncate toward zero."""
    parsed = coerce_number(value, fallback=float("nan"))
    return int(parsed) if np.isfinite(parsed) else fallback


def coerce_nullable_integer(value: Any) -> Optional[int]:
    parsed = coerce_nullable_number(value)
    return None if parsed is None else int(parsed)


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------

def round_currency(amount: float) -> float:
    """Round to cents, half away from zero. Non-finite input becomes 0.0."""
    value = coerce_number(amount)
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_currency(amount: float) -> str:
    """
    Format a dollar amount for display.

    Examples
    --------
    >>> format_currency(1234.5)
    '$1,234.50'
    >>> format_currency(-12)
    '-$12.00'
    """
    value = round_currency(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_currency_compact(amount: float) -> str:
    """Whole dollars for |amount| >= 100, cents otherwise."""
    value = coerce_number(amount)
    if abs(value) >= 100:
        whole = int(Decimal(repr(abs(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return f"-${whole:,}" if value < 0 else f"${whole:,}"
    return format_currency(value)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def parse_date(value: Any) -> Optional[date]:
    """Parse a calendar date, returning None instead of raising.

    Accepts ``date``, ``datetime`` (including pandas Timestamps) and ISO
    strings, either plain dates ("2025-01-31") or datetimes.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    parsed = parse_datetime(text)
    return parsed.date() if parsed is not None else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp ("Z" suffix allowed), or None on failure."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def date_in_range(day: Optional[date], start: date, end: date) -> bool:
    """Inclusive range check; a missing day is never in range."""
    return day is not None and start <= day <= end


def week_range(day: date) -> Tuple[date, date]:
    """Sunday-to-Saturday calendar week containing *day*."""
    offset = (day.weekday() + 1) % 7
    start = day - timedelta(days=offset)
    return start, start + timedelta(days=6)


def month_range(day: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing *day*."""
    first = day.replace(day=1)
    last = (pd.Timestamp(first) + pd.offsets.MonthEnd(0)).date()
    return first, last


def month_key(day: date) -> str:
    """'YYYY-MM' key used by variable expenses and plan payments."""
    return f"{day.year:04d}-{day.month:02d}"


def trailing_window(day: date, days: int = ROLLING_WINDOW_DAYS) -> Tuple[date, date]:
    """Trailing window of *days* calendar days ending on *day* (inclusive).

    Not the calendar week: a window ending Tuesday starts the previous
    Wednesday.
    """
    return day - timedelta(days=days - 1), day


# ---------------------------------------------------------------------------
# Block times
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BlockTimes:
    """Start, end and length of a work block; any field may be missing."""
    start: Optional[str]
    end: Optional[str]
    length: Optional[int]


def block_minutes(start: Any, end: Any) -> Optional[int]:
    """Whole minutes from *start* to *end*.

    A negative span is an overnight shift recorded with times on the same
    day, so 24 hours are added. Returns None if either side does not parse.
    """
    start_dt = parse_datetime(start)
    end_dt = parse_datetime(end)
    if start_dt is None or end_dt is None:
        return None
    try:
        minutes = int((end_dt - start_dt).total_seconds() / SECONDS_PER_MINUTE)
    except TypeError:
        # naive vs aware
        return None
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes


def calculate_missing_time(
    start: Optional[str],
    end: Optional[str],
    length: Optional[int],
    changed: Literal["start", "end", "length"],
) -> BlockTimes:
    """
    Derive the missing block time field from the other two.

    The field the user just edited decides which of the others is kept:
    editing the start keeps the length (moving the end), editing the end
    keeps the length (moving the start), editing the length keeps the start
    (or the end when no start is known).

    Parameters
    ----------
    start, end : str, optional
        ISO timestamps.
    length : int, optional
        Block length in minutes.
    changed : {"start", "end", "length"}
        Field the user changed last.

    Returns
    -------
    BlockTimes
        Updated fields. Unparseable or insufficient input is returned as-is.

    Examples
    --------
    >>> calculate_missing_time("2024-01-01T10:00:00", "2024-01-01T14:00:00", None, "end")
    BlockTimes(start='2024-01-01T10:00:00', end='2024-01-01T14:00:00', length=240)
    """
    unchanged = BlockTimes(start, end, length)
    start_dt = parse_datetime(start)
    end_dt = parse_datetime(end)

    if changed == "start":
        if length is not None and start_dt is not None:
            return BlockTimes(start, (start_dt + timedelta(minutes=length)).isoformat(), length)
        if start_dt is not None and end_dt is not None:
            return BlockTimes(start, end, block_minutes(start_dt, end_dt))
    elif changed == "end":
        if length is not None and end_dt is not None:
            return BlockTimes((end_dt - timedelta(minutes=length)).isoformat(), end, length)
        if start_dt is not None and end_dt is not None:
            return BlockTimes(start, end, block_minutes(start_dt, end_dt))
    elif changed == "length" and length is not None:
        if start_dt is not None:
            return BlockTimes(start, (start_dt + timedelta(minutes=length)).isoformat(), length)
        if end_dt is not None:
            return BlockTimes((end_dt - timedelta(minutes=length)).isoformat(), end, length)
    return unchanged


def minutes_to_hours(minutes: float) -> float:
    return coerce_number(minutes) / MINUTES_PER_HOUR


def hours_to_minutes(hours: float) -> int:
    return int(round(coerce_number(hours) * MINUTES_PER_HOUR))


def format_duration(minutes: int) -> str:
    """'4h 30m', '2h' or '45m'."""
    hours, mins = divmod(int(minutes), MINUTES_PER_HOUR)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
