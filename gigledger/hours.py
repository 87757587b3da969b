"""
Hours-limit tracker for GigLedger.

Purpose
-------
Tracks worked hours of the capped platform against two caps:

- a DAILY cap on one calendar date
- a WEEKLY cap on the trailing 7-day window ending on the target date,
  i.e. [target - 6 days, target]. This is NOT the Sunday-start calendar
  week used by goals: a window ending on a Tuesday starts the previous
  Wednesday.

The same computation serves two callers: the capacity gauge
(``hours_used``) and the write-time guard (``check_hours_limit``), which
simulates a pending insert/edit and rejects it with ``HoursLimitError``.

Durations
---------
An entry's minutes come from its block length, else from its start/end
timestamps (an overnight span adds 24h instead of going negative), else 0.

Example
-------
>>> from datetime import date
>>> from gigledger.income import IncomeEntry
>>> entries = [IncomeEntry(date="2025-01-06", amount=80, block_length=240)]
>>> usage = hours_used(entries, date(2025, 1, 7))
>>> usage.daily_hours_used, usage.weekly_hours_used, usage.weekly_remaining
(0.0, 4.0, 36.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Union

import pandas as pd

from .config import HoursLimitConfig
from .constants import (
    DEFAULT_DAILY_LIMIT_HOURS,
    DEFAULT_WEEKLY_LIMIT_HOURS,
    HOURS_REMAINING_CRITICAL_THRESHOLD,
    HOURS_REMAINING_WARNING_THRESHOLD,
    MINUTES_PER_HOUR,
    ROLLING_WINDOW_DAYS,
)
from .exceptions import HoursLimitError
from .income import IncomeEntry
from .utils import parse_date, trailing_window

__all__ = [
    "HoursUsage",
    "hours_used",
    "check_hours_limit",
    "hours_remaining_level",
    "daily_hours_series",
]


@dataclass(frozen=True)
class HoursUsage:
    """Hours used and remaining against the daily and trailing-7-day caps."""
    daily_hours_used: float
    weekly_hours_used: float
    daily_remaining: float
    weekly_remaining: float


def _capped_entries(entries: Iterable[IncomeEntry], platform: Optional[str]) -> List[IncomeEntry]:
    if platform is None:
        return list(entries)
    return [e for e in entries if e.platform == platform]


def _minutes_between(entries: Iterable[IncomeEntry], start: date, end: date) -> int:
    total = 0
    for entry in entries:
        day = entry.work_date
        if day is not None and start <= day <= end:
            total += entry.duration_minutes
    return total


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------

def hours_used(
    entries: Iterable[IncomeEntry],
    target_date: Union[date, str, None],
    daily_limit_hours: float = DEFAULT_DAILY_LIMIT_HOURS,
    weekly_limit_hours: float = DEFAULT_WEEKLY_LIMIT_HOURS,
    *,
    platform: Optional[str] = None,
) -> HoursUsage:
    """
    Hours used on *target_date* and in the trailing 7 days ending on it.

    Parameters
    ----------
    entries : iterable of IncomeEntry
        Worked blocks. Entries with an unparseable date are skipped.
    target_date : date or str
        Reference date. If it cannot be parsed the result reports zero usage
        and full remaining capacity.
    daily_limit_hours, weekly_limit_hours : float
        Caps used for the remaining figures.
    platform : str, optional
        Restrict to one platform. None counts every entry given.

    Returns
    -------
    HoursUsage
        ``daily_hours_used <= weekly_hours_used`` always holds, since the
        trailing window contains the target date.

    Examples
    --------
    >>> hours_used([], "not-a-date").daily_remaining
    8.0
    """
    target = parse_date(target_date)
    if target is None:
        return HoursUsage(0.0, 0.0, float(daily_limit_hours), float(weekly_limit_hours))

    capped = _capped_entries(entries, platform)
    window_start, window_end = trailing_window(target, ROLLING_WINDOW_DAYS)
    daily = _minutes_between(capped, target, target) / MINUTES_PER_HOUR
    weekly = _minutes_between(capped, window_start, window_end) / MINUTES_PER_HOUR

    return HoursUsage(
        daily_hours_used=daily,
        weekly_hours_used=weekly,
        daily_remaining=max(daily_limit_hours - daily, 0.0),
        weekly_remaining=max(weekly_limit_hours - weekly, 0.0),
    )


def hours_remaining_level(hours_remaining: float) -> str:
    """
    Gauge level for remaining hours.

    Returns
    -------
    str
        "ok" above 3 hours, "warning" from 1 to 3 hours, "critical" below 1.
    """
    if hours_remaining > HOURS_REMAINING_WARNING_THRESHOLD:
        return "ok"
    if hours_remaining >= HOURS_REMAINING_CRITICAL_THRESHOLD:
        return "warning"
    return "critical"


def daily_hours_series(
    entries: Iterable[IncomeEntry],
    end: date,
    days: int = ROLLING_WINDOW_DAYS,
    *,
    platform: Optional[str] = None,
) -> pd.Series:
    """Worked hours per date over the *days* calendar days ending on *end*.

    Dates without work are present with 0.0.
    """
    start = end - timedelta(days=days - 1)
    index = pd.date_range(start, end, freq="D")
    hours = pd.Series(0.0, index=index, name="hours")
    for entry in _capped_entries(entries, platform):
        day = entry.work_date
        if day is not None and start <= day <= end:
            hours[pd.Timestamp(day)] += entry.duration_minutes / MINUTES_PER_HOUR
    return hours


# ---------------------------------------------------------------------------
# Write-time guard
# ---------------------------------------------------------------------------

def check_hours_limit(
    existing: Iterable[IncomeEntry],
    candidate: IncomeEntry,
    config: Optional[HoursLimitConfig] = None,
    replacing_id: Optional[str] = None,
) -> None:
    """
    Reject a write that would push worked hours past a cap.

    The candidate is applied to a copy of *existing* (replacing the entry
    with id *replacing_id* for an edit), then the daily total on the
    candidate's date and the trailing 7-day total of every window containing
    that date (the windows ending on D, D+1, ..., D+6) are recomputed.

    Parameters
    ----------
    existing : iterable of IncomeEntry
        Entries currently stored.
    candidate : IncomeEntry
        New or edited entry.
    config : HoursLimitConfig, optional
        Caps and capped platform; defaults to 8h / 40h on AmazonFlex.
    replacing_id : str, optional
        Id of the stored entry the candidate replaces.

    Raises
    ------
    HoursLimitError
        With ``cap="daily"`` or ``cap="weekly"``, the hours that would be
        used, the limit and the overage. Daily is checked first.

    Examples
    --------
    >>> existing = [IncomeEntry(date="2025-01-01", amount=90, block_length=300)]
    >>> check_hours_limit(existing, IncomeEntry(date="2025-01-01", amount=70, block_length=240))
    Traceback (most recent call last):
    ...
    gigledger.exceptions.HoursLimitError: Daily hour limit exceeded on 2025-01-01: ...
    """
    config = config or HoursLimitConfig()
    if candidate.platform != config.platform:
        return
    day = candidate.work_date
    if day is None:
        return

    simulated = [
        e for e in _capped_entries(existing, config.platform)
        if replacing_id is None or e.id != replacing_id
    ]
    simulated.append(candidate)

    daily_limit_minutes = config.daily_limit_hours * MINUTES_PER_HOUR
    weekly_limit_minutes = config.weekly_limit_hours * MINUTES_PER_HOUR

    daily_minutes = _minutes_between(simulated, day, day)
    if daily_minutes > daily_limit_minutes:
        raise HoursLimitError(
            "daily",
            used_hours=daily_minutes / MINUTES_PER_HOUR,
            limit_hours=config.daily_limit_hours,
            window_end=day,
        )

    for offset in range(ROLLING_WINDOW_DAYS):
        window_start, window_end = trailing_window(day + timedelta(days=offset))
        weekly_minutes = _minutes_between(simulated, window_start, window_end)
        if weekly_minutes > weekly_limit_minutes:
            raise HoursLimitError(
                "weekly",
                used_hours=weekly_minutes / MINUTES_PER_HOUR,
                limit_hours=config.weekly_limit_hours,
                window_end=window_end,
            )
