"""
Income entry modeling module for GigLedger.

Purpose
-------
Represents worked gig blocks and the basic aggregations over them:

- IncomeEntry: one worked block on one platform
- income_for_range / total_income: fail-soft sums over entries
- income_summary_by_platform: totals keyed by display platform name
- entries_to_frame: tabular view used by the simulator and trend heatmap

Entries are plain value objects. They are NOT validated on construction:
the engine must render a dashboard even when a stored record is dirty, so
amounts and dates are coerced at read time (see ``safe_amount`` and
``work_date``). Write-time validation lives in ``config.IncomeEntrySchema``.

Example
-------
>>> from gigledger.income import IncomeEntry, income_for_range
>>> entries = [
...     IncomeEntry(date="2025-01-01", amount=100),
...     IncomeEntry(date="2025-01-02", amount=150, platform="DoorDash"),
... ]
>>> income_for_range(entries, date(2025, 1, 1), date(2025, 1, 31))
250.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Optional, Union

import pandas as pd

from .constants import AMAZON_FLEX, OTHER_PLATFORM, PLATFORM_LABELS
from .utils import (
    block_minutes,
    coerce_number,
    date_in_range,
    parse_date,
    parse_datetime,
)

__all__ = [
    "IncomeEntry",
    "platform_label",
    "income_for_range",
    "total_income",
    "income_summary_by_platform",
    "entries_to_frame",
]


# ---------------------------------------------------------------------------
# Income Entry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IncomeEntry:
    """
    One worked block.

    Parameters
    ----------
    date : datetime.date or str
        Work date. ISO strings are accepted and parsed lazily.
    amount : float
        Amount earned in dollars.
    platform : str, default "AmazonFlex"
        One of ``constants.GIG_PLATFORMS``.
    id : str, default ""
        Record identifier assigned by the store.
    custom_platform_name : str, optional
        Display name when platform is "Other".
    block_start_time, block_end_time : str, optional
        ISO timestamps of the block.
    block_length : int, optional
        Block length in minutes.
    notes : str, default ""
    created_at, updated_at : int, optional
        Epoch milliseconds.

    Examples
    --------
    >>> e = IncomeEntry(date="2025-03-01", amount=82.5, block_length=240)
    >>> e.duration_minutes
    240
    """
    date: Union[date, str, None]
    amount: float
    platform: str = AMAZON_FLEX
    id: str = ""
    custom_platform_name: Optional[str] = None
    block_start_time: Optional[str] = None
    block_end_time: Optional[str] = None
    block_length: Optional[int] = None
    notes: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @property
    def work_date(self) -> Optional[date]:
        """Parsed work date, or None when the stored value is malformed."""
        return parse_date(self.date)

    @property
    def safe_amount(self) -> float:
        """Amount with NaN/inf/missing coerced to 0."""
        return coerce_number(self.amount)

    @property
    def duration_minutes(self) -> int:
        """
        Worked minutes.

        Uses ``block_length`` when present, otherwise the span between start
        and end (overnight spans wrap by 24h). Unknown durations count as 0.
        """
        if self.block_length is not None:
            return max(int(coerce_number(self.block_length)), 0)
        minutes = block_minutes(self.block_start_time, self.block_end_time)
        return minutes if minutes is not None else 0

    @property
    def label(self) -> str:
        return platform_label(self)


def platform_label(entry: Union[IncomeEntry, str]) -> str:
    """
    Human-readable platform name.

    "Other" entries use their custom platform name when one is set.
    Unknown platform strings are returned unchanged.
    """
    if isinstance(entry, str):
        return PLATFORM_LABELS.get(entry, entry)
    if entry.platform == OTHER_PLATFORM and entry.custom_platform_name:
        return entry.custom_platform_name
    return PLATFORM_LABELS.get(entry.platform, entry.platform)


# ---------------------------------------------------------------------------
# Aggregations
# ---------------------------------------------------------------------------

def income_for_range(entries: Iterable[IncomeEntry], start: date, end: date) -> float:
    """Total income of entries whose work date falls in [start, end]."""
    return float(sum(e.safe_amount for e in entries if date_in_range(e.work_date, start, end)))


def total_income(entries: Iterable[IncomeEntry]) -> float:
    return float(sum(e.safe_amount for e in entries))


def income_summary_by_platform(entries: Iterable[IncomeEntry]) -> Dict[str, float]:
    """
    Income totals keyed by platform.

    "Other" entries are grouped under their custom platform name, so two
    different side gigs stay separate. Keys keep first-seen order.
    """
    summary: Dict[str, float] = {}
    for entry in entries:
        if entry.platform == OTHER_PLATFORM and entry.custom_platform_name:
            key = entry.custom_platform_name
        else:
            key = entry.platform
        summary[key] = summary.get(key, 0.0) + entry.safe_amount
    return summary


def entries_to_frame(entries: Iterable[IncomeEntry]) -> pd.DataFrame:
    """
    Tabular view of income entries.

    Columns: date (datetime64, NaT when malformed), platform, amount
    (coerced), minutes (duration), start (datetime64, NaT when missing).
    """
    rows = []
    for entry in entries:
        start = parse_datetime(entry.block_start_time)
        rows.append(
            {
                "date": entry.work_date,
                "platform": entry.platform,
                "amount": entry.safe_amount,
                "minutes": entry.duration_minutes,
                "start": start.replace(tzinfo=None) if start is not None else None,
            }
        )
    frame = pd.DataFrame(rows, columns=["date", "platform", "amount", "minutes", "start"])
    frame["date"] = pd.to_datetime(frame["date"], errors="coerce")
    frame["start"] = pd.to_datetime(frame["start"], errors="coerce")
    frame["amount"] = frame["amount"].astype(float)
    frame["minutes"] = frame["minutes"].astype(int)
    return frame
