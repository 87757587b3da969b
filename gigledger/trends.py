"""
Earnings trends for GigLedger.

Builds a day-of-week x time-of-day heatmap of hourly earnings, answering
"when do my blocks pay best?".

Time slots (block start hour, wall clock of the recorded timestamp):

- Early Morning: 04:00-08:00
- Morning: 08:00-12:00
- Afternoon: 12:00-16:00
- Evening: 16:00-20:00
- Night: 20:00-04:00

Example
-------
>>> from gigledger.income import IncomeEntry
>>> e = IncomeEntry(date="2025-01-05", amount=90, block_length=180,
...                 block_start_time="2025-01-05T09:00:00")
>>> calculate_trends([e]).loc["Sun", "Morning"]
30.0
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .constants import DAY_NAMES, MINUTES_PER_HOUR
from .income import IncomeEntry
from .utils import parse_datetime

__all__ = [
    "TIME_SLOTS",
    "time_of_day",
    "calculate_trends",
    "max_hourly_rate",
]

TIME_SLOTS: List[str] = ["Early Morning", "Morning", "Afternoon", "Evening", "Night"]


def time_of_day(hour: int) -> str:
    """Slot name for a start hour (0-23)."""
    if 4 <= hour < 8:
        return "Early Morning"
    if 8 <= hour < 12:
        return "Morning"
    if 12 <= hour < 16:
        return "Afternoon"
    if 16 <= hour < 20:
        return "Evening"
    return "Night"


def calculate_trends(entries: Iterable[IncomeEntry], platform: str = "all") -> pd.DataFrame:
    """
    Hourly earnings per weekday and time slot.

    Parameters
    ----------
    entries : iterable of IncomeEntry
        Entries without a start time or block length are skipped.
    platform : str, default "all"
        Restrict to one platform.

    Returns
    -------
    pd.DataFrame
        Index ``Sun``..``Sat``, columns ``TIME_SLOTS``. Each cell is total
        earnings / total hours of the blocks starting in that slot, or 0.0.
    """
    rows = []
    for entry in entries:
        if platform != "all" and entry.platform != platform:
            continue
        start = parse_datetime(entry.block_start_time)
        if start is None or not entry.block_length:
            continue
        rows.append(
            {
                "day": DAY_NAMES[(start.weekday() + 1) % 7],
                "slot": time_of_day(start.hour),
                "amount": entry.safe_amount,
                "minutes": entry.duration_minutes,
            }
        )

    frame = pd.DataFrame(rows, columns=["day", "slot", "amount", "minutes"]).astype(
        {"amount": float, "minutes": int}
    )
    totals = frame.groupby(["day", "slot"])[["amount", "minutes"]].sum()
    totals = totals[totals["minutes"] > 0]
    rates = (totals["amount"] / (totals["minutes"] / MINUTES_PER_HOUR)).astype(float)

    heatmap = rates.unstack("slot") if not rates.empty else pd.DataFrame()
    heatmap = heatmap.reindex(index=list(DAY_NAMES), columns=TIME_SLOTS).fillna(0.0).astype(float)
    heatmap.index.name = "day"
    heatmap.columns.name = "slot"
    return heatmap


def max_hourly_rate(heatmap: pd.DataFrame) -> float:
    """Highest cell of a trends heatmap (0.0 when empty)."""
    if heatmap.empty:
        return 0.0
    return float(heatmap.to_numpy().max())
