"""
Goal tracking module for GigLedger.

Purpose
-------
Measures income against savings/earnings goals in two modes:

1. Per-goal progress: each goal counts all income inside its own window.
2. Prioritized waterfall: active goals of one period share a single income
   pool and are funded in ascending priority order (1 = highest). A goal
   only receives what the goals above it did not consume.

Pool policy
-----------
The waterfall pool is the income inside the TOP-priority goal's window,
even when lower-priority goals cover other dates. Every goal in the
waterfall draws from that one pool.

Example
-------
>>> from datetime import date
>>> from gigledger.income import IncomeEntry
>>> goals = [
...     Goal("Rent", 300, date(2025, 1, 1), date(2025, 1, 31), priority=1),
...     Goal("Savings", 200, date(2025, 1, 1), date(2025, 1, 31), priority=2),
... ]
>>> entries = [IncomeEntry(date="2025-01-10", amount=400)]
>>> [p.current_amount for p in prioritized_goal_progress(goals, entries)]
[300.0, 100.0]
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .constants import GOAL_PERIODS
from .exceptions import ConfigurationError
from .income import IncomeEntry, income_for_range
from .utils import coerce_number, date_in_range, month_range, parse_date, week_range

__all__ = [
    "Goal",
    "GoalProgress",
    "goal_progress",
    "prioritized_goal_progress",
    "income_for_range",
    "weekly_income",
    "monthly_income",
    "current_week_range",
    "current_month_range",
    "active_goal_for_date",
]


# ---------------------------------------------------------------------------
# Goal records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Goal:
    """
    Savings/earnings target over a date window.

    Parameters
    ----------
    name : str
    target_amount : float
        Dollars to reach. Validated > 0 on write; a stored 0 reports 0%.
    start_date, end_date : date or str
        Inclusive window.
    period : {"weekly", "monthly"}, default "monthly"
    is_active : bool, default True
    priority : int, default 1
        1 is funded first in the waterfall.
    """
    name: str
    target_amount: float
    start_date: Union[date, str, None]
    end_date: Union[date, str, None]
    period: str = "monthly"
    is_active: bool = True
    priority: int = 1
    id: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @property
    def window(self) -> Tuple[Optional[date], Optional[date]]:
        return parse_date(self.start_date), parse_date(self.end_date)

    def contains(self, day: date) -> bool:
        start, end = self.window
        if start is None or end is None:
            return False
        return date_in_range(day, start, end)


@dataclass(frozen=True)
class GoalProgress:
    """
    Progress of one goal.

    Attributes
    ----------
    goal : Goal
    current_amount : float
        Income counted (or allocated, in the waterfall) toward the goal.
    percent_complete : float
        In [0, 100].
    remaining_amount : float
        max(target - current, 0).
    is_complete : bool
        True exactly when percent_complete reaches 100.
    """
    goal: Goal
    current_amount: float
    percent_complete: float
    remaining_amount: float
    is_complete: bool


def _progress(goal: Goal, amount: float) -> GoalProgress:
    target = coerce_number(goal.target_amount)
    if target > 0:
        percent = min(100.0, max(amount / target * 100.0, 0.0))
    else:
        percent = 0.0
    return GoalProgress(
        goal=goal,
        current_amount=amount,
        percent_complete=percent,
        remaining_amount=max(target - amount, 0.0),
        is_complete=percent >= 100.0,
    )


def _window_income(goal: Goal, entries: Iterable[IncomeEntry]) -> float:
    start, end = goal.window
    if start is None or end is None:
        return 0.0
    return income_for_range(entries, start, end)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

def goal_progress(goal: Goal, entries: Iterable[IncomeEntry]) -> GoalProgress:
    """
    Progress of a single goal against all income in its window.

    Parameters
    ----------
    goal : Goal
    entries : iterable of IncomeEntry

    Returns
    -------
    GoalProgress
        Percent is capped at 100: a 100 target with 200 earned is 100%
        complete with nothing remaining. A target of 0 reports 0%.
    """
    return _progress(goal, _window_income(goal, entries))


def prioritized_goal_progress(
    goals: Iterable[Goal],
    entries: Sequence[IncomeEntry],
    period: str = "monthly",
) -> List[GoalProgress]:
    """
    Waterfall allocation of one income pool across prioritized goals.

    Parameters
    ----------
    goals : iterable of Goal
        Inactive goals and goals of another period are ignored.
    entries : sequence of IncomeEntry
    period : {"weekly", "monthly"}, default "monthly"

    Returns
    -------
    list of GoalProgress
        In ascending priority order (stable for equal priorities). Each goal
        receives ``min(pool_left, target)``; the allocations never sum to
        more than the pool.

    Raises
    ------
    ConfigurationError
        If *period* is not a known goal period.
    """
    if period not in GOAL_PERIODS:
        raise ConfigurationError(f"Unknown goal period: {period!r}")

    ranked = sorted(
        (g for g in goals if g.is_active and g.period == period),
        key=lambda g: g.priority,
    )
    if not ranked:
        return []

    pool = _window_income(ranked[0], entries)
    results: List[GoalProgress] = []
    for goal in ranked:
        allocated = max(min(pool, coerce_number(goal.target_amount)), 0.0)
        pool -= allocated
        results.append(_progress(goal, allocated))
    return results


def active_goal_for_date(progress: Iterable[GoalProgress], day: date) -> Optional[GoalProgress]:
    """First goal (in the given order) whose window contains *day*."""
    for item in progress:
        if item.goal.contains(day):
            return item
    return None


# ---------------------------------------------------------------------------
# Period helpers
# ---------------------------------------------------------------------------

def current_week_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Sunday-to-Saturday week containing *today*."""
    return week_range(today or date.today())


def current_month_range(today: Optional[date] = None) -> Tuple[date, date]:
    return month_range(today or date.today())


def weekly_income(entries: Iterable[IncomeEntry], day: Optional[date] = None) -> float:
    """Income in the Sunday-start calendar week containing *day*."""
    start, end = current_week_range(day)
    return income_for_range(entries, start, end)


def monthly_income(entries: Iterable[IncomeEntry], day: Optional[date] = None) -> float:
    """Income in the calendar month containing *day*."""
    start, end = current_month_range(day)
    return income_for_range(entries, start, end)
