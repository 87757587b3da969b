"""
Profit engine for GigLedger.

Purpose
-------
Turns income entries, per-day driving records and expenses into profit
figures:

- daily_profit: income minus fuel for one calendar date
- monthly_net_profit: income minus bills, plan dues and fuel for one month
- monthly_summary: the month card shown on the dashboard (adds variable
  expenses and miles driven)

All results are raw floats. Invalid amounts count as 0 in sums and ratios
that would divide by zero come back as None, so a dashboard can always be
rendered from dirty data.

Bills policy
------------
``monthly_net_profit`` sums EVERY fixed expense, active or not: the monthly
overview shows the full obligation. Payment plan dues, on the other hand,
only count incomplete plans. ``expenses.monthly_obligations`` is the view
that respects the active flag.

Example
-------
>>> from datetime import date
>>> from gigledger.income import IncomeEntry
>>> entries = [IncomeEntry(date="2025-01-01", amount=120)]
>>> dd = DailyData(date="2025-01-01", distance=60, fuel_cost=18)
>>> daily_profit(date(2025, 1, 1), entries, dd).profit
102.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Union

from .expenses import FixedExpense, PaymentPlan, VariableExpense, effective_payment_amount
from .income import IncomeEntry
from .utils import (
    coerce_nullable_number,
    coerce_number,
    date_in_range,
    month_key,
    month_range,
    parse_date,
)

__all__ = [
    "DailyData",
    "DailyProfit",
    "MonthlyNetProfit",
    "MonthlySummary",
    "daily_profit",
    "monthly_net_profit",
    "cost_per_distance",
    "monthly_summary",
]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DailyData:
    """
    Per-date driving record.

    At most one per calendar date; the date is the natural key.

    Parameters
    ----------
    date : datetime.date or str
    distance : float, optional
        Miles driven.
    fuel_cost : float, optional
        Dollars spent on fuel.
    """
    date: Union[date, str, None]
    distance: Optional[float] = None
    fuel_cost: Optional[float] = None
    id: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @property
    def work_date(self) -> Optional[date]:
        return parse_date(self.date)


@dataclass(frozen=True)
class DailyProfit:
    date: Optional[date]
    total_income: float
    gas_expense: float
    profit: float
    earnings_per_distance: Optional[float]


@dataclass(frozen=True)
class MonthlyNetProfit:
    net: float
    total_bills: float
    payment_plans_minimum_due: float
    total_gas_expenses: float


@dataclass(frozen=True)
class MonthlySummary:
    """Month card: income, bills, variable expenses, net and miles."""
    month: str
    total_income: float
    total_bills: float
    total_variable_expenses: float
    total_gas_expenses: float
    net: float
    total_distance: float


# ---------------------------------------------------------------------------
# Daily
# ---------------------------------------------------------------------------

def daily_profit(
    day: Union[date, str, None],
    income_entries: Iterable[IncomeEntry],
    daily_data: Optional[DailyData] = None,
    pre_filtered: Optional[Sequence[IncomeEntry]] = None,
) -> DailyProfit:
    """
    Profit for one calendar date.

    Parameters
    ----------
    day : date or str
        Target date. A datetime is reduced to its calendar date. If *day*
        cannot be parsed the result is all zeros, whichever path is used.
    income_entries : iterable of IncomeEntry
        All known entries; only those dated *day* are used.
    daily_data : DailyData, optional
        Driving record for *day*. Missing means no fuel cost and no distance.
    pre_filtered : sequence of IncomeEntry, optional
        Entries already restricted to *day* by the caller. When given,
        *income_entries* is not scanned and the slice is used as-is.

    Returns
    -------
    DailyProfit
        ``earnings_per_distance`` is None unless distance > 0.

    Examples
    --------
    >>> daily_profit(date(2025, 1, 2), []).total_income
    0.0
    """
    target = parse_date(day)
    if target is None:
        return DailyProfit(None, 0.0, 0.0, 0.0, None)
    if pre_filtered is not None:
        matched: Iterable[IncomeEntry] = pre_filtered
    else:
        matched = [e for e in income_entries if e.work_date == target]

    total = float(sum(e.safe_amount for e in matched))
    gas = coerce_number(daily_data.fuel_cost) if daily_data is not None else 0.0
    distance = coerce_number(daily_data.distance) if daily_data is not None else 0.0

    return DailyProfit(
        date=target,
        total_income=total,
        gas_expense=gas,
        profit=total - gas,
        earnings_per_distance=total / distance if distance > 0 else None,
    )


def cost_per_distance(gas_expense: float, distance: Optional[float]) -> Optional[float]:
    """Fuel dollars per mile, or None when no distance was driven."""
    miles = coerce_nullable_number(distance)
    if miles is None or miles <= 0:
        return None
    return coerce_number(gas_expense) / miles


# ---------------------------------------------------------------------------
# Monthly
# ---------------------------------------------------------------------------

def monthly_net_profit(
    total_income: float,
    fixed_expenses: Iterable[FixedExpense],
    payment_plans: Iterable[PaymentPlan],
    daily_data_for_month: Iterable[DailyData],
) -> MonthlyNetProfit:
    """
    Net profit for a month.

    ``net = income - bills - plan dues - fuel`` where bills include inactive
    fixed expenses and plan dues exclude completed plans.

    Parameters
    ----------
    total_income : float
        Income already summed for the month.
    fixed_expenses : iterable of FixedExpense
    payment_plans : iterable of PaymentPlan
    daily_data_for_month : iterable of DailyData
        Driving records of the month; only fuel cost is used.

    Returns
    -------
    MonthlyNetProfit
    """
    bills = float(sum(coerce_number(e.amount) for e in fixed_expenses))
    plans_due = float(
        sum(effective_payment_amount(p) for p in payment_plans if not p.is_complete)
    )
    gas = float(sum(coerce_number(d.fuel_cost) for d in daily_data_for_month))
    income = coerce_number(total_income)

    return MonthlyNetProfit(
        net=income - bills - plans_due - gas,
        total_bills=bills,
        payment_plans_minimum_due=plans_due,
        total_gas_expenses=gas,
    )


def monthly_summary(
    month: date,
    income_entries: Iterable[IncomeEntry],
    fixed_expenses: Iterable[FixedExpense],
    variable_expenses: Iterable[VariableExpense],
    daily_data: Iterable[DailyData],
) -> MonthlySummary:
    """
    Summary card for the month containing *month*.

    Income, fuel and miles are restricted to the month's dates; variable
    expenses to the matching 'YYYY-MM' key. Bills follow the same
    all-fixed-expenses policy as ``monthly_net_profit``. Payment plans are
    not part of this card.
    """
    start, end = month_range(month)
    key = month_key(start)

    income = float(
        sum(e.safe_amount for e in income_entries if date_in_range(e.work_date, start, end))
    )
    month_days: List[DailyData] = [
        d for d in daily_data if date_in_range(d.work_date, start, end)
    ]
    gas = float(sum(coerce_number(d.fuel_cost) for d in month_days))
    distance = float(sum(coerce_number(d.distance) for d in month_days))
    bills = float(sum(coerce_number(e.amount) for e in fixed_expenses))
    variable = float(sum(coerce_number(v.amount) for v in variable_expenses if v.month == key))

    return MonthlySummary(
        month=key,
        total_income=income,
        total_bills=bills,
        total_variable_expenses=variable,
        total_gas_expenses=gas,
        net=income - bills - variable - gas,
        total_distance=distance,
    )
