"""
Expense modeling module for GigLedger.

Purpose
-------
Models the obligations that reduce a gig worker's income:

- FixedExpense: recurring monthly bill (rent, phone, insurance)
- VariableExpense: one-off expense booked against a month
- PaymentPlan: installment purchase (Affirm, Klarna, ...)
- PaymentPlanPayment: one installment of a plan (import/export, paid status)

and the payment-plan amortizer. ``plan_remaining`` is the ONLY place that
derives payments made / remaining payments / remaining balance from a plan;
summary totals, list displays and form previews all route through it.

Installment cursor
------------------
``PaymentPlan.current_payment`` is 1-indexed and points at the NEXT unpaid
installment, so::

    payments_made = current_payment - 1      (clamped to [0, total_payments])

Example
-------
>>> plan = PaymentPlan(name="Phone", initial_cost=400, total_payments=4,
...                    current_payment=2, payment_amount=100)
>>> plan_remaining(plan)
PlanRemaining(payments_made=1, remaining_payments=3, remaining_amount=300.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Union

from .utils import coerce_integer, coerce_nullable_number, coerce_number, parse_date

__all__ = [
    "FixedExpense",
    "VariableExpense",
    "PaymentPlan",
    "PaymentPlanPayment",
    "PlanRemaining",
    "MonthlyObligations",
    "effective_payment_amount",
    "plan_remaining",
    "installment_amount",
    "months_until_deadline",
    "recommended_monthly_payment",
    "monthly_obligations",
]


# ---------------------------------------------------------------------------
# Expense records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FixedExpense:
    """
    Recurring monthly bill.

    Parameters
    ----------
    name : str
    amount : float
        Monthly amount in dollars.
    due_date : int, default 1
        Day of month the bill is due (1-31).
    is_active : bool, default True
    id : str, default ""
    """
    name: str
    amount: float
    due_date: int = 1
    is_active: bool = True
    id: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class VariableExpense:
    """One-off expense booked against a 'YYYY-MM' month."""
    name: str
    amount: float
    month: str
    category: str = "other"
    is_paid: bool = False
    paid_date: Optional[str] = None
    id: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class PaymentPlan:
    """
    Installment purchase.

    Parameters
    ----------
    name : str
    initial_cost : float
        Purchase price in dollars.
    total_payments : int
        Number of installments.
    current_payment : int
        1-indexed NEXT unpaid installment (1 = nothing paid yet,
        total_payments + 1 = fully paid).
    payment_amount : float
        Amount per installment.
    provider : str, default "Affirm"
    minimum_monthly_payment : float, optional
        Overrides payment_amount for monthly obligation math.
    start_date : date or str, optional
    frequency : {"weekly", "biweekly", "monthly"}, default "monthly"
    end_date : date or str, optional
        Payoff deadline, used by the "Other" provider.
    minimum_payment : float, optional
        Lender minimum, used by the "Other" provider.
    is_complete : bool, default False
    """
    name: str
    initial_cost: float
    total_payments: int
    current_payment: int
    payment_amount: float
    provider: str = "Affirm"
    minimum_monthly_payment: Optional[float] = None
    start_date: Union[date, str, None] = None
    frequency: str = "monthly"
    end_date: Union[date, str, None] = None
    minimum_payment: Optional[float] = None
    is_complete: bool = False
    id: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class PaymentPlanPayment:
    """One installment of a payment plan."""
    payment_plan_id: str
    payment_number: int
    due_date: Union[date, str, None]
    month: str
    is_paid: bool = False
    paid_date: Optional[str] = None
    id: str = ""
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


# ---------------------------------------------------------------------------
# Amortizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanRemaining:
    """Derived progress of a payment plan."""
    payments_made: int
    remaining_payments: int
    remaining_amount: float


def effective_payment_amount(plan: PaymentPlan) -> float:
    """Minimum monthly override when set, else the installment amount."""
    override = coerce_nullable_number(plan.minimum_monthly_payment)
    if override is not None:
        return override
    return coerce_number(plan.payment_amount)


def plan_remaining(plan: PaymentPlan) -> PlanRemaining:
    """
    Payments made, payments remaining and balance remaining for a plan.

    Parameters
    ----------
    plan : PaymentPlan

    Returns
    -------
    PlanRemaining
        Always satisfies ``remaining_payments + payments_made ==
        total_payments`` (for total_payments >= 0) and
        ``remaining_amount >= 0``.

    Notes
    -----
    - A missing or invalid cursor counts as 1 (nothing paid).
    - A cursor past the end is clamped to total_payments payments made.
    - A plan with total_payments == 0 reports nothing made, nothing left
      and its full initial cost outstanding.

    Examples
    --------
    >>> plan_remaining(PaymentPlan("TV", 400, 4, 2, 100))
    PlanRemaining(payments_made=1, remaining_payments=3, remaining_amount=300.0)
    """
    total = max(coerce_integer(plan.total_payments), 0)
    cursor = coerce_integer(plan.current_payment, fallback=1)
    payments_made = min(max(cursor - 1, 0), total)
    remaining_payments = total - payments_made
    remaining_amount = max(
        coerce_number(plan.initial_cost) - payments_made * effective_payment_amount(plan),
        0.0,
    )
    return PlanRemaining(
        payments_made=payments_made,
        remaining_payments=remaining_payments,
        remaining_amount=float(remaining_amount),
    )


def installment_amount(initial_cost: float, total_payments: int) -> float:
    """Even split of the purchase price; 0 when there are no installments."""
    total = coerce_integer(total_payments)
    if total <= 0:
        return 0.0
    return coerce_number(initial_cost) / total


def months_until_deadline(end_date: Union[date, str], now: date) -> int:
    """
    Months from *now* to *end_date*, counting the end month itself.

    Day of month is ignored: any date in the current month is 1 month away.
    Returns 0 for an unparseable end date.

    Examples
    --------
    >>> months_until_deadline(date(2025, 12, 15), date(2025, 1, 20))
    12
    """
    end = parse_date(end_date)
    if end is None:
        return 0
    return (end.year - now.year) * 12 + (end.month - now.month) + 1


def recommended_monthly_payment(
    remaining_balance: float,
    end_date: Union[date, str],
    now: date,
) -> float:
    """Monthly payment that clears *remaining_balance* by *end_date*.

    Used for "Other" provider plans at creation time. A deadline in the past
    (no months left) yields 0.
    """
    months = months_until_deadline(end_date, now)
    if months <= 0:
        return 0.0
    return coerce_number(remaining_balance) / months


# ---------------------------------------------------------------------------
# Monthly obligations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonthlyObligations:
    """
    Expense list totals for one month.

    Attributes
    ----------
    fixed_total : float
        Active fixed expenses only.
    payment_plans_minimum_due : float
        Effective payment of each incomplete plan not yet paid this month.
    payment_plans_total : float
        Remaining balance across incomplete plans.
    grand_total : float
        fixed_total + payment_plans_minimum_due.
    """
    fixed_total: float
    payment_plans_minimum_due: float
    payment_plans_total: float
    grand_total: float


def monthly_obligations(
    fixed_expenses: Iterable[FixedExpense],
    payment_plans: Sequence[PaymentPlan],
    payments: Iterable[PaymentPlanPayment],
    month: str,
) -> MonthlyObligations:
    """
    What is still due this month.

    Unlike ``profit.monthly_net_profit`` (which shows the full obligation of
    every fixed expense), this view counts active fixed expenses only and
    skips plans with an installment already marked paid in *month*.

    Parameters
    ----------
    fixed_expenses : iterable of FixedExpense
    payment_plans : sequence of PaymentPlan
    payments : iterable of PaymentPlanPayment
    month : str
        'YYYY-MM'.
    """
    paid_this_month = {p.payment_plan_id for p in payments if p.is_paid and p.month == month}
    fixed_total = float(sum(coerce_number(e.amount) for e in fixed_expenses if e.is_active))

    open_plans: List[PaymentPlan] = [p for p in payment_plans if not p.is_complete]
    minimum_due = float(
        sum(effective_payment_amount(p) for p in open_plans if p.id not in paid_this_month)
    )
    balance = float(sum(plan_remaining(p).remaining_amount for p in open_plans))

    return MonthlyObligations(
        fixed_total=fixed_total,
        payment_plans_minimum_due=minimum_due,
        payment_plans_total=balance,
        grand_total=fixed_total + minimum_due,
    )
