"""
Type definitions for GigLedger.

Purpose
-------
TypedDict shapes of the two dictionary representations an entity takes at
the persistence boundary:

- Records: camelCase dictionaries, as found in backup documents. Timestamps
  are epoch milliseconds, dates are ISO strings.
- Rows: snake_case dictionaries, as returned by the relational store.
  Decimal columns may arrive as strings and timestamps as ISO strings.

``serialization`` converts between rows, records and domain objects.

Usage
-----
>>> from gigledger.types import IncomeEntryRecord
>>> record: IncomeEntryRecord = {
...     "id": "a1", "date": "2025-01-01", "platform": "AmazonFlex",
...     "blockStartTime": None, "blockEndTime": None, "blockLength": 240,
...     "amount": 82.0, "notes": "", "createdAt": 0, "updatedAt": 0,
... }
"""

from typing import Dict, List, Optional, Union
from typing_extensions import NotRequired, TypedDict

__all__ = [
    # Records
    "IncomeEntryRecord",
    "DailyDataRecord",
    "FixedExpenseRecord",
    "VariableExpenseRecord",
    "PaymentPlanRecord",
    "PaymentPlanPaymentRecord",
    "GoalRecord",
    "SettingsRecord",
    "BackupPayload",
    "BackupDocument",
    # Rows
    "IncomeEntryRow",
    "DailyDataRow",
    "FixedExpenseRow",
    "VariableExpenseRow",
    "PaymentPlanRow",
    "PaymentPlanPaymentRow",
    "GoalRow",
    "SettingsRow",
    "Row",
]

Numeric = Union[str, int, float]
"""Decimal column value; PostgREST returns numerics as strings."""


# ---------------------------------------------------------------------------
# Records (camelCase)
# ---------------------------------------------------------------------------

class IncomeEntryRecord(TypedDict):
    """
    Income entry as exported.

    ``customPlatformName`` is only present for platform "Other".
    """

    id: str
    date: str
    platform: str
    customPlatformName: NotRequired[str]
    blockStartTime: Optional[str]
    blockEndTime: Optional[str]
    blockLength: Optional[int]
    amount: float
    notes: str
    createdAt: int
    updatedAt: int


class DailyDataRecord(TypedDict):
    id: str
    date: str
    mileage: Optional[float]
    gasExpense: Optional[float]
    createdAt: int
    updatedAt: int


class FixedExpenseRecord(TypedDict):
    id: str
    name: str
    amount: float
    dueDate: int
    isActive: bool
    createdAt: int
    updatedAt: int


class VariableExpenseRecord(TypedDict):
    id: str
    name: str
    amount: float
    category: str
    month: str
    isPaid: bool
    paidDate: Optional[str]
    createdAt: int
    updatedAt: int


class PaymentPlanRecord(TypedDict):
    """Payment plan as exported; the optional keys are omitted when unset."""

    id: str
    name: str
    provider: str
    initialCost: float
    totalPayments: int
    currentPayment: int
    paymentAmount: float
    minimumMonthlyPayment: NotRequired[float]
    startDate: str
    frequency: str
    endDate: NotRequired[str]
    minimumPayment: NotRequired[float]
    isComplete: bool
    createdAt: int
    updatedAt: int


class PaymentPlanPaymentRecord(TypedDict):
    id: str
    paymentPlanId: str
    paymentNumber: int
    dueDate: str
    isPaid: bool
    paidDate: Optional[str]
    month: str
    createdAt: int
    updatedAt: int


class GoalRecord(TypedDict):
    id: str
    name: str
    period: str
    targetAmount: float
    startDate: str
    endDate: str
    isActive: bool
    priority: int
    createdAt: int
    updatedAt: int


class SettingsRecord(TypedDict):
    """
    Settings object of a backup.

    Attributes
    ----------
    amazonFlexDailyCapacity, amazonFlexWeeklyCapacity : int
        Hour caps in MINUTES (defaults 480 and 2400).
    """

    id: str
    theme: str
    lastExportDate: Optional[int]
    lastImportDate: Optional[int]
    amazonFlexDailyCapacity: NotRequired[int]
    amazonFlexWeeklyCapacity: NotRequired[int]
    updatedAt: int


class BackupPayload(TypedDict):
    """``data`` member of a backup document: one array per entity."""

    incomeEntries: List[IncomeEntryRecord]
    dailyData: List[DailyDataRecord]
    fixedExpenses: List[FixedExpenseRecord]
    variableExpenses: NotRequired[List[VariableExpenseRecord]]
    paymentPlans: List[PaymentPlanRecord]
    paymentPlanPayments: List[PaymentPlanPaymentRecord]
    goals: NotRequired[List[GoalRecord]]
    settings: SettingsRecord


class BackupDocument(TypedDict):
    version: str
    exportDate: str
    data: BackupPayload


# ---------------------------------------------------------------------------
# Rows (snake_case)
# ---------------------------------------------------------------------------

class IncomeEntryRow(TypedDict):
    id: str
    date: str
    platform: str
    custom_platform_name: Optional[str]
    block_start_time: Optional[str]
    block_end_time: Optional[str]
    block_length: Optional[int]
    amount: Numeric
    notes: str
    created_at: str
    updated_at: str


class DailyDataRow(TypedDict):
    id: str
    date: str
    mileage: Optional[Numeric]
    gas_expense: Optional[Numeric]
    created_at: str
    updated_at: str


class FixedExpenseRow(TypedDict):
    id: str
    name: str
    amount: Numeric
    due_date: int
    is_active: bool
    created_at: str
    updated_at: str


class VariableExpenseRow(TypedDict):
    id: str
    name: str
    amount: Numeric
    category: str
    month: str
    is_paid: bool
    paid_date: Optional[str]
    created_at: str
    updated_at: str


class PaymentPlanRow(TypedDict):
    id: str
    name: str
    provider: str
    initial_cost: Numeric
    total_payments: int
    current_payment: int
    payment_amount: Numeric
    minimum_monthly_payment: Optional[Numeric]
    start_date: str
    frequency: str
    end_date: Optional[str]
    minimum_payment: Optional[Numeric]
    is_complete: bool
    created_at: str
    updated_at: str


class PaymentPlanPaymentRow(TypedDict):
    id: str
    payment_plan_id: str
    payment_number: int
    due_date: str
    is_paid: bool
    paid_date: Optional[str]
    month: str
    created_at: str
    updated_at: str


class GoalRow(TypedDict):
    id: str
    name: str
    period: str
    target_amount: Numeric
    start_date: str
    end_date: str
    is_active: bool
    priority: int
    created_at: str
    updated_at: str


class SettingsRow(TypedDict):
    id: str
    theme: str
    last_export_date: Optional[str]
    last_import_date: Optional[str]
    amazon_flex_daily_capacity: int
    amazon_flex_weekly_capacity: int
    updated_at: str


Row = Dict[str, object]
"""Untyped row, as stored by a Repository."""
