"""
Pytest configuration and fixtures for GigLedger test suite.

This module provides reusable fixtures for testing all GigLedger components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import json
from datetime import date
from typing import List

import matplotlib
import pytest

matplotlib.use("Agg")

from gigledger.expenses import FixedExpense, PaymentPlan, VariableExpense
from gigledger.goals import Goal
from gigledger.income import IncomeEntry
from gigledger.profit import DailyData


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def work_day() -> date:
    """A Wednesday in the middle of January 2025."""
    return date(2025, 1, 15)


# ---------------------------------------------------------------------------
# Income Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_entries() -> List[IncomeEntry]:
    """
    Three blocks on 2025-01-15 totalling $450 and 11.5 hours.

    Two Amazon Flex blocks (4h and 3.5h) and one DoorDash shift (4h).
    """
    return [
        IncomeEntry(
            id="e1", date="2025-01-15", platform="AmazonFlex", amount=150.0,
            block_length=240, block_start_time="2025-01-15T08:00:00",
        ),
        IncomeEntry(
            id="e2", date="2025-01-15", platform="AmazonFlex", amount=120.0,
            block_length=210, block_start_time="2025-01-15T13:00:00",
        ),
        IncomeEntry(
            id="e3", date="2025-01-15", platform="DoorDash", amount=180.0,
            block_length=240, block_start_time="2025-01-15T17:00:00",
        ),
    ]


@pytest.fixture
def month_entries() -> List[IncomeEntry]:
    """Income spread over January 2025 plus one entry in February."""
    return [
        IncomeEntry(id="m1", date="2025-01-03", amount=100.0, block_length=180),
        IncomeEntry(id="m2", date="2025-01-10", amount=150.0, block_length=240),
        IncomeEntry(id="m3", date="2025-01-28", amount=150.0, block_length=240),
        IncomeEntry(id="m4", date="2025-02-02", amount=500.0, block_length=240),
    ]


# ---------------------------------------------------------------------------
# Expense Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_expenses() -> List[FixedExpense]:
    return [
        FixedExpense(id="f1", name="Rent", amount=1000.0, due_date=1),
        FixedExpense(id="f2", name="Phone", amount=50.0, due_date=15),
        FixedExpense(id="f3", name="Gym", amount=30.0, due_date=20, is_active=False),
    ]


@pytest.fixture
def payment_plans() -> List[PaymentPlan]:
    return [
        PaymentPlan(id="p1", name="TV", initial_cost=400.0, total_payments=4,
                    current_payment=2, payment_amount=100.0),
        PaymentPlan(id="p2", name="Phone", initial_cost=300.0, total_payments=3,
                    current_payment=4, payment_amount=100.0, is_complete=True),
    ]


@pytest.fixture
def variable_expenses() -> List[VariableExpense]:
    return [
        VariableExpense(id="v1", name="Groceries", amount=80.0, month="2025-01", category="grocery"),
        VariableExpense(id="v2", name="Power", amount=60.0, month="2025-02", category="utility"),
    ]


@pytest.fixture
def daily_data() -> List[DailyData]:
    return [
        DailyData(id="d1", date="2025-01-10", distance=100.0, fuel_cost=20.0),
        DailyData(id="d2", date="2025-01-28", distance=50.0, fuel_cost=10.0),
        DailyData(id="d3", date="2025-02-02", distance=80.0, fuel_cost=15.0),
    ]


@pytest.fixture
def monthly_goals() -> List[Goal]:
    return [
        Goal(id="g1", name="Rent", target_amount=300.0, start_date="2025-01-01",
             end_date="2025-01-31", priority=1),
        Goal(id="g2", name="Savings", target_amount=200.0, start_date="2025-01-01",
             end_date="2025-01-31", priority=2),
    ]


# ---------------------------------------------------------------------------
# Backup Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def backup_document() -> dict:
    """A complete version 1.0 backup document."""
    return {
        "version": "1.0",
        "exportDate": "2025-01-31T12:00:00+00:00",
        "data": {
            "incomeEntries": [
                {
                    "id": "e1", "date": "2025-01-15", "platform": "AmazonFlex",
                    "blockStartTime": "2025-01-15T08:00:00", "blockEndTime": "2025-01-15T12:00:00",
                    "blockLength": 240, "amount": 150, "notes": "",
                    "createdAt": 1736928000000, "updatedAt": 1736928000000,
                },
                {
                    "id": "e2", "date": "2025-01-15", "platform": "Other",
                    "customPlatformName": "Tutoring",
                    "blockStartTime": None, "blockEndTime": None,
                    "blockLength": 60, "amount": 40, "notes": "algebra",
                    "createdAt": 1736928000000, "updatedAt": 1736928000000,
                },
            ],
            "dailyData": [
                {"id": "d1", "date": "2025-01-15", "mileage": 60, "gasExpense": 12.5,
                 "createdAt": 1736928000000, "updatedAt": 1736928000000},
            ],
            "fixedExpenses": [
                {"id": "f1", "name": "Rent", "amount": 1000, "dueDate": 1, "isActive": True,
                 "createdAt": 1736928000000, "updatedAt": 1736928000000},
            ],
            "variableExpenses": [
                {"id": "v1", "name": "Groceries", "amount": 80, "category": "grocery",
                 "month": "2025-01", "isPaid": False, "paidDate": None,
                 "createdAt": 1736928000000, "updatedAt": 1736928000000},
            ],
            "paymentPlans": [
                {"id": "p1", "name": "TV", "provider": "Affirm", "initialCost": 400,
                 "totalPayments": 4, "currentPayment": 2, "paymentAmount": 100,
                 "startDate": "2025-01-01", "frequency": "monthly", "isComplete": False,
                 "createdAt": 1736928000000, "updatedAt": 1736928000000},
            ],
            "paymentPlanPayments": [
                {"id": "pp1", "paymentPlanId": "p1", "paymentNumber": 1,
                 "dueDate": "2025-01-01", "isPaid": True, "paidDate": "2025-01-01",
                 "month": "2025-01",
                 "createdAt": 1736928000000, "updatedAt": 1736928000000},
            ],
            "goals": [
                {"id": "g1", "name": "Rent", "period": "monthly", "targetAmount": 150,
                 "startDate": "2025-01-01", "endDate": "2025-01-31", "isActive": True,
                 "priority": 1, "createdAt": 1736928000000, "updatedAt": 1736928000000},
            ],
            "settings": {
                "id": "settings", "theme": "dark", "lastExportDate": None,
                "lastImportDate": None, "amazonFlexDailyCapacity": 480,
                "amazonFlexWeeklyCapacity": 2400, "updatedAt": 1736928000000,
            },
        },
    }


@pytest.fixture
def backup_file(tmp_path, backup_document):
    """The backup document written to a temporary file."""
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(backup_document), encoding="utf-8")
    return path
