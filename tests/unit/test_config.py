"""
Unit tests for config.py module.

Tests entity schemas, simulator and hours configuration, and
environment-based settings.
"""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from gigledger.config import (
    AppSettings,
    DailyDataSchema,
    FixedExpenseSchema,
    GoalSchema,
    HoursLimitConfig,
    IncomeEntrySchema,
    LedgerSettings,
    PaymentPlanPaymentSchema,
    PaymentPlanSchema,
    SimulatorConfig,
    VariableExpenseSchema,
    load_simulator_config,
    save_simulator_config,
)
from gigledger.exceptions import ConfigurationError


class TestIncomeEntrySchema:
    """Test income entry validation."""

    def test_minimal(self):
        schema = IncomeEntrySchema(date="2025-01-01", amount=95)
        assert schema.date == date(2025, 1, 1)
        assert schema.platform == "AmazonFlex"
        assert schema.notes == ""

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            IncomeEntrySchema(date="2025-01-01", amount=0)

    def test_unknown_platform(self):
        with pytest.raises(ValidationError):
            IncomeEntrySchema(date="2025-01-01", amount=10, platform="Uber")

    def test_other_requires_custom_name(self):
        with pytest.raises(ValidationError, match="Custom platform name is required"):
            IncomeEntrySchema(date="2025-01-01", amount=10, platform="Other")
        with pytest.raises(ValidationError):
            IncomeEntrySchema(date="2025-01-01", amount=10, platform="Other", custom_platform_name="  ")
        ok = IncomeEntrySchema(date="2025-01-01", amount=10, platform="Other", custom_platform_name="Tutoring")
        assert ok.custom_platform_name == "Tutoring"

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="end time must be after start"):
            IncomeEntrySchema(
                date="2025-01-01", amount=10,
                block_start_time="2025-01-01T14:00:00", block_end_time="2025-01-01T10:00:00",
            )

    def test_block_length_limit(self):
        with pytest.raises(ValidationError):
            IncomeEntrySchema(date="2025-01-01", amount=10, block_length=961)
        assert IncomeEntrySchema(date="2025-01-01", amount=10, block_length=960).block_length == 960

    def test_span_limit(self):
        with pytest.raises(ValidationError, match="exceeds 16 hours"):
            IncomeEntrySchema(
                date="2025-01-01", amount=10,
                block_start_time="2025-01-01T00:00:00", block_end_time="2025-01-01T17:00:00",
            )

    def test_mixed_timezones_rejected(self):
        with pytest.raises(ValidationError, match="UTC offset"):
            IncomeEntrySchema(
                date="2025-01-01", amount=10,
                block_start_time="2025-01-01T10:00:00Z", block_end_time="2025-01-01T14:00:00",
            )

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            IncomeEntrySchema(date="2025-01-01", amount=10, tip=5)


class TestOtherSchemas:
    """Test the remaining entity schemas."""

    def test_daily_data_non_negative(self):
        assert DailyDataSchema(date="2025-01-01", distance=0, fuel_cost=0).distance == 0
        with pytest.raises(ValidationError):
            DailyDataSchema(date="2025-01-01", distance=-1)

    def test_fixed_expense_due_date(self):
        assert FixedExpenseSchema(name="Rent", amount=1000, due_date=31).due_date == 31
        with pytest.raises(ValidationError):
            FixedExpenseSchema(name="Rent", amount=1000, due_date=32)

    def test_variable_expense_month_key(self):
        assert VariableExpenseSchema(name="Food", amount=10, month="2025-12").month == "2025-12"
        with pytest.raises(ValidationError):
            VariableExpenseSchema(name="Food", amount=10, month="2025-13")
        with pytest.raises(ValidationError):
            VariableExpenseSchema(name="Food", amount=10, month="Jan 2025")

    def test_payment_plan_cursor(self):
        plan = PaymentPlanSchema(name="TV", initial_cost=400, total_payments=4,
                                 current_payment=5, payment_amount=100)
        assert plan.current_payment == 5
        with pytest.raises(ValidationError, match="current_payment"):
            PaymentPlanSchema(name="TV", initial_cost=400, total_payments=4,
                              current_payment=6, payment_amount=100)

    def test_payment_plan_needs_installments(self):
        with pytest.raises(ValidationError):
            PaymentPlanSchema(name="TV", initial_cost=400, total_payments=0, payment_amount=100)

    def test_plan_payment(self):
        payment = PaymentPlanPaymentSchema(payment_plan_id="p1", payment_number=1,
                                           due_date="2025-01-05", month="2025-01")
        assert payment.is_paid is False

    def test_goal_window(self):
        with pytest.raises(ValidationError, match="end_date"):
            GoalSchema(name="Rent", target_amount=100, start_date="2025-01-31", end_date="2025-01-01")
        goal = GoalSchema(name="Rent", target_amount=100, start_date="2025-01-01", end_date="2025-01-31")
        assert goal.priority == 1


class TestLedgerSettings:

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.theme == "system"
        assert settings.amazon_flex_daily_capacity == 480

    def test_hours_limit_config(self):
        settings = LedgerSettings(amazon_flex_daily_capacity=600, amazon_flex_weekly_capacity=3000)
        config = settings.hours_limit_config()
        assert config.daily_limit_hours == 10.0
        assert config.weekly_limit_hours == 50.0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            LedgerSettings(amazon_flex_daily_capacity=0)


class TestSimulatorConfig:
    """Test simulator parameters."""

    def test_defaults(self):
        config = SimulatorConfig()
        assert config.blocks_before_gas == 4
        assert config.fill_up_cost == pytest.approx(42.0)
        assert config.acceptable_rates == {180: 60.0, 210: 70.0, 240: 80.0, 270: 90.0}

    def test_partial_rates_merged(self):
        config = SimulatorConfig(acceptable_rates={180: 75})
        assert config.acceptable_rate(180) == 75.0
        assert config.acceptable_rate(270) == 90.0

    def test_unknown_block_length(self):
        with pytest.raises(ValidationError, match="Unknown block lengths"):
            SimulatorConfig(acceptable_rates={300: 100})

    def test_blocks_before_gas_bounds(self):
        with pytest.raises(ValidationError):
            SimulatorConfig(blocks_before_gas=0)
        with pytest.raises(ValidationError):
            SimulatorConfig(blocks_before_gas=51)

    def test_immutable(self):
        config = SimulatorConfig()
        with pytest.raises(ValidationError):
            config.gas_price = 5.0

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "simulator.json"
        save_simulator_config(SimulatorConfig(gas_price=4.25, acceptable_rates={240: 85}), path)
        assert json.loads(path.read_text())["gas_price"] == 4.25
        loaded = load_simulator_config(path)
        assert loaded.gas_price == 4.25
        assert loaded.acceptable_rate(240) == 85.0

    def test_load_missing_file_gives_defaults(self, tmp_path):
        assert load_simulator_config(tmp_path / "missing.json") == SimulatorConfig()


class TestHoursLimitConfig:

    def test_defaults(self):
        config = HoursLimitConfig()
        assert config.platform == "AmazonFlex"
        assert (config.daily_limit_hours, config.weekly_limit_hours) == (8.0, 40.0)

    def test_weekly_at_least_daily(self):
        with pytest.raises(ValidationError, match="weekly_limit_hours"):
            HoursLimitConfig(daily_limit_hours=10, weekly_limit_hours=8)

    def test_from_capacity_minutes(self):
        config = HoursLimitConfig.from_capacity_minutes(600, 3000)
        assert config.daily_limit_hours == 10.0

    def test_from_capacity_minutes_rejects_zero(self):
        with pytest.raises(ConfigurationError):
            HoursLimitConfig.from_capacity_minutes(0, 2400)


class TestAppSettings:
    """Test environment-based settings."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = AppSettings()
        assert settings.weekly_limit_hours == 40.0
        assert settings.timezone == "UTC"
        assert settings.data_file.name == "gigledger-backup.json"

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GIGLEDGER_DATA_FILE", str(tmp_path / "ledger.json"))
        monkeypatch.setenv("GIGLEDGER_DAILY_LIMIT_HOURS", "10")
        settings = AppSettings()
        assert settings.data_file == tmp_path / "ledger.json"
        assert settings.daily_limit_hours == 10.0
        assert settings.hours_limit_config().daily_limit_hours == 10.0
