"""
Configuration and validation module for GigLedger.

Purpose
-------
Centralized, declarative validation using Pydantic models. Every entity has
one schema, shared by the store (write path) and the CLI (``validate``
command), so a constraint such as "amount > 0" is declared exactly once.

Also holds the engine configuration:

- SimulatorConfig: fuel economics and minimum acceptable payout per block
- HoursLimitConfig: daily / trailing-7-day hour caps of the capped platform
- AppSettings: environment-driven application settings

Design Principles
-----------------
- Type-safe: Pydantic enforces types, enums and ranges
- Immutable: Frozen models prevent accidental mutation
- Strict: ``extra="forbid"`` rejects misspelled fields
- Serializable: JSON round-trip via model_dump_json / model_validate_json

Example
-------
>>> from gigledger.config import IncomeEntrySchema, SimulatorConfig
>>> IncomeEntrySchema(date="2025-01-01", platform="DoorDash", amount=42.5).amount
42.5
>>> SimulatorConfig().acceptable_rate(240)
80.0
"""

from __future__ import annotations
from typing import Dict, Literal, Optional
import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    AMAZON_FLEX,
    BLOCK_LENGTHS,
    DEFAULT_ACCEPTABLE_RATES,
    DEFAULT_BLOCKS_BEFORE_GAS,
    DEFAULT_DAILY_LIMIT_HOURS,
    DEFAULT_GAS_PRICE,
    DEFAULT_TANK_SIZE,
    DEFAULT_WEEKLY_LIMIT_HOURS,
    MAX_BLOCK_DURATION_MINUTES,
    MAX_DAILY_MINUTES,
    MAX_WEEKLY_MINUTES,
    MINUTES_PER_HOUR,
)
from .exceptions import ConfigurationError
from .utils import block_minutes

__all__ = [
    "IncomeEntrySchema",
    "DailyDataSchema",
    "FixedExpenseSchema",
    "VariableExpenseSchema",
    "PaymentPlanSchema",
    "PaymentPlanPaymentSchema",
    "GoalSchema",
    "LedgerSettings",
    "SimulatorConfig",
    "HoursLimitConfig",
    "AppSettings",
    "save_simulator_config",
    "load_simulator_config",
]

Platform = Literal["AmazonFlex", "DoorDash", "WalmartSpark", "Other"]
Provider = Literal["Affirm", "Klarna", "PayPalPayIn4", "Other"]
Frequency = Literal["weekly", "biweekly", "monthly"]
Category = Literal["grocery", "utility", "other"]
Period = Literal["weekly", "monthly"]

_MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# ---------------------------------------------------------------------------
# Entity Schemas
# ---------------------------------------------------------------------------

class IncomeEntrySchema(BaseModel):
    """
    Write-time validation of an income entry.

    Attributes
    ----------
    date : datetime.date
        Work date.
    platform : {"AmazonFlex", "DoorDash", "WalmartSpark", "Other"}
    custom_platform_name : str, optional
        Required (non-blank) when platform is "Other".
    block_start_time, block_end_time : datetime.datetime, optional
        When both are set, end must not precede start.
    block_length : int, optional
        Minutes, at most 16 hours.
    amount : float
        Strictly positive.
    notes : str

    Examples
    --------
    >>> IncomeEntrySchema(date="2025-01-01", platform="Other", amount=10)
    Traceback (most recent call last):
    ...
    pydantic_core._pydantic_core.ValidationError: ...
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    date: datetime.date = Field(description="Work date")
    platform: Platform = Field(default=AMAZON_FLEX, description="Gig platform")
    custom_platform_name: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Display name when platform is Other"
    )
    block_start_time: Optional[datetime.datetime] = Field(
        default=None,
        description="Block start timestamp"
    )
    block_end_time: Optional[datetime.datetime] = Field(
        default=None,
        description="Block end timestamp"
    )
    block_length: Optional[int] = Field(
        default=None,
        gt=0,
        le=MAX_BLOCK_DURATION_MINUTES,
        description="Block length in minutes"
    )
    amount: float = Field(gt=0, description="Amount earned")
    notes: str = Field(default="", max_length=1000, description="Free-text notes")

    @model_validator(mode="after")
    def validate_custom_platform(self):
        """Platform Other needs a custom name."""
        if self.platform == "Other" and not (self.custom_platform_name or "").strip():
            raise ValueError("Custom platform name is required when platform is Other")
        return self

    @model_validator(mode="after")
    def validate_block_times(self):
        """End must not precede start; derived spans obey the block limit."""
        if self.block_start_time is not None and self.block_end_time is not None:
            try:
                reversed_span = self.block_end_time < self.block_start_time
            except TypeError:
                raise ValueError("Block start and end times must both carry a UTC offset or neither")
            if reversed_span:
                raise ValueError("Block end time must be after start time")
            minutes = block_minutes(self.block_start_time, self.block_end_time)
            if minutes is not None and minutes > MAX_BLOCK_DURATION_MINUTES:
                raise ValueError(
                    f"Block duration ({minutes} min) exceeds "
                    f"{MAX_BLOCK_DURATION_MINUTES // MINUTES_PER_HOUR} hours"
                )
        return self


class DailyDataSchema(BaseModel):
    """Write-time validation of a per-date driving record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    date: datetime.date = Field(description="Calendar date (natural key)")
    distance: Optional[float] = Field(default=None, ge=0, description="Miles driven")
    fuel_cost: Optional[float] = Field(default=None, ge=0, description="Fuel dollars")


class FixedExpenseSchema(BaseModel):
    """Write-time validation of a recurring monthly bill."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    name: str = Field(min_length=1, max_length=100, description="Bill name")
    amount: float = Field(gt=0, description="Monthly amount")
    due_date: int = Field(default=1, ge=1, le=31, description="Due day of month")
    is_active: bool = Field(default=True, description="Counts toward obligations")


class VariableExpenseSchema(BaseModel):
    """Write-time validation of a one-off monthly expense."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    name: str = Field(min_length=1, max_length=100, description="Expense name")
    amount: float = Field(gt=0, description="Amount")
    category: Category = Field(default="other", description="Expense category")
    month: str = Field(pattern=_MONTH_PATTERN, description="Month key YYYY-MM")
    is_paid: bool = Field(default=False, description="Paid flag")
    paid_date: Optional[datetime.date] = Field(default=None, description="Paid date")


class PaymentPlanSchema(BaseModel):
    """
    Write-time validation of an installment plan.

    The cursor ``current_payment`` is the 1-indexed next unpaid installment
    and may reach ``total_payments + 1`` (fully paid) but not beyond.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    name: str = Field(min_length=1, max_length=100, description="Purchase name")
    provider: Provider = Field(default="Affirm", description="Lender")
    initial_cost: float = Field(gt=0, description="Purchase price")
    total_payments: int = Field(ge=1, description="Number of installments")
    current_payment: int = Field(default=1, ge=1, description="Next unpaid installment")
    payment_amount: float = Field(ge=0, description="Installment amount")
    minimum_monthly_payment: Optional[float] = Field(
        default=None,
        ge=0,
        description="Overrides payment_amount in monthly totals"
    )
    start_date: Optional[datetime.date] = Field(default=None, description="First due date")
    frequency: Frequency = Field(default="monthly", description="Installment frequency")
    end_date: Optional[datetime.date] = Field(default=None, description="Payoff deadline")
    minimum_payment: Optional[float] = Field(default=None, ge=0, description="Lender minimum")
    is_complete: bool = Field(default=False, description="Fully paid")

    @field_validator("current_payment")
    @classmethod
    def validate_cursor(cls, v, info):
        """Ensure current_payment <= total_payments + 1."""
        total = info.data.get("total_payments")
        if total is not None and v > total + 1:
            raise ValueError(
                f"current_payment ({v}) must be <= total_payments + 1 ({total + 1})"
            )
        return v


class PaymentPlanPaymentSchema(BaseModel):
    """Write-time validation of one plan installment."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    payment_plan_id: str = Field(min_length=1, description="Owning plan")
    payment_number: int = Field(ge=1, description="1-indexed installment number")
    due_date: datetime.date = Field(description="Due date")
    month: str = Field(pattern=_MONTH_PATTERN, description="Month key YYYY-MM")
    is_paid: bool = Field(default=False, description="Paid flag")
    paid_date: Optional[datetime.date] = Field(default=None, description="Paid date")


class GoalSchema(BaseModel):
    """Write-time validation of a savings goal."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    name: str = Field(min_length=1, max_length=100, description="Goal name")
    period: Period = Field(default="monthly", description="Goal period")
    target_amount: float = Field(gt=0, description="Target amount")
    start_date: datetime.date = Field(description="Window start")
    end_date: datetime.date = Field(description="Window end")
    is_active: bool = Field(default=True, description="Included in the waterfall")
    priority: int = Field(default=1, ge=1, description="1 = highest")

    @field_validator("end_date")
    @classmethod
    def validate_window(cls, v, info):
        """Ensure end_date > start_date."""
        start = info.data.get("start_date")
        if start is not None and v <= start:
            raise ValueError(f"end_date ({v}) must be after start_date ({start})")
        return v


class LedgerSettings(BaseModel):
    """
    User settings record stored with the ledger.

    Hour capacities are in MINUTES, as stored; use ``hours_limit_config``
    to get the caps the hours guard works with.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = Field(default=None, description="Record identifier")
    theme: Literal["light", "dark", "system"] = Field(default="system", description="UI theme")
    last_export_date: Optional[int] = Field(default=None, description="Epoch milliseconds")
    last_import_date: Optional[int] = Field(default=None, description="Epoch milliseconds")
    updated_at: Optional[int] = Field(default=None, description="Epoch milliseconds")
    amazon_flex_daily_capacity: int = Field(
        default=MAX_DAILY_MINUTES,
        gt=0,
        description="Daily cap in minutes"
    )
    amazon_flex_weekly_capacity: int = Field(
        default=MAX_WEEKLY_MINUTES,
        gt=0,
        description="Trailing 7-day cap in minutes"
    )

    def hours_limit_config(self) -> "HoursLimitConfig":
        return HoursLimitConfig.from_capacity_minutes(
            self.amazon_flex_daily_capacity,
            self.amazon_flex_weekly_capacity,
        )


# ---------------------------------------------------------------------------
# Simulator Configuration
# ---------------------------------------------------------------------------

class SimulatorConfig(BaseModel):
    """
    Parameters of the weekly schedule simulator.

    Attributes
    ----------
    blocks_before_gas : int
        Blocks worked on one tank.
    gas_price : float
        Dollars per gallon.
    tank_size : float
        Gallons per fill-up.
    acceptable_rates : dict[int, float]
        Minimum acceptable payout per block, keyed by block length in
        minutes. Keys must be in ``constants.BLOCK_LENGTHS``; missing keys
        take the default rates.
    platform : str
        Platform whose history feeds the averages.

    Examples
    --------
    >>> config = SimulatorConfig(gas_price=4.0, acceptable_rates={180: 75})
    >>> config.acceptable_rate(180), config.acceptable_rate(270)
    (75.0, 90.0)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    blocks_before_gas: int = Field(
        default=DEFAULT_BLOCKS_BEFORE_GAS,
        ge=1,
        le=50,
        description="Blocks per tank of fuel"
    )
    gas_price: float = Field(
        default=DEFAULT_GAS_PRICE,
        ge=0,
        description="Fuel price per gallon"
    )
    tank_size: float = Field(
        default=DEFAULT_TANK_SIZE,
        ge=0,
        description="Tank capacity in gallons"
    )
    acceptable_rates: Dict[int, float] = Field(
        default_factory=lambda: dict(DEFAULT_ACCEPTABLE_RATES),
        description="Minimum payout per block length (minutes)"
    )
    platform: str = Field(
        default=AMAZON_FLEX,
        description="Platform whose history is simulated"
    )

    @field_validator("acceptable_rates")
    @classmethod
    def validate_rates(cls, v):
        """Keys are block lengths; missing lengths take the defaults."""
        unknown = sorted(set(v) - set(BLOCK_LENGTHS))
        if unknown:
            raise ValueError(
                f"Unknown block lengths {unknown}; expected a subset of {list(BLOCK_LENGTHS)}"
            )
        merged = dict(DEFAULT_ACCEPTABLE_RATES)
        merged.update({int(k): float(rate) for k, rate in v.items()})
        return merged

    @property
    def fill_up_cost(self) -> float:
        """Dollars per full tank."""
        return self.tank_size * self.gas_price

    def acceptable_rate(self, block_length: int) -> float:
        return float(self.acceptable_rates.get(block_length, 0.0))


def save_simulator_config(config: SimulatorConfig, path: Path) -> None:
    """Persist a simulator config as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")


def load_simulator_config(path: Path) -> SimulatorConfig:
    """
    Load a simulator config saved by ``save_simulator_config``.

    A missing file yields the defaults. JSON object keys are strings, which
    pydantic coerces back to integer block lengths.
    """
    path = Path(path)
    if not path.exists():
        return SimulatorConfig()
    return SimulatorConfig.model_validate_json(path.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Hours Limit Configuration
# ---------------------------------------------------------------------------

class HoursLimitConfig(BaseModel):
    """
    Worked-hours caps of the capped platform.

    Attributes
    ----------
    platform : str
        Only entries of this platform count toward the caps.
    daily_limit_hours : float
        Cap for one calendar date.
    weekly_limit_hours : float
        Cap for the trailing 7-day window.

    Examples
    --------
    >>> HoursLimitConfig.from_capacity_minutes(600, 3000).daily_limit_hours
    10.0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    platform: str = Field(default=AMAZON_FLEX, description="Capped platform")
    daily_limit_hours: float = Field(
        default=DEFAULT_DAILY_LIMIT_HOURS,
        gt=0,
        le=24,
        description="Daily cap (hours)"
    )
    weekly_limit_hours: float = Field(
        default=DEFAULT_WEEKLY_LIMIT_HOURS,
        gt=0,
        le=168,
        description="Trailing 7-day cap (hours)"
    )

    @field_validator("weekly_limit_hours")
    @classmethod
    def validate_weekly(cls, v, info):
        """Ensure weekly cap >= daily cap."""
        daily = info.data.get("daily_limit_hours")
        if daily is not None and v < daily:
            raise ValueError(f"weekly_limit_hours ({v}) must be >= daily_limit_hours ({daily})")
        return v

    @classmethod
    def from_capacity_minutes(
        cls,
        daily_capacity: int = MAX_DAILY_MINUTES,
        weekly_capacity: int = MAX_WEEKLY_MINUTES,
        platform: str = AMAZON_FLEX,
    ) -> "HoursLimitConfig":
        """Build from the settings record's minute capacities."""
        if daily_capacity <= 0 or weekly_capacity <= 0:
            raise ConfigurationError(
                f"Hour capacities must be positive, got {daily_capacity}/{weekly_capacity} minutes"
            )
        return cls(
            platform=platform,
            daily_limit_hours=daily_capacity / MINUTES_PER_HOUR,
            weekly_limit_hours=weekly_capacity / MINUTES_PER_HOUR,
        )


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with GIGLEDGER_ (e.g., GIGLEDGER_DATA_FILE=ledger.json).

    Attributes
    ----------
    debug : bool
        Let CLI errors propagate with their traceback instead of a one-line
        message.
    data_file : Path
        Default backup document read by the CLI.
    simulator_config_file : Path
        Where the simulator config is persisted.
    daily_limit_hours, weekly_limit_hours : float
        Default caps when the backup carries no settings record.
    timezone : str
        IANA zone used to resolve "today".

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.weekly_limit_hours
    40.0
    """

    model_config = SettingsConfigDict(
        env_prefix="GIGLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Re-raise CLI errors with their traceback")
    data_file: Path = Field(
        default=Path("gigledger-backup.json"),
        description="Backup document used by the CLI"
    )
    simulator_config_file: Path = Field(
        default=Path.home() / ".config" / "gigledger" / "simulator.json",
        description="Persisted simulator configuration"
    )
    daily_limit_hours: float = Field(
        default=DEFAULT_DAILY_LIMIT_HOURS,
        gt=0,
        le=24,
        description="Default daily cap (hours)"
    )
    weekly_limit_hours: float = Field(
        default=DEFAULT_WEEKLY_LIMIT_HOURS,
        gt=0,
        le=168,
        description="Default trailing 7-day cap (hours)"
    )
    timezone: str = Field(default="UTC", description="IANA timezone for today's date")

    def hours_limit_config(self) -> HoursLimitConfig:
        return HoursLimitConfig(
            daily_limit_hours=self.daily_limit_hours,
            weekly_limit_hours=self.weekly_limit_hours,
        )
