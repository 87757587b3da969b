"""
Global constants for GigLedger.

Purpose
-------
Centralizes platform names, block-length buckets, hour caps and simulator
defaults used throughout the GigLedger codebase. Using constants instead of
hardcoded values keeps the engine, the validation layer and the CLI in sync.

Usage
-----
>>> from gigledger.constants import BLOCK_LENGTHS, DEFAULT_DAILY_LIMIT_HOURS
>>> 240 in BLOCK_LENGTHS
True

Categories
----------
- Platforms: gig platforms and payment plan providers
- Hours: daily/weekly caps and rolling window size
- Simulator: block lengths, fuel defaults, minimum acceptable rates
- Calendar: day names, week start
- Serialization: backup document version
"""

from typing import Dict, Tuple

__all__ = [
    # Platforms
    "AMAZON_FLEX",
    "OTHER_PLATFORM",
    "GIG_PLATFORMS",
    "PLATFORM_LABELS",
    "PAYMENT_PLAN_PROVIDERS",
    "PAYMENT_FREQUENCIES",
    "EXPENSE_CATEGORIES",
    "GOAL_PERIODS",
    # Hours
    "DEFAULT_DAILY_LIMIT_HOURS",
    "DEFAULT_WEEKLY_LIMIT_HOURS",
    "ROLLING_WINDOW_DAYS",
    "MAX_BLOCK_DURATION_MINUTES",
    "HOURS_REMAINING_WARNING_THRESHOLD",
    "HOURS_REMAINING_CRITICAL_THRESHOLD",
    # Simulator
    "BLOCK_LENGTHS",
    "BLOCK_LENGTH_LABELS",
    "BLOCK_BUCKET_TOLERANCE_MINUTES",
    "MAX_DAILY_MINUTES",
    "MAX_WEEKLY_MINUTES",
    "DEFAULT_BLOCKS_BEFORE_GAS",
    "DEFAULT_GAS_PRICE",
    "DEFAULT_TANK_SIZE",
    "DEFAULT_ACCEPTABLE_RATES",
    # Calendar
    "DAY_NAMES",
    "MINUTES_PER_HOUR",
    "SECONDS_PER_MINUTE",
    "MINUTES_PER_DAY",
    # Serialization
    "BACKUP_VERSION",
]


# =============================================================================
# Platforms
# =============================================================================

AMAZON_FLEX: str = "AmazonFlex"
"""Platform whose blocks are subject to the daily/weekly hour caps."""

OTHER_PLATFORM: str = "Other"
"""Catch-all platform; entries using it must carry a custom name."""

GIG_PLATFORMS: Tuple[str, ...] = ("AmazonFlex", "DoorDash", "WalmartSpark", "Other")
"""Closed set of platforms an income entry can be recorded against."""

PLATFORM_LABELS: Dict[str, str] = {
    "AmazonFlex": "Amazon Flex",
    "DoorDash": "DoorDash",
    "WalmartSpark": "Walmart Spark",
    "Other": "Other",
}
"""Human-readable platform names."""

PAYMENT_PLAN_PROVIDERS: Tuple[str, ...] = ("Affirm", "Klarna", "PayPalPayIn4", "Other")

PAYMENT_FREQUENCIES: Tuple[str, ...] = ("weekly", "biweekly", "monthly")

EXPENSE_CATEGORIES: Tuple[str, ...] = ("grocery", "utility", "other")

GOAL_PERIODS: Tuple[str, ...] = ("weekly", "monthly")


# =============================================================================
# Hours Limits
# =============================================================================

DEFAULT_DAILY_LIMIT_HOURS: float = 8.0
"""Default daily cap on worked hours for the capped platform."""

DEFAULT_WEEKLY_LIMIT_HOURS: float = 40.0
"""Default cap over the trailing 7-day window."""

ROLLING_WINDOW_DAYS: int = 7
"""Length of the trailing window, target date included."""

MAX_BLOCK_DURATION_MINUTES: int = 16 * 60
"""Longest block accepted on write (16 hours)."""

HOURS_REMAINING_WARNING_THRESHOLD: float = 3.0

HOURS_REMAINING_CRITICAL_THRESHOLD: float = 1.0


# =============================================================================
# Simulator Defaults
# =============================================================================

BLOCK_LENGTHS: Tuple[int, ...] = (180, 210, 240, 270)
"""Closed set of block lengths in MINUTES (3h, 3.5h, 4h, 4.5h)."""

BLOCK_LENGTH_LABELS: Dict[int, str] = {
    180: "3 hours",
    210: "3.5 hours",
    240: "4 hours",
    270: "4.5 hours",
}

BLOCK_BUCKET_TOLERANCE_MINUTES: int = 15
"""Historical blocks within this distance of a bucket are counted in it."""

MAX_DAILY_MINUTES: int = 8 * 60

MAX_WEEKLY_MINUTES: int = 40 * 60

DEFAULT_BLOCKS_BEFORE_GAS: int = 4

DEFAULT_GAS_PRICE: float = 3.50
"""Dollars per gallon."""

DEFAULT_TANK_SIZE: float = 12.0
"""Gallons per fill-up."""

DEFAULT_ACCEPTABLE_RATES: Dict[int, float] = {
    180: 60.0,
    210: 70.0,
    240: 80.0,
    270: 90.0,
}
"""Minimum acceptable payout per block, keyed by block length in minutes."""


# =============================================================================
# Calendar
# =============================================================================

DAY_NAMES: Tuple[str, ...] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
"""Weeks start on Sunday (day index 0)."""

MINUTES_PER_HOUR: int = 60

SECONDS_PER_MINUTE: int = 60

MINUTES_PER_DAY: int = 24 * 60


# =============================================================================
# Serialization
# =============================================================================

BACKUP_VERSION: str = "1.0"
"""Version tag written to and required from backup documents."""
