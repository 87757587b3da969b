"""
Custom exceptions for GigLedger.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all GigLedger modules. All exceptions inherit from GigLedgerError,
enabling catch-all handling when needed. Every message is written to be
shown verbatim to the user.

Exception Hierarchy
-------------------
GigLedgerError (base)
├── ConfigurationError - Invalid configuration or parameters
├── ValidationError - Record validation failures
│   └── HoursLimitError - A write would exceed a worked-hours cap
├── ImportFormatError - Unreadable or unsupported backup document
└── PersistenceError - Repository write failures

Usage
-----
>>> from gigledger.exceptions import HoursLimitError
>>>
>>> try:
...     check_hours_limit(entries, candidate, config)
... except HoursLimitError as e:
...     print(e.cap, e.overage_hours)
"""

from __future__ import annotations

from datetime import date
from typing import Optional


class GigLedgerError(Exception):
    """
    Base exception for all GigLedger errors.

    Examples
    --------
    >>> try:
    ...     store.add_income_entry(data)
    ... except GigLedgerError as e:
    ...     print(f"Could not save: {e}")
    """
    pass


class ConfigurationError(GigLedgerError):
    """
    Invalid configuration or parameters.

    Raised when settings or simulator configuration are inconsistent, such as:
    - Non-positive blocks-before-refuel
    - Daily cap larger than the weekly cap
    """
    pass


class ValidationError(GigLedgerError):
    """
    Record validation failures.

    Raised when an entity fails its schema, such as:
    - Non-positive amount
    - Platform "Other" without a custom name
    - Block end before block start

    Attributes
    ----------
    errors : list of dict
        Field-level error details (``loc``, ``msg``) when available.
    """

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class HoursLimitError(ValidationError):
    """
    A write would push worked hours past a configured cap.

    Attributes
    ----------
    cap : {"daily", "weekly"}
        Which cap was breached. "weekly" is the trailing 7-day window.
    used_hours : float
        Hours that would be used after the write.
    limit_hours : float
        Configured cap.
    overage_hours : float
        used_hours - limit_hours (always > 0).
    window_end : datetime.date
        Date the breached day or window ends on.

    Examples
    --------
    >>> raise HoursLimitError("weekly", used_hours=42.0, limit_hours=40.0,
    ...                       window_end=date(2025, 1, 7))
    """

    def __init__(
        self,
        cap: str,
        *,
        used_hours: float,
        limit_hours: float,
        window_end: date,
    ):
        self.cap = cap
        self.used_hours = used_hours
        self.limit_hours = limit_hours
        self.overage_hours = used_hours - limit_hours
        self.window_end = window_end
        if cap == "daily":
            scope = f"on {window_end.isoformat()}"
        else:
            scope = f"in the 7 days ending {window_end.isoformat()}"
        super().__init__(
            f"{cap.capitalize()} hour limit exceeded {scope}: "
            f"{used_hours:.2f}h would be worked against a {limit_hours:g}h cap "
            f"({self.overage_hours:.2f}h over)."
        )


class ImportFormatError(GigLedgerError):
    """
    Unreadable or unsupported backup document.

    Examples
    --------
    >>> raise ImportFormatError("Unsupported export version: 2.0")
    """
    pass


class PersistenceError(GigLedgerError):
    """
    Repository write failure.

    Raised by repositories when a record cannot be stored, updated or
    deleted. The store catches it and rolls back its in-memory state.
    """
    pass
