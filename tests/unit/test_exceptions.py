"""
Unit tests for exceptions.py module.
"""

from datetime import date

import pytest

from gigledger.exceptions import (
    ConfigurationError,
    GigLedgerError,
    HoursLimitError,
    ImportFormatError,
    PersistenceError,
    ValidationError,
)


class TestHierarchy:

    @pytest.mark.parametrize(
        "cls", [ConfigurationError, ValidationError, HoursLimitError, ImportFormatError, PersistenceError]
    )
    def test_all_derive_from_base(self, cls):
        assert issubclass(cls, GigLedgerError)

    def test_hours_limit_is_validation_error(self):
        assert issubclass(HoursLimitError, ValidationError)


class TestValidationError:

    def test_errors_default_empty(self):
        assert ValidationError("bad").errors == []

    def test_errors_kept(self):
        details = [{"loc": "amount", "msg": "must be positive"}]
        assert ValidationError("bad", errors=details).errors == details


class TestHoursLimitError:

    def test_daily_message(self):
        err = HoursLimitError("daily", used_hours=9.0, limit_hours=8.0, window_end=date(2025, 1, 1))
        assert str(err) == (
            "Daily hour limit exceeded on 2025-01-01: "
            "9.00h would be worked against a 8h cap (1.00h over)."
        )
        assert err.overage_hours == 1.0

    def test_weekly_message(self):
        err = HoursLimitError("weekly", used_hours=42.5, limit_hours=40.0, window_end=date(2025, 1, 7))
        assert str(err) == (
            "Weekly hour limit exceeded in the 7 days ending 2025-01-07: "
            "42.50h would be worked against a 40h cap (2.50h over)."
        )
