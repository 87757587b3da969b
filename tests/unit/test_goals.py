"""
Unit tests for goals.py module.

Tests single-goal progress, the priority waterfall and period helpers.
"""

from datetime import date

import pytest

from gigledger.exceptions import ConfigurationError
from gigledger.goals import (
    Goal,
    active_goal_for_date,
    current_month_range,
    current_week_range,
    goal_progress,
    monthly_income,
    prioritized_goal_progress,
    weekly_income,
)
from gigledger.income import IncomeEntry


def _goal(name="Rent", target=100.0, priority=1, period="monthly", **kw) -> Goal:
    params = dict(start_date="2025-01-01", end_date="2025-01-31")
    params.update(kw)
    return Goal(name=name, target_amount=target, priority=priority, period=period, **params)


class TestGoal:

    def test_window_parsed(self):
        assert _goal().window == (date(2025, 1, 1), date(2025, 1, 31))

    def test_contains(self):
        goal = _goal()
        assert goal.contains(date(2025, 1, 31))
        assert not goal.contains(date(2025, 2, 1))

    def test_contains_with_bad_window(self):
        assert not _goal(start_date="bad").contains(date(2025, 1, 10))


class TestGoalProgress:
    """Test progress of a single goal."""

    def test_half_way(self):
        entries = [IncomeEntry(date="2025-01-10", amount=50.0)]
        progress = goal_progress(_goal(target=100.0), entries)
        assert progress.current_amount == 50.0
        assert progress.percent_complete == 50.0
        assert progress.remaining_amount == 50.0
        assert not progress.is_complete

    def test_over_target_capped(self):
        """A 100 target with 200 earned is 100% with nothing remaining."""
        entries = [IncomeEntry(date="2025-01-10", amount=200.0)]
        progress = goal_progress(_goal(target=100.0), entries)
        assert progress.current_amount == 200.0
        assert progress.percent_complete == 100.0
        assert progress.remaining_amount == 0.0
        assert progress.is_complete

    def test_income_outside_window_ignored(self):
        entries = [IncomeEntry(date="2025-02-01", amount=200.0)]
        assert goal_progress(_goal(), entries).current_amount == 0.0

    def test_zero_target(self):
        entries = [IncomeEntry(date="2025-01-10", amount=50.0)]
        progress = goal_progress(_goal(target=0.0), entries)
        assert progress.percent_complete == 0.0
        assert not progress.is_complete

    def test_percent_never_negative(self):
        entries = [IncomeEntry(date="2025-01-10", amount=-40.0)]
        assert goal_progress(_goal(), entries).percent_complete == 0.0


class TestPrioritizedGoalProgress:
    """Test the income waterfall."""

    def test_waterfall(self, month_entries, monthly_goals):
        # January pool is 400: Rent (300) is filled, Savings gets 100 of 200
        progress = prioritized_goal_progress(monthly_goals, month_entries)
        assert [p.goal.name for p in progress] == ["Rent", "Savings"]
        assert progress[0].current_amount == 300.0
        assert progress[0].is_complete
        assert progress[1].current_amount == 100.0
        assert progress[1].percent_complete == 50.0
        assert progress[1].remaining_amount == 100.0

    def test_allocations_never_exceed_pool(self, month_entries, monthly_goals):
        progress = prioritized_goal_progress(monthly_goals, month_entries)
        assert sum(p.current_amount for p in progress) <= 400.0

    def test_sorted_by_priority(self, month_entries):
        goals = [_goal("Low", 50.0, priority=3), _goal("High", 50.0, priority=1), _goal("Mid", 50.0, priority=2)]
        progress = prioritized_goal_progress(goals, month_entries)
        assert [p.goal.name for p in progress] == ["High", "Mid", "Low"]

    def test_inactive_and_other_period_ignored(self, month_entries):
        goals = [
            _goal("Off", 100.0, is_active=False),
            _goal("Week", 100.0, period="weekly"),
            _goal("On", 100.0),
        ]
        progress = prioritized_goal_progress(goals, month_entries, "monthly")
        assert [p.goal.name for p in progress] == ["On"]

    def test_no_goals(self, month_entries):
        assert prioritized_goal_progress([], month_entries) == []

    def test_pool_exhausted(self):
        entries = [IncomeEntry(date="2025-01-05", amount=80.0)]
        goals = [_goal("A", 100.0, priority=1), _goal("B", 100.0, priority=2)]
        progress = prioritized_goal_progress(goals, entries)
        assert progress[0].current_amount == 80.0
        assert progress[1].current_amount == 0.0
        assert progress[1].percent_complete == 0.0

    def test_pool_comes_from_top_priority_window(self, month_entries):
        # February earned 500, but the pool is January's 400
        goals = [
            _goal("Jan", 300.0, priority=1),
            _goal("Feb", 300.0, priority=2, start_date="2025-02-01", end_date="2025-02-28"),
        ]
        progress = prioritized_goal_progress(goals, month_entries)
        assert progress[0].current_amount == pytest.approx(300.0)
        assert progress[1].current_amount == pytest.approx(100.0)

    def test_unknown_period(self, month_entries, monthly_goals):
        with pytest.raises(ConfigurationError, match="Unknown goal period"):
            prioritized_goal_progress(monthly_goals, month_entries, "yearly")

    def test_active_goal_for_date(self, month_entries, monthly_goals):
        progress = prioritized_goal_progress(monthly_goals, month_entries)
        assert active_goal_for_date(progress, date(2025, 1, 20)).goal.name == "Rent"
        assert active_goal_for_date(progress, date(2025, 3, 1)) is None


class TestPeriodHelpers:

    def test_current_week_range(self):
        assert current_week_range(date(2025, 1, 15)) == (date(2025, 1, 12), date(2025, 1, 18))

    def test_current_month_range(self):
        assert current_month_range(date(2025, 1, 15)) == (date(2025, 1, 1), date(2025, 1, 31))

    def test_weekly_income(self, month_entries):
        # Week of 2025-01-05 to 2025-01-11 holds the 01-10 entry
        assert weekly_income(month_entries, date(2025, 1, 8)) == 150.0

    def test_monthly_income(self, month_entries):
        assert monthly_income(month_entries, date(2025, 1, 8)) == 400.0
        assert monthly_income(month_entries, date(2025, 2, 8)) == 500.0
