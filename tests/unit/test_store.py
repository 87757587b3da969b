"""
Unit tests for store.py module.

Tests validated mutations, the hours guard, optimistic writes with
rollback, settings, payment plan bookkeeping and backup loading.
"""

from datetime import date
from itertools import count

import pytest

from gigledger.exceptions import HoursLimitError, PersistenceError, ValidationError
from gigledger.serialization import parse_backup
from gigledger.store import InMemoryRepository, LedgerStore


class FlakyRepository(InMemoryRepository):
    """In-memory repository whose writes can be switched to fail."""

    def __init__(self, error: Exception = None):
        super().__init__()
        self.failing = set()
        self.error = error or PersistenceError("disk full")

    def _check(self, op: str, collection: str) -> None:
        if (op, collection) in self.failing:
            raise self.error

    def insert(self, collection, row):
        self._check("insert", collection)
        return super().insert(collection, row)

    def update(self, collection, record_id, changes):
        self._check("update", collection)
        return super().update(collection, record_id, changes)

    def delete(self, collection, record_id):
        self._check("delete", collection)
        return super().delete(collection, record_id)


def _store(repository=None) -> LedgerStore:
    ids = count(1)
    ticks = count(1000, 1000)
    return LedgerStore(
        repository if repository is not None else InMemoryRepository(),
        clock=lambda: next(ticks),
        id_factory=lambda: f"id{next(ids)}",
    )


def _income(day="2025-01-01", minutes=240, amount=95.0, **kw) -> dict:
    return {"date": day, "amount": amount, "block_length": minutes, **kw}


class TestInMemoryRepository:

    def test_crud(self):
        repo = InMemoryRepository()
        repo.insert("goals", {"id": "g1", "name": "Rent"})
        assert repo.get("goals", "g1") == {"id": "g1", "name": "Rent"}
        repo.update("goals", "g1", {"name": "Savings"})
        assert repo.list("goals") == [{"id": "g1", "name": "Savings"}]
        repo.delete("goals", "g1")
        assert repo.get("goals", "g1") is None

    def test_errors(self):
        repo = InMemoryRepository()
        repo.insert("goals", {"id": "g1"})
        with pytest.raises(PersistenceError, match="Duplicate id"):
            repo.insert("goals", {"id": "g1"})
        with pytest.raises(PersistenceError, match="without an id"):
            repo.insert("goals", {"name": "x"})
        with pytest.raises(PersistenceError):
            repo.update("goals", "missing", {})
        with pytest.raises(PersistenceError):
            repo.delete("goals", "missing")
        with pytest.raises(PersistenceError, match="Unknown collection"):
            repo.list("tips")


class TestAdd:
    """Test record creation."""

    def test_add_income(self):
        store = _store()
        result = store.add_income_entry(_income())
        assert result.ok
        entry = result.value
        assert entry.id == "id1"
        assert entry.work_date == date(2025, 1, 1)
        assert entry.created_at == entry.updated_at == 1000
        assert store.income_entries == [entry]
        assert store.repository.get("incomeEntries", "id1")["amount"] == 95.0

    def test_validation_failure_leaves_state(self):
        store = _store()
        result = store.add_income_entry(_income(amount=0))
        assert not result.ok
        assert isinstance(result.error, ValidationError)
        assert not result.rolled_back
        assert result.error.errors[0]["loc"] == "amount"
        assert store.income_entries == []
        assert store.repository.list("incomeEntries") == []

    def test_other_platform_needs_name(self):
        result = _store().add_income_entry(_income(platform="Other"))
        assert not result.ok
        assert "Custom platform name is required" in str(result.error)

    def test_daily_hours_cap(self):
        store = _store()
        assert store.add_income_entry(_income(minutes=240)).ok
        result = store.add_income_entry(_income(minutes=300))
        assert not result.ok
        assert isinstance(result.error, HoursLimitError)
        assert result.error.cap == "daily"
        assert len(store.income_entries) == 1

    def test_weekly_hours_cap(self):
        store = _store()
        for day in range(1, 6):
            assert store.add_income_entry(_income(day=f"2025-01-0{day}", minutes=480)).ok
        result = store.add_income_entry(_income(day="2025-01-06", minutes=60))
        assert isinstance(result.error, HoursLimitError)
        assert result.error.cap == "weekly"

    def test_uncapped_platform(self):
        store = _store()
        assert store.add_income_entry(_income(minutes=480)).ok
        assert store.add_income_entry(_income(minutes=240, platform="DoorDash")).ok

    def test_block_times_stored_as_iso(self):
        store = _store()
        result = store.add_income_entry(
            _income(minutes=None, block_start_time="2025-01-01T08:00:00",
                    block_end_time="2025-01-01T12:00:00")
        )
        assert result.value.block_start_time == "2025-01-01T08:00:00"
        assert result.value.duration_minutes == 240

    def test_daily_data_upserts_by_date(self):
        store = _store()
        first = store.upsert_daily_data({"date": "2025-01-01", "distance": 40, "fuel_cost": 10})
        second = store.upsert_daily_data({"date": "2025-01-01", "distance": 55})
        assert second.ok
        assert second.value.id == first.value.id
        assert len(store.daily_data) == 1
        assert store.daily_data[0].distance == 55.0
        assert store.daily_data[0].fuel_cost == 10.0


class TestRollback:
    """Test optimistic writes against a failing repository."""

    def test_insert_failure_rolls_back(self):
        repo = FlakyRepository()
        repo.failing.add(("insert", "incomeEntries"))
        store = _store(repo)
        result = store.add_income_entry(_income())
        assert not result.ok
        assert result.rolled_back
        assert isinstance(result.error, PersistenceError)
        assert str(result.error) == "disk full"
        assert store.income_entries == []

    def test_unexpected_error_wrapped(self):
        repo = FlakyRepository(error=RuntimeError("connection reset"))
        repo.failing.add(("insert", "goals"))
        store = _store(repo)
        result = store.add("goals", {"name": "Rent", "target_amount": 100,
                                     "start_date": "2025-01-01", "end_date": "2025-01-31"})
        assert isinstance(result.error, PersistenceError)
        assert "connection reset" in str(result.error)
        assert store.goals == []

    def test_update_failure_restores_previous(self):
        repo = FlakyRepository()
        store = _store(repo)
        entry = store.add_income_entry(_income(amount=95.0)).value
        repo.failing.add(("update", "incomeEntries"))
        result = store.update_income_entry(entry.id, {"amount": 120.0})
        assert result.rolled_back
        assert store.get("incomeEntries", entry.id).amount == 95.0

    def test_delete_failure_restores_record(self):
        repo = FlakyRepository()
        store = _store(repo)
        entry = store.add_income_entry(_income()).value
        repo.failing.add(("delete", "incomeEntries"))
        result = store.delete_income_entry(entry.id)
        assert result.rolled_back
        assert store.get("incomeEntries", entry.id) == entry


class TestUpdateDelete:

    def test_update_merges_fields(self):
        store = _store()
        entry = store.add_income_entry(_income(notes="rainy")).value
        result = store.update_income_entry(entry.id, {"amount": 110.0})
        updated = result.value
        assert updated.amount == 110.0
        assert updated.notes == "rainy"
        assert updated.created_at == entry.created_at
        assert updated.updated_at > entry.updated_at
        assert store.repository.get("incomeEntries", entry.id)["amount"] == 110.0

    def test_update_checks_hours_without_double_counting(self):
        store = _store()
        entry = store.add_income_entry(_income(minutes=240)).value
        assert store.update_income_entry(entry.id, {"block_length": 480}).ok
        result = store.update_income_entry(entry.id, {"block_length": 540})
        assert isinstance(result.error, HoursLimitError)

    def test_update_missing(self):
        result = _store().update_income_entry("nope", {"amount": 1})
        assert isinstance(result.error, PersistenceError)

    def test_delete(self):
        store = _store()
        entry = store.add_income_entry(_income()).value
        assert store.delete_income_entry(entry.id).ok
        assert store.income_entries == []
        assert store.repository.get("incomeEntries", entry.id) is None

    def test_delete_missing(self):
        assert not _store().delete_income_entry("nope").ok


class TestSettings:

    def test_update_settings(self):
        store = _store()
        result = store.update_settings({"theme": "dark"})
        assert result.ok
        assert store.settings.theme == "dark"
        assert store.repository.get("settings", "settings")["theme"] == "dark"
        # Second write updates the existing row
        assert store.update_settings({"theme": "light"}).ok
        assert len(store.repository.list("settings")) == 1

    def test_invalid_settings(self):
        result = _store().update_settings({"theme": "neon"})
        assert isinstance(result.error, ValidationError)

    def test_capacity_drives_hours_guard(self):
        store = _store()
        store.update_settings({"amazon_flex_daily_capacity": 300})
        assert store.hours_limit_config.daily_limit_hours == 5.0
        result = store.add_income_entry(_income(minutes=330))
        assert isinstance(result.error, HoursLimitError)


class TestPaymentPlans:
    """Test installment bookkeeping."""

    @pytest.fixture
    def store_with_plan(self):
        store = _store()
        plan = store.add("paymentPlans", {
            "name": "TV", "initial_cost": 400, "total_payments": 4,
            "current_payment": 4, "payment_amount": 100,
        }).value
        return store, plan

    def test_mark_payment_advances_cursor(self, store_with_plan):
        store, plan = store_with_plan
        result = store.mark_plan_payment(plan.id, "2025-01", date(2025, 1, 5))
        assert result.ok
        assert result.value.current_payment == 5
        assert result.value.is_complete
        payments = store.payment_plan_payments
        assert len(payments) == 1
        assert payments[0].payment_number == 4
        assert payments[0].is_paid

    def test_unknown_plan(self):
        result = _store().mark_plan_payment("nope", "2025-01", date(2025, 1, 5))
        assert isinstance(result.error, PersistenceError)

    def test_plan_update_failure_removes_payment(self):
        repo = FlakyRepository()
        store = _store(repo)
        plan = store.add("paymentPlans", {
            "name": "TV", "initial_cost": 400, "total_payments": 4,
            "current_payment": 2, "payment_amount": 100,
        }).value
        repo.failing.add(("update", "paymentPlans"))
        result = store.mark_plan_payment(plan.id, "2025-01", date(2025, 1, 5))
        assert not result.ok
        assert store.payment_plan_payments == []
        assert store.get("paymentPlans", plan.id).current_payment == 2


class TestBackupLoading:

    def test_load_backup_writes_through(self, backup_document):
        store = _store()
        store.load_backup(parse_backup(backup_document))
        assert len(store.income_entries) == 2
        assert store.settings.theme == "dark"
        assert store.repository.get("incomeEntries", "e1") is not None
        assert store.repository.get("settings", "settings")["theme"] == "dark"

    def test_loaded_records_can_be_edited(self, backup_document):
        store = _store()
        store.load_backup(parse_backup(backup_document))
        result = store.mark_plan_payment("p1", "2025-02", date(2025, 2, 1))
        assert result.ok
        assert store.get("paymentPlans", "p1").current_payment == 3

    def test_refresh_from_repository(self, backup_document):
        repo = InMemoryRepository()
        _store(repo).load_backup(parse_backup(backup_document))
        fresh = _store(repo)
        fresh.refresh()
        assert {e.id for e in fresh.income_entries} == {"e1", "e2"}
        assert fresh.goals[0].name == "Rent"
        assert fresh.settings.theme == "dark"

    def test_to_backup(self, backup_document):
        store = _store()
        store.load_backup(parse_backup(backup_document))
        backup = store.to_backup()
        assert len(backup.payment_plans) == 1
        assert backup.settings.theme == "dark"
