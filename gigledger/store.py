"""
Ledger store for GigLedger.

Purpose
-------
The only mutable component of the package: an in-memory copy of every
collection, kept in sync with a persistence ``Repository``. Each mutation
is an explicit state transition:

1. validate the input through the entity schema (``config``)
2. for income entries, run the hours-limit guard
3. capture a pre-image of the collection
4. apply the change in memory (optimistic update)
5. write through the repository
6. on failure, restore the pre-image

and reports its outcome as a ``MutationResult`` instead of raising, so a
caller can show ``result.error`` verbatim.

Validation and hours-cap failures never touch state (``rolled_back`` is
False); repository failures are rolled back (``rolled_back`` is True).

Example
-------
>>> store = LedgerStore(InMemoryRepository())
>>> result = store.add("incomeEntries", {"date": "2025-01-01", "amount": 95, "block_length": 240})
>>> result.ok, len(store.income_entries)
(True, 1)
>>> store.add("incomeEntries", {"date": "2025-01-01", "amount": 95, "block_length": 300}).error
HoursLimitError('Daily hour limit exceeded on 2025-01-01: ...')

Notes
-----
Not thread-safe; one store per process.
"""

from __future__ import annotations

import dataclasses
import time
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

import pydantic
from pydantic import BaseModel
from typing_extensions import Protocol

from .config import (
    DailyDataSchema,
    FixedExpenseSchema,
    GoalSchema,
    HoursLimitConfig,
    IncomeEntrySchema,
    LedgerSettings,
    PaymentPlanPaymentSchema,
    PaymentPlanSchema,
    VariableExpenseSchema,
)
from .exceptions import GigLedgerError, HoursLimitError, PersistenceError, ValidationError
from .hours import check_hours_limit
from .serialization import BACKUP_ATTRS, COLLECTIONS, ENTITIES, BackupData, from_row, to_row
from .types import Row
from .utils import parse_date

__all__ = [
    "Repository",
    "InMemoryRepository",
    "MutationResult",
    "LedgerStore",
    "SCHEMAS",
]

SCHEMAS: Dict[str, Type[BaseModel]] = {
    "incomeEntries": IncomeEntrySchema,
    "dailyData": DailyDataSchema,
    "fixedExpenses": FixedExpenseSchema,
    "variableExpenses": VariableExpenseSchema,
    "paymentPlans": PaymentPlanSchema,
    "paymentPlanPayments": PaymentPlanPaymentSchema,
    "goals": GoalSchema,
    "settings": LedgerSettings,
}

SETTINGS_ID = "settings"

_BOOKKEEPING = ("id", "created_at", "updated_at")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class Repository(Protocol):
    """
    Persistence collaborator.

    Rows are snake_case dictionaries keyed by ``id``. Implementations raise
    ``PersistenceError`` (or any exception) when a write fails.
    """

    def get(self, collection: str, record_id: str) -> Optional[Row]: ...

    def list(self, collection: str) -> List[Row]: ...

    def insert(self, collection: str, row: Row) -> Row: ...

    def update(self, collection: str, record_id: str, changes: Row) -> Row: ...

    def delete(self, collection: str, record_id: str) -> None: ...


class InMemoryRepository:
    """Dictionary-backed repository."""

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, Row]] = {name: {} for name in COLLECTIONS}

    def _table(self, collection: str) -> Dict[str, Row]:
        if collection not in self._tables:
            raise PersistenceError(f"Unknown collection: {collection}")
        return self._tables[collection]

    def get(self, collection: str, record_id: str) -> Optional[Row]:
        row = self._table(collection).get(record_id)
        return dict(row) if row is not None else None

    def list(self, collection: str) -> List[Row]:
        return [dict(row) for row in self._table(collection).values()]

    def insert(self, collection: str, row: Row) -> Row:
        table = self._table(collection)
        record_id = str(row.get("id") or "")
        if not record_id:
            raise PersistenceError(f"Cannot insert into {collection} without an id")
        if record_id in table:
            raise PersistenceError(f"Duplicate id {record_id} in {collection}")
        table[record_id] = dict(row)
        return dict(row)

    def update(self, collection: str, record_id: str, changes: Row) -> Row:
        table = self._table(collection)
        if record_id not in table:
            raise PersistenceError(f"No {collection} record with id {record_id}")
        table[record_id] = {**table[record_id], **changes}
        return dict(table[record_id])

    def delete(self, collection: str, record_id: str) -> None:
        table = self._table(collection)
        if record_id not in table:
            raise PersistenceError(f"No {collection} record with id {record_id}")
        del table[record_id]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a store mutation.

    Attributes
    ----------
    ok : bool
    value : Any
        The stored domain object (None on failure or delete).
    error : GigLedgerError, optional
        Why the mutation failed; safe to display.
    rolled_back : bool
        True when an optimistic change was applied and then undone.
    """
    ok: bool
    value: Any = None
    error: Optional[GigLedgerError] = None
    rolled_back: bool = False


def _failure(error: GigLedgerError, rolled_back: bool = False) -> MutationResult:
    return MutationResult(ok=False, error=error, rolled_back=rolled_back)


def _attrs(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    return dataclasses.asdict(obj)


def _domain_kwargs(validated: BaseModel) -> Dict[str, Any]:
    kwargs = validated.model_dump(exclude={"id"})
    for key, value in kwargs.items():
        if isinstance(value, datetime):
            kwargs[key] = value.isoformat()
    return kwargs


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class LedgerStore:
    """
    In-memory ledger with optimistic writes and deterministic rollback.

    Parameters
    ----------
    repository : Repository, optional
        Defaults to a fresh ``InMemoryRepository``.
    clock : callable, optional
        Returns the current time in epoch milliseconds.
    id_factory : callable, optional
        Returns a new record id.
    """

    def __init__(
        self,
        repository: Optional[Repository] = None,
        clock: Optional[Callable[[], int]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.repository = repository if repository is not None else InMemoryRepository()
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._state: Dict[str, Dict[str, Any]] = {name: {} for name in COLLECTIONS}
        self._state["settings"][SETTINGS_ID] = LedgerSettings(id=SETTINGS_ID)

    # -------------------- Loading --------------------
    def refresh(self) -> None:
        """Replace in-memory state with the repository's rows."""
        for collection in COLLECTIONS:
            rows = self.repository.list(collection)
            objects = [from_row(collection, row) for row in rows]
            if collection == "settings":
                if objects:
                    self._state["settings"] = {SETTINGS_ID: objects[0]}
                continue
            self._state[collection] = {obj.id: obj for obj in objects}

    def load_backup(self, backup: BackupData) -> None:
        """
        Replace state with a backup and write its records through.

        Records are upserted by id; repository rows absent from the backup
        are left alone.

        Raises
        ------
        PersistenceError
            If the repository rejects a record. In-memory state is unchanged.
        """
        settings = backup.settings.model_copy(update={"id": SETTINGS_ID})
        for collection, attr in BACKUP_ATTRS.items():
            for obj in getattr(backup, attr):
                self._upsert_row(collection, to_row(collection, obj))
        self._upsert_row("settings", to_row("settings", settings))

        for collection, attr in BACKUP_ATTRS.items():
            self._state[collection] = {obj.id: obj for obj in getattr(backup, attr)}
        self._state["settings"] = {SETTINGS_ID: settings}

    def _upsert_row(self, collection: str, row: Row) -> None:
        record_id = str(row.get("id") or "")
        if record_id and self.repository.get(collection, record_id) is not None:
            self.repository.update(collection, record_id, row)
        else:
            self.repository.insert(collection, row)

    def to_backup(self) -> BackupData:
        backup = BackupData(settings=self.settings)
        for collection, attr in BACKUP_ATTRS.items():
            setattr(backup, attr, self.all(collection))
        return backup

    # -------------------- Reads --------------------
    def all(self, collection: str) -> List[Any]:
        return list(self._state[collection].values())

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        return self._state[collection].get(record_id)

    @property
    def income_entries(self) -> List[Any]:
        return self.all("incomeEntries")

    @property
    def daily_data(self) -> List[Any]:
        return self.all("dailyData")

    @property
    def fixed_expenses(self) -> List[Any]:
        return self.all("fixedExpenses")

    @property
    def variable_expenses(self) -> List[Any]:
        return self.all("variableExpenses")

    @property
    def payment_plans(self) -> List[Any]:
        return self.all("paymentPlans")

    @property
    def payment_plan_payments(self) -> List[Any]:
        return self.all("paymentPlanPayments")

    @property
    def goals(self) -> List[Any]:
        return self.all("goals")

    @property
    def settings(self) -> LedgerSettings:
        return self._state["settings"][SETTINGS_ID]

    @property
    def hours_limit_config(self) -> HoursLimitConfig:
        return self.settings.hours_limit_config()

    # -------------------- Validation --------------------
    def _validate(self, collection: str, data: Mapping[str, Any]) -> BaseModel:
        schema = SCHEMAS[collection]
        try:
            return schema.model_validate(dict(data))
        except pydantic.ValidationError as e:
            details = [
                {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            summary = "; ".join(
                f"{d['loc']}: {d['msg']}" if d["loc"] else d["msg"] for d in details
            )
            raise ValidationError(f"Invalid {collection} record: {summary}", errors=details) from e

    def _guard_hours(self, candidate: Any, replacing_id: Optional[str]) -> None:
        check_hours_limit(
            self.income_entries,
            candidate,
            self.hours_limit_config,
            replacing_id=replacing_id,
        )

    # -------------------- Transactions --------------------
    def _commit(
        self,
        collection: str,
        apply: Callable[[Dict[str, Any]], None],
        write: Callable[[], Any],
        value: Any,
    ) -> MutationResult:
        """Apply optimistically, write through, restore the pre-image on failure."""
        pre_image = dict(self._state[collection])
        apply(self._state[collection])
        try:
            write()
        except Exception as e:
            self._state[collection] = pre_image
            error = e if isinstance(e, PersistenceError) else PersistenceError(
                f"Could not save {collection}: {e}"
            )
            return _failure(error, rolled_back=True)
        return MutationResult(ok=True, value=value)

    # -------------------- Mutations --------------------
    def add(self, collection: str, data: Mapping[str, Any]) -> MutationResult:
        """
        Create a record.

        Parameters
        ----------
        collection : str
            One of ``serialization.COLLECTIONS`` except "settings".
        data : mapping
            Field values by domain attribute name (snake_case).

        Returns
        -------
        MutationResult
        """
        if collection == "settings":
            return self.update_settings(data)
        if collection == "dailyData":
            existing = self._daily_data_on(data.get("date"))
            if existing is not None:
                return self.update(collection, existing.id, data)

        try:
            validated = self._validate(collection, data)
            now = self._clock()
            obj = ENTITIES[collection].factory(
                id=self._new_id(), created_at=now, updated_at=now, **_domain_kwargs(validated)
            )
            if collection == "incomeEntries":
                self._guard_hours(obj, replacing_id=None)
        except (ValidationError, HoursLimitError) as e:
            return _failure(e)

        return self._commit(
            collection,
            apply=lambda table: table.__setitem__(obj.id, obj),
            write=lambda: self.repository.insert(collection, to_row(collection, obj)),
            value=obj,
        )

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> MutationResult:
        """Edit a record; unspecified fields keep their stored values."""
        if collection == "settings":
            return self.update_settings(changes)
        current = self.get(collection, record_id)
        if current is None:
            return _failure(PersistenceError(f"No {collection} record with id {record_id}"))

        merged = {k: v for k, v in _attrs(current).items() if k not in _BOOKKEEPING}
        merged.update({k: v for k, v in changes.items() if k not in _BOOKKEEPING})
        try:
            validated = self._validate(collection, merged)
            obj = ENTITIES[collection].factory(
                id=record_id,
                created_at=current.created_at,
                updated_at=self._clock(),
                **_domain_kwargs(validated),
            )
            if collection == "incomeEntries":
                self._guard_hours(obj, replacing_id=record_id)
        except (ValidationError, HoursLimitError) as e:
            return _failure(e)

        row = to_row(collection, obj)
        return self._commit(
            collection,
            apply=lambda table: table.__setitem__(record_id, obj),
            write=lambda: self.repository.update(collection, record_id, row),
            value=obj,
        )

    def delete(self, collection: str, record_id: str) -> MutationResult:
        if record_id not in self._state[collection] or collection == "settings":
            return _failure(PersistenceError(f"No {collection} record with id {record_id}"))
        return self._commit(
            collection,
            apply=lambda table: table.pop(record_id),
            write=lambda: self.repository.delete(collection, record_id),
            value=None,
        )

    def update_settings(self, changes: Mapping[str, Any]) -> MutationResult:
        """Edit the settings record, creating its row on first write."""
        current = self.settings
        merged = {**current.model_dump(), **dict(changes), "id": SETTINGS_ID}
        merged["updated_at"] = self._clock()
        try:
            obj = self._validate("settings", merged)
        except ValidationError as e:
            return _failure(e)

        row = to_row("settings", obj)
        return self._commit(
            "settings",
            apply=lambda table: table.__setitem__(SETTINGS_ID, obj),
            write=lambda: self._upsert_row("settings", row),
            value=obj,
        )

    # -------------------- Typed helpers --------------------
    def add_income_entry(self, data: Mapping[str, Any]) -> MutationResult:
        return self.add("incomeEntries", data)

    def update_income_entry(self, record_id: str, changes: Mapping[str, Any]) -> MutationResult:
        return self.update("incomeEntries", record_id, changes)

    def delete_income_entry(self, record_id: str) -> MutationResult:
        return self.delete("incomeEntries", record_id)

    def upsert_daily_data(self, data: Mapping[str, Any]) -> MutationResult:
        """Create or replace the driving record of ``data["date"]``."""
        return self.add("dailyData", data)

    def _daily_data_on(self, value: Any) -> Optional[Any]:
        day = parse_date(value)
        if day is None:
            return None
        for item in self.daily_data:
            if item.work_date == day:
                return item
        return None

    def mark_plan_payment(self, plan_id: str, month: str, paid_on: date) -> MutationResult:
        """
        Record one installment of a plan as paid and advance its cursor.

        The plan is marked complete once its cursor passes the last
        installment.
        """
        plan = self.get("paymentPlans", plan_id)
        if plan is None:
            return _failure(PersistenceError(f"No paymentPlans record with id {plan_id}"))
        payment = self.add(
            "paymentPlanPayments",
            {
                "payment_plan_id": plan_id,
                "payment_number": plan.current_payment,
                "due_date": paid_on,
                "month": month,
                "is_paid": True,
                "paid_date": paid_on,
            },
        )
        if not payment.ok:
            return payment
        next_payment = plan.current_payment + 1
        result = self.update(
            "paymentPlans",
            plan_id,
            {
                "current_payment": next_payment,
                "is_complete": next_payment > plan.total_payments,
            },
        )
        if not result.ok:
            self.delete("paymentPlanPayments", payment.value.id)
        return result
