"""
Serialization module for GigLedger persistence.

Purpose
-------
Owns the persistence boundary. Every entity has ONE declared field mapping
that drives four conversions:

    row (snake_case)  <->  record (camelCase)  <->  domain object

- Rows are what the relational store returns: decimal columns may be
  strings and timestamps are ISO strings.
- Records are what backup documents hold: numbers are numbers and
  timestamps are epoch milliseconds.
- Domain objects (``IncomeEntry``, ``PaymentPlan``, ...) are engine inputs.

Also reads and writes the backup document::

    {"version": "1.0", "exportDate": "<ISO>",
     "data": {"incomeEntries": [...], "dailyData": [...],
              "fixedExpenses": [...], "variableExpenses": [...],
              "paymentPlans": [...], "paymentPlanPayments": [...],
              "goals": [...], "settings": {...}}}

Example
-------
>>> from gigledger.serialization import load_backup, dump_backup
>>> data = load_backup(Path("gigledger-backup.json"))
>>> hours_used(data.income_entries, date.today(), platform="AmazonFlex")
>>> dump_backup(data, Path("copy.json"))
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import json
import warnings

import pydantic

from .config import HoursLimitConfig, LedgerSettings
from .constants import (
    AMAZON_FLEX,
    BACKUP_VERSION,
    MAX_DAILY_MINUTES,
    MAX_WEEKLY_MINUTES,
)
from .exceptions import ImportFormatError
from .expenses import FixedExpense, PaymentPlan, PaymentPlanPayment, VariableExpense
from .goals import Goal
from .income import IncomeEntry
from .profit import DailyData
from .utils import (
    coerce_integer,
    coerce_nullable_integer,
    coerce_nullable_number,
    coerce_number,
    parse_date,
    parse_datetime,
)

__all__ = [
    "FieldSpec",
    "EntityMapping",
    "ENTITIES",
    "COLLECTIONS",
    "row_to_record",
    "record_to_row",
    "from_record",
    "to_record",
    "from_row",
    "to_row",
    "BackupData",
    "BACKUP_ATTRS",
    "parse_backup",
    "build_backup",
    "load_backup",
    "dump_backup",
]


# ---------------------------------------------------------------------------
# Field mappings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    """
    One field of an entity.

    Parameters
    ----------
    row : str
        snake_case column name.
    record : str
        camelCase record key.
    attr : str
        Domain attribute name.
    kind : str
        "str", "nullable_str", "number", "nullable_number", "int",
        "nullable_int", "bool", "date", "nullable_date" or "timestamp".
    default : Any
        Value used when the key is missing or null (non-nullable kinds).
    omit_none : bool
        Leave the key out of records when the value is None.
    """
    row: str
    record: str
    attr: str
    kind: str = "str"
    default: Any = None
    omit_none: bool = False


@dataclass(frozen=True)
class EntityMapping:
    """Declared field mapping of one entity."""
    collection: str
    table: str
    factory: Callable[..., Any]
    fields: Tuple[FieldSpec, ...]


def _f(row: str, record: str, kind: str = "str", default: Any = None,
       attr: Optional[str] = None, omit_none: bool = False) -> FieldSpec:
    return FieldSpec(row, record, attr or row, kind, default, omit_none)


_TIMESTAMPS = (
    _f("created_at", "createdAt", "timestamp"),
    _f("updated_at", "updatedAt", "timestamp"),
)

ENTITIES: Dict[str, EntityMapping] = {
    "incomeEntries": EntityMapping("incomeEntries", "income_entries", IncomeEntry, (
        _f("id", "id", default=""),
        _f("date", "date", "date"),
        _f("platform", "platform", default=AMAZON_FLEX),
        _f("custom_platform_name", "customPlatformName", "nullable_str", omit_none=True),
        _f("block_start_time", "blockStartTime", "nullable_str"),
        _f("block_end_time", "blockEndTime", "nullable_str"),
        _f("block_length", "blockLength", "nullable_int"),
        _f("amount", "amount", "number", 0.0),
        _f("notes", "notes", default=""),
    ) + _TIMESTAMPS),
    "dailyData": EntityMapping("dailyData", "daily_data", DailyData, (
        _f("id", "id", default=""),
        _f("date", "date", "date"),
        _f("mileage", "mileage", "nullable_number", attr="distance"),
        _f("gas_expense", "gasExpense", "nullable_number", attr="fuel_cost"),
    ) + _TIMESTAMPS),
    "fixedExpenses": EntityMapping("fixedExpenses", "fixed_expenses", FixedExpense, (
        _f("id", "id", default=""),
        _f("name", "name", default=""),
        _f("amount", "amount", "number", 0.0),
        _f("due_date", "dueDate", "int", 1),
        _f("is_active", "isActive", "bool", True),
    ) + _TIMESTAMPS),
    "variableExpenses": EntityMapping("variableExpenses", "variable_expenses", VariableExpense, (
        _f("id", "id", default=""),
        _f("name", "name", default=""),
        _f("amount", "amount", "number", 0.0),
        _f("category", "category", default="other"),
        _f("month", "month", default=""),
        _f("is_paid", "isPaid", "bool", False),
        _f("paid_date", "paidDate", "nullable_str"),
    ) + _TIMESTAMPS),
    "paymentPlans": EntityMapping("paymentPlans", "payment_plans", PaymentPlan, (
        _f("id", "id", default=""),
        _f("name", "name", default=""),
        _f("provider", "provider", default="Affirm"),
        _f("initial_cost", "initialCost", "number", 0.0),
        _f("total_payments", "totalPayments", "int", 0),
        _f("current_payment", "currentPayment", "int", 1),
        _f("payment_amount", "paymentAmount", "number", 0.0),
        _f("minimum_monthly_payment", "minimumMonthlyPayment", "nullable_number", omit_none=True),
        _f("start_date", "startDate", "date"),
        _f("frequency", "frequency", default="monthly"),
        _f("end_date", "endDate", "nullable_date", omit_none=True),
        _f("minimum_payment", "minimumPayment", "nullable_number", omit_none=True),
        _f("is_complete", "isComplete", "bool", False),
    ) + _TIMESTAMPS),
    "paymentPlanPayments": EntityMapping("paymentPlanPayments", "payment_plan_payments", PaymentPlanPayment, (
        _f("id", "id", default=""),
        _f("payment_plan_id", "paymentPlanId", default=""),
        _f("payment_number", "paymentNumber", "int", 1),
        _f("due_date", "dueDate", "date"),
        _f("is_paid", "isPaid", "bool", False),
        _f("paid_date", "paidDate", "nullable_str"),
        _f("month", "month", default=""),
    ) + _TIMESTAMPS),
    "goals": EntityMapping("goals", "goals", Goal, (
        _f("id", "id", default=""),
        _f("name", "name", default=""),
        _f("period", "period", default="monthly"),
        _f("target_amount", "targetAmount", "number", 0.0),
        _f("start_date", "startDate", "date"),
        _f("end_date", "endDate", "date"),
        _f("is_active", "isActive", "bool", True),
        _f("priority", "priority", "int", 1),
    ) + _TIMESTAMPS),
    "settings": EntityMapping("settings", "app_settings", LedgerSettings, (
        _f("id", "id", default="settings"),
        _f("theme", "theme", default="system"),
        _f("last_export_date", "lastExportDate", "timestamp"),
        _f("last_import_date", "lastImportDate", "timestamp"),
        _f("amazon_flex_daily_capacity", "amazonFlexDailyCapacity", "int", MAX_DAILY_MINUTES),
        _f("amazon_flex_weekly_capacity", "amazonFlexWeeklyCapacity", "int", MAX_WEEKLY_MINUTES),
        _f("updated_at", "updatedAt", "timestamp"),
    )),
}

COLLECTIONS: Tuple[str, ...] = tuple(ENTITIES)


def _mapping(collection: str) -> EntityMapping:
    try:
        return ENTITIES[collection]
    except KeyError:
        raise KeyError(f"Unknown collection: {collection!r}") from None


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------

def _to_millis(value: Any) -> Optional[int]:
    """Epoch milliseconds from a number or ISO timestamp (naive = UTC)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return coerce_nullable_integer(value)
    parsed = parse_datetime(value)
    if parsed is None:
        return coerce_nullable_integer(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _from_millis(value: Any) -> Optional[str]:
    millis = coerce_nullable_integer(value)
    if millis is None:
        return None
    moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds")


def _date_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _normalize(spec: FieldSpec, value: Any) -> Any:
    """Coerce a raw value to the field's record representation."""
    kind = spec.kind
    if kind == "number":
        return coerce_number(value, fallback=spec.default)
    if kind == "nullable_number":
        return coerce_nullable_number(value)
    if kind == "int":
        return coerce_integer(value, fallback=spec.default)
    if kind == "nullable_int":
        return coerce_nullable_integer(value)
    if kind == "bool":
        return spec.default if value is None else bool(value)
    if kind == "timestamp":
        return _to_millis(value)
    if kind in ("date", "nullable_date"):
        return _date_text(value)
    if kind == "nullable_str":
        return None if value is None else str(value)
    return spec.default if value is None else value


# ---------------------------------------------------------------------------
# Row <-> Record
# ---------------------------------------------------------------------------

def row_to_record(collection: str, row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert a snake_case row into a camelCase record.

    Decimal strings become floats, ISO timestamps become epoch milliseconds
    and missing columns take their field default.

    Examples
    --------
    >>> row_to_record("dailyData", {"id": "d1", "date": "2025-01-01",
    ...     "mileage": "42.5", "gas_expense": None,
    ...     "created_at": "1970-01-01T00:00:01+00:00", "updated_at": None})
    {'id': 'd1', 'date': '2025-01-01', 'mileage': 42.5, 'gasExpense': None, 'createdAt': 1000, 'updatedAt': None}
    """
    record: Dict[str, Any] = {}
    for spec in _mapping(collection).fields:
        value = _normalize(spec, row.get(spec.row))
        if value is None and spec.omit_none:
            continue
        record[spec.record] = value
    return record


def record_to_row(collection: str, record: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a camelCase record into a snake_case row (timestamps as ISO)."""
    row: Dict[str, Any] = {}
    for spec in _mapping(collection).fields:
        value = _normalize(spec, record.get(spec.record))
        if spec.kind == "timestamp":
            value = _from_millis(value)
        row[spec.row] = value
    return row


# ---------------------------------------------------------------------------
# Record <-> Domain
# ---------------------------------------------------------------------------

def from_record(collection: str, record: Mapping[str, Any]) -> Any:
    """
    Build the domain object of a camelCase record.

    Dates are parsed to ``datetime.date`` when possible; an unparseable date
    is kept verbatim so the engine can skip it instead of failing.
    """
    mapping = _mapping(collection)
    kwargs: Dict[str, Any] = {}
    for spec in mapping.fields:
        value = _normalize(spec, record.get(spec.record))
        if spec.kind in ("date", "nullable_date") and value is not None:
            value = parse_date(value) or value
        kwargs[spec.attr] = value
    return mapping.factory(**kwargs)


def to_record(collection: str, obj: Any) -> Dict[str, Any]:
    """Convert a domain object into its camelCase record."""
    record: Dict[str, Any] = {}
    for spec in _mapping(collection).fields:
        value = _normalize(spec, getattr(obj, spec.attr))
        if value is None and spec.omit_none:
            continue
        record[spec.record] = value
    return record


def from_row(collection: str, row: Mapping[str, Any]) -> Any:
    return from_record(collection, row_to_record(collection, row))


def to_row(collection: str, obj: Any) -> Dict[str, Any]:
    return record_to_row(collection, to_record(collection, obj))


# ---------------------------------------------------------------------------
# Backup document
# ---------------------------------------------------------------------------

@dataclass
class BackupData:
    """Contents of a backup document as engine-ready domain objects."""
    income_entries: List[IncomeEntry] = field(default_factory=list)
    daily_data: List[DailyData] = field(default_factory=list)
    fixed_expenses: List[FixedExpense] = field(default_factory=list)
    variable_expenses: List[VariableExpense] = field(default_factory=list)
    payment_plans: List[PaymentPlan] = field(default_factory=list)
    payment_plan_payments: List[PaymentPlanPayment] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    settings: LedgerSettings = field(default_factory=lambda: LedgerSettings(id="settings"))
    export_date: Optional[str] = None

    def hours_limit_config(self) -> HoursLimitConfig:
        return self.settings.hours_limit_config()

    def daily_data_for(self, day: date) -> Optional[DailyData]:
        """Driving record of *day*, if any."""
        for item in self.daily_data:
            if item.work_date == day:
                return item
        return None


BACKUP_ATTRS: Dict[str, str] = {
    "incomeEntries": "income_entries",
    "dailyData": "daily_data",
    "fixedExpenses": "fixed_expenses",
    "variableExpenses": "variable_expenses",
    "paymentPlans": "payment_plans",
    "paymentPlanPayments": "payment_plan_payments",
    "goals": "goals",
}


def parse_backup(document: Any) -> BackupData:
    """
    Convert a parsed backup document into ``BackupData``.

    Raises
    ------
    ImportFormatError
        If the version is not "1.0" or ``data`` is not an object.

    Warns
    -----
    RuntimeWarning
        For each record that is not an object (it is dropped).
    """
    if not isinstance(document, dict):
        raise ImportFormatError("Invalid export file format")
    version = document.get("version")
    if version != BACKUP_VERSION:
        raise ImportFormatError(f"Unsupported export version: {version}")
    payload = document.get("data")
    if not isinstance(payload, dict):
        raise ImportFormatError("Invalid export file format")

    backup = BackupData(export_date=document.get("exportDate"))
    for collection, attr in BACKUP_ATTRS.items():
        items = payload.get(collection) or []
        if not isinstance(items, list):
            raise ImportFormatError(f"Invalid export file format: {collection} must be a list")
        objects = getattr(backup, attr)
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                warnings.warn(
                    f"Dropped {collection}[{position}]: expected an object, "
                    f"got {type(item).__name__}",
                    RuntimeWarning,
                )
                continue
            objects.append(from_record(collection, item))

    settings = payload.get("settings")
    if isinstance(settings, dict):
        try:
            backup.settings = from_record("settings", settings)
        except pydantic.ValidationError as e:
            raise ImportFormatError(f"Invalid settings record: {e}") from e
    return backup


def build_backup(data: BackupData, export_date: Optional[datetime] = None) -> Dict[str, Any]:
    """Backup document for *data*; ``exportDate`` defaults to now (UTC)."""
    moment = export_date or datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        collection: [to_record(collection, obj) for obj in getattr(data, attr)]
        for collection, attr in BACKUP_ATTRS.items()
    }
    payload["settings"] = to_record("settings", data.settings)
    return {
        "version": BACKUP_VERSION,
        "exportDate": moment.isoformat(),
        "data": payload,
    }


def load_backup(path: Path) -> BackupData:
    """
    Load a backup document from disk.

    Raises
    ------
    ImportFormatError
        If the file is not JSON or fails ``parse_backup``.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ImportFormatError(f"Backup file is not valid JSON: {e}") from e
    return parse_backup(document)


def dump_backup(data: BackupData, path: Path, export_date: Optional[datetime] = None) -> None:
    """Write *data* as a backup document."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_backup(data, export_date), f, indent=2)
