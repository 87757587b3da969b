"""
GigLedger - earnings, expenses and hours tracker for gig drivers

Analytics for delivery drivers working hour-capped platform blocks:
income and profit accounting, payment plans, income goals, hour-cap
enforcement and a weekly schedule optimizer.

Modules
-------
- income        : Income entries and platform aggregates
- expenses      : Fixed expenses, variable expenses, payment plans
- profit        : Daily and monthly profit
- hours         : Hour usage and the write-time hour-cap guard
- goals         : Goal progress and the priority waterfall
- simulator     : Weekly block schedule optimizer
- trends        : Hourly earnings heatmap
- serialization : Backup documents and row/record conversion
- store         : Validated in-memory ledger with rollback
- config        : Schemas and settings
"""

__version__ = "0.1.0"

from .exceptions import (
    GigLedgerError,
    ConfigurationError,
    ValidationError,
    HoursLimitError,
    ImportFormatError,
    PersistenceError,
)
from .income import IncomeEntry
from .expenses import FixedExpense, VariableExpense, PaymentPlan, PaymentPlanPayment
from .profit import DailyData
from .goals import Goal
from .config import SimulatorConfig, HoursLimitConfig, LedgerSettings, AppSettings
from .simulator import run_simulation
from .serialization import BackupData, load_backup, dump_backup
from .store import LedgerStore, InMemoryRepository
from . import utils
