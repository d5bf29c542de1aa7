"""
Storage Services Package

Provides the abstract table store, its Google Sheets and in-memory
implementations, and the per-entity repositories built on top.
"""

from src.services.storage.interface import (
    ConnectionError,
    StorageError,
    TableNotFoundError,
    TableSchema,
    TableStoreInterface,
)
from src.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsTableStore,
)
from src.services.storage.memory import InMemoryTableStore
from src.services.storage.repositories import (
    BillsRepository,
    BudgetRepository,
    OTPRepository,
    UserRepository,
)

__all__ = [
    # Interfaces
    "TableSchema",
    "TableStoreInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    "TableNotFoundError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsTableStore",
    "InMemoryTableStore",
    # Repositories
    "BillsRepository",
    "BudgetRepository",
    "OTPRepository",
    "UserRepository",
]
