"""
Storage Services Package

Provides abstract interfaces and the SQLite implementation for the ledger
and its audit log.
"""

from accounter.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
)
from accounter.services.storage.sqlite import (
    SqliteAuditStorage,
    SqliteClient,
    SqliteLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # SQLite implementation
    "SqliteAuditStorage",
    "SqliteClient",
    "SqliteLedgerStorage",
]
