"""Services package."""

from accounter.services.storage import (
    AuditStorageInterface,
    LedgerStorageInterface,
    SqliteAuditStorage,
    SqliteClient,
    SqliteLedgerStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "LedgerStorageInterface",
    "SqliteAuditStorage",
    "SqliteClient",
    "SqliteLedgerStorage",
    "StorageConnectionError",
    "StorageError",
]
