"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep SQLite as an implementation detail of one module
2. Use in-memory storage for testing
3. Keep the settlement logic decoupled from SQL

The interface is intentionally small - just what a ledger run needs.
"""

from abc import ABC, abstractmethod

from accounter.models.audit import AuditEvent
from accounter.models.ledger import LedgerEntry, PricedItem


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    The ledger is append-only: rows are never updated or removed.
    """

    @abstractmethod
    def append_entries(self, user: str, items: list[PricedItem]) -> int:
        """
        Append a batch of priced items attributed to one user.

        The batch is written all-or-nothing.

        Args:
            user: User the items are attributed to
            items: Items with costs in minor units

        Returns:
            Number of rows written

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def list_entries(self) -> list[LedgerEntry]:
        """
        Return every ledger row in insertion order.
        """
        pass

    @abstractmethod
    def user_totals(self) -> list[tuple[str, int]]:
        """
        Return (user, sum of cost) for every distinct user.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not open the storage backend."""
    pass
