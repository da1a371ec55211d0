"""
SQLite Storage Implementation

DESIGN DECISION: The ledger lives in a single SQLite file because:
1. It is one file the group can pass around or commit next to the data
2. No database server required
3. The GROUP BY aggregation the settlement needs is one query

TRADEOFFS:
- No coordination between concurrent writers beyond SQLite's own locking
  (opening a locked file is retried a few times, then we give up)

The implementation follows the abstract interface, so the settlement logic
never sees SQL.
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from accounter.config import get_settings
from accounter.models.audit import AuditEvent, AuditEventType, AuditSeverity
from accounter.models.ledger import LedgerEntry, PricedItem
from accounter.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
)


SCHEMA = """
CREATE TABLE IF NOT EXISTS account (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    user TEXT NOT NULL,
    item_name TEXT NOT NULL,
    cost INTEGER NOT NULL CHECK (cost >= 0)
);

CREATE TABLE IF NOT EXISTS audit_log (
    event_id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    event_type TEXT NOT NULL,
    severity TEXT NOT NULL,
    user TEXT,
    correlation_id TEXT,
    description TEXT NOT NULL,
    details_json TEXT,
    error_message TEXT
);
"""

# Same layout as SQLite's CURRENT_TIMESTAMP
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class SqliteClient:
    """
    Low-level SQLite connection wrapper.

    Opens the database lazily, creates the tables on first use and retries
    the open while the file is locked by another writer.
    """

    def __init__(
        self,
        path: Union[str, Path],
        timeout_seconds: Optional[float] = None,
    ):
        self._path = Path(path)
        if timeout_seconds is None:
            timeout_seconds = get_settings().storage.timeout_seconds
        self._timeout = timeout_seconds
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def path(self) -> Path:
        return self._path

    @retry(
        retry=retry_if_exception_type(sqlite3.OperationalError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _open(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self._path), timeout=self._timeout)
        try:
            connection.row_factory = sqlite3.Row
            connection.executescript(SCHEMA)
        except sqlite3.Error:
            connection.close()
            raise
        return connection

    def connect(self) -> sqlite3.Connection:
        """Open the database (once) and make sure the tables exist."""
        if self._connection is None:
            try:
                self._connection = self._open()
            except sqlite3.Error as e:
                raise StorageConnectionError(
                    f"Could not open database `{self._path}`: {e}"
                ) from e
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "SqliteClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SqliteLedgerStorage(LedgerStorageInterface):
    """
    SQLite implementation of ledger storage.

    One row per item in the `account` table; costs are integer minor units.
    """

    def __init__(self, client: SqliteClient):
        self._client = client

    def append_entries(self, user: str, items: list[PricedItem]) -> int:
        """Append a batch in one transaction."""
        timestamp = datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)
        rows = [(timestamp, user, item.name, item.cost) for item in items]

        connection = self._client.connect()
        try:
            with connection:
                connection.executemany(
                    "INSERT INTO account (timestamp, user, item_name, cost) "
                    "VALUES (?, ?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save ledger entries: {e}") from e
        return len(rows)

    def list_entries(self) -> list[LedgerEntry]:
        """Every row, oldest first."""
        connection = self._client.connect()
        try:
            cursor = connection.execute(
                "SELECT id, timestamp, user, item_name, cost FROM account ORDER BY id"
            )
            return [
                LedgerEntry(
                    id=row["id"],
                    timestamp=str(row["timestamp"]),
                    user=row["user"],
                    item_name=row["item_name"],
                    cost=row["cost"],
                )
                for row in cursor
            ]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list ledger entries: {e}") from e

    def user_totals(self) -> list[tuple[str, int]]:
        """Lifetime total per user, ordered by user."""
        connection = self._client.connect()
        try:
            cursor = connection.execute(
                "SELECT user, SUM(cost) AS total FROM account GROUP BY user ORDER BY user"
            )
            return [(row["user"], int(row["total"])) for row in cursor]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to aggregate ledger: {e}") from e


class SqliteAuditStorage(AuditStorageInterface):
    """
    SQLite implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: SqliteClient):
        self._client = client
        self._logger = structlog.get_logger(__name__)

    def _row_to_event(self, row: sqlite3.Row) -> AuditEvent:
        """Convert a table row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(row["event_id"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            event_type=AuditEventType(row["event_type"]),
            severity=AuditSeverity(row["severity"]),
            user=row["user"],
            correlation_id=UUID(row["correlation_id"]) if row["correlation_id"] else None,
            description=row["description"],
            details=json.loads(row["details_json"]) if row["details_json"] else {},
            error_message=row["error_message"],
        )

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            connection = self._client.connect()
            with connection:
                connection.execute(
                    "INSERT INTO audit_log (event_id, timestamp, event_type, severity, "
                    "user, correlation_id, description, details_json, error_message) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    event.to_row(),
                )
            return True
        except (sqlite3.Error, StorageError) as e:
            # Audit logging must not break the main flow
            self._logger.warning(
                "audit_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first."""
        connection = self._client.connect()
        try:
            cursor = connection.execute(
                "SELECT * FROM audit_log ORDER BY rowid DESC LIMIT ?",
                (limit,),
            )
            return [self._row_to_event(row) for row in cursor]
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
