"""
Tests for the SQLite ledger and audit storage.

Every test uses its own database file under tmp_path.
"""

import sqlite3
from uuid import uuid4

import pytest

from accounter.models.audit import AuditEventBuilder, AuditEventType
from accounter.models.ledger import PricedItem
from accounter.services.storage import (
    SqliteAuditStorage,
    SqliteClient,
    SqliteLedgerStorage,
    StorageConnectionError,
    StorageError,
)


@pytest.fixture
def client(tmp_path):
    with SqliteClient(tmp_path / "ledger.db", timeout_seconds=1) as c:
        yield c


def priced(*rows):
    return [PricedItem(row_index=i, name=name, cost=cost) for i, (name, cost) in enumerate(rows)]


class TestSqliteClient:
    """Tests for opening the database."""

    def test_creates_tables(self, client):
        """Test the schema is created on first open."""
        tables = {
            row[0]
            for row in client.connect().execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
        }
        assert {"account", "audit_log"} <= tables

    def test_reopen_keeps_data(self, tmp_path):
        """Test the ledger survives closing and reopening."""
        path = tmp_path / "ledger.db"
        with SqliteClient(path, timeout_seconds=1) as first:
            SqliteLedgerStorage(first).append_entries("alice", priced(("Milk", 350)))

        with SqliteClient(path, timeout_seconds=1) as second:
            assert len(SqliteLedgerStorage(second).list_entries()) == 1

    def test_unopenable_path(self, tmp_path):
        """Test a database in a missing directory fails with a storage error."""
        client = SqliteClient(tmp_path / "missing" / "ledger.db", timeout_seconds=1)
        with pytest.raises(StorageConnectionError, match="Could not open database"):
            client.connect()


class TestSqliteLedgerStorage:
    """Tests for ledger rows and aggregation."""

    def test_append_and_list(self, client):
        """Test rows come back in insertion order."""
        storage = SqliteLedgerStorage(client)
        assert storage.append_entries("bob", priced(("Milk", 350), ("Eggs", 400))) == 2
        storage.append_entries("alice", priced(("Bread", 225)))

        entries = storage.list_entries()
        assert [(e.id, e.user, e.item_name, e.cost) for e in entries] == [
            (1, "bob", "Milk", 350),
            (2, "bob", "Eggs", 400),
            (3, "alice", "Bread", 225),
        ]
        assert entries[0].timestamp

    def test_user_totals(self, client):
        """Test the GROUP BY aggregation, ordered by user."""
        storage = SqliteLedgerStorage(client)
        storage.append_entries("bob", priced(("Milk", 350), ("Eggs", 400)))
        storage.append_entries("alice", priced(("Bread", 225)))
        storage.append_entries("bob", priced(("Tea", 100)))

        assert storage.user_totals() == [("alice", 225), ("bob", 850)]

    def test_empty_ledger(self, client):
        """Test an empty ledger has no totals."""
        storage = SqliteLedgerStorage(client)
        assert storage.user_totals() == []
        assert storage.list_entries() == []

    def test_batch_is_all_or_nothing(self, client):
        """Test a failing row rolls back the whole batch."""
        storage = SqliteLedgerStorage(client)
        bad = PricedItem.model_construct(row_index=1, name="Refund", cost=-100)

        with pytest.raises(StorageError, match="Failed to save"):
            storage.append_entries("alice", priced(("Milk", 350)) + [bad])

        assert storage.list_entries() == []

    def test_reads_rows_written_by_other_tools(self, client):
        """Test rows relying on the column defaults are listed."""
        connection = client.connect()
        with connection:
            connection.execute(
                "INSERT INTO account (user, item_name, cost) VALUES ('carol', 'Soap', 199)"
            )
        entry = SqliteLedgerStorage(client).list_entries()[0]
        assert entry.user == "carol"
        assert entry.timestamp


class TestSqliteAuditStorage:
    """Tests for the audit_log table."""

    def test_append_and_read_back(self, client):
        """Test events round trip through the table, newest first."""
        storage = SqliteAuditStorage(client)
        correlation_id = uuid4()
        first = AuditEventBuilder.ledger_empty(correlation_id)
        second = AuditEventBuilder.entries_saved(
            user="alice",
            entry_count=2,
            total_cost="5.75",
            correlation_id=correlation_id,
        )

        assert storage.append_event(first) is True
        assert storage.append_event(second) is True

        events = storage.get_recent_events()
        assert [e.event_id for e in events] == [second.event_id, first.event_id]
        assert events[0].event_type == AuditEventType.ENTRIES_SAVED
        assert events[0].details == {"entry_count": 2, "total_cost": "5.75"}
        assert events[1].details == {}
        assert events[1].correlation_id == correlation_id

    def test_limit(self, client):
        """Test the number of returned events is capped."""
        storage = SqliteAuditStorage(client)
        for _ in range(3):
            storage.append_event(AuditEventBuilder.ledger_empty(uuid4()))
        assert len(storage.get_recent_events(limit=2)) == 2

    def test_write_failure_does_not_raise(self, client):
        """Test a broken audit table is reported, not raised."""
        connection = client.connect()
        connection.execute("DROP TABLE audit_log")

        storage = SqliteAuditStorage(client)
        assert storage.append_event(AuditEventBuilder.ledger_empty(uuid4())) is False

    def test_read_failure_raises(self, client):
        """Test reading a broken audit table raises a storage error."""
        client.connect().execute("DROP TABLE audit_log")
        with pytest.raises(StorageError):
            SqliteAuditStorage(client).get_recent_events()


def test_sqlite_error_is_not_leaked(tmp_path):
    """Test raw sqlite errors are wrapped in storage errors."""
    path = tmp_path / "ledger.db"
    with SqliteClient(path, timeout_seconds=1) as client:
        client.connect().execute("DROP TABLE account")
        with pytest.raises(StorageError) as exc_info:
            SqliteLedgerStorage(client).user_totals()
    assert isinstance(exc_info.value.__cause__, sqlite3.Error)
