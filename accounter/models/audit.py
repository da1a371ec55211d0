"""
Audit Models for Accounter

Every significant step of a ledger run is logged for audit purposes.
This provides:
1. Traceability of who loaded what into the shared ledger
2. Debugging information when a batch is rejected
3. A record of every rounding correction that was applied

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step in the ledger pipeline has its own event type.
    """
    # Ingestion
    BATCH_LOADED = "batch_loaded"
    BATCH_VALIDATED = "batch_validated"
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    ENTRIES_SAVED = "entries_saved"
    LEDGER_EXPORTED = "ledger_exported"

    # Settlement
    SETTLEMENT_COMPUTED = "settlement_computed"
    ROUNDING_CORRECTED = "rounding_corrected"
    LEDGER_EMPTY = "ledger_empty"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who the event is about (a ledger user, when there is one)
    user: Optional[str] = None

    # Correlation - all events of one run share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one pipeline run"
    )

    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user": self.user,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_row(self) -> tuple:
        """
        Convert to a row for the audit_log table.

        Columns in order:
        (event_id, timestamp, event_type, severity, user, correlation_id,
         description, details_json, error_message)
        """
        return (
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user,
            str(self.correlation_id) if self.correlation_id else None,
            self.description,
            json.dumps(self.details) if self.details else None,
            self.error_message,
        )


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.batch_loaded(user, path, rows, correlation_id)
    """

    @staticmethod
    def batch_loaded(
        user: str,
        source: str,
        row_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_LOADED,
            user=user,
            correlation_id=correlation_id,
            description=f"Loaded {row_count} rows from {source}",
            details={
                "source": source,
                "row_count": row_count,
            },
        )

    @staticmethod
    def batch_validated(
        user: str,
        row_count: int,
        total_cost: str,
        warnings: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_VALIDATED,
            severity=AuditSeverity.WARNING if warnings else AuditSeverity.INFO,
            user=user,
            correlation_id=correlation_id,
            description=f"Batch of {row_count} items validated ({total_cost})",
            details={
                "row_count": row_count,
                "total_cost": total_cost,
                "warnings": warnings,
            },
        )

    @staticmethod
    def validation_failed(
        user: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.ERROR,
            user=user,
            correlation_id=correlation_id,
            description=f"Batch rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def entries_saved(
        user: str,
        entry_count: int,
        total_cost: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRIES_SAVED,
            user=user,
            correlation_id=correlation_id,
            description=f"Saved {entry_count} ledger entries for {user}: {total_cost}",
            details={
                "entry_count": entry_count,
                "total_cost": total_cost,
            },
        )

    @staticmethod
    def ledger_exported(
        path: str,
        entry_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_EXPORTED,
            correlation_id=correlation_id,
            description=f"Ledger table with {entry_count} rows written to {path}",
            details={
                "path": path,
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def settlement_computed(
        user_count: int,
        raw_total: str,
        net_balances: dict[str, str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPUTED,
            correlation_id=correlation_id,
            description=f"Settlement computed for {user_count} users, total {raw_total}",
            details={
                "user_count": user_count,
                "raw_total": raw_total,
                "net_balances": net_balances,
            },
        )

    @staticmethod
    def rounding_corrected(
        user: str,
        correction: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROUNDING_CORRECTED,
            severity=AuditSeverity.WARNING,
            user=user,
            correlation_id=correlation_id,
            description=f"Rounding correction of {correction} applied to {user}",
            details={
                "correction": correction,
            },
        )

    @staticmethod
    def ledger_empty(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_EMPTY,
            correlation_id=correlation_id,
            description="Ledger has no entries; settlement skipped",
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
