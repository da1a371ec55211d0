"""
Audit Logger

DESIGN DECISION: Every significant step of a ledger run is logged.
This provides:
1. Traceability of every batch loaded into the shared ledger
2. Debugging capability when a batch is rejected
3. A record of rounding corrections

The audit logger:
- Always writes a structured local log line
- Also persists to the audit_log table when storage is configured
- Never crashes the run if persisting fails
- Supports correlation IDs to tie the events of one run together
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from accounter.models.audit import AuditEvent, AuditEventBuilder
from accounter.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (stderr)
    2. The ledger database's audit_log table, when given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("accounter.audit")

    def with_storage(self, storage: AuditStorageInterface) -> "AuditLogger":
        """Return a logger that also persists to the given storage."""
        return AuditLogger(storage)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            return self._storage.append_event(event)

        return True

    def log_batch_loaded(
        self,
        user: str,
        source: str,
        row_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log that a price file was read."""
        self.log(AuditEventBuilder.batch_loaded(
            user=user,
            source=source,
            row_count=row_count,
            correlation_id=correlation_id,
        ))

    def log_batch_validated(
        self,
        user: str,
        row_count: int,
        total_cost: str,
        warnings: list[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.batch_validated(
            user=user,
            row_count=row_count,
            total_cost=total_cost,
            warnings=warnings,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        user: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected batch."""
        self.log(AuditEventBuilder.validation_failed(
            user=user,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_entries_saved(
        self,
        user: str,
        entry_count: int,
        total_cost: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.entries_saved(
            user=user,
            entry_count=entry_count,
            total_cost=total_cost,
            correlation_id=correlation_id,
        ))

    def log_ledger_exported(
        self,
        path: str,
        entry_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.ledger_exported(
            path=path,
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    def log_settlement_computed(
        self,
        user_count: int,
        raw_total: str,
        net_balances: dict[str, str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.settlement_computed(
            user_count=user_count,
            raw_total=raw_total,
            net_balances=net_balances,
            correlation_id=correlation_id,
        ))

    def log_rounding_corrected(
        self,
        user: str,
        correction: int,
        correlation_id: UUID,
    ) -> None:
        """Log the one numeric adjustment the system ever makes."""
        self.log(AuditEventBuilder.rounding_corrected(
            user=user,
            correction=correction,
            correlation_id=correlation_id,
        ))

    def log_ledger_empty(self, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.ledger_empty(correlation_id=correlation_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a pipeline run and pass it through all
    subsequent operations.
    """
    return uuid4()
