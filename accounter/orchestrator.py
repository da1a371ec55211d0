"""
Main Orchestrator for Accounter

This module ties together all the components and defines the end-to-end
ledger run:

    price file -> read -> validate -> append to ledger -> (markdown export)
               -> aggregate per user -> settle

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written unless the WHOLE batch validated
- Validate-only runs never open the database
- Every step is audited under one correlation id

The run is a function of an explicit RunConfig. Errors propagate to the
caller unchanged; deciding on an exit code is the CLI's business.
"""

from pathlib import Path
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from accounter.audit import AuditLogger, create_correlation_id
from accounter.config import RunConfig, get_settings
from accounter.export import write_ledger_table
from accounter.ingest import read_items
from accounter.ledger import LedgerAggregator
from accounter.models.ledger import SettlementResult, ValidationResult
from accounter.money import format_price
from accounter.services.storage import (
    SqliteAuditStorage,
    SqliteClient,
    SqliteLedgerStorage,
    StorageError,
)
from accounter.settlement import SettlementEngine
from accounter.validation import BatchRejectedError, BatchValidator


class RunOutcome(BaseModel):
    """What a ledger run did."""
    correlation_id: UUID
    validation: ValidationResult
    validate_only: bool = False
    entries_saved: int = 0
    markdown_rows: Optional[int] = None
    settlement: SettlementResult = Field(default_factory=SettlementResult)


class LedgerRunFlow:
    """
    Orchestrates one ledger run.

    Flow:
    1. Read   -> Items from the price file
    2. Check  -> Two-stage validation (reject whole batch on any bad price)
    3. Stop here in validate-only mode
    4. Save   -> Append the batch to the ledger in one transaction
    5. Export -> Optional markdown table of the whole ledger
    6. Settle -> Aggregate per user and compute the settlement matrix
    """

    def __init__(
        self,
        validator: Optional[BatchValidator] = None,
        aggregator: Optional[LedgerAggregator] = None,
        engine: Optional[SettlementEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
        client_factory: Callable[[Path], SqliteClient] = SqliteClient,
    ):
        self._validator = validator or BatchValidator()
        self._aggregator = aggregator or LedgerAggregator()
        self._engine = engine or SettlementEngine()
        self._audit_logger = audit_logger or AuditLogger()
        self._client_factory = client_factory

    def validate_batch(
        self,
        config: RunConfig,
        correlation_id: UUID,
    ) -> ValidationResult:
        """
        Read and validate the price file.

        Raises:
            IngestionError: If the file cannot be read
            BatchRejectedError: If any price is malformed
        """
        items = read_items(config.filename, delimiter=config.csv_delimiter)
        self._audit_logger.log_batch_loaded(
            user=config.user,
            source=str(config.filename),
            row_count=len(items),
            correlation_id=correlation_id,
        )

        try:
            result = self._validator.parse_batch(items)
        except BatchRejectedError as e:
            issues = [
                {"row": i.row_index, "item": i.item, "message": i.message}
                for i in e.result.issues
                if i.severity == "error"
            ]
            self._audit_logger.log_validation_failed(
                user=config.user,
                issues=issues,
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_batch_validated(
            user=config.user,
            row_count=result.row_count,
            total_cost=format_price(result.total_cost),
            warnings=result.warnings,
            correlation_id=correlation_id,
        )
        return result

    def _record_and_settle(
        self,
        client: SqliteClient,
        config: RunConfig,
        validation: ValidationResult,
        correlation_id: UUID,
    ) -> RunOutcome:
        storage = SqliteLedgerStorage(client)
        audit = self._audit_logger
        if get_settings().storage.audit_enabled:
            audit = audit.with_storage(SqliteAuditStorage(client))

        saved = storage.append_entries(config.user, validation.items)
        audit.log_entries_saved(
            user=config.user,
            entry_count=saved,
            total_cost=format_price(validation.total_cost),
            correlation_id=correlation_id,
        )

        markdown_rows = None
        if config.markdown is not None:
            markdown_rows = write_ledger_table(storage.list_entries(), config.markdown)
            audit.log_ledger_exported(
                path=str(config.markdown),
                entry_count=markdown_rows,
                correlation_id=correlation_id,
            )

        snapshot = self._aggregator.from_totals(storage.user_totals())
        settlement = self._engine.settle(snapshot)

        if settlement.is_empty:
            audit.log_ledger_empty(correlation_id)
        else:
            audit.log_settlement_computed(
                user_count=len(settlement.users),
                raw_total=format_price(settlement.raw_total),
                net_balances={
                    s.user: format_price(s.net_balance)
                    for s in settlement.settlements
                },
                correlation_id=correlation_id,
            )
            if settlement.correction:
                audit.log_rounding_corrected(
                    user=settlement.users[-1],
                    correction=settlement.correction,
                    correlation_id=correlation_id,
                )

        return RunOutcome(
            correlation_id=correlation_id,
            validation=validation,
            entries_saved=saved,
            markdown_rows=markdown_rows,
            settlement=settlement,
        )

    def run(self, config: RunConfig) -> RunOutcome:
        """
        Execute a full ledger run.

        Raises:
            IngestionError: The price file cannot be read
            BatchRejectedError: A price is malformed (nothing was written)
            StorageError: The ledger database failed
            OSError: The markdown table cannot be written
        """
        correlation_id = create_correlation_id()
        validation = self.validate_batch(config, correlation_id)

        if config.validate_only:
            return RunOutcome(
                correlation_id=correlation_id,
                validation=validation,
                validate_only=True,
            )

        try:
            with self._client_factory(config.database) as client:
                return self._record_and_settle(client, config, validation, correlation_id)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="ledger_run",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise


def run_pipeline(
    config: RunConfig,
    audit_logger: Optional[AuditLogger] = None,
) -> RunOutcome:
    """Run the ledger pipeline with default components."""
    return LedgerRunFlow(audit_logger=audit_logger).run(config)
