"""
Data Models Package

This package contains all Pydantic models used in Accounter.
All data flowing through the system must conform to these schemas.
"""

from accounter.models.ledger import (
    Item,
    LedgerEntry,
    LedgerSnapshot,
    PricedItem,
    SettlementResult,
    UserSettlement,
    UserTotal,
    ValidationIssue,
    ValidationResult,
)
from accounter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Item",
    "LedgerEntry",
    "LedgerSnapshot",
    "PricedItem",
    "SettlementResult",
    "UserSettlement",
    "UserTotal",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
