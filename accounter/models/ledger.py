"""
Core Data Models for Accounter

These models define the schemas for all data flowing through the system:
items as read from a price file, priced ledger rows, per-user totals and the
settlement computed from them.

DESIGN DECISION: Every amount is an int of minor units.
Decimal strings only exist at the edges (input file, exported tables).
"""

from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# INPUT MODELS
# =============================================================================

class Item(BaseModel):
    """
    One row of an item price file.

    CRITICAL: The price is still the raw string here. It only becomes money
    once the batch validator has accepted it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        description="Item name"
    )
    price: str = Field(
        ...,
        description="Price as written in the file, e.g. '12.34'"
    )


class PricedItem(BaseModel):
    """An item whose price has been parsed into minor units."""
    model_config = ConfigDict(frozen=True)

    row_index: int = Field(
        ...,
        ge=0,
        description="0-based row index in the source file"
    )
    name: str
    cost: int = Field(
        ...,
        ge=0,
        description="Cost in minor units"
    )


# =============================================================================
# LEDGER MODELS
# =============================================================================

class LedgerEntry(BaseModel):
    """A persisted ledger row, in insertion order."""

    id: int
    timestamp: str = Field(
        ...,
        description="When the row was recorded, as stored"
    )
    user: str
    item_name: str
    cost: int


class UserTotal(BaseModel):
    """Lifetime sum of everything ever attributed to one user."""
    model_config = ConfigDict(frozen=True)

    user: str = Field(..., min_length=1)
    total: int = Field(
        ...,
        ge=0,
        description="Lifetime total in minor units"
    )


class LedgerSnapshot(BaseModel):
    """
    Per-user totals in canonical order.

    The order of `totals` is the one ordering used for every row and column
    of the settlement. It is sorted by user identifier.
    """
    model_config = ConfigDict(frozen=True)

    totals: tuple[UserTotal, ...] = ()

    @model_validator(mode='after')
    def validate_order(self) -> 'LedgerSnapshot':
        """Users must be unique and sorted."""
        users = [t.user for t in self.totals]
        if users != sorted(set(users)):
            raise ValueError("Snapshot users must be unique and sorted")
        return self

    @property
    def users(self) -> list[str]:
        return [t.user for t in self.totals]

    @property
    def user_count(self) -> int:
        return len(self.totals)

    @property
    def is_empty(self) -> bool:
        return not self.totals

    @property
    def raw_total(self) -> int:
        return sum(t.total for t in self.totals)


# =============================================================================
# SETTLEMENT MODELS
# =============================================================================

class UserSettlement(BaseModel):
    """One user's row of the settlement."""

    user: str
    total: int = Field(
        ...,
        description="Lifetime total in minor units"
    )
    avg_contribution: int = Field(
        ...,
        description="floor(total / N)"
    )
    balances: list[int] = Field(
        default_factory=list,
        description="M[user][j] for every user j, in snapshot order"
    )
    net_balance: int = Field(
        ...,
        description="total - floor(raw_total / N): amount paid over the fair share"
    )


class SettlementResult(BaseModel):
    """
    Result of a settlement run.

    An empty ledger gives an empty result, never an error.
    """

    users: list[str] = Field(default_factory=list)
    settlements: list[UserSettlement] = Field(default_factory=list)
    raw_total: int = Field(
        default=0,
        description="Exact sum of every user's total"
    )
    accumulated: int = Field(
        default=0,
        description="Row-folded matrix sum after correction"
    )
    correction: int = Field(
        default=0,
        description="Amount added to the last user's self-balance"
    )

    @property
    def is_empty(self) -> bool:
        return not self.settlements

    @property
    def matrix(self) -> list[list[int]]:
        return [s.balances for s in self.settlements]

    def for_user(self, user: str) -> Optional[UserSettlement]:
        """Look up one user's settlement row."""
        for settlement in self.settlements:
            if settlement.user == user:
                return settlement
        return None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in a batch."""

    row_index: Optional[int] = Field(
        default=None,
        description="0-based source row, None for batch-level issues"
    )
    item: str = Field(
        default="",
        description="Item name the issue is about"
    )
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage batch validation.

    Stage 1: Schema validation (price format, names)
    Stage 2: Semantic validation (suspicious but acceptable values)
    """

    row_count: int = Field(..., ge=0)
    schema_valid: bool
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    items: list[PricedItem] = Field(
        default_factory=list,
        description="Parsed items; only filled when the batch is valid"
    )

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def total_cost(self) -> int:
        return sum(item.cost for item in self.items)
