"""
Two-Stage Batch Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Every price must be `digits.dd` and fit in the ledger
- Any failure here rejects the WHOLE batch

STAGE 2 - SEMANTIC VALIDATION:
- Zero-cost items
- Unusually large amounts
- Item names repeated within one batch
- These are warnings only; they never block

Every row is checked before anything is reported, so the user can fix the
whole file in one go instead of one row per run.

IMPORTANT: Validation NEVER silently fixes issues.
"1.5" is not read as "1.50" - it is reported.
"""

from collections import Counter
from typing import Optional

from accounter.config import get_settings
from accounter.models.ledger import (
    Item,
    PricedItem,
    ValidationIssue,
    ValidationResult,
)
from accounter.money import MalformedPrice, format_price, parse_price


class BatchRejectedError(Exception):
    """A batch contains at least one row that cannot be ingested."""

    def __init__(self, result: ValidationResult, first_error: MalformedPrice):
        self.result = result
        self.first_error = first_error
        extra = result.error_count - 1
        suffix = f" (and {extra} more)" if extra > 0 else ""
        super().__init__(f"{first_error}{suffix}")


class BatchValidator:
    """
    Validates a batch of items read from one price file.

    Stage 1: Schema validation (hard errors)
    Stage 2: Semantic validation (warnings)
    """

    def __init__(self, max_item_amount_minor: Optional[int] = None):
        """
        Initialize validator.

        Args:
            max_item_amount_minor: Warning threshold for a single item.
                                   Defaults to the configured value.
        """
        if max_item_amount_minor is None:
            max_item_amount_minor = get_settings().app.max_item_amount_minor
        self._max_item_amount = max_item_amount_minor

    def _validate_schema(
        self,
        items: list[Item],
    ) -> tuple[list[PricedItem], list[ValidationIssue], Optional[MalformedPrice]]:
        """
        Stage 1: parse every price.

        Returns: (priced_items, issues, first_price_error)
        """
        priced = []
        issues = []
        first_error = None

        for row_index, item in enumerate(items):
            if not item.name:
                issues.append(ValidationIssue(
                    row_index=row_index,
                    field="name",
                    issue_type="missing",
                    message=f"Row {row_index} has no item name",
                    severity="warning",
                ))

            try:
                cost = parse_price(item.price, item.name)
            except MalformedPrice as e:
                error = e.at_row(row_index)
                if first_error is None:
                    first_error = error
                issues.append(ValidationIssue(
                    row_index=row_index,
                    item=item.name,
                    field="price",
                    issue_type="invalid_format",
                    message=str(error),
                    severity="error",
                ))
                continue

            priced.append(PricedItem(row_index=row_index, name=item.name, cost=cost))

        return priced, issues, first_error

    def _validate_semantic(
        self,
        priced: list[PricedItem],
    ) -> list[ValidationIssue]:
        """Stage 2: flag suspicious but acceptable values."""
        issues = []

        for item in priced:
            if item.cost == 0:
                issues.append(ValidationIssue(
                    row_index=item.row_index,
                    item=item.name,
                    field="price",
                    issue_type="suspicious_value",
                    message=f"Item `{item.name}` costs nothing",
                    severity="warning",
                ))
            elif item.cost > self._max_item_amount:
                issues.append(ValidationIssue(
                    row_index=item.row_index,
                    item=item.name,
                    field="price",
                    issue_type="suspicious_value",
                    message=(
                        f"Item `{item.name}` costs {format_price(item.cost)}, "
                        f"more than {format_price(self._max_item_amount)}"
                    ),
                    severity="warning",
                ))

        counts = Counter(item.name for item in priced if item.name)
        for name, count in sorted(counts.items()):
            if count > 1:
                issues.append(ValidationIssue(
                    item=name,
                    field="name",
                    issue_type="potential_duplicate",
                    message=f"Item `{name}` appears {count} times in this batch",
                    severity="warning",
                ))

        return issues

    def _run(
        self,
        items: list[Item],
    ) -> tuple[ValidationResult, Optional[MalformedPrice]]:
        priced, issues, first_error = self._validate_schema(items)
        schema_valid = first_error is None

        # Only run stage 2 if stage 1 passes
        if schema_valid:
            issues.extend(self._validate_semantic(priced))

        result = ValidationResult(
            row_count=len(items),
            schema_valid=schema_valid,
            is_valid=schema_valid,
            issues=issues,
            items=priced if schema_valid else [],
        )
        return result, first_error

    def validate(self, items: list[Item]) -> ValidationResult:
        """
        Run the two-stage validation over a batch.

        Returns:
            ValidationResult with all issues found. `items` is only
            filled when the batch can be ingested.
        """
        result, _ = self._run(items)
        return result

    def parse_batch(self, items: list[Item]) -> ValidationResult:
        """
        Validate a batch and insist that it is ingestible.

        Raises:
            BatchRejectedError: If any row has a malformed price
        """
        result, first_error = self._run(items)
        if first_error is not None:
            raise BatchRejectedError(result, first_error)
        return result

    def get_summary(self, result: ValidationResult) -> str:
        """Generate a plain-text summary of validation results."""
        if result.is_valid and not result.warnings:
            return f"All {result.row_count} rows are valid."

        lines = []

        if not result.schema_valid:
            lines.append(f"{result.error_count} rows cannot be loaded:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"  - {issue.message}")

        if result.warnings:
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        if result.is_valid:
            lines.append(f"{result.row_count} rows can be loaded.")
        else:
            lines.append("Fix the rows above; nothing was loaded.")

        return "\n".join(lines)
