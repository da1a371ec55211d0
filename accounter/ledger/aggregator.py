"""
Ledger Aggregation

Shapes per-user totals for the settlement step.

CRITICAL: The snapshot order is the settlement order.
Storage may return users in any order, so totals are always sorted by user
identifier here. The rounding correction targets the last user of this
ordering, so it must never depend on how the rows happened to come back.
"""

from collections import defaultdict
from typing import Iterable

from accounter.models.ledger import LedgerEntry, LedgerSnapshot, UserTotal


class LedgerAggregator:
    """Builds a LedgerSnapshot from raw rows or from pre-summed totals."""

    def from_totals(self, totals: Iterable[tuple[str, int]]) -> LedgerSnapshot:
        """
        Shape `(user, sum)` pairs as returned by the storage GROUP BY.

        Duplicate users are merged by summing.
        """
        merged: dict[str, int] = defaultdict(int)
        for user, total in totals:
            merged[user] += total

        return LedgerSnapshot(
            totals=tuple(
                UserTotal(user=user, total=merged[user])
                for user in sorted(merged)
            )
        )

    def from_entries(self, entries: Iterable[LedgerEntry]) -> LedgerSnapshot:
        """Group ledger rows by user and sum their cost."""
        return self.from_totals((entry.user, entry.cost) for entry in entries)
