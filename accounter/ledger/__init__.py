"""Ledger aggregation package."""

from accounter.ledger.aggregator import LedgerAggregator

__all__ = ["LedgerAggregator"]
