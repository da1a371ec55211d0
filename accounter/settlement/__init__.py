"""Settlement package."""

from accounter.settlement.engine import SettlementEngine

__all__ = ["SettlementEngine"]
