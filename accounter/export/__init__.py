"""Export package."""

from accounter.export.tables import (
    render_ledger_table,
    render_settlement_csv,
    write_ledger_table,
    write_settlement_csv,
)

__all__ = [
    "render_ledger_table",
    "render_settlement_csv",
    "write_ledger_table",
    "write_settlement_csv",
]
