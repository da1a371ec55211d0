"""
Ledger and Settlement Exporters

Two outputs:
1. The full ledger as a markdown table (for a README next to the data)
2. The settlement as CSV, one line per user

Amounts are always rendered through the money codec, never with float
formatting.
"""

import csv
import io
from pathlib import Path
from typing import Iterable, TextIO, Union

from accounter.models.ledger import LedgerEntry, SettlementResult
from accounter.money import format_price


LEDGER_HEADER = "|id|timestamp|user|item name|cost|"
LEDGER_SEPARATOR = "|---|---|---|---|---|"


def _cell(value: str) -> str:
    # A pipe inside a cell would split it into two columns
    return value.replace("|", "\\|")


def render_ledger_table(entries: Iterable[LedgerEntry]) -> str:
    """Render ledger rows as a 5-column markdown table."""
    lines = [LEDGER_HEADER, LEDGER_SEPARATOR]
    for entry in entries:
        lines.append(
            f"|{entry.id}|{_cell(entry.timestamp)}|{_cell(entry.user)}"
            f"|{_cell(entry.item_name)}|{format_price(entry.cost)}|"
        )
    return "\n".join(lines) + "\n"


def write_ledger_table(
    entries: Iterable[LedgerEntry],
    path: Union[str, Path],
) -> int:
    """
    Write the ledger table to a file, replacing it.

    Returns:
        Number of ledger rows written
    """
    entries = list(entries)
    Path(path).write_text(render_ledger_table(entries), encoding="utf-8")
    return len(entries)


def write_settlement_csv(result: SettlementResult, stream: TextIO) -> None:
    """
    Write the settlement as CSV.

    Header: user,total,<user_1>,...,<user_N>
    Rows:   user,total,balance_1,...,balance_N

    An empty settlement writes nothing.
    """
    if result.is_empty:
        return

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(["user", "total", *result.users])
    for settlement in result.settlements:
        writer.writerow([
            settlement.user,
            format_price(settlement.total),
            *(format_price(balance) for balance in settlement.balances),
        ])


def render_settlement_csv(result: SettlementResult) -> str:
    buffer = io.StringIO()
    write_settlement_csv(result, buffer)
    return buffer.getvalue()
