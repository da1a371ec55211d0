"""
Item Price File Reader

Reads a header-less delimited file of `name,price` rows into Item records.

This reader ONLY checks structure (two columns per row). Whether a price is
acceptable money is the batch validator's job, so a file with bad prices
still reads cleanly and every bad row can be reported at once.
"""

import csv
from pathlib import Path
from typing import Iterator, Union

from pydantic import ValidationError

from accounter.models.ledger import Item


class IngestionError(Exception):
    """Base exception for reading item price files."""
    pass


class SourceNotFoundError(IngestionError):
    """The price file does not exist or cannot be opened."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Could not open price file `{path}`: {reason}")


class MalformedRowError(IngestionError):
    """A row cannot be read as an item."""

    def __init__(self, row_index: int, message: str):
        self.row_index = row_index
        super().__init__(f"Could not read row with index {row_index}: {message}")


def iter_items(
    path: Union[str, Path],
    delimiter: str = ",",
) -> Iterator[Item]:
    """
    Yield items from a price file.

    Blank lines are skipped and do not count towards the row index.

    Raises:
        SourceNotFoundError: If the file cannot be opened
        MalformedRowError: If a row does not have exactly two columns
    """
    path = Path(path)
    try:
        handle = path.open("r", newline="", encoding="utf-8-sig")
    except OSError as e:
        raise SourceNotFoundError(path, e.strerror or str(e)) from e

    with handle:
        reader = csv.reader(handle, delimiter=delimiter)
        row_index = 0
        try:
            for row in reader:
                if not row or all(not cell.strip() for cell in row):
                    continue
                if len(row) != 2:
                    raise MalformedRowError(
                        row_index,
                        f"expected 2 columns (name, price), found {len(row)}",
                    )
                try:
                    yield Item(name=row[0], price=row[1])
                except ValidationError as e:
                    raise MalformedRowError(row_index, str(e)) from e
                row_index += 1
        except (csv.Error, UnicodeDecodeError) as e:
            raise MalformedRowError(row_index, str(e)) from e


def read_items(
    path: Union[str, Path],
    delimiter: str = ",",
) -> list[Item]:
    """Read every item of a price file."""
    return list(iter_items(path, delimiter=delimiter))
