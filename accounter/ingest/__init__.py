"""Item price file ingestion package."""

from accounter.ingest.reader import (
    IngestionError,
    MalformedRowError,
    SourceNotFoundError,
    iter_items,
    read_items,
)

__all__ = [
    "IngestionError",
    "MalformedRowError",
    "SourceNotFoundError",
    "iter_items",
    "read_items",
]
