"""Money encoding package."""

from accounter.money.codec import (
    MAX_MINOR_UNITS,
    MalformedPrice,
    MoneyError,
    format_price,
    is_valid_price,
    parse_price,
)

__all__ = [
    "MAX_MINOR_UNITS",
    "MalformedPrice",
    "MoneyError",
    "format_price",
    "is_valid_price",
    "parse_price",
]
