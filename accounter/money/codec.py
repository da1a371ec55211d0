"""
Money Codec

DESIGN DECISION: Money never touches floating point.
A price is entered as a decimal string with exactly two fractional digits
and is stored as an integer count of minor units (cents). Formatting is the
exact inverse for every value the parser can produce.

The accepted format is strict: digits, a literal point, two digits.
Anything else is rejected with the offending item name - we never guess
what "1.5" or "12,30" was supposed to mean.
"""

import re
from typing import Optional


# Literal point. A bare "." here would also accept "1234" or "12x34".
PRICE_PATTERN = re.compile(r"^[0-9]+\.[0-9]{2}$")

# Costs were unsigned 32-bit values in the ledger format we read and write.
MAX_MINOR_UNITS = 2**32 - 1


class MoneyError(Exception):
    """Base exception for money encoding errors."""
    pass


class MalformedPrice(MoneyError):
    """A price string is not in the `digits.dd` form or does not fit."""

    def __init__(
        self,
        item: str,
        raw_value: str,
        reason: str = "must be in the form `digits.dd`",
        row_index: Optional[int] = None,
    ):
        self.item = item
        self.raw_value = raw_value
        self.reason = reason
        self.row_index = row_index
        location = f" (row {row_index})" if row_index is not None else ""
        super().__init__(
            f"Invalid price `{raw_value}` for item `{item}`{location}: {reason}"
        )

    def at_row(self, row_index: int) -> "MalformedPrice":
        """Return a copy of this error that also cites the source row."""
        return MalformedPrice(self.item, self.raw_value, self.reason, row_index)


def parse_price(price: str, item: str = "") -> int:
    """
    Convert a price string to minor units.

    Args:
        price: Price as entered, e.g. "12.34" (surrounding whitespace allowed)
        item: Name of the item the price belongs to, used in errors

    Returns:
        The amount in minor units, e.g. 1234

    Raises:
        MalformedPrice: If the string is not `digits.dd` or overflows
    """
    trimmed = price.strip()
    if not PRICE_PATTERN.match(trimmed):
        raise MalformedPrice(item, price)

    minor = int(trimmed.replace(".", ""))
    if minor > MAX_MINOR_UNITS:
        raise MalformedPrice(
            item,
            price,
            reason=f"exceeds the maximum of {format_price(MAX_MINOR_UNITS)}",
        )
    return minor


def format_price(minor: int) -> str:
    """Render minor units as a price string, e.g. 5 -> "0.05", -50 -> "-0.50"."""
    digits = str(abs(minor)).rjust(3, "0")
    price = f"{digits[:-2]}.{digits[-2:]}"
    if minor < 0:
        price = "-" + price
    return price


def is_valid_price(price: str) -> bool:
    """Check a price string without raising."""
    try:
        parse_price(price)
    except MalformedPrice:
        return False
    return True
