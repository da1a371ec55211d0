"""
Tests for reading item price files.
"""

import pytest

from accounter.ingest import (
    MalformedRowError,
    SourceNotFoundError,
    iter_items,
    read_items,
)


def write(tmp_path, text, name="prices.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestReadItems:
    """Tests for the price file reader."""

    def test_reads_rows(self, tmp_path):
        """Test plain name,price rows."""
        path = write(tmp_path, "Milk,3.50\nBread, 2.25\n")
        items = read_items(path)

        assert [(i.name, i.price) for i in items] == [("Milk", "3.50"), ("Bread", "2.25")]

    def test_no_header_row(self, tmp_path):
        """Test the first row is data, not a header."""
        path = write(tmp_path, "name,price\n")
        items = read_items(path)
        assert items[0].name == "name"
        assert items[0].price == "price"

    def test_skips_blank_lines(self, tmp_path):
        """Test blank lines do not become items."""
        path = write(tmp_path, "Milk,3.50\n\n\nEggs,4.00\n")
        assert len(read_items(path)) == 2

    def test_quoted_name_with_delimiter(self, tmp_path):
        """Test CSV quoting is honoured."""
        path = write(tmp_path, '"Cheese, aged",7.25\n')
        assert read_items(path)[0].name == "Cheese, aged"

    def test_custom_delimiter(self, tmp_path):
        """Test a semicolon separated file."""
        path = write(tmp_path, "Milk;3.50\n")
        items = read_items(path, delimiter=";")
        assert items[0].price == "3.50"

    def test_prices_are_not_validated_here(self, tmp_path):
        """Test bad prices still read, for the validator to report."""
        path = write(tmp_path, "Bread,2.5\n")
        assert read_items(path)[0].price == "2.5"

    def test_long_item_name(self, tmp_path):
        """Test item names have no length limit."""
        name = "Imported cheese " * 40
        path = write(tmp_path, f"{name},12.00\n")
        assert read_items(path)[0].name == name.strip()

    def test_empty_file(self, tmp_path):
        """Test an empty file gives no items."""
        path = write(tmp_path, "")
        assert read_items(path) == []

    def test_wrong_column_count(self, tmp_path):
        """Test rows must have exactly two columns."""
        path = write(tmp_path, "Milk,3.50\nBread,2.25,extra\n")
        with pytest.raises(MalformedRowError) as exc_info:
            read_items(path)
        assert exc_info.value.row_index == 1
        assert "index 1" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        """Test a missing file is reported with its path."""
        with pytest.raises(SourceNotFoundError) as exc_info:
            read_items(tmp_path / "nope.csv")
        assert "nope.csv" in str(exc_info.value)

    def test_iter_items_is_lazy(self, tmp_path):
        """Test rows before a bad row are yielded first."""
        path = write(tmp_path, "Milk,3.50\nbroken\n")
        iterator = iter_items(path)
        assert next(iterator).name == "Milk"
        with pytest.raises(MalformedRowError):
            next(iterator)
