"""CSV decoding of course feeds."""

from __future__ import annotations

import csv
from collections.abc import Iterator
from pathlib import Path


class FeedFormatError(RuntimeError):
    """Raised when a feed file cannot be decoded into rows."""


def read_csv_feed(
    path: Path,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
) -> Iterator[dict[str, str]]:
    """Yield one column to value mapping per data row.

    Column names are stripped. Cells beyond the header are dropped and
    missing trailing cells read as empty.
    """
    with path.open("r", encoding=encoding, newline="") as handle:
        reader = csv.DictReader(handle, delimiter=delimiter)
        columns = [str(name).strip() for name in reader.fieldnames or []]
        if not any(columns):
            raise FeedFormatError(f"Feed {path.name} has no header row.")
        if len(set(columns)) != len(columns):
            raise FeedFormatError(f"Feed {path.name} has duplicate columns.")

        for row in reader:
            yield {
                column.strip(): value or ""
                for column, value in row.items()
                if column is not None and column.strip()
            }
