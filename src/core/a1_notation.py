"""A1 cell-range parsing helpers.

This module parses spreadsheet A1 notation such as ``A1:C10``, ``B:D``,
or ``2:5`` into zero-based bounds and slices value grids with them.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from core.errors import RangeInvalidError

_CELL_PATTERN = re.compile(r"^([A-Za-z]*)(\d*)$")


@dataclass(frozen=True)
class CellBounds:
    """Zero-based inclusive bounds; ``None`` means unbounded."""

    first_row: int | None
    first_column: int | None
    last_row: int | None
    last_column: int | None


def parse_cell_range(cell_range: str) -> CellBounds:
    """Parse an A1 range into zero-based bounds.

    Args:
        cell_range: Range such as ``A1:C10``, ``A:C``, ``1:4``, or ``B2``.

    Returns:
        Parsed bounds.

    Raises:
        RangeInvalidError: If notation is malformed or reversed.
    """
    parts = cell_range.strip().split(":")
    if len(parts) > 2 or not parts[0]:
        raise RangeInvalidError(
            f"Invalid cell range '{cell_range}': expected A1 notation such as A1:C10."
        )
    start_column, start_row = _parse_cell(parts[0], cell_range)
    end_column, end_row = _parse_cell(parts[-1], cell_range)
    bounds = CellBounds(
        first_row=start_row,
        first_column=start_column,
        last_row=end_row,
        last_column=end_column,
    )
    _validate_order(bounds, cell_range)
    return bounds


def slice_grid(grid: list[list[str]], bounds: CellBounds) -> list[list[str]]:
    """Return the sub-grid selected by bounds.

    Args:
        grid: Row-major cell values.
        bounds: Parsed cell bounds.

    Returns:
        Selected rows and columns.
    """
    row_start = bounds.first_row or 0
    row_stop = None if bounds.last_row is None else bounds.last_row + 1
    column_start = bounds.first_column or 0
    column_stop = None if bounds.last_column is None else bounds.last_column + 1
    return [row[column_start:column_stop] for row in grid[row_start:row_stop]]


def column_index(letters: str) -> int:
    """Convert column letters (``A``, ``AA``) to a zero-based index."""
    index = 0
    for letter in letters.upper():
        index = index * 26 + (ord(letter) - ord("A") + 1)
    return index - 1


def _parse_cell(cell: str, cell_range: str) -> tuple[int | None, int | None]:
    match = _CELL_PATTERN.match(cell.strip())
    if match is None or not cell.strip():
        raise RangeInvalidError(
            f"Invalid cell reference '{cell}' in range '{cell_range}'. "
            "Use column letters followed by a row number, e.g. B2."
        )
    letters, digits = match.groups()
    column = column_index(letters) if letters else None
    row = int(digits) - 1 if digits else None
    if row is not None and row < 0:
        raise RangeInvalidError(f"Invalid row number in range '{cell_range}': rows start at 1.")
    return column, row


def _validate_order(bounds: CellBounds, cell_range: str) -> None:
    if _is_reversed(bounds.first_row, bounds.last_row) or _is_reversed(
        bounds.first_column, bounds.last_column
    ):
        raise RangeInvalidError(
            f"Invalid cell range '{cell_range}': end cell precedes start cell."
        )


def _is_reversed(start: int | None, end: int | None) -> bool:
    return start is not None and end is not None and end < start
