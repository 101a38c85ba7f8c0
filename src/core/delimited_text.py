"""Neutral delimited-text IO.

This module owns the CSV format exchanged between the exporter and the
importer so both stages agree on encoding, header, and row shape.
"""

from __future__ import annotations

import csv
from pathlib import Path

from core.errors import SchemaMismatchError, SheetSyncExportError


def write_delimited_file(file_path: Path, grid: list[list[str]]) -> None:
    """Write a header-first grid to a CSV file.

    Args:
        file_path: Output file path.
        grid: Header row followed by data rows.

    Raises:
        SheetSyncExportError: If the file cannot be written.
    """
    try:
        with file_path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerows(grid)
    except OSError as error:
        raise SheetSyncExportError(
            f"Failed to write exported file at {file_path}: {error}. "
            "Check the working directory permissions and free space."
        ) from error


def read_delimited_file(file_path: Path) -> tuple[tuple[str, ...], list[dict[str, str]]]:
    """Read a header-first CSV file into row mappings.

    Args:
        file_path: CSV file path.

    Returns:
        Pair of header columns and row mappings in file order.

    Raises:
        SchemaMismatchError: If the file is missing, empty, or malformed.
    """
    try:
        with file_path.open("r", encoding="utf-8", newline="") as handle:
            grid = list(csv.reader(handle))
    except OSError as error:
        raise SchemaMismatchError(
            f"Failed to read import file at {file_path}: {error}. "
            "Export the source again before importing."
        ) from error
    except csv.Error as error:
        raise SchemaMismatchError(
            f"Failed to parse import file at {file_path}: {error}."
        ) from error
    except UnicodeDecodeError as error:
        raise SchemaMismatchError(
            f"Import file at {file_path} is not valid UTF-8: {error}. "
            "Re-export the source as UTF-8 before importing."
        ) from error
    if not grid:
        raise SchemaMismatchError(
            f"Import file {file_path} is empty: expected a header row."
        )
    columns = tuple(name.strip() for name in grid[0])
    _validate_header(file_path, columns)
    rows: list[dict[str, str]] = []
    for line_number, values in enumerate(grid[1:], 2):
        if not any(value.strip() for value in values):
            continue
        if len(values) > len(columns):
            raise SchemaMismatchError(
                f"Row {line_number} of {file_path} has {len(values)} cells "
                f"but the header declares {len(columns)} columns."
            )
        padded = list(values) + [""] * (len(columns) - len(values))
        rows.append(dict(zip(columns, padded)))
    return columns, rows


def pad_grid(grid: list[list[str]]) -> list[list[str]]:
    """Pad ragged rows to the widest row with empty strings."""
    if not grid:
        return []
    width = max(len(row) for row in grid)
    return [[str(value) for value in row] + [""] * (width - len(row)) for row in grid]


def _validate_header(file_path: Path, columns: tuple[str, ...]) -> None:
    if any(not name for name in columns):
        raise SchemaMismatchError(
            f"Import file {file_path} has an empty column name in its header."
        )
    duplicates = sorted({name for name in columns if columns.count(name) > 1})
    if duplicates:
        raise SchemaMismatchError(
            f"Import file {file_path} repeats column names: {', '.join(duplicates)}."
        )
