"""Tabular source contracts and the local CSV source.

This module defines the read contract every source implements and
selects a concrete source from configuration.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Protocol

from core.a1_notation import parse_cell_range, slice_grid
from core.config import SheetSyncConfig
from core.constants import EXPORT_FILE_SUFFIX
from core.errors import (
    RangeInvalidError,
    SheetSyncConfigError,
    SheetSyncExportError,
    SourceUnavailableError,
)
from core.types import ExportRequest
from export.google_sheets import GoogleSheetsSource


class TabularSource(Protocol):
    """Read contract for an external tabular data source."""

    def fetch_rows(self, request: ExportRequest) -> list[list[str]]:
        """Return the header row followed by data rows for a request."""
        ...


class LocalCsvSource:
    """Source backed by CSV files on the local file system.

    ``source_id`` names a CSV file, or a directory whose
    ``<sub_range_name>.csv`` files act as sheets.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = root

    def fetch_rows(self, request: ExportRequest) -> list[list[str]]:
        """Read the requested file and apply the optional cell range.

        Raises:
            SourceUnavailableError: If the source path does not exist.
            RangeInvalidError: If the sub-range file or cell range is invalid.
            SheetSyncExportError: If the file is not UTF-8 CSV text.
        """
        file_path = self._resolve_file(request)
        try:
            with file_path.open("r", encoding="utf-8", newline="") as handle:
                grid = [list(row) for row in csv.reader(handle)]
        except OSError as error:
            raise SourceUnavailableError(
                f"Failed to read local source {file_path}: {error}."
            ) from error
        except (UnicodeDecodeError, csv.Error) as error:
            raise SheetSyncExportError(
                f"Local source {file_path} is not a readable UTF-8 CSV file: {error}."
            ) from error
        if request.cell_range:
            grid = slice_grid(grid, parse_cell_range(request.cell_range))
        return grid

    def _resolve_file(self, request: ExportRequest) -> Path:
        source_path = Path(request.source_id).expanduser()
        if self._root is not None and not source_path.is_absolute():
            source_path = self._root / source_path
        if not source_path.exists():
            raise SourceUnavailableError(
                f"Local source {source_path} does not exist. "
                "Provide an existing CSV file or directory."
            )
        if source_path.is_file():
            if request.sub_range_name and request.sub_range_name != source_path.stem:
                raise RangeInvalidError(
                    f"Sub-range '{request.sub_range_name}' does not exist in {source_path}."
                )
            return source_path
        if not request.sub_range_name:
            raise RangeInvalidError(
                f"Local source {source_path} is a directory; "
                "name the sheet with a sub-range (SOURCE#SHEET)."
            )
        sheet_path = source_path / f"{request.sub_range_name}{EXPORT_FILE_SUFFIX}"
        if not sheet_path.is_file():
            raise RangeInvalidError(
                f"Sub-range '{request.sub_range_name}' does not exist under {source_path}."
            )
        return sheet_path


def build_source(config: SheetSyncConfig, source_kind: str | None = None) -> TabularSource:
    """Create the configured tabular source.

    Args:
        config: Runtime configuration.
        source_kind: Optional override of ``config.source_kind``.

    Returns:
        Source instance.

    Raises:
        SheetSyncConfigError: If the kind is unknown.
    """
    kind = source_kind or config.source_kind
    if kind == "local":
        return LocalCsvSource()
    if kind == "google-sheets":
        return GoogleSheetsSource(config.google_credentials)
    raise SheetSyncConfigError(f"Unsupported source kind '{kind}'.")
