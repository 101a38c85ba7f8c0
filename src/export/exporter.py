"""Export tabular source ranges to delimited files.

This module fetches requests concurrently and writes one CSV file per
request in input order into a caller-owned directory.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
import re
from typing import Sequence

from core.constants import DEFAULT_EXPORT_WORKERS, EXPORT_FILE_SUFFIX
from core.delimited_text import pad_grid, write_delimited_file
from core.errors import RangeInvalidError, SheetSyncConfigError
from core.logging_config import get_logger
from core.types import ExportedFile, ExportRequest
from export.sheet_sources import TabularSource

_LOGGER = get_logger(__name__)
_SLUG_PATTERN = re.compile(r"[^A-Za-z0-9]+")


def export_tables(
    requests: Sequence[ExportRequest],
    source: TabularSource,
    output_dir: Path,
    max_workers: int = DEFAULT_EXPORT_WORKERS,
) -> list[ExportedFile]:
    """Export every request to a CSV file, preserving input order.

    Fetches run concurrently; files are written in input order. When
    request ``i`` fails, files for earlier requests stay on disk.

    Args:
        requests: Ordered export requests.
        source: Tabular source to read from.
        output_dir: Existing directory owned by the caller.
        max_workers: Maximum concurrent fetches.

    Returns:
        Exported files in the same order as ``requests``.

    Raises:
        SheetSyncConfigError: If ``output_dir`` does not exist.
        SourceUnavailableError: If the source cannot be reached.
        AuthorizationError: If the source rejects the credentials.
        RangeInvalidError: If a requested range does not exist or is empty.
    """
    if not output_dir.is_dir():
        raise SheetSyncConfigError(
            f"Export directory {output_dir} does not exist. "
            "The caller must create the working directory before exporting."
        )
    if not requests:
        return []
    exported: list[ExportedFile] = []
    worker_count = max(1, min(max_workers, len(requests)))
    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="sheetsync-export") as pool:
        futures: list[Future[list[list[str]]]] = [
            pool.submit(source.fetch_rows, request) for request in requests
        ]
        try:
            for index, (request, future) in enumerate(zip(requests, futures), 1):
                grid = pad_grid(future.result())
                exported.append(_write_export(output_dir, index, request, grid))
        except BaseException:
            for pending in futures:
                pending.cancel()
            raise
    _LOGGER.info(
        "tables_exported",
        output_dir=str(output_dir),
        file_count=len(exported),
        row_count=sum(item.row_count for item in exported),
    )
    return exported


def export_file_name(index: int, request: ExportRequest) -> str:
    """Build a unique, ordered file name for one request."""
    label = request.sub_range_name or Path(request.source_id).stem or request.source_id
    slug = _SLUG_PATTERN.sub("-", label).strip("-").lower() or "range"
    return f"{index:03d}-{slug}{EXPORT_FILE_SUFFIX}"


def _write_export(
    output_dir: Path, index: int, request: ExportRequest, grid: list[list[str]]
) -> ExportedFile:
    if not grid or not any(cell.strip() for cell in grid[0]):
        raise RangeInvalidError(
            f"Range {request.describe()} returned no header row. "
            "Point the request at a range whose first row names the columns."
        )
    file_path = output_dir / export_file_name(index, request)
    write_delimited_file(file_path, grid)
    return ExportedFile(
        request=request,
        path=file_path,
        columns=tuple(grid[0]),
        row_count=len(grid) - 1,
    )
