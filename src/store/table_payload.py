"""Content-addressed table object persistence.

This module hashes, writes, and reads immutable table objects.
Each object holds a schema file, a JSONL row mirror, and optionally
an Apache Lance columnar copy of the same rows.
"""

from __future__ import annotations

import hashlib
import json
import shutil
import uuid
from pathlib import Path
from typing import Any

from core.constants import LANCE_DIR_NAME, ROWS_FILE_NAME, SCHEMA_FILE_NAME
from core.errors import (
    SheetSyncDependencyError,
    SheetSyncError,
    SheetSyncStoreError,
    StoreUnavailableError,
)
from core.key_order import sorted_keys
from core.types import TableState


def table_content_hash(state: TableState) -> str:
    """Hash table content independent of its name.

    Args:
        state: Table content.

    Returns:
        Hex sha256 digest over primary key, columns, and key-ordered rows.
    """
    payload = {
        "primary_key": state.primary_key,
        "columns": list(state.columns),
        "rows": [
            [state.rows[key].get(column, "") for column in state.columns]
            for key in sorted_keys(state.rows)
        ],
    }
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def write_table_object(tables_dir: Path, state: TableState, columnar_mirror: bool) -> str:
    """Persist a table object unless identical content already exists.

    Args:
        tables_dir: Directory holding table objects.
        state: Table content to persist.
        columnar_mirror: Whether to also write a Lance dataset.

    Returns:
        Content hash naming the object directory.

    Raises:
        StoreUnavailableError: If the object cannot be written.
        SheetSyncDependencyError: If the columnar mirror is requested without lance.
    """
    object_hash = table_content_hash(state)
    object_dir = tables_dir / object_hash
    if object_dir.exists():
        return object_hash
    staging_dir = tables_dir / f".{object_hash}.{uuid.uuid4().hex}.tmp"
    try:
        staging_dir.mkdir(parents=True)
        _write_schema_file(staging_dir, state)
        _write_rows_file(staging_dir, state)
        if columnar_mirror:
            _write_lance_dataset(staging_dir, state)
        staging_dir.rename(object_dir)
    except OSError as error:
        shutil.rmtree(staging_dir, ignore_errors=True)
        if object_dir.exists():
            return object_hash
        raise StoreUnavailableError(
            f"Failed to persist table object at {object_dir}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    except SheetSyncError:
        shutil.rmtree(staging_dir, ignore_errors=True)
        raise
    return object_hash


def read_table_object(tables_dir: Path, table_name: str, object_hash: str) -> TableState:
    """Load a table object into a TableState.

    Args:
        tables_dir: Directory holding table objects.
        table_name: Name assigned to the loaded table.
        object_hash: Object content hash.

    Returns:
        Loaded table state.

    Raises:
        SheetSyncStoreError: If the object is missing or corrupt.
    """
    object_dir = tables_dir / object_hash
    schema = _read_json_file(object_dir / SCHEMA_FILE_NAME)
    primary_key = str(schema["primary_key"])
    columns = tuple(str(column) for column in schema["columns"])
    rows: dict[str, dict[str, str]] = {}
    rows_path = object_dir / ROWS_FILE_NAME
    for line_number, line in enumerate(_read_text(rows_path).splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_json_line(rows_path, line, line_number)
        row = {column: str(payload.get(column, "")) for column in columns}
        rows[row[primary_key]] = row
    return TableState(table_name=table_name, primary_key=primary_key, columns=columns, rows=rows)


def object_files(tables_dir: Path, object_hash: str) -> list[Path]:
    """List every file stored under one table object."""
    object_dir = tables_dir / object_hash
    return [path for path in sorted(object_dir.rglob("*")) if path.is_file()]


def _write_schema_file(object_dir: Path, state: TableState) -> None:
    schema = {"primary_key": state.primary_key, "columns": list(state.columns)}
    (object_dir / SCHEMA_FILE_NAME).write_text(
        json.dumps(schema, indent=2) + "\n", encoding="utf-8"
    )


def _write_rows_file(object_dir: Path, state: TableState) -> None:
    lines = [
        json.dumps(
            {column: state.rows[key].get(column, "") for column in state.columns},
            sort_keys=True,
            ensure_ascii=False,
        )
        for key in sorted_keys(state.rows)
    ]
    content = "\n".join(lines) + "\n" if lines else ""
    (object_dir / ROWS_FILE_NAME).write_text(content, encoding="utf-8")


def _write_lance_dataset(object_dir: Path, state: TableState) -> None:
    """Write rows to Apache Lance as string columns.

    Raises:
        SheetSyncDependencyError: If lance or pyarrow is missing.
        SheetSyncStoreError: If the Lance write fails.
    """
    try:
        import lance
        import pyarrow as pa
    except ImportError as error:
        raise SheetSyncDependencyError(
            "Columnar mirror requires pylance and pyarrow, but they are not installed. "
            "Install sheetsync[columnar] or unset SHEETSYNC_COLUMNAR_MIRROR."
        ) from error
    ordered_keys = sorted_keys(state.rows)
    table = pa.table(
        {
            column: pa.array(
                [state.rows[key].get(column, "") for key in ordered_keys], type=pa.string()
            )
            for column in state.columns
        }
    )
    lance_uri = str(object_dir / LANCE_DIR_NAME)
    try:
        lance.write_dataset(table, lance_uri, mode="overwrite")
    except Exception as error:
        raise SheetSyncStoreError(
            f"Failed to write Lance dataset at {lance_uri}: {error}. "
            "Validate lance/pyarrow compatibility and retry the import."
        ) from error


def _read_text(file_path: Path) -> str:
    if not file_path.exists():
        raise SheetSyncStoreError(
            f"Missing table object file {file_path}. The revision store is incomplete."
        )
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as error:
        raise StoreUnavailableError(
            f"Failed to read table object file {file_path}: {error}."
        ) from error


def _read_json_file(file_path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(_read_text(file_path))
    except json.JSONDecodeError as error:
        raise SheetSyncStoreError(
            f"Failed to parse table schema at {file_path}: {error.msg}."
        ) from error
    if not isinstance(payload, dict):
        raise SheetSyncStoreError(
            f"Failed to parse table schema at {file_path}: expected a JSON object."
        )
    return payload


def _parse_json_line(rows_path: Path, line: str, line_number: int) -> dict[str, Any]:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise SheetSyncStoreError(
            f"Failed to parse table rows at {rows_path}:{line_number}: {error.msg}."
        ) from error
    if not isinstance(payload, dict):
        raise SheetSyncStoreError(
            f"Failed to parse table rows at {rows_path}:{line_number}: "
            "expected a JSON object per line."
        )
    return payload
