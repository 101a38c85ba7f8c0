"""Primary-key upsert of delimited rows into a table state.

This module validates file columns against a table schema and
applies rows as insert-or-update operations without side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from core.errors import SchemaMismatchError
from core.types import TableState


@dataclass(frozen=True)
class UpsertResult:
    """Table state after an upsert plus per-row operation counts."""

    state: TableState
    rows_processed: int
    additions: int
    modifications: int
    unchanged: int
    seen_keys: frozenset[str]


def apply_upsert(
    state: TableState | None,
    table_name: str,
    primary_key: str,
    columns: tuple[str, ...],
    rows: Sequence[Mapping[str, str]],
    source: Path | None = None,
) -> UpsertResult:
    """Apply rows to a table keyed by primary key.

    Unmatched keys are added. Matched keys whose non-key values differ are
    modified. Columns missing from ``columns`` keep their existing value.

    Args:
        state: Existing table, or ``None`` to create it from ``columns``.
        table_name: Target table name.
        primary_key: Primary-key column requested by the caller.
        columns: Header of the applied file.
        rows: Row mappings in file order.
        source: Optional file path used in error messages.

    Returns:
        Updated table state and operation counts.

    Raises:
        SchemaMismatchError: If columns are incompatible with the table.
    """
    origin = str(source) if source else "input rows"
    base = state or TableState(table_name=table_name, primary_key=primary_key, columns=columns)
    validate_columns(base, primary_key, columns, origin)
    updated_rows = {key: dict(row) for key, row in base.rows.items()}
    additions = modifications = unchanged = 0
    seen_keys: set[str] = set()
    for row_number, row in enumerate(rows, 1):
        key = row.get(primary_key, "").strip()
        if not key:
            raise SchemaMismatchError(
                f"Row {row_number} of {origin} has an empty primary key '{primary_key}'."
            )
        seen_keys.add(key)
        existing = updated_rows.get(key)
        if existing is None:
            new_row = {column: "" for column in base.columns}
            new_row.update({column: row.get(column, "") for column in columns})
            new_row[primary_key] = key
            updated_rows[key] = new_row
            additions += 1
            continue
        merged = dict(existing)
        merged.update({column: row.get(column, "") for column in columns if column != primary_key})
        if merged == existing:
            unchanged += 1
        else:
            updated_rows[key] = merged
            modifications += 1
    updated = TableState(
        table_name=table_name,
        primary_key=base.primary_key,
        columns=base.columns,
        rows=updated_rows,
    )
    return UpsertResult(
        state=updated,
        rows_processed=len(rows),
        additions=additions,
        modifications=modifications,
        unchanged=unchanged,
        seen_keys=frozenset(seen_keys),
    )


def remove_unseen_rows(state: TableState, seen_keys: set[str]) -> tuple[TableState, int]:
    """Drop rows whose key was not present in any replace-mode file.

    Returns:
        Pruned table state and the number of removed rows.
    """
    kept_rows = {key: row for key, row in state.rows.items() if key in seen_keys}
    pruned = TableState(
        table_name=state.table_name,
        primary_key=state.primary_key,
        columns=state.columns,
        rows=kept_rows,
    )
    return pruned, len(state.rows) - len(kept_rows)


def validate_columns(
    state: TableState,
    primary_key: str,
    columns: tuple[str, ...],
    origin: str,
) -> None:
    """Check a file header against an existing table schema.

    Raises:
        SchemaMismatchError: If the key differs, is missing, or columns are unknown.
    """
    if state.primary_key != primary_key:
        raise SchemaMismatchError(
            f"Table '{state.table_name}' is keyed on '{state.primary_key}', "
            f"but the import requested primary key '{primary_key}'."
        )
    if primary_key not in columns:
        raise SchemaMismatchError(
            f"Primary key column '{primary_key}' is missing from {origin}. "
            f"Found columns: {', '.join(columns)}."
        )
    unknown_columns = [column for column in columns if column not in state.columns]
    if unknown_columns:
        raise SchemaMismatchError(
            f"Columns {', '.join(unknown_columns)} in {origin} do not exist in table "
            f"'{state.table_name}' ({', '.join(state.columns)})."
        )
