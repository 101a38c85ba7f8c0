"""Row-level table comparison.

This module compares two table states keyed by primary key and
produces ordered added/removed/modified row changes.
"""

from __future__ import annotations

from core.key_order import sorted_keys
from core.types import RowChange, TableState


def union_columns(older: TableState, newer: TableState) -> tuple[str, ...]:
    """Return newer columns followed by columns only the older table had."""
    extra_columns = [column for column in older.columns if column not in newer.columns]
    return tuple(newer.columns) + tuple(extra_columns)


def compute_row_changes(older: TableState, newer: TableState) -> tuple[RowChange, ...]:
    """Compare two table states row by row.

    Args:
        older: Table content in the earlier revision.
        newer: Table content in the later revision.

    Returns:
        Row changes ordered by primary key ascending.
    """
    columns = union_columns(older, newer)
    changes: list[RowChange] = []
    for key in sorted_keys(set(older.rows) | set(newer.rows)):
        before = older.rows.get(key)
        after = newer.rows.get(key)
        if before is None and after is not None:
            changes.append(RowChange(kind="added", key=key, before=None, after=dict(after)))
        elif after is None and before is not None:
            changes.append(RowChange(kind="removed", key=key, before=dict(before), after=None))
        elif before is not None and after is not None:
            changed_columns = tuple(
                column for column in columns if before.get(column, "") != after.get(column, "")
            )
            if changed_columns:
                changes.append(
                    RowChange(
                        kind="modified",
                        key=key,
                        before=dict(before),
                        after=dict(after),
                        changed_columns=changed_columns,
                    )
                )
    return tuple(changes)


def empty_table(table_name: str, primary_key: str) -> TableState:
    """Build an empty table used when a revision lacks the table."""
    columns = (primary_key,) if primary_key else ()
    return TableState(table_name=table_name, primary_key=primary_key, columns=columns)
