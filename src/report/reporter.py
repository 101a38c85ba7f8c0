"""Diff reports between table revisions.

This module resolves revision references and builds the row-level
DiffReport for one table, defaulting to the revision's first parent.
"""

from __future__ import annotations

from core.errors import RevisionNotFoundError
from core.logging_config import get_logger
from core.types import DiffReport
from report.table_diff import compute_row_changes, union_columns
from store.revision_store import RevisionStore

_LOGGER = get_logger(__name__)


def generate_diff_report(
    store: RevisionStore,
    table_name: str,
    to_revision: str,
    from_revision: str | None = None,
) -> DiffReport:
    """Compute a table diff between two revisions.

    Args:
        store: Revision store to read from.
        table_name: Table to compare.
        to_revision: Newer revision reference.
        from_revision: Older revision reference; first parent when omitted.

    Returns:
        DiffReport ordered by primary key; empty when content is identical.

    Raises:
        RevisionNotFoundError: If either reference does not resolve, or the
            default parent is requested for a root revision.
    """
    to_manifest = store.resolve_revision(to_revision)
    if from_revision is None:
        if not to_manifest.parents:
            raise RevisionNotFoundError(
                f"Revision {to_manifest.revision_id} is a root revision without a parent. "
                "Pass an explicit revision to compare against."
            )
        from_revision = to_manifest.parents[0]
    from_manifest = store.resolve_revision(from_revision)
    older, newer = store.table_pair(
        table_name, from_manifest.revision_id, to_manifest.revision_id
    )
    report = DiffReport(
        table_name=table_name,
        primary_key=newer.primary_key or older.primary_key,
        from_revision=from_manifest.revision_id,
        to_revision=to_manifest.revision_id,
        columns=union_columns(older, newer),
        changes=compute_row_changes(older, newer),
    )
    _LOGGER.info(
        "diff_report_generated",
        table_name=table_name,
        from_revision=report.from_revision,
        to_revision=report.to_revision,
        **report.counts,
    )
    return report
