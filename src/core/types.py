"""Shared typed models.

This module defines immutable data models used by export, ingest,
store, report, and sync layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal, Mapping

from core.constants import (
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REPORT_FORMAT,
    DEFAULT_RETRY_WAIT_SECONDS,
)

RowChangeKind = Literal["added", "removed", "modified"]
ImportMode = Literal["upsert", "replace"]
ReportFormat = Literal["text", "json", "markdown"]


@dataclass(frozen=True)
class ExportRequest:
    """One logical table or cell range to fetch from a source.

    Attributes:
        source_id: Opaque external identifier, e.g. a spreadsheet id.
        sub_range_name: Optional named sub-range, e.g. a sheet title.
        cell_range: Optional A1-notation cell range.
    """

    source_id: str
    sub_range_name: str | None = None
    cell_range: str | None = None

    @property
    def range_notation(self) -> str | None:
        """Render the request range in ``Sheet!A1:C9`` notation."""
        if self.sub_range_name and self.cell_range:
            return f"{self.sub_range_name}!{self.cell_range}"
        return self.sub_range_name or self.cell_range

    def describe(self) -> str:
        """Render a compact reference string for logs and errors."""
        notation = self.range_notation
        return f"{self.source_id}#{notation}" if notation else self.source_id


@dataclass(frozen=True)
class ExportedFile:
    """Delimited-text result of one export request.

    Attributes:
        request: Request that produced the file.
        path: Location of the CSV file.
        columns: Header row written to the file.
        row_count: Number of data rows, header excluded.
    """

    request: ExportRequest
    path: Path
    columns: tuple[str, ...]
    row_count: int


@dataclass(frozen=True)
class TableState:
    """Full content of one versioned table.

    Attributes:
        table_name: Table identifier.
        primary_key: Declared primary-key column.
        columns: Ordered column names, primary key included.
        rows: Row mappings keyed by primary-key value.
    """

    table_name: str
    primary_key: str
    columns: tuple[str, ...]
    rows: Mapping[str, Mapping[str, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class PushResult:
    """Outcome of propagating a branch to the remote store.

    Attributes:
        branch: Pushed branch name.
        revision_id: Branch head at push time.
        remote_uri: Remote destination.
        succeeded: Whether every upload completed.
        uploaded_objects: Number of files uploaded.
        error: Failure description when ``succeeded`` is false.
    """

    branch: str
    revision_id: str
    remote_uri: str
    succeeded: bool
    uploaded_objects: int = 0
    error: str | None = None


@dataclass(frozen=True)
class ImportOutcome:
    """Result of applying exported files to a table.

    Attributes:
        table_name: Target table.
        branch: Target branch.
        rows_processed: Data rows read from all files.
        additions: Rows inserted under a new primary key.
        modifications: Matched rows with changed non-key values.
        unchanged: Matched rows with identical content.
        deletions: Rows removed because replace mode did not see their key.
        revision_id: New revision, or ``None`` when nothing changed.
        parent_revision_id: Branch head the import was applied against.
        push: Push result when propagation was requested.
    """

    table_name: str
    branch: str
    rows_processed: int
    additions: int
    modifications: int
    unchanged: int
    revision_id: str | None
    parent_revision_id: str
    deletions: int = 0
    push: PushResult | None = None

    @property
    def changed(self) -> bool:
        return self.revision_id is not None


@dataclass(frozen=True)
class RevisionManifest:
    """Immutable revision metadata.

    Attributes:
        revision_id: Content-addressed identifier.
        parents: Parent revision ids; empty for a root revision.
        tables: Table name to stored table object hash.
        row_counts: Table name to row count.
        message: Human readable commit message.
        created_at: UTC commit timestamp.
    """

    revision_id: str
    parents: tuple[str, ...]
    tables: Mapping[str, str]
    row_counts: Mapping[str, int]
    message: str
    created_at: datetime


@dataclass(frozen=True)
class RowChange:
    """One row-level difference between two revisions.

    Attributes:
        kind: ``added``, ``removed``, or ``modified``.
        key: Primary-key value.
        before: Row in the older revision, if any.
        after: Row in the newer revision, if any.
        changed_columns: Columns whose values differ.
    """

    kind: RowChangeKind
    key: str
    before: Mapping[str, str] | None
    after: Mapping[str, str] | None
    changed_columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiffReport:
    """Row-level change set for one table between two revisions.

    Attributes:
        table_name: Compared table.
        primary_key: Key column used to match rows.
        from_revision: Older revision id.
        to_revision: Newer revision id.
        columns: Union of columns across both revisions.
        changes: Row changes ordered by primary key ascending.
    """

    table_name: str
    primary_key: str
    from_revision: str
    to_revision: str
    columns: tuple[str, ...]
    changes: tuple[RowChange, ...]

    @property
    def is_empty(self) -> bool:
        return not self.changes

    @property
    def counts(self) -> dict[str, int]:
        """Count changes per kind."""
        totals = {"added": 0, "removed": 0, "modified": 0}
        for change in self.changes:
            totals[change.kind] += 1
        return totals


@dataclass(frozen=True)
class ImportRequest:
    """Importer input.

    Attributes:
        file_paths: Exported files applied in order.
        table_name: Target table.
        primary_key: Primary-key column.
        branch: Target branch.
        message: Commit message for a new revision.
        expected_head: Optional head reference (full id, unique prefix, or branch)
            the caller read earlier.
        push: Whether to push the branch after a successful commit.
        mode: ``upsert`` keeps unseen rows, ``replace`` removes them.
    """

    file_paths: tuple[Path, ...]
    table_name: str
    primary_key: str
    branch: str = DEFAULT_BRANCH
    message: str = DEFAULT_COMMIT_MESSAGE
    expected_head: str | None = None
    push: bool = False
    mode: ImportMode = "upsert"


@dataclass(frozen=True)
class SyncOptions:
    """Options for one end-to-end pipeline run.

    Attributes:
        requests: Ordered export requests.
        table_name: Target table.
        primary_key: Primary-key column.
        branch: Target branch.
        message: Commit message.
        source_kind: Optional override of the configured source kind.
        push: Whether to push after commit.
        import_mode: ``upsert`` or ``replace``.
        report_format: Diff rendering format.
        max_attempts: Attempts per stage for transient errors.
        retry_wait_seconds: Base exponential backoff between attempts.
    """

    requests: tuple[ExportRequest, ...]
    table_name: str
    primary_key: str
    branch: str = DEFAULT_BRANCH
    message: str = DEFAULT_COMMIT_MESSAGE
    source_kind: str | None = None
    push: bool = False
    import_mode: ImportMode = "upsert"
    report_format: ReportFormat = DEFAULT_REPORT_FORMAT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_wait_seconds: float = DEFAULT_RETRY_WAIT_SECONDS


@dataclass(frozen=True)
class SyncResult:
    """Output of a completed pipeline run.

    Attributes:
        exported_files: Number of files exported.
        outcome: Import outcome.
        report: Diff report, absent when the import changed nothing.
        rendered_report: Report rendered in the requested format.
    """

    exported_files: int
    outcome: ImportOutcome
    report: DiffReport | None = None
    rendered_report: str | None = None
