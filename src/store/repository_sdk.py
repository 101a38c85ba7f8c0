"""Python SDK for sync and table operations.

This module exposes high-level APIs for export, import, diff, history,
and push backed by the revision store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Sequence

from core.config import SheetSyncConfig
from core.types import (
    DiffReport,
    ExportedFile,
    ExportRequest,
    ImportOutcome,
    ImportRequest,
    PushResult,
    RevisionManifest,
    SyncOptions,
    SyncResult,
    TableState,
)
from export.exporter import export_tables
from export.sheet_sources import TabularSource, build_source
from ingest.importer import TableImporter
from report.reporter import generate_diff_report
from store.revision_store import RevisionStore
from sync.pipeline import SyncPipelineRunner


class SheetSyncClient:
    """Primary SDK entry point for sync workflows."""

    def __init__(self, config: SheetSyncConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or SheetSyncConfig.from_env()
        self._store = RevisionStore(self._config)

    @property
    def config(self) -> SheetSyncConfig:
        return self._config

    @property
    def store(self) -> RevisionStore:
        return self._store

    def export(
        self,
        requests: Sequence[ExportRequest],
        output_dir: str,
        source: TabularSource | None = None,
        source_kind: str | None = None,
    ) -> list[ExportedFile]:
        """Export source ranges to CSV files in an existing directory.

        Args:
            requests: Ordered export requests.
            output_dir: Caller-owned output directory.
            source: Optional source instance.
            source_kind: Optional override of the configured source kind.

        Returns:
            Exported files in request order.
        """
        resolved_source = source or build_source(self._config, source_kind)
        return export_tables(
            requests,
            resolved_source,
            Path(output_dir).expanduser().resolve(),
            max_workers=self._config.export_workers,
        )

    def import_files(self, request: ImportRequest) -> ImportOutcome:
        """Import exported files into a table.

        Args:
            request: Import request.

        Returns:
            Import outcome.
        """
        return TableImporter(self._store, self._config).import_files(request)

    def sync(self, options: SyncOptions, source: TabularSource | None = None) -> SyncResult:
        """Run export, import, and report as one pipeline.

        Args:
            options: Pipeline options.
            source: Optional source instance.

        Returns:
            Sync result.
        """
        runner = SyncPipelineRunner(options, self._config, source=source, store=self._store)
        return runner.run()

    def table(self, table_name: str) -> "TableHandle":
        """Get table handle by name.

        Args:
            table_name: Table identifier.

        Returns:
            Table handle.
        """
        return TableHandle(table_name, self._store)

    def push(self, branch: str) -> PushResult:
        return self._store.push(branch)

    def with_data_root(self, data_root: str) -> "SheetSyncClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        return SheetSyncClient(replace(self._config, data_root=resolved_root))


class TableHandle:
    """Table-scoped operations."""

    def __init__(self, table_name: str, store: RevisionStore) -> None:
        self._table_name = table_name
        self._store = store

    @property
    def name(self) -> str:
        return self._table_name

    def load(self, revision: str) -> TableState | None:
        """Load table content at a revision reference.

        Args:
            revision: Branch name, revision id, or id prefix.

        Returns:
            Table content, or ``None`` when the revision lacks the table.
        """
        manifest = self._store.resolve_revision(revision)
        return self._store.load_table(manifest.revision_id, self._table_name)

    def diff(self, to_revision: str, from_revision: str | None = None) -> DiffReport:
        """Compute a diff report for this table.

        Args:
            to_revision: Newer revision reference.
            from_revision: Older revision reference; first parent when omitted.

        Returns:
            Diff report.
        """
        return generate_diff_report(self._store, self._table_name, to_revision, from_revision)

    def log(self, branch: str, limit: int | None = None) -> list[RevisionManifest]:
        """List revisions on a branch that contain this table, newest first."""
        return [
            manifest
            for manifest in self._store.log(branch, limit)
            if self._table_name in manifest.tables
        ]
