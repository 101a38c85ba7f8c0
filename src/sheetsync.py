"""Public SDK surface for SheetSync.

This module provides a stable import path for SDK users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import SheetSyncConfig
from core.errors import (
    AuthorizationError,
    ConflictError,
    PipelineStageError,
    RangeInvalidError,
    RevisionNotFoundError,
    SchemaMismatchError,
    SheetSyncError,
    SourceUnavailableError,
    StoreUnavailableError,
)
from core.sync_spec import load_sync_spec, parse_request_ref
from core.types import (
    DiffReport,
    ExportedFile,
    ExportRequest,
    ImportOutcome,
    ImportRequest,
    RowChange,
    SyncOptions,
    SyncResult,
)
from export.google_sheets import GoogleSheetsSource
from export.sheet_sources import LocalCsvSource, TabularSource
from report.diff_render import render_report
from store.repository_sdk import SheetSyncClient, TableHandle
from sync.pipeline import PipelineStage, run_sync

__all__ = [
    "AuthorizationError",
    "ConflictError",
    "DiffReport",
    "ExportRequest",
    "ExportedFile",
    "GoogleSheetsSource",
    "ImportOutcome",
    "ImportRequest",
    "LocalCsvSource",
    "PipelineStage",
    "PipelineStageError",
    "RangeInvalidError",
    "RevisionNotFoundError",
    "RowChange",
    "SchemaMismatchError",
    "SheetSyncClient",
    "SheetSyncConfig",
    "SheetSyncError",
    "SourceUnavailableError",
    "StoreUnavailableError",
    "SyncOptions",
    "SyncResult",
    "TableHandle",
    "TabularSource",
    "load_sync_spec",
    "parse_request_ref",
    "render_report",
    "run_sync",
]
