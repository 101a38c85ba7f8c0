"""SheetSync exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class SheetSyncError(Exception):
    """Base exception for all SheetSync failures."""


class SheetSyncConfigError(SheetSyncError):
    """Raised for invalid runtime configuration."""


class SheetSyncDependencyError(SheetSyncError):
    """Raised when an optional runtime dependency is missing."""


class SheetSyncSpecError(SheetSyncError):
    """Raised for invalid or unsupported sync-spec files."""


class SheetSyncExportError(SheetSyncError):
    """Base class for exporter failures."""


class SourceUnavailableError(SheetSyncExportError):
    """Raised when the external tabular source cannot be reached."""


class AuthorizationError(SheetSyncExportError):
    """Raised when source credentials are missing or rejected."""


class RangeInvalidError(SheetSyncExportError):
    """Raised when a requested sheet or cell range does not exist."""


class SheetSyncStoreError(SheetSyncError):
    """Base class for revision store and importer failures."""


class SchemaMismatchError(SheetSyncStoreError):
    """Raised when file columns are incompatible with the table schema."""


class StoreUnavailableError(SheetSyncStoreError):
    """Raised when the revision store cannot be read or written."""


class ConflictError(SheetSyncStoreError):
    """Raised when a branch head moved between read and commit."""


class RevisionNotFoundError(SheetSyncStoreError):
    """Raised when a revision reference does not resolve."""


class PipelineStageError(SheetSyncError):
    """Raised by the orchestrator when a stage terminates the run.

    Attributes:
        stage: Name of the stage that failed.
        cause: Original stage error.
    """

    def __init__(self, stage: str, cause: SheetSyncError) -> None:
        super().__init__(f"{stage} failed: {type(cause).__name__}: {cause}")
        self.stage = stage
        self.cause = cause


TRANSIENT_ERRORS: tuple[type[SheetSyncError], ...] = (
    SourceUnavailableError,
    StoreUnavailableError,
)
