"""Import exported files into the revision store.

This module applies delimited files to a table as primary-key upserts
and commits exactly one revision when the table content changed.
"""

from __future__ import annotations

from core.config import SheetSyncConfig
from core.delimited_text import read_delimited_file
from core.errors import SheetSyncConfigError
from core.logging_config import get_logger
from core.s3_uri import parse_s3_uri
from core.types import ImportOutcome, ImportRequest, PushResult, TableState
from ingest.table_upsert import apply_upsert, remove_unseen_rows
from store.revision_store import RevisionStore
from store.table_payload import table_content_hash

_LOGGER = get_logger(__name__)


class TableImporter:
    """Applies exported files to a branch of a revision store."""

    def __init__(self, store: RevisionStore, config: SheetSyncConfig) -> None:
        self._store = store
        self._config = config

    def import_files(self, request: ImportRequest) -> ImportOutcome:
        """Upsert files into a table and commit when content changed.

        Args:
            request: Import request.

        Returns:
            Outcome with operation counts; ``revision_id`` is ``None``
            when the files produced no change.

        Raises:
            SchemaMismatchError: If a file is incompatible with the table.
            StoreUnavailableError: If the store cannot be read or written.
            ConflictError: If the branch head moved before the commit.
            RevisionNotFoundError: If ``expected_head`` does not resolve.
            SheetSyncConfigError: If push is requested without a valid remote.
        """
        if not request.file_paths:
            raise SheetSyncConfigError(
                f"No files given for import into table '{request.table_name}'."
            )
        if request.push:
            if not self._config.remote_uri:
                raise SheetSyncConfigError(
                    "Push requested but SHEETSYNC_REMOTE_URI is not set. "
                    "Configure a remote or import without push."
                )
            parse_s3_uri(self._config.remote_uri)
        if request.expected_head:
            parent = self._store.resolve_revision(request.expected_head).revision_id
        else:
            parent = self._store.initialize_branch(request.branch)
        base_state = self._store.load_table(parent, request.table_name)
        state = base_state
        rows_processed = additions = modifications = unchanged = deletions = 0
        seen_keys: set[str] = set()
        for file_path in request.file_paths:
            columns, rows = read_delimited_file(file_path)
            result = apply_upsert(
                state, request.table_name, request.primary_key, columns, rows, source=file_path
            )
            state = result.state
            rows_processed += result.rows_processed
            additions += result.additions
            modifications += result.modifications
            unchanged += result.unchanged
            seen_keys.update(result.seen_keys)
        if request.mode == "replace" and state is not None:
            state, deletions = remove_unseen_rows(state, seen_keys)
        if state is None or not _content_changed(base_state, state):
            _LOGGER.info(
                "import_unchanged",
                table_name=request.table_name,
                branch=request.branch,
                revision_id=parent,
                rows_processed=rows_processed,
            )
            return ImportOutcome(
                table_name=request.table_name,
                branch=request.branch,
                rows_processed=rows_processed,
                additions=additions,
                modifications=modifications,
                unchanged=unchanged,
                revision_id=None,
                parent_revision_id=parent,
                deletions=deletions,
            )
        manifest = self._store.commit(
            request.branch, parent, {request.table_name: state}, request.message
        )
        push_result = self._push_if_requested(request)
        _LOGGER.info(
            "import_completed",
            table_name=request.table_name,
            branch=request.branch,
            revision_id=manifest.revision_id,
            rows_processed=rows_processed,
            additions=additions,
            modifications=modifications,
            unchanged=unchanged,
            deletions=deletions,
        )
        return ImportOutcome(
            table_name=request.table_name,
            branch=request.branch,
            rows_processed=rows_processed,
            additions=additions,
            modifications=modifications,
            unchanged=unchanged,
            revision_id=manifest.revision_id,
            parent_revision_id=parent,
            deletions=deletions,
            push=push_result,
        )

    def _push_if_requested(self, request: ImportRequest) -> PushResult | None:
        if not request.push:
            return None
        result = self._store.push(request.branch)
        if not result.succeeded:
            _LOGGER.warning(
                "import_push_failed",
                branch=request.branch,
                revision_id=result.revision_id,
                error=result.error,
            )
        return result


def _content_changed(base_state: TableState | None, state: TableState) -> bool:
    if base_state is None:
        return True
    return table_content_hash(base_state) != table_content_hash(state)
