"""Content-addressed revision store.

This module persists immutable table revisions with parent lineage,
mutable branch heads advanced by compare-and-swap, row-level diffs
between revisions, and best-effort pushes to an S3 remote.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from core.config import SheetSyncConfig
from core.constants import (
    HEADS_DIR_NAME,
    MIN_REVISION_PREFIX_LENGTH,
    OBJECTS_DIR_NAME,
    REFS_DIR_NAME,
    REMOTES_DIR_NAME,
    REVISIONS_DIR_NAME,
    ROOT_COMMIT_MESSAGE,
    TABLES_DIR_NAME,
)
from core.errors import (
    ConflictError,
    RevisionNotFoundError,
    SheetSyncConfigError,
    SheetSyncError,
    StoreUnavailableError,
)
from core.logging_config import get_logger
from core.s3_uri import parse_s3_uri
from core.types import PushResult, RevisionManifest, RowChange, TableState
from report.table_diff import compute_row_changes, empty_table
from store.refs_io import compare_and_swap_ref, read_ref, write_ref
from store.revision_io import (
    build_revision_id,
    list_revision_ids,
    read_revision_manifest,
    revision_path,
    write_revision_manifest,
)
from store.s3_push import create_s3_client, upload_files
from store.table_payload import object_files, read_table_object, write_table_object

_LOGGER = get_logger(__name__)
_BRANCH_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*(/[A-Za-z0-9][A-Za-z0-9._-]*)*$")


class RevisionStore:
    """Local revision store implementation.

    This class owns table objects, revision manifests, and branch refs
    under the configured data root.
    """

    def __init__(self, config: SheetSyncConfig) -> None:
        """Initialize revision store from config.

        Args:
            config: Runtime configuration.

        Raises:
            StoreUnavailableError: If store directories cannot be created.
        """
        self._config = config
        self._root = config.data_root
        self._tables_dir = self._root / OBJECTS_DIR_NAME / TABLES_DIR_NAME
        self._revisions_dir = self._root / REVISIONS_DIR_NAME
        self._heads_dir = self._root / REFS_DIR_NAME / HEADS_DIR_NAME
        self._remotes_dir = self._root / REFS_DIR_NAME / REMOTES_DIR_NAME
        try:
            for directory in (self._tables_dir, self._revisions_dir, self._heads_dir):
                directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StoreUnavailableError(
                f"Failed to open revision store at {self._root}: {error}. "
                "Check SHEETSYNC_DATA_ROOT and directory permissions."
            ) from error

    @property
    def root(self) -> Path:
        return self._root

    def current_head(self, branch: str) -> str | None:
        """Return the revision id at a branch head, or ``None`` if absent."""
        return read_ref(self._head_path(branch))

    def initialize_branch(self, branch: str) -> str:
        """Create an empty root revision for a branch if it has no head.

        Args:
            branch: Branch name.

        Returns:
            Current head revision id.
        """
        head = self.current_head(branch)
        if head is not None:
            return head
        manifest = _build_manifest(parents=(), tables={}, row_counts={}, message=ROOT_COMMIT_MESSAGE)
        write_revision_manifest(self._revisions_dir, manifest)
        try:
            compare_and_swap_ref(self._head_path(branch), None, manifest.revision_id)
        except ConflictError:
            concurrent_head = self.current_head(branch)
            if concurrent_head is None:
                raise
            return concurrent_head
        _LOGGER.info("branch_initialized", branch=branch, revision_id=manifest.revision_id)
        return manifest.revision_id

    def create_branch(self, branch: str, from_ref: str) -> str:
        """Create a new branch pointing at an existing revision.

        Args:
            branch: New branch name.
            from_ref: Revision reference for the new head.

        Returns:
            New branch head revision id.

        Raises:
            ConflictError: If the branch already exists.
        """
        manifest = self.resolve_revision(from_ref)
        compare_and_swap_ref(self._head_path(branch), None, manifest.revision_id)
        _LOGGER.info("branch_created", branch=branch, revision_id=manifest.revision_id)
        return manifest.revision_id

    def list_branches(self) -> list[str]:
        return sorted(
            path.relative_to(self._heads_dir).as_posix()
            for path in self._heads_dir.rglob("*")
            if path.is_file() and path.suffix not in (".lock", ".tmp")
        )

    def resolve_revision(self, reference: str) -> RevisionManifest:
        """Resolve a branch name, full id, or unique id prefix.

        Args:
            reference: Revision reference.

        Returns:
            Resolved manifest.

        Raises:
            RevisionNotFoundError: If the reference does not resolve uniquely.
        """
        if _BRANCH_PATTERN.match(reference) and not reference.endswith((".lock", ".tmp")):
            head = read_ref(self._heads_dir / reference)
            if head is not None:
                return read_revision_manifest(self._revisions_dir, head)
        if revision_path(self._revisions_dir, reference).exists():
            return read_revision_manifest(self._revisions_dir, reference)
        if len(reference) >= MIN_REVISION_PREFIX_LENGTH:
            matches = [
                revision_id
                for revision_id in list_revision_ids(self._revisions_dir)
                if revision_id.startswith(reference)
            ]
            if len(matches) == 1:
                return read_revision_manifest(self._revisions_dir, matches[0])
            if len(matches) > 1:
                raise RevisionNotFoundError(
                    f"Revision prefix '{reference}' is ambiguous ({len(matches)} matches). "
                    "Provide more characters of the revision id."
                )
        raise RevisionNotFoundError(
            f"Revision '{reference}' not found as a branch, revision id, or id prefix. "
            "Use 'sheetsync log' to list revisions."
        )

    def load_table(self, revision_id: str, table_name: str) -> TableState | None:
        """Load one table from a revision.

        Args:
            revision_id: Full revision id.
            table_name: Table to load.

        Returns:
            Table state, or ``None`` if the revision has no such table.
        """
        manifest = read_revision_manifest(self._revisions_dir, revision_id)
        object_hash = manifest.tables.get(table_name)
        if object_hash is None:
            return None
        return read_table_object(self._tables_dir, table_name, object_hash)

    def commit(
        self,
        branch: str,
        parent: str,
        tables: Mapping[str, TableState],
        message: str,
    ) -> RevisionManifest:
        """Commit updated tables on top of ``parent`` and advance the branch.

        Args:
            branch: Branch to advance.
            parent: Head revision the update was computed against.
            tables: Updated tables by name; other tables carry over.
            message: Commit message.

        Returns:
            Committed revision manifest.

        Raises:
            ConflictError: If the branch head is no longer ``parent``.
            StoreUnavailableError: If persistence fails.
        """
        parent_manifest = read_revision_manifest(self._revisions_dir, parent)
        table_hashes = dict(parent_manifest.tables)
        row_counts = dict(parent_manifest.row_counts)
        for table_name, state in tables.items():
            table_hashes[table_name] = write_table_object(
                self._tables_dir, state, self._config.columnar_mirror
            )
            row_counts[table_name] = len(state.rows)
        manifest = _build_manifest(
            parents=(parent,), tables=table_hashes, row_counts=row_counts, message=message
        )
        write_revision_manifest(self._revisions_dir, manifest)
        compare_and_swap_ref(self._head_path(branch), parent, manifest.revision_id)
        _LOGGER.info(
            "revision_committed",
            branch=branch,
            revision_id=manifest.revision_id,
            parent_revision_id=parent,
            tables=sorted(tables),
        )
        return manifest

    def log(self, reference: str, limit: int | None = None) -> list[RevisionManifest]:
        """Walk first-parent history from a reference, newest first.

        Args:
            reference: Branch name or revision reference.
            limit: Optional maximum number of revisions.

        Returns:
            Revision manifests newest first.
        """
        manifest: RevisionManifest | None = self.resolve_revision(reference)
        history: list[RevisionManifest] = []
        while manifest is not None and (limit is None or len(history) < limit):
            history.append(manifest)
            if not manifest.parents:
                break
            manifest = read_revision_manifest(self._revisions_dir, manifest.parents[0])
        return history

    def diff(self, table_name: str, from_ref: str, to_ref: str) -> tuple[RowChange, ...]:
        """Compute row changes of one table between two revisions.

        Args:
            table_name: Table to compare.
            from_ref: Older revision reference.
            to_ref: Newer revision reference.

        Returns:
            Row changes ordered by primary key.
        """
        older, newer = self.table_pair(table_name, from_ref, to_ref)
        return compute_row_changes(older, newer)

    def table_pair(
        self, table_name: str, from_ref: str, to_ref: str
    ) -> tuple[TableState, TableState]:
        """Load a table from two revisions, substituting empty tables when absent.

        Raises:
            RevisionNotFoundError: If either reference does not resolve.
        """
        from_manifest = self.resolve_revision(from_ref)
        to_manifest = self.resolve_revision(to_ref)
        older = self.load_table(from_manifest.revision_id, table_name)
        newer = self.load_table(to_manifest.revision_id, table_name)
        primary_key = (newer or older).primary_key if (newer or older) else ""
        return (
            older or empty_table(table_name, primary_key),
            newer or empty_table(table_name, primary_key),
        )

    def push(self, branch: str) -> PushResult:
        """Push unpublished revisions of a branch to the S3 remote.

        Client, upload, and remote-ref failures are reported in the result;
        local state is untouched.

        Args:
            branch: Branch to push.

        Returns:
            Push result.

        Raises:
            SheetSyncConfigError: If no remote is configured.
            RevisionNotFoundError: If the branch does not exist.
        """
        remote_uri = self._config.remote_uri
        if not remote_uri:
            raise SheetSyncConfigError(
                "No remote configured for push. Set SHEETSYNC_REMOTE_URI to s3://bucket/prefix."
            )
        location = parse_s3_uri(remote_uri)
        head = self.current_head(branch)
        if head is None:
            raise RevisionNotFoundError(
                f"Branch '{branch}' does not exist. Import data before pushing."
            )
        remote_ref_path = self._remotes_dir / branch
        pushed_head = read_ref(remote_ref_path)
        if pushed_head == head:
            return PushResult(branch=branch, revision_id=head, remote_uri=remote_uri, succeeded=True)
        local_files = self._unpublished_files(head, pushed_head) + [self._head_path(branch)]
        try:
            s3_client = create_s3_client(self._config)
            uploaded = upload_files(s3_client, self._root, local_files, location)
            write_ref(remote_ref_path, head)
        except SheetSyncError as error:
            failure = f"{type(error).__name__}: {error}"
            _LOGGER.warning("push_failed", branch=branch, revision_id=head, error=failure)
            return PushResult(
                branch=branch,
                revision_id=head,
                remote_uri=remote_uri,
                succeeded=False,
                error=failure,
            )
        _LOGGER.info(
            "branch_pushed",
            branch=branch,
            revision_id=head,
            remote_uri=remote_uri,
            uploaded_objects=uploaded,
        )
        return PushResult(
            branch=branch,
            revision_id=head,
            remote_uri=remote_uri,
            succeeded=True,
            uploaded_objects=uploaded,
        )

    def _unpublished_files(self, head: str, pushed_head: str | None) -> list[Path]:
        """Collect table objects, then manifests, for revisions after ``pushed_head``."""
        manifests: list[RevisionManifest] = []
        revision_id: str | None = head
        while revision_id is not None and revision_id != pushed_head:
            manifest = read_revision_manifest(self._revisions_dir, revision_id)
            manifests.append(manifest)
            revision_id = manifest.parents[0] if manifest.parents else None
        object_hashes = sorted({value for manifest in manifests for value in manifest.tables.values()})
        files: list[Path] = []
        for object_hash in object_hashes:
            files.extend(object_files(self._tables_dir, object_hash))
        for manifest in reversed(manifests):
            files.append(revision_path(self._revisions_dir, manifest.revision_id))
        return files

    def _head_path(self, branch: str) -> Path:
        if not _BRANCH_PATTERN.match(branch) or branch.endswith((".lock", ".tmp")):
            raise SheetSyncConfigError(
                f"Invalid branch name '{branch}'. Use letters, digits, '.', '_', '-', or '/'."
            )
        return self._heads_dir / branch


def _build_manifest(
    parents: tuple[str, ...],
    tables: Mapping[str, str],
    row_counts: Mapping[str, int],
    message: str,
) -> RevisionManifest:
    return RevisionManifest(
        revision_id=build_revision_id(parents, tables),
        parents=parents,
        tables=dict(tables),
        row_counts=dict(row_counts),
        message=message,
        created_at=datetime.now(timezone.utc),
    )
