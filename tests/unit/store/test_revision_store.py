"""Unit tests for the content-addressed revision store."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.errors import ConflictError, RevisionNotFoundError, SheetSyncConfigError
from core.types import TableState
from store.refs_io import compare_and_swap_ref
from store.revision_store import RevisionStore


def _table(**rows: str) -> TableState:
    return TableState(
        table_name="animals",
        primary_key="id",
        columns=("id", "name"),
        rows={key: {"id": key, "name": name} for key, name in rows.items()},
    )


def test_initialize_branch_creates_root_revision(sync_config) -> None:
    """A new branch should point at an empty root revision."""
    store = RevisionStore(sync_config)

    head = store.initialize_branch("main")

    manifest = store.resolve_revision(head)
    assert (manifest.parents, manifest.tables, store.initialize_branch("main")) == ((), {}, head)


def test_commit_is_content_addressed(sync_config, tmp_path) -> None:
    """Equal content on equal parents should yield equal revision ids."""
    first_store = RevisionStore(sync_config)
    second_store = RevisionStore(replace(sync_config, data_root=tmp_path / "other"))
    revisions = []
    for store in (first_store, second_store):
        root = store.initialize_branch("main")
        revisions.append(store.commit("main", root, {"animals": _table(a="ant")}, "sync").revision_id)

    assert revisions[0] == revisions[1]


def test_commit_with_different_content_changes_id(sync_config) -> None:
    """Any content change should produce a different revision id."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    store.create_branch("other", root)

    first = store.commit("main", root, {"animals": _table(a="ant")}, "sync")
    second = store.commit("other", root, {"animals": _table(a="antelope")}, "sync")

    assert first.revision_id != second.revision_id


def test_commit_against_moved_head_conflicts(sync_config) -> None:
    """Committing on a stale parent should raise ConflictError."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    store.commit("main", root, {"animals": _table(a="ant")}, "first")

    with pytest.raises(ConflictError):
        store.commit("main", root, {"animals": _table(b="bee")}, "second")


def test_compare_and_swap_rejects_held_lock(tmp_path) -> None:
    """An existing lock file should be treated as a concurrent writer."""
    ref_path = tmp_path / "main"
    (tmp_path / "main.lock").write_text("other\n", encoding="utf-8")

    with pytest.raises(ConflictError):
        compare_and_swap_ref(ref_path, None, "abc")

    assert not ref_path.exists()


def test_resolve_revision_by_branch_prefix_and_id(sync_config) -> None:
    """Branch names, full ids, and unique prefixes should resolve."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    revision_id = store.commit("main", root, {"animals": _table(a="ant")}, "sync").revision_id

    resolved = {
        store.resolve_revision("main").revision_id,
        store.resolve_revision(revision_id).revision_id,
        store.resolve_revision(revision_id[:10]).revision_id,
    }

    assert resolved == {revision_id}


def test_resolve_revision_rejects_unknown_and_short_refs(sync_config) -> None:
    """Unknown references and too-short prefixes should fail."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")

    with pytest.raises(RevisionNotFoundError):
        store.resolve_revision(root[:3])


def test_resolve_revision_ignores_branch_lock_files(sync_config) -> None:
    """A held head lock should not resolve as a branch of its own."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    lock_path = sync_config.data_root / "refs" / "heads" / "main.lock"
    lock_path.write_text(root + "\n", encoding="utf-8")

    with pytest.raises(RevisionNotFoundError):
        store.resolve_revision("main.lock")


def test_log_walks_first_parent_history(sync_config) -> None:
    """Log should list revisions newest first down to the root."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    first = store.commit("main", root, {"animals": _table(a="ant")}, "first")
    second = store.commit("main", first.revision_id, {"animals": _table(a="ant", b="bee")}, "second")

    history = [manifest.revision_id for manifest in store.log("main")]

    assert history == [second.revision_id, first.revision_id, root]


def test_diff_treats_missing_table_as_empty(sync_config) -> None:
    """Diffing from a revision without the table should report additions."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    head = store.commit("main", root, {"animals": _table(a="ant", b="bee")}, "sync").revision_id

    changes = store.diff("animals", root, head)

    assert [(change.kind, change.key) for change in changes] == [("added", "a"), ("added", "b")]


def test_load_table_round_trips_rows(sync_config) -> None:
    """Stored tables should load back with identical rows."""
    store = RevisionStore(sync_config)
    root = store.initialize_branch("main")
    head = store.commit("main", root, {"animals": _table(a="ant")}, "sync").revision_id

    loaded = store.load_table(head, "animals")

    assert loaded == _table(a="ant")


def test_invalid_branch_name_is_rejected(sync_config) -> None:
    """Branch names must not escape the refs directory."""
    store = RevisionStore(sync_config)

    with pytest.raises(SheetSyncConfigError):
        store.initialize_branch("../escape")
