"""Revision manifest persistence helpers.

This module isolates revision JSON IO and revision id generation.
It keeps revision store orchestration focused on business flow.
"""

from __future__ import annotations

import hashlib
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from core.errors import RevisionNotFoundError, SheetSyncStoreError, StoreUnavailableError
from core.types import RevisionManifest


def build_revision_id(parents: tuple[str, ...], tables: Mapping[str, str]) -> str:
    """Build a content-addressed revision id.

    Args:
        parents: Parent revision ids.
        tables: Table name to table object hash.

    Returns:
        Hex sha256 digest of parents and table content.
    """
    payload = {"parents": list(parents), "tables": dict(sorted(tables.items()))}
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def revision_path(revisions_dir: Path, revision_id: str) -> Path:
    return revisions_dir / f"{revision_id}.json"


def write_revision_manifest(revisions_dir: Path, manifest: RevisionManifest) -> None:
    """Persist a revision manifest unless it already exists.

    Args:
        revisions_dir: Directory of revision manifests.
        manifest: Manifest to persist.

    Raises:
        StoreUnavailableError: If the manifest cannot be written.
    """
    manifest_path = revision_path(revisions_dir, manifest.revision_id)
    if manifest_path.exists():
        return
    temp_path = manifest_path.with_name(manifest_path.name + ".tmp")
    try:
        temp_path.write_text(
            json.dumps(manifest_to_dict(manifest), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        os.replace(temp_path, manifest_path)
    except OSError as error:
        raise StoreUnavailableError(
            f"Failed to persist revision manifest at {manifest_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error


def read_revision_manifest(revisions_dir: Path, revision_id: str) -> RevisionManifest:
    """Read one revision manifest.

    Args:
        revisions_dir: Directory of revision manifests.
        revision_id: Full revision id.

    Returns:
        Parsed manifest.

    Raises:
        RevisionNotFoundError: If no manifest exists for the id.
        SheetSyncStoreError: If the manifest is corrupt.
    """
    manifest_path = revision_path(revisions_dir, revision_id)
    if not manifest_path.exists():
        raise RevisionNotFoundError(
            f"Revision '{revision_id}' not found. Use 'sheetsync log' to list revisions."
        )
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except OSError as error:
        raise StoreUnavailableError(
            f"Failed to read revision manifest at {manifest_path}: {error}."
        ) from error
    except json.JSONDecodeError as error:
        raise SheetSyncStoreError(
            f"Failed to parse revision manifest at {manifest_path}: {error.msg}."
        ) from error
    if not isinstance(payload, dict):
        raise SheetSyncStoreError(
            f"Failed to parse revision manifest at {manifest_path}: expected a JSON object."
        )
    return manifest_from_dict(payload)


def list_revision_ids(revisions_dir: Path) -> list[str]:
    """List ids of every stored revision manifest."""
    return sorted(path.stem for path in revisions_dir.glob("*.json"))


def manifest_to_dict(manifest: RevisionManifest) -> dict[str, Any]:
    return {
        "revision_id": manifest.revision_id,
        "parents": list(manifest.parents),
        "tables": dict(manifest.tables),
        "row_counts": dict(manifest.row_counts),
        "message": manifest.message,
        "created_at": manifest.created_at.isoformat(),
    }


def manifest_from_dict(payload: dict[str, Any]) -> RevisionManifest:
    """Deserialize manifest payload from dictionary.

    Args:
        payload: Manifest dictionary.

    Returns:
        Typed revision manifest.
    """
    return RevisionManifest(
        revision_id=str(payload["revision_id"]),
        parents=tuple(str(parent) for parent in payload["parents"]),
        tables={str(name): str(value) for name, value in dict(payload["tables"]).items()},
        row_counts={
            str(name): int(value) for name, value in dict(payload["row_counts"]).items()
        },
        message=str(payload["message"]),
        created_at=datetime.fromisoformat(str(payload["created_at"])),
    )
