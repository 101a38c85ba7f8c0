"""Branch reference persistence.

This module reads branch heads and advances them with a lock-file
compare-and-swap so concurrent writers surface as conflicts.
"""

from __future__ import annotations

import os
from pathlib import Path

from core.constants import LOCK_FILE_SUFFIX
from core.errors import ConflictError, StoreUnavailableError


def read_ref(ref_path: Path) -> str | None:
    """Read the revision id stored in a ref file.

    Args:
        ref_path: Ref file path.

    Returns:
        Revision id, or ``None`` when the ref does not exist.

    Raises:
        StoreUnavailableError: If the ref exists but cannot be read.
    """
    if not ref_path.is_file():
        return None
    try:
        value = ref_path.read_text(encoding="utf-8").strip()
    except OSError as error:
        raise StoreUnavailableError(f"Failed to read ref {ref_path}: {error}.") from error
    return value or None


def write_ref(ref_path: Path, revision_id: str) -> None:
    """Overwrite a ref without coordination.

    Only used for local bookkeeping refs that have a single writer.
    """
    try:
        ref_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = ref_path.with_name(ref_path.name + ".tmp")
        temp_path.write_text(revision_id + "\n", encoding="utf-8")
        os.replace(temp_path, ref_path)
    except OSError as error:
        raise StoreUnavailableError(f"Failed to write ref {ref_path}: {error}.") from error


def compare_and_swap_ref(ref_path: Path, expected: str | None, new_value: str) -> None:
    """Advance a ref only if it still holds the expected value.

    Args:
        ref_path: Ref file path.
        expected: Value read before committing; ``None`` for a new ref.
        new_value: Revision id to store.

    Raises:
        ConflictError: If another writer holds the lock or the ref moved.
        StoreUnavailableError: If the ref cannot be written.
    """
    lock_path = ref_path.with_name(ref_path.name + LOCK_FILE_SUFFIX)
    try:
        ref_path.parent.mkdir(parents=True, exist_ok=True)
        descriptor = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError as error:
        raise ConflictError(
            f"Ref {ref_path.name} is locked by a concurrent writer ({lock_path}). "
            "Serialize writers to this branch or retry against the new head."
        ) from error
    except OSError as error:
        raise StoreUnavailableError(f"Failed to lock ref {ref_path}: {error}.") from error
    swapped = False
    try:
        with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
            handle.write(new_value + "\n")
        current = read_ref(ref_path)
        if current != expected:
            raise ConflictError(
                f"Ref {ref_path.name} moved from {expected or '<none>'} to {current or '<none>'} "
                "during the commit. Retry against the new head."
            )
        os.replace(lock_path, ref_path)
        swapped = True
    except OSError as error:
        raise StoreUnavailableError(f"Failed to update ref {ref_path}: {error}.") from error
    finally:
        if not swapped:
            lock_path.unlink(missing_ok=True)
