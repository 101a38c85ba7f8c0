"""Hosting-runner step outputs.

Appends ``key=value`` lines to the runner's output file so later
workflow steps can read the revision handoff.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from core.errors import SheetSyncConfigError


def write_step_outputs(output_path: Path, values: Mapping[str, object]) -> None:
    """Append step outputs to the runner output file.

    Raises:
        SheetSyncConfigError: If the file cannot be written or a value spans lines.
    """
    lines = []
    for key, value in values.items():
        rendered = _render_value(value)
        if "\n" in rendered:
            raise SheetSyncConfigError(f"Step output '{key}' must be a single line.")
        lines.append(f"{key}={rendered}\n")
    try:
        with output_path.open("a", encoding="utf-8") as handle:
            handle.writelines(lines)
    except OSError as error:
        raise SheetSyncConfigError(
            f"Failed to write step outputs to {output_path}: {error}. Check GITHUB_OUTPUT."
        ) from error


def _render_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
