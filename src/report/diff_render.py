"""DiffReport rendering.

This module renders diff reports as aligned text tables, JSON
documents, or Markdown tables for pull-request style notifications.
"""

from __future__ import annotations

import json
from typing import Callable, Mapping

from core.errors import SheetSyncConfigError
from core.types import DiffReport, ReportFormat, RowChange

SHORT_REVISION_LENGTH = 12
_TEXT_MARKERS = {"added": "+", "removed": "-", "modified": "~"}


def render_report(report: DiffReport, report_format: ReportFormat) -> str:
    """Render a report in the requested format.

    Raises:
        SheetSyncConfigError: If the format is unsupported.
    """
    renderer = _RENDERERS.get(report_format)
    if renderer is None:
        raise SheetSyncConfigError(
            f"Unsupported report format '{report_format}'. Use one of: {', '.join(_RENDERERS)}."
        )
    return renderer(report)


def render_text(report: DiffReport) -> str:
    """Render an aligned text table with one marker column."""
    header = _summary_line(report)
    if report.is_empty:
        return f"{header}\nno changes"
    rows = [["", *report.columns]]
    for change in report.changes:
        rows.extend(_text_rows(change, report.columns))
    widths = [max(len(row[index]) for row in rows) for index in range(len(rows[0]))]
    lines = [header]
    separator = "+-" + "-+-".join("-" * width for width in widths) + "-+"
    lines.append(separator)
    for row_index, row in enumerate(rows):
        cells = [value.ljust(widths[index]) for index, value in enumerate(row)]
        lines.append("| " + " | ".join(cells) + " |")
        if row_index == 0:
            lines.append(separator)
    lines.append(separator)
    return "\n".join(lines)


def render_json(report: DiffReport) -> str:
    """Render a JSON document with summary counts and every change."""
    payload = {
        "table": report.table_name,
        "primary_key": report.primary_key,
        "from_revision": report.from_revision,
        "to_revision": report.to_revision,
        "columns": list(report.columns),
        "summary": report.counts,
        "changes": [
            {
                "kind": change.kind,
                "key": change.key,
                "before": dict(change.before) if change.before is not None else None,
                "after": dict(change.after) if change.after is not None else None,
                "changed_columns": list(change.changed_columns),
            }
            for change in report.changes
        ],
    }
    return json.dumps(payload, indent=2, sort_keys=True)


def render_markdown(report: DiffReport) -> str:
    """Render a Markdown summary and change table."""
    counts = report.counts
    lines = [
        f"### `{report.table_name}` changes",
        "",
        f"`{_short(report.from_revision)}` → `{_short(report.to_revision)}`: "
        f"{counts['added']} added, {counts['modified']} modified, {counts['removed']} removed",
    ]
    if report.is_empty:
        lines.extend(["", "_No changes._"])
        return "\n".join(lines)
    lines.append("")
    lines.append("| change | " + " | ".join(report.columns) + " |")
    lines.append("|---|" + "---|" * len(report.columns))
    for change in report.changes:
        row = change.after if change.after is not None else change.before or {}
        cells = [_markdown_cell(change, column, row) for column in report.columns]
        lines.append(f"| {change.kind} | " + " | ".join(cells) + " |")
    return "\n".join(lines)


def _summary_line(report: DiffReport) -> str:
    counts = report.counts
    return (
        f"diff {report.table_name} {_short(report.from_revision)}..{_short(report.to_revision)}: "
        f"{counts['added']} added, {counts['modified']} modified, {counts['removed']} removed"
    )


def _text_rows(change: RowChange, columns: tuple[str, ...]) -> list[list[str]]:
    if change.kind == "modified" and change.before is not None and change.after is not None:
        return [
            ["<", *[change.before.get(column, "") for column in columns]],
            [">", *[change.after.get(column, "") for column in columns]],
        ]
    row = change.after if change.after is not None else change.before or {}
    return [[_TEXT_MARKERS[change.kind], *[row.get(column, "") for column in columns]]]


def _markdown_cell(change: RowChange, column: str, row: Mapping[str, str]) -> str:
    value = row.get(column, "")
    if change.kind == "modified" and column in change.changed_columns and change.before:
        value = f"~~{change.before.get(column, '')}~~ {value}"
    return value.replace("|", "\\|")


def _short(revision_id: str) -> str:
    return revision_id[:SHORT_REVISION_LENGTH]


_RENDERERS: dict[str, Callable[[DiffReport], str]] = {
    "text": render_text,
    "json": render_json,
    "markdown": render_markdown,
}
