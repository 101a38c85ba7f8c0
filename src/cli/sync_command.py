"""Sync CLI command wiring.

This module registers the sync subcommand, which runs the full
export → import → report pipeline from flags or a YAML sync spec.
"""

from __future__ import annotations

import argparse
from typing import Any, cast

from core.constants import (
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REPORT_FORMAT,
    DEFAULT_RETRY_WAIT_SECONDS,
    SUPPORTED_REPORT_FORMATS,
    SUPPORTED_SOURCE_KINDS,
)
from core.errors import SheetSyncConfigError
from core.sync_spec import load_sync_spec, parse_request_ref
from core.types import ImportMode, ReportFormat, SyncOptions
from store.repository_sdk import SheetSyncClient


def add_sync_command(subparsers: Any) -> None:
    """Register sync subcommand."""
    parser = subparsers.add_parser(
        "sync",
        help="Export, import, and report one table in a single run",
    )
    parser.add_argument("--spec", help="Path to YAML sync-spec file")
    parser.add_argument(
        "--request",
        action="append",
        default=[],
        help="SOURCE_ID[#SUB_RANGE[!CELL_RANGE]]; repeat for multiple ranges",
    )
    parser.add_argument("--table", help="Target table name")
    parser.add_argument("--primary-key", help="Primary-key column")
    parser.add_argument("--branch", default=DEFAULT_BRANCH, help="Target branch")
    parser.add_argument("--message", default=DEFAULT_COMMIT_MESSAGE, help="Commit message")
    parser.add_argument("--source-kind", choices=SUPPORTED_SOURCE_KINDS, help="Source kind")
    parser.add_argument("--push", action="store_true", help="Push the branch after commit")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Remove rows that are absent from every exported range",
    )
    parser.add_argument(
        "--format",
        default=DEFAULT_REPORT_FORMAT,
        choices=SUPPORTED_REPORT_FORMATS,
        help="Diff report format",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help="Attempts per stage for transient errors",
    )
    parser.add_argument(
        "--retry-wait",
        type=float,
        default=DEFAULT_RETRY_WAIT_SECONDS,
        help="Base backoff in seconds between attempts",
    )


def run_sync_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle sync command invocation."""
    options = load_sync_spec(args.spec) if args.spec else _options_from_args(args)
    result = client.sync(options)
    print(f"revision_id={result.outcome.revision_id or ''}")
    if result.rendered_report is not None:
        print(result.rendered_report)
    else:
        print("no changes")
    return 0


def _options_from_args(args: argparse.Namespace) -> SyncOptions:
    if not args.request or not args.table or not args.primary_key:
        raise SheetSyncConfigError(
            "sync requires --request, --table, and --primary-key when --spec is not given."
        )
    if args.max_attempts < 1:
        raise SheetSyncConfigError("--max-attempts must be at least 1.")
    import_mode: ImportMode = "replace" if args.replace else "upsert"
    return SyncOptions(
        requests=tuple(parse_request_ref(reference) for reference in args.request),
        table_name=args.table,
        primary_key=args.primary_key,
        branch=args.branch,
        message=args.message,
        source_kind=args.source_kind,
        push=args.push,
        import_mode=import_mode,
        report_format=cast(ReportFormat, args.format),
        max_attempts=args.max_attempts,
        retry_wait_seconds=args.retry_wait,
    )
