"""SheetSync CLI entry points.
This module exposes one command per pipeline stage plus the combined sync.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence, cast

from cli.sync_command import add_sync_command, run_sync_command
from core.config import SheetSyncConfig
from core.constants import (
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_REPORT_FORMAT,
    SUPPORTED_REPORT_FORMATS,
    SUPPORTED_SOURCE_KINDS,
)
from core.errors import PipelineStageError, SheetSyncError
from core.sync_spec import parse_request_ref
from core.types import ImportMode, ImportRequest, ReportFormat
from report.diff_render import render_report
from store.repository_sdk import SheetSyncClient

_COMMAND_STAGES = {
    "init": "init",
    "export": "exporting",
    "import": "importing",
    "diff": "reporting",
    "log": "log",
    "push": "push",
    "sync": "sync",
}


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="sheetsync", description="SheetSync table sync CLI")
    parser.add_argument("--data-root", help="Override SHEETSYNC_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_init_command(subparsers)
    _add_export_command(subparsers)
    _add_import_command(subparsers)
    _add_diff_command(subparsers)
    _add_log_command(subparsers)
    _add_push_command(subparsers)
    add_sync_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the SheetSync CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        return _dispatch(client, args)
    except SheetSyncError as error:
        print(_format_error(args.command, error), file=sys.stderr)
        return 1


def _dispatch(client: SheetSyncClient, args: argparse.Namespace) -> int:
    if args.command == "init":
        return _run_init_command(client, args)
    if args.command == "export":
        return _run_export_command(client, args)
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "diff":
        return _run_diff_command(client, args)
    if args.command == "log":
        return _run_log_command(client, args)
    if args.command == "push":
        return _run_push_command(client, args)
    if args.command == "sync":
        return run_sync_command(client, args)
    raise SheetSyncError(f"Unsupported command: {args.command}")


def _build_client(data_root: str | None) -> SheetSyncClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    client = SheetSyncClient(SheetSyncConfig.from_env())
    if data_root:
        client = client.with_data_root(data_root)
    return client


def _format_error(command: str, error: SheetSyncError) -> str:
    if isinstance(error, PipelineStageError):
        return f"error: stage={error.stage} {type(error.cause).__name__}: {error.cause}"
    stage = _COMMAND_STAGES.get(command, command)
    return f"error: stage={stage} {type(error).__name__}: {error}"


def _run_init_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle init command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.from_ref:
        revision_id = client.store.create_branch(args.branch, args.from_ref)
    else:
        revision_id = client.store.initialize_branch(args.branch)
    print(revision_id)
    return 0


def _run_export_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle export command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    requests = [parse_request_ref(reference) for reference in args.requests]
    exported = client.export(requests, args.output_dir, source_kind=args.source_kind)
    for item in exported:
        print(item.path)
    return 0


def _run_import_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    mode: ImportMode = "replace" if args.replace else "upsert"
    request = ImportRequest(
        file_paths=tuple(Path(path).expanduser().resolve() for path in args.files),
        table_name=args.table,
        primary_key=args.primary_key,
        branch=args.branch,
        message=args.message,
        expected_head=args.expected_head,
        push=args.push,
        mode=mode,
    )
    outcome = client.import_files(request)
    print(f"revision_id={outcome.revision_id or ''}")
    print(f"rows_processed={outcome.rows_processed}")
    print(f"additions={outcome.additions}")
    print(f"modifications={outcome.modifications}")
    print(f"deletions={outcome.deletions}")
    print(f"unchanged={outcome.unchanged}")
    if outcome.push is not None:
        print(f"pushed={'true' if outcome.push.succeeded else 'false'}")
    return 0


def _run_diff_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle diff command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    report = client.table(args.table).diff(args.to_ref, args.from_ref)
    print(render_report(report, cast(ReportFormat, args.format)))
    return 0


def _run_log_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle log command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.table:
        manifests = client.table(args.table).log(args.ref, args.limit)
    else:
        manifests = client.store.log(args.ref, args.limit)
    for manifest in manifests:
        print(
            f"{manifest.revision_id}\t"
            f"{manifest.created_at.isoformat()}\t"
            f"{manifest.parents[0] if manifest.parents else '-'}\t"
            f"{manifest.message}"
        )
    return 0


def _run_push_command(client: SheetSyncClient, args: argparse.Namespace) -> int:
    """Handle push command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    result = client.push(args.branch)
    print(f"revision_id={result.revision_id}")
    print(f"uploaded_objects={result.uploaded_objects}")
    if not result.succeeded:
        print(f"error: stage=push {result.error}", file=sys.stderr)
        return 1
    return 0


def _add_init_command(subparsers: Any) -> None:
    """Register init subcommand."""
    parser = subparsers.add_parser("init", help="Initialize a branch with an empty root revision")
    parser.add_argument("--branch", default=DEFAULT_BRANCH, help="Branch name")
    parser.add_argument("--from", dest="from_ref", help="Create the branch at this revision")


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Export source ranges to CSV files")
    parser.add_argument(
        "requests",
        nargs="+",
        help="SOURCE_ID[#SUB_RANGE[!CELL_RANGE]] references in output order",
    )
    parser.add_argument("--output-dir", required=True, help="Existing output directory")
    parser.add_argument("--source-kind", choices=SUPPORTED_SOURCE_KINDS, help="Source kind")


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Upsert exported files into a table")
    parser.add_argument("files", nargs="+", help="Exported CSV files in apply order")
    parser.add_argument("--table", required=True, help="Target table name")
    parser.add_argument("--primary-key", required=True, help="Primary-key column")
    parser.add_argument("--branch", default=DEFAULT_BRANCH, help="Target branch")
    parser.add_argument("--message", default=DEFAULT_COMMIT_MESSAGE, help="Commit message")
    parser.add_argument("--expected-head", help="Fail with a conflict unless the head matches")
    parser.add_argument("--push", action="store_true", help="Push the branch after commit")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Remove rows that are absent from every file",
    )


def _add_diff_command(subparsers: Any) -> None:
    """Register diff subcommand."""
    parser = subparsers.add_parser("diff", help="Report row changes between two revisions")
    parser.add_argument("to_ref", help="Newer revision id, prefix, or branch")
    parser.add_argument("--table", required=True, help="Table name")
    parser.add_argument("--from", dest="from_ref", help="Older revision; defaults to the parent")
    parser.add_argument(
        "--format",
        default=DEFAULT_REPORT_FORMAT,
        choices=SUPPORTED_REPORT_FORMATS,
        help="Report format",
    )


def _add_log_command(subparsers: Any) -> None:
    """Register log subcommand."""
    parser = subparsers.add_parser("log", help="List revisions reachable from a reference")
    parser.add_argument("ref", nargs="?", default=DEFAULT_BRANCH, help="Branch or revision")
    parser.add_argument("--table", help="Only list revisions containing this table")
    parser.add_argument("--limit", type=int, help="Maximum revisions to list")


def _add_push_command(subparsers: Any) -> None:
    """Register push subcommand."""
    parser = subparsers.add_parser("push", help="Push a branch to the configured remote")
    parser.add_argument("branch", nargs="?", default=DEFAULT_BRANCH, help="Branch name")
