"""Unit tests for the sync CLI command."""

from __future__ import annotations

from cli.main import main
from tests.fixture_paths import fixture_path


def _sync_args(*names: str) -> list[str]:
    args = ["sync", "--table", "animals", "--primary-key", "id"]
    for name in names:
        args.extend(["--request", str(fixture_path(f"sheets/{name}"))])
    return args


def test_cli_sync_prints_revision_and_report(cli_env, capsys) -> None:
    """Sync should print the new revision id followed by the report."""
    exit_code = main(_sync_args("animals.csv"))
    output = capsys.readouterr().out

    assert exit_code == 0 and "2 added, 0 modified, 0 removed" in output


def test_cli_sync_without_changes_prints_no_changes(cli_env, capsys) -> None:
    """An unchanged sync should skip the report."""
    main(_sync_args("animals.csv"))
    capsys.readouterr()

    exit_code = main(_sync_args("animals.csv"))
    output = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and output == ["revision_id=", "no changes"]


def test_cli_sync_requires_table_without_spec(cli_env, capsys) -> None:
    """Flag-driven sync should require table, key, and requests."""
    exit_code = main(["sync", "--request", "x.csv"])
    error_output = capsys.readouterr().err

    assert exit_code == 1 and "error: stage=sync SheetSyncConfigError:" in error_output


def test_cli_sync_failure_reports_pipeline_stage(cli_env, tmp_path, capsys) -> None:
    """A failing stage should be named in the error line."""
    exit_code = main(_sync_args("absent.csv"))
    error_output = capsys.readouterr().err

    assert exit_code == 1 and "error: stage=exporting SourceUnavailableError:" in error_output


def test_cli_sync_from_spec_file(cli_env, tmp_path, capsys) -> None:
    """Sync should accept a YAML spec instead of flags."""
    spec_file = tmp_path / "sync.yaml"
    spec_file.write_text(
        "\n".join(
            [
                "version: 1",
                "table: birds",
                "primary_key: id",
                "source_kind: local",
                "report_format: json",
                "requests:",
                f"  - {fixture_path('workbook')}#Birds!A1:C3",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    exit_code = main(["sync", "--spec", str(spec_file)])
    output = capsys.readouterr().out

    assert exit_code == 0 and '"added": 2' in output
