"""Unit tests for CLI command handling."""

from __future__ import annotations

from cli.main import main
from tests.fixture_paths import fixture_path


def _import_args(name: str, *extra: str) -> list[str]:
    return [
        "import",
        str(fixture_path(f"sheets/{name}")),
        "--table",
        "animals",
        "--primary-key",
        "id",
        *extra,
    ]


def _output_values(output: str) -> dict[str, str]:
    return dict(line.split("=", 1) for line in output.splitlines() if "=" in line)


def test_cli_init_prints_root_revision(cli_env, capsys) -> None:
    """CLI init should print the branch head revision id."""
    exit_code = main(["init", "--branch", "main"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and len(output) == 64


def test_cli_export_prints_file_paths_in_order(cli_env, capsys) -> None:
    """CLI export should write files and print their paths in request order."""
    output_dir = cli_env / "exports"
    output_dir.mkdir()
    workbook = str(fixture_path("workbook"))

    exit_code = main(
        ["export", f"{workbook}#Reptiles", f"{workbook}#Birds", "--output-dir", str(output_dir)]
    )
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and [line.rsplit("/", 1)[-1] for line in lines] == [
        "001-reptiles.csv",
        "002-birds.csv",
    ]


def test_cli_import_reports_counts(cli_env, capsys) -> None:
    """CLI import should print the revision id and operation counts."""
    exit_code = main(_import_args("animals.csv"))
    values = _output_values(capsys.readouterr().out)

    assert exit_code == 0 and (values["additions"], bool(values["revision_id"])) == ("2", True)


def test_cli_diff_renders_last_import(cli_env, capsys) -> None:
    """CLI diff should render the head against its parent."""
    main(_import_args("animals.csv"))
    main(_import_args("animals_owl.csv"))
    capsys.readouterr()

    exit_code = main(["diff", "main", "--table", "animals", "--format", "json"])
    output = capsys.readouterr().out

    assert exit_code == 0 and '"added": 1' in output


def test_cli_log_lists_history(cli_env, capsys) -> None:
    """CLI log should list revisions newest first including the root."""
    main(_import_args("animals.csv"))
    capsys.readouterr()

    exit_code = main(["log", "main"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and len(lines) == 2 and lines[-1].endswith("Initialize branch")


def test_cli_errors_print_stage_and_kind(cli_env, capsys) -> None:
    """Failures should print the stage and error kind and exit non-zero."""
    main(_import_args("animals.csv"))
    capsys.readouterr()

    exit_code = main(_import_args("extra_column.csv"))
    error_output = capsys.readouterr().err

    assert exit_code == 1 and "error: stage=importing SchemaMismatchError:" in error_output


def test_cli_push_without_remote_fails(cli_env, capsys) -> None:
    """Push without a remote should fail with a configuration error."""
    main(["init"])
    capsys.readouterr()

    exit_code = main(["push", "main"])
    error_output = capsys.readouterr().err

    assert exit_code == 1 and "SheetSyncConfigError" in error_output
