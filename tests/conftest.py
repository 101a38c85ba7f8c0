"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def sync_config(tmp_path: Path):
    """Config isolated from the process environment, using local sources."""
    from core.config import SheetSyncConfig

    work_root = tmp_path / "work"
    work_root.mkdir()
    return replace(
        SheetSyncConfig.from_env({}),
        data_root=tmp_path / "store",
        work_root=work_root,
        source_kind="local",
    )


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point CLI environment at temporary directories and local sources."""
    for name in ("GITHUB_OUTPUT", "SHEETSYNC_REMOTE_URI", "SHEETSYNC_COLUMNAR_MIRROR"):
        monkeypatch.delenv(name, raising=False)
    work_root = tmp_path / "work"
    work_root.mkdir()
    monkeypatch.setenv("SHEETSYNC_DATA_ROOT", str(tmp_path / "store"))
    monkeypatch.setenv("SHEETSYNC_WORK_ROOT", str(work_root))
    monkeypatch.setenv("SHEETSYNC_SOURCE_KIND", "local")
    return tmp_path
