"""End-to-end sync orchestration.

This module runs export, import, and report stages in order, owns the
per-run working directory, and applies the retry policy for transient
stage errors.
"""

from __future__ import annotations

import enum
import shutil
import tempfile
from pathlib import Path
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import SheetSyncConfig
from core.constants import MAX_RETRY_WAIT_SECONDS, WORKDIR_PREFIX
from core.errors import TRANSIENT_ERRORS, PipelineStageError, SheetSyncError
from core.logging_config import get_logger
from core.types import DiffReport, ExportedFile, ImportOutcome, ImportRequest, SyncOptions, SyncResult
from export.exporter import export_tables
from export.sheet_sources import TabularSource, build_source
from ingest.importer import TableImporter
from report.diff_render import render_report
from report.reporter import generate_diff_report
from store.revision_store import RevisionStore
from sync.step_output import write_step_outputs

_LOGGER = get_logger(__name__)
T = TypeVar("T")


class PipelineStage(str, enum.Enum):
    """States of one pipeline run."""

    START = "start"
    EXPORTING = "exporting"
    IMPORTING = "importing"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


class SyncPipelineRunner:
    """Stateful runner for one export → import → report execution."""

    def __init__(
        self,
        options: SyncOptions,
        config: SheetSyncConfig,
        source: TabularSource | None = None,
        store: RevisionStore | None = None,
    ) -> None:
        self._options = options
        self._config = config
        self._source = source or build_source(config, options.source_kind)
        self._store = store or RevisionStore(config)
        self._stage = PipelineStage.START
        self._workdir: Path | None = None

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    @property
    def workdir(self) -> Path | None:
        return self._workdir

    def run(self) -> SyncResult:
        """Execute the pipeline.

        Returns:
            Sync result; ``report`` is ``None`` when nothing changed.

        Raises:
            PipelineStageError: If any stage fails; the working directory is
                left on disk for inspection.
        """
        self._workdir = self._create_workdir()
        exported = self._run_stage(PipelineStage.EXPORTING, self._export)
        outcome = self._run_stage(PipelineStage.IMPORTING, lambda: self._import(exported))
        report: DiffReport | None = None
        rendered: str | None = None
        if outcome.revision_id is not None:
            report = self._run_stage(
                PipelineStage.REPORTING, lambda: self._report(outcome.revision_id or "")
            )
            rendered = render_report(report, self._options.report_format)
        else:
            _LOGGER.info("pipeline_report_skipped", table_name=self._options.table_name)
        self._write_outputs(outcome)
        self._transition(PipelineStage.DONE)
        shutil.rmtree(self._workdir, ignore_errors=True)
        _LOGGER.info(
            "pipeline_completed",
            table_name=self._options.table_name,
            branch=self._options.branch,
            revision_id=outcome.revision_id,
            exported_files=len(exported),
        )
        return SyncResult(
            exported_files=len(exported),
            outcome=outcome,
            report=report,
            rendered_report=rendered,
        )

    def _run_stage(self, stage: PipelineStage, action: Callable[[], T]) -> T:
        self._transition(stage)
        retryer = Retrying(
            stop=stop_after_attempt(max(self._options.max_attempts, 1)),
            wait=wait_exponential(
                multiplier=self._options.retry_wait_seconds,
                max=MAX_RETRY_WAIT_SECONDS,
            ),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return retryer(action)
        except SheetSyncError as error:
            self._transition(PipelineStage.FAILED)
            _LOGGER.error(
                "pipeline_failed",
                stage=stage.value,
                error_kind=type(error).__name__,
                error=str(error),
                workdir=str(self._workdir),
            )
            raise PipelineStageError(stage.value, error) from error

    def _export(self) -> list[ExportedFile]:
        workdir = self._require_workdir()
        for stale_file in workdir.iterdir():
            stale_file.unlink()
        return export_tables(
            self._options.requests,
            self._source,
            workdir,
            max_workers=self._config.export_workers,
        )

    def _import(self, exported: list[ExportedFile]) -> ImportOutcome:
        request = ImportRequest(
            file_paths=tuple(item.path for item in exported),
            table_name=self._options.table_name,
            primary_key=self._options.primary_key,
            branch=self._options.branch,
            message=self._options.message,
            push=self._options.push,
            mode=self._options.import_mode,
        )
        return TableImporter(self._store, self._config).import_files(request)

    def _report(self, revision_id: str) -> DiffReport:
        return generate_diff_report(self._store, self._options.table_name, revision_id)

    def _write_outputs(self, outcome: ImportOutcome) -> None:
        if self._config.step_output_path is None:
            return
        write_step_outputs(
            self._config.step_output_path,
            {
                "revision_id": outcome.revision_id,
                "changed": outcome.changed,
                "additions": outcome.additions,
                "modifications": outcome.modifications,
                "deletions": outcome.deletions,
            },
        )

    def _create_workdir(self) -> Path:
        self._config.work_root.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=WORKDIR_PREFIX, dir=self._config.work_root))

    def _require_workdir(self) -> Path:
        if self._workdir is None:
            raise RuntimeError("Working directory accessed before the run started.")
        return self._workdir

    def _transition(self, stage: PipelineStage) -> None:
        _LOGGER.info("pipeline_stage_started", stage=stage.value, previous=self._stage.value)
        self._stage = stage

    def _log_retry(self, retry_state: object) -> None:
        outcome = getattr(retry_state, "outcome", None)
        error = outcome.exception() if outcome is not None else None
        _LOGGER.warning(
            "pipeline_stage_retry",
            stage=self._stage.value,
            attempt=getattr(retry_state, "attempt_number", None),
            error_kind=type(error).__name__ if error else None,
            error=str(error) if error else None,
        )


def run_sync(
    options: SyncOptions,
    config: SheetSyncConfig,
    source: TabularSource | None = None,
) -> SyncResult:
    """Run one end-to-end sync.

    Args:
        options: Pipeline options.
        config: Runtime configuration.
        source: Optional source overriding the configured kind.

    Returns:
        Sync result.

    Raises:
        PipelineStageError: If any stage fails.
    """
    runner = SyncPipelineRunner(options, config, source=source)
    return runner.run()
