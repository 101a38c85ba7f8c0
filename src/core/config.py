"""Runtime configuration model for SheetSync.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import tempfile
from typing import Mapping

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_EXPORT_WORKERS,
    DEFAULT_SOURCE_KIND,
    SUPPORTED_SOURCE_KINDS,
)
from core.errors import SheetSyncConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class SheetSyncConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory of the revision store.
        work_root: Parent directory for per-run temporary working directories.
        remote_uri: Optional ``s3://bucket/prefix`` push destination.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        google_credentials: Opaque service-account credential blob.
        source_kind: Default tabular source implementation.
        export_workers: Maximum concurrent source fetches.
        columnar_mirror: Whether table objects are mirrored to Lance.
        step_output_path: Optional runner step-output file.
    """

    data_root: Path
    work_root: Path
    remote_uri: str | None
    s3_region: str | None
    s3_profile: str | None
    google_credentials: str | None
    source_kind: str
    export_workers: int
    columnar_mirror: bool
    step_output_path: Path | None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SheetSyncConfig":
        """Build config from process environment variables.

        Args:
            environ: Optional mapping used instead of ``os.environ``.

        Returns:
            A validated config object.

        Raises:
            SheetSyncConfigError: If environment values are invalid.
        """
        env = os.environ if environ is None else environ
        data_root_value = env.get("SHEETSYNC_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        step_output_value = env.get("GITHUB_OUTPUT")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            work_root=_resolve_work_root(env),
            remote_uri=_optional_value(env, "SHEETSYNC_REMOTE_URI"),
            s3_region=_optional_value(env, "SHEETSYNC_S3_REGION"),
            s3_profile=_optional_value(env, "SHEETSYNC_S3_PROFILE"),
            google_credentials=_optional_value(env, "GOOGLE_CREDENTIALS"),
            source_kind=_parse_source_kind(env.get("SHEETSYNC_SOURCE_KIND", DEFAULT_SOURCE_KIND)),
            export_workers=_parse_export_workers(
                env.get("SHEETSYNC_EXPORT_WORKERS", str(DEFAULT_EXPORT_WORKERS))
            ),
            columnar_mirror=_parse_flag("SHEETSYNC_COLUMNAR_MIRROR", env.get(
                "SHEETSYNC_COLUMNAR_MIRROR", ""
            )),
            step_output_path=Path(step_output_value) if step_output_value else None,
        )


def _resolve_work_root(env: Mapping[str, str]) -> Path:
    """Normalize the working-directory root across runner types.

    Explicit configuration wins, then the runner's temp directory,
    then the interpreter default temp directory.
    """
    raw_value = env.get("SHEETSYNC_WORK_ROOT") or env.get("RUNNER_TEMP")
    if raw_value:
        return Path(raw_value).expanduser().resolve()
    return Path(tempfile.gettempdir()).resolve()


def _optional_value(env: Mapping[str, str], name: str) -> str | None:
    raw_value = env.get(name)
    if raw_value is None:
        return None
    stripped = raw_value.strip()
    return stripped if stripped else None


def _parse_source_kind(raw_value: str) -> str:
    """Validate the configured source kind.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Normalized source kind.

    Raises:
        SheetSyncConfigError: If the kind is unsupported.
    """
    normalized = raw_value.strip().lower()
    if normalized in SUPPORTED_SOURCE_KINDS:
        return normalized
    raise SheetSyncConfigError(
        "Invalid SHEETSYNC_SOURCE_KIND value: "
        f"expected one of {', '.join(SUPPORTED_SOURCE_KINDS)}, got '{raw_value}'."
    )


def _parse_export_workers(raw_value: str) -> int:
    """Parse the export worker count.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive worker count.

    Raises:
        SheetSyncConfigError: If value is not a positive integer.
    """
    try:
        workers = int(raw_value)
    except ValueError as error:
        raise SheetSyncConfigError(
            "Invalid SHEETSYNC_EXPORT_WORKERS value: "
            f"expected integer, got '{raw_value}'. "
            "Set SHEETSYNC_EXPORT_WORKERS to a positive number."
        ) from error
    if workers < 1:
        raise SheetSyncConfigError(
            f"Invalid SHEETSYNC_EXPORT_WORKERS value {workers}: must be at least 1."
        )
    return workers


def _parse_flag(name: str, raw_value: str) -> bool:
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise SheetSyncConfigError(
        f"Invalid {name} value: expected a boolean flag such as 1/0, got '{raw_value}'."
    )
