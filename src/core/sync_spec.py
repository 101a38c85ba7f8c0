"""Typed sync-spec parsing for declarative SheetSync pipelines.

This module loads and validates YAML sync-spec files used by the CLI.
It provides one strict schema so CLI flags, YAML files, and SDK calls
all produce the same ``SyncOptions`` value.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence, cast

from core.constants import (
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_IMPORT_MODE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REPORT_FORMAT,
    DEFAULT_RETRY_WAIT_SECONDS,
    SUPPORTED_IMPORT_MODES,
    SUPPORTED_REPORT_FORMATS,
    SUPPORTED_SOURCE_KINDS,
)
from core.errors import SheetSyncDependencyError, SheetSyncSpecError
from core.types import ExportRequest, ImportMode, ReportFormat, SyncOptions

_ROOT_KEYS = {
    "version",
    "table",
    "primary_key",
    "branch",
    "message",
    "source_kind",
    "push",
    "import_mode",
    "report_format",
    "max_attempts",
    "retry_wait_seconds",
    "requests",
}
_REQUEST_KEYS = {"source_id", "sub_range", "cell_range"}


def parse_request_ref(reference: str) -> ExportRequest:
    """Parse ``SOURCE_ID[#SUB_RANGE[!CELL_RANGE]]`` into a request.

    A bare ``SOURCE_ID#!A1:C9`` selects a cell range on the default sheet.

    Args:
        reference: Textual request reference.

    Returns:
        Parsed export request.

    Raises:
        SheetSyncSpecError: If the source id is empty.
    """
    source_id, _, range_part = reference.strip().partition("#")
    if not source_id:
        raise SheetSyncSpecError(
            f"Invalid request reference '{reference}': source id is required "
            "(SOURCE_ID[#SUB_RANGE[!CELL_RANGE]])."
        )
    sub_range, _, cell_range = range_part.partition("!")
    return ExportRequest(
        source_id=source_id,
        sub_range_name=sub_range.strip() or None,
        cell_range=cell_range.strip() or None,
    )


def load_sync_spec(spec_path: str) -> SyncOptions:
    """Load and validate a YAML sync-spec from disk.

    Args:
        spec_path: File path to YAML sync-spec.

    Returns:
        Validated pipeline options.

    Raises:
        SheetSyncDependencyError: If PyYAML is unavailable.
        SheetSyncSpecError: If file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(spec_path)
    root_mapping = _expect_mapping(payload, "sync spec root")
    _validate_keys(root_mapping, _ROOT_KEYS, "sync spec root")
    _parse_version(root_mapping)
    return SyncOptions(
        requests=_parse_requests(root_mapping),
        table_name=_required_string(root_mapping, "table"),
        primary_key=_required_string(root_mapping, "primary_key"),
        branch=_optional_string(root_mapping, "branch") or DEFAULT_BRANCH,
        message=_optional_string(root_mapping, "message") or DEFAULT_COMMIT_MESSAGE,
        source_kind=_parse_source_kind(root_mapping),
        push=_optional_bool(root_mapping, "push"),
        import_mode=_parse_import_mode(root_mapping),
        report_format=_parse_report_format(root_mapping),
        max_attempts=_parse_max_attempts(root_mapping),
        retry_wait_seconds=_parse_retry_wait(root_mapping),
    )


def _load_yaml_payload(spec_path: str) -> object:
    try:
        import yaml
    except ImportError as error:  # pragma: no cover - dependency failure
        raise SheetSyncDependencyError(
            "YAML sync-spec support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    spec_file = Path(spec_path).expanduser().resolve()
    if not spec_file.exists():
        raise SheetSyncSpecError(
            f"Sync spec file does not exist at {spec_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(spec_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise SheetSyncSpecError(
            f"Failed to read sync spec at {spec_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise SheetSyncSpecError(
            f"Failed to parse YAML sync spec at {spec_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise SheetSyncSpecError(
            f"Sync spec at {spec_file} is empty. Define 'version', 'table', and 'requests'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise SheetSyncSpecError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise SheetSyncSpecError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise SheetSyncSpecError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise SheetSyncSpecError("Sync spec field 'version' must be an integer. Set version: 1.")
    if raw_version != 1:
        raise SheetSyncSpecError(f"Unsupported sync spec version {raw_version}. Use version: 1.")
    return raw_version


def _parse_requests(root_mapping: Mapping[str, object]) -> tuple[ExportRequest, ...]:
    raw_requests = root_mapping.get("requests")
    if raw_requests is None:
        raise SheetSyncSpecError(
            "Sync spec missing required field 'requests'. Add a non-empty list of sources."
        )
    request_rows = _expect_sequence(raw_requests, "sync spec requests")
    if len(request_rows) == 0:
        raise SheetSyncSpecError("Sync spec field 'requests' must include at least one request.")
    return tuple(_parse_request(row, index) for index, row in enumerate(request_rows))


def _parse_request(raw_request: object, request_index: int) -> ExportRequest:
    if isinstance(raw_request, str):
        return parse_request_ref(raw_request)
    context = f"sync spec request #{request_index + 1}"
    request_mapping = _expect_mapping(raw_request, context)
    _validate_keys(request_mapping, _REQUEST_KEYS, context)
    return ExportRequest(
        source_id=_required_string(request_mapping, "source_id"),
        sub_range_name=_optional_string(request_mapping, "sub_range"),
        cell_range=_optional_string(request_mapping, "cell_range"),
    )


def _parse_source_kind(root_mapping: Mapping[str, object]) -> str | None:
    source_kind = _optional_string(root_mapping, "source_kind")
    if source_kind is None or source_kind in SUPPORTED_SOURCE_KINDS:
        return source_kind
    raise SheetSyncSpecError(
        f"Unsupported source_kind '{source_kind}'. "
        f"Use one of: {', '.join(SUPPORTED_SOURCE_KINDS)}."
    )


def _parse_import_mode(root_mapping: Mapping[str, object]) -> ImportMode:
    import_mode = _optional_string(root_mapping, "import_mode") or DEFAULT_IMPORT_MODE
    if import_mode in SUPPORTED_IMPORT_MODES:
        return cast(ImportMode, import_mode)
    raise SheetSyncSpecError(
        f"Unsupported import_mode '{import_mode}'. "
        f"Use one of: {', '.join(SUPPORTED_IMPORT_MODES)}."
    )


def _parse_report_format(root_mapping: Mapping[str, object]) -> ReportFormat:
    report_format = _optional_string(root_mapping, "report_format") or DEFAULT_REPORT_FORMAT
    if report_format in SUPPORTED_REPORT_FORMATS:
        return cast(ReportFormat, report_format)
    raise SheetSyncSpecError(
        f"Unsupported report_format '{report_format}'. "
        f"Use one of: {', '.join(SUPPORTED_REPORT_FORMATS)}."
    )


def _parse_max_attempts(root_mapping: Mapping[str, object]) -> int:
    raw_value = root_mapping.get("max_attempts")
    if raw_value is None:
        return DEFAULT_MAX_ATTEMPTS
    if isinstance(raw_value, bool) or not isinstance(raw_value, int) or raw_value < 1:
        raise SheetSyncSpecError("Sync spec field 'max_attempts' must be a positive integer.")
    return raw_value


def _parse_retry_wait(root_mapping: Mapping[str, object]) -> float:
    raw_value = root_mapping.get("retry_wait_seconds")
    if raw_value is None:
        return DEFAULT_RETRY_WAIT_SECONDS
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)) or raw_value < 0:
        raise SheetSyncSpecError(
            "Sync spec field 'retry_wait_seconds' must be a non-negative number."
        )
    return float(raw_value)


def _required_string(mapping: Mapping[str, object], field_name: str) -> str:
    value = _optional_string(mapping, field_name)
    if value is None:
        raise SheetSyncSpecError(f"Sync spec is missing required field '{field_name}'.")
    return value


def _optional_string(mapping: Mapping[str, object], field_name: str) -> str | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, (str, int)) and not isinstance(raw_value, bool):
        normalized_value = str(raw_value).strip()
        return normalized_value if normalized_value else None
    raise SheetSyncSpecError(f"Sync spec field '{field_name}' must be a string when provided.")


def _optional_bool(mapping: Mapping[str, object], field_name: str) -> bool:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return False
    if isinstance(raw_value, bool):
        return raw_value
    raise SheetSyncSpecError(f"Sync spec field '{field_name}' must be true or false.")


def _validate_keys(mapping: Mapping[str, object], allowed_keys: set[str], context: str) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise SheetSyncSpecError(
            f"Invalid {context}: unknown fields {', '.join(unknown_keys)}."
        )
