"""Google Sheets tabular source.

This module reads cell values through the Sheets v4 API using a
service-account credential blob supplied by the hosting runner.
"""

from __future__ import annotations

import importlib
import json
from typing import Any

from core.constants import SHEETS_API_NAME, SHEETS_API_SCOPES, SHEETS_API_VERSION
from core.errors import (
    AuthorizationError,
    RangeInvalidError,
    SheetSyncDependencyError,
    SourceUnavailableError,
)
from core.logging_config import get_logger
from core.types import ExportRequest

_LOGGER = get_logger(__name__)
_AUTH_STATUSES = (401, 403)
_RANGE_STATUSES = (400, 404)


def _import_module(name: str) -> Any:
    try:
        return importlib.import_module(name)
    except ModuleNotFoundError as error:
        raise SheetSyncDependencyError(
            "Google Sheets export requires google-api-python-client and google-auth. "
            "Install them or use SHEETSYNC_SOURCE_KIND=local."
        ) from error


class GoogleSheetsSource:
    """Source that reads spreadsheet values from the Sheets API."""

    def __init__(self, credentials_blob: str | None, service: Any | None = None) -> None:
        """Create a Sheets source.

        Args:
            credentials_blob: Service-account JSON; opaque to the pipeline.
            service: Optional prebuilt API service, used instead of building one.
        """
        self._credentials_blob = credentials_blob
        self._service = service

    def fetch_rows(self, request: ExportRequest) -> list[list[str]]:
        """Fetch values for one request, header row first.

        Raises:
            AuthorizationError: If credentials are missing or rejected.
            RangeInvalidError: If the spreadsheet or range does not exist.
            SourceUnavailableError: If the API cannot be reached.
        """
        service = self._service_handle()
        value_range = self._range_for(service, request)
        response = self._execute(
            request,
            lambda: service.spreadsheets()
            .values()
            .get(
                spreadsheetId=request.source_id,
                range=value_range,
                majorDimension="ROWS",
                valueRenderOption="FORMATTED_VALUE",
            )
            .execute(),
        )
        values = response.get("values", []) if isinstance(response, dict) else []
        _LOGGER.debug(
            "sheet_values_fetched",
            source_id=request.source_id,
            range=value_range,
            row_count=len(values),
        )
        return [[str(cell) for cell in row] for row in values]

    def _range_for(self, service: Any, request: ExportRequest) -> str:
        sheet_title = request.sub_range_name or self._first_sheet_title(service, request)
        quoted_title = "'" + sheet_title.replace("'", "''") + "'"
        if request.cell_range:
            return f"{quoted_title}!{request.cell_range}"
        return quoted_title

    def _first_sheet_title(self, service: Any, request: ExportRequest) -> str:
        metadata = self._execute(
            request,
            lambda: service.spreadsheets()
            .get(spreadsheetId=request.source_id, fields="sheets.properties.title")
            .execute(),
        )
        sheets = metadata.get("sheets", []) if isinstance(metadata, dict) else []
        if not sheets:
            raise RangeInvalidError(
                f"Spreadsheet '{request.source_id}' has no sheets to export."
            )
        return str(sheets[0]["properties"]["title"])

    def _execute(self, request: ExportRequest, call: Any) -> Any:
        """Run one API call and map failures to exporter errors."""
        http_error_cls = _import_module("googleapiclient.errors").HttpError
        transport_error_cls = _import_module("httplib2").HttpLib2Error
        try:
            return call()
        except http_error_cls as error:
            raise _map_http_error(error, request) from error
        except (OSError, transport_error_cls) as error:
            raise SourceUnavailableError(
                f"Failed to reach Google Sheets for {request.describe()}: {error}. "
                "Check network connectivity and retry."
            ) from error

    def _service_handle(self) -> Any:
        if self._service is not None:
            return self._service
        build = _import_module("googleapiclient.discovery").build
        credentials = self._load_credentials()
        self._service = build(
            SHEETS_API_NAME,
            SHEETS_API_VERSION,
            credentials=credentials,
            cache_discovery=False,
        )
        return self._service

    def _load_credentials(self) -> Any:
        credentials_cls = _import_module("google.oauth2.service_account").Credentials
        if not self._credentials_blob:
            raise AuthorizationError(
                "Google credentials are not configured. "
                "Set GOOGLE_CREDENTIALS to a service-account JSON document."
            )
        try:
            info = json.loads(self._credentials_blob)
            return credentials_cls.from_service_account_info(info, scopes=list(SHEETS_API_SCOPES))
        except (ValueError, KeyError, TypeError) as error:
            raise AuthorizationError(
                f"Google credentials could not be parsed: {error}. "
                "Provide a valid service-account JSON document."
            ) from error


def _map_http_error(error: Any, request: ExportRequest) -> Exception:
    status = int(getattr(error.resp, "status", 0) or 0)
    detail = f"HTTP {status} for {request.describe()}: {error}"
    if status in _AUTH_STATUSES:
        return AuthorizationError(
            f"Google Sheets rejected the credentials ({detail}). "
            "Share the spreadsheet with the service account."
        )
    if status in _RANGE_STATUSES:
        return RangeInvalidError(
            f"Google Sheets could not resolve the requested range ({detail})."
        )
    return SourceUnavailableError(f"Google Sheets is unavailable ({detail}). Retry later.")
