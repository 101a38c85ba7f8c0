"""Unit tests for the Google Sheets source with a fake API service."""

from __future__ import annotations

from typing import Any

import httplib2
import pytest
from googleapiclient.errors import HttpError

from core.errors import AuthorizationError, RangeInvalidError, SourceUnavailableError
from core.types import ExportRequest
from export.google_sheets import GoogleSheetsSource


class _Call:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self._result = result
        self._error = error

    def execute(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._result


class _Values:
    def __init__(self, service: "_FakeService") -> None:
        self._service = service

    def get(self, **kwargs: Any) -> _Call:
        self._service.value_calls.append(kwargs)
        return _Call(self._service.values_result, self._service.error)


class _Spreadsheets:
    def __init__(self, service: "_FakeService") -> None:
        self._service = service

    def values(self) -> _Values:
        return _Values(self._service)

    def get(self, **kwargs: Any) -> _Call:
        self._service.metadata_calls.append(kwargs)
        return _Call({"sheets": [{"properties": {"title": "First Sheet"}}]})


class _FakeService:
    """Minimal stand-in for the discovery-built Sheets service."""

    def __init__(self, values_result: Any = None, error: Exception | None = None) -> None:
        self.values_result = values_result
        self.error = error
        self.value_calls: list[dict[str, Any]] = []
        self.metadata_calls: list[dict[str, Any]] = []

    def spreadsheets(self) -> _Spreadsheets:
        return _Spreadsheets(self)


def _http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": str(status)}), b"{}")


def test_fetch_rows_reads_quoted_sheet_range() -> None:
    """Requests with a sub-range should quote the sheet title in the API range."""
    service = _FakeService({"values": [["id", "name"], [11, "crocodile"]]})
    source = GoogleSheetsSource(None, service=service)

    grid = source.fetch_rows(ExportRequest("sheet-id", sub_range_name="Bob's", cell_range="A1:B9"))

    assert grid == [["id", "name"], ["11", "crocodile"]] and service.value_calls[0][
        "range"
    ] == "'Bob''s'!A1:B9"


def test_fetch_rows_resolves_first_sheet_without_sub_range() -> None:
    """Requests without a sub-range should target the first sheet."""
    service = _FakeService({"values": [["id"]]})

    GoogleSheetsSource(None, service=service).fetch_rows(ExportRequest("sheet-id"))

    assert service.value_calls[0]["range"] == "'First Sheet'"


def test_fetch_rows_treats_missing_values_as_empty() -> None:
    """Responses without values should yield an empty grid."""
    service = _FakeService({})

    grid = GoogleSheetsSource(None, service=service).fetch_rows(ExportRequest("id", "Sheet1"))

    assert grid == []


@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (401, AuthorizationError),
        (403, AuthorizationError),
        (400, RangeInvalidError),
        (404, RangeInvalidError),
        (429, SourceUnavailableError),
        (503, SourceUnavailableError),
    ],
)
def test_fetch_rows_maps_http_errors(status: int, error_type: type[Exception]) -> None:
    """HTTP failures should map onto exporter error kinds."""
    service = _FakeService(error=_http_error(status))

    with pytest.raises(error_type):
        GoogleSheetsSource(None, service=service).fetch_rows(ExportRequest("id", "Sheet1"))


def test_fetch_rows_maps_transport_errors() -> None:
    """Network failures should be reported as transient."""
    service = _FakeService(error=httplib2.ServerNotFoundError("no route"))

    with pytest.raises(SourceUnavailableError):
        GoogleSheetsSource(None, service=service).fetch_rows(ExportRequest("id", "Sheet1"))


def test_missing_credentials_raise_authorization_error() -> None:
    """Building a service without credentials should fail fast."""
    with pytest.raises(AuthorizationError):
        GoogleSheetsSource(None).fetch_rows(ExportRequest("id", "Sheet1"))


def test_unparsable_credentials_raise_authorization_error() -> None:
    """A non-JSON credential blob should fail with AuthorizationError."""
    with pytest.raises(AuthorizationError):
        GoogleSheetsSource("not-json").fetch_rows(ExportRequest("id", "Sheet1"))
