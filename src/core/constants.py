"""Core constants used across SheetSync modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".sheetsync")
DEFAULT_BRANCH = "main"
DEFAULT_SOURCE_KIND = "google-sheets"
SUPPORTED_SOURCE_KINDS = ("google-sheets", "local")
DEFAULT_EXPORT_WORKERS = 4
DEFAULT_REPORT_FORMAT = "text"
SUPPORTED_REPORT_FORMATS = ("text", "json", "markdown")
DEFAULT_IMPORT_MODE = "upsert"
SUPPORTED_IMPORT_MODES = ("upsert", "replace")
DEFAULT_MAX_ATTEMPTS = 1
DEFAULT_RETRY_WAIT_SECONDS = 1.0
MAX_RETRY_WAIT_SECONDS = 30.0
DEFAULT_COMMIT_MESSAGE = "Sync table from external source"
ROOT_COMMIT_MESSAGE = "Initialize branch"
MIN_REVISION_PREFIX_LENGTH = 4
HASH_ALGORITHM = "sha256"
EXPORT_FILE_SUFFIX = ".csv"
WORKDIR_PREFIX = "sheetsync-"
OBJECTS_DIR_NAME = "objects"
TABLES_DIR_NAME = "tables"
REVISIONS_DIR_NAME = "revisions"
REFS_DIR_NAME = "refs"
HEADS_DIR_NAME = "heads"
REMOTES_DIR_NAME = "remotes"
LOCK_FILE_SUFFIX = ".lock"
SCHEMA_FILE_NAME = "schema.json"
ROWS_FILE_NAME = "rows.jsonl"
LANCE_DIR_NAME = "data.lance"
SHEETS_API_SCOPES = ("https://www.googleapis.com/auth/spreadsheets.readonly",)
SHEETS_API_NAME = "sheets"
SHEETS_API_VERSION = "v4"
