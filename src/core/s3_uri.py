"""S3 URI parsing helpers.

This module centralizes parsing of the ``s3://`` remote store URI.
It keeps URI validation behavior consistent across config and push.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import SheetSyncConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str

    def key_for(self, relative_key: str) -> str:
        """Join a relative object key under this location's prefix."""
        return f"{self.prefix.rstrip('/')}/{relative_key.lstrip('/')}"


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 URI.

    Args:
        uri: URI in format ``s3://bucket/prefix``.

    Returns:
        Parsed bucket and prefix pair.

    Raises:
        SheetSyncConfigError: If the URI is malformed.
    """
    if not uri.startswith("s3://"):
        _raise_uri_error(uri)
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri)
    bucket, prefix = stripped_uri.split("/", 1)
    if not bucket or not prefix.strip("/"):
        _raise_uri_error(uri)
    return S3Location(bucket=bucket, prefix=prefix.strip("/"))


def _raise_uri_error(uri: str) -> None:
    raise SheetSyncConfigError(
        f"Invalid remote URI '{uri}': expected s3://bucket/prefix. "
        "Set SHEETSYNC_REMOTE_URI with both bucket and prefix."
    )
