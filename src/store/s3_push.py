"""S3 push helpers for revision store objects.

This module encapsulates boto3 client creation and file upload.
It is shared by branch push operations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from core.config import SheetSyncConfig
from core.errors import SheetSyncConfigError, SheetSyncDependencyError, SheetSyncStoreError
from core.s3_uri import S3Location


def create_s3_client(config: SheetSyncConfig) -> Any:
    """Create boto3 S3 client for pushes.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        SheetSyncDependencyError: If boto3 is missing.
        SheetSyncConfigError: If the session settings are invalid.
    """
    try:
        import boto3
        from botocore.exceptions import BotoCoreError
    except ImportError as error:
        raise SheetSyncDependencyError(
            "Pushing requires boto3, but it is not installed. "
            "Install boto3 to push revisions to s3:// remotes."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    try:
        session = boto3.session.Session(**session_kwargs)
        return session.client("s3")
    except BotoCoreError as error:
        raise SheetSyncConfigError(
            f"Failed to create S3 client: {error}. "
            "Check SHEETSYNC_S3_PROFILE and SHEETSYNC_S3_REGION."
        ) from error


def upload_files(
    s3_client: Any,
    store_root: Path,
    local_files: Sequence[Path],
    location: S3Location,
) -> int:
    """Upload store files to S3, mirroring their store-relative layout.

    Args:
        s3_client: Boto3 S3 client.
        store_root: Revision store root directory.
        local_files: Files under ``store_root`` in upload order.
        location: Destination bucket and prefix.

    Returns:
        Number of uploaded files.

    Raises:
        SheetSyncStoreError: If any upload fails.
    """
    uploaded = 0
    for local_file in local_files:
        relative_path = local_file.relative_to(store_root)
        object_key = location.key_for(relative_path.as_posix())
        try:
            s3_client.upload_file(str(local_file), location.bucket, object_key)
        except Exception as error:
            raise SheetSyncStoreError(
                f"Failed to push store file {local_file} to "
                f"s3://{location.bucket}/{object_key}: {error}. "
                "Check AWS credentials and retry the push."
            ) from error
        uploaded += 1
    return uploaded
