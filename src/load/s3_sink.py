"""S3 destination.

This module encapsulates boto3 client creation and object upload. The
dataset is serialized locally and uploaded as one object, which S3
replaces atomically on re-runs.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

from core.config import Settings
from core.errors import ConduitDependencyError, ConduitLoadError
from core.s3_uri import parse_s3_uri
from core.types import Dataset, LoadResult
from load.file_sink import write_table_file


def create_s3_client(settings: Settings) -> Any:
    """Create boto3 S3 client for uploads.

    Raises:
        ConduitDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise ConduitDependencyError(
            "S3 destinations require boto3, but it is not installed. "
            "Install boto3 to load datasets to s3:// destinations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if settings.aws_profile:
        session_kwargs["profile_name"] = settings.aws_profile
    if settings.aws_region:
        session_kwargs["region_name"] = settings.aws_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def upload_dataset(
    dataset: Dataset,
    settings: Settings,
    file_stem: str,
    s3_client: Any | None = None,
) -> LoadResult:
    """Serialize a dataset and upload it under the configured prefix.

    Raises:
        ConduitLoadError: If the URI is invalid or the upload fails.
    """
    location = parse_s3_uri(settings.output_uri)
    file_name = f"{file_stem}.{settings.output_format}"
    object_key = location.object_key(file_name)
    client = s3_client or create_s3_client(settings)
    with tempfile.TemporaryDirectory(prefix="conduit-") as staging_dir:
        local_file = Path(staging_dir) / file_name
        write_table_file(dataset, local_file, settings.output_format)
        try:
            client.upload_file(str(local_file), location.bucket, object_key)
        except Exception as error:
            raise ConduitLoadError(
                f"Failed to upload {file_name} to s3://{location.bucket}/{object_key}: {error}. "
                "Check AWS credentials and retry."
            ) from error
    return LoadResult(
        destination=f"s3://{location.bucket}/{object_key}",
        rows_written=dataset.num_rows,
    )
