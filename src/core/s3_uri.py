"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for object-store destinations.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import ConduitLoadError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str

    def object_key(self, file_name: str) -> str:
        return f"{self.prefix.rstrip('/')}/{file_name}"


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 URI.

    Args:
        uri: URI in format ``s3://bucket/prefix``.

    Returns:
        Parsed bucket and prefix pair.

    Raises:
        ConduitLoadError: If bucket or prefix is missing.
    """
    stripped_uri = uri.removeprefix("s3://")
    bucket, _, prefix = stripped_uri.partition("/")
    if not bucket or not prefix.strip("/"):
        raise ConduitLoadError(
            f"Invalid S3 URI '{uri}': expected s3://bucket/prefix. "
            "Provide both bucket and prefix."
        )
    return S3Location(bucket=bucket, prefix=prefix)
