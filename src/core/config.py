"""Runtime configuration model for the table store.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
import re
from pathlib import Path

from core.constants import (
    DEFAULT_CODEC_NAME,
    DEFAULT_DATA_ROOT,
    DEFAULT_KEY_PREFIX,
    DEFAULT_MEDIUM_NAME,
    SUPPORTED_CODEC_NAMES,
    SUPPORTED_MEDIUM_NAMES,
    VALID_NAME_PATTERN,
)
from core.errors import StoreConfigError


@dataclass(frozen=True)
class StoreConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the directory medium.
        key_prefix: Prefix joined with the database name to form the storage key.
        codec_name: Serialization codec for the persisted blob.
        medium_name: Key-value medium used to persist the blob.
        s3_bucket: Bucket for the S3 medium.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    data_root: Path
    key_prefix: str = DEFAULT_KEY_PREFIX
    codec_name: str = DEFAULT_CODEC_NAME
    medium_name: str = DEFAULT_MEDIUM_NAME
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_profile: str | None = None

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            StoreConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("TABLESTORE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        key_prefix = _parse_key_prefix(os.getenv("TABLESTORE_KEY_PREFIX", DEFAULT_KEY_PREFIX))
        codec_name = _parse_choice(
            "TABLESTORE_CODEC",
            os.getenv("TABLESTORE_CODEC", DEFAULT_CODEC_NAME),
            SUPPORTED_CODEC_NAMES,
        )
        medium_name = _parse_choice(
            "TABLESTORE_MEDIUM",
            os.getenv("TABLESTORE_MEDIUM", DEFAULT_MEDIUM_NAME),
            SUPPORTED_MEDIUM_NAMES,
        )
        s3_bucket = os.getenv("TABLESTORE_S3_BUCKET")
        if medium_name == "s3" and not s3_bucket:
            raise StoreConfigError(
                "TABLESTORE_MEDIUM is 's3' but TABLESTORE_S3_BUCKET is not set. "
                "Set TABLESTORE_S3_BUCKET to the destination bucket name."
            )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            key_prefix=key_prefix,
            codec_name=codec_name,
            medium_name=medium_name,
            s3_bucket=s3_bucket,
            s3_region=os.getenv("TABLESTORE_S3_REGION"),
            s3_profile=os.getenv("TABLESTORE_S3_PROFILE"),
        )


def _parse_key_prefix(raw_value: str) -> str:
    """Validate the storage key prefix.

    Args:
        raw_value: Raw string from environment.

    Returns:
        The prefix unchanged.

    Raises:
        StoreConfigError: If the prefix contains invalid characters.
    """
    if not re.match(VALID_NAME_PATTERN, raw_value):
        raise StoreConfigError(
            f"Invalid TABLESTORE_KEY_PREFIX value '{raw_value}': "
            "expected letters, digits, or underscores. Choose a simpler prefix."
        )
    return raw_value


def _parse_choice(variable: str, raw_value: str, choices: tuple[str, ...]) -> str:
    """Parse an enumerated environment value.

    Args:
        variable: Environment variable name used in error messages.
        raw_value: Raw string from environment.
        choices: Supported values.

    Returns:
        The normalized lowercase value.

    Raises:
        StoreConfigError: If the value is not supported.
    """
    normalized = raw_value.strip().lower()
    if normalized not in choices:
        raise StoreConfigError(
            f"Invalid {variable} value: expected one of {', '.join(choices)}, "
            f"got '{raw_value}'. Set {variable} to a supported value."
        )
    return normalized
