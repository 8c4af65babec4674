"""Key-value storage media for the persisted database blob.

Each medium stores opaque bytes under string keys. Failures surface as
PersistenceError so the gateway can report a failed commit without
touching in-memory state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from core.config import StoreConfig
from core.constants import MEDIUM_FILE_SUFFIX
from core.errors import PersistenceError, StoreConfigError, StoreDependencyError

_MISSING_OBJECT_CODES = ("NoSuchKey", "404", "NotFound")


class KeyValueMedium(Protocol):
    """Byte storage addressed by key."""

    def read(self, key: str) -> bytes | None:
        """Return stored bytes, or None when the key is absent."""

    def write(self, key: str, payload: bytes) -> None:
        """Store bytes under a key.

        Raises:
            PersistenceError: If the medium rejects the write.
        """

    def remove(self, key: str) -> None:
        """Delete a key if present."""


class MemoryMedium:
    """Process-local medium, optionally bounded by a byte quota."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._items: dict[str, bytes] = {}
        self._max_bytes = max_bytes

    def read(self, key: str) -> bytes | None:
        return self._items.get(key)

    def write(self, key: str, payload: bytes) -> None:
        if self._max_bytes is not None:
            used = sum(len(value) for name, value in self._items.items() if name != key)
            if used + len(payload) > self._max_bytes:
                raise PersistenceError(
                    f"Storage quota exceeded writing '{key}': {used + len(payload)} bytes "
                    f"over a {self._max_bytes} byte limit. Remove data or raise the quota."
                )
        self._items[key] = bytes(payload)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        """Return stored keys in insertion order."""
        return list(self._items)


class DirectoryMedium:
    """Filesystem medium storing one file per key under a root directory."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def read(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as error:
            raise PersistenceError(
                f"Failed to read database blob at {path}: {error}. "
                "Check file permissions and retry."
            ) from error

    def write(self, key: str, payload: bytes) -> None:
        path = self._path(key)
        staging_path = path.with_name(path.name + ".tmp")
        try:
            staging_path.write_bytes(payload)
            staging_path.replace(path)
        except OSError as error:
            raise PersistenceError(
                f"Failed to write database blob at {path}: {error}. "
                "Check free disk space and permissions, then commit again."
            ) from error

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as error:
            raise PersistenceError(
                f"Failed to delete database blob at {path}: {error}. "
                "Check file permissions and retry."
            ) from error

    def _path(self, key: str) -> Path:
        return self._root / f"{key}{MEDIUM_FILE_SUFFIX}"


class S3Medium:
    """S3 medium storing one object per key under a bucket prefix."""

    def __init__(self, s3_client: Any, bucket: str, prefix: str = "") -> None:
        self._client = s3_client
        self._bucket = bucket
        self._prefix = prefix.strip("/")

    def read(self, key: str) -> bytes | None:
        object_key = self._object_key(key)
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=object_key)
            return bytes(response["Body"].read())
        except Exception as error:
            if _is_missing_object(error):
                return None
            raise PersistenceError(
                f"Failed to read s3://{self._bucket}/{object_key}: {error}. "
                "Check AWS credentials and bucket access."
            ) from error

    def write(self, key: str, payload: bytes) -> None:
        object_key = self._object_key(key)
        try:
            self._client.put_object(Bucket=self._bucket, Key=object_key, Body=payload)
        except Exception as error:
            raise PersistenceError(
                f"Failed to write s3://{self._bucket}/{object_key}: {error}. "
                "Check AWS credentials and retry commit."
            ) from error

    def remove(self, key: str) -> None:
        object_key = self._object_key(key)
        try:
            self._client.delete_object(Bucket=self._bucket, Key=object_key)
        except Exception as error:
            raise PersistenceError(
                f"Failed to delete s3://{self._bucket}/{object_key}: {error}. "
                "Check AWS credentials and bucket access."
            ) from error

    def _object_key(self, key: str) -> str:
        if not self._prefix:
            return f"{key}{MEDIUM_FILE_SUFFIX}"
        return f"{self._prefix}/{key}{MEDIUM_FILE_SUFFIX}"


def create_s3_client(config: StoreConfig) -> Any:
    """Create boto3 S3 client for the S3 medium.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        StoreDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise StoreDependencyError(
            "The S3 medium requires boto3, but it is not installed. "
            "Install boto3 to persist databases to S3."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def build_medium(config: StoreConfig) -> KeyValueMedium:
    """Build the medium named by config.

    Raises:
        StoreConfigError: If the medium is unknown or under-configured.
    """
    if config.medium_name == "memory":
        return MemoryMedium()
    if config.medium_name == "directory":
        return DirectoryMedium(config.data_root)
    if config.medium_name == "s3":
        if not config.s3_bucket:
            raise StoreConfigError(
                "The S3 medium needs a bucket. Set TABLESTORE_S3_BUCKET and retry."
            )
        return S3Medium(create_s3_client(config), config.s3_bucket)
    raise StoreConfigError(
        f"Unknown medium '{config.medium_name}': expected memory, directory, or s3. "
        "Set TABLESTORE_MEDIUM to a supported value."
    )


def _is_missing_object(error: Exception) -> bool:
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return False
    code = str(response.get("Error", {}).get("Code", ""))
    return code in _MISSING_OBJECT_CODES
