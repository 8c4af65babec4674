"""Serialization codecs for the persisted database blob.

A codec turns the plain state payload into bytes and back. JSON is the
default; YAML is available when PyYAML is installed.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from core.constants import TEXT_ENCODING
from core.errors import PersistenceError, StoreConfigError, StoreDependencyError


class StateCodec(Protocol):
    """Encode and decode the state payload."""

    name: str

    def encode(self, state: dict[str, Any]) -> bytes:
        """Encode a state payload to bytes.

        Raises:
            PersistenceError: If a value cannot be represented.
        """

    def decode(self, payload: bytes) -> object:
        """Decode bytes into a state payload.

        Raises:
            PersistenceError: If the payload cannot be parsed.
        """


class JsonStateCodec:
    """Compact UTF-8 JSON codec."""

    name = "json"

    def encode(self, state: dict[str, Any]) -> bytes:
        try:
            return json.dumps(state, separators=(",", ":")).encode(TEXT_ENCODING)
        except (TypeError, ValueError) as error:
            raise PersistenceError(
                f"Failed to encode database as JSON: {error}. "
                "Store only strings, numbers, booleans, None, lists, and dicts."
            ) from error

    def decode(self, payload: bytes) -> object:
        try:
            return json.loads(payload.decode(TEXT_ENCODING))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            raise PersistenceError(
                f"Failed to parse JSON database payload: {error}. "
                "Drop the database or restore a valid blob."
            ) from error


class YamlStateCodec:
    """PyYAML codec using the safe loader and dumper."""

    name = "yaml"

    def __init__(self) -> None:
        self._yaml = _import_yaml()

    def encode(self, state: dict[str, Any]) -> bytes:
        try:
            text = self._yaml.safe_dump(state, sort_keys=False, allow_unicode=True)
            return str(text).encode(TEXT_ENCODING)
        except (UnicodeEncodeError, self._yaml.YAMLError) as error:
            raise PersistenceError(
                f"Failed to encode database as YAML: {error}. "
                "Store only strings, numbers, booleans, None, lists, and dicts."
            ) from error

    def decode(self, payload: bytes) -> object:
        try:
            return self._yaml.safe_load(payload.decode(TEXT_ENCODING))
        except (UnicodeDecodeError, self._yaml.YAMLError) as error:
            raise PersistenceError(
                f"Failed to parse YAML database payload: {error}. "
                "Drop the database or restore a valid blob."
            ) from error


def resolve_codec(name: str) -> StateCodec:
    """Build a codec by name.

    Args:
        name: ``json`` or ``yaml``.

    Returns:
        Codec instance.

    Raises:
        StoreConfigError: If the codec name is unknown.
    """
    normalized = name.strip().lower()
    if normalized == JsonStateCodec.name:
        return JsonStateCodec()
    if normalized == YamlStateCodec.name:
        return YamlStateCodec()
    raise StoreConfigError(
        f"Unknown codec '{name}': expected json or yaml. Choose a supported codec."
    )


def _import_yaml() -> Any:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise StoreDependencyError(
            "YAML codec support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    return yaml
