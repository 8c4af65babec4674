"""Persistence gateway for the whole database.

This module converts the schema registry and row store to the plain
blob payload and back, and reads, writes, and removes that blob through
a key-value medium under ``<prefix><database name>``.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import (
    DEFAULT_KEY_PREFIX,
    RESERVED_ID_FIELD,
    STATE_DATA_KEY,
    STATE_TABLES_KEY,
    TABLE_AUTO_INCREMENT_KEY,
    TABLE_FIELDS_KEY,
)
from core.errors import DataShapeError, PersistenceError
from core.logging_config import get_logger
from core.types import Row, TableDef
from store.codecs import JsonStateCodec, StateCodec
from store.kv_medium import KeyValueMedium
from store.row_store import RowStore, normalize_id
from store.schema_registry import SchemaRegistry

_LOGGER = get_logger(__name__)


class PersistenceGateway:
    """Reads and writes one database blob on a medium."""

    def __init__(
        self,
        database_name: str,
        medium: KeyValueMedium,
        codec: StateCodec | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        """Create a gateway.

        Args:
            database_name: Logical database name.
            medium: Key-value medium holding the blob.
            codec: Blob codec, JSON when omitted.
            key_prefix: Prefix joined with the database name.
        """
        self._database_name = database_name
        self._medium = medium
        self._codec = codec or JsonStateCodec()
        self._key = f"{key_prefix}{database_name}"

    @property
    def key(self) -> str:
        """Storage key of the database blob."""
        return self._key

    def load(self) -> tuple[SchemaRegistry, RowStore] | None:
        """Load persisted state.

        Returns:
            Registry and row store, or None when the blob is absent or
            malformed.

        Raises:
            PersistenceError: If the medium itself cannot be read.
        """
        payload = self._medium.read(self._key)
        if payload is None:
            return None
        try:
            state = state_from_payload(self._codec.decode(payload))
        except PersistenceError as error:
            _LOGGER.warning(
                "store_state_malformed",
                database=self._database_name,
                key=self._key,
                reason=str(error),
            )
            return None
        registry, rows = state
        _LOGGER.info(
            "store_loaded",
            database=self._database_name,
            key=self._key,
            table_count=registry.table_count(),
        )
        return registry, rows

    def serialize(self, registry: SchemaRegistry, rows: RowStore) -> bytes:
        """Encode state without writing it."""
        return self._codec.encode(state_to_payload(registry, rows))

    def commit(self, registry: SchemaRegistry, rows: RowStore) -> bool:
        """Write state to the medium.

        Returns:
            True when written, False when encoding failed or the medium
            rejected the write.
        """
        try:
            blob = self.serialize(registry, rows)
            self._medium.write(self._key, blob)
        except PersistenceError as error:
            _LOGGER.warning(
                "store_commit_failed",
                database=self._database_name,
                key=self._key,
                reason=str(error),
            )
            return False
        _LOGGER.debug(
            "store_committed", database=self._database_name, key=self._key, size=len(blob)
        )
        return True

    def remove(self) -> None:
        """Delete the persisted blob."""
        self._medium.remove(self._key)


def state_to_payload(registry: SchemaRegistry, rows: RowStore) -> dict[str, Any]:
    """Serialize registry and rows into the plain blob payload.

    Args:
        registry: Table definitions.
        rows: Row storage.

    Returns:
        Payload with string row-id keys, safe for any codec.
    """
    tables = {
        name: {
            TABLE_FIELDS_KEY: list(table.fields),
            TABLE_AUTO_INCREMENT_KEY: table.auto_increment,
        }
        for name, table in registry.tables.items()
    }
    data = {
        name: {str(row_id): dict(row) for row_id, row in table_rows.items()}
        for name, table_rows in rows.data.items()
    }
    return {STATE_TABLES_KEY: tables, STATE_DATA_KEY: data}


def state_from_payload(payload: object) -> tuple[SchemaRegistry, RowStore]:
    """Deserialize the plain blob payload.

    Args:
        payload: Decoded blob.

    Returns:
        Registry and row store rebuilt from the payload.

    Raises:
        PersistenceError: If the payload shape is malformed.
    """
    root = _expect_mapping(payload, "database root")
    tables_payload = _expect_mapping(root.get(STATE_TABLES_KEY), STATE_TABLES_KEY)
    data_payload = _expect_mapping(root.get(STATE_DATA_KEY), STATE_DATA_KEY)
    if set(tables_payload) != set(data_payload):
        raise PersistenceError(
            "Table definitions and table data disagree on table names. "
            "Restore a consistent blob or drop the database."
        )
    tables = {
        str(name): _table_from_payload(str(name), value) for name, value in tables_payload.items()
    }
    data = {
        str(name): _rows_from_payload(str(name), data_payload[name]) for name in tables_payload
    }
    registry = SchemaRegistry(tables)
    return registry, RowStore(registry, data)


def _table_from_payload(name: str, payload: object) -> TableDef:
    table = _expect_mapping(payload, f"table '{name}'")
    fields = table.get(TABLE_FIELDS_KEY)
    if (
        not isinstance(fields, list)
        or not all(isinstance(field, str) for field in fields)
        or RESERVED_ID_FIELD not in fields
    ):
        raise PersistenceError(
            f"Table '{name}' has a malformed field list. Expected names including "
            f"'{RESERVED_ID_FIELD}'."
        )
    auto_increment = table.get(TABLE_AUTO_INCREMENT_KEY)
    if not isinstance(auto_increment, int) or isinstance(auto_increment, bool):
        raise PersistenceError(
            f"Table '{name}' has a malformed auto_increment counter. Expected an integer."
        )
    ordered = [RESERVED_ID_FIELD, *(field for field in fields if field != RESERVED_ID_FIELD)]
    return TableDef(fields=ordered, auto_increment=auto_increment)


def _rows_from_payload(name: str, payload: object) -> dict[int, Row]:
    rows: dict[int, Row] = {}
    for raw_id, raw_row in _expect_mapping(payload, f"data for table '{name}'").items():
        try:
            row_id = normalize_id(raw_id)
        except DataShapeError as error:
            raise PersistenceError(
                f"Table '{name}' has a non-integer row key {raw_id!r}. "
                "Rewrite the blob with integer row keys."
            ) from error
        row = dict(_expect_mapping(raw_row, f"row {raw_id} of table '{name}'"))
        row[RESERVED_ID_FIELD] = row_id
        rows[row_id] = row
    return dict(sorted(rows.items()))


def _expect_mapping(value: object, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PersistenceError(
            f"Malformed {context}: expected a mapping, got {type(value).__name__}."
        )
    return value
