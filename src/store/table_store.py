"""Document-table store over a key-value medium.

TableStore is the public entry point. It owns one database's schema
registry and row store, runs an explicit existence guard before every
table operation, and persists only when commit is called.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Iterable, Mapping, Sequence

from core.config import StoreConfig
from core.constants import DEFAULT_KEY_PREFIX
from core.errors import DataShapeError, StoreDroppedError, TableNotFoundError
from core.logging_config import get_logger
from core.types import QueryParams, Row, RowUpdater
from store.codecs import StateCodec, resolve_codec
from store.kv_medium import KeyValueMedium, build_medium
from store.persistence import PersistenceGateway
from store.query_engine import as_query, resolve_ids, select
from store.row_store import RowStore
from store.schema_registry import SchemaRegistry, validate_name

_LOGGER = get_logger(__name__)
_QUERY_PARAM_NAMES = ("query", "limit", "start", "sort", "distinct")


class TableStore:
    """In-memory tables mirrored to one serialized blob.

    Every public method holds the instance lock for its whole duration,
    so read-then-write operations such as insert_or_update are atomic
    relative to other threads using the same instance.
    """

    def __init__(
        self,
        database_name: str,
        medium: KeyValueMedium,
        codec: StateCodec | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        """Open a database, creating it when nothing valid is persisted.

        Args:
            database_name: Logical database name.
            medium: Key-value medium holding the blob.
            codec: Blob codec, JSON when omitted.
            key_prefix: Prefix joined with the database name.

        Raises:
            InvalidNameError: If a new database has an invalid name.
            PersistenceError: If the medium cannot be read.
        """
        self._lock = RLock()
        self._name = database_name
        self._gateway = PersistenceGateway(database_name, medium, codec, key_prefix)
        self._is_new = False
        self._registry: SchemaRegistry | None = None
        self._rows: RowStore | None = None
        loaded = self._gateway.load()
        if loaded is not None:
            self._registry, self._rows = loaded
            return
        validate_name(database_name, "database")
        self._registry = SchemaRegistry()
        self._rows = RowStore(self._registry)
        self._is_new = True
        self._gateway.commit(self._registry, self._rows)
        _LOGGER.info("store_created", database=database_name, key=self._gateway.key)

    # database

    def is_new(self) -> bool:
        """Return whether construction created a fresh database."""
        return self._is_new

    def drop(self) -> None:
        """Remove the persisted blob and discard in-memory state."""
        with self._lock:
            self._state()
            self._gateway.remove()
            self._registry = None
            self._rows = None
            _LOGGER.info("store_dropped", database=self._name, key=self._gateway.key)

    def commit(self) -> bool:
        """Persist the database; False when the medium rejects the write."""
        with self._lock:
            registry, rows = self._state()
            return self._gateway.commit(registry, rows)

    def serialize(self) -> bytes:
        """Return the encoded database without persisting it."""
        with self._lock:
            registry, rows = self._state()
            return self._gateway.serialize(registry, rows)

    def table_count(self) -> int:
        with self._lock:
            registry, _ = self._state()
            return registry.table_count()

    # tables

    def table_exists(self, table: str) -> bool:
        with self._lock:
            registry, _ = self._state()
            return registry.table_exists(table)

    def table_fields(self, table: str) -> list[str]:
        """Return the table's fields, ID first."""
        with self._lock:
            registry, _ = self._require_table(table)
            return registry.table_fields(table)

    def column_exists(self, table: str, field: str) -> bool:
        with self._lock:
            registry, _ = self._require_table(table)
            return registry.column_exists(table, field)

    def create_table(self, table: str, fields: Iterable[str]) -> bool:
        """Create an empty table.

        Args:
            table: Table name.
            fields: Field names. Duplicates are collapsed and the reserved
                ID field is always placed first.

        Returns:
            True once the table exists.

        Raises:
            InvalidNameError: If the table or a field name is invalid.
            DuplicateTableError: If the table already exists.
        """
        with self._lock:
            registry, rows = self._state()
            definition = registry.create_table(table, fields)
            rows.create_table(table)
            _LOGGER.info(
                "table_created", database=self._name, table=table, fields=definition.fields
            )
            return True

    def create_table_with_data(self, table: str, data: Sequence[Mapping[str, Any]]) -> bool:
        """Create a table from a list of rows and insert them.

        Fields are taken from the first row. The database is committed
        after creation and again after the rows are inserted.

        Raises:
            DataShapeError: If data is not a non-empty list of mappings.
        """
        if (
            isinstance(data, (str, bytes))
            or not isinstance(data, Sequence)
            or not data
            or not all(isinstance(item, Mapping) for item in data)
        ):
            raise DataShapeError(
                "Data supplied isn't a list of row mappings. "
                "Example: [{'k': 'v', 'k2': 'v2'}, {'k': 'v', 'k2': 'v2'}]."
            )
        with self._lock:
            self.create_table(table, list(data[0].keys()))
            self.commit()
            _, rows = self._state()
            for item in data:
                rows.insert(table, item)
            self.commit()
            return True

    def drop_table(self, table: str) -> None:
        """Delete a table and all of its rows."""
        with self._lock:
            registry, rows = self._require_table(table)
            registry.drop_table(table)
            rows.drop_table(table)
            _LOGGER.info("table_dropped", database=self._name, table=table)

    def truncate(self, table: str) -> None:
        """Delete all rows and restart identifiers at 1."""
        with self._lock:
            registry, rows = self._require_table(table)
            registry.reset_counter(table)
            rows.truncate(table)
            _LOGGER.info("table_truncated", database=self._name, table=table)

    def alter_table(
        self,
        table: str,
        new_fields: str | Iterable[str],
        default_values: object = None,
    ) -> bool:
        """Append fields to a table and backfill existing rows.

        Args:
            table: Table name.
            new_fields: One field name or a list of names.
            default_values: Scalar applied to every new field, or a mapping
                of field name to default. Missing defaults are None.

        Returns:
            True once the fields are added.

        Raises:
            InvalidNameError: If the table or a field name is invalid.
            TableNotFoundError: If the table does not exist.
        """
        validate_name(table, "table")
        names = [new_fields] if isinstance(new_fields, str) else list(new_fields)
        with self._lock:
            registry, rows = self._require_table(table)
            added = registry.append_fields(table, names)
            for field in added:
                if isinstance(default_values, Mapping):
                    rows.fill_field(table, field, default_values.get(field))
                else:
                    rows.fill_field(table, field, default_values)
            _LOGGER.info("table_altered", database=self._name, table=table, added_fields=added)
            return True

    # rows

    def row_count(self, table: str) -> int:
        with self._lock:
            _, rows = self._require_table(table)
            return rows.row_count(table)

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        """Insert a row and return its auto-incremented ID."""
        with self._lock:
            _, rows = self._require_table(table)
            row_id = rows.insert(table, data)
            _LOGGER.debug("row_inserted", database=self._name, table=table, row_id=row_id)
            return row_id

    def insert_or_update(
        self, table: str, query: object, data: Mapping[str, Any]
    ) -> int | list[int]:
        """Insert data when nothing matches, otherwise overwrite every match.

        Returns:
            The new row ID after an insert, or the matched IDs after an update.
        """
        with self._lock:
            _, rows = self._require_table(table)
            ids = resolve_ids(rows, table, as_query(query))
            if not ids:
                return rows.insert(table, data)
            rows.update(table, ids, lambda _row: data)
            return ids

    def update(self, table: str, query: object, update_fn: RowUpdater) -> int:
        """Apply update_fn to matching rows and return how many changed.

        A None query matches every row. update_fn receives a copy of each
        row and returns the fields to change, or a falsy value to skip.
        """
        with self._lock:
            _, rows = self._require_table(table)
            ids = resolve_ids(rows, table, as_query(query))
            return rows.update(table, ids, update_fn)

    def delete_rows(self, table: str, query: object = None) -> int:
        """Delete matching rows (every row for a None query)."""
        with self._lock:
            _, rows = self._require_table(table)
            ids = resolve_ids(rows, table, as_query(query))
            removed = rows.delete_rows(table, ids)
            _LOGGER.debug("rows_deleted", database=self._name, table=table, count=removed)
            return removed

    def query(
        self,
        table: str,
        query: object = None,
        limit: int | None = None,
        start: int | None = None,
        sort: Sequence[object] | None = None,
        distinct: Sequence[str] | None = None,
    ) -> list[Row]:
        """Return copies of matching rows.

        Args:
            table: Table name.
            query: None, a field-value mapping, or a function of a row.
            limit: Maximum rows returned.
            start: Offset of the first row returned.
            sort: Sort keys such as ``[["age", "DESC"]]``, applied in order.
            distinct: Fields whose repeated values are dropped.

        Returns:
            Selected rows.
        """
        with self._lock:
            _, rows = self._require_table(table)
            ids = resolve_ids(rows, table, as_query(query))
            return select(rows, table, ids, start, limit, sort, distinct)

    def query_all(
        self, table: str, params: QueryParams | Mapping[str, Any] | None = None
    ) -> list[Row]:
        """Keyword-style form of query.

        Args:
            table: Table name.
            params: QueryParams or a mapping with any of query, limit,
                start, sort, and distinct.
        """
        if params is None:
            return self.query(table)
        if isinstance(params, QueryParams):
            return self.query(
                table, params.query, params.limit, params.start, params.sort, params.distinct
            )
        if not isinstance(params, Mapping):
            raise DataShapeError(
                f"Query parameters must be a mapping, got {type(params).__name__}. "
                f"Use keys from {', '.join(_QUERY_PARAM_NAMES)}."
            )
        return self.query(table, *(params.get(name) for name in _QUERY_PARAM_NAMES))

    def get_ids(self, table: str) -> list[int]:
        """Return every row identifier of a table in ascending order."""
        with self._lock:
            _, rows = self._require_table(table)
            return rows.get_ids(table)

    def _state(self) -> tuple[SchemaRegistry, RowStore]:
        if self._registry is None or self._rows is None:
            raise StoreDroppedError(
                f"The database '{self._name}' was dropped. Open a new TableStore to continue."
            )
        return self._registry, self._rows

    def _require_table(self, table: str) -> tuple[SchemaRegistry, RowStore]:
        registry, rows = self._state()
        if not registry.table_exists(table):
            raise TableNotFoundError(
                f"The table '{table}' does not exist. Create it with create_table first."
            )
        return registry, rows


def open_store(database_name: str, config: StoreConfig | None = None) -> TableStore:
    """Open a TableStore wired from runtime configuration.

    Args:
        database_name: Logical database name.
        config: Optional runtime configuration; read from env when omitted.

    Returns:
        Open store.
    """
    resolved = config or StoreConfig.from_env()
    return TableStore(
        database_name,
        build_medium(resolved),
        resolve_codec(resolved.codec_name),
        resolved.key_prefix,
    )
