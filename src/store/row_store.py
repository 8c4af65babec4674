"""Per-table row storage.

Rows live in one mapping per table keyed by integer identifier. Field
validation runs against the schema registry so that every stored row
carries exactly the table's declared fields.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from core.constants import RESERVED_ID_FIELD
from core.errors import DataShapeError
from core.types import Row, RowUpdater
from store.schema_registry import SchemaRegistry

_DIGITS = re.compile(r"^[0-9]+\Z")


def normalize_id(row_id: object) -> int:
    """Coerce an identifier to int so equality is numeric.

    Only ints and plain digit strings are identifiers.

    Raises:
        DataShapeError: If the value is not an integer identifier.
    """
    if isinstance(row_id, int) and not isinstance(row_id, bool):
        return row_id
    if isinstance(row_id, str) and _DIGITS.match(row_id):
        return int(row_id)
    raise DataShapeError(f"Row identifier {row_id!r} is not an integer. Pass numeric IDs.")


class RowStore:
    """Row mappings for every table in one database."""

    def __init__(
        self,
        registry: SchemaRegistry,
        data: dict[str, dict[int, Row]] | None = None,
    ) -> None:
        self._registry = registry
        self._data: dict[str, dict[int, Row]] = data if data is not None else {}

    @property
    def data(self) -> dict[str, dict[int, Row]]:
        """Live mapping of table name to rows by identifier."""
        return self._data

    def create_table(self, table: str) -> None:
        """Start an empty row mapping for a table."""
        self._data[table] = {}

    def drop_table(self, table: str) -> None:
        """Discard every row of a table along with its mapping."""
        del self._data[table]

    def truncate(self, table: str) -> None:
        """Discard every row but keep the table's mapping."""
        self._data[table] = {}

    def rows(self, table: str) -> dict[int, Row]:
        """Return the live row mapping for a table."""
        return self._data[table]

    def row_count(self, table: str) -> int:
        return len(self._data[table])

    def get_ids(self, table: str) -> list[int]:
        """Return every row identifier in ascending order."""
        return sorted(self._data[table])

    def valid_fields(self, table: str, data: Mapping[str, Any]) -> Row:
        """Keep only keys declared on the table, in table field order."""
        return {
            field: data[field] for field in self._registry.get(table).fields if field in data
        }

    def validate_data(self, table: str, data: Mapping[str, Any]) -> Row:
        """Populate every declared field, using None for absent ones."""
        return {field: data.get(field) for field in self._registry.get(table).fields}

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        """Store a new row and return its assigned identifier.

        Args:
            table: Existing table name.
            data: Field values; unknown fields are dropped.

        Returns:
            The row identifier.

        Raises:
            DataShapeError: If data is not a mapping.
        """
        if not isinstance(data, Mapping):
            raise DataShapeError(
                f"Row data for table '{table}' must be a mapping, got {type(data).__name__}. "
                "Pass a dict of field values."
            )
        row = self.validate_data(table, data)
        row_id = self._registry.next_id(table)
        row[RESERVED_ID_FIELD] = row_id
        self._data[table][row_id] = row
        return row_id

    def delete_rows(self, table: str, ids: Iterable[object]) -> int:
        """Remove rows by identifier, skipping ones that are absent.

        Returns:
            Number of rows actually removed.
        """
        rows = self._data[table]
        removed = 0
        for row_id in ids:
            if rows.pop(normalize_id(row_id), None) is not None:
                removed += 1
        return removed

    def update(self, table: str, ids: Iterable[object], update_fn: RowUpdater) -> int:
        """Merge the result of update_fn onto each identified row.

        update_fn receives a shallow copy of the row. A falsy result leaves
        the row untouched. A mapping result is merged over the existing
        fields with ID discarded, then filtered to declared fields. Every
        result is checked before any row is written, so a bad result
        leaves the table unchanged.

        Returns:
            Number of rows updated.

        Raises:
            DataShapeError: If update_fn returns a truthy non-mapping.
        """
        rows = self._data[table]
        pending: list[tuple[int, Mapping[str, Any]]] = []
        for raw_id in ids:
            row_id = normalize_id(raw_id)
            existing = rows.get(row_id)
            if existing is None:
                continue
            changes = update_fn(dict(existing))
            if not changes:
                continue
            if not isinstance(changes, Mapping):
                raise DataShapeError(
                    f"Update function returned {type(changes).__name__} for row {row_id} "
                    f"of table '{table}'. Return a dict of changed fields or None."
                )
            pending.append((row_id, dict(changes)))
        for row_id, changes in pending:
            merged = dict(rows[row_id])
            merged.update(
                (field, value) for field, value in changes.items() if field != RESERVED_ID_FIELD
            )
            rows[row_id] = self.valid_fields(table, merged)
        return len(pending)

    def fill_field(self, table: str, field: str, value: Any) -> None:
        """Set one field on every existing row of a table."""
        for row in self._data[table].values():
            row[field] = value
