"""Table definitions and name validation.

This module tracks each table's ordered field list and auto-increment
counter. It is the leaf of the store: row storage and queries consult it
for declared fields but it never reads row data itself.
"""

from __future__ import annotations

import re
from typing import Iterable

from core.constants import FIRST_ROW_ID, RESERVED_ID_FIELD, VALID_NAME_PATTERN
from core.errors import DuplicateTableError, InvalidNameError, TableNotFoundError
from core.types import TableDef

_VALID_NAME = re.compile(VALID_NAME_PATTERN)


def is_valid_name(name: object) -> bool:
    """Return whether a name is letters, digits, and underscores only."""
    return bool(_VALID_NAME.match(str(name)))


def validate_name(name: object, kind: str) -> str:
    """Validate a database, table, or field name.

    Args:
        name: Candidate name.
        kind: Label used in the error message.

    Returns:
        The name as a string.

    Raises:
        InvalidNameError: If the name contains invalid characters.
    """
    if not is_valid_name(name):
        raise InvalidNameError(
            f"The {kind} name '{name}' contains invalid characters. "
            "Use only letters, digits, and underscores."
        )
    return str(name)


def normalize_fields(fields: Iterable[object]) -> list[str]:
    """Validate and de-duplicate field names, dropping the reserved ID.

    Args:
        fields: Field names in caller order.

    Returns:
        Unique field names in first-occurrence order.

    Raises:
        InvalidNameError: If any field name is invalid.
    """
    names = [validate_name(field, "field") for field in fields]
    unique = dict.fromkeys(names)
    unique.pop(RESERVED_ID_FIELD, None)
    return list(unique)


class SchemaRegistry:
    """In-memory registry of table definitions."""

    def __init__(self, tables: dict[str, TableDef] | None = None) -> None:
        self._tables: dict[str, TableDef] = tables if tables is not None else {}

    @property
    def tables(self) -> dict[str, TableDef]:
        """Live mapping of table name to definition."""
        return self._tables

    def table_exists(self, name: str) -> bool:
        """Return whether a table is defined."""
        return name in self._tables

    def table_count(self) -> int:
        """Return the number of defined tables."""
        return len(self._tables)

    def table_names(self) -> list[str]:
        """Return table names in creation order."""
        return list(self._tables)

    def get(self, name: str) -> TableDef:
        """Return a table definition.

        Raises:
            TableNotFoundError: If the table is not defined.
        """
        table = self._tables.get(name)
        if table is None:
            raise TableNotFoundError(
                f"The table '{name}' does not exist. Create it with create_table first."
            )
        return table

    def table_fields(self, name: str) -> list[str]:
        """Return a copy of the table's field list."""
        return list(self.get(name).fields)

    def column_exists(self, name: str, field: str) -> bool:
        """Return whether the table declares the field."""
        return field in self.get(name).fields

    def create_table(self, name: str, fields: Iterable[object]) -> TableDef:
        """Define a new table.

        Args:
            name: Table name.
            fields: Field names; duplicates and ID are normalized away.

        Returns:
            The new table definition.

        Raises:
            InvalidNameError: If the table or a field name is invalid.
            DuplicateTableError: If the table already exists.
        """
        validate_name(name, "table")
        if self.table_exists(name):
            raise DuplicateTableError(
                f"The table '{name}' already exists. Drop it or choose another name."
            )
        table = TableDef(fields=[RESERVED_ID_FIELD, *normalize_fields(fields)])
        self._tables[name] = table
        return table

    def drop_table(self, name: str) -> None:
        """Remove a table definition."""
        del self._tables[name]

    def append_fields(self, name: str, new_fields: Iterable[object]) -> list[str]:
        """Append fields to an existing table.

        Args:
            name: Table name.
            new_fields: Field names to add.

        Returns:
            Field names actually added, in order.

        Raises:
            InvalidNameError: If any field name is invalid.
        """
        table = self.get(name)
        added = [field for field in normalize_fields(new_fields) if field not in table.fields]
        table.fields.extend(added)
        return added

    def next_id(self, name: str) -> int:
        """Return the identifier for the next insert and advance the counter."""
        table = self.get(name)
        row_id = table.auto_increment
        table.auto_increment += 1
        return row_id

    def reset_counter(self, name: str) -> None:
        """Restart identifier assignment at the first row id."""
        self.get(name).auto_increment = FIRST_ROW_ID
