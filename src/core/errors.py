"""Table store exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each store responsibility raises a specific error type for debuggability.
"""

from __future__ import annotations


class TableStoreError(Exception):
    """Base exception for all table store failures."""


class StoreConfigError(TableStoreError):
    """Raised for invalid runtime configuration."""


class InvalidNameError(TableStoreError):
    """Raised when a database, table, or field name has invalid characters."""


class DuplicateTableError(TableStoreError):
    """Raised when creating a table that already exists."""


class TableNotFoundError(TableStoreError):
    """Raised when an operation targets a table that does not exist."""


class DataShapeError(TableStoreError):
    """Raised for malformed row, query, or bulk-load input."""


class PersistenceError(TableStoreError):
    """Raised by storage media and codecs when reading or writing fails."""


class StoreDroppedError(TableStoreError):
    """Raised when a dropped store instance is used again."""


class StoreDependencyError(TableStoreError):
    """Raised when an optional runtime dependency is missing."""
