"""Public SDK surface for the table store.

This module provides a stable import path for users.
It re-exports the store, its media and codecs, and typed query models.
"""

from __future__ import annotations

from core.config import StoreConfig
from core.errors import (
    DataShapeError,
    DuplicateTableError,
    InvalidNameError,
    PersistenceError,
    StoreDroppedError,
    TableNotFoundError,
    TableStoreError,
)
from core.types import Predicate, QueryParams, SortKey, TableDef, ValueMatch
from store.codecs import JsonStateCodec, YamlStateCodec, resolve_codec
from store.kv_medium import DirectoryMedium, MemoryMedium, S3Medium
from store.table_store import TableStore, open_store

__all__ = [
    "DataShapeError",
    "DirectoryMedium",
    "DuplicateTableError",
    "InvalidNameError",
    "JsonStateCodec",
    "MemoryMedium",
    "PersistenceError",
    "Predicate",
    "QueryParams",
    "S3Medium",
    "SortKey",
    "StoreConfig",
    "StoreDroppedError",
    "TableDef",
    "TableNotFoundError",
    "TableStore",
    "TableStoreError",
    "ValueMatch",
    "YamlStateCodec",
    "open_store",
    "resolve_codec",
]
