"""Core constants used across table store modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".tablestore")
DEFAULT_KEY_PREFIX = "db_"
DEFAULT_CODEC_NAME = "json"
DEFAULT_MEDIUM_NAME = "directory"
SUPPORTED_CODEC_NAMES = ("json", "yaml")
SUPPORTED_MEDIUM_NAMES = ("memory", "directory", "s3")
RESERVED_ID_FIELD = "ID"
VALID_NAME_PATTERN = r"^[A-Za-z0-9_]+$"
FIRST_ROW_ID = 1
SORT_ASCENDING = "ASC"
SORT_DESCENDING = "DESC"
STATE_TABLES_KEY = "tables"
STATE_DATA_KEY = "data"
TABLE_FIELDS_KEY = "fields"
TABLE_AUTO_INCREMENT_KEY = "auto_increment"
MEDIUM_FILE_SUFFIX = ".blob"
TEXT_ENCODING = "utf-8"
