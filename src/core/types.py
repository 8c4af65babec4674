"""Shared typed models.

This module defines the schema, row, and query models used by the
schema registry, row store, query engine, and persistence layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence, Union

from core.constants import FIRST_ROW_ID, SORT_ASCENDING

Row = dict[str, Any]
RowPredicate = Callable[[Row], object]
RowUpdater = Callable[[Row], object]


@dataclass
class TableDef:
    """Definition of one table.

    Attributes:
        fields: Ordered unique field names, reserved ID first.
        auto_increment: Next unused row identifier.
    """

    fields: list[str]
    auto_increment: int = FIRST_ROW_ID


@dataclass(frozen=True)
class ValueMatch:
    """Query matching rows whose fields equal the given values.

    Attributes:
        values: Field name to expected value pairs.
    """

    values: Mapping[str, Any]


@dataclass(frozen=True)
class Predicate:
    """Query matching rows for which a function returns exactly True.

    Attributes:
        function: Callable invoked with a copy of each row.
    """

    function: RowPredicate


Query = Union[None, ValueMatch, Predicate]


@dataclass(frozen=True)
class SortKey:
    """One sort pass applied by select.

    Attributes:
        field: Field to order by.
        order: ASC or DESC.
    """

    field: str
    order: str = SORT_ASCENDING


@dataclass(frozen=True)
class QueryParams:
    """Keyword-style query options for query_all.

    Attributes:
        query: Raw query (mapping, callable, or typed variant).
        limit: Maximum number of rows to return.
        start: Offset of the first row to return.
        sort: Sort keys applied in order.
        distinct: Fields de-duplicated in order.
    """

    query: object = None
    limit: int | None = None
    start: int | None = None
    sort: Sequence[object] = field(default_factory=tuple)
    distinct: Sequence[str] = field(default_factory=tuple)
