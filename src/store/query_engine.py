"""Query resolution and result selection.

This module resolves a query variant into matching row identifiers and
turns identifier lists into result rows with sort, distinct, and
pagination applied in that order.
"""

from __future__ import annotations

from functools import cmp_to_key
import json
from typing import Any, Callable, Mapping, Sequence

from core.constants import SORT_ASCENDING, SORT_DESCENDING
from core.errors import DataShapeError
from core.types import Predicate, Query, Row, SortKey, ValueMatch
from store.row_store import RowStore

# Ordering between values whose types cannot be compared directly.
_TYPE_RANK = {type(None): 0, bool: 1, int: 1, float: 1, str: 2}
_OTHER_TYPE_RANK = 3


def as_query(raw: object) -> Query:
    """Convert a caller-supplied query into a typed variant.

    Args:
        raw: None, a field-value mapping, a callable, or a typed variant.

    Returns:
        The typed query.

    Raises:
        DataShapeError: If the query has an unsupported shape.
    """
    if raw is None or isinstance(raw, (ValueMatch, Predicate)):
        return raw
    if isinstance(raw, Mapping):
        return ValueMatch(values=dict(raw))
    if callable(raw):
        return Predicate(function=raw)
    raise DataShapeError(
        f"Unsupported query of type {type(raw).__name__}. "
        "Pass None, a dict of field values, or a function returning True for matches."
    )


def resolve_ids(rows: RowStore, table: str, query: Query) -> list[int]:
    """Return identifiers of the rows matching a query, in id order."""
    if query is None:
        return rows.get_ids(table)
    if isinstance(query, ValueMatch):
        return _query_by_values(rows, table, rows.valid_fields(table, query.values))
    return _query_by_function(rows, table, query.function)


def _query_by_values(rows: RowStore, table: str, expected: Row) -> list[int]:
    table_rows = rows.rows(table)
    return [
        row_id
        for row_id in rows.get_ids(table)
        if all(
            _values_match(table_rows[row_id].get(field), value)
            for field, value in expected.items()
        )
    ]


def _query_by_function(rows: RowStore, table: str, function: Callable[[Row], object]) -> list[int]:
    table_rows = rows.rows(table)
    return [row_id for row_id in rows.get_ids(table) if function(dict(table_rows[row_id])) is True]


def _values_match(actual: Any, expected: Any) -> bool:
    # Strings only match strings, case-insensitively.
    if isinstance(expected, str):
        return isinstance(actual, str) and actual.lower() == expected.lower()
    # Numbers also match numeric strings.
    if _is_number(expected) and isinstance(actual, str):
        return _parse_number(actual) == expected
    return bool(actual == expected)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number(text: str) -> float | None:
    if not text.strip():
        return None
    try:
        return float(text)
    except ValueError:
        return None


def select(
    rows: RowStore,
    table: str,
    ids: Sequence[int],
    start: object = None,
    limit: object = None,
    sort: Sequence[object] | None = None,
    distinct: Sequence[str] | None = None,
) -> list[Row]:
    """Build result rows for identifiers.

    Args:
        rows: Row storage.
        table: Existing table name.
        ids: Matching row identifiers.
        start: Offset into the sorted, de-duplicated results.
        limit: Maximum number of results.
        sort: Sort keys applied as successive stable passes.
        distinct: Fields de-duplicated as successive passes.

    Returns:
        Copies of the selected rows.
    """
    table_rows = rows.rows(table)
    results = [dict(table_rows[row_id]) for row_id in ids]
    for sort_key in sort or ():
        results = sort_results(results, as_sort_key(sort_key))
    for field in distinct or ():
        results = distinct_results(results, field)
    return paginate(results, start, limit)


def as_sort_key(raw: object) -> SortKey:
    """Convert a SortKey, field name, or [field, order] sequence.

    Raises:
        DataShapeError: If the sort key has an unsupported shape.
    """
    if isinstance(raw, SortKey):
        return raw
    if isinstance(raw, str):
        return SortKey(field=raw)
    if isinstance(raw, Sequence) and 1 <= len(raw) <= 2:
        order = raw[1] if len(raw) > 1 and raw[1] else SORT_ASCENDING
        return SortKey(field=str(raw[0]), order=str(order))
    raise DataShapeError(
        f"Unsupported sort key {raw!r}. Use [field] or [field, 'ASC' | 'DESC']."
    )


def sort_results(results: list[Row], sort_key: SortKey) -> list[Row]:
    """Stable sort on one field; ties keep their current order."""
    descending = sort_key.order.upper() == SORT_DESCENDING

    def compare(left: Row, right: Row) -> int:
        outcome = compare_values(left.get(sort_key.field), right.get(sort_key.field))
        return -outcome if descending else outcome

    return sorted(results, key=cmp_to_key(compare))


def compare_values(left: Any, right: Any) -> int:
    """Three-way comparison, case-insensitive for strings."""
    if isinstance(left, str):
        left = left.lower()
    if isinstance(right, str):
        right = right.lower()
    if left == right:
        return 0
    try:
        return 1 if left > right else -1
    except TypeError:
        left_rank = _TYPE_RANK.get(type(left), _OTHER_TYPE_RANK)
        right_rank = _TYPE_RANK.get(type(right), _OTHER_TYPE_RANK)
        if left_rank != right_rank:
            return 1 if left_rank > right_rank else -1
        return compare_values(_stable_repr(left), _stable_repr(right))


def distinct_results(results: list[Row], field: str) -> list[Row]:
    """Keep the first row for each value of a field.

    Rows without the field are always kept.
    """
    seen: set[object] = set()
    kept: list[Row] = []
    for row in results:
        if field in row:
            marker = _distinct_marker(row[field])
            if marker in seen:
                continue
            seen.add(marker)
        kept.append(row)
    return kept


def paginate(results: list[Row], start: object, limit: object) -> list[Row]:
    """Slice results by start and limit.

    Only truthy integers count; zero or non-integer values are ignored.
    """
    offset = _page_number(start)
    count = _page_number(limit)
    if offset and count:
        return results[offset : offset + count]
    if offset:
        return results[offset:]
    if count:
        return results[:count]
    return results


def _page_number(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value:
        return value
    return None


def _distinct_marker(value: Any) -> object:
    # True and 1 hash alike; keep them distinct.
    if isinstance(value, bool):
        return ("bool", value)
    try:
        hash(value)
    except TypeError:
        return ("unhashable", _stable_repr(value))
    return value


def _stable_repr(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)
