"""Unit tests for per-table row storage."""

from __future__ import annotations

import pytest

from core.errors import DataShapeError
from store.row_store import RowStore, normalize_id
from store.schema_registry import SchemaRegistry


def _people_rows() -> RowStore:
    registry = SchemaRegistry()
    registry.create_table("people", ["name", "age"])
    rows = RowStore(registry)
    rows.create_table("people")
    return rows


def test_insert_assigns_increasing_ids_and_fills_fields() -> None:
    """Inserted rows get sequential IDs and every declared field."""
    rows = _people_rows()

    first = rows.insert("people", {"name": "Ana", "extra": True})
    second = rows.insert("people", {"age": 25})

    assert (first, second) == (1, 2)
    assert rows.rows("people")[1] == {"ID": 1, "name": "Ana", "age": None}
    assert rows.rows("people")[2] == {"ID": 2, "name": None, "age": 25}


def test_insert_ignores_caller_supplied_id() -> None:
    """The ID field always comes from the counter."""
    rows = _people_rows()

    row_id = rows.insert("people", {"ID": 99, "name": "Ana"})

    assert row_id == 1
    assert rows.get_ids("people") == [1]


def test_insert_rejects_non_mapping() -> None:
    """Row data must be a mapping."""
    rows = _people_rows()

    with pytest.raises(DataShapeError):
        rows.insert("people", ["Ana", 30])  # type: ignore[arg-type]

    assert rows.row_count("people") == 0


def test_ids_are_never_reused_after_delete() -> None:
    """Deleting the newest row must not free its ID."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana"})
    rows.insert("people", {"name": "Bo"})

    rows.delete_rows("people", [2])
    row_id = rows.insert("people", {"name": "Cy"})

    assert row_id == 3
    assert rows.get_ids("people") == [1, 3]


def test_delete_rows_counts_only_removed_rows() -> None:
    """Absent IDs are skipped silently and not counted."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana"})
    rows.insert("people", {"name": "Bo"})

    removed = rows.delete_rows("people", [1, 7, "2", 2])

    assert removed == 2
    assert rows.row_count("people") == 0


def test_update_merges_and_protects_id() -> None:
    """Unmentioned fields persist, ID and unknown fields are discarded."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana", "age": 30})

    count = rows.update("people", [1], lambda row: {"ID": 50, "age": 31, "bogus": 1})

    assert count == 1
    assert rows.rows("people")[1] == {"ID": 1, "name": "Ana", "age": 31}


def test_update_skips_rows_when_function_returns_falsy() -> None:
    """A falsy result leaves the row untouched and uncounted."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana", "age": 30})
    rows.insert("people", {"name": "Bo", "age": 25})

    count = rows.update("people", [1, 2], lambda row: {"age": 0} if row["name"] == "Bo" else None)

    assert count == 1
    assert rows.rows("people")[1]["age"] == 30
    assert rows.rows("people")[2]["age"] == 0


def test_update_passes_a_copy_to_the_function() -> None:
    """Mutating the argument must not change the stored row."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana", "age": 30})

    def mutate(row: dict) -> None:
        row["name"] = "changed"

    rows.update("people", [1], mutate)

    assert rows.rows("people")[1]["name"] == "Ana"


def test_update_rejects_non_mapping_result() -> None:
    """A truthy result that is not a mapping is a shape error."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana"})

    with pytest.raises(DataShapeError):
        rows.update("people", [1], lambda row: ["name", "Bo"])


def test_update_checks_every_result_before_writing() -> None:
    """A bad result for a later row leaves earlier rows unchanged."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana", "age": 1})
    rows.insert("people", {"name": "Bo", "age": 2})

    with pytest.raises(DataShapeError):
        rows.update("people", [1, 2], lambda row: {"age": 99} if row["ID"] == 1 else 5)

    assert [row["age"] for row in rows.rows("people").values()] == [1, 2]


def test_valid_fields_keeps_table_order() -> None:
    """Only declared keys survive, ordered like the table."""
    rows = _people_rows()

    assert list(rows.valid_fields("people", {"age": 1, "x": 2, "name": "A"})) == ["name", "age"]


def test_fill_field_sets_value_on_every_row() -> None:
    """Backfill touches every existing row."""
    rows = _people_rows()
    rows.insert("people", {"name": "Ana"})
    rows.insert("people", {"name": "Bo"})

    rows.fill_field("people", "age", 0)

    assert [row["age"] for row in rows.rows("people").values()] == [0, 0]


def test_normalize_id_accepts_numeric_strings() -> None:
    """Identifier equality is numeric, not type based."""
    assert normalize_id("12") == normalize_id(12) == 12


@pytest.mark.parametrize("value", [True, "abc", None, 1.5j, 1.5, "1_0", " 1", "-1"])
def test_normalize_id_rejects_non_integers(value: object) -> None:
    """Non-integer identifiers raise DataShapeError."""
    with pytest.raises(DataShapeError):
        normalize_id(value)
