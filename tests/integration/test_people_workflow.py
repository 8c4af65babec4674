"""Integration tests for end-to-end table store workflows."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.config import StoreConfig
from store.table_store import TableStore, open_store


def test_people_scenario(tmp_path) -> None:
    """Create, insert, sort, delete by case-insensitive match, and count."""
    config = StoreConfig(data_root=tmp_path)
    store = open_store("scenario", config)
    store.create_table("people", ["name", "age"])

    ana_id = store.insert("people", {"name": "Ana", "age": 30})
    bo_id = store.insert("people", {"name": "Bo", "age": 25})
    by_age = store.query("people", {}, None, None, [["age", "ASC"]])
    deleted = store.delete_rows("people", {"name": "ana"})

    assert (ana_id, bo_id) == (1, 2)
    assert [row["name"] for row in by_age] == ["Bo", "Ana"]
    assert deleted == 1
    assert store.row_count("people") == 1


def test_directory_store_survives_reopen(tmp_path) -> None:
    """Committed state round-trips through the filesystem."""
    config = StoreConfig(data_root=tmp_path)
    store = open_store("inventory", config)
    store.create_table_with_data("items", [{"sku": "A1", "qty": 3}, {"sku": "b2", "qty": 0}])
    store.update("items", {"sku": "B2"}, lambda row: {"qty": 7})
    store.commit()

    reopened = open_store("inventory", config)

    assert reopened.is_new() is False
    assert reopened.query("items", {"sku": "b2"})[0]["qty"] == 7
    assert (tmp_path / "db_inventory.blob").exists()


@pytest.mark.parametrize("codec_name", ["json", "yaml"])
def test_open_store_honours_codec_and_prefix(tmp_path, codec_name: str) -> None:
    """Configured codec and key prefix drive the persisted blob."""
    config = replace(StoreConfig(data_root=tmp_path), codec_name=codec_name, key_prefix="app_")
    store = open_store("notes", config)
    store.create_table("notes", ["body", "tags"])
    store.insert("notes", {"body": "hello", "tags": ["a", "b"]})
    store.commit()

    reopened = open_store("notes", config)

    assert reopened.query("notes") == [{"ID": 1, "body": "hello", "tags": ["a", "b"]}]
    assert (tmp_path / "app_notes.blob").exists()


def test_open_store_reads_environment(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Without a config the environment decides the medium."""
    monkeypatch.setenv("TABLESTORE_DATA_ROOT", str(tmp_path))
    monkeypatch.setenv("TABLESTORE_MEDIUM", "directory")

    store = open_store("envdb")

    assert isinstance(store, TableStore)
    assert (tmp_path / "db_envdb.blob").exists()
