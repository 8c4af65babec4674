"""Unit tests for the persistence gateway and payload conversion."""

from __future__ import annotations

import json

import pytest

from core.errors import PersistenceError
from store.codecs import YamlStateCodec
from store.kv_medium import MemoryMedium
from store.persistence import PersistenceGateway, state_from_payload, state_to_payload
from store.row_store import RowStore
from store.schema_registry import SchemaRegistry
from tests.fixture_paths import blob_fixture


def _state() -> tuple[SchemaRegistry, RowStore]:
    registry = SchemaRegistry()
    registry.create_table("people", ["name", "age"])
    rows = RowStore(registry)
    rows.create_table("people")
    rows.insert("people", {"name": "Ana", "age": 30})
    rows.insert("people", {"name": "Bo", "age": 25})
    rows.delete_rows("people", [1])
    return registry, rows


def test_payload_uses_string_row_keys() -> None:
    """Row identifiers become string keys in the blob."""
    registry, rows = _state()

    payload = state_to_payload(registry, rows)

    assert payload["tables"]["people"] == {"fields": ["ID", "name", "age"], "auto_increment": 3}
    assert payload["data"]["people"] == {"2": {"ID": 2, "name": "Bo", "age": 25}}


def test_payload_round_trip_restores_int_ids() -> None:
    """Rebuilt state keys rows by int and keeps the counter."""
    registry, rows = _state()

    loaded_registry, loaded_rows = state_from_payload(state_to_payload(registry, rows))

    assert loaded_registry.get("people").auto_increment == 3
    assert loaded_rows.rows("people") == {2: {"ID": 2, "name": "Bo", "age": 25}}


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"tables": {}},
        {"tables": {"t": {"fields": ["ID"], "auto_increment": 1}}, "data": {}},
        {"tables": {"t": {"fields": "ID", "auto_increment": 1}}, "data": {"t": {}}},
        {"tables": {"t": {"fields": ["name"], "auto_increment": 1}}, "data": {"t": {}}},
        {"tables": {"t": {"fields": ["ID"], "auto_increment": "1"}}, "data": {"t": {}}},
        {"tables": {"t": {"fields": ["ID"], "auto_increment": 2}}, "data": {"t": {"x": {}}}},
        {"tables": {"t": {"fields": ["ID"], "auto_increment": 2}}, "data": {"t": {"1": 5}}},
        {"tables": {"t": {"fields": ["ID"], "auto_increment": 2}}, "data": {"t": {"1_0": {}}}},
        {"tables": {"t": {"fields": ["ID"], "auto_increment": 2}}, "data": {"t": {"1.5": {}}}},
    ],
)
def test_state_from_payload_rejects_malformed_shapes(payload: object) -> None:
    """Malformed payloads raise PersistenceError."""
    with pytest.raises(PersistenceError):
        state_from_payload(payload)


def test_load_returns_none_for_absent_key() -> None:
    """Nothing persisted means nothing loaded."""
    gateway = PersistenceGateway("app", MemoryMedium())

    assert gateway.load() is None


def test_load_returns_none_for_malformed_blob() -> None:
    """Malformed blobs are treated as no database."""
    medium = MemoryMedium()
    medium.write("db_app", b'{"tables": 1}')

    assert PersistenceGateway("app", medium).load() is None


def test_load_reads_fixture_blob() -> None:
    """A blob written elsewhere loads with its gaps and counter intact."""
    medium = MemoryMedium()
    medium.write("db_app", blob_fixture("people.json"))

    loaded = PersistenceGateway("app", medium).load()

    assert loaded is not None
    registry, rows = loaded
    assert rows.get_ids("people") == [1, 3]
    assert registry.next_id("people") == 4


def test_commit_writes_under_prefixed_key() -> None:
    """The key is the prefix joined with the database name."""
    medium = MemoryMedium()
    gateway = PersistenceGateway("app", medium, key_prefix="store_")

    committed = gateway.commit(*_state())

    assert committed is True
    assert gateway.key == "store_app"
    assert json.loads(medium.read("store_app") or b"")["tables"]["people"]["auto_increment"] == 3


def test_commit_returns_false_on_medium_failure() -> None:
    """A rejected write reports False instead of raising."""
    gateway = PersistenceGateway("app", MemoryMedium(max_bytes=4))

    assert gateway.commit(*_state()) is False


def test_yaml_gateway_round_trip() -> None:
    """The gateway works with the YAML codec as well."""
    medium = MemoryMedium()
    gateway = PersistenceGateway("app", medium, codec=YamlStateCodec())
    gateway.commit(*_state())

    loaded = gateway.load()

    assert loaded is not None
    assert loaded[1].rows("people")[2]["name"] == "Bo"


def test_remove_deletes_blob() -> None:
    """Removing drops the stored key."""
    medium = MemoryMedium()
    gateway = PersistenceGateway("app", medium)
    gateway.commit(*_state())

    gateway.remove()

    assert medium.read("db_app") is None
