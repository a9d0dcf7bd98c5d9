"""Unit tests for cache projection helpers."""

from gmb_offline.core.offline.models import OperationKind
from gmb_offline.core.offline.projection import (
    apply_write,
    project,
    remote_payload,
    replace_record_id,
    with_local_id,
)


def test_with_local_id_generates_offline_id_only_when_missing():
    generated = with_local_id({"nombre": "Ana"})
    assert generated["id"].startswith("offline_")
    assert generated["nombre"] == "Ana"

    kept = with_local_id({"id": 7, "nombre": "Ana"})
    assert kept["id"] == 7


def test_insert_appends_with_markers():
    rows = apply_write([{"id": 1}], OperationKind.INSERT, {"id": 2, "nombre": "Ana"})
    assert [r["id"] for r in rows] == [1, 2]
    assert rows[1]["_modified"] is True
    assert rows[1]["_pending_sync"] is True


def test_insert_with_existing_id_replaces_instead_of_duplicating():
    rows = apply_write([{"id": 1, "nombre": "Old"}], OperationKind.INSERT, {"id": 1, "nombre": "New"})
    assert rows == [{"id": 1, "nombre": "New", "_modified": True, "_pending_sync": True}]


def test_update_merges_into_matching_record_only():
    rows = apply_write(
        [{"id": 1, "nombre": "Ana", "email": "a@x"}, {"id": 2, "nombre": "Luis"}],
        OperationKind.UPDATE,
        {"id": 1, "nombre": "Ana María"},
    )
    assert rows[0]["nombre"] == "Ana María"
    assert rows[0]["email"] == "a@x"
    assert rows[1] == {"id": 2, "nombre": "Luis"}


def test_update_of_missing_record_is_a_noop():
    rows = apply_write([{"id": 1}], OperationKind.UPDATE, {"id": 99, "nombre": "X"})
    assert rows == [{"id": 1}]


def test_delete_removes_matching_record():
    rows = apply_write([{"id": 1}, {"id": 2}], OperationKind.DELETE, {"id": 1})
    assert rows == [{"id": 2}]


def test_confirmed_write_carries_no_markers():
    rows = apply_write([], OperationKind.INSERT, {"id": 5}, mark_pending=False)
    assert rows == [{"id": 5}]


def test_project_does_not_mutate_snapshot():
    snapshot = {"clientes": [{"id": 1, "nombre": "Ana"}]}
    updated = project(snapshot, "clientes", OperationKind.UPDATE, {"id": 1, "nombre": "Eva"})
    assert snapshot == {"clientes": [{"id": 1, "nombre": "Ana"}]}
    assert updated["clientes"][0]["nombre"] == "Eva"


def test_project_creates_missing_table():
    updated = project({}, "tareas", OperationKind.INSERT, {"id": "t1"})
    assert [r["id"] for r in updated["tareas"]] == ["t1"]


def test_replace_record_id():
    rows = replace_record_id([{"id": "offline_1_a", "n": 1}, {"id": 3}], "offline_1_a", 42)
    assert rows == [{"id": 42, "n": 1}, {"id": 3}]


def test_remote_payload_strips_markers_and_local_ids():
    record_id, body = remote_payload(
        OperationKind.INSERT,
        {"id": "offline_1_abc", "nombre": "Ana", "_modified": True, "_pending_sync": True},
    )
    assert record_id == "offline_1_abc"
    assert body == {"nombre": "Ana"}


def test_remote_payload_keeps_server_ids_on_insert():
    _, body = remote_payload(OperationKind.INSERT, {"id": 10, "nombre": "Ana"})
    assert body == {"id": 10, "nombre": "Ana"}


def test_remote_payload_moves_id_out_of_update_body():
    record_id, body = remote_payload(OperationKind.UPDATE, {"id": 10, "nombre": "Ana", "_modified": True})
    assert record_id == 10
    assert body == {"nombre": "Ana"}
