"""Unit tests for offline state transitions."""

import datetime as dt

import pytest

from gmb_offline.core.offline.models import (
    ConnectionStatus,
    ConnectivityState,
    OperationKind,
    OperationStatus,
    PendingOperation,
    ServiceState,
)
from gmb_offline.core.offline.reducer import (
    ConnectionStatusChanged,
    FailedOperationsReset,
    ForcedOfflineChanged,
    LocalIdConfirmed,
    OnlineChanged,
    OperationFailed,
    OperationQueued,
    OperationStarted,
    OperationSucceeded,
    RemoteWriteConfirmed,
    StateReset,
    SyncFinished,
    SyncStarted,
    TablesRefreshed,
    purge_completed,
    reduce,
)

NOW = dt.datetime(2026, 3, 2, 9, 0, tzinfo=dt.timezone.utc)


def _op(op_id="op_1", *, kind=OperationKind.INSERT, payload=None, status=OperationStatus.PENDING, retry_count=0,
        created_at=NOW, table="clientes"):
    return PendingOperation(
        id=op_id,
        created_at=created_at,
        table=table,
        kind=kind,
        payload=payload if payload is not None else {"id": "offline_1_a", "nombre": "Ana"},
        status=status,
        retry_count=retry_count,
    )


def _reduce(state, event, now=NOW):
    return reduce(state, event, now=now)


def test_operation_queued_appends_and_projects():
    state = ServiceState(data={"clientes": [{"id": 1}]})
    new_state = _reduce(state, OperationQueued(_op()))
    assert [op.id for op in new_state.pending_operations] == ["op_1"]
    assert new_state.data["clientes"][-1]["id"] == "offline_1_a"
    assert new_state.data["clientes"][-1]["_pending_sync"] is True
    # old state untouched
    assert state.pending_operations == ()
    assert state.data == {"clientes": [{"id": 1}]}


def test_remote_write_confirmed_projects_without_markers():
    state = ServiceState(data={"clientes": [{"id": 1, "nombre": "Ana"}]})
    new_state = _reduce(
        state, RemoteWriteConfirmed("clientes", OperationKind.UPDATE, {"id": 1, "nombre": "Eva"})
    )
    assert new_state.data["clientes"] == [{"id": 1, "nombre": "Eva"}]
    assert new_state.pending_operations == ()


def test_started_then_succeeded():
    state = ServiceState(pending_operations=(_op(),))
    state = _reduce(state, OperationStarted("op_1"))
    assert state.pending_operations[0].status == OperationStatus.PROCESSING
    state = _reduce(state, OperationSucceeded("op_1"))
    assert state.pending_operations[0].status == OperationStatus.COMPLETED


def test_failure_increments_until_error():
    state = ServiceState(pending_operations=(_op(),))
    for expected_status, expected_count in (
        (OperationStatus.PENDING, 1),
        (OperationStatus.PENDING, 2),
        (OperationStatus.ERROR, 3),
    ):
        state = _reduce(state, OperationStarted("op_1"))
        state = _reduce(state, OperationFailed("op_1", "boom", max_retries=3))
        op = state.pending_operations[0]
        assert op.status == expected_status
        assert op.retry_count == expected_count
        assert op.last_error == "boom"


def test_unattempted_failure_does_not_increment():
    state = ServiceState(pending_operations=(_op(retry_count=3),))
    state = _reduce(state, OperationFailed("op_1", "max retries", max_retries=3, attempted=False))
    op = state.pending_operations[0]
    assert op.status == OperationStatus.ERROR
    assert op.retry_count == 3


def test_failed_operations_reset():
    state = ServiceState(
        pending_operations=(
            _op("op_1", status=OperationStatus.ERROR, retry_count=3),
            _op("op_2", status=OperationStatus.COMPLETED),
        )
    )
    state = _reduce(state, FailedOperationsReset())
    first, second = state.pending_operations
    assert (first.status, first.retry_count, first.last_error) == (OperationStatus.PENDING, 0, None)
    assert second.status == OperationStatus.COMPLETED


def test_completed_operations_purged_after_retention():
    old = NOW - dt.timedelta(hours=25)
    state = ServiceState(
        pending_operations=(
            _op("op_old", status=OperationStatus.COMPLETED, created_at=old),
            _op("op_recent", status=OperationStatus.COMPLETED),
            _op("op_old_error", status=OperationStatus.ERROR, created_at=old),
        )
    )
    state = _reduce(state, SyncStarted())
    assert [op.id for op in state.pending_operations] == ["op_recent", "op_old_error"]


def test_purge_completed_boundary():
    exactly = NOW - dt.timedelta(hours=24)
    ops = (_op("a", status=OperationStatus.COMPLETED, created_at=exactly),)
    assert purge_completed(ops, NOW) == ()


def test_local_id_confirmed_remaps_cache_and_later_operations():
    insert = _op("op_1", status=OperationStatus.COMPLETED)
    update = _op("op_2", kind=OperationKind.UPDATE, payload={"id": "offline_1_a", "nombre": "Eva"})
    state = ServiceState(
        data={"clientes": [{"id": "offline_1_a", "nombre": "Eva"}]},
        pending_operations=(insert, update),
    )
    state = _reduce(state, LocalIdConfirmed("clientes", "offline_1_a", 501))
    assert state.data["clientes"][0]["id"] == 501
    assert state.pending_operations[0].payload["id"] == "offline_1_a"
    assert state.pending_operations[1].payload["id"] == 501


def test_tables_refreshed_keeps_unconfirmed_writes_visible():
    pending_insert = _op("op_1")
    pending_delete = _op("op_2", kind=OperationKind.DELETE, payload={"id": 3})
    done = _op("op_3", kind=OperationKind.UPDATE, payload={"id": 2, "nombre": "stale"},
               status=OperationStatus.COMPLETED)
    state = ServiceState(
        data={"clientes": [], "expedientes": [{"id": "e1"}]},
        pending_operations=(pending_insert, pending_delete, done),
    )
    state = _reduce(
        state,
        TablesRefreshed({"clientes": [{"id": 2, "nombre": "Luis"}, {"id": 3, "nombre": "Gone"}]}),
    )
    ids = [r["id"] for r in state.data["clientes"]]
    assert ids == [2, "offline_1_a"]
    assert state.data["clientes"][0]["nombre"] == "Luis"
    assert state.data["expedientes"] == [{"id": "e1"}]


def test_sync_flags_and_last_sync_time():
    state = _reduce(ServiceState(), SyncStarted())
    assert state.connectivity.sync_in_progress is True
    state = _reduce(state, SyncFinished(succeeded=False, finished_at=NOW))
    assert state.connectivity.sync_in_progress is False
    assert state.connectivity.last_sync_time is None
    state = _reduce(state, SyncFinished(succeeded=True, finished_at=NOW))
    assert state.connectivity.last_sync_time == NOW


def test_connection_and_online_changes():
    state = _reduce(ServiceState(), ConnectionStatusChanged(ConnectionStatus.ERROR, "down"))
    assert state.connectivity.connection_status == ConnectionStatus.ERROR
    assert state.connectivity.last_error == "down"

    state = _reduce(state, OnlineChanged(False))
    assert state.connectivity.is_online is False
    assert state.connectivity.connection_status == ConnectionStatus.DISCONNECTED

    state = _reduce(state, OnlineChanged(True))
    assert state.connectivity.connection_status == ConnectionStatus.CHECKING


def test_forced_offline_changed():
    state = _reduce(ServiceState(), ForcedOfflineChanged(True))
    assert state.connectivity.forced_offline_mode is True
    assert state.connectivity.remote_usable is False


def test_state_reset_keeps_connectivity_flags():
    state = ServiceState(
        data={"clientes": [{"id": 1}]},
        pending_operations=(_op(),),
        connectivity=ConnectivityState(forced_offline_mode=True, last_sync_time=NOW, last_error="x"),
    )
    state = _reduce(state, StateReset({"estados": [{"id": "offline_1"}]}))
    assert state.data == {"estados": [{"id": "offline_1"}]}
    assert state.pending_operations == ()
    assert state.connectivity.forced_offline_mode is True
    assert state.connectivity.last_sync_time is None
    assert state.connectivity.last_error is None


def test_unknown_event_raises():
    with pytest.raises(TypeError):
        _reduce(ServiceState(), object())
