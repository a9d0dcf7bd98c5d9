"""
Offline layer - state transitions.

`reduce(state, event)` is the only way `ServiceState` changes. Each event is
a small frozen dataclass; the reducer returns a new state and never mutates
the old one. Every transition also drops completed operations that are past
the retention window.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from gmb_offline.core.offline import projection
from gmb_offline.core.offline.models import (
    CacheSnapshot,
    ConnectionStatus,
    OperationKind,
    OperationStatus,
    PendingOperation,
    Record,
    ServiceState,
)
from gmb_offline.core.offline.retry_policy import status_after_failure

DEFAULT_RETENTION = dt.timedelta(hours=24)


# --- Events ---


@dataclass(frozen=True)
class OperationQueued:
    """A write captured locally: queue it and project it into the cache."""

    operation: PendingOperation


@dataclass(frozen=True)
class RemoteWriteConfirmed:
    """A direct remote write succeeded; mirror the confirmed record locally."""

    table: str
    kind: OperationKind
    record: Record


@dataclass(frozen=True)
class OperationStarted:
    operation_id: str


@dataclass(frozen=True)
class OperationSucceeded:
    operation_id: str


@dataclass(frozen=True)
class OperationFailed:
    """
    A replay attempt failed.

    `attempted` is False when the remote call was skipped because the
    operation had already used up its retries.
    """

    operation_id: str
    error: str
    max_retries: int
    attempted: bool = True


@dataclass(frozen=True)
class LocalIdConfirmed:
    table: str
    local_id: Any
    remote_id: Any


@dataclass(frozen=True)
class FailedOperationsReset:
    pass


@dataclass(frozen=True)
class TablesRefreshed:
    tables: Dict[str, List[Record]] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncStarted:
    pass


@dataclass(frozen=True)
class SyncFinished:
    succeeded: bool
    finished_at: dt.datetime


@dataclass(frozen=True)
class ConnectionStatusChanged:
    status: ConnectionStatus
    error: Optional[str] = None


@dataclass(frozen=True)
class OnlineChanged:
    is_online: bool


@dataclass(frozen=True)
class ForcedOfflineChanged:
    forced: bool


@dataclass(frozen=True)
class StateReset:
    seed: CacheSnapshot


# --- Queue helpers ---


def _replace_operation(
    operations: Tuple[PendingOperation, ...],
    operation_id: str,
    **changes: Any,
) -> Tuple[PendingOperation, ...]:
    return tuple(op.model_copy(update=changes) if op.id == operation_id else op for op in operations)


def _fail_operation(operations: Tuple[PendingOperation, ...], event: OperationFailed) -> Tuple[PendingOperation, ...]:
    updated: List[PendingOperation] = []
    for op in operations:
        if op.id != event.operation_id:
            updated.append(op)
            continue
        if not event.attempted:
            updated.append(op.model_copy(update={"status": OperationStatus.ERROR, "last_error": event.error}))
            continue
        retry_count = op.retry_count + 1
        updated.append(
            op.model_copy(
                update={
                    "status": status_after_failure(retry_count, event.max_retries),
                    "last_error": event.error,
                    "retry_count": retry_count,
                }
            )
        )
    return tuple(updated)


def _remap_local_id(
    operations: Tuple[PendingOperation, ...], event: LocalIdConfirmed
) -> Tuple[PendingOperation, ...]:
    updated: List[PendingOperation] = []
    for op in operations:
        if op.table == event.table and op.status != OperationStatus.COMPLETED and op.record_id == event.local_id:
            op = op.model_copy(update={"payload": {**op.payload, "id": event.remote_id}})
        updated.append(op)
    return tuple(updated)


def purge_completed(
    operations: Tuple[PendingOperation, ...],
    now: dt.datetime,
    retention: dt.timedelta = DEFAULT_RETENTION,
) -> Tuple[PendingOperation, ...]:
    """Drop completed operations created more than `retention` ago."""
    cutoff = now - retention
    return tuple(op for op in operations if op.status != OperationStatus.COMPLETED or op.created_at > cutoff)


# --- Reducer ---


def _apply(state: ServiceState, event: object) -> ServiceState:
    connectivity = state.connectivity

    if isinstance(event, OperationQueued):
        op = event.operation
        data = projection.project(state.data, op.table, op.kind, op.payload)
        return state.model_copy(update={"data": data, "pending_operations": state.pending_operations + (op,)})

    if isinstance(event, RemoteWriteConfirmed):
        data = projection.project(state.data, event.table, event.kind, event.record, mark_pending=False)
        return state.model_copy(update={"data": data})

    if isinstance(event, OperationStarted):
        ops = _replace_operation(state.pending_operations, event.operation_id, status=OperationStatus.PROCESSING)
        return state.model_copy(update={"pending_operations": ops})

    if isinstance(event, OperationSucceeded):
        ops = _replace_operation(
            state.pending_operations, event.operation_id, status=OperationStatus.COMPLETED, last_error=None
        )
        return state.model_copy(update={"pending_operations": ops})

    if isinstance(event, OperationFailed):
        return state.model_copy(update={"pending_operations": _fail_operation(state.pending_operations, event)})

    if isinstance(event, LocalIdConfirmed):
        data = dict(state.data)
        if event.table in data:
            data[event.table] = projection.replace_record_id(data[event.table], event.local_id, event.remote_id)
        ops = _remap_local_id(state.pending_operations, event)
        return state.model_copy(update={"data": data, "pending_operations": ops})

    if isinstance(event, FailedOperationsReset):
        ops = tuple(
            op.model_copy(update={"status": OperationStatus.PENDING, "retry_count": 0, "last_error": None})
            if op.status == OperationStatus.ERROR
            else op
            for op in state.pending_operations
        )
        return state.model_copy(update={"pending_operations": ops})

    if isinstance(event, TablesRefreshed):
        data = dict(state.data)
        data.update({table: [dict(r) for r in rows] for table, rows in event.tables.items()})
        # Writes the remote source has not confirmed yet stay visible on top of fresh rows.
        for op in state.pending_operations:
            if op.status != OperationStatus.COMPLETED and op.table in event.tables:
                data[op.table] = projection.apply_write(data[op.table], op.kind, op.payload)
        return state.model_copy(update={"data": data})

    if isinstance(event, SyncStarted):
        return state.model_copy(update={"connectivity": connectivity.model_copy(update={"sync_in_progress": True})})

    if isinstance(event, SyncFinished):
        changes: Dict[str, Any] = {"sync_in_progress": False}
        if event.succeeded:
            changes["last_sync_time"] = event.finished_at
        return state.model_copy(update={"connectivity": connectivity.model_copy(update=changes)})

    if isinstance(event, ConnectionStatusChanged):
        return state.model_copy(
            update={
                "connectivity": connectivity.model_copy(
                    update={"connection_status": event.status, "last_error": event.error}
                )
            }
        )

    if isinstance(event, OnlineChanged):
        status = ConnectionStatus.CHECKING if event.is_online else ConnectionStatus.DISCONNECTED
        return state.model_copy(
            update={
                "connectivity": connectivity.model_copy(
                    update={"is_online": event.is_online, "connection_status": status}
                )
            }
        )

    if isinstance(event, ForcedOfflineChanged):
        return state.model_copy(
            update={"connectivity": connectivity.model_copy(update={"forced_offline_mode": event.forced})}
        )

    if isinstance(event, StateReset):
        return ServiceState(
            data={table: [dict(r) for r in rows] for table, rows in event.seed.items()},
            pending_operations=(),
            connectivity=connectivity.model_copy(update={"last_sync_time": None, "last_error": None}),
        )

    raise TypeError(f"Unknown offline event: {type(event).__name__}")


def reduce(
    state: ServiceState,
    event: object,
    *,
    now: dt.datetime,
    retention: dt.timedelta = DEFAULT_RETENTION,
) -> ServiceState:
    """Apply one event, then enforce the completed-operation retention window."""
    new_state = _apply(state, event)
    purged = purge_completed(new_state.pending_operations, now, retention)
    if len(purged) != len(new_state.pending_operations):
        new_state = new_state.model_copy(update={"pending_operations": purged})
    return new_state
