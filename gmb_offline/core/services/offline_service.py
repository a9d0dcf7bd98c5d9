"""
Offline Service - cache + write queue + sync orchestration.

Single holder of the cached table snapshots and the queue of writes the
remote source has not confirmed yet. Every read and write from the UI goes
through here so that a write is never lost when Supabase is unreachable.

Responsibilities:
- Route writes: direct to Supabase when usable, otherwise queue + optimistic cache update
- Manual sync: probe, replay queued writes in order, refresh cached tables
- Retry-with-limit lifecycle of queued writes (pending/processing/error/completed)
- Forced offline mode override
- Persist state to local storage and notify subscribers after every change

The service is constructed once at startup (see `build_offline_service`) and
handed to its consumers; tests build their own instances.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from pydantic import ValidationError

from gmb_offline.core.config import settings
from gmb_offline.core.offline import projection
from gmb_offline.core.offline.errors import InvalidOperationError
from gmb_offline.core.offline.models import (
    ConnectionStatus,
    OperationKind,
    OperationResult,
    OperationStatus,
    PendingOperation,
    Record,
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
from gmb_offline.core.offline.remote import RemoteDataSource
from gmb_offline.core.offline.retry_policy import compute_backoff, has_retries_left
from gmb_offline.core.offline.seed import example_data
from gmb_offline.core.offline.status import summarize
from gmb_offline.core.offline.tables import CACHED_TABLES
from gmb_offline.core.services.connectivity import ConnectivitySignal
from gmb_offline.core.services.notifications import NotificationCenter
from gmb_offline.core.storage.local_storage import LocalStorage
from gmb_offline.core.utils.ids import is_local_id, new_id
from gmb_offline.integrations.supabase.errors import RemoteTimeout

logger = logging.getLogger(__name__)

STATE_KEY = "gmb_offline_state"
FORCED_OFFLINE_KEY = "gmb_forced_offline_mode"

Listener = Callable[[ServiceState], None]


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class OfflineService:
    """Offline-first CRUD with queued replay against the remote source."""

    def __init__(
        self,
        *,
        storage: LocalStorage,
        remote: RemoteDataSource,
        connectivity: Optional[ConnectivitySignal] = None,
        notifier: Optional[NotificationCenter] = None,
        tables: Sequence[str] = CACHED_TABLES,
        max_retries: int = 3,
        retention: dt.timedelta = dt.timedelta(hours=24),
        fetch_limit: int = 100,
        remote_timeout: Optional[float] = 10.0,
        retry_delay: float = 1.0,
        sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], dt.datetime] = _utc_now,
        seed_fn: Callable[[], dict] = example_data,
    ) -> None:
        self.storage = storage
        self.remote = remote
        self.connectivity = connectivity or ConnectivitySignal()
        self.notifier = notifier or NotificationCenter()
        self._tables = tuple(tables)
        self._max_retries = max(0, int(max_retries))
        self._retention = retention
        self._fetch_limit = max(1, int(fetch_limit))
        self._remote_timeout = remote_timeout if remote_timeout and remote_timeout > 0 else None
        self._retry_delay = max(0.0, float(retry_delay))
        self._sleep = sleep_fn
        self._clock = clock
        self._seed_fn = seed_fn
        self._listeners: List[Listener] = []
        self._sync_lock = False

        self._state = self._boot_state()
        self._persist()
        self._unsubscribe_connectivity = self.connectivity.subscribe(self._on_connectivity_change)
        logger.info(
            "OfflineService ready: %d queued operations, online=%s, forced_offline=%s",
            len(self._state.pending_operations),
            self._state.connectivity.is_online,
            self._state.connectivity.forced_offline_mode,
        )

    # --- Persistence ---

    def _load_saved_state(self) -> Optional[ServiceState]:
        raw = self.storage.get_item(STATE_KEY)
        if not raw:
            return None
        try:
            return ServiceState.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.error("Saved offline state is unreadable, starting fresh: %s", e)
            return None

    def _load_forced_flag(self) -> Optional[bool]:
        raw = self.storage.get_item(FORCED_OFFLINE_KEY)
        if raw is None:
            return None
        return raw.strip().lower() == "true"

    def _boot_state(self) -> ServiceState:
        state = self._load_saved_state() or ServiceState()
        forced = self._load_forced_flag()
        connectivity = state.connectivity.model_copy(
            update={
                "is_online": self.connectivity.online,
                "forced_offline_mode": state.connectivity.forced_offline_mode if forced is None else forced,
                # A sync cannot survive a restart.
                "sync_in_progress": False,
                "connection_status": (
                    ConnectionStatus.CHECKING if self.connectivity.online else ConnectionStatus.DISCONNECTED
                ),
            }
        )
        # Operations interrupted mid-replay never reached a verdict.
        operations = tuple(
            op.model_copy(update={"status": OperationStatus.PENDING}) if op.status == OperationStatus.PROCESSING else op
            for op in purge_completed(state.pending_operations, self._clock(), self._retention)
        )
        state = state.model_copy(update={"connectivity": connectivity, "pending_operations": operations})
        if not state.data:
            state = state.model_copy(update={"data": self._seed_fn()})
        return state

    def _persist(self) -> None:
        # Storage errors propagate to the caller.
        self.storage.set_item(STATE_KEY, self._state.model_dump_json())
        self.storage.set_item(FORCED_OFFLINE_KEY, "true" if self._state.connectivity.forced_offline_mode else "false")

    # --- State transitions ---

    def _dispatch(self, event: object) -> ServiceState:
        self._state = reduce(self._state, event, now=self._clock(), retention=self._retention)
        self._persist()
        self._notify_listeners()
        return self._state

    def _notify_listeners(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            self._call_listener(listener, state)

    @staticmethod
    def _call_listener(listener: Listener, state: ServiceState) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception("Offline state listener failed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; it is called now and after every state change."""
        self._listeners.append(listener)
        self._call_listener(listener, self._state)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # --- Reads ---

    @property
    def state(self) -> ServiceState:
        return self._state

    def get_cached_data(self, table: str) -> List[Record]:
        return [dict(record) for record in self._state.data.get(table, [])]

    def summary(self) -> dict:
        return summarize(self._state)

    # --- Writes ---

    @staticmethod
    def _validate(table: str, kind: Union[str, OperationKind], payload: Optional[Record]) -> OperationKind:
        if not table or not str(table).strip():
            raise InvalidOperationError("Table name is required")
        try:
            kind = OperationKind(kind)
        except ValueError:
            raise InvalidOperationError(f"Unknown operation kind: {kind!r}") from None
        if payload is not None and not isinstance(payload, dict):
            raise InvalidOperationError("Payload must be a mapping")
        if kind != OperationKind.INSERT and (payload or {}).get("id") in (None, ""):
            raise InvalidOperationError(f"'{kind.value}' requires payload.id")
        return kind

    async def _call_remote(self, call: Awaitable[Any]) -> Any:
        if self._remote_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._remote_timeout)
        except asyncio.TimeoutError:
            raise RemoteTimeout(f"Remote call timed out after {self._remote_timeout}s") from None

    async def _remote_write(self, table: str, kind: OperationKind, payload: Record) -> Any:
        record_id, body = projection.remote_payload(kind, payload)
        if kind == OperationKind.INSERT:
            return await self._call_remote(self.remote.insert(table, body))
        if kind == OperationKind.UPDATE:
            return await self._call_remote(self.remote.update(table, record_id, body))
        await self._call_remote(self.remote.delete(table, record_id))
        return None

    def _queue_locally(self, table: str, kind: OperationKind, payload: Record) -> OperationResult:
        record = projection.with_local_id(payload) if kind == OperationKind.INSERT else dict(payload)
        operation = PendingOperation(
            id=new_id("op"),
            created_at=self._clock(),
            table=table,
            kind=kind,
            payload=record,
        )
        self._dispatch(OperationQueued(operation))
        self.notifier.notify(
            "Guardado localmente",
            "El cambio se sincronizará cuando se restablezca la conexión.",
            "warning",
        )
        return OperationResult(
            success=True,
            data=None if kind == OperationKind.DELETE else record,
            local_operation_id=operation.id,
        )

    def _has_unconfirmed_write(self, table: str, record_id: Any) -> bool:
        # A record created offline only exists remotely once its queued insert replays;
        # later writes to it must queue behind that insert.
        if not is_local_id(record_id):
            return False
        return any(
            op.table == table and op.record_id == record_id and op.status != OperationStatus.COMPLETED
            for op in self._state.pending_operations
        )

    async def perform_operation(
        self,
        table: str,
        kind: Union[str, OperationKind],
        payload: Optional[Record] = None,
    ) -> OperationResult:
        """
        Single write entry point.

        Never reports a connectivity failure: when the remote source is not
        usable, or a direct attempt fails, the write is queued and projected
        into the cache, and the result carries `local_operation_id`.
        """
        kind = self._validate(table, kind, payload)
        payload = dict(payload or {})

        if not self._state.connectivity.remote_usable or self._has_unconfirmed_write(table, payload.get("id")):
            return self._queue_locally(table, kind, payload)

        try:
            data = await self._remote_write(table, kind, payload)
        except Exception as e:
            logger.warning("Direct %s on %s failed, queueing locally: %s", kind.value, table, e)
            result = self._queue_locally(table, kind, payload)
            return result.model_copy(update={"error": str(e) or type(e).__name__})

        if kind == OperationKind.INSERT:
            confirmed = data if isinstance(data, dict) else projection.with_local_id(payload)
        elif kind == OperationKind.UPDATE:
            confirmed = {**payload, **(data if isinstance(data, dict) else {})}
        else:
            confirmed = {"id": payload["id"]}
        self._dispatch(RemoteWriteConfirmed(table=table, kind=kind, record=confirmed))
        return OperationResult(success=True, data=data)

    # --- Sync ---

    async def _replay_pending_operations(self) -> None:
        """Replay the operations pending at call time, one by one, in queue order."""
        batch = [op.id for op in self._state.operations_with_status(OperationStatus.PENDING)]
        if batch:
            logger.info("Replaying %d pending operations", len(batch))

        for operation_id in batch:
            operation = self._state.find_operation(operation_id)
            if operation is None or operation.status != OperationStatus.PENDING:
                continue

            self._dispatch(OperationStarted(operation_id))

            if not has_retries_left(operation.retry_count, self._max_retries):
                self._dispatch(
                    OperationFailed(
                        operation_id,
                        f"Operation exceeded max retries ({self._max_retries})",
                        self._max_retries,
                        attempted=False,
                    )
                )
                continue

            try:
                data = await self._remote_write(operation.table, operation.kind, operation.payload)
            except Exception as e:
                logger.warning("Replay of %s (%s on %s) failed: %s", operation_id, operation.kind.value, operation.table, e)
                self._dispatch(OperationFailed(operation_id, str(e) or type(e).__name__, self._max_retries))
                failed = self._state.find_operation(operation_id)
                if failed is not None and failed.status == OperationStatus.PENDING:
                    delay = compute_backoff(failed.retry_count, base_delay=self._retry_delay)
                    if delay > 0:
                        await self._sleep(delay)
                continue

            self._dispatch(OperationSucceeded(operation_id))
            remote_id = data.get("id") if isinstance(data, dict) else None
            if (
                operation.kind == OperationKind.INSERT
                and is_local_id(operation.record_id)
                and remote_id is not None
                and remote_id != operation.record_id
            ):
                self._dispatch(LocalIdConfirmed(operation.table, operation.record_id, remote_id))

    async def _refresh_cache(self) -> None:
        refreshed = {}
        for table in self._tables:
            rows = await self._call_remote(self.remote.fetch_table(table, self._fetch_limit))
            refreshed[table] = list(rows or [])
        self._dispatch(TablesRefreshed(refreshed))

    async def sync_data(self) -> bool:
        """
        Manual sync: probe, replay pending writes, refresh cached tables.

        Returns False without touching the remote source when forced offline,
        offline, or when another sync is running.
        """
        connectivity = self._state.connectivity
        if connectivity.forced_offline_mode:
            self.notifier.notify(
                "Modo offline forzado",
                "Desactive el modo offline para sincronizar.",
                "warning",
            )
            return False
        if self._sync_lock or connectivity.sync_in_progress:
            logger.info("Sync already in progress, skipping")
            self.notifier.notify("Sincronización en curso", "Ya hay una sincronización en progreso.")
            return False
        if not connectivity.is_online:
            self.notifier.notify(
                "Sin conexión",
                "No se puede sincronizar sin conexión a internet.",
                "destructive",
            )
            return False

        self._sync_lock = True
        try:
            self._dispatch(SyncStarted())
            try:
                await self._call_remote(self.remote.probe())
            except Exception as e:
                logger.error("Sync probe failed: %s", e)
                self._dispatch(ConnectionStatusChanged(ConnectionStatus.ERROR, str(e) or type(e).__name__))
                self._dispatch(SyncFinished(succeeded=False, finished_at=self._clock()))
                self.notifier.notify(
                    "Error de sincronización",
                    "No se pudo conectar con la base de datos. Trabajando en modo offline.",
                    "destructive",
                )
                return False

            try:
                self._dispatch(ConnectionStatusChanged(ConnectionStatus.CONNECTED))
                await self._replay_pending_operations()
                await self._refresh_cache()
            except Exception as e:
                logger.error("Sync aborted: %s", e)
                self._dispatch(SyncFinished(succeeded=False, finished_at=self._clock()))
                self.notifier.notify(
                    "Error de sincronización",
                    "No se pudieron sincronizar los datos. Verifique su conexión a internet.",
                    "destructive",
                )
                return False

            self._dispatch(SyncFinished(succeeded=True, finished_at=self._clock()))
            errors = len(self._state.operations_with_status(OperationStatus.ERROR))
            logger.info("Sync complete (%d operations in error)", errors)
            self.notifier.notify("Sincronización completada", "Los datos se han sincronizado correctamente.")
            return True
        finally:
            self._sync_lock = False
            if self._state.connectivity.sync_in_progress:
                # A transition raised mid-sync (storage write failed); clear the flag in memory.
                self._state = reduce(
                    self._state,
                    SyncFinished(succeeded=False, finished_at=self._clock()),
                    now=self._clock(),
                    retention=self._retention,
                )

    async def retry_failed_operations(self) -> bool:
        """Move every `error` operation back to `pending` and run a sync."""
        connectivity = self._state.connectivity
        if connectivity.forced_offline_mode or not connectivity.is_online:
            self.notifier.notify(
                "Error de sincronización",
                "No se pueden reintentar operaciones sin conexión o en modo offline forzado.",
                "destructive",
            )
            return False

        failed = self._state.operations_with_status(OperationStatus.ERROR)
        self._dispatch(FailedOperationsReset())
        if failed:
            self.notifier.notify("Reintentando operaciones", f"Reintentando {len(failed)} operaciones fallidas...")
        else:
            self.notifier.notify("Sin operaciones fallidas", "No hay operaciones fallidas para reintentar.")
        return await self.sync_data()

    # --- Mode / maintenance ---

    def set_forced_offline_mode(self, forced: bool) -> None:
        logger.info("Forced offline mode %s", "enabled" if forced else "disabled")
        self._dispatch(ForcedOfflineChanged(bool(forced)))

    def clear_all_data(self) -> None:
        """Wipe queue and cache back to the placeholder dataset. Irreversible."""
        dropped = len(self._state.pending_operations)
        self._dispatch(StateReset(self._seed_fn()))
        logger.warning("Offline data cleared (%d queued operations dropped)", dropped)
        self.notifier.notify("Datos eliminados", "Se han eliminado todos los datos almacenados localmente.")

    def _on_connectivity_change(self, online: bool) -> None:
        self._dispatch(OnlineChanged(online))
        if online:
            self.notifier.notify(
                "Conexión restablecida",
                "Se ha restablecido la conexión. Sincronice para enviar los cambios pendientes.",
            )
        else:
            self.notifier.notify(
                "Sin conexión",
                "Trabajando en modo offline. Los cambios se sincronizarán cuando se restablezca la conexión.",
                "destructive",
            )

    def close(self) -> None:
        self._unsubscribe_connectivity()
        self._listeners.clear()


def build_offline_service(
    *,
    remote: Optional[RemoteDataSource] = None,
    storage: Optional[LocalStorage] = None,
    connectivity: Optional[ConnectivitySignal] = None,
) -> OfflineService:
    """Build the application's service from settings."""
    if remote is None:
        from gmb_offline.integrations.supabase.client import SupabaseDataSource

        remote = SupabaseDataSource()
    return OfflineService(
        storage=storage or LocalStorage(settings.OFFLINE_STORAGE_DIR),
        remote=remote,
        connectivity=connectivity or ConnectivitySignal(settings.OFFLINE_START_ONLINE),
        max_retries=settings.OFFLINE_MAX_RETRIES,
        retention=dt.timedelta(hours=settings.OFFLINE_COMPLETED_RETENTION_HOURS),
        fetch_limit=settings.OFFLINE_FETCH_LIMIT,
        remote_timeout=settings.OFFLINE_REMOTE_TIMEOUT,
        retry_delay=settings.OFFLINE_RETRY_DELAY,
    )
