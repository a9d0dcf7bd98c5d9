"""
API Router - offline cache/sync endpoints for the frontend.

Frontend calls `/api/offline/*` only. Every endpoint delegates to the single
OfflineService stored on `app.state` at startup. Endpoints that touch the
service are `async def` so every state change runs on the event loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from gmb_offline.core.offline.errors import InvalidOperationError
from gmb_offline.core.offline.models import OperationStatus
from gmb_offline.core.offline.status import summarize
from gmb_offline.core.services.filters import ExpedienteFilters, filter_clientes, filter_expedientes
from gmb_offline.core.services.offline_service import OfflineService
from gmb_offline.modules.api.models import ConnectivityIn, ForcedOfflineIn, OperationIn

_logger = logging.getLogger(__name__)

router = APIRouter()

EVENTS_KEEPALIVE_SECONDS = 15.0


def get_offline_service(request: Request) -> OfflineService:
    service = getattr(request.app.state, "offline_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Servicio offline no inicializado")
    return service


@router.get("/state")
async def offline_state(service: OfflineService = Depends(get_offline_service)):
    """Badge, counters and connectivity flags."""
    return {**service.summary(), "connectivity": service.connectivity.to_dict()}


@router.get("/tables/{table}")
async def cached_table(table: str, service: OfflineService = Depends(get_offline_service)):
    return {"table": table, "records": service.get_cached_data(table)}


@router.get("/expedientes")
async def list_expedientes(
    numero: Optional[str] = None,
    persona: Optional[str] = None,
    estado: Optional[str] = None,
    tipo: Optional[str] = None,
    ordenar_por: str = "fecha_inicio",
    orden_ascendente: bool = False,
    service: OfflineService = Depends(get_offline_service),
):
    """Cached expedientes, filtered and sorted locally."""
    filters = ExpedienteFilters(
        numero=numero,
        persona=persona,
        estado=estado,
        tipo=tipo,
        ordenar_por=ordenar_por,
        orden_ascendente=orden_ascendente,
    )
    return {"records": filter_expedientes(service.get_cached_data("expedientes"), filters)}


@router.get("/clientes")
async def list_clientes(filtro: str = "", service: OfflineService = Depends(get_offline_service)):
    return {"records": filter_clientes(service.get_cached_data("clientes"), filtro)}


@router.post("/tables/{table}/operations")
async def perform_operation(
    table: str,
    body: OperationIn,
    service: OfflineService = Depends(get_offline_service),
):
    try:
        result = await service.perform_operation(table, body.kind, body.payload)
    except InvalidOperationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return result.model_dump(mode="json")


@router.get("/operations")
async def list_operations(
    status: Optional[OperationStatus] = None,
    service: OfflineService = Depends(get_offline_service),
):
    operations = service.state.pending_operations
    if status is not None:
        operations = tuple(op for op in operations if op.status == status)
    return {"operations": [op.model_dump(mode="json") for op in operations]}


@router.post("/sync")
async def sync(service: OfflineService = Depends(get_offline_service)):
    ok = await service.sync_data()
    return {"ok": ok, **service.summary()}


@router.post("/retry-failed")
async def retry_failed(service: OfflineService = Depends(get_offline_service)):
    ok = await service.retry_failed_operations()
    return {"ok": ok, **service.summary()}


@router.put("/forced-offline")
async def set_forced_offline(body: ForcedOfflineIn, service: OfflineService = Depends(get_offline_service)):
    service.set_forced_offline_mode(body.forced)
    return service.summary()


@router.put("/connectivity")
async def set_connectivity(body: ConnectivityIn, service: OfflineService = Depends(get_offline_service)):
    """Host-reported online/offline signal."""
    service.connectivity.set_online(body.online)
    return service.summary()


@router.delete("/data")
async def clear_data(
    confirm: bool = Query(False),
    service: OfflineService = Depends(get_offline_service),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Confirme la eliminación con confirm=true")
    service.clear_all_data()
    return service.summary()


@router.get("/notifications")
async def notifications(limit: int = 20, service: OfflineService = Depends(get_offline_service)):
    return {"notifications": [n.to_dict() for n in service.notifier.recent(limit)]}


@router.get("/events")
async def events(request: Request, service: OfflineService = Depends(get_offline_service)):
    """Server-sent events: one status summary per state change."""
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = service.subscribe(lambda state: queue.put_nowait(summarize(state)))

    async def _stream():
        try:
            while not await request.is_disconnected():
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=EVENTS_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
        finally:
            unsubscribe()
            _logger.debug("Offline events stream closed")

    return StreamingResponse(_stream(), media_type="text/event-stream")
