"""
Read-side helpers for the list screens.

The expedientes and clientes lists read the cached snapshot and filter/sort
it locally, so they behave the same online and offline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from gmb_offline.core.offline.models import Record

ARCHIVED_STATE = "Finalizado"
ALL = "all"


@dataclass(frozen=True)
class ExpedienteFilters:
    numero: Optional[str] = None
    persona: Optional[str] = None  # cliente_id, or "all"
    estado: Optional[str] = None  # estado_id, or "all"
    tipo: Optional[str] = None  # "activos" | "archivados"
    ordenar_por: str = "fecha_inicio"
    orden_ascendente: bool = False


def _matches_expediente(record: Record, filters: ExpedienteFilters) -> bool:
    if filters.numero and filters.numero.lower() not in str(record.get("numero") or "").lower():
        return False
    if filters.persona and filters.persona != ALL and str(record.get("cliente_id")) != filters.persona:
        return False
    if filters.estado and filters.estado != ALL and str(record.get("estado_id")) != filters.estado:
        return False
    if filters.tipo == "activos" and record.get("estado") == ARCHIVED_STATE:
        return False
    if filters.tipo == "archivados" and record.get("estado") != ARCHIVED_STATE:
        return False
    return True


def _sort_key(value: Any) -> tuple:
    # Missing values sort as "", numbers before strings.
    if value is None:
        return (1, "")
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, str(value).lower())


def filter_expedientes(records: Iterable[Record], filters: Optional[ExpedienteFilters] = None) -> List[Record]:
    filters = filters or ExpedienteFilters()
    matched = [r for r in records if _matches_expediente(r, filters)]
    field = filters.ordenar_por or "fecha_inicio"
    return sorted(matched, key=lambda r: _sort_key(r.get(field)), reverse=not filters.orden_ascendente)


def filter_clientes(records: Iterable[Record], text: str = "") -> List[Record]:
    """Case-insensitive search on nombre / dni_cuit / email, sorted by nombre."""
    needle = (text or "").strip().lower()
    matched = []
    for record in records:
        if needle:
            haystack = [str(record.get(key) or "").lower() for key in ("nombre", "dni_cuit", "email")]
            if not any(needle in value for value in haystack):
                continue
        matched.append(record)
    return sorted(matched, key=lambda r: str(r.get("nombre") or "").lower())
