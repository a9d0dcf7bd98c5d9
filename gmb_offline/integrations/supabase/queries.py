"""
Supabase Integration - Cache refresh queries

One `TableQuery` per cached table: which Supabase table to read, which
columns/embedded relations, equality filters, ordering, and an optional
row transform that flattens joined rows into the shape the UI expects.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

Row = Dict[str, Any]

# personas.tipo_id values
TIPO_CLIENTE = 1
TIPO_ABOGADO = 2
TIPO_ASEGURADORA = 3
TIPO_JUZGADO = 4
TIPO_MEDIADOR = 5
TIPO_PERITO = 6


@dataclass(frozen=True)
class TableQuery:
    source: str
    columns: str = "*"
    filters: Dict[str, Any] = field(default_factory=dict)
    order_by: Optional[str] = None
    descending: bool = False
    transform: Optional[Callable[[Row], Row]] = None

    def shape(self, rows: List[Row]) -> List[Row]:
        if self.transform is None:
            return list(rows)
        return [self.transform(row) for row in rows]


def _nested(row: Row, relation: str) -> Row:
    value = row.get(relation)
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else {}


def flatten_expediente(row: Row) -> Row:
    """Flatten an expediente joined with estado/juzgado/persona/aseguradora."""
    estado = _nested(row, "estados_expediente")
    juzgado = _nested(row, "juzgados")
    persona = _nested(row, "personas")
    aseguradora = _nested(row, "aseguradoras")
    return {
        "id": row.get("id"),
        "numero": row.get("numero") or "",
        "autos": row.get("autos") or "",
        "estado": estado.get("nombre") or "Sin estado",
        "fecha_inicio": row.get("fecha_inicio") or "",
        "fecha_alta": row.get("fecha_alta") or "",
        "juzgado": juzgado.get("nombre") or "Sin juzgado",
        "cliente_id": persona.get("id"),
        "cliente_nombre": persona.get("nombre"),
        "estado_id": estado.get("id"),
        "juzgado_id": juzgado.get("id"),
        "aseguradora_id": aseguradora.get("id"),
        "aseguradora_nombre": aseguradora.get("nombre"),
        "capital_reclamado": row.get("capital_reclamado"),
        "notas": row.get("notas"),
    }


def _personas(tipo_id: int, relation: Optional[str] = None) -> TableQuery:
    columns = f"*, {relation}(*)" if relation else "*"
    return TableQuery(source="personas", columns=columns, filters={"tipo_id": tipo_id}, order_by="nombre")


TABLE_QUERIES: Dict[str, TableQuery] = {
    "expedientes": TableQuery(
        source="expedientes",
        columns=(
            "id, numero, autos, fecha_inicio, fecha_alta, "
            "estados_expediente (id, nombre), juzgados (id, nombre), "
            "personas (id, nombre), aseguradoras (id, nombre), "
            "capital_reclamado, notas"
        ),
        order_by="fecha_inicio",
        descending=True,
        transform=flatten_expediente,
    ),
    "clientes": _personas(TIPO_CLIENTE, "clientes"),
    "abogados": _personas(TIPO_ABOGADO, "abogados"),
    "aseguradoras": _personas(TIPO_ASEGURADORA),
    "juzgados": _personas(TIPO_JUZGADO, "juzgados"),
    "mediadores": _personas(TIPO_MEDIADOR, "mediadores"),
    "peritos": _personas(TIPO_PERITO, "peritos"),
    "tareas": TableQuery(
        source="tareas_expediente",
        columns="*, expedientes(*)",
        filters={"cumplida": False},
        order_by="fecha_vencimiento",
    ),
    "actividades": TableQuery(source="actividades_expediente", order_by="fecha", descending=True),
    "estados": TableQuery(source="estados_expediente", order_by="nombre"),
}

# Cheapest read that proves the database answers.
PROBE_TABLE = "estados_expediente"


def query_for(table: str) -> TableQuery:
    """Registered query for `table`, or a plain `select *` on a table of that name."""
    return TABLE_QUERIES.get(table) or TableQuery(source=table)
