"""Tables mirrored in the local cache."""

from __future__ import annotations

from enum import Enum
from typing import Tuple


class CachedTable(str, Enum):
    EXPEDIENTES = "expedientes"
    CLIENTES = "clientes"
    ABOGADOS = "abogados"
    ASEGURADORAS = "aseguradoras"
    JUZGADOS = "juzgados"
    MEDIADORES = "mediadores"
    PERITOS = "peritos"
    TAREAS = "tareas"
    ACTIVIDADES = "actividades"
    ESTADOS = "estados"


# Refreshed, in this order, at the end of every successful sync.
CACHED_TABLES: Tuple[str, ...] = tuple(t.value for t in CachedTable)
