"""Placeholder dataset used when local storage is empty or after a wipe."""

from __future__ import annotations

import copy

from gmb_offline.core.offline.models import CacheSnapshot

_EXAMPLE_DATA: CacheSnapshot = {
    "clientes": [
        {
            "id": "offline_1",
            "nombre": "Juan Pérez",
            "dni_cuit": "20123456789",
            "telefono": "1122334455",
            "email": "juan@example.com",
            "domicilio": "Calle Falsa 123",
        },
        {
            "id": "offline_2",
            "nombre": "María López",
            "dni_cuit": "27987654321",
            "telefono": "5544332211",
            "email": "maria@example.com",
            "domicilio": "Avenida Siempreviva 742",
        },
        {
            "id": "offline_3",
            "nombre": "Carlos Rodríguez",
            "dni_cuit": "20555666777",
            "telefono": "1155667788",
            "email": "carlos@example.com",
            "domicilio": "Boulevard de los Sueños 456",
        },
    ],
    "expedientes": [
        {
            "id": "offline_1",
            "numero": "123/2023",
            "autos": "Pérez c/ Aseguradora",
            "estado": "En trámite",
            "fecha_inicio": "2023-01-15",
            "cliente_nombre": "Juan Pérez",
            "juzgado": "Juzgado Civil N°5",
            "capital_reclamado": 150000,
        },
        {
            "id": "offline_2",
            "numero": "456/2023",
            "autos": "López c/ Empresa",
            "estado": "Sentencia",
            "fecha_inicio": "2023-03-20",
            "cliente_nombre": "María López",
            "juzgado": "Juzgado Civil N°3",
            "capital_reclamado": 200000,
        },
        {
            "id": "offline_3",
            "numero": "789/2023",
            "autos": "Rodríguez c/ Compañía",
            "estado": "Apelación",
            "fecha_inicio": "2023-05-10",
            "cliente_nombre": "Carlos Rodríguez",
            "juzgado": "Juzgado Civil N°7",
            "capital_reclamado": 180000,
        },
    ],
    "aseguradoras": [
        {
            "id": "offline_1",
            "nombre": "Seguros ABC",
            "dni_cuit": "30111222333",
            "telefono": "0800123456",
            "email": "contacto@seguros-abc.com",
            "domicilio": "Av. Principal 789",
        },
        {
            "id": "offline_2",
            "nombre": "Aseguradora XYZ",
            "dni_cuit": "30444555666",
            "telefono": "0800654321",
            "email": "info@aseguradora-xyz.com",
            "domicilio": "Calle Secundaria 456",
        },
    ],
    "juzgados": [
        {
            "id": "offline_1",
            "nombre": "Juzgado Civil N°3",
            "dni_cuit": "30777888999",
            "telefono": "0111234567",
            "email": "juzgado3@justicia.gov.ar",
            "domicilio": "Tribunales 123",
        },
        {
            "id": "offline_2",
            "nombre": "Juzgado Civil N°5",
            "dni_cuit": "30888999000",
            "telefono": "0111345678",
            "email": "juzgado5@justicia.gov.ar",
            "domicilio": "Tribunales 123",
        },
        {
            "id": "offline_3",
            "nombre": "Juzgado Civil N°7",
            "dni_cuit": "30999000111",
            "telefono": "0111456789",
            "email": "juzgado7@justicia.gov.ar",
            "domicilio": "Tribunales 123",
        },
    ],
    "estados": [
        {"id": "offline_1", "nombre": "En trámite"},
        {"id": "offline_2", "nombre": "Sentencia"},
        {"id": "offline_3", "nombre": "Apelación"},
        {"id": "offline_4", "nombre": "Archivado"},
    ],
}


def example_data() -> CacheSnapshot:
    """Fresh deep copy of the placeholder dataset."""
    return copy.deepcopy(_EXAMPLE_DATA)
