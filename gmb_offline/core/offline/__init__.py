"""Offline layer: state types, pure transitions and policies.

The service that owns the state lives in
`gmb_offline.core.services.offline_service`.
"""

from gmb_offline.core.offline.errors import InvalidOperationError, OfflineServiceError
from gmb_offline.core.offline.models import (
    ConnectionStatus,
    ConnectivityState,
    OperationKind,
    OperationResult,
    OperationStatus,
    PendingOperation,
    ServiceState,
)
from gmb_offline.core.offline.tables import CACHED_TABLES, CachedTable

__all__ = [
    "CACHED_TABLES",
    "CachedTable",
    "ConnectionStatus",
    "ConnectivityState",
    "InvalidOperationError",
    "OfflineServiceError",
    "OperationKind",
    "OperationResult",
    "OperationStatus",
    "PendingOperation",
    "ServiceState",
]
