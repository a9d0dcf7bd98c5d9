"""Status summary shown by the sync badge."""

from __future__ import annotations

from typing import Any, Dict

from gmb_offline.core.offline.models import ConnectionStatus, OperationStatus, ServiceState


def badge_for(state: ServiceState) -> str:
    """Single badge value, first match wins."""
    conn = state.connectivity
    errors = len(state.operations_with_status(OperationStatus.ERROR))
    pending = len(state.operations_with_status(OperationStatus.PENDING))
    if not conn.is_online or conn.forced_offline_mode:
        return "offline"
    if conn.sync_in_progress:
        return "syncing"
    if conn.connection_status == ConnectionStatus.CHECKING and conn.last_sync_time is None:
        return "checking"
    if conn.connection_status == ConnectionStatus.ERROR:
        return "error"
    if errors:
        return "errors"
    if pending:
        return "pending"
    return "synced"


def summarize(state: ServiceState) -> Dict[str, Any]:
    conn = state.connectivity
    return {
        "badge": badge_for(state),
        "is_online": conn.is_online,
        "forced_offline_mode": conn.forced_offline_mode,
        "sync_in_progress": conn.sync_in_progress,
        "last_sync_time": conn.last_sync_time.isoformat() if conn.last_sync_time else None,
        "connection_status": conn.connection_status.value,
        "last_error": conn.last_error,
        "pending_count": len(state.operations_with_status(OperationStatus.PENDING)),
        "processing_count": len(state.operations_with_status(OperationStatus.PROCESSING)),
        "error_count": len(state.operations_with_status(OperationStatus.ERROR)),
        "completed_count": len(state.operations_with_status(OperationStatus.COMPLETED)),
        "tables": {table: len(rows) for table, rows in sorted(state.data.items())},
    }
