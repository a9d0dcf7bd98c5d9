"""
Offline layer - state types.

Pydantic models for everything the offline service owns and persists:
cached table snapshots, queued writes, connectivity flags and the
aggregate service state. All models are frozen; state changes produce new
values through `reducer.reduce`.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Record = Dict[str, Any]
CacheSnapshot = Dict[str, List[Record]]


class OperationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class OperationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    ERROR = "error"
    COMPLETED = "completed"


class ConnectionStatus(str, Enum):
    CHECKING = "checking"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class PendingOperation(BaseModel):
    """A queued mutation not yet confirmed by the remote source."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: dt.datetime
    table: str
    kind: OperationKind
    payload: Record = Field(default_factory=dict)
    status: OperationStatus = OperationStatus.PENDING
    last_error: Optional[str] = None
    retry_count: int = Field(default=0, ge=0)

    @property
    def record_id(self) -> Any:
        return self.payload.get("id")


class ConnectivityState(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_online: bool = True
    forced_offline_mode: bool = False
    sync_in_progress: bool = False
    last_sync_time: Optional[dt.datetime] = None
    connection_status: ConnectionStatus = ConnectionStatus.CHECKING
    last_error: Optional[str] = None

    @property
    def remote_usable(self) -> bool:
        """True when a remote call may be attempted at all."""
        return self.is_online and not self.forced_offline_mode


class ServiceState(BaseModel):
    """Cache snapshot + pending-operation queue + connectivity."""

    model_config = ConfigDict(frozen=True)

    data: CacheSnapshot = Field(default_factory=dict)
    pending_operations: Tuple[PendingOperation, ...] = ()
    connectivity: ConnectivityState = Field(default_factory=ConnectivityState)

    def find_operation(self, operation_id: str) -> Optional[PendingOperation]:
        for op in self.pending_operations:
            if op.id == operation_id:
                return op
        return None

    def operations_with_status(self, status: OperationStatus) -> List[PendingOperation]:
        return [op for op in self.pending_operations if op.status == status]


class OperationResult(BaseModel):
    """Outcome of `OfflineService.perform_operation`."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    local_operation_id: Optional[str] = None

    @property
    def queued(self) -> bool:
        return self.local_operation_id is not None
