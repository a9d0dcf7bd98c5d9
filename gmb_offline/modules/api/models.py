from __future__ import annotations
from typing import Any, Dict
from pydantic import BaseModel, Field

from gmb_offline.core.offline.models import OperationKind


class OperationIn(BaseModel):
    kind: OperationKind
    payload: Dict[str, Any] = Field(default_factory=dict)


class ForcedOfflineIn(BaseModel):
    forced: bool


class ConnectivityIn(BaseModel):
    online: bool
