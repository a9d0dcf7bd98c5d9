"""
Connectivity signal - in-memory online/offline flag.

Stands in for the browser's online/offline events: the host (HTTP endpoint,
desktop shell, tests) reports changes through `set_online`, and subscribers
are pushed every change. Nothing here polls.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

ConnectivityCallback = Callable[[bool], None]


class ConnectivitySignal:
    """Mutable online flag with change callbacks."""

    def __init__(self, online: bool = True) -> None:
        self.online: bool = bool(online)
        self.changed_at: Optional[str] = None
        self._callbacks: List[ConnectivityCallback] = []

    def subscribe(self, callback: ConnectivityCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    def set_online(self, online: bool) -> None:
        online = bool(online)
        if online == self.online:
            return
        self.online = online
        self.changed_at = dt.datetime.now(dt.timezone.utc).isoformat()
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for callback in list(self._callbacks):
            try:
                callback(online)
            except Exception as e:
                logger.error("Connectivity callback error: %s", e)

    def to_dict(self) -> Dict[str, Any]:
        return {"online": self.online, "changed_at": self.changed_at}
