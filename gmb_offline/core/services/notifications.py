"""User-facing notices (the UI renders them as toasts)."""

from __future__ import annotations

import datetime as dt
import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, Deque, Dict, List

logger = logging.getLogger(__name__)

_MAX_NOTIFICATIONS = 50

_LEVELS = {
    "default": logging.INFO,
    "warning": logging.WARNING,
    "destructive": logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"  # default | warning | destructive
    created_at: str = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NotificationCenter:
    """Logs every notice and keeps the latest ones for the UI."""

    def __init__(self, max_items: int = _MAX_NOTIFICATIONS) -> None:
        self._items: Deque[Notification] = deque(maxlen=max(1, int(max_items)))

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self._items.append(notification)
        logger.log(_LEVELS.get(variant, logging.INFO), "%s: %s", title, description)
        return notification

    def recent(self, limit: int = _MAX_NOTIFICATIONS) -> List[Notification]:
        items = list(self._items)
        return items[-max(0, int(limit)):] if limit else []
