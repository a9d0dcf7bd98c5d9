"""
Durable key-value storage for the offline layer.

One JSON-compatible string value per key, one file per key under a base
directory. Reads are synchronous and available at process start; writes are
atomic (temp file + rename) so a crash never leaves a half-written state.
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

_LOCKS: Dict[str, threading.Lock] = {}
_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    if key not in _LOCKS:
        _LOCKS[key] = threading.Lock()
    return _LOCKS[key]


class LocalStorage:
    """File-backed getItem/setItem store."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def _path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("Storage key must not be empty")
        return self.base_dir / f"{_SAFE_KEY.sub('_', key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        with _lock_for(path):
            if not path.exists():
                return None
            try:
                return path.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning("Could not read storage key %s: %s", key, e)
                return None

    def set_item(self, key: str, value: str) -> None:
        # Write errors (disk full, permissions) propagate to the caller.
        path = self._path_for(key)
        with _lock_for(path):
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
