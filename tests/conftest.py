"""Shared test fixtures for the offline service tests."""
import datetime as dt
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Ensure the project root is in sys.path so that `gmb_offline.*` imports work
# when running pytest from the repo root.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gmb_offline.core.services.connectivity import ConnectivitySignal  # noqa: E402
from gmb_offline.core.services.offline_service import OfflineService  # noqa: E402
from gmb_offline.core.storage.local_storage import LocalStorage  # noqa: E402


class FakeRemote:
    """In-memory remote data source that records every call."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.write_error: Optional[Exception] = None
        self.probe_error: Optional[Exception] = None
        self.fetch_error: Optional[Exception] = None
        self._next_id = 100

    def _fail_write(self) -> None:
        if self.write_error is not None:
            raise self.write_error

    async def probe(self) -> None:
        self.calls.append(("probe",))
        if self.probe_error is not None:
            raise self.probe_error

    async def select(self, table, filters=None, limit=None):
        self.calls.append(("select", table))
        rows = [dict(r) for r in self.tables.get(table, [])]
        for col, val in (filters or {}).items():
            rows = [r for r in rows if r.get(col) == val]
        return rows[:limit] if limit else rows

    async def insert(self, table, record):
        self.calls.append(("insert", table, dict(record)))
        self._fail_write()
        row = dict(record)
        if "id" not in row:
            self._next_id += 1
            row["id"] = f"srv-{self._next_id}"
        self.tables.setdefault(table, []).append(row)
        return dict(row)

    async def update(self, table, record_id, changes):
        self.calls.append(("update", table, record_id, dict(changes)))
        self._fail_write()
        for row in self.tables.setdefault(table, []):
            if row.get("id") == record_id:
                row.update(changes)
                return dict(row)
        row = {"id": record_id, **changes}
        self.tables[table].append(row)
        return dict(row)

    async def delete(self, table, record_id):
        self.calls.append(("delete", table, record_id))
        self._fail_write()
        self.tables[table] = [r for r in self.tables.get(table, []) if r.get("id") != record_id]

    async def fetch_table(self, table, limit):
        self.calls.append(("fetch", table))
        if self.fetch_error is not None:
            raise self.fetch_error
        return [dict(r) for r in self.tables.get(table, [])][:limit]

    def calls_of(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


class ManualClock:
    def __init__(self) -> None:
        self.now = dt.datetime(2026, 3, 2, 9, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += dt.timedelta(**kwargs)


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage")


@pytest.fixture
def make_service(storage, remote, clock):
    """Factory so a test can build (and rebuild) services on the same storage."""

    def _make(*, online: bool = True, **kwargs: Any) -> OfflineService:
        params: Dict[str, Any] = {
            "storage": storage,
            "remote": remote,
            "connectivity": ConnectivitySignal(online),
            "sleep_fn": no_sleep,
            "clock": clock,
            "tables": ("clientes", "expedientes"),
        }
        params.update(kwargs)
        return OfflineService(**params)

    return _make
