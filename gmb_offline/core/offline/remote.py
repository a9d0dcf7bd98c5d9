"""Contract the offline service expects from the remote data source."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from gmb_offline.core.offline.models import Record


class RemoteDataSource(Protocol):
    """
    Table-scoped CRUD against the hosted database.

    Every method may raise; the service treats any exception as a remote
    failure. Joins and row shaping for cache refresh live behind
    `fetch_table`.
    """

    async def probe(self) -> None: ...

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]: ...

    async def insert(self, table: str, record: Record) -> Record: ...

    async def update(self, table: str, record_id: Any, changes: Record) -> Record: ...

    async def delete(self, table: str, record_id: Any) -> None: ...

    async def fetch_table(self, table: str, limit: int) -> List[Record]: ...
