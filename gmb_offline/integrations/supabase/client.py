"""
Supabase Integration - Remote data source

Only communication with Supabase (PostgREST) through the async client.
No caching, no queueing. Just table-scoped CRUD and error translation.

Responsibilities:
- Lazy async client creation from settings
- select / insert / update / delete by table name
- Probe read used to confirm reachability before a sync
- Cache refresh reads driven by queries.TABLE_QUERIES
- Error translation to custom exceptions
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from gmb_offline.core.config import settings
from .errors import (
    BadRemoteResponse,
    RemoteDataError,
    RemoteQueryError,
    RemoteTimeout,
    RemoteUnavailable,
)
from .queries import PROBE_TABLE, query_for

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def translate_error(error: Exception, action: str) -> RemoteDataError:
    """Map client/transport exceptions onto the remote error hierarchy."""
    if isinstance(error, RemoteDataError):
        return error
    if isinstance(error, APIError):
        message = getattr(error, "message", None) or str(error)
        return RemoteQueryError(f"Supabase rejected {action}: {message}", code=getattr(error, "code", None))
    if isinstance(error, httpx.TimeoutException):
        return RemoteTimeout(f"Supabase timeout during {action}")
    if isinstance(error, (httpx.ConnectError, httpx.NetworkError)):
        return RemoteUnavailable(f"Cannot connect to Supabase during {action}: {error}")
    return BadRemoteResponse(f"Unexpected error during {action}: {error}")


class SupabaseDataSource:
    """
    Remote data source backed by Supabase.

    Endpoints are plain table names; joins needed for the cache are
    declared in queries.py.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        *,
        client: Optional[AsyncClient] = None,
    ):
        self.url = url if url is not None else settings.SUPABASE_URL
        self.key = key if key is not None else settings.SUPABASE_KEY
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.url and self.key)

    async def _get_client(self) -> AsyncClient:
        if self._client is not None:
            return self._client
        if not self.is_configured():
            raise RemoteUnavailable("Supabase credentials not configured (SUPABASE_URL / SUPABASE_KEY)")
        try:
            self._client = await acreate_client(self.url, self.key)
        except Exception as e:
            raise translate_error(e, "client initialization") from e
        logger.info("Supabase client initialized for %s", self.url)
        return self._client

    @staticmethod
    def _rows(response: Any, action: str) -> List[Record]:
        data = getattr(response, "data", None)
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise BadRemoteResponse(f"Unexpected payload for {action}: {type(data).__name__}")
        return data

    async def probe(self) -> None:
        """Cheapest possible read; raises if Supabase cannot be reached."""
        client = await self._get_client()
        try:
            await client.table(PROBE_TABLE).select("id").limit(1).execute()
        except Exception as e:
            raise translate_error(e, "probe") from e

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        client = await self._get_client()
        action = f"select on {table}"
        try:
            query = client.table(table).select("*")
            for col, val in (filters or {}).items():
                query = query.eq(col, val)
            if limit:
                query = query.limit(limit)
            response = await query.execute()
        except Exception as e:
            raise translate_error(e, action) from e
        return self._rows(response, action)

    async def insert(self, table: str, record: Record) -> Record:
        client = await self._get_client()
        action = f"insert on {table}"
        try:
            response = await client.table(table).insert(record).execute()
        except Exception as e:
            raise translate_error(e, action) from e
        rows = self._rows(response, action)
        if not rows:
            raise BadRemoteResponse(f"Supabase returned no row for {action}")
        return rows[0]

    async def update(self, table: str, record_id: Any, changes: Record) -> Record:
        client = await self._get_client()
        action = f"update on {table} id={record_id}"
        try:
            response = await client.table(table).update(changes).eq("id", record_id).execute()
        except Exception as e:
            raise translate_error(e, action) from e
        rows = self._rows(response, action)
        if not rows:
            raise RemoteQueryError(f"No row matched {action}", code="not_found")
        return rows[0]

    async def delete(self, table: str, record_id: Any) -> None:
        client = await self._get_client()
        try:
            await client.table(table).delete().eq("id", record_id).execute()
        except Exception as e:
            raise translate_error(e, f"delete on {table} id={record_id}") from e

    async def fetch_table(self, table: str, limit: int) -> List[Record]:
        """Read the rows that make up the cached snapshot of `table`."""
        table_query = query_for(table)
        client = await self._get_client()
        action = f"refresh of {table}"
        try:
            query = client.table(table_query.source).select(table_query.columns)
            for col, val in table_query.filters.items():
                query = query.eq(col, val)
            if table_query.order_by:
                query = query.order(table_query.order_by, desc=table_query.descending)
            response = await query.limit(limit).execute()
        except Exception as e:
            raise translate_error(e, action) from e
        return table_query.shape(self._rows(response, action))
