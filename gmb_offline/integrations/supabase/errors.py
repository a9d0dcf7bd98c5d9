"""
Supabase Integration - Custom Exceptions

Only error definitions, no logic.
Raised by client.py; the offline service treats all of them as remote
failures.
"""
from __future__ import annotations

from typing import Optional


class RemoteDataError(Exception):
    """Base error for the remote data source."""
    pass


class RemoteUnavailable(RemoteDataError):
    """Supabase is not configured, not responding, or refused the connection."""
    pass


class RemoteTimeout(RemoteDataError):
    """A remote call did not answer within the configured timeout."""
    pass


class RemoteQueryError(RemoteDataError):
    """Supabase answered with a structured error (constraint, RLS, bad column...)."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class BadRemoteResponse(RemoteDataError):
    """Unexpected response shape or unclassified failure."""
    pass
