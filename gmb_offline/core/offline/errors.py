"""Offline layer - custom exceptions."""

from __future__ import annotations


class OfflineServiceError(RuntimeError):
    """Base class for offline service errors."""


class InvalidOperationError(OfflineServiceError, ValueError):
    """A write request is malformed (unknown kind, missing table or id)."""
