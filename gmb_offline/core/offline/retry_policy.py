"""Retry policy for replaying queued operations."""

from __future__ import annotations

import random
from typing import Optional

from gmb_offline.core.offline.models import OperationStatus


def has_retries_left(retry_count: int, max_retries: int) -> bool:
    """Whether an operation may still be attempted against the remote source."""
    return max(0, int(retry_count)) < max(0, int(max_retries))


def status_after_failure(retry_count: int, max_retries: int) -> OperationStatus:
    """Status for an operation whose failed attempt brought it to `retry_count`."""
    if has_retries_left(retry_count, max_retries):
        return OperationStatus.PENDING
    return OperationStatus.ERROR


def compute_backoff(
    retry_count: int,
    *,
    base_delay: float = 1.0,
    jitter: float = 0.2,
    cap_seconds: float = 30.0,
    rng: Optional[random.Random] = None,
) -> float:
    """Linear backoff (`base_delay * retry_count`) with jitter, capped."""
    cap = max(0.0, float(cap_seconds))
    base = max(0.0, float(base_delay)) * max(0, int(retry_count))
    if base <= 0:
        return 0.0
    jitter_ratio = max(0.0, float(jitter))
    randomizer = rng.uniform if rng is not None else random.uniform
    factor = randomizer(1.0 - jitter_ratio, 1.0 + jitter_ratio)
    return min(cap, max(0.0, base * factor))
