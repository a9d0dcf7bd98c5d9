"""Unit tests for the queued-operation retry policy."""

from random import Random

from gmb_offline.core.offline.models import OperationStatus
from gmb_offline.core.offline.retry_policy import compute_backoff, has_retries_left, status_after_failure


def test_has_retries_left():
    assert has_retries_left(0, 3) is True
    assert has_retries_left(2, 3) is True
    assert has_retries_left(3, 3) is False
    assert has_retries_left(0, 0) is False


def test_status_after_failure_reaches_error_at_limit():
    assert status_after_failure(1, 3) == OperationStatus.PENDING
    assert status_after_failure(2, 3) == OperationStatus.PENDING
    assert status_after_failure(3, 3) == OperationStatus.ERROR


def test_compute_backoff_is_linear_with_deterministic_jitter():
    wait = compute_backoff(2, base_delay=1.0, jitter=0.2, rng=Random(7))
    assert 1.6 <= wait <= 2.4


def test_compute_backoff_respects_cap():
    assert compute_backoff(100, base_delay=1.0, jitter=0.0, cap_seconds=30.0) == 30.0


def test_compute_backoff_zero_base_means_no_wait():
    assert compute_backoff(3, base_delay=0.0) == 0.0
    assert compute_backoff(0, base_delay=1.0) == 0.0
