"""Utility functions for callers of the telemetry layer."""

from .error_handling import (
    retry,
    retry_with_backoff,
    sleep_for_seconds,
    is_retryable_error,
)

__all__ = [
    'retry',
    'retry_with_backoff',
    'sleep_for_seconds',
    'is_retryable_error',
]
