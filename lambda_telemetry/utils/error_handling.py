"""
Retry helpers for callers of flaky operations.

Provides immediate retry and linear-backoff retry. Both log every failed
attempt and, once attempts are exhausted, re-raise the last failure unchanged.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional, Sequence

import httpx
from botocore.exceptions import ClientError, ConnectionError as BotoConnectionError, HTTPClientError

from ..observability.structured_logger import StructuredLogger, get_logger

logger = get_logger()

BACKOFF_UNIT_SECONDS = 0.5

RETRYABLE_AWS_CODES = [
    'ThrottlingException',
    'Throttling',
    'TooManyRequestsException',
    'ProvisionedThroughputExceededException',
    'RequestLimitExceeded',
    'ServiceUnavailable',
    'InternalError',
    'RequestTimeout',
]

RETRYABLE_PATTERNS = [
    'timeout',
    'timed out',
    'connection',
    'network',
    'temporarily unavailable',
]


def is_retryable_error(error: Exception) -> bool:
    """
    Classify if an error is retryable (throttling, network errors).

    Args:
        error: The exception to classify

    Returns:
        True if the error is worth retrying, False otherwise
    """
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True

    if isinstance(error, ClientError):
        error_code = error.response.get('Error', {}).get('Code', '')
        if error_code in RETRYABLE_AWS_CODES:
            return True
    if isinstance(error, (BotoConnectionError, HTTPClientError)):
        return True

    error_message = str(error).lower()
    return any(pattern in error_message for pattern in RETRYABLE_PATTERNS)


async def sleep_for_seconds(seconds: float) -> None:
    """Suspend the calling task for ``seconds``."""
    await asyncio.sleep(seconds)


async def _invoke(operation: Callable[..., Any], args: Sequence[Any]) -> Any:
    result = operation(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _run_with_retries(
    operation: Callable[..., Any],
    args: Sequence[Any],
    max_attempts: int,
    first_attempt: int,
    backoff: bool,
    log: StructuredLogger,
    retryable_check: Optional[Callable[[Exception], bool]]
) -> Any:
    attempt = first_attempt
    while True:
        try:
            return await _invoke(operation, args)
        except Exception as e:
            log.info(f"Retry {attempt} failed.")

            if retryable_check is not None and not retryable_check(e):
                log.warn("Non-retryable error encountered", e)
                raise

            if attempt > max_attempts:
                log.info(f"All {max_attempts} retry attempts exhausted")
                raise

            if backoff:
                await sleep_for_seconds(attempt * BACKOFF_UNIT_SECONDS)
            attempt += 1


async def retry(
    operation: Callable[..., Any],
    args: Sequence[Any] = (),
    max_attempts: int = 3,
    *,
    log: Optional[StructuredLogger] = None,
    retryable_check: Optional[Callable[[Exception], bool]] = None
) -> Any:
    """
    Call ``operation(*args)``, retrying immediately when it fails.

    The operation runs at most ``max_attempts + 1`` times. Once every retry
    has failed the last exception is re-raised as is.

    Args:
        operation: Sync or async callable to run
        args: Positional arguments for the operation
        max_attempts: Number of retries after the first call
        log: Logger for attempt messages (default: this module's logger)
        retryable_check: Optional predicate; failures it rejects are raised at once

    Returns:
        The result of the first successful call

    Example:
        >>> item = await retry(fetch_item, ("item-1",), 3)
    """
    return await _run_with_retries(
        operation, args, max_attempts,
        first_attempt=1,
        backoff=False,
        log=log or logger,
        retryable_check=retryable_check,
    )


async def retry_with_backoff(
    operation: Callable[..., Any],
    args: Sequence[Any] = (),
    max_attempts: int = 3,
    *,
    log: Optional[StructuredLogger] = None,
    retryable_check: Optional[Callable[[Exception], bool]] = None
) -> Any:
    """
    Call ``operation(*args)``, retrying with a linear backoff when it fails.

    Attempts are numbered from 0 and retry ``n`` waits ``n * 0.5`` seconds
    before running, so delays are 0s, 0.5s, 1s, ... The operation runs at most
    ``max_attempts + 2`` times.

    Args:
        operation: Sync or async callable to run
        args: Positional arguments for the operation
        max_attempts: Highest attempt number that is still retried
        log: Logger for attempt messages (default: this module's logger)
        retryable_check: Optional predicate; failures it rejects are raised at once

    Returns:
        The result of the first successful call

    Example:
        >>> response = await retry_with_backoff(client.get, ("/v1/items",), 2, retryable_check=is_retryable_error)
    """
    return await _run_with_retries(
        operation, args, max_attempts,
        first_attempt=0,
        backoff=True,
        log=log or logger,
        retryable_check=retryable_check,
    )
