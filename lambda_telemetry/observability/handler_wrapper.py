"""Instrumentation for request handlers.

``instrument_handler`` gives every invocation its own logger and records a
duration metric (plus a failure metric when the handler raises).
"""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Optional

from .metrics_emitter import DURATION_METRIC, FAILED_COUNT_METRIC
from .structured_logger import StructuredLogger, get_logger

HandlerFactory = Callable[[StructuredLogger], Callable[..., Any]]

AWS_TAGS = [("Type", "aws")]

UNCAUGHT_ERROR_MESSAGE = "Lambda Execution Finished With UnCaught Error"


def instrument_handler(handler_namespace: str, handler_factory: HandlerFactory) -> Callable[..., Awaitable[Any]]:
    """
    Wrap a handler factory so each invocation is logged and measured.

    The factory is called with a fresh StructuredLogger (its ``append.handler``
    already set to ``handler_namespace``) and must return the handler to run.
    The handler may be sync or async.

    On success a ``Duration`` metric with the elapsed milliseconds is emitted.
    On failure the error is logged, ``Duration`` (value 1) and ``FailedCount``
    metrics are emitted, and the original exception is re-raised.

    Args:
        handler_namespace: Activity name used for the metrics and the ``handler`` log field
        handler_factory: Callable taking the logger and returning the handler

    Returns:
        An async function with the handler's call signature

    Example:
        >>> def make_handler(logger):
        ...     async def handler(event, context):
        ...         logger.info("Processing", {"data": {"id": event["id"]}})
        ...         return {"ok": True}
        ...     return handler
        >>> get_item = instrument_handler("GetItem", make_handler)
    """
    async def instrumented_handler(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger()
        logger.append.handler = handler_namespace
        start_time = time.time()
        try:
            handler = handler_factory(logger)
            result = handler(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(UNCAUGHT_ERROR_MESSAGE, e)
            logger.metric(DURATION_METRIC, handler_namespace, AWS_TAGS, value=1)
            logger.metric(FAILED_COUNT_METRIC, handler_namespace, AWS_TAGS, value=1)
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        logger.metric(DURATION_METRIC, handler_namespace, AWS_TAGS, value=duration_ms)
        return result

    instrumented_handler.__name__ = getattr(handler_factory, "__name__", "instrumented_handler")
    return instrumented_handler


_event_loop: Optional[asyncio.AbstractEventLoop] = None


def _get_event_loop() -> asyncio.AbstractEventLoop:
    global _event_loop
    if _event_loop is None or _event_loop.is_closed():
        _event_loop = asyncio.new_event_loop()
    return _event_loop


def as_lambda_handler(instrumented: Callable[..., Awaitable[Any]]) -> Callable[[Any, Any], Any]:
    """
    Adapt an instrumented handler to the synchronous Lambda entry point.

    All invocations in the execution environment run on one long-lived event
    loop, so pooled HTTP connections survive between warm invocations.

    Args:
        instrumented: Function returned by ``instrument_handler``

    Returns:
        A ``(event, context)`` function for the Lambda runtime
    """
    def lambda_handler(event: Any, context: Any) -> Any:
        return _get_event_loop().run_until_complete(instrumented(event, context))

    return lambda_handler
