"""
httpx client with request/response telemetry.

Every request is stamped with its send time and logged. Every response is
either logged with a duration metric (2xx) or classified as one of three
failure kinds, logged, counted and re-raised:

- REMOTE_ERROR: the server answered with a non-2xx status
- NO_RESPONSE: the request was sent but no response came back
- REQUEST_FAILED: the request could not be built or sent at all

Failures whose status is in ``HttpCallContext.ignore_error_statuses`` are
logged but not counted, and the call returns ``None`` instead of raising.
With ``client.stream(...)`` the context manager yields ``None`` in that case.
"""

import os
import time
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional, Union

import httpx

from ..models import HttpCallContext
from ..observability.metrics_emitter import DURATION_METRIC, FAILED_COUNT_METRIC
from ..observability.structured_logger import StructuredLogger
from .connection_pool import get_shared_transport

TIME_HEADER_NAME = "CSTM-REQ-STRT-TIME"

HTTP_TAGS = [("Type", "http")]


class FailureKind(str, Enum):
    """How an HTTP call failed"""
    REMOTE_ERROR = "remote_error"
    NO_RESPONSE = "no_response"
    REQUEST_FAILED = "request_failed"


FAILURE_MESSAGES = {
    FailureKind.REMOTE_ERROR: "HTTP Remote Server Sent Error",
    FailureKind.NO_RESPONSE: "HTTP No Response From Server",
    FailureKind.REQUEST_FAILED: "HTTP Node Request Failed",
}

REQUEST_FAILED_MESSAGE = "HTTP Request Failed"


def classify_failure(error: BaseException) -> FailureKind:
    """
    Classify an exception raised while sending a request.

    Args:
        error: Exception raised by the client or transport

    Returns:
        REMOTE_ERROR for non-2xx responses, NO_RESPONSE for transport errors
        after the request was dispatched, REQUEST_FAILED for everything else
    """
    if isinstance(error, httpx.HTTPStatusError):
        return FailureKind.REMOTE_ERROR
    # Raised before anything reaches the wire
    if isinstance(error, (httpx.UnsupportedProtocol, httpx.LocalProtocolError)):
        return FailureKind.REQUEST_FAILED
    if isinstance(error, httpx.TransportError):
        return FailureKind.NO_RESPONSE
    return FailureKind.REQUEST_FAILED


def _now_ms() -> int:
    return int(time.time() * 1000)


class InstrumentedClient(httpx.AsyncClient):
    """AsyncClient that logs and measures every request it sends.

    Args:
        namespace: Activity name for the logs and metrics of this client
        context: Logger and failure settings
        **kwargs: Passed to ``httpx.AsyncClient``; the shared pool is used when
            no ``transport`` is given
    """

    def __init__(self, namespace: str, context: HttpCallContext, **kwargs: Any):
        kwargs.setdefault("follow_redirects", True)
        if "transport" not in kwargs:
            kwargs["transport"] = get_shared_transport()
        super().__init__(**kwargs)
        self.namespace = namespace
        self.context = context

    @property
    def logger(self) -> StructuredLogger:
        return self.context.logger

    def _log_failed(self, message: str, error: BaseException) -> None:
        log = getattr(self.logger, self.context.level or "error")
        log(message, error, {"activity": self.namespace})

    def _count_failure(self) -> None:
        self.logger.metric(FAILED_COUNT_METRIC, self.namespace, HTTP_TAGS, value=1)

    def _request_failed(self, error: BaseException) -> None:
        self._log_failed(REQUEST_FAILED_MESSAGE, error)
        self._count_failure()

    def build_request(self, *args: Any, **kwargs: Any) -> httpx.Request:
        try:
            return super().build_request(*args, **kwargs)
        except Exception as e:
            self._request_failed(e)
            raise

    def _on_request(self, request: httpx.Request) -> None:
        request.headers[TIME_HEADER_NAME] = str(_now_ms())
        self.logger.http(
            "HTTP Request Sent",
            {"data": {"url": str(request.url)}, "activity": self.namespace},
        )

    def _on_success(self, response: httpx.Response) -> None:
        if os.environ.get("DONT_LOG_SUCCESS_HTTP"):
            return
        elapsed_ms = _now_ms() - int(response.request.headers[TIME_HEADER_NAME])
        self.logger.http(
            "HTTP Request Successful",
            {
                "data": {"status": response.status_code, "url": str(response.request.url)},
                "activity": self.namespace,
            },
        )
        self.logger.metric(DURATION_METRIC, self.namespace, HTTP_TAGS, value=elapsed_ms)

    def _on_failure(self, error: BaseException) -> bool:
        """Log and count a failed call. Returns True when the failure is suppressed."""
        kind = classify_failure(error)
        self._log_failed(FAILURE_MESSAGES[kind], error)
        if kind is FailureKind.REMOTE_ERROR:
            if error.response.status_code in self.context.ignore_error_statuses:
                return True
        self._count_failure()
        return False

    async def send(self, request: httpx.Request, **kwargs: Any) -> Optional[httpx.Response]:
        try:
            self._on_request(request)
        except Exception as e:
            self._request_failed(e)
            raise

        try:
            response = await super().send(request, **kwargs)
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError:
                if kwargs.get("stream"):
                    try:
                        await response.aread()
                    finally:
                        await response.aclose()
                raise
        except Exception as e:
            if self._on_failure(e):
                return None
            raise

        self._on_success(response)
        return response

    @asynccontextmanager
    async def stream(self, method: str, url: Any, **kwargs: Any) -> AsyncIterator[Optional[httpx.Response]]:
        """Like ``httpx.AsyncClient.stream``, but yields ``None`` for an ignored status."""
        auth = kwargs.pop("auth", httpx.USE_CLIENT_DEFAULT)
        follow_redirects = kwargs.pop("follow_redirects", httpx.USE_CLIENT_DEFAULT)
        request = self.build_request(method, url, **kwargs)
        response = await self.send(request, auth=auth, follow_redirects=follow_redirects, stream=True)
        if response is None:
            yield None
            return
        try:
            yield response
        finally:
            await response.aclose()


def instrument(
    namespace: str,
    context: Union[HttpCallContext, Dict[str, Any]],
    **client_kwargs: Any
) -> InstrumentedClient:
    """
    Return an HTTP client whose calls are logged and measured.

    Args:
        namespace: Activity name for the logs and metrics of this client
        context: HttpCallContext, or a dict with its fields
        **client_kwargs: Extra ``httpx.AsyncClient`` arguments (base_url, timeout, transport, ...)

    Returns:
        An InstrumentedClient

    Example:
        >>> client = instrument("PaymentsAPI", HttpCallContext(logger=logger, ignore_error_statuses={404}))
        >>> response = await client.get("https://payments.example.com/v1/charges/ch_1")
    """
    if not isinstance(context, HttpCallContext):
        context = HttpCallContext.model_validate(context)
    return InstrumentedClient(namespace, context, **client_kwargs)
