"""Instrumented HTTP client and its shared connection pool."""

from .connection_pool import SharedTransport, close_shared_transport, configure_pool, get_shared_transport
from .instrumented_client import (
    FailureKind,
    InstrumentedClient,
    TIME_HEADER_NAME,
    classify_failure,
    instrument,
)

__all__ = [
    "SharedTransport",
    "close_shared_transport",
    "configure_pool",
    "get_shared_transport",
    "FailureKind",
    "InstrumentedClient",
    "TIME_HEADER_NAME",
    "classify_failure",
    "instrument",
]
