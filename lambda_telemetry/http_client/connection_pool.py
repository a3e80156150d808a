"""
Process-wide keep-alive connection pool.

Every instrumented client sends through the same ``SharedTransport`` unless it
is given its own transport. Closing a client does not close the pool; only
``close_shared_transport()`` does.
"""

import logging
import threading
from typing import Optional

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class SharedTransport(httpx.AsyncBaseTransport):
    """Async transport backed by one bounded keep-alive pool.

    Args:
        max_idle: Maximum number of idle keep-alive connections kept open
        idle_ttl: Seconds an idle connection may live before it is reclaimed
    """

    def __init__(self, max_idle: int = 25, idle_ttl: float = 60.0):
        self.max_idle = max_idle
        self.idle_ttl = idle_ttl
        self._transport = httpx.AsyncHTTPTransport(
            limits=httpx.Limits(
                max_connections=None,
                max_keepalive_connections=max_idle,
                keepalive_expiry=idle_ttl,
            )
        )
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        # Clients share this pool; closing one client must not close it
        pass

    async def close_pool(self) -> None:
        self.closed = True
        await self._transport.aclose()


_shared_transport: Optional[SharedTransport] = None
_lock = threading.Lock()


def get_shared_transport() -> SharedTransport:
    """Return the process-wide transport, creating it from settings on first use."""
    global _shared_transport
    if _shared_transport is None or _shared_transport.closed:
        with _lock:
            if _shared_transport is None or _shared_transport.closed:
                settings = get_settings()
                _shared_transport = SharedTransport(
                    max_idle=settings.pool_max_idle,
                    idle_ttl=settings.pool_idle_ttl,
                )
                logger.info(
                    f"Shared HTTP pool created with max_idle={settings.pool_max_idle}, "
                    f"idle_ttl={settings.pool_idle_ttl}s"
                )
    return _shared_transport


async def configure_pool(max_idle: int, idle_ttl: float) -> SharedTransport:
    """
    Replace the process-wide transport with one using the given limits.

    The previous transport is closed once the new one is installed.
    """
    global _shared_transport
    configured = SharedTransport(max_idle=max_idle, idle_ttl=idle_ttl)
    with _lock:
        previous, _shared_transport = _shared_transport, configured
    if previous is not None:
        await previous.close_pool()
    return configured


async def close_shared_transport() -> None:
    global _shared_transport
    with _lock:
        transport, _shared_transport = _shared_transport, None
    if transport is not None:
        await transport.close_pool()
