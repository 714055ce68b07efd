"""
Shared HTTP Client Pool Service

One asyncio-compatible ``httpx.AsyncClient`` reused by every fetch so a
resolution batch shares TCP connections instead of opening one per
indicator.
"""

from __future__ import annotations

import logging
import httpx
from typing import Optional, Dict, Any

from ..config import get_settings

logger = logging.getLogger(__name__)

USER_AGENT = "regiodata/1.0 (+eurostat)"


class HTTPClientPool:
    """
    Singleton HTTP client pool for Eurostat API calls.

    Features:
    - Reuses TCP connections across requests
    - HTTP/2 support
    - Connection pooling with configurable limits
    - Proper timeout handling
    """

    _instance: Optional[HTTPClientPool] = None
    _client: Optional[httpx.AsyncClient] = None

    def __new__(cls) -> HTTPClientPool:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the HTTP client pool if not already done."""
        if self._client is None:
            self._initialize_client()

    @staticmethod
    def _initialize_client() -> None:
        """Create a shared AsyncClient with connection pooling."""
        settings = get_settings()
        limits = httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
            keepalive_expiry=5.0,
        )
        timeout = httpx.Timeout(
            timeout=settings.fetch_timeout_seconds,
            connect=10.0,
            pool=5.0,
        )

        HTTPClientPool._client = httpx.AsyncClient(
            limits=limits,
            timeout=timeout,
            http2=True,
            verify=True,
            follow_redirects=True,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

        logger.info(
            "HTTP Client Pool initialized: "
            f"max_connections=20, max_keepalive=10, timeout={settings.fetch_timeout_seconds}s"
        )

    @classmethod
    def get_client(cls) -> httpx.AsyncClient:
        """Get the shared HTTP client instance."""
        cls()
        if HTTPClientPool._client is None or HTTPClientPool._client.is_closed:
            HTTPClientPool._initialize_client()
        return HTTPClientPool._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared HTTP client pool."""
        if HTTPClientPool._client:
            await HTTPClientPool._client.aclose()
            HTTPClientPool._client = None
            logger.info("HTTP Client Pool closed")

    @classmethod
    def get_stats(cls) -> Dict[str, Any]:
        """Get current pool statistics."""
        client = HTTPClientPool._client
        if client is None:
            return {"status": "not_initialized"}

        return {
            "status": "active",
            "is_closed": client.is_closed,
            "timeout": client.timeout.read,
            "limits": {
                "max_connections": client.limits.max_connections,
                "max_keepalive_connections": client.limits.max_keepalive_connections,
            },
        }


def get_http_client() -> httpx.AsyncClient:
    """
    Get the shared HTTP client pool.

    This function should be used instead of creating new AsyncClient instances.
    """
    return HTTPClientPool.get_client()


async def close_http_pool() -> None:
    """Close the HTTP client pool (called on application shutdown)."""
    await HTTPClientPool.close()
