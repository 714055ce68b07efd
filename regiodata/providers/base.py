"""Base provider class with the transport-level retry and error mapping."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import DecodeError, TransportError

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Base class for data providers.

    Provides common functionality:
    - Retry with linear backoff for connection errors, 429 and 5xx
    - Mapping of HTTP failures onto ``TransportError``
    - Mapping of unparsable bodies onto ``DecodeError``

    Retry lives here, in the transport. Callers above the provider never
    retry a failed fetch.
    """

    # Statuses worth another attempt
    RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize base provider.

        Args:
            client: HTTP client to use, the shared pool when omitted
            settings: Application settings
        """
        self.settings = settings or get_settings()
        self._client = client

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the canonical provider name, used in logs and errors."""
        pass

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            from ..services.http_pool import get_http_client

            return get_http_client()
        return self._client

    async def _get_with_retry(self, url: str, **kwargs) -> httpx.Response:
        """GET with automatic retry on transient failures.

        Raises:
            TransportError: On network failure or a non-2xx status once
                attempts are exhausted, immediately for other 4xx
        """
        attempts = self.settings.fetch_max_attempts
        backoff = self.settings.fetch_backoff_seconds
        last_error: Optional[TransportError] = None

        for attempt in range(1, attempts + 1):
            try:
                response = await self.client.get(url, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                last_error = TransportError(
                    f"{self.provider_name} returned {status}",
                    url=url,
                    status_code=status,
                    details={"body": e.response.text[:200]},
                )
                if status not in self.RETRYABLE_STATUSES:
                    raise last_error from e

            except httpx.TransportError as e:
                last_error = TransportError(
                    f"{self.provider_name} request failed: {e}",
                    url=url,
                )

            if attempt < attempts:
                logger.warning(
                    f"[{self.provider_name}] attempt {attempt}/{attempts} failed for {url}: "
                    f"{last_error.message}, retrying"
                )
                await asyncio.sleep(backoff * attempt)

        raise last_error

    def _parse_json(self, response: httpx.Response, url: str) -> Dict[str, Any]:
        """Parse a JSON object body.

        Raises:
            DecodeError: If the body is not a JSON object
        """
        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"{self.provider_name} response is not JSON: {e}", url=url) from e
        if not isinstance(payload, dict):
            raise DecodeError(
                f"{self.provider_name} response is a {type(payload).__name__}, expected an object",
                url=url,
            )
        return payload
