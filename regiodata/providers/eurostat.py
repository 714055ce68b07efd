from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import DecodeError
from ..models import RawCube
from .base import BaseProvider

logger = logging.getLogger(__name__)


class EurostatProvider(BaseProvider):
    """Eurostat dissemination API (JSON-stat 2.0) fetch collaborator.

    ``fetch`` returns a validated ``RawCube`` or raises ``TransportError``
    (network, non-2xx) or ``DecodeError`` (body is not a JSON-stat cube).
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(client=client, settings=settings)

    @property
    def provider_name(self) -> str:
        return "Eurostat"

    async def fetch(self, url: str) -> RawCube:
        logger.debug(f"[Eurostat] GET {url}")
        response = await self._get_with_retry(url)
        payload = self._parse_json(response, url)
        return self._parse_cube(payload, url)

    def _parse_cube(self, payload: Dict[str, Any], url: str) -> RawCube:
        # Errors come back as {"error": {"status": ..., "label": ...}} on some gateways
        if "error" in payload and "value" not in payload:
            error = payload["error"]
            label = error.get("label") if isinstance(error, dict) else error
            raise DecodeError(f"Eurostat returned an error document: {label}", url=url)
        try:
            return RawCube.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                f"Eurostat response is not a JSON-stat cube: {e.error_count()} validation error(s)",
                url=url,
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)[:5]},
            ) from e
