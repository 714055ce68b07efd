from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, urlsplit

import httpx

from regiodata.exceptions import TransportError
from regiodata.models import RawCube, Series


class MockAsyncResponse:
    def __init__(
        self,
        json_data: Any = None,
        *,
        text: Optional[str] = None,
        status_code: int = 200,
        request_url: Optional[str] = None,
    ) -> None:
        self._json = json_data
        self.text = text if text is not None else json.dumps(json_data)
        self.status_code = status_code
        self.url = request_url or "https://example.com/mock"

    def raise_for_status(self) -> None:
        if self.status_code < 400:
            return None
        request = httpx.Request("GET", self.url)
        response = httpx.Response(self.status_code, text=self.text, request=request)
        raise httpx.HTTPStatusError(
            f"HTTP {self.status_code}", request=request, response=response
        )

    def json(self) -> Any:
        if self._json is None:
            return json.loads(self.text)
        return self._json


class MockAsyncClient:
    """Hands out queued responses in order; queued exceptions are raised."""

    def __init__(self, responses: Iterable[Union[MockAsyncResponse, Exception]]) -> None:
        self._responses: List[Union[MockAsyncResponse, Exception]] = list(responses)
        self.requested: List[str] = []

    async def get(self, url: str, **_kwargs) -> MockAsyncResponse:
        if not self._responses:
            raise AssertionError("No more mock responses available")
        self.requested.append(str(url))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.url = str(url)
        return response


def make_cube(
    dimensions: Sequence[Tuple[str, Sequence[str]]],
    values: Dict[int, float],
    status: Optional[Dict[int, str]] = None,
    labels: Optional[Dict[str, Dict[str, str]]] = None,
    label: str = "test cube",
) -> Dict[str, Any]:
    """A JSON-stat 2.0 dataset document, as the API serves it."""
    labels = labels or {}
    return {
        "version": "2.0",
        "class": "dataset",
        "label": label,
        "id": [name for name, _ in dimensions],
        "size": [len(codes) for _, codes in dimensions],
        "dimension": {
            name: {
                "label": name,
                "category": {
                    "index": {code: i for i, code in enumerate(codes)},
                    "label": {code: labels.get(name, {}).get(code, code) for code in codes},
                },
            }
            for name, codes in dimensions
        },
        "value": {str(k): v for k, v in values.items()},
        "status": {str(k): v for k, v in (status or {}).items()},
    }


def cube_from_series(
    layers: Union[Series, Dict[str, Series]],
    combined_dimension: Optional[str] = None,
    labels: Optional[Dict[str, Dict[str, str]]] = None,
) -> Dict[str, Any]:
    """Encode one Series (or one per combined code) as a unit x geo x time cube.

    Absent values are flagged ``:`` in ``status``. Every layer must share the
    locations and years of the first one.
    """
    if combined_dimension is None:
        layers = {"NR": layers}
        combined_dimension = "unit"
    codes = list(layers)
    first = layers[codes[0]]
    locations = list(first)
    years = sorted({year for row in first.values() for year in row})

    values: Dict[int, float] = {}
    status: Dict[int, str] = {}
    for c, code in enumerate(codes):
        for g, location in enumerate(locations):
            for t, year in enumerate(years):
                index = (c * len(locations) + g) * len(years) + t
                value = layers[code][location].get(year)
                if value is None:
                    status[index] = ":"
                else:
                    values[index] = value
    return make_cube(
        [(combined_dimension, codes), ("geo", locations), ("time", years)],
        values,
        status,
        labels,
    )


class FakeFetcher:
    """In-memory fetch collaborator keyed by dataset endpoint.

    Cubes are JSON-stat dicts; an Exception value is raised for that
    endpoint. Tracks requested URLs and the peak number of concurrent
    fetches.
    """

    def __init__(self, cubes: Dict[str, Union[Dict[str, Any], Exception]], delay: float = 0.0) -> None:
        self.cubes = cubes
        self.delay = delay
        self.requested: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, url: str) -> RawCube:
        self.requested.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            endpoint = urlsplit(url).path.rsplit("/", 1)[-1]
            cube = self.cubes.get(endpoint)
            if cube is None:
                raise TransportError("Eurostat returned 404", url=url, status_code=404)
            if isinstance(cube, Exception):
                raise cube
            return RawCube.model_validate(cube)
        finally:
            self.in_flight -= 1

    def params_for(self, endpoint: str) -> List[List[Tuple[str, str]]]:
        """Query parameters of every request made to ``endpoint``."""
        return [
            parse_qsl(urlsplit(url).query)
            for url in self.requested
            if urlsplit(url).path.endswith("/" + endpoint)
        ]


def run(coro):
    """Helper to run async functions in synchronous tests."""
    return asyncio.run(coro)
