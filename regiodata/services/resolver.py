"""
Indicator Resolution Service

Turns indicator definitions into stored series:

    definition -> request URL -> fetch -> decode -> reduce -> compose -> save

Usage:
    resolver = IndicatorResolver(EurostatProvider(), IndicatorStore())
    report = await resolver.resolve_all(get_indicator_definitions().values())

A failure in one indicator never aborts the batch: it is logged with the
indicator name, reported in the ``ResolutionReport`` and nothing is saved
for that indicator.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol

from ..config import Settings, get_settings
from ..exceptions import RegioDataError, get_error_response
from ..models import IndicatorDefinition, RawCube, Series, SeriesDefinition
from .composition import compose_series
from .cube_decoder import decode_cube, decode_locations
from .indicator_catalog import get_definition, get_indicator_definitions
from .operators import get_composer, get_reducer
from .query_builder import build_request_url
from .reduction import reduce_series

logger = logging.getLogger(__name__)

INDICATOR_DESCRIPTIONS = "indicators"
LOCATION_DESCRIPTIONS = "locations"

# Latest population table: one value for every region at the configured level
LOCATIONS_DEFINITION = SeriesDefinition(
    endpoint="demo_r_pjangrp3",
    dimensions={"sex": "T", "unit": "NR", "age": "TOTAL", "lastTimePeriod": "1"},
)


class CubeFetcher(Protocol):
    async def fetch(self, url: str) -> RawCube: ...


class SeriesStore(Protocol):
    def save(self, name: str, series: Series, metadata: Any) -> None: ...

    def save_description(self, name: str, mapping: Dict[str, str]) -> None: ...


@dataclass
class ResolutionReport:
    """Outcome of a resolution batch."""
    resolved: List[str] = field(default_factory=list)
    failed: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolved": list(self.resolved),
            "failed": dict(self.failed),
            "ok": self.ok,
        }


class IndicatorResolver:
    """Resolves indicators against a fetcher and persists them in a store."""

    def __init__(
        self,
        fetcher: CubeFetcher,
        store: SeriesStore,
        settings: Optional[Settings] = None,
    ):
        self.fetcher = fetcher
        self.store = store
        self.settings = settings or get_settings()

    async def resolve_series(self, definition: SeriesDefinition) -> Series:
        """Fetch and decode one raw series, reducing a combined dimension."""
        url = build_request_url(definition, self.settings)
        cube = await self.fetcher.fetch(url)
        series_list = decode_cube(cube, definition.combined_dimension)
        if definition.combined_dimension is None:
            return series_list[0]
        return reduce_series(series_list, get_reducer(definition.reduce))

    async def resolve(self, definition: IndicatorDefinition) -> Series:
        """Resolve an indicator, composing it with its additional series."""
        if not definition.composite:
            return await self.resolve_series(definition)

        composer = get_composer(definition.compose)
        main, additional = await asyncio.gather(
            self.resolve_series(definition),
            self.resolve_series(definition.additional_definition),
        )
        return compose_series(main, additional, composer)

    async def resolve_and_save(self, definition: IndicatorDefinition) -> Series:
        series = await self.resolve(definition)
        self.store.save(definition.name, series, definition.metadata)
        logger.info(f"Resolved {definition.name}: {len(series)} locations")
        return series

    async def resolve_all(self, definitions: Iterable[IndicatorDefinition]) -> ResolutionReport:
        """Resolve every definition with at most
        ``settings.max_concurrent_resolutions`` in flight.
        """
        definitions = list(definitions)
        semaphore = asyncio.Semaphore(self.settings.max_concurrent_resolutions)
        report = ResolutionReport()

        async def run_one(definition: IndicatorDefinition) -> None:
            async with semaphore:
                try:
                    await self.resolve_and_save(definition)
                except RegioDataError as e:
                    logger.error(f"Failed to resolve {definition.name}: [{e.code}] {e.message}")
                    report.failed[definition.name] = get_error_response(e)
                except Exception as e:
                    logger.exception(f"Unexpected error resolving {definition.name}")
                    report.failed[definition.name] = get_error_response(e)
                else:
                    report.resolved.append(definition.name)

        logger.info(
            f"Resolving {len(definitions)} indicators "
            f"(max {self.settings.max_concurrent_resolutions} concurrent)"
        )
        await asyncio.gather(*(run_one(definition) for definition in definitions))
        logger.info(
            f"Resolution finished: {len(report.resolved)} resolved, {len(report.failed)} failed"
        )
        return report

    async def refresh_descriptions(self, definitions: Iterable[IndicatorDefinition]) -> Dict[str, str]:
        """Store the indicator and location description tables.

        Returns:
            The location code -> label table
        """
        self.store.save_description(
            INDICATOR_DESCRIPTIONS,
            {definition.name: definition.description for definition in definitions},
        )
        cube = await self.fetcher.fetch(build_request_url(LOCATIONS_DEFINITION, self.settings))
        locations = decode_locations(cube)
        self.store.save_description(LOCATION_DESCRIPTIONS, locations)
        logger.info(f"Stored labels for {len(locations)} locations")
        return locations


async def run_resolution(
    resolver: IndicatorResolver,
    names: Optional[Iterable[str]] = None,
) -> ResolutionReport:
    """Refresh the description tables, then resolve the catalog (or ``names``).

    Raises:
        IndicatorDefinitionError: If a name is not in the catalog
    """
    catalog = get_indicator_definitions()
    if names is not None:
        definitions = [get_definition(name) for name in names]
    else:
        definitions = list(catalog.values())

    try:
        await resolver.refresh_descriptions(catalog.values())
    except RegioDataError as e:
        # Stale labels are still usable
        logger.error(f"Failed to refresh descriptions: [{e.code}] {e.message}")

    return await resolver.resolve_all(definitions)
