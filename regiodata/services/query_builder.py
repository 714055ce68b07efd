"""Turn an indicator definition into a Eurostat request."""
from __future__ import annotations

from typing import List, Optional, Tuple
from urllib.parse import urlencode

from ..config import Settings, get_settings
from ..models import SeriesDefinition

QueryParams = List[Tuple[str, str]]


def trailing_params(settings: Settings) -> QueryParams:
    """Parameters appended to every request.

    They restrict the response to the configured regional granularity,
    drop non-geographic aggregates and fix the number of decimals.
    """
    return [
        ("geoLevel", settings.geo_level),
        ("precision", str(settings.precision)),
        ("filterNonGeo", "1"),
    ]


def build_query_params(
    definition: SeriesDefinition,
    settings: Optional[Settings] = None,
) -> QueryParams:
    """Ordered request parameters for a definition.

    Single-valued dimensions come first in declaration order, then one
    ``(name, value)`` pair per instance of the combined dimension, all
    under the same name, then the trailing parameters.
    """
    settings = settings or get_settings()
    combined = definition.combined_dimension

    params: QueryParams = [
        (name, value)
        for name, value in definition.dimensions.items()
        if name != combined
    ]
    for instance in definition.combined_instances:
        params.append((combined, instance))
    params.extend(trailing_params(settings))
    return params


def build_query_string(definition: SeriesDefinition, settings: Optional[Settings] = None) -> str:
    return urlencode(build_query_params(definition, settings))


def build_request_url(definition: SeriesDefinition, settings: Optional[Settings] = None) -> str:
    """Full request URL: API root + endpoint + query string."""
    settings = settings or get_settings()
    return f"{settings.eurostat_api_root}{definition.endpoint}?{build_query_string(definition, settings)}"
