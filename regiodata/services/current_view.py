"""Flattened view of every current indicator for the read API.

Values are laid out indicator-major, then location, then year, following
``keys.order``; a client finds a cell at
``(i * n_locations + l) * n_years + y``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .indicator_store import StoredIndicator

ORDER = ["indicators", "locations", "years"]


def build_current_payload(
    current: Mapping[str, StoredIndicator],
    indicator_descriptions: Optional[Dict[str, str]] = None,
    location_descriptions: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    # Without stored descriptions fall back to what the data itself holds
    if indicator_descriptions is None:
        indicator_descriptions = {name: name for name in current}
    if location_descriptions is None:
        location_descriptions = {
            location: location
            for stored in current.values()
            for location in stored.data
        }

    years = sorted({
        year
        for stored in current.values()
        for row in stored.data.values()
        for year in row
    })
    indicators = list(indicator_descriptions)
    locations = list(location_descriptions)

    values: List[Optional[float]] = []
    for indicator in indicators:
        data = current[indicator].data if indicator in current else {}
        for location in locations:
            row = data.get(location, {})
            values.extend(row.get(year) for year in years)

    return {
        "desc": {
            "indicators": indicator_descriptions,
            "locations": location_descriptions,
        },
        "keys": {
            "order": ORDER,
            "indicators": indicators,
            "locations": locations,
            "years": years,
        },
        "values": values,
    }
