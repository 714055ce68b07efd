"""Decode JSON-stat cubes into Series.

The Eurostat dissemination API returns a single flat ``value`` array for
every combination of dimension categories, plus a ``status`` array flagging
special cells:

    :  not available        p  provisional
    b  break in series      u  low reliability
    e  estimated            d  definition differs

Only ``:`` makes a cell absent; the other flags still carry a value.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ..exceptions import MalformedCubeError
from ..models import RawCube, Series, Value
from ..utils.cube_index import flat_index_for

logger = logging.getLogger(__name__)

NOT_AVAILABLE = ":"
GEO_DIMENSIONS = ("geo", "GEO")
TIME_DIMENSIONS = ("time", "TIME")


def _find_dimension(cube: RawCube, candidates: Tuple[str, ...]) -> str:
    for name in candidates:
        if name in cube.id and name in cube.dimension:
            return name
    raise MalformedCubeError(
        f"Cube has no '{candidates[0]}' dimension",
        details={"dimensions": cube.dimension_order},
    )


def _check_dimension(cube: RawCube, name: str) -> Dict[str, int]:
    """Return the dimension's index table after checking it against ``size``."""
    if name not in cube.id or name not in cube.dimension:
        raise MalformedCubeError(
            f"Cube has no '{name}' dimension",
            details={"dimensions": cube.dimension_order},
        )
    index = cube.dimension[name].category.index
    size = cube.size_of(name)
    if len(index) != size:
        raise MalformedCubeError(
            f"Dimension '{name}' has size {size} but {len(index)} indexed categories",
            details={"dimension": name, "size": size, "categories": len(index)},
        )
    if sorted(index.values()) != list(range(size)):
        raise MalformedCubeError(
            f"Dimension '{name}' positions are not 0..{size - 1}",
            details={"dimension": name},
        )
    return index


def _check_shape(cube: RawCube, free: Tuple[str, ...] = ()) -> None:
    """Check id/size agree and every dimension outside ``free`` is pinned."""
    if len(cube.id) != len(cube.size):
        raise MalformedCubeError(
            "Cube 'id' and 'size' differ in length",
            details={"id": cube.id, "size": cube.size},
        )
    for name in cube.id:
        if name in free:
            continue
        size = cube.size_of(name)
        if size != 1:
            raise MalformedCubeError(
                f"Dimension '{name}' has {size} categories but was not pinned by the query",
                details={"dimension": name, "size": size},
            )


def get_years(cube: RawCube) -> Dict[int, str]:
    """Position -> year label for the time dimension."""
    name = _find_dimension(cube, TIME_DIMENSIONS)
    category = cube.dimension[name].category
    return {
        position: category.label.get(code, code)
        for code, position in _check_dimension(cube, name).items()
    }


def get_locations(cube: RawCube) -> Dict[int, Tuple[str, str]]:
    """Position -> (location code, location label) for the geo dimension."""
    name = _find_dimension(cube, GEO_DIMENSIONS)
    category = cube.dimension[name].category
    return {
        position: (code, category.label.get(code, code))
        for code, position in _check_dimension(cube, name).items()
    }


def get_combined_codes(cube: RawCube, combined_dimension: str) -> List[str]:
    """Codes of the combined dimension, in index order."""
    index = _check_dimension(cube, combined_dimension)
    return [code for code, _ in sorted(index.items(), key=lambda item: item[1])]


def cell_value(cube: RawCube, index: int) -> Value:
    if cube.status.get(index) == NOT_AVAILABLE:
        return None
    value = cube.value.get(index)
    return float(value) if value is not None else None


def decode_cube(cube: RawCube, combined_dimension: Optional[str] = None) -> List[Series]:
    """Decode a cube into one Series per combined-dimension category.

    Without a combined dimension the result holds a single Series. Every
    dimension other than geo, time and the combined one must have been
    pinned to a single value by the query, so it sits at position 0; a
    cube where one of them has several categories is malformed.
    """
    geo = _find_dimension(cube, GEO_DIMENSIONS)
    time = _find_dimension(cube, TIME_DIMENSIONS)
    free = (geo, time) if combined_dimension is None else (geo, time, combined_dimension)
    _check_shape(cube, free)
    years = get_years(cube)
    locations = get_locations(cube)

    if combined_dimension is None:
        combined_positions: List[Optional[int]] = [None]
    else:
        combined_positions = list(range(len(get_combined_codes(cube, combined_dimension))))

    order = cube.dimension_order
    series_list: List[Series] = []
    for combined_position in combined_positions:
        series: Series = {}
        for location_position, (code, _) in sorted(locations.items()):
            row: Dict[str, Value] = {}
            for year_position, year in sorted(years.items()):
                positions = {geo: location_position, time: year_position}
                if combined_position is not None:
                    positions[combined_dimension] = combined_position
                row[year] = cell_value(cube, flat_index_for(positions, cube.size, order))
            series[code] = row
        series_list.append(series)

    logger.debug(
        "Decoded cube '%s': %d series, %d locations, %d years",
        cube.label or "?",
        len(series_list),
        len(locations),
        len(years),
    )
    return series_list


def decode_locations(cube: RawCube) -> Dict[str, str]:
    """Location code -> label, in index order."""
    return {code: label for _, (code, label) in sorted(get_locations(cube).items())}
