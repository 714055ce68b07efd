"""Row-major index arithmetic for flattened JSON-stat cubes.

A cube with dimension sizes ``(s_0, ..., s_n)`` stores the cell at
positions ``(p_0, ..., p_n)`` at ``Σ p_d × Π s_{d'>d}``, the last
dimension varying fastest. Every decoder call site goes through these
helpers.
"""
from __future__ import annotations

from typing import List, Mapping, Sequence

from ..exceptions import MalformedCubeError


def flat_index(positions: Sequence[int], sizes: Sequence[int]) -> int:
    """Flatten a position vector into an offset in the value array."""
    if len(positions) != len(sizes):
        raise MalformedCubeError(
            "Position vector and size vector differ in length",
            details={"positions": list(positions), "sizes": list(sizes)},
        )
    index = 0
    for position, size in zip(positions, sizes):
        if not 0 <= position < size:
            raise MalformedCubeError(
                f"Position {position} out of range for a dimension of size {size}",
                details={"positions": list(positions), "sizes": list(sizes)},
            )
        index = index * size + position
    return index


def flat_index_for(
    positions: Mapping[str, int],
    sizes: Sequence[int],
    dimension_order: Sequence[str],
) -> int:
    """Flatten positions keyed by dimension name.

    Dimensions missing from ``positions`` sit at position 0, which is the
    only position they have once the query pins them to a single value.
    """
    unknown = set(positions) - set(dimension_order)
    if unknown:
        raise MalformedCubeError(
            f"Dimensions {sorted(unknown)} not present in the cube",
            details={"dimension_order": list(dimension_order)},
        )
    return flat_index([positions.get(name, 0) for name in dimension_order], sizes)


def unflatten_index(index: int, sizes: Sequence[int]) -> List[int]:
    """Inverse of ``flat_index``."""
    total = cube_cardinality(sizes)
    if not 0 <= index < total:
        raise MalformedCubeError(
            f"Flat index {index} out of range for a cube of {total} cells",
            details={"sizes": list(sizes)},
        )
    positions: List[int] = []
    for size in reversed(sizes):
        index, position = divmod(index, size)
        positions.append(position)
    return positions[::-1]


def cube_cardinality(sizes: Sequence[int]) -> int:
    total = 1
    for size in sizes:
        total *= size
    return total
