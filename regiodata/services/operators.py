"""Named reducers and composers referenced by indicator definitions.

Definitions stay plain data: they name an operator by tag and the pipeline
resolves the tag here.

Reducers take the values of one (location, year) across every instance of
a combined dimension. Two sum policies exist:

- ``sum``: an absent operand poisons the total, so ``[10, None, 5]`` gives
  ``None``. All shipped combined indicators use it: a population total
  with a missing age band is not a total.
- ``sum_present``: absent operands are skipped, so ``[10, None, 5]`` gives
  ``15``. All-absent input stays absent.

Composers take a present main value and a present additional value.
Division by zero yields absent.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Sequence

from ..exceptions import ComposeInputError, UnknownOperatorError

Reducer = Callable[[Sequence[Optional[float]]], Optional[float]]
Composer = Callable[[Optional[float], Optional[float]], Optional[float]]


def _finite(result: float) -> Optional[float]:
    return result if math.isfinite(result) else None


def sum_strict(values: Sequence[Optional[float]]) -> Optional[float]:
    if not values or any(v is None for v in values):
        return None
    return _finite(math.fsum(values))


def sum_present(values: Sequence[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return _finite(math.fsum(present))


def _require_operands(main: Optional[float], additional: Optional[float]) -> None:
    if main is None or additional is None:
        raise ComposeInputError(
            "composer called with an absent operand",
            details={"main": main, "additional": additional},
        )


def _scaled_ratio(scale: float, denominator_scale: float = 1.0) -> Composer:
    def compose(main: Optional[float], additional: Optional[float]) -> Optional[float]:
        _require_operands(main, additional)
        denominator = additional * denominator_scale
        if denominator == 0:
            return None
        return _finite(main / denominator * scale)

    return compose


ratio = _scaled_ratio(1.0)
percent_ratio = _scaled_ratio(100.0)
per_thousand_ratio = _scaled_ratio(1000.0)
# main in hectares over additional in km2 (1 km2 = 100 ha), as a percentage
area_share_percent = _scaled_ratio(100.0, denominator_scale=100.0)


REDUCERS: Dict[str, Reducer] = {
    "sum": sum_strict,
    "sum_present": sum_present,
}

COMPOSERS: Dict[str, Composer] = {
    "ratio": ratio,
    "percent_ratio": percent_ratio,
    "per_thousand_ratio": per_thousand_ratio,
    "area_share_percent": area_share_percent,
}


def get_reducer(tag: str) -> Reducer:
    try:
        return REDUCERS[tag]
    except KeyError:
        raise UnknownOperatorError(
            f"Unknown reducer '{tag}'", details={"available": sorted(REDUCERS)}
        ) from None


def get_composer(tag: str) -> Composer:
    try:
        return COMPOSERS[tag]
    except KeyError:
        raise UnknownOperatorError(
            f"Unknown composer '{tag}'", details={"available": sorted(COMPOSERS)}
        ) from None
