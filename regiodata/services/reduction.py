from __future__ import annotations

import logging
from typing import Sequence

from ..exceptions import DimensionMismatchError
from ..models import Series
from .operators import Reducer

logger = logging.getLogger(__name__)


def _check_key_space(series_list: Sequence[Series]) -> None:
    reference = series_list[0]
    for n, series in enumerate(series_list[1:], start=1):
        if series.keys() != reference.keys():
            raise DimensionMismatchError(
                f"Sub-series {n} has different locations than sub-series 0",
                details={
                    "missing": sorted(reference.keys() - series.keys()),
                    "extra": sorted(series.keys() - reference.keys()),
                },
            )
        for location, years in reference.items():
            if series[location].keys() != years.keys():
                raise DimensionMismatchError(
                    f"Sub-series {n} has different years than sub-series 0 for '{location}'",
                    details={"location": location},
                )


def reduce_series(series_list: Sequence[Series], reducer: Reducer) -> Series:
    """Merge sub-series that share one key space into a single Series.

    For each (location, year) the reducer receives the N values in
    sub-series order, absent values included; how it treats them is the
    reducer's policy (see ``operators``).
    """
    if not series_list:
        raise DimensionMismatchError("Nothing to reduce: no sub-series given")
    _check_key_space(series_list)

    reduced: Series = {}
    for location, years in series_list[0].items():
        reduced[location] = {
            year: reducer([series[location][year] for series in series_list])
            for year in years
        }
    logger.debug(f"Reduced {len(series_list)} sub-series over {len(reduced)} locations")
    return reduced
