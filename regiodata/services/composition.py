"""Compose two independently fetched series into a derived indicator.

Statistical datasets are not published on the same calendar, so the year
of the additional series paired with a main-series year is the closest
year with a present value. On ties the more recent year wins. Only annual
("YYYY") time labels are supported.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..exceptions import MalformedCubeError
from ..models import Series
from .operators import Composer

logger = logging.getLogger(__name__)


def _year_number(label: str) -> int:
    # Only annual series are composed; "2018-Q1" style labels would tie
    label = str(label)
    if len(label) != 4 or not label.isdigit():
        raise MalformedCubeError(
            f"Time label '{label}' is not an annual period",
            details={"time": label},
        )
    return int(label)


def closest_year(candidates: Iterable[str], target: str) -> Optional[str]:
    """Candidate year closest to ``target``, preferring the later one on ties."""
    goal = _year_number(target)
    best: Optional[str] = None
    best_key = None
    for candidate in candidates:
        year = _year_number(candidate)
        key = (abs(year - goal), -year)
        if best_key is None or key < best_key:
            best, best_key = candidate, key
    return best


def compose_series(main: Series, additional: Series, composer: Composer) -> Series:
    """Point-wise composition with the keys of ``main``.

    - A location missing from ``additional`` is absent for every year.
    - A location whose additional values are all absent is absent too.
    - An absent main value stays absent and the composer is not called.
    """
    composite: Series = {}
    unmatched = 0
    for location, years in main.items():
        other = additional.get(location)
        if other is None:
            unmatched += 1
            composite[location] = {year: None for year in years}
            continue

        candidates = [year for year, value in other.items() if value is not None]
        row = {}
        for year, value in years.items():
            if value is None or not candidates:
                row[year] = None
                continue
            row[year] = composer(value, other[closest_year(candidates, year)])
        composite[location] = row

    if unmatched:
        logger.debug(f"{unmatched} location(s) missing from the additional series")
    return composite
