"""Static indicator catalog.

The table lives in ``data/eurostat_indicators.json``, grouped by category.
Each category carries its indicator ``type`` and a root ``endpoint``; an
indicator's own ``endpoint`` is a suffix appended to the root. Additional
definitions of composite indicators always name their full endpoint.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..exceptions import ConfigurationError, IndicatorDefinitionError
from ..models import IndicatorDefinition

logger = logging.getLogger(__name__)

CATALOG_PATH = Path(__file__).parent.parent / "data" / "eurostat_indicators.json"


def _read_catalog(path: Path) -> Dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read indicator catalog {path}: {e}") from e


def parse_catalog(raw: Dict[str, Any]) -> Dict[str, IndicatorDefinition]:
    """Flatten the category table into validated definitions keyed by name."""
    definitions: Dict[str, IndicatorDefinition] = {}
    for category, group in raw.items():
        root = group.get("endpoint", "")
        for name, entry in group.get("indicators", {}).items():
            if name in definitions:
                raise IndicatorDefinitionError(
                    f"Indicator '{name}' is listed twice", indicator=name,
                    details={"category": category},
                )
            fields = dict(entry)
            fields["endpoint"] = root + fields.get("endpoint", "")
            fields.setdefault("type", group.get("type", "TBD"))
            try:
                definitions[name] = IndicatorDefinition(name=name, **fields)
            except ValidationError as e:
                raise IndicatorDefinitionError(
                    f"Invalid definition for indicator '{name}': {e.error_count()} error(s)",
                    indicator=name,
                    details={
                        "category": category,
                        "errors": e.errors(include_url=False, include_context=False, include_input=False),
                    },
                ) from e
    return definitions


@lru_cache
def get_indicator_definitions(path: Optional[Path] = None) -> Dict[str, IndicatorDefinition]:
    definitions = parse_catalog(_read_catalog(path or CATALOG_PATH))
    logger.info(f"Loaded {len(definitions)} indicator definitions")
    return definitions


def get_definition(name: str) -> IndicatorDefinition:
    try:
        return get_indicator_definitions()[name]
    except KeyError:
        raise IndicatorDefinitionError(f"Unknown indicator '{name}'", indicator=name) from None
