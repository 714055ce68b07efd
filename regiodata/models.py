"""Data models shared by the resolution pipeline.

Absent values are ``None`` throughout. A Series maps location code to year
label to ``Optional[float]``; ``None`` is never replaced by ``0`` or ``NaN``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .services.operators import COMPOSERS, REDUCERS


Value = Optional[float]
Series = Dict[str, Dict[str, Value]]

IndicatorType = Literal[
    "ECONOMIC",
    "COHESION",
    "KNOWLEDGE",
    "INFRASTRUCTURE",
    "INSTITUTIONS",
    "TBD",
]

DimensionValue = Union[str, Tuple[str, ...]]


class SeriesDefinition(BaseModel):
    """Everything needed to request and decode one raw series."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str
    dimensions: Dict[str, DimensionValue] = Field(default_factory=dict)
    combined_dimension: Optional[str] = None
    reduce: Optional[str] = None

    @field_validator("reduce")
    @classmethod
    def known_reducer(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in REDUCERS:
            raise ValueError(f"unknown reducer '{v}', expected one of {sorted(REDUCERS)}")
        return v

    @model_validator(mode="after")
    def check_combined_dimension(self) -> "SeriesDefinition":
        combined = self.combined_dimension
        for name, value in self.dimensions.items():
            if isinstance(value, tuple) and name != combined:
                raise ValueError(
                    f"dimension '{name}' has several values but is not the combined dimension"
                )
        if combined is None:
            if self.reduce is not None:
                raise ValueError("'reduce' given without a combined dimension")
            return self
        instances = self.dimensions.get(combined)
        if not isinstance(instances, tuple) or not instances:
            raise ValueError(
                f"combined dimension '{combined}' must map to a non-empty list of values"
            )
        if self.reduce is None:
            raise ValueError(f"combined dimension '{combined}' requires a reducer")
        return self

    @property
    def combined_instances(self) -> Tuple[str, ...]:
        """Values of the combined dimension, in request order."""
        if self.combined_dimension is None:
            return ()
        value = self.dimensions[self.combined_dimension]
        return value if isinstance(value, tuple) else (value,)


class IndicatorDefinition(SeriesDefinition):
    """An indicator as listed in the static catalog."""

    name: str
    description: str
    unit_of_measure: str
    unit_description: str = ""
    default_year: int
    type: IndicatorType = "TBD"
    composite: bool = False
    additional_definition: Optional[SeriesDefinition] = None
    compose: Optional[str] = None

    @field_validator("compose")
    @classmethod
    def known_composer(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in COMPOSERS:
            raise ValueError(f"unknown composer '{v}', expected one of {sorted(COMPOSERS)}")
        return v

    @model_validator(mode="after")
    def check_composite(self) -> "IndicatorDefinition":
        has_parts = self.additional_definition is not None and self.compose is not None
        if self.composite and not has_parts:
            raise ValueError("composite indicators need both 'additional_definition' and 'compose'")
        if not self.composite and (self.additional_definition is not None or self.compose is not None):
            raise ValueError("'additional_definition' and 'compose' are only valid on composite indicators")
        return self

    @property
    def metadata(self) -> "IndicatorMetadata":
        return IndicatorMetadata(
            unit_of_measure=self.unit_of_measure,
            default_year=self.default_year,
            type=self.type,
        )


class IndicatorMetadata(BaseModel):
    """Metadata persisted alongside a resolved series."""

    unit_of_measure: str
    default_year: int
    type: str


# ---------------------------------------------------------------------------
# JSON-stat cube, as returned by the Eurostat dissemination API
# ---------------------------------------------------------------------------

def _as_position_map(v: Any) -> Any:
    """JSON-stat allows both ``{"k": v}`` and dense ``[v, ...]`` forms."""
    if isinstance(v, list):
        return {i: item for i, item in enumerate(v) if item is not None}
    if isinstance(v, dict):
        return {k: item for k, item in v.items() if item is not None}
    return v


class CubeCategory(BaseModel):
    index: Dict[str, int] = Field(default_factory=dict)
    label: Dict[str, str] = Field(default_factory=dict)

    @field_validator("index", mode="before")
    @classmethod
    def index_from_list(cls, v: Any) -> Any:
        if isinstance(v, list):
            return {code: position for position, code in enumerate(v)}
        return v


class CubeDimension(BaseModel):
    label: Optional[str] = None
    category: CubeCategory = Field(default_factory=CubeCategory)


class RawCube(BaseModel):
    """A flattened multi-dimensional array plus its dimension metadata."""

    model_config = ConfigDict(extra="ignore")

    id: List[str]
    size: List[int]
    dimension: Dict[str, CubeDimension]
    value: Dict[int, float] = Field(default_factory=dict)
    status: Dict[int, str] = Field(default_factory=dict)
    label: Optional[str] = None
    updated: Optional[str] = None

    @field_validator("value", "status", mode="before")
    @classmethod
    def positions_from_list(cls, v: Any) -> Any:
        return _as_position_map(v)

    @property
    def dimension_order(self) -> List[str]:
        return list(self.id)

    def size_of(self, dimension: str) -> int:
        return self.size[self.id.index(dimension)]
