"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- validated query inputs (`Coordinate`, `BoundingBox`)
- read-only projections of warehouse rows (`DistributionNode`)
- per-request annotated output (`ProximityResult`, `ViabilityReport`, `NodeStatistics`)

Nothing here is persisted or cached across requests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ViabilityTier = Literal["high", "medium", "low"]
Verdict = Literal["viable", "not_viable"]


class Coordinate(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class BoundingBox(BaseModel):
    """A map viewport: inclusive latitude/longitude ranges."""

    model_config = ConfigDict(frozen=True)

    north: float = Field(..., ge=-90, le=90)
    south: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)
    west: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _validate_order(self) -> "BoundingBox":
        if self.north <= self.south:
            raise ValueError("north must be greater than south")
        if self.east <= self.west:
            raise ValueError("east must be greater than west")
        return self

    def contains(self, point: Coordinate) -> bool:
        return self.south <= point.lat <= self.north and self.west <= point.lng <= self.east


class DistributionNode(BaseModel):
    """A fiber access point (CTO) as projected from the warehouse view."""

    node_id: str
    name: str
    address: str | None = None
    location: Coordinate | None = None
    capacity_total: int = Field(0, ge=0)
    capacity_available: int = Field(0, ge=0)
    status: str | None = None
    geometry_type: str | None = None


class ProximityResult(DistributionNode):
    """A node annotated with its distance from the query point and a viability tier."""

    distance_meters: float = Field(..., ge=0)
    viability_tier: ViabilityTier
    viability_reason: str


class NodeStatistics(BaseModel):
    """Dataset-wide counts."""

    total: int = Field(..., ge=0)
    unique: int = Field(..., ge=0)
    with_coordinates: int = Field(..., ge=0)
    pct_with_coordinates: float = Field(..., ge=0, le=100)


class ViabilityReport(BaseModel):
    """The composed answer for one (coordinate, radius) viability query."""

    generated_at: datetime
    coordinate: Coordinate
    radius_m: int
    total_results: int
    verdict: Verdict
    nearest: ProximityResult | None = None
    results: list[ProximityResult] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
