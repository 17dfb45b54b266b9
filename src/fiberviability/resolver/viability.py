"""
Viability classification and recommendation text.

Pure functions, no store access:
- `classify_viability`: tier from distance + available capacity, using fixed break points
  (standard 300m, extended 500m by default). The caller's search radius only decides
  which rows are fetched; it never moves these break points.
- `build_recommendations`: 1-2 advisory strings from the nearest result.
- `build_report`: compose the final `ViabilityReport`.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fiberviability.domain.models import Coordinate, ProximityResult, ViabilityReport, ViabilityTier

STANDARD_RADIUS_M = 300.0
EXTENDED_RADIUS_M = 500.0

NO_NODE_FOUND = "No node found in the specified radius"


def classify_viability(
    distance_m: float,
    capacity_available: int,
    *,
    standard_radius_m: float = STANDARD_RADIUS_M,
    extended_radius_m: float = EXTENDED_RADIUS_M,
) -> tuple[ViabilityTier, str]:
    """Return (tier, reason) for a node at `distance_m` with `capacity_available` ports."""
    if distance_m <= standard_radius_m and capacity_available > 0:
        return "high", "within standard radius, with capacity"
    if distance_m <= standard_radius_m and capacity_available == 0:
        return "medium", "within standard radius, no capacity"
    if distance_m <= extended_radius_m and capacity_available > 0:
        return "medium", "outside standard radius, with capacity"
    return "low", "outside radius or without capacity"


def build_recommendations(
    results: list[ProximityResult], *, standard_radius_m: float = STANDARD_RADIUS_M
) -> list[str]:
    """Advisory strings based on the nearest result (`results` is ascending by distance)."""
    if not results:
        return [NO_NODE_FOUND]

    nearest = results[0]
    radius = f"{standard_radius_m:g}m"
    if nearest.distance_meters <= standard_radius_m:
        recommendations = [f"Node within standard radius of {radius}"]
        if nearest.capacity_available > 0:
            recommendations.append("Capacity available for a new installation")
        else:
            recommendations.append("Node has no available capacity; check for expansion")
        return recommendations

    return [
        f"Nearest node is more than {radius} away",
        "Consider a feasibility study for extension",
    ]


def build_report(
    coordinate: Coordinate,
    radius_m: int,
    results: list[ProximityResult],
    nearest: ProximityResult | None,
    *,
    standard_radius_m: float = STANDARD_RADIUS_M,
    generated_at: datetime | None = None,
) -> ViabilityReport:
    """Compose a report from two independent lookups (radius search + nearest node)."""
    return ViabilityReport(
        generated_at=generated_at or datetime.now(timezone.utc),
        coordinate=coordinate,
        radius_m=radius_m,
        total_results=len(results),
        verdict="viable" if results else "not_viable",
        nearest=nearest,
        results=results,
        recommendations=build_recommendations(results, standard_radius_m=standard_radius_m),
    )
