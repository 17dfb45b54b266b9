"""
Node store contract.

A node store is the only component that talks to the dataset of Distribution Nodes.
It owns distance computation (geography functions in the warehouse, haversine offline)
and returns plain row dicts with these keys:

    node_id, name, address, longitude, latitude, geometry_type,
    capacity_total, capacity_available, status
    distance_meters   (near/nearest rows only)

Coordinates in the dataset are GeoJSON ordered: `coordinates[0]` is longitude and
`coordinates[1]` is latitude. Stores never transpose them.
"""

from __future__ import annotations

from typing import Any, Protocol

from fiberviability.domain.models import BoundingBox, Coordinate

Row = dict[str, Any]


class NodeStore(Protocol):
    backend: str

    def nodes_within(self, center: Coordinate, radius_m: float, *, limit: int) -> list[Row]:
        """Rows with distance <= radius_m, ascending by (distance, name)."""

    def nearest_node(self, center: Coordinate) -> Row | None:
        """The single closest row (ties by name), or None when no row has coordinates."""

    def nodes_in_bounds(self, box: BoundingBox, *, limit: int) -> list[Row]:
        """Rows whose coordinate lies inside the inclusive box; unordered."""

    def search_text(self, term: str, *, limit: int) -> list[Row]:
        """Rows whose name or description contains `term` (case-insensitive)."""

    def count_nodes(self) -> Row:
        """A row with `total`, `unique_names` and `with_coordinates` integer counts."""

    def ping(self) -> None:
        """Run a trivial query; raise DataSourceUnavailable when the store is unreachable."""


def like_pattern(term: str) -> str:
    """Wrap `term` as a substring LIKE pattern, escaping LIKE wildcards and the escape char."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def usable_coordinates(geometry: Any) -> tuple[float, float] | None:
    """Return (longitude, latitude) from a GeoJSON-like geometry, or None when unusable."""
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lng, lat = coords[0], coords[1]
    for value in (lng, lat):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
    return float(lng), float(lat)
