"""
Proximity resolver.

Turns validated inputs into node-store queries and post-processes the rows:
- radius search with per-result viability tiers,
- nearest node irrespective of radius,
- bounding-box and free-text listings,
- dataset statistics.

Inputs are assumed to be validated (see `fiberviability.validation.validator`).
Every failure coming from the store, including rows that do not fit the domain models,
surfaces as `DataSourceUnavailable`. Nothing is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from pydantic import ValidationError

from fiberviability.config.settings import Settings
from fiberviability.domain.errors import DataSourceUnavailable
from fiberviability.domain.models import (
    BoundingBox,
    Coordinate,
    DistributionNode,
    NodeStatistics,
    ProximityResult,
    ViabilityReport,
)
from fiberviability.resolver.viability import build_recommendations, build_report, classify_viability
from fiberviability.store.base import NodeStore, Row
from fiberviability.store.factory import build_store

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProximityResolver:
    """Stateless read path over a node store; safe to share across concurrent requests."""

    def __init__(self, store: NodeStore, settings: Settings):
        self._store = store
        self._settings = settings
        self._viability = settings.viability

    @property
    def store(self) -> NodeStore:
        return self._store

    def _query(self, intent: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except DataSourceUnavailable:
            raise
        except Exception as exc:
            logger.warning("Node store %s query failed: %s", intent, exc)
            raise DataSourceUnavailable(f"Node store {intent} query failed: {exc}") from exc

    def _convert(self, intent: str, convert: Callable[[], T]) -> T:
        try:
            return convert()
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            raise DataSourceUnavailable(f"Node store returned a malformed {intent} row: {exc}") from exc

    @staticmethod
    def _to_node(row: Row) -> DistributionNode:
        lat = row.get("latitude")
        lng = row.get("longitude")
        location = Coordinate(lat=lat, lng=lng) if lat is not None and lng is not None else None
        name = "" if row.get("name") is None else str(row["name"])
        node_id = name if row.get("node_id") is None else str(row["node_id"])
        return DistributionNode(
            node_id=node_id,
            name=name,
            address=row.get("address"),
            location=location,
            capacity_total=int(row.get("capacity_total") or 0),
            capacity_available=int(row.get("capacity_available") or 0),
            status=row.get("status"),
            geometry_type=row.get("geometry_type"),
        )

    def _to_result(self, row: Row) -> ProximityResult:
        node = self._to_node(row)
        distance = round(float(row["distance_meters"]), 2)
        tier, reason = classify_viability(
            distance,
            node.capacity_available,
            standard_radius_m=self._viability.standard_radius_m,
            extended_radius_m=self._viability.extended_radius_m,
        )
        return ProximityResult(
            **node.model_dump(),
            distance_meters=distance,
            viability_tier=tier,
            viability_reason=reason,
        )

    def find_near(self, coordinate: Coordinate, radius_m: int) -> list[ProximityResult]:
        """Nodes within `radius_m`, nearest first, capped at `viability.near_limit`."""
        limit = self._viability.near_limit
        rows = self._query("near", lambda: self._store.nodes_within(coordinate, radius_m, limit=limit))
        results = self._convert("near", lambda: [self._to_result(r) for r in rows])
        results.sort(key=lambda r: (r.distance_meters, r.name))
        return results[:limit]

    def find_nearest(self, coordinate: Coordinate) -> ProximityResult | None:
        """The closest node irrespective of any radius (ties by name); None for an empty dataset."""
        row = self._query("nearest", lambda: self._store.nearest_node(coordinate))
        if row is None:
            return None
        return self._convert("nearest", lambda: self._to_result(row))

    def find_in_bounds(self, box: BoundingBox) -> list[DistributionNode]:
        """Nodes inside the inclusive box, unordered, capped at `viability.bounds_limit`."""
        limit = self._viability.bounds_limit
        rows = self._query("bounds", lambda: self._store.nodes_in_bounds(box, limit=limit))
        return self._convert("bounds", lambda: [self._to_node(r) for r in rows[:limit]])

    def search_by_text(self, term: str) -> list[DistributionNode]:
        """Case-insensitive substring match on name/description, capped at `viability.search_limit`."""
        limit = self._viability.search_limit
        rows = self._query("search", lambda: self._store.search_text(term, limit=limit))
        return self._convert("search", lambda: [self._to_node(r) for r in rows[:limit]])

    def get_statistics(self) -> NodeStatistics:
        """Total rows, distinct names and the share of rows with a usable coordinate pair."""
        row = self._query("statistics", self._store.count_nodes)

        def convert() -> NodeStatistics:
            total = int(row["total"] or 0)
            with_coordinates = int(row["with_coordinates"] or 0)
            pct = 100.0 * with_coordinates / total if total else 0.0
            return NodeStatistics(
                total=total,
                unique=int(row["unique_names"] or 0),
                with_coordinates=with_coordinates,
                pct_with_coordinates=pct,
            )

        return self._convert("statistics", convert)

    def recommendations(self, results: list[ProximityResult]) -> list[str]:
        return build_recommendations(results, standard_radius_m=self._viability.standard_radius_m)

    def build_report(
        self,
        coordinate: Coordinate,
        radius_m: int,
        results: list[ProximityResult],
        nearest: ProximityResult | None,
    ) -> ViabilityReport:
        return build_report(
            coordinate,
            radius_m,
            results,
            nearest,
            standard_radius_m=self._viability.standard_radius_m,
        )

    def check_connection(self) -> bool:
        """Return True when the store answers a trivial query; failures are logged, not raised."""
        try:
            self._query("ping", self._store.ping)
        except DataSourceUnavailable as exc:
            logger.warning("Node store connection check failed: %s", exc)
            return False
        return True


def build_resolver(settings: Settings) -> ProximityResolver:
    """Create the store configured in `settings` and wrap it in a resolver."""
    return ProximityResolver(build_store(settings), settings)
