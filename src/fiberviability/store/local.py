"""
Offline node store over a local JSON dataset.

The file mirrors the warehouse view: a JSON array of rows with `nome`/`name`,
`descricao`/`description` and a GeoJSON-like `geometry` (`coordinates = [lng, lat]`).
Distances are haversine meters computed in-process, so results can differ from
`ST_DISTANCE` by a fraction of a percent. Used for local demos, tests and
`scripts/dataset_validate.py`.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fiberviability.config.settings import Settings
from fiberviability.core.geo import haversine_m
from fiberviability.core.query_meta import record_query
from fiberviability.domain.errors import DataSourceUnavailable
from fiberviability.domain.models import BoundingBox, Coordinate
from fiberviability.store.base import Row, usable_coordinates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalNode:
    """One dataset row, parsed once at load time."""

    name: str | None
    description: str | None
    geometry_type: str | None
    lng: float | None
    lat: float | None

    @property
    def has_coordinates(self) -> bool:
        return self.lng is not None and self.lat is not None


def parse_local_row(raw: Any) -> LocalNode:
    """Parse one raw dataset row; raises ValueError when the row is not an object."""
    if not isinstance(raw, dict):
        raise ValueError(f"dataset row must be an object, got {type(raw).__name__}")
    name = raw.get("nome", raw.get("name"))
    description = raw.get("descricao", raw.get("description"))
    geometry = raw.get("geometry")
    coords = usable_coordinates(geometry)
    geometry_type = geometry.get("type") if isinstance(geometry, dict) else None
    return LocalNode(
        name=str(name) if name is not None else None,
        description=str(description) if description is not None else None,
        geometry_type=str(geometry_type) if geometry_type is not None else None,
        lng=coords[0] if coords else None,
        lat=coords[1] if coords else None,
    )


def load_local_dataset(path: str | Path) -> list[LocalNode]:
    """Load and parse a dataset file; raises DataSourceUnavailable when unreadable."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, list):
            raise ValueError("dataset root must be a JSON array")
        return [parse_local_row(raw) for raw in payload]
    except (OSError, ValueError) as exc:
        raise DataSourceUnavailable(f"Local dataset {path} could not be loaded: {exc}") from exc


class LocalNodeStore:
    """Node store over rows held in memory (read-only after construction)."""

    backend = "local"

    def __init__(self, nodes: list[LocalNode], settings: Settings):
        self._nodes = tuple(nodes)
        self._settings = settings

    @classmethod
    def from_path(cls, path: str | Path, settings: Settings) -> "LocalNodeStore":
        nodes = load_local_dataset(path)
        logger.info("Loaded %d nodes from local dataset %s", len(nodes), path)
        return cls(nodes, settings)

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]], settings: Settings) -> "LocalNodeStore":
        return cls([parse_local_row(raw) for raw in rows], settings)

    def _to_row(self, node: LocalNode, distance_m: float | None = None) -> Row:
        capacity = self._settings.viability.capacity
        row: Row = {
            "node_id": node.name,
            "name": node.name,
            "address": node.description,
            "longitude": node.lng,
            "latitude": node.lat,
            "geometry_type": node.geometry_type,
            "capacity_total": capacity.total,
            "capacity_available": capacity.available,
            "status": capacity.status,
        }
        if distance_m is not None:
            row["distance_meters"] = distance_m
        return row

    def _record(self, intent: str, started: float, rows: int) -> None:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.debug("Local %s query returned %d rows in %d ms", intent, rows, elapsed_ms)
        record_query(intent, {"backend": self.backend, "rows": rows, "elapsed_ms": elapsed_ms, "job_id": None})

    def _with_distances(self, center: Coordinate) -> list[tuple[float, str, LocalNode]]:
        out = []
        for node in self._nodes:
            if not node.has_coordinates:
                continue
            d = haversine_m(center.lat, center.lng, node.lat, node.lng)
            out.append((d, node.name or "", node))
        # Ties on distance resolve by name.
        out.sort(key=lambda item: (item[0], item[1]))
        return out

    def nodes_within(self, center: Coordinate, radius_m: float, *, limit: int) -> list[Row]:
        started = time.perf_counter()
        rows = [self._to_row(node, d) for d, _, node in self._with_distances(center) if d <= radius_m]
        rows = rows[:limit]
        self._record("near", started, len(rows))
        return rows

    def nearest_node(self, center: Coordinate) -> Row | None:
        started = time.perf_counter()
        ranked = self._with_distances(center)
        row = self._to_row(ranked[0][2], ranked[0][0]) if ranked else None
        self._record("nearest", started, 1 if row else 0)
        return row

    def nodes_in_bounds(self, box: BoundingBox, *, limit: int) -> list[Row]:
        started = time.perf_counter()
        rows = [
            self._to_row(node)
            for node in self._nodes
            if node.has_coordinates
            and box.south <= node.lat <= box.north
            and box.west <= node.lng <= box.east
        ][:limit]
        self._record("bounds", started, len(rows))
        return rows

    def search_text(self, term: str, *, limit: int) -> list[Row]:
        started = time.perf_counter()
        needle = term.casefold()
        rows = [
            self._to_row(node)
            for node in self._nodes
            if node.has_coordinates
            and (needle in (node.name or "").casefold() or needle in (node.description or "").casefold())
        ][:limit]
        self._record("search", started, len(rows))
        return rows

    def count_nodes(self) -> Row:
        started = time.perf_counter()
        row = {
            "total": len(self._nodes),
            "unique_names": len({n.name for n in self._nodes if n.name is not None}),
            "with_coordinates": sum(1 for n in self._nodes if n.has_coordinates),
        }
        self._record("statistics", started, 1)
        return row

    def ping(self) -> None:
        self._record("ping", time.perf_counter(), 1)
