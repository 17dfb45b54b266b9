"""
BigQuery node store.

Queries the `vw_viabilidade` view with GoogleSQL geography functions:
- `ST_GEOGPOINT(lng, lat)` builds points from `geometry.coordinates` (GeoJSON order),
- `ST_DWITHIN` filters by radius, `ST_DISTANCE` returns meters.

Every value that comes from a caller is a bound query parameter; only the view name
(from settings) is formatted into the SQL text. Failures are wrapped as
`DataSourceUnavailable` and never retried here.
"""

from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery

from fiberviability.config.settings import Settings
from fiberviability.core.query_meta import record_query
from fiberviability.domain.errors import DataSourceUnavailable
from fiberviability.domain.models import BoundingBox, Coordinate
from fiberviability.store.base import Row, like_pattern

logger = logging.getLogger(__name__)

_STORE_ERRORS = (GoogleAPIError, GoogleAuthError, concurrent.futures.TimeoutError, OSError)

_NODES_CTE = """
nodes AS (
    SELECT
        nome,
        descricao,
        geometry.type AS geometry_type,
        geometry.coordinates[OFFSET(0)] AS longitude,
        geometry.coordinates[OFFSET(1)] AS latitude
    FROM {table}
    WHERE geometry.coordinates IS NOT NULL
      AND ARRAY_LENGTH(geometry.coordinates) >= 2
)"""

_NODE_COLUMNS = """
    n.nome AS node_id,
    n.nome AS name,
    n.descricao AS address,
    n.longitude,
    n.latitude,
    n.geometry_type,
    @capacity_total AS capacity_total,
    @capacity_available AS capacity_available,
    @status AS status"""

NEAR_SQL = (
    """
WITH query_point AS (
    SELECT ST_GEOGPOINT(@longitude, @latitude) AS point
),"""
    + _NODES_CTE
    + """
SELECT"""
    + _NODE_COLUMNS
    + """,
    ST_DISTANCE(q.point, ST_GEOGPOINT(n.longitude, n.latitude)) AS distance_meters
FROM nodes AS n, query_point AS q
WHERE ST_DWITHIN(q.point, ST_GEOGPOINT(n.longitude, n.latitude), @radius)
ORDER BY distance_meters, name
LIMIT @limit
"""
)

NEAREST_SQL = (
    """
WITH query_point AS (
    SELECT ST_GEOGPOINT(@longitude, @latitude) AS point
),"""
    + _NODES_CTE
    + """
SELECT"""
    + _NODE_COLUMNS
    + """,
    ST_DISTANCE(q.point, ST_GEOGPOINT(n.longitude, n.latitude)) AS distance_meters
FROM nodes AS n, query_point AS q
ORDER BY distance_meters, name
LIMIT 1
"""
)

BOUNDS_SQL = (
    "\nWITH" + _NODES_CTE + """
SELECT"""
    + _NODE_COLUMNS
    + """
FROM nodes AS n
WHERE n.latitude BETWEEN @south AND @north
  AND n.longitude BETWEEN @west AND @east
LIMIT @limit
"""
)

SEARCH_SQL = (
    "\nWITH" + _NODES_CTE + """
SELECT"""
    + _NODE_COLUMNS
    + """
FROM nodes AS n
WHERE LOWER(n.nome) LIKE LOWER(@pattern)
   OR LOWER(n.descricao) LIKE LOWER(@pattern)
LIMIT @limit
"""
)

STATISTICS_SQL = """
SELECT
    COUNT(*) AS total,
    COUNT(DISTINCT nome) AS unique_names,
    COUNTIF(
        geometry.coordinates IS NOT NULL
        AND ARRAY_LENGTH(geometry.coordinates) >= 2
    ) AS with_coordinates
FROM {table}
"""

PING_SQL = "SELECT 1 AS ok"


class BigQueryNodeStore:
    """Node store backed by a BigQuery view; the client is injected, never created here."""

    backend = "bigquery"

    def __init__(self, client: bigquery.Client, settings: Settings):
        self._client = client
        self._settings = settings
        self._table = settings.bigquery.full_table_name()

    def _capacity_params(self) -> list[bigquery.ScalarQueryParameter]:
        capacity = self._settings.viability.capacity
        return [
            bigquery.ScalarQueryParameter("capacity_total", "INT64", int(capacity.total)),
            bigquery.ScalarQueryParameter("capacity_available", "INT64", int(capacity.available)),
            bigquery.ScalarQueryParameter("status", "STRING", capacity.status),
        ]

    def _run(self, intent: str, sql: str, params: list[Any]) -> list[Row]:
        job_config = bigquery.QueryJobConfig(query_parameters=params)
        started = time.perf_counter()
        job_id = None
        try:
            job = self._client.query(sql, job_config=job_config, location=self._settings.bigquery.location)
            job_id = getattr(job, "job_id", None)
            rows = [dict(row.items()) for row in job.result()]
        except _STORE_ERRORS as exc:
            logger.warning("BigQuery %s query failed (job=%s): %s", intent, job_id, exc)
            raise DataSourceUnavailable(f"Node store query failed: {exc}") from exc

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.debug("BigQuery %s query returned %d rows in %d ms", intent, len(rows), elapsed_ms)
        record_query(
            intent,
            {"backend": self.backend, "rows": len(rows), "elapsed_ms": elapsed_ms, "job_id": job_id},
        )
        return rows

    @staticmethod
    def _point_params(center: Coordinate) -> list[bigquery.ScalarQueryParameter]:
        return [
            bigquery.ScalarQueryParameter("latitude", "FLOAT64", center.lat),
            bigquery.ScalarQueryParameter("longitude", "FLOAT64", center.lng),
        ]

    def nodes_within(self, center: Coordinate, radius_m: float, *, limit: int) -> list[Row]:
        params = [
            *self._point_params(center),
            bigquery.ScalarQueryParameter("radius", "FLOAT64", float(radius_m)),
            bigquery.ScalarQueryParameter("limit", "INT64", int(limit)),
            *self._capacity_params(),
        ]
        return self._run("near", NEAR_SQL.format(table=self._table), params)

    def nearest_node(self, center: Coordinate) -> Row | None:
        params = [*self._point_params(center), *self._capacity_params()]
        rows = self._run("nearest", NEAREST_SQL.format(table=self._table), params)
        return rows[0] if rows else None

    def nodes_in_bounds(self, box: BoundingBox, *, limit: int) -> list[Row]:
        params = [
            bigquery.ScalarQueryParameter("north", "FLOAT64", box.north),
            bigquery.ScalarQueryParameter("south", "FLOAT64", box.south),
            bigquery.ScalarQueryParameter("east", "FLOAT64", box.east),
            bigquery.ScalarQueryParameter("west", "FLOAT64", box.west),
            bigquery.ScalarQueryParameter("limit", "INT64", int(limit)),
            *self._capacity_params(),
        ]
        return self._run("bounds", BOUNDS_SQL.format(table=self._table), params)

    def search_text(self, term: str, *, limit: int) -> list[Row]:
        params = [
            bigquery.ScalarQueryParameter("pattern", "STRING", like_pattern(term)),
            bigquery.ScalarQueryParameter("limit", "INT64", int(limit)),
            *self._capacity_params(),
        ]
        return self._run("search", SEARCH_SQL.format(table=self._table), params)

    def count_nodes(self) -> Row:
        rows = self._run("statistics", STATISTICS_SQL.format(table=self._table), [])
        if not rows:
            raise DataSourceUnavailable("Node store returned no statistics row")
        return rows[0]

    def ping(self) -> None:
        self._run("ping", PING_SQL, [])
