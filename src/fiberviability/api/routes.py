"""
API routes.

Endpoints:
- GET `/api/viability`: radius search + nearest node + verdict and recommendations.
- GET `/api/search`: free-text search over node name/description.
- GET `/api/area`: nodes inside a map viewport.
- GET `/api/statistics`: dataset statistics.

Status-code mapping lives here: input errors become 400, store failures 503.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from fiberviability.config.settings import Settings
from fiberviability.core.query_meta import capture_query_meta
from fiberviability.domain.errors import DataSourceUnavailable, InputError
from fiberviability.resolver.proximity import ProximityResolver
from fiberviability.validation.validator import (
    validate_bounds,
    validate_coordinates,
    validate_radius,
    validate_search_text,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_resolver(request: Request) -> ProximityResolver:
    return request.app.state.resolver


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _input_error(exc: InputError) -> HTTPException:
    return HTTPException(status_code=400, detail=exc.as_dict())


def _unavailable(exc: DataSourceUnavailable) -> HTTPException:
    logger.error("Data source unavailable: %s", exc.message)
    return HTTPException(status_code=503, detail={"code": exc.code, "message": exc.message})


@router.get("/viability")
def get_viability(
    lat: str | None = None,
    lng: str | None = None,
    radius: str | None = None,
    resolver: ProximityResolver = Depends(get_resolver),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Check fiber viability around (lat, lng) within `radius` meters (default 300, max 2000)."""
    try:
        coordinate = validate_coordinates(lat, lng)
        radius_m = validate_radius(
            radius,
            default=settings.viability.default_radius_m,
            maximum=settings.viability.max_radius_m,
        )
    except InputError as e:
        raise _input_error(e) from e

    try:
        with capture_query_meta() as meta:
            results = resolver.find_near(coordinate, radius_m)
            nearest = resolver.find_nearest(coordinate)
    except DataSourceUnavailable as e:
        raise _unavailable(e) from e

    report = resolver.build_report(coordinate, radius_m, results, nearest)
    return {**report.model_dump(mode="json"), "meta": {"queries": meta.queries}}


@router.get("/search")
def get_search(
    q: str | None = None,
    resolver: ProximityResolver = Depends(get_resolver),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Search nodes whose name or description contains `q` (at least 3 characters)."""
    try:
        term = validate_search_text(q, min_length=settings.viability.min_search_length)
    except InputError as e:
        raise _input_error(e) from e

    try:
        with capture_query_meta() as meta:
            nodes = resolver.search_by_text(term)
    except DataSourceUnavailable as e:
        raise _unavailable(e) from e

    return {
        "term": term,
        "total_results": len(nodes),
        "results": [n.model_dump(mode="json") for n in nodes],
        "meta": {"queries": meta.queries},
    }


@router.get("/area")
def get_area(
    north: str | None = None,
    south: str | None = None,
    east: str | None = None,
    west: str | None = None,
    resolver: ProximityResolver = Depends(get_resolver),
) -> dict:
    """List nodes inside a map viewport (inclusive bounds)."""
    try:
        box = validate_bounds(north, south, east, west)
    except InputError as e:
        raise _input_error(e) from e

    try:
        with capture_query_meta() as meta:
            nodes = resolver.find_in_bounds(box)
    except DataSourceUnavailable as e:
        raise _unavailable(e) from e

    return {
        "area": box.model_dump(mode="json"),
        "total_nodes": len(nodes),
        "nodes": [n.model_dump(mode="json") for n in nodes],
        "meta": {"queries": meta.queries},
    }


@router.get("/statistics")
def get_statistics(resolver: ProximityResolver = Depends(get_resolver)) -> dict:
    """Dataset-wide node counts."""
    try:
        with capture_query_meta() as meta:
            stats = resolver.get_statistics()
    except DataSourceUnavailable as e:
        raise _unavailable(e) from e

    return {
        **stats.model_dump(mode="json"),
        "updated_at": datetime.now(timezone.utc).isoformat(),
        "meta": {"queries": meta.queries},
    }
