"""
Input validation for viability queries.

Pure functions over raw query parameters (usually strings from a query string or CLI).
They never touch a node store; on success they return parsed, well-formed values the
resolver can use as-is, and on failure they raise a typed `InputError` listing every
violated invariant so callers can fix all problems in one round trip.
"""

from __future__ import annotations

import math
from typing import Any

from fiberviability.domain.errors import (
    InvalidBounds,
    InvalidCoordinates,
    InvalidRadius,
    QueryTooShort,
    RadiusTooLarge,
)
from fiberviability.domain.models import BoundingBox, Coordinate

DEFAULT_RADIUS_M = 300
MAX_RADIUS_M = 2000
MIN_SEARCH_LENGTH = 3

_MISSING = object()


def _parse_number(value: Any) -> Any:
    """Return a finite float, `_MISSING` for absent/blank input, or None when non-numeric."""
    if value is None:
        return _MISSING
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return _MISSING
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _check_component(
    name: str, raw: Any, low: float, high: float, errors: list[str]
) -> float | None:
    parsed = _parse_number(raw)
    if parsed is _MISSING:
        errors.append(f"{name} is required")
        return None
    if parsed is None:
        errors.append(f"{name} must be a valid number")
        return None
    if parsed < low or parsed > high:
        errors.append(f"{name} must be between {low:g} and {high:g} (got {parsed:g})")
    return parsed


def validate_coordinates(lat: Any, lng: Any) -> Coordinate:
    """Parse and bounds-check a latitude/longitude pair."""
    errors: list[str] = []
    lat_f = _check_component("latitude", lat, -90, 90, errors)
    lng_f = _check_component("longitude", lng, -180, 180, errors)
    if errors:
        raise InvalidCoordinates("Invalid coordinates", errors)
    return Coordinate(lat=lat_f, lng=lng_f)


def validate_radius(
    radius: Any,
    *,
    default: int = DEFAULT_RADIUS_M,
    maximum: int = MAX_RADIUS_M,
) -> int:
    """Return the search radius in whole meters; absent input yields `default`.

    Fractional meters are truncated. Values above `maximum` are rejected, not clamped;
    both radius errors carry `default` as `fallback_radius`.
    """
    parsed = _parse_number(radius)
    if parsed is _MISSING:
        return default
    if parsed is None or int(parsed) <= 0:
        raise InvalidRadius("radius must be a positive number", fallback_radius=default)
    meters = int(parsed)
    if meters > maximum:
        raise RadiusTooLarge(
            f"maximum allowed radius is {maximum}m (got {meters}m)",
            fallback_radius=default,
            max_radius=maximum,
        )
    return meters


def validate_bounds(north: Any, south: Any, east: Any, west: Any) -> BoundingBox:
    """Parse a map viewport; every violated ordering/range invariant is reported."""
    errors: list[str] = []
    n = _check_component("north", north, -90, 90, errors)
    s = _check_component("south", south, -90, 90, errors)
    e = _check_component("east", east, -180, 180, errors)
    w = _check_component("west", west, -180, 180, errors)

    if n is not None and s is not None and n <= s:
        errors.append("north must be greater than south")
    if e is not None and w is not None and e <= w:
        errors.append("east must be greater than west")

    if errors:
        raise InvalidBounds("Invalid bounding box", errors)
    return BoundingBox(north=n, south=s, east=e, west=w)


def validate_search_text(q: Any, *, min_length: int = MIN_SEARCH_LENGTH) -> str:
    """Return the trimmed search term, rejecting anything shorter than `min_length`."""
    term = "" if q is None else str(q).strip()
    if len(term) < min_length:
        message = f"search term must have at least {min_length} characters"
        raise QueryTooShort(message, [message])
    return term
