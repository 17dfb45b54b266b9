"""
Typed failures raised by the validator, the resolver and the node stores.

Input errors subclass `ValueError` so generic callers can still treat them as bad input;
each one carries every violated invariant in `details`, not just the first.
"""

from __future__ import annotations

from typing import Any


class ViabilityError(Exception):
    """Base class for all engine failures."""

    code = "VIABILITY_ERROR"

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": list(self.details)}


class InputError(ViabilityError, ValueError):
    """Caller-input error, detected before any store query."""

    code = "INVALID_INPUT"


class InvalidCoordinates(InputError):
    code = "INVALID_COORDINATES"


class InvalidBounds(InputError):
    code = "INVALID_BOUNDS"


class QueryTooShort(InputError):
    code = "QUERY_TOO_SHORT"


class InvalidRadius(InputError):
    code = "INVALID_RADIUS"

    def __init__(self, message: str, *, fallback_radius: int, details: list[str] | None = None):
        super().__init__(message, details or [message])
        self.fallback_radius = fallback_radius

    def as_dict(self) -> dict[str, Any]:
        return {**super().as_dict(), "fallback_radius": self.fallback_radius}


class RadiusTooLarge(InvalidRadius):
    code = "RADIUS_TOO_LARGE"

    def __init__(self, message: str, *, fallback_radius: int, max_radius: int):
        super().__init__(message, fallback_radius=fallback_radius)
        self.max_radius = max_radius

    def as_dict(self) -> dict[str, Any]:
        return {**super().as_dict(), "max_radius": self.max_radius}


class DataSourceUnavailable(ViabilityError):
    """The external node store failed (transport, timeout, rejected query, malformed rows)."""

    code = "DATA_SOURCE_UNAVAILABLE"
