import pytest

from fiberviability.domain.errors import (
    InputError,
    InvalidBounds,
    InvalidCoordinates,
    InvalidRadius,
    QueryTooShort,
    RadiusTooLarge,
)
from fiberviability.validation.validator import (
    validate_bounds,
    validate_coordinates,
    validate_radius,
    validate_search_text,
)


def test_validate_coordinates_parses_strings():
    coord = validate_coordinates("-23.550520", " -46.633308 ")
    assert coord.lat == pytest.approx(-23.550520)
    assert coord.lng == pytest.approx(-46.633308)


def test_validate_coordinates_accepts_zero():
    # "0" is a real coordinate (equator / prime meridian), not a missing value.
    coord = validate_coordinates("0", 0)
    assert (coord.lat, coord.lng) == (0.0, 0.0)


@pytest.mark.parametrize(
    "lat,lng,expected",
    [
        ("91", "0", ["latitude"]),
        ("-90.0001", "0", ["latitude"]),
        ("0", "180.5", ["longitude"]),
        ("0", "-181", ["longitude"]),
        ("100", "200", ["latitude", "longitude"]),
    ],
)
def test_validate_coordinates_reports_every_violated_bound(lat, lng, expected):
    with pytest.raises(InvalidCoordinates) as exc_info:
        validate_coordinates(lat, lng)

    details = exc_info.value.details
    assert len(details) == len(expected)
    for name, detail in zip(expected, details):
        assert detail.startswith(name)
        assert "between" in detail


def test_validate_coordinates_boundaries_are_inclusive():
    coord = validate_coordinates("90", "-180")
    assert (coord.lat, coord.lng) == (90.0, -180.0)


def test_validate_coordinates_missing_and_non_numeric_are_accumulated():
    with pytest.raises(InvalidCoordinates) as exc_info:
        validate_coordinates(None, "abc")
    assert exc_info.value.details == ["latitude is required", "longitude must be a valid number"]


@pytest.mark.parametrize("bad", ["nan", "inf", "", "   ", True])
def test_validate_coordinates_rejects_non_finite_and_blank(bad):
    with pytest.raises(InvalidCoordinates):
        validate_coordinates(bad, "0")


def test_input_errors_are_value_errors():
    # Generic callers that only know ValueError still treat these as bad input.
    with pytest.raises(ValueError):
        validate_coordinates("x", "y")
    assert issubclass(InvalidBounds, InputError)


@pytest.mark.parametrize("absent", [None, "", "  "])
def test_validate_radius_absent_yields_default(absent):
    assert validate_radius(absent) == 300


def test_validate_radius_accepts_values_up_to_maximum():
    assert validate_radius("500") == 500
    assert validate_radius(2000) == 2000
    assert validate_radius("150.9") == 150


@pytest.mark.parametrize("too_large", ["2001", "5000", 10_000])
def test_validate_radius_too_large_offers_default_fallback(too_large):
    with pytest.raises(RadiusTooLarge) as exc_info:
        validate_radius(too_large)

    err = exc_info.value
    assert err.fallback_radius == 300
    assert err.max_radius == 2000
    assert err.as_dict()["code"] == "RADIUS_TOO_LARGE"


@pytest.mark.parametrize("bad", ["abc", "0", "-10", "0.5", "nan"])
def test_validate_radius_non_positive_or_non_numeric(bad):
    with pytest.raises(InvalidRadius) as exc_info:
        validate_radius(bad)

    err = exc_info.value
    assert not isinstance(err, RadiusTooLarge)
    assert err.fallback_radius == 300
    assert err.code == "INVALID_RADIUS"


def test_validate_radius_uses_configured_limits():
    assert validate_radius(None, default=250, maximum=800) == 250
    with pytest.raises(RadiusTooLarge) as exc_info:
        validate_radius("900", default=250, maximum=800)
    assert exc_info.value.fallback_radius == 250


def test_validate_bounds_returns_box():
    box = validate_bounds("-23.54", "-23.56", "-46.62", "-46.64")
    assert box.north == pytest.approx(-23.54)
    assert box.west == pytest.approx(-46.64)


@pytest.mark.parametrize(
    "north,south,east,west,message",
    [
        ("10", "10", "20", "10", "north must be greater than south"),
        ("5", "10", "20", "10", "north must be greater than south"),
        ("10", "0", "10", "10", "east must be greater than west"),
        ("10", "0", "5", "10", "east must be greater than west"),
    ],
)
def test_validate_bounds_rejects_bad_ordering(north, south, east, west, message):
    with pytest.raises(InvalidBounds) as exc_info:
        validate_bounds(north, south, east, west)
    assert message in exc_info.value.details


def test_validate_bounds_lists_every_violation():
    # Inverted on both axes and out of range on two components.
    with pytest.raises(InvalidBounds) as exc_info:
        validate_bounds("-95", "95", "-190", "190")

    details = exc_info.value.details
    assert "north must be greater than south" in details
    assert "east must be greater than west" in details
    assert any(d.startswith("north must be between") for d in details)
    assert any(d.startswith("south must be between") for d in details)
    assert any(d.startswith("east must be between") for d in details)
    assert any(d.startswith("west must be between") for d in details)


def test_validate_bounds_missing_components():
    with pytest.raises(InvalidBounds) as exc_info:
        validate_bounds(None, "0", "", "x")
    assert exc_info.value.details == [
        "north is required",
        "east is required",
        "west must be a valid number",
    ]


@pytest.mark.parametrize("short", [None, "", "ab", "  ab  ", " a "])
def test_validate_search_text_rejects_short_terms(short):
    with pytest.raises(QueryTooShort):
        validate_search_text(short)


def test_validate_search_text_trims():
    assert validate_search_text("  CTO  ") == "CTO"
