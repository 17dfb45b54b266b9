from datetime import datetime, timezone

import pytest

from fiberviability.domain.models import Coordinate, ProximityResult
from fiberviability.resolver.viability import (
    NO_NODE_FOUND,
    build_recommendations,
    build_report,
    classify_viability,
)


def _result(distance: float, available: int = 24) -> ProximityResult:
    tier, reason = classify_viability(distance, available)
    return ProximityResult(
        node_id="CTO-1",
        name="CTO-1",
        capacity_total=48,
        capacity_available=available,
        distance_meters=distance,
        viability_tier=tier,
        viability_reason=reason,
    )


@pytest.mark.parametrize(
    "distance,available,tier",
    [
        (0, 24, "high"),
        (300, 24, "high"),
        (300, 0, "medium"),
        (120, 0, "medium"),
        (300.01, 24, "medium"),
        (500, 1, "medium"),
        (500.01, 24, "low"),
        (400, 0, "low"),
        (1500, 24, "low"),
    ],
)
def test_classify_viability_tiers(distance, available, tier):
    assert classify_viability(distance, available)[0] == tier


def test_classify_viability_is_monotonic_in_distance():
    tiers = [classify_viability(d, 24)[0] for d in (250, 350, 550)]
    assert tiers == ["high", "medium", "low"]


def test_classify_viability_reasons_distinguish_medium_cases():
    _, no_capacity = classify_viability(200, 0)
    _, out_of_radius = classify_viability(450, 10)
    assert "no capacity" in no_capacity
    assert "outside standard radius" in out_of_radius


def test_classify_viability_custom_break_points():
    assert classify_viability(350, 5, standard_radius_m=400, extended_radius_m=600)[0] == "high"


def test_recommendations_without_results():
    assert build_recommendations([]) == [NO_NODE_FOUND]
    assert "no node found in the specified radius" in NO_NODE_FOUND.lower()


def test_recommendations_within_standard_radius_with_capacity():
    recs = [r.lower() for r in build_recommendations([_result(150, 24), _result(900, 24)])]
    assert len(recs) == 2
    assert "within standard radius" in recs[0]
    assert "capacity available" in recs[1]


def test_recommendations_within_standard_radius_without_capacity():
    recs = [r.lower() for r in build_recommendations([_result(100, 0)])]
    assert "within standard radius" in recs[0]
    assert "no available capacity" in recs[1]


def test_recommendations_outside_standard_radius():
    recs = [r.lower() for r in build_recommendations([_result(420, 24)])]
    assert recs == [
        "nearest node is more than 300m away",
        "consider a feasibility study for extension",
    ]


def test_build_report_verdicts():
    point = Coordinate(lat=-23.55052, lng=-46.633308)
    at = datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)

    empty = build_report(point, 300, [], None, generated_at=at)
    assert empty.verdict == "not_viable"
    assert empty.total_results == 0
    assert empty.recommendations == [NO_NODE_FOUND]
    assert empty.generated_at == at

    nearest = _result(150)
    report = build_report(point, 300, [nearest], nearest, generated_at=at)
    assert report.verdict == "viable"
    assert report.total_results == 1
    assert report.nearest == nearest
