from pathlib import Path

import pytest
from starlette.testclient import TestClient

from fiberviability.api.app import create_app
from fiberviability.config.settings import StoreSettings
from fiberviability.resolver.proximity import ProximityResolver
from fiberviability.store.local import LocalNodeStore

SAMPLE_DATASET = Path(__file__).resolve().parents[1] / "data" / "nodes.sample.json"


class _DownStore:
    backend = "bigquery"

    def _fail(self, *args, **kwargs):
        raise ConnectionError("warehouse unreachable")

    nodes_within = nearest_node = nodes_in_bounds = search_text = count_nodes = ping = _fail


@pytest.fixture
def client(settings):
    resolver = ProximityResolver(LocalNodeStore.from_path(SAMPLE_DATASET, settings), settings)
    return TestClient(create_app(settings, resolver))


@pytest.fixture
def down_client(settings):
    return TestClient(create_app(settings, ProximityResolver(_DownStore(), settings)))


def test_viability_sample_point(client):
    resp = client.get("/api/viability", params={"lat": "-23.550520", "lng": "-46.633308"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["radius_m"] == 300
    assert data["verdict"] == "viable"
    assert data["total_results"] == 1
    top = data["results"][0]
    assert top["name"] == "CTO-SE-0001"
    assert top["distance_meters"] == pytest.approx(150, abs=1)
    assert top["viability_tier"] == "high"
    assert top["capacity_available"] == 24
    assert data["nearest"]["name"] == "CTO-SE-0001"
    assert any("capacity available" in r.lower() for r in data["recommendations"])
    assert [q["intent"] for q in data["meta"]["queries"]] == ["near", "nearest"]


def test_viability_wider_radius_keeps_fixed_tiers(client):
    resp = client.get("/api/viability", params={"lat": "-23.550520", "lng": "-46.633308", "radius": "500"})

    data = resp.json()
    assert [r["name"] for r in data["results"]] == ["CTO-SE-0001", "CTO-SE-0002"]
    assert [r["viability_tier"] for r in data["results"]] == ["high", "medium"]


def test_viability_nothing_in_radius_still_reports_nearest(client):
    # About 11 km south of the sample nodes.
    resp = client.get("/api/viability", params={"lat": "-23.65", "lng": "-46.633308", "radius": "2000"})

    data = resp.json()
    assert resp.status_code == 200
    assert data["verdict"] == "not_viable"
    assert data["results"] == []
    assert data["recommendations"] == ["No node found in the specified radius"]
    assert data["nearest"]["viability_tier"] == "low"


def test_viability_radius_too_large(client):
    resp = client.get("/api/viability", params={"lat": "-23.55", "lng": "-46.63", "radius": "5000"})

    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "RADIUS_TOO_LARGE"
    assert detail["fallback_radius"] == 300
    assert detail["max_radius"] == 2000


@pytest.mark.parametrize(
    "params",
    [
        {"lat": "91", "lng": "0"},
        {"lat": "abc", "lng": "0"},
        {"lng": "-46.63"},
    ],
)
def test_viability_invalid_coordinates(client, params):
    resp = client.get("/api/viability", params=params)

    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_COORDINATES"
    assert detail["details"]


def test_search(client):
    resp = client.get("/api/search", params={"q": "liberdade"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["term"] == "liberdade"
    assert data["total_results"] == 1
    assert data["results"][0]["name"] == "CTO-LIB-0101"


def test_search_too_short(client):
    resp = client.get("/api/search", params={"q": " ab "})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "QUERY_TOO_SHORT"


def test_area(client):
    resp = client.get(
        "/api/area",
        params={"north": "-23.545", "south": "-23.551", "east": "-46.63", "west": "-46.64"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["area"]["north"] == pytest.approx(-23.545)
    assert {n["name"] for n in data["nodes"]} == {"CTO-SE-0001", "CTO-SE-0002", "CTO-BV-0201"}
    assert data["total_nodes"] == 3


def test_area_inverted_bounds(client):
    resp = client.get("/api/area", params={"north": "-23.6", "south": "-23.5", "east": "-46.6", "west": "-46.7"})
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "INVALID_BOUNDS"
    assert "north must be greater than south" in detail["details"]


def test_statistics(client):
    resp = client.get("/api/statistics")

    assert resp.status_code == 200
    data = resp.json()
    assert (data["total"], data["unique"], data["with_coordinates"]) == (6, 6, 5)
    assert data["pct_with_coordinates"] == pytest.approx(100 * 5 / 6)
    assert data["updated_at"]


def test_health_endpoints(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "UP"

    ping = client.get("/health/ping")
    assert ping.status_code == 200
    assert ping.text == "pong"

    detailed = client.get("/health/detailed")
    assert detailed.status_code == 200
    assert detailed.json()["checks"]["store"] == {"backend": "local", "status": "UP"}


def test_index_lists_endpoints(client):
    data = client.get("/").json()
    assert set(data["endpoints"]) == {"viability", "search", "area", "statistics", "health"}


def test_store_down_maps_to_503(down_client):
    resp = down_client.get("/api/viability", params={"lat": "-23.55", "lng": "-46.63"})
    assert resp.status_code == 503
    assert resp.json()["detail"]["code"] == "DATA_SOURCE_UNAVAILABLE"

    assert down_client.get("/api/statistics").status_code == 503

    detailed = down_client.get("/health/detailed")
    assert detailed.status_code == 503
    assert detailed.json()["checks"]["store"]["status"] == "DOWN"


def test_input_is_validated_before_the_store_is_queried(down_client):
    resp = down_client.get("/api/viability", params={"lat": "95", "lng": "0"})
    assert resp.status_code == 400


def test_lifespan_builds_resolver_from_settings(settings):
    settings = settings.model_copy(
        update={"store": StoreSettings(backend="local", local_dataset_path=str(SAMPLE_DATASET))}
    )
    app = create_app(settings)

    with TestClient(app) as c:
        resp = c.get("/api/statistics")

    assert resp.status_code == 200
    assert resp.json()["total"] == 6
