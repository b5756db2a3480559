import pytest

from conftest import StubRouting, StubTravelTimes
from multistop.errors import ServiceError
from multistop.geo import Coordinate
from multistop.server.api import create_app

A = Coordinate(51.51, -0.12)
B = Coordinate(51.50, -0.10)


@pytest.fixture
def travel():
    return StubTravelTimes({A: 300, B: 120})


@pytest.fixture
def client(travel):
    return create_app(travel, StubRouting()).test_client()


def test_route_orders_destinations_by_travel_time(client):
    response = client.post(
        "/api/route",
        json={
            "origin": {"lat": 51.504, "lon": -0.1129},
            "destinations": [{"lat": 51.51, "lon": -0.12}, {"lat": 51.50, "lon": -0.10}],
        },
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["order"] == [[-0.10, 51.50], [-0.12, 51.51]]
    assert body["route"] == [[-0.1129, 51.504], [-0.10, 51.50], [-0.12, 51.51]]
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_no_destinations_returns_empty_route(client, travel):
    response = client.post("/api/route", json={"origin": {"lat": 0, "lon": 0}, "destinations": []})
    assert response.get_json() == {"order": [], "route": []}
    assert travel.calls == []


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        {"destinations": []},
        {"origin": {"lat": 91, "lon": 0}},
        {"origin": {"lat": 0, "lon": 0}, "destinations": {"lat": 0}},
        {"origin": {"lat": 0, "lon": 0}, "destinations": [{"lat": "x", "lon": 0}]},
    ],
)
def test_bad_payloads_are_rejected(client, payload):
    assert client.post("/api/route", json=payload).status_code == 400


def test_service_failure_maps_to_bad_gateway(client, travel):
    travel.error = ServiceError("matrix down")
    response = client.post(
        "/api/route",
        json={"origin": {"lat": 0, "lon": 0}, "destinations": [{"lat": 1, "lon": 1}]},
    )
    assert response.status_code == 502
    assert "matrix down" in response.get_json()["error"]


def test_preflight(client):
    assert client.options("/api/route").status_code == 204


def test_configured_services_are_cleaned_up_at_exit(monkeypatch, travel):
    class OwnedService(StubRouting):
        def cleanup(self):
            pass

    service = OwnedService()
    registered = []
    monkeypatch.setattr("multistop.config.load_settings", lambda: None)
    monkeypatch.setattr("multistop.config.build_services", lambda settings: (service, service))
    monkeypatch.setattr("atexit.register", registered.append)

    create_app()

    assert registered == [service.cleanup]


def test_caller_owned_services_are_not_registered(monkeypatch, travel):
    registered = []
    monkeypatch.setattr("atexit.register", registered.append)
    create_app(travel, StubRouting())
    assert registered == []
