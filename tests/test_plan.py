import asyncio
import json

import pytest

from conftest import StubRouting, StubTravelTimes
from multistop.errors import ValidationError
from multistop.geo import Coordinate
from multistop.plan import plan
from multistop.session import RouteSession
from scripts.plan_route import build_geojson, parse_points, replay


def test_plan_sorts_then_routes(origin, stop_a, stop_b):
    travel = StubTravelTimes({stop_a: 300, stop_b: 120})
    result = asyncio.run(plan(origin, [stop_a, stop_b], travel, StubRouting()))
    assert result.order == [stop_b, stop_a]
    assert result.geometry == [origin, stop_b, stop_a]


def test_plan_without_destinations(origin, travel_times, routing):
    result = asyncio.run(plan(origin, [], travel_times, routing))
    assert result.order == []
    assert result.geometry is None
    assert routing.calls == []


def test_plan_validates_input(origin, travel_times, routing):
    with pytest.raises(ValidationError):
        asyncio.run(plan(origin, [Coordinate(95, 0)], travel_times, routing))


def _point(lon, lat):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lon, lat]}}


def test_parse_points_splits_origin_and_destinations():
    document = {"type": "FeatureCollection", "features": [_point(-0.1129, 51.504), _point(-0.12, 51.51)]}
    origin, destinations = parse_points(document)
    assert origin == Coordinate(51.504, -0.1129)
    assert destinations == [Coordinate(51.51, -0.12)]


@pytest.mark.parametrize(
    "document",
    [
        {"type": "Feature"},
        {"type": "FeatureCollection", "features": []},
        {"type": "FeatureCollection", "features": [{"geometry": {"type": "LineString"}}]},
        {"type": "FeatureCollection", "features": [_point(0, 120)]},
    ],
)
def test_parse_points_rejects_bad_documents(document):
    with pytest.raises(ValueError):
        parse_points(document)


def test_replay_publishes_only_the_final_route(origin, stop_a, stop_b):
    travel = StubTravelTimes({stop_a: 300, stop_b: 120})
    routing = StubRouting()

    async def scenario():
        session = RouteSession.create(travel, routing, origin=origin)
        path = await replay(session, [stop_a, stop_b])
        return session, path

    session, path = asyncio.run(scenario())

    assert path == [origin, stop_b, stop_a]
    assert routing.calls == [[origin, stop_b, stop_a]]

    geojson = build_geojson(origin, session.controller.published_order, path)
    roles = [feature["properties"]["role"] for feature in geojson["features"]]
    assert roles == ["origin", "destination", "destination", "path"]
    assert geojson["features"][1]["geometry"]["coordinates"] == [-0.10, 51.50]
    json.dumps(geojson)
