"""Flask API surface for one-shot route planning."""

from __future__ import annotations

import asyncio
import atexit
from typing import TYPE_CHECKING, Sequence

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import BadRequest

from multistop.errors import ServiceError, ValidationError
from multistop.geo import Coordinate
from multistop.plan import plan

if TYPE_CHECKING:
    from multistop.services import RoutingService, TravelTimeService


def _parse_coordinate(payload: object, label: str) -> Coordinate:
    """Validate that payload looks like {'lat': float, 'lon': float}."""
    if not isinstance(payload, dict):
        msg = f"{label} must be an object with 'lat' and 'lon'."
        raise BadRequest(msg)

    lat = payload.get("lat")
    lon = payload.get("lon")
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        msg = f"{label} must include numeric 'lat' and 'lon' fields."
        raise BadRequest(msg)

    try:
        return Coordinate.parse(lat, lon)
    except ValidationError as exc:
        raise BadRequest(f"{label}: {exc}") from exc


def _parse_destinations(payload: object) -> list[Coordinate]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        msg = "destinations must be an array of coordinates."
        raise BadRequest(msg)

    return [
        _parse_coordinate(item, f"destinations[{index}]")
        for index, item in enumerate(payload)
    ]


def _serialize_coordinates(coords: Sequence[Coordinate]) -> list[list[float]]:
    """Return JSON-serializable [lon, lat] coordinate lists."""
    return [[c.longitude, c.latitude] for c in coords]


def create_app(
    travel_times: TravelTimeService | None = None,
    routing: RoutingService | None = None,
) -> Flask:
    """Build the app; services default to the environment configuration.

    Services built here live as long as the process and are cleaned up at exit.
    Callers passing their own services keep ownership of them.
    """
    if travel_times is None or routing is None:
        from multistop.config import build_services, load_settings

        travel_times, routing = build_services(load_settings())
        for service in {id(s): s for s in (travel_times, routing)}.values():
            cleanup = getattr(service, "cleanup", None)
            if cleanup is not None:
                atexit.register(cleanup)

    app = Flask(__name__)

    @app.after_request
    def _inject_cors(response: Response) -> Response:
        """Allow simple cross-origin requests from the browser frontend."""
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
        response.headers.setdefault("Access-Control-Allow-Methods", "POST, OPTIONS")
        return response

    @app.errorhandler(ServiceError)
    def _service_error(exc: ServiceError) -> tuple[Response, int]:
        return jsonify({"error": str(exc)}), 502

    @app.route("/api/route", methods=["POST", "OPTIONS"])
    def route_planner() -> Response:
        """Order destinations by travel time from the origin and route through them."""
        if request.method == "OPTIONS":
            return Response("", status=204)

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            msg = "Request body must be a JSON object."
            raise BadRequest(msg)

        origin = _parse_coordinate(payload.get("origin"), "origin")
        destinations = _parse_destinations(payload.get("destinations"))

        result = asyncio.run(plan(origin, destinations, travel_times, routing))
        return jsonify(
            {
                "order": _serialize_coordinates(result.order),
                "route": _serialize_coordinates(result.geometry or []),
            },
        )

    return app


if __name__ == "__main__":  # pragma: no cover
    create_app().run()
