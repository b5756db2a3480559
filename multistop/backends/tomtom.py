"""TomTom Matrix Routing v2 and Calculate Route adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from multistop.errors import ServiceError
from multistop.geo import Coordinate

from .base import HttpBackend

if TYPE_CHECKING:
    import requests


class TomTomService(HttpBackend):
    """Travel times and route geometry from the TomTom Routing APIs."""

    BASE_URL = "https://api.tomtom.com"
    MATRIX_PATH = "/routing/matrix/2"
    ROUTE_PATH = "/routing/1/calculateRoute/{locations}/json"

    def __init__(
        self,
        api_key: str | None,
        travel_mode: str = "car",
        traffic: bool = True,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            msg = "TomTom API key is not set. Please set TOMTOM_API_KEY in the .env file."
            raise ValueError(msg)
        super().__init__(timeout=timeout, session=session)
        self.api_key = api_key
        self.travel_mode = travel_mode
        self.traffic = traffic

    async def travel_times(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> list[float]:
        return await self._run(self.fetch_travel_times, origin, list(destinations))

    async def route(self, waypoints: Sequence[Coordinate]) -> list[Coordinate]:
        return await self._run(self.fetch_route, list(waypoints))

    def fetch_travel_times(
        self,
        origin: Coordinate,
        destinations: list[Coordinate],
    ) -> list[float]:
        """POST a 1xN matrix request and return seconds in destination order."""
        body = {
            "origins": [_point(origin)],
            "destinations": [_point(destination) for destination in destinations],
            "options": {
                "departAt": "now",
                "routeType": "fastest",
                "travelMode": self.travel_mode,
                "traffic": "live" if self.traffic else "historical",
            },
        }
        data = self._request_json(
            "POST",
            f"{self.BASE_URL}{self.MATRIX_PATH}",
            params={"key": self.api_key},
            json=body,
        )

        cells = data.get("data")
        if not isinstance(cells, list):
            msg = "TomTom matrix response is missing its 'data' array."
            raise ServiceError(msg)

        seconds: list[float | None] = [None] * len(destinations)
        for cell in cells:
            index = cell.get("destinationIndex")
            if not isinstance(index, int) or not 0 <= index < len(destinations):
                msg = f"TomTom matrix cell has an invalid destinationIndex: {index!r}"
                raise ServiceError(msg)
            if "detailedError" in cell:
                detail = cell["detailedError"].get("message", "unknown error")
                msg = f"TomTom matrix failed for destination #{index}: {detail}"
                raise ServiceError(msg)
            summary = cell.get("routeSummary") or {}
            seconds[index] = summary.get("travelTimeInSeconds")

        missing = [index for index, value in enumerate(seconds) if value is None]
        if missing:
            msg = f"TomTom matrix returned no travel time for destinations {missing}."
            raise ServiceError(msg)
        return [float(value) for value in seconds]  # type: ignore[arg-type]

    def fetch_route(self, waypoints: list[Coordinate]) -> list[Coordinate]:
        """GET a route through `waypoints` and flatten its legs into one path."""
        locations = ":".join(f"{point.latitude},{point.longitude}" for point in waypoints)
        params = {
            "key": self.api_key,
            "traffic": "true" if self.traffic else "false",
            "travelMode": self.travel_mode,
            "routeType": "fastest",
        }
        data = self._request_json(
            "GET",
            f"{self.BASE_URL}{self.ROUTE_PATH.format(locations=locations)}",
            params=params,
        )

        try:
            legs = data["routes"][0]["legs"]
            path: list[Coordinate] = []
            for leg in legs:
                points = [_coordinate(point) for point in leg.get("points", [])]
                # Legs share their junction point; keep only one copy.
                if path and points and path[-1] == points[0]:
                    points = points[1:]
                path.extend(points)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            msg = "Could not parse TomTom route response."
            raise ServiceError(msg) from exc
        return path


def _point(coordinate: Coordinate) -> dict[str, Any]:
    return {"point": {"latitude": coordinate.latitude, "longitude": coordinate.longitude}}


def _coordinate(point: dict) -> Coordinate:
    return Coordinate(latitude=float(point["latitude"]), longitude=float(point["longitude"]))
