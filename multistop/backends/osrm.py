"""OSRM adapter: /table for travel times, /route for geometry.

OSRM expects `lon,lat` pairs; conversion from `Coordinate` happens here
and nowhere else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from multistop.errors import ServiceError
from multistop.geo import Coordinate

from .base import HttpBackend

if TYPE_CHECKING:
    import requests


class OSRMService(HttpBackend):
    def __init__(
        self,
        base_url: str | None,
        profile: str = "driving",
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            msg = "OSRM base URL not set. Please set OSRM_BASE_URL in the .env file."
            raise ValueError(msg)
        super().__init__(timeout=timeout, session=session)
        self.base_url = base_url.rstrip("/")
        self.profile = profile  # the mode of transportation (driving, walking, cycling)

    async def travel_times(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> list[float]:
        return await self._run(self.fetch_travel_times, origin, list(destinations))

    async def route(self, waypoints: Sequence[Coordinate]) -> list[Coordinate]:
        return await self._run(self.fetch_route, list(waypoints))

    def format_coordinates(self, coords: Sequence[Coordinate]) -> str:
        """Convert coordinates to OSRM format 'lon,lat;lon,lat;...'"""
        return ";".join(f"{c.longitude},{c.latitude}" for c in coords)

    def fetch_travel_times(
        self,
        origin: Coordinate,
        destinations: list[Coordinate],
    ) -> list[float]:
        coordinates = self.format_coordinates([origin, *destinations])
        params = {
            "sources": "0",
            "destinations": ";".join(str(i) for i in range(1, len(destinations) + 1)),
            "annotations": "duration",
        }
        data = self._request_json(
            "GET",
            f"{self.base_url}/table/v1/{self.profile}/{coordinates}",
            params=params,
        )
        _check_code(data)

        try:
            row = data["durations"][0]
        except (KeyError, IndexError, TypeError) as exc:
            msg = "OSRM table response is missing durations."
            raise ServiceError(msg) from exc

        unreachable = [index for index, value in enumerate(row) if value is None]
        if unreachable:
            msg = f"OSRM found no route to destinations {unreachable}."
            raise ServiceError(msg)
        return [float(value) for value in row]

    def fetch_route(self, waypoints: list[Coordinate]) -> list[Coordinate]:
        coordinates = self.format_coordinates(waypoints)
        data = self._request_json(
            "GET",
            f"{self.base_url}/route/v1/{self.profile}/{coordinates}",
            params={"overview": "full", "geometries": "geojson"},
        )
        _check_code(data)

        try:
            line = data["routes"][0]["geometry"]["coordinates"]
            return [Coordinate.from_lon_lat((lon, lat)) for lon, lat in line]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            msg = "Could not parse OSRM route geometry."
            raise ServiceError(msg) from exc


def _check_code(data: dict) -> None:
    if data.get("code") != "Ok":
        msg = f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}"
        raise ServiceError(msg)
