"""Multi-waypoint route calculation on top of a `RoutingService`."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Sequence

from .errors import InsufficientWaypointsError, ServiceError
from .geo import Coordinate
from .logger import Logger
from .services import response_items

if TYPE_CHECKING:
    from .services import RouteGeometry, RoutingService

MIN_WAYPOINTS = 2


class RouteCalculator:
    """Request a path through ordered waypoints; the path starts at `waypoints[0]`."""

    def __init__(
        self,
        service: RoutingService,
        timeout_s: float | None = None,
        logger: Logger = Logger(),  # noqa: B008
    ) -> None:
        self.service = service
        self.timeout_s = timeout_s
        self.logger = logger

    async def calculate_route(self, waypoints: Sequence[Coordinate]) -> RouteGeometry:
        waypoints = list(waypoints)
        if len(waypoints) < MIN_WAYPOINTS:
            msg = f"A route needs at least {MIN_WAYPOINTS} waypoints, got {len(waypoints)}."
            raise InsufficientWaypointsError(msg)

        with self.logger.phase("route.calculate", waypoints=len(waypoints)):
            try:
                raw = await asyncio.wait_for(
                    self.service.route(waypoints),
                    timeout=self.timeout_s,
                )
            except ServiceError:
                raise
            except asyncio.TimeoutError as exc:
                msg = f"Routing service timed out after {self.timeout_s}s."
                raise ServiceError(msg) from exc
            except Exception as exc:
                msg = f"Routing service failed: {exc}"
                raise ServiceError(msg) from exc

        geometry = [_as_coordinate(point) for point in response_items(raw, "Routing")]
        if not geometry:
            msg = "Routing service returned an empty geometry."
            raise ServiceError(msg)

        # Providers snap to the road network; pin the path to the exact origin.
        if geometry[0] != waypoints[0]:
            geometry.insert(0, waypoints[0])
        return geometry


def _as_coordinate(point: object) -> Coordinate:
    if isinstance(point, Coordinate):
        return point
    msg = f"Routing service returned a non-coordinate point: {point!r}"
    raise ServiceError(msg)
