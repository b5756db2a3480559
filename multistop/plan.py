"""High-level entrypoint that sorts destinations and routes through them once."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from .logger import Logger, LoggingMode
from .matrix import TravelTimeMatrixClient
from .route import RouteCalculator
from .sorter import DestinationSorter

if TYPE_CHECKING:
    from .geo import Coordinate
    from .services import RouteGeometry, RoutingService, TravelTimeService


@dataclass(slots=True)
class PlanResult:
    """Destinations in visiting order plus the path that connects them."""

    order: list[Coordinate]
    geometry: RouteGeometry | None


async def plan(
    origin: Coordinate,
    destinations: Sequence[Coordinate],
    travel_times: TravelTimeService,
    routing: RoutingService,
    logging_mode: LoggingMode | str = LoggingMode.NONE,
    timeout_s: float | None = None,
) -> PlanResult:
    """Order `destinations` by travel time from `origin` and route through them.

    Parameters
    ----------
    origin:
        Starting coordinate; it is always the first point of the geometry.
    destinations:
        Coordinates to visit, in arrival order.
    travel_times, routing:
        External service implementations (see `multistop.backends`).
    logging_mode:
        Controls log verbosity. Accepts `LoggingMode` values or their
        lowercase string names.
    timeout_s:
        Optional per-call timeout applied to both services.

    Returns
    -------
    PlanResult
        `geometry` is None when there is nothing to visit.

    """
    logger = Logger(LoggingMode.from_value(logging_mode))
    for coordinate in (origin, *destinations):
        coordinate.validate()

    sorter = DestinationSorter(TravelTimeMatrixClient(travel_times, timeout_s), logger)
    ordered = await sorter.sort(origin, destinations)
    if not ordered:
        return PlanResult(order=[], geometry=None)

    calculator = RouteCalculator(routing, timeout_s, logger)
    geometry = await calculator.calculate_route([origin, *ordered])
    return PlanResult(order=ordered, geometry=geometry)
