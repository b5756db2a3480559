"""Wiring for an interactive planning session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .controller import RecomputationController
from .logger import Logger, LoggingMode
from .matrix import TravelTimeMatrixClient
from .route import RouteCalculator
from .sorter import DestinationSorter
from .store import DEFAULT_ORIGIN, CoordinateStore

if TYPE_CHECKING:
    from .geo import Coordinate
    from .services import RoutingService, TravelTimeService


@dataclass(slots=True)
class RouteSession:
    """A store and the controller that keeps its route up to date."""

    store: CoordinateStore
    controller: RecomputationController

    @classmethod
    def create(
        cls,
        travel_times: TravelTimeService,
        routing: RoutingService,
        origin: Coordinate = DEFAULT_ORIGIN,
        logging_mode: LoggingMode | str = LoggingMode.NONE,
        timeout_s: float | None = None,
    ) -> RouteSession:
        logger = Logger(LoggingMode.from_value(logging_mode))
        store = CoordinateStore(origin, logger=logger)
        sorter = DestinationSorter(TravelTimeMatrixClient(travel_times, timeout_s), logger)
        calculator = RouteCalculator(routing, timeout_s, logger)
        controller = RecomputationController(store, sorter, calculator, logger)
        return cls(store=store, controller=controller)

    def set_origin(self, coordinate: Coordinate) -> bool:
        return self.store.set_origin(coordinate)

    def add_destination(self, coordinate: Coordinate) -> bool:
        return self.store.add_destination(coordinate)

    def close(self) -> None:
        self.controller.close()
