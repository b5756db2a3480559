"""Single source of truth for the origin and the destinations to visit."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import ValidationError
from .geo import Coordinate
from .logger import Logger

DEFAULT_ORIGIN = Coordinate(latitude=51.504, longitude=-0.112869)


class ChangeKind(str, Enum):
    ORIGIN_CHANGED = "origin-changed"
    DESTINATION_ADDED = "destination-added"


@dataclass(frozen=True, slots=True)
class StoreChange:
    """Notification describing one accepted mutation."""

    kind: ChangeKind
    coordinate: Coordinate


Listener = Callable[[StoreChange], object]


class CoordinateStore:
    """Holds the origin plus destinations in arrival order.

    Invalid coordinates are rejected as no-ops; accepted mutations are
    forwarded to every subscribed listener in subscription order.
    """

    def __init__(
        self,
        origin: Coordinate = DEFAULT_ORIGIN,
        logger: Logger = Logger(),  # noqa: B008
    ) -> None:
        origin.validate()
        self._origin = origin
        self._destinations: list[Coordinate] = []
        self._listeners: list[Listener] = []
        self._logger = logger

    def get_origin(self) -> Coordinate:
        return self._origin

    def get_destinations(self) -> tuple[Coordinate, ...]:
        """Return an immutable snapshot of the destinations."""
        return tuple(self._destinations)

    def set_origin(self, coordinate: Coordinate) -> bool:
        """Replace the origin; returns False when the input was rejected."""
        try:
            coordinate.validate()
        except ValidationError as exc:
            self._logger.warning("store.origin.rejected", reason=str(exc))
            return False
        self._origin = coordinate
        self._logger.debug("store.origin.changed", coordinate=coordinate)
        self._notify(StoreChange(ChangeKind.ORIGIN_CHANGED, coordinate))
        return True

    def add_destination(self, coordinate: Coordinate) -> bool:
        """Append a destination; returns False when the input was rejected."""
        try:
            coordinate.validate()
        except ValidationError as exc:
            self._logger.warning("store.destination.rejected", reason=str(exc))
            return False
        self._destinations.append(coordinate)
        self._logger.debug(
            "store.destination.added",
            coordinate=coordinate,
            count=len(self._destinations),
        )
        self._notify(StoreChange(ChangeKind.DESTINATION_ADDED, coordinate))
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener` and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        for listener in list(self._listeners):
            listener(change)
