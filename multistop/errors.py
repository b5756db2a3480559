"""Exception taxonomy shared by the route recomputation pipeline."""

from __future__ import annotations


class ValidationError(ValueError):
    """Raised for malformed or out-of-range coordinate input."""


class ServiceError(Exception):
    """Raised when an external travel-time or routing service fails."""


class InsufficientWaypointsError(ValueError):
    """Raised when a route is requested with fewer than two waypoints."""


class StaleResultDiscarded(Exception):  # noqa: N818
    """Marks the result of a superseded computation; never propagated."""

    def __init__(self, generation: int, current: int) -> None:
        super().__init__(f"generation {generation} superseded by {current}")
        self.generation = generation
        self.current = current
