"""Contracts for the external travel-time and routing collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence

from .errors import ServiceError

if TYPE_CHECKING:
    from .geo import Coordinate

# Ordered path from the origin through every visited destination.
RouteGeometry = list["Coordinate"]


@dataclass(frozen=True, slots=True)
class TravelTimeEstimate:
    """Estimated travel time from the origin to a single destination."""

    destination: Coordinate
    seconds: float


class TravelTimeService(Protocol):
    """One origin, N destinations -> N travel times in seconds.

    The returned sequence must follow the order of `destinations`.
    """

    async def travel_times(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> Sequence[float]: ...


class RoutingService(Protocol):
    """Ordered waypoints (at least two) -> route path geometry."""

    async def route(self, waypoints: Sequence[Coordinate]) -> Sequence[Coordinate]: ...


def response_items(raw: object, label: str) -> list:
    """Materialize a service answer as a list; anything not list-like is malformed."""
    if raw is None:
        return []
    if isinstance(raw, (str, bytes, dict)):
        msg = f"{label} service returned a malformed response: {type(raw).__name__}"
        raise ServiceError(msg)
    try:
        return list(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        msg = f"{label} service returned a malformed response: {type(raw).__name__}"
        raise ServiceError(msg) from exc
