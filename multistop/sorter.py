"""Order destinations by estimated travel time from the origin."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .logger import Logger

if TYPE_CHECKING:
    from .geo import Coordinate
    from .matrix import TravelTimeMatrixClient


class DestinationSorter:
    """Stable ascending sort of destinations by time-from-origin.

    This is not a tour optimizer: each destination is ranked only by its
    own travel time from the origin.
    """

    def __init__(
        self,
        matrix: TravelTimeMatrixClient,
        logger: Logger = Logger(),  # noqa: B008
    ) -> None:
        self.matrix = matrix
        self.logger = logger

    async def sort(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> list[Coordinate]:
        """Return `destinations` reordered; equal times keep arrival order."""
        if not destinations:
            return []

        with self.logger.phase("sort.destinations", destinations=len(destinations)):
            estimates = await self.matrix.estimate_travel_times(origin, destinations)

        # `sorted` is stable, so ties keep their insertion order.
        ordered = sorted(estimates, key=lambda estimate: estimate.seconds)
        if self.logger.is_debug_enabled:
            for rank, estimate in enumerate(ordered):
                self.logger.debug(
                    "sort.rank",
                    rank=rank,
                    destination=estimate.destination,
                    seconds=estimate.seconds,
                )
        return [estimate.destination for estimate in ordered]
