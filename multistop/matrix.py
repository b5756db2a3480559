"""Travel-time matrix client: one origin, N destinations, N estimates."""

from __future__ import annotations

import asyncio
import math
import numbers
from typing import TYPE_CHECKING, Sequence

from .errors import ServiceError
from .services import TravelTimeEstimate, response_items

if TYPE_CHECKING:
    from .geo import Coordinate
    from .services import TravelTimeService


class TravelTimeMatrixClient:
    """Wrap a `TravelTimeService` and normalize its answers.

    No retries happen here. `timeout_s` is optional; when set, a slow
    service call fails with `ServiceError` instead of hanging.
    """

    def __init__(self, service: TravelTimeService, timeout_s: float | None = None) -> None:
        self.service = service
        self.timeout_s = timeout_s

    async def estimate_travel_times(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> list[TravelTimeEstimate]:
        """Return estimates aligned index-for-index with `destinations`."""
        destinations = list(destinations)
        try:
            raw = await asyncio.wait_for(
                self.service.travel_times(origin, destinations),
                timeout=self.timeout_s,
            )
        except ServiceError:
            raise
        except asyncio.TimeoutError as exc:
            msg = f"Travel-time service timed out after {self.timeout_s}s."
            raise ServiceError(msg) from exc
        except Exception as exc:
            msg = f"Travel-time service failed: {exc}"
            raise ServiceError(msg) from exc

        seconds = response_items(raw, "Travel-time")
        if len(seconds) != len(destinations):
            msg = (
                "Travel-time service returned "
                f"{len(seconds)} estimates for {len(destinations)} destinations."
            )
            raise ServiceError(msg)

        return [
            TravelTimeEstimate(destination=destination, seconds=_seconds(value, index))
            for index, (destination, value) in enumerate(zip(destinations, seconds))
        ]


def _seconds(value: object, index: int) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        msg = f"Travel time #{index} is not numeric: {value!r}"
        raise ServiceError(msg)
    number = float(value)
    if math.isnan(number) or number < 0:
        msg = f"Travel time #{index} is invalid: {value!r}"
        raise ServiceError(msg)
    return number
