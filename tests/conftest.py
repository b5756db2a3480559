from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from multistop.errors import ServiceError
from multistop.geo import Coordinate


class StubTravelTimes:
    """Returns configured seconds per destination; can be gated or failing."""

    def __init__(self, seconds: dict[Coordinate, float] | None = None) -> None:
        self.seconds = seconds or {}
        self.calls: list[tuple[Coordinate, list[Coordinate]]] = []
        self.gates: list[asyncio.Event] = []
        self.gated = False
        self.error: Exception | None = None

    async def travel_times(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> list[float]:
        self.calls.append((origin, list(destinations)))
        # The outcome is fixed when the call starts, not when it is released.
        error = self.error
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        if error is not None:
            raise error
        return [self.seconds.get(destination, 60.0) for destination in destinations]


class StubRouting:
    """Returns the waypoints themselves as the path, or a fixed geometry."""

    def __init__(self, geometry: list[Coordinate] | None = None) -> None:
        self.geometry = geometry
        self.calls: list[list[Coordinate]] = []
        self.error: Exception | None = None
        self.gates: list[asyncio.Event] = []
        self.gated = False

    async def route(self, waypoints: Sequence[Coordinate]) -> list[Coordinate]:
        self.calls.append(list(waypoints))
        await asyncio.sleep(0)
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        if self.error is not None:
            raise self.error
        if self.geometry is not None:
            return list(self.geometry)
        return list(waypoints)


@pytest.fixture
def origin() -> Coordinate:
    return Coordinate(51.504, -0.1129)


@pytest.fixture
def stop_a() -> Coordinate:
    return Coordinate(51.51, -0.12)


@pytest.fixture
def stop_b() -> Coordinate:
    return Coordinate(51.50, -0.10)


@pytest.fixture
def travel_times() -> StubTravelTimes:
    return StubTravelTimes()


@pytest.fixture
def routing() -> StubRouting:
    return StubRouting()


@pytest.fixture
def service_error() -> ServiceError:
    return ServiceError("upstream unavailable")


async def wait_for_gates(stub: StubTravelTimes | StubRouting, count: int) -> None:
    """Yield to the loop until `count` calls are parked on their gates."""
    for _ in range(100):
        if len(stub.gates) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} gated calls, saw {len(stub.gates)}")
