"""Recompute the sorted route whenever the origin or destinations change.

Every trigger starts a new generation. A computation snapshots the store
when it starts and compares its generation with the controller's after
each `await`; once a newer generation exists the older one is cancelled
and whatever it eventually produces is dropped instead of published.
In-flight service calls are not aborted, only ignored.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from .errors import InsufficientWaypointsError, ServiceError, StaleResultDiscarded
from .logger import Logger

if TYPE_CHECKING:
    from .geo import Coordinate
    from .route import RouteCalculator
    from .services import RouteGeometry
    from .sorter import DestinationSorter
    from .store import CoordinateStore, StoreChange

PublishedListener = Callable[[Optional["RouteGeometry"]], object]
FailedListener = Callable[[ServiceError], object]


class ComputationState(str, Enum):
    IDLE = "idle"
    SORTING = "sorting"
    ROUTING = "routing"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


IN_FLIGHT = (ComputationState.SORTING, ComputationState.ROUTING)


@dataclass(slots=True)
class Computation:
    """One generation-tagged attempt at sorting and routing."""

    generation: int
    origin: Coordinate
    destinations: tuple[Coordinate, ...]
    order: tuple[Coordinate, ...] = ()
    state: ComputationState = ComputationState.IDLE
    task: asyncio.Task | None = field(default=None, repr=False)


class RecomputationController:
    """Owns the generation counter and the currently published geometry."""

    def __init__(
        self,
        store: CoordinateStore,
        sorter: DestinationSorter,
        calculator: RouteCalculator,
        logger: Logger = Logger(),  # noqa: B008
    ) -> None:
        self.store = store
        self.sorter = sorter
        self.calculator = calculator
        self.logger = logger
        self._generation = 0
        self._current: Computation | None = None
        self._published: RouteGeometry | None = None
        self._published_order: list[Coordinate] = []
        self._published_listeners: list[PublishedListener] = []
        self._failed_listeners: list[FailedListener] = []
        # The loop only holds weak references; superseded tasks live here until done.
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = store.subscribe(self._on_store_change)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> ComputationState:
        if self._current is None:
            return ComputationState.IDLE
        return self._current.state

    @property
    def pending_tasks(self) -> int:
        """Number of computations, current or superseded, still running."""
        return len(self._tasks)

    @property
    def current(self) -> Computation | None:
        return self._current

    @property
    def published(self) -> RouteGeometry | None:
        """The geometry currently valid for rendering, or None for no route."""
        return self._published

    @property
    def published_order(self) -> list[Coordinate]:
        """Destinations in the visiting order of the published route."""
        return list(self._published_order)

    def on_published(self, listener: PublishedListener) -> Callable[[], None]:
        return _register(self._published_listeners, listener)

    def on_failed(self, listener: FailedListener) -> Callable[[], None]:
        return _register(self._failed_listeners, listener)

    def close(self) -> None:
        """Stop reacting to store mutations."""
        self._unsubscribe()

    def trigger(self) -> asyncio.Task | None:
        """Start a new generation, cancelling any computation still in flight.

        Returns the scheduled task, or None when there are no destinations
        and the route was cleared immediately.
        """
        origin = self.store.get_origin()
        destinations = self.store.get_destinations()
        loop = asyncio.get_running_loop() if destinations else None

        previous = self._current
        if previous is not None and previous.state in IN_FLIGHT:
            previous.state = ComputationState.CANCELLED
            self.logger.info("computation.cancelled", generation=previous.generation)

        self._generation += 1
        computation = Computation(self._generation, origin, destinations)
        self._current = computation
        self.logger.info(
            "computation.start",
            generation=computation.generation,
            destinations=len(destinations),
        )

        if loop is None:
            self._publish(computation, None)
            return None

        computation.state = ComputationState.SORTING
        task = loop.create_task(self._run(computation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        computation.task = task
        return task

    async def recompute(self) -> RouteGeometry | None:
        """Manual trigger; waits for the new generation and returns its result.

        Returns None when the generation was superseded, failed, or had no
        destinations.
        """
        task = self.trigger()
        if task is None:
            return None
        return await task

    async def settled(self) -> RouteGeometry | None:
        """Wait until the newest generation finishes and return the published geometry."""
        while True:
            computation = self._current
            if computation is None or computation.task is None:
                return self._published
            await computation.task
            if computation is self._current:
                return self._published

    def _on_store_change(self, change: StoreChange) -> None:
        self.logger.debug("computation.trigger", change=change.kind.value)
        self.trigger()

    async def _run(self, computation: Computation) -> RouteGeometry | None:
        try:
            ordered = await self.sorter.sort(computation.origin, computation.destinations)
            if self._is_stale(computation):
                return None

            computation.order = tuple(ordered)
            computation.state = ComputationState.ROUTING
            geometry: RouteGeometry | None = await self.calculator.calculate_route(
                [computation.origin, *ordered],
            )
        except InsufficientWaypointsError:
            geometry = None
        except ServiceError as exc:
            if self._is_stale(computation):
                return None
            computation.state = ComputationState.IDLE
            self.logger.warning(
                "computation.failed",
                generation=computation.generation,
                error=str(exc),
            )
            for listener in list(self._failed_listeners):
                listener(exc)
            return None

        if self._is_stale(computation):
            return None
        self._publish(computation, geometry)
        return geometry

    def _is_stale(self, computation: Computation) -> bool:
        if computation.generation == self._generation:
            return False
        computation.state = ComputationState.CANCELLED
        self.logger.info(
            "computation.stale",
            reason=StaleResultDiscarded(computation.generation, self._generation),
        )
        return True

    def _publish(self, computation: Computation, geometry: RouteGeometry | None) -> None:
        computation.state = ComputationState.PUBLISHED
        self._published = geometry
        self._published_order = list(computation.order) if geometry is not None else []
        self.logger.info(
            "computation.published",
            generation=computation.generation,
            points=0 if geometry is None else len(geometry),
        )
        for listener in list(self._published_listeners):
            listener(geometry)


def _register(listeners: list, listener: Callable) -> Callable[[], None]:
    listeners.append(listener)

    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return unsubscribe
