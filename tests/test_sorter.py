import asyncio
import random

import pytest

from conftest import StubTravelTimes
from multistop.errors import ServiceError
from multistop.geo import Coordinate
from multistop.matrix import TravelTimeMatrixClient
from multistop.sorter import DestinationSorter


def _sorter(service):
    return DestinationSorter(TravelTimeMatrixClient(service))


def test_orders_ascending_by_travel_time(origin, stop_a, stop_b):
    service = StubTravelTimes({stop_a: 300, stop_b: 120})
    ordered = asyncio.run(_sorter(service).sort(origin, [stop_a, stop_b]))
    assert ordered == [stop_b, stop_a]


def test_result_is_a_sorted_permutation(origin):
    rng = random.Random(7)
    destinations = [Coordinate(rng.uniform(-60, 60), rng.uniform(-170, 170)) for _ in range(25)]
    seconds = {d: float(rng.randint(0, 10)) for d in destinations}

    ordered = asyncio.run(_sorter(StubTravelTimes(seconds)).sort(origin, destinations))

    assert sorted(ordered, key=destinations.index) == destinations
    times = [seconds[d] for d in ordered]
    assert times == sorted(times)


def test_ties_keep_insertion_order(origin):
    first, second, third = Coordinate(1, 1), Coordinate(2, 2), Coordinate(3, 3)
    service = StubTravelTimes({first: 50, second: 10, third: 50})
    ordered = asyncio.run(_sorter(service).sort(origin, [first, second, third]))
    assert ordered == [second, first, third]


def test_duplicate_destinations_are_kept(origin, stop_a, stop_b):
    service = StubTravelTimes({stop_a: 5, stop_b: 1})
    ordered = asyncio.run(_sorter(service).sort(origin, [stop_a, stop_b, stop_a]))
    assert ordered == [stop_b, stop_a, stop_a]


def test_empty_input_skips_the_service(origin, travel_times):
    assert asyncio.run(_sorter(travel_times).sort(origin, [])) == []
    assert travel_times.calls == []


def test_service_error_propagates(origin, stop_a, travel_times, service_error):
    travel_times.error = service_error
    with pytest.raises(ServiceError) as info:
        asyncio.run(_sorter(travel_times).sort(origin, [stop_a]))
    assert info.value is service_error
