from multistop.geo import Coordinate
from multistop.store import DEFAULT_ORIGIN, ChangeKind, CoordinateStore


def test_default_origin_and_empty_destinations():
    store = CoordinateStore()
    assert store.get_origin() == DEFAULT_ORIGIN
    assert store.get_destinations() == ()


def test_set_origin_rejects_out_of_range_latitude(origin):
    store = CoordinateStore(origin)
    changes = []
    store.subscribe(changes.append)

    assert store.set_origin(Coordinate(91, 0)) is False
    assert store.set_origin(Coordinate(-90.5, 0)) is False
    assert store.get_origin() == origin
    assert changes == []


def test_set_origin_leaves_longitude_unbounded(origin):
    store = CoordinateStore(origin)
    assert store.set_origin(Coordinate(45, 200)) is True
    assert store.get_origin() == Coordinate(45, 200)


def test_add_destination_appends_in_arrival_order(origin, stop_a, stop_b):
    store = CoordinateStore(origin)
    store.add_destination(stop_a)
    store.add_destination(stop_b)
    store.add_destination(stop_a)
    assert store.get_destinations() == (stop_a, stop_b, stop_a)


def test_add_destination_rejects_non_finite(origin):
    store = CoordinateStore(origin)
    assert store.add_destination(Coordinate(float("nan"), 0)) is False
    assert store.get_destinations() == ()


def test_listeners_receive_changes_until_unsubscribed(origin, stop_a):
    store = CoordinateStore(origin)
    changes = []
    unsubscribe = store.subscribe(changes.append)

    store.add_destination(stop_a)
    store.set_origin(Coordinate(10, 10))
    unsubscribe()
    store.add_destination(stop_a)

    assert [change.kind for change in changes] == [
        ChangeKind.DESTINATION_ADDED,
        ChangeKind.ORIGIN_CHANGED,
    ]
    assert changes[0].coordinate == stop_a


def test_snapshot_is_not_affected_by_later_mutations(origin, stop_a, stop_b):
    store = CoordinateStore(origin)
    store.add_destination(stop_a)
    snapshot = store.get_destinations()
    store.add_destination(stop_b)
    assert snapshot == (stop_a,)
