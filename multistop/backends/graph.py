"""Offline travel times and routes over a cached OSMnx road graph."""

from __future__ import annotations

from dataclasses import dataclass
from heapq import heappop, heappush
from itertools import count, pairwise
from pathlib import Path
from typing import TYPE_CHECKING, Hashable, Iterable, Sequence

import numpy as np
import osmnx as ox

from multistop.errors import ServiceError
from multistop.geo import Coordinate, great_circle_meters, great_circle_meters_many
from multistop.logger import Logger

from .base import ExecutorBackend

if TYPE_CHECKING:
    import networkx as nx

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ASSETS_DIR = PROJECT_ROOT / "assets"
DEFAULT_GRAPH_FILE = ASSETS_DIR / "road_graph.graphml"
# Default maximum snapping distance in meters.
SNAP_MAX_DISTANCE_M = 100.0
# Speed assumed for edges lacking `travel_time` (30 km/h).
DEFAULT_SPEED_MPS = 30_000 / 3600


def load_graph(graphml_path: str | Path | None = None) -> nx.MultiGraph:
    """Load the cached OSMnx graph and return its undirected representation.

    Parameters
    ----------
    graphml_path:
        Optional custom path to the GraphML file. When omitted,
        `assets/road_graph.graphml` is used.

    """
    path = Path(graphml_path) if graphml_path is not None else DEFAULT_GRAPH_FILE
    if not path.exists():
        msg = f"GraphML file not found: {path}"
        raise FileNotFoundError(msg)

    directed_graph = ox.load_graphml(path)

    # Drop directionality for easier routing.
    return ox.convert.to_undirected(directed_graph)


def log_graph_stats(logger: Logger, graph: nx.MultiGraph) -> None:
    """Log node/edge counts of a freshly loaded road graph."""
    if not logger.is_info_enabled:
        return
    stats: dict[str, object] = {
        "nodes": graph.number_of_nodes(),
        "edges": graph.number_of_edges(),
    }
    graph_name = graph.graph.get("name")
    if graph_name:
        stats["name"] = graph_name
    logger.info("graph.stats", **stats)


@dataclass(slots=True)
class SnapResult:
    """Describes which graph node an arbitrary coordinate was snapped to."""

    original: Coordinate
    node_id: Hashable
    distance_m: float


@dataclass(slots=True)
class UCSResult:
    """Container for a UCS leg result."""

    target: Hashable
    path: list[Hashable]
    cost: float


class GraphService(ExecutorBackend):
    """Implements both service contracts with uniform-cost search.

    Edge cost is travel time in seconds. Searches run on a single worker
    thread since they are CPU bound.
    """

    def __init__(
        self,
        graph: nx.MultiGraph,
        max_snap_distance_m: float | None = SNAP_MAX_DISTANCE_M,
        logger: Logger = Logger(),  # noqa: B008
    ) -> None:
        super().__init__(max_workers=1)
        self.graph = graph
        self.max_snap_distance_m = max_snap_distance_m
        log_graph_stats(logger, graph)

    @classmethod
    def from_file(
        cls,
        graphml_path: str | Path | None = None,
        logger: Logger = Logger(),  # noqa: B008
    ) -> GraphService:
        with logger.phase("graph.setup"):
            graph = load_graph(graphml_path)
        return cls(graph, logger=logger)

    async def travel_times(
        self,
        origin: Coordinate,
        destinations: Sequence[Coordinate],
    ) -> list[float]:
        return await self._run(self.compute_travel_times, origin, list(destinations))

    async def route(self, waypoints: Sequence[Coordinate]) -> list[Coordinate]:
        return await self._run(self.compute_route, list(waypoints))

    def compute_travel_times(
        self,
        origin: Coordinate,
        destinations: list[Coordinate],
    ) -> list[float]:
        snapped = self._snap([origin, *destinations])
        source = snapped[0].node_id
        targets = [snap.node_id for snap in snapped[1:]]

        reached = _ucs(self.graph, source, targets)
        missing = [index for index, node in enumerate(targets) if node not in reached]
        if missing:
            msg = f"No route found to destinations {missing}."
            raise ServiceError(msg)
        return [reached[node].cost for node in targets]

    def compute_route(self, waypoints: list[Coordinate]) -> list[Coordinate]:
        nodes = [snap.node_id for snap in self._snap(waypoints)]

        # Track the accumulated node path; reuse junction nodes only once.
        full_path: list[Hashable] = [nodes[0]]
        for source, target in pairwise(nodes):
            result = _ucs(self.graph, source, [target]).get(target)
            if result is None:
                msg = f"No route found between graph nodes {source} and {target}."
                raise ServiceError(msg)
            full_path.extend(result.path[1:])

        return [Coordinate.from_lon_lat(point) for point in stitch_path(self.graph, full_path)]

    def _snap(self, coords: Sequence[Coordinate]) -> list[SnapResult]:
        try:
            return snap_coords(self.graph, coords, self.max_snap_distance_m)
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc


def snap_coords(
    graph: nx.MultiGraph,
    coords: Sequence[Coordinate],
    max_distance_m: float | None = SNAP_MAX_DISTANCE_M,
) -> list[SnapResult]:
    """Snap coordinates onto their nearest graph node by great-circle distance.

    Coordinates farther than `max_distance_m` from every node raise
    ``ValueError``; pass ``None`` to disable the guard.
    """
    if not coords:
        return []
    if graph.number_of_nodes() == 0:
        msg = "Routing graph has no nodes."
        raise ValueError(msg)

    node_ids = list(graph.nodes)
    lats = np.array([graph.nodes[node]["y"] for node in node_ids], dtype=float)
    lons = np.array([graph.nodes[node]["x"] for node in node_ids], dtype=float)

    snapped: list[SnapResult] = []
    for coordinate in coords:
        distances = great_circle_meters_many(
            coordinate.latitude,
            coordinate.longitude,
            lats,
            lons,
        )
        index = int(np.argmin(distances))
        distance = float(distances[index])
        if max_distance_m is not None and distance > max_distance_m:
            msg = (
                "Coordinate is too far from the routing graph: "
                f"{distance:.1f}m > {max_distance_m:.1f}m for {coordinate}"
            )
            raise ValueError(msg)
        snapped.append(SnapResult(coordinate, node_ids[index], distance))
    return snapped


def _ucs(
    graph: nx.MultiGraph,
    source: Hashable,
    targets: Iterable[Hashable],
) -> dict[Hashable, UCSResult]:
    """Run UCS from `source` until every reachable target is settled."""
    pending = set(targets)
    settled: dict[Hashable, UCSResult] = {}
    # The counter keeps heap entries comparable when node ids are mixed types.
    tie = count()
    frontier: list[tuple[float, int, Hashable, list[Hashable]]] = [
        (0.0, next(tie), source, [source]),
    ]
    best_cost = {source: 0.0}

    while frontier and pending:
        cost, _, node, path = heappop(frontier)
        if cost > best_cost.get(node, float("inf")):
            continue
        if node in pending:
            settled[node] = UCSResult(target=node, path=path, cost=cost)
            pending.discard(node)

        for neighbor in graph.neighbors(node):
            new_cost = cost + edge_travel_seconds(graph, node, neighbor)
            if new_cost < best_cost.get(neighbor, float("inf")):
                best_cost[neighbor] = new_cost
                heappush(frontier, (new_cost, next(tie), neighbor, [*path, neighbor]))

    return settled


def edge_travel_seconds(graph: nx.MultiGraph, u: Hashable, v: Hashable) -> float:
    """Return the travel time between two adjacent nodes."""
    candidate = preferred_edge_attrs(graph, u, v)
    if candidate is None:
        return float("inf")

    travel_time = candidate.get("travel_time")
    if travel_time is not None:
        return float(travel_time)

    length = candidate.get("length")
    if length is None:
        u_geo = graph.nodes[u]
        v_geo = graph.nodes[v]
        length = great_circle_meters(u_geo["y"], u_geo["x"], v_geo["y"], v_geo["x"])
    return float(length) / DEFAULT_SPEED_MPS


def preferred_edge_attrs(graph: nx.MultiGraph, u: Hashable, v: Hashable) -> dict | None:
    """Select the fastest parallel edge between `u` and `v`."""
    edge_dict = graph.get_edge_data(u, v)
    if not edge_dict:
        return None
    return min(
        edge_dict.values(),
        key=lambda data: float(
            data.get("travel_time", data.get("length", float("inf")) / DEFAULT_SPEED_MPS),
        ),
    )


def stitch_path(graph: nx.MultiGraph, nodes: Sequence[Hashable]) -> list[tuple[float, float]]:
    """Expand a node path into `(lon, lat)` coordinates following edge geometry."""
    if not nodes:
        return []

    stitched = [(graph.nodes[nodes[0]]["x"], graph.nodes[nodes[0]]["y"])]
    for u, v in pairwise(nodes):
        # Skip the first coordinate to avoid duplicates.
        stitched.extend(_edge_coords(graph, u, v)[1:])
    return stitched


def _edge_coords(graph: nx.MultiGraph, u: Hashable, v: Hashable) -> list[tuple[float, float]]:
    start = (graph.nodes[u]["x"], graph.nodes[u]["y"])
    end = (graph.nodes[v]["x"], graph.nodes[v]["y"])
    candidate = preferred_edge_attrs(graph, u, v)
    geometry = None if candidate is None else candidate.get("geometry")
    if geometry is None or not hasattr(geometry, "coords"):
        return [start, end]

    coords = [(float(x), float(y)) for x, y, *_ in geometry.coords]
    if len(coords) < 2:  # noqa: PLR2004
        return [start, end]

    # Undirected edges may store geometry in either direction.
    if _squared_distance(coords[0], start) > _squared_distance(coords[-1], start):
        coords.reverse()
    coords[0] = start
    coords[-1] = end
    return coords


def _squared_distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy
