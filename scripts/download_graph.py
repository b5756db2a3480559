"""Download a drivable OSMnx graph with travel times for the graph backend."""

from __future__ import annotations

import argparse
from pathlib import Path

import osmnx as ox

from multistop.backends.graph import DEFAULT_GRAPH_FILE


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("place", help='Place query, e.g. "City of London, UK".')
    parser.add_argument("-o", "--output", default=str(DEFAULT_GRAPH_FILE))
    args = parser.parse_args()

    graph = ox.graph.graph_from_place(
        query=args.place,
        network_type="drive",
        simplify=True,
        truncate_by_edge=True,
    )
    graph = ox.routing.add_edge_speeds(graph)
    graph = ox.routing.add_edge_travel_times(graph)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    ox.io.save_graphml(graph, output)
    print(f"Saved {graph.number_of_nodes()} nodes to {output}")


if __name__ == "__main__":
    main()
