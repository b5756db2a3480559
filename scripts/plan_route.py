"""Replay GeoJSON points through a planning session and print the route.

The first Point feature is the origin; the remaining Points are added as
destinations one at a time, in file order, exactly as a user would add
them on the map. Only the newest computation is allowed to publish.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TextIO

from multistop.config import build_services, load_settings
from multistop.errors import ServiceError, ValidationError
from multistop.geo import Coordinate
from multistop.logger import LoggingMode
from multistop.session import RouteSession

FEATURE_COLLECTION_TYPE = "FeatureCollection"
POINT_TYPE = "Point"
MIN_COORDINATE_COMPONENTS = 2


def echo(message: str = "", *, stream: TextIO = sys.stdout) -> None:
    """Write a line to the chosen stream and flush immediately."""
    stream.write(f"{message}\n")
    stream.flush()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("points", help="GeoJSON FeatureCollection of Point features.")
    parser.add_argument(
        "--logging",
        default=None,
        choices=[mode.value for mode in LoggingMode],
        help="Override MULTISTOP_LOGGING.",
    )
    return parser.parse_args(argv)


def extract_coordinate(feature: dict, index: int) -> Coordinate:
    """Return a validated coordinate from a Point feature's `[lon, lat]`."""
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") != POINT_TYPE:
        raise ValueError(f"Feature #{index} must be a Point geometry.")

    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < MIN_COORDINATE_COMPONENTS:
        raise ValueError(f"Feature #{index} is missing longitude/latitude values.")

    try:
        return Coordinate.parse(coordinates[1], coordinates[0])
    except ValidationError as exc:
        raise ValueError(f"Feature #{index}: {exc}") from exc


def parse_points(document: dict) -> tuple[Coordinate, list[Coordinate]]:
    """Split a FeatureCollection into origin and destinations."""
    if document.get("type") != FEATURE_COLLECTION_TYPE:
        raise ValueError("GeoJSON must be a FeatureCollection.")

    features = document.get("features")
    if not isinstance(features, list) or not features:
        raise ValueError("FeatureCollection must contain at least one feature.")

    coordinates = [
        extract_coordinate(feature, idx + 1) for idx, feature in enumerate(features)
    ]
    return coordinates[0], coordinates[1:]


def build_geojson(
    origin: Coordinate,
    order: list[Coordinate],
    path: list[Coordinate] | None,
) -> dict:
    """Create a GeoJSON feature collection describing the planned route."""
    features = [
        {
            "type": "Feature",
            "properties": {"role": "origin"},
            "geometry": {"type": "Point", "coordinates": list(origin.as_lon_lat())},
        },
    ]

    for idx, destination in enumerate(order, start=1):
        features.append(
            {
                "type": "Feature",
                "properties": {"role": "destination", "stop": idx},
                "geometry": {"type": "Point", "coordinates": list(destination.as_lon_lat())},
            },
        )

    if path:
        features.append(
            {
                "type": "Feature",
                "properties": {"role": "path"},
                "geometry": {
                    "type": "LineString",
                    "coordinates": [list(point.as_lon_lat()) for point in path],
                },
            },
        )

    return {"type": FEATURE_COLLECTION_TYPE, "features": features}


async def replay(
    session: RouteSession,
    destinations: list[Coordinate],
) -> list[Coordinate] | None:
    """Add `destinations` to `session` one by one and wait for the final route."""
    failures: list[ServiceError] = []
    session.controller.on_failed(failures.append)

    for destination in destinations:
        session.add_destination(destination)

    path = await session.controller.settled()
    if failures and session.controller.published is None:
        raise failures[-1]
    return path


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        document = json.loads(Path(args.points).read_text(encoding="utf-8"))
        origin, destinations = parse_points(document)
    except (OSError, ValueError) as exc:
        echo(f"Invalid GeoJSON input: {exc}", stream=sys.stderr)
        sys.exit(1)

    settings = load_settings()
    travel_times, routing = build_services(settings)
    session = RouteSession.create(
        travel_times,
        routing,
        origin=origin,
        logging_mode=args.logging or settings.logging_mode,
        timeout_s=settings.timeout_s,
    )

    try:
        path = asyncio.run(replay(session, destinations))
    except ServiceError as exc:
        echo(f"Route computation failed: {exc}", stream=sys.stderr)
        sys.exit(2)
    finally:
        session.close()

    echo(json.dumps(build_geojson(origin, session.controller.published_order, path)))


if __name__ == "__main__":
    main()
