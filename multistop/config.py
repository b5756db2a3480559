"""Environment-driven configuration.

Example `.env`:

    MULTISTOP_BACKEND=tomtom
    TOMTOM_API_KEY=...
    OSRM_BASE_URL=http://router.project-osrm.org
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from .logger import Logger, LoggingMode

if TYPE_CHECKING:
    from .services import RoutingService, TravelTimeService

BACKENDS = ("tomtom", "osrm", "graph")


@dataclass(slots=True)
class Settings:
    backend: str = "tomtom"
    tomtom_api_key: str | None = None
    osrm_base_url: str | None = None
    osrm_profile: str = "driving"
    graph_file: Path | None = None
    timeout_s: float = 10.0
    logging_mode: LoggingMode = LoggingMode.NONE


def load_settings(dotenv_path: str | Path | None = None) -> Settings:
    """Read settings from the process environment after loading `.env`."""
    load_dotenv(dotenv_path)

    backend = os.getenv("MULTISTOP_BACKEND", "tomtom").strip().lower()
    if backend not in BACKENDS:
        msg = f"Unknown MULTISTOP_BACKEND {backend!r}. Expected one of {BACKENDS}."
        raise ValueError(msg)

    raw_timeout = os.getenv("MULTISTOP_TIMEOUT_S", "10")
    try:
        timeout_s = float(raw_timeout)
    except ValueError as exc:
        msg = f"MULTISTOP_TIMEOUT_S must be a number, got {raw_timeout!r}."
        raise ValueError(msg) from exc

    graph_file = os.getenv("MULTISTOP_GRAPH_FILE")
    return Settings(
        backend=backend,
        tomtom_api_key=os.getenv("TOMTOM_API_KEY"),
        osrm_base_url=os.getenv("OSRM_BASE_URL"),
        osrm_profile=os.getenv("OSRM_PROFILE", "driving"),
        graph_file=Path(graph_file) if graph_file else None,
        timeout_s=timeout_s,
        logging_mode=LoggingMode.from_value(os.getenv("MULTISTOP_LOGGING")),
    )


def build_services(settings: Settings) -> tuple[TravelTimeService, RoutingService]:
    """Instantiate the configured backend; it serves both contracts."""
    if settings.backend == "tomtom":
        from .backends.tomtom import TomTomService

        service = TomTomService(settings.tomtom_api_key, timeout=settings.timeout_s)
    elif settings.backend == "osrm":
        from .backends.osrm import OSRMService

        service = OSRMService(
            settings.osrm_base_url,
            profile=settings.osrm_profile,
            timeout=settings.timeout_s,
        )
    else:
        from .backends.graph import GraphService

        service = GraphService.from_file(settings.graph_file, Logger(settings.logging_mode))
    return service, service
