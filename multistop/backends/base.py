"""Shared plumbing for service backends that block on I/O or CPU."""

from __future__ import annotations

import asyncio
import concurrent.futures
from functools import partial
from typing import Any, Callable, TypeVar

import requests

from multistop.errors import ServiceError

T = TypeVar("T")


class ExecutorBackend:
    """Runs blocking work on a thread pool so the event loop stays free."""

    def __init__(self, max_workers: int = 4) -> None:
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)

    def cleanup(self) -> None:
        """Clean up resources"""
        self.executor.shutdown(wait=True)

    async def _run(self, func: Callable[..., T], *args: Any) -> T:  # noqa: ANN401
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, partial(func, *args))


class HttpBackend(ExecutorBackend):
    """Executor backend speaking JSON over HTTP with `requests`."""

    def __init__(
        self,
        timeout: float = 10,
        session: requests.Session | None = None,
        max_workers: int = 4,
    ) -> None:
        super().__init__(max_workers=max_workers)
        self.timeout = timeout  # seconds to wait for the provider before giving up
        self.session = session if session is not None else requests.Session()

    def cleanup(self) -> None:
        super().cleanup()
        self.session.close()

    def _request_json(self, method: str, url: str, **kwargs: Any) -> dict:  # noqa: ANN401
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            msg = f"{method} {url} failed: {exc}"
            raise ServiceError(msg) from exc
        except ValueError as exc:
            msg = f"{method} {url} returned a non-JSON body."
            raise ServiceError(msg) from exc

        if not isinstance(data, dict):
            msg = f"{method} {url} returned unexpected JSON: {type(data).__name__}"
            raise ServiceError(msg)
        return data
