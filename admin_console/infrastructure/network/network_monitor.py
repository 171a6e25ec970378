from __future__ import annotations

import asyncio
import logging
from typing import Callable

import httpx

from admin_console.application.ports.network_status import NetworkStatusPort, StatusListener


class NetworkStatusMonitor(NetworkStatusPort):
    """
    Tracks connectivity by probing a URL on an interval.

    Created, started and stopped by the composition root. With no probe URL
    the monitor reports online and never probes.
    """

    def __init__(
        self,
        probe_url: str | None,
        interval_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._probe_url = probe_url
        self._interval = interval_seconds
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._online = True
        self._listeners: list[StatusListener] = []
        self._task: asyncio.Task[None] | None = None
        self._logger = logging.getLogger(__name__)

    async def start(self) -> None:
        if self._task is not None:
            return
        if not self._probe_url:
            self._logger.info("Network probe disabled; assuming online")
            return
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        await self.probe()
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._logger.info("Network monitoring started", extra={"reason": "online" if self._online else "offline"})

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        self._listeners.clear()
        self._logger.info("Network monitoring stopped")

    def is_online(self) -> bool:
        return self._online

    def add_listener(self, callback: StatusListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    async def probe(self) -> bool:
        if not self._probe_url:
            return self._online
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await self._client.head(self._probe_url)
            online = response.status_code < 500
        except httpx.HTTPError as e:
            self._logger.debug("Network probe failed", extra={"error": str(e)})
            online = False
        self.set_online(online)
        return online

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        self._logger.info("Connection status changed", extra={"reason": "online" if online else "offline"})
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as e:
                self._logger.error("Network listener failed", extra={"error": str(e)})

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.probe()
