"""Change notification through the ``idle`` command."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from .client import Client
from .config import DEFAULT_HOST, DEFAULT_PORT
from .protocol.errors import MPDError

_logger = logging.getLogger("mpdlink.watcher")


class Watcher:
    """Watches the daemon for changes on a dedicated connection.

    Changed subsystem names ("player", "mixer", "playlist"...) are put on
    ``events``; ``None`` marks the end of the stream. Failures go to
    ``errors`` and stop the watcher, the connection is not reused after.
    """

    def __init__(
        self,
        network: str = "tcp",
        address: str = f"{DEFAULT_HOST}:{DEFAULT_PORT}",
        password: str | None = None,
        subsystems: tuple[str, ...] = (),
        close_timeout: float = 2.0,
    ):
        self.network = network
        self.address = address
        self.password = password
        self.subsystems = tuple(subsystems)
        self.close_timeout = close_timeout
        self.events: asyncio.Queue[str | None] = asyncio.Queue()
        self.errors: asyncio.Queue[MPDError] = asyncio.Queue()
        self._client: Client | None = None
        self._task: asyncio.Task | None = None
        self._running = False

    async def __aenter__(self) -> Watcher:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Connect and start the idle loop."""
        if self._task is not None:
            raise RuntimeError("Watcher is already started")

        loop = asyncio.get_running_loop()
        # No read timeout: idle may legitimately block for hours.
        self._client = await loop.run_in_executor(
            None,
            lambda: Client.dial(self.network, self.address, self.password, timeout=None),
        )
        self._running = True
        self._task = asyncio.create_task(self._watch())
        _logger.info(f"Watching {self.network}:{self.address} {list(self.subsystems) or 'all'}")

    async def _watch(self) -> None:
        loop = asyncio.get_running_loop()
        client = self._client
        try:
            while self._running:
                try:
                    changed = await loop.run_in_executor(None, client.idle, *self.subsystems)
                except MPDError as exc:
                    if self._running:
                        _logger.warning(f"idle failed: {exc}")
                        await self.errors.put(exc)
                    break

                for name in changed:
                    _logger.debug(f"changed: {name}")
                    await self.events.put(name)
        finally:
            self._running = False
            await self.events.put(None)

    async def subscribe(self) -> AsyncIterator[str]:
        """Yield changed subsystem names until the watcher stops."""
        while True:
            name = await self.events.get()
            if name is None:
                return
            yield name

    async def close(self) -> None:
        """Stop the idle loop and drop the connection."""
        client = self._client
        if client is None:
            return

        was_running = self._running
        self._running = False
        loop = asyncio.get_running_loop()

        if self._task is not None:
            if was_running:
                try:
                    client.no_idle()
                except MPDError as exc:
                    _logger.debug(f"noidle: {exc}")
            try:
                await asyncio.wait_for(asyncio.shield(self._task), self.close_timeout)
            except asyncio.TimeoutError:
                # idle was sent after our noidle; force the read to fail.
                client.interrupt()
                await self._task
            self._task = None

        await loop.run_in_executor(None, client.close)
        self._client = None
        _logger.info("Watcher closed")
