"""Change listener: bootstrap export, then poll/coalesce/fetch forever."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from time import monotonic

from viewexport.export.adapter import Subscription
from viewexport.export.aggregator import PendingSet
from viewexport.export.channel import DispatchChannel
from viewexport.resources.registry import ResourceRegistry

logger = logging.getLogger(__name__)

OUTPUT_DIR = Path("/var/www/html/iris/")
POLL_INTERVAL_SECONDS = 0.3


class ChangeListener:
    """Own the upstream connection and keep every resource's files current.

    Fetches run one at a time on the listener's task and never overlap a
    poll window. Any fetch or notification failure ends :meth:`run` with the
    exception; there is no retry or reconnect.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        channel: DispatchChannel,
        *,
        subscription: Subscription,
        output_dir: Path = OUTPUT_DIR,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._registry = registry
        self._channel = channel
        self._subscription = subscription
        self._output_dir = output_dir
        self._poll_interval = poll_interval
        self.fetch_count = 0

    async def run(self) -> None:
        """Set up, bootstrap, then coalesce and fetch until a fatal error."""
        try:
            await self.setup()
            await self.bootstrap()
            while True:
                pending = await self.poll_window()
                if pending:
                    await self.drain(pending)
        finally:
            self._channel.close()
            await self._subscription.stop()

    async def setup(self) -> None:
        await self._subscription.start()

    async def bootstrap(self) -> None:
        """Fetch every registered resource once, in registry order."""
        started = monotonic()
        names = self._registry.all_names()
        for name in names:
            await self.fetch_timed(name)
        logger.info("bootstrap: %d resources in %.3fs", len(names), monotonic() - started)

    async def fetch_timed(self, name: str) -> int | None:
        """Fetch one resource and log its row count and elapsed time.

        Returns None for an unregistered name; fetch failures propagate.
        """
        resource = self._registry.lookup(name)
        if resource is None:
            logger.warning("%s: unknown resource", name)
            return None
        started = monotonic()
        count = await resource.fetch(self._subscription.connection, self._output_dir, self._channel)
        self.fetch_count += 1
        logger.info("%s: wrote %d rows in %.3fs", name, count, monotonic() - started)
        return count

    async def poll_window(self) -> PendingSet:
        """Collect notifications until one poll interval has elapsed."""
        pending = PendingSet()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._poll_interval
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            name = await self._subscription.receive(remaining)
            if name is None:
                break
            pending.add(name)
        return pending

    async def drain(self, pending: PendingSet) -> None:
        """Fetch each distinct pending name once, sequentially."""
        received = pending.received
        names = pending.drain()
        logger.debug("window: %d notifications for %d resources", received, len(names))
        for name in names:
            await self.fetch_timed(name)
