"""PostgreSQL LISTEN/NOTIFY subscription backing the change listener."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import asyncpg

from viewexport.exceptions import ListenerSetupError, NotificationError

logger = logging.getLogger(__name__)

NOTIFY_CHANNEL = "tms"

_CONNECTION_LOST = object()


class Subscription(Protocol):
    """Upstream connection plus its buffered notification feed."""

    @property
    def connection(self) -> Any: ...

    async def start(self) -> None: ...

    async def receive(self, timeout: float) -> str | None: ...

    async def stop(self) -> None: ...



class PostgresNotifySubscription:
    """asyncpg connection over the local unix socket, listening on one channel.

    Notifications are appended to an in-memory queue by the asyncpg callback,
    so anything delivered while a fetch is running waits for the next poll.
    """

    def __init__(
        self,
        *,
        user: str,
        database: str = "tms",
        socket_dir: str = "/run/postgresql",
        timezone: str = "US/Central",
        channel: str = NOTIFY_CHANNEL,
        connect: Callable[..., Awaitable[Any]] | None = None,
    ) -> None:
        self._user = user
        self._database = database
        self._socket_dir = socket_dir
        self._timezone = timezone
        self._channel = channel
        self._connect = connect or asyncpg.connect
        self._conn: Any | None = None
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._listening = False

    @property
    def connection(self) -> Any:
        if self._conn is None:
            raise NotificationError("subscription is not started")
        return self._conn

    @property
    def channel(self) -> str:
        return self._channel

    async def start(self) -> None:
        try:
            self._conn = await self._connect(user=self._user, host=self._socket_dir, database=self._database)
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise ListenerSetupError("connect", f"{self._user}@{self._socket_dir}/{self._database}: {exc}") from exc
        try:
            await self._conn.execute("SELECT set_config('TimeZone', $1, false)", self._timezone)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise ListenerSetupError("set time zone", str(exc)) from exc
        self._conn.add_termination_listener(self._on_terminate)
        try:
            await self._conn.add_listener(self._channel, self._on_notify)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise ListenerSetupError("listen", str(exc)) from exc
        self._listening = True
        logger.info("listening on channel %s as %s", self._channel, self._user)

    async def receive(self, timeout: float) -> str | None:
        """Next buffered payload, waiting at most ``timeout`` seconds; None on timeout."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            if timeout <= 0:
                return None
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                return None
        if item is _CONNECTION_LOST:
            raise NotificationError(f"connection lost while listening on {self._channel}")
        if not isinstance(item, str):
            raise NotificationError(f"malformed notification on {self._channel}: {item!r}")
        return item

    async def stop(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        with contextlib.suppress(Exception):
            conn.remove_termination_listener(self._on_terminate)
        if self._listening:
            self._listening = False
            with contextlib.suppress(Exception):
                await conn.remove_listener(self._channel, self._on_notify)
        with contextlib.suppress(Exception):
            await conn.close()

    def _on_notify(self, conn: Any, pid: int, channel: str, payload: Any) -> None:  # noqa: ARG002
        self._queue.put_nowait(payload)

    def _on_terminate(self, conn: Any) -> None:  # noqa: ARG002
        logger.error("connection to %s terminated", self._database)
        self._queue.put_nowait(_CONNECTION_LOST)
