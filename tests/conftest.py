"""Shared fakes for the exporter test suite."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from viewexport.exceptions import FetchError
from viewexport.export import ChangeListener, DispatchChannel, PostgresNotifySubscription
from viewexport.resources import ArtifactSink, ResourceRegistry, write_atomic


@dataclass
class FakeConnection:
    """Stand-in for an asyncpg connection."""

    rows: list[tuple[Any, ...]] = field(default_factory=list)
    fetch_error: Exception | None = None
    execute_error: Exception | None = None
    listen_error: Exception | None = None
    statements: list[str] = field(default_factory=list)
    execute_args: list[tuple[Any, ...]] = field(default_factory=list)
    listeners: dict[str, Callable[..., Any]] = field(default_factory=dict)
    termination_listeners: list[Callable[..., Any]] = field(default_factory=list)
    closed: bool = False

    async def execute(self, sql: str, *args: Any) -> str:
        if self.execute_error is not None:
            raise self.execute_error
        self.statements.append(sql)
        self.execute_args.append(args)
        return "SELECT 1"

    async def fetch(self, sql: str) -> list[tuple[Any, ...]]:
        if self.fetch_error is not None:
            raise self.fetch_error
        self.statements.append(sql)
        return list(self.rows)

    async def add_listener(self, channel: str, callback: Callable[..., Any]) -> None:
        if self.listen_error is not None:
            raise self.listen_error
        self.statements.append(f"LISTEN {channel}")
        self.listeners[channel] = callback

    async def remove_listener(self, channel: str, callback: Callable[..., Any]) -> None:  # noqa: ARG002
        self.listeners.pop(channel, None)

    def add_termination_listener(self, callback: Callable[..., Any]) -> None:
        self.termination_listeners.append(callback)

    def remove_termination_listener(self, callback: Callable[..., Any]) -> None:
        if callback in self.termination_listeners:
            self.termination_listeners.remove(callback)

    async def close(self) -> None:
        self.closed = True

    def notify(self, payload: Any, channel: str = "tms") -> None:
        self.listeners[channel](self, 4242, channel, payload)

    def terminate(self) -> None:
        for callback in list(self.termination_listeners):
            callback(self)


@dataclass
class FakeResource:
    """Resource writing one file per fetch and recording each call."""

    name: str
    calls: list[str]
    rows: int = 1
    fail_on_call: int | None = None
    fetches: int = 0

    async def fetch(self, conn: Any, output_dir: Path, sink: ArtifactSink) -> int:  # noqa: ARG002
        self.fetches += 1
        self.calls.append(self.name)
        if self.fail_on_call is not None and self.fetches >= self.fail_on_call:
            raise FetchError(self.name, "view is broken")
        sink.emit(write_atomic(output_dir / self.name, f"{self.name} {self.fetches}\n"))
        return self.rows


@dataclass
class Harness:
    """Listener wired to a fake connection, recording fetch order."""

    listener: ChangeListener
    channel: DispatchChannel
    conn: FakeConnection
    subscription: PostgresNotifySubscription
    resources: dict[str, FakeResource]
    calls: list[str]

    def drain_paths(self) -> list[Path]:
        return self.channel.get_nowait_batch()


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def make_harness(tmp_path: Path) -> Callable[..., Harness]:
    """Factory building a listener over fake resources.

    ``names`` are registered in order; ``fail`` maps a name to the fetch
    number that raises.
    """

    def _make(
        names: tuple[str, ...] = ("incidents", "cameras"),
        *,
        fail: dict[str, int] | None = None,
        conn: FakeConnection | None = None,
        poll_interval: float = 0.05,
    ) -> Harness:
        calls: list[str] = []
        fail = fail or {}
        resources = {name: FakeResource(name, calls, fail_on_call=fail.get(name)) for name in names}
        connection = conn or FakeConnection()

        async def _connect(**kwargs: Any) -> FakeConnection:  # noqa: ARG001
            return connection

        subscription = PostgresNotifySubscription(user="tms", connect=_connect)
        channel = DispatchChannel()
        listener = ChangeListener(
            ResourceRegistry(resources.values()),
            channel,
            subscription=subscription,
            output_dir=tmp_path,
            poll_interval=poll_interval,
        )
        return Harness(listener, channel, connection, subscription, resources, calls)

    return _make
