"""Single-producer/single-consumer hand-off of artifact paths."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

from viewexport.exceptions import ChannelClosedError

_END_OF_STREAM = object()


class DispatchChannel:
    """Unbounded ordered queue from the listener to the mirror.

    ``emit`` never blocks and there is no back-pressure: a slow consumer
    lets the backlog grow. ``close`` marks end of stream; the consumer sees
    every path emitted before it and then ``None``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, path: Path) -> None:
        if self._closed:
            raise ChannelClosedError(f"cannot emit {path}: channel closed")
        self._queue.put_nowait(path)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    def qsize(self) -> int:
        """Paths waiting to be consumed."""
        return self._queue.qsize() - (1 if self._closed and not self._finished else 0)

    async def get(self) -> Path | None:
        """Next path in emission order, or None once the stream has ended."""
        if self._finished:
            return None
        item = await self._queue.get()
        if item is _END_OF_STREAM:
            self._finished = True
            return None
        return item  # type: ignore[return-value]

    def get_nowait_batch(self) -> list[Path]:
        """Every path already queued, without waiting."""
        batch: list[Path] = []
        while not self._finished:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is _END_OF_STREAM:
                self._finished = True
                break
            batch.append(item)  # type: ignore[arg-type]
        return batch

    @property
    def finished(self) -> bool:
        """True once the consumer has observed end of stream."""
        return self._finished

    def __aiter__(self) -> AsyncIterator[Path]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Path]:
        while True:
            path = await self.get()
            if path is None:
                return
            yield path
