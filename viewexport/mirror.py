"""Downstream consumer that mirrors exported artifacts to a remote host."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from viewexport.exceptions import MirrorError
from viewexport.export.channel import DispatchChannel

logger = logging.getLogger(__name__)

BACKLOG_WARNING = 100


class Mirror:
    """Drain the dispatch channel at its own pace.

    Without a host every path is simply consumed (local-only mode). With a
    host, each batch of queued paths is pushed with rsync over ssh. A failed
    transfer is logged and the next batch is still attempted.
    """

    def __init__(
        self,
        channel: DispatchChannel,
        *,
        username: str,
        output_dir: Path,
        host: str | None = None,
        remote_dir: str = "/var/www/html/iris/",
        rsync_path: str = "rsync",
        ssh_options: Sequence[str] = (),
        timeout_seconds: float = 60.0,
    ) -> None:
        self._channel = channel
        self._username = username
        self._output_dir = output_dir
        self._host = host
        self._remote_dir = remote_dir
        self._rsync_path = rsync_path
        self._ssh_options = list(ssh_options)
        self._timeout_seconds = timeout_seconds
        self.mirrored = 0
        self.failed_batches = 0

    @property
    def host(self) -> str | None:
        return self._host

    async def run(self) -> None:
        """Consume until the producer closes the channel."""
        while True:
            first = await self._channel.get()
            if first is None:
                break
            batch = _unique([first, *self._channel.get_nowait_batch()])
            backlog = self._channel.qsize()
            if backlog > BACKLOG_WARNING:
                logger.warning("mirror backlog at %d paths", backlog)
            if self._host is None:
                for path in batch:
                    logger.debug("local only: %s", path)
                continue
            try:
                await self.push(batch)
            except MirrorError as exc:
                self.failed_batches += 1
                logger.error("%s", exc)
        logger.info("mirror finished: end of stream")

    async def push(self, paths: list[Path]) -> None:
        """Copy ``paths`` to the remote host, keeping their layout under output_dir."""
        args = self.build_rsync_args(paths)
        if self._host is None or not args:
            return
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise MirrorError(self._host, -1, str(exc)) from exc
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout_seconds)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise MirrorError(self._host, -1, f"timed out after {self._timeout_seconds}s") from exc
        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise MirrorError(self._host, proc.returncode or -1, message)
        self.mirrored += len(paths)
        logger.info("mirrored %d files to %s", len(paths), self._host)

    def build_rsync_args(self, paths: list[Path]) -> list[str]:
        """rsync command line for ``paths``; empty when none are under output_dir."""
        sources: list[str] = []
        for path in paths:
            try:
                relative = path.relative_to(self._output_dir)
            except ValueError:
                logger.warning("not mirroring %s: outside %s", path, self._output_dir)
                continue
            sources.append(f"{self._output_dir}/./{relative}")
        if not sources:
            return []
        ssh = " ".join(["ssh", *self._ssh_options, "-l", self._username])
        destination = f"{self._username}@{self._host}:{self._remote_dir}"
        return [self._rsync_path, "--times", "--relative", "-e", ssh, *sources, destination]


def _unique(paths: list[Path]) -> list[Path]:
    return list(dict.fromkeys(paths))
