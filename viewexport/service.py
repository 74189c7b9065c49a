"""Wire the change listener to the mirror and run both until the listener stops."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from viewexport.config.models import ExportConfig
from viewexport.export.adapter import PostgresNotifySubscription, Subscription
from viewexport.export.channel import DispatchChannel
from viewexport.export.listener import OUTPUT_DIR, ChangeListener
from viewexport.mirror import Mirror
from viewexport.resources.catalog import default_registry
from viewexport.resources.registry import ResourceRegistry

logger = logging.getLogger(__name__)


async def start(
    username: str,
    host: str | None = None,
    *,
    config: ExportConfig | None = None,
    registry: ResourceRegistry | None = None,
    subscription: Subscription | None = None,
    output_dir: Path = OUTPUT_DIR,
) -> None:
    """Run the exporter for ``username``; mirror to ``host`` when given.

    Returns only by raising the listener's fatal error. The mirror is always
    allowed to drain what was emitted before the error is re-raised, so the
    supervising caller decides whether to exit or restart.
    """
    config = config or ExportConfig()
    registry = registry or default_registry()
    if subscription is None:
        subscription = PostgresNotifySubscription(
            user=username,
            database=config.database.name,
            socket_dir=config.database.socket_dir,
            timezone=config.database.timezone,
        )
    channel = DispatchChannel()
    mirror = Mirror(
        channel,
        username=username,
        output_dir=output_dir,
        host=host,
        remote_dir=config.mirror.remote_dir,
        rsync_path=config.mirror.rsync_path,
        ssh_options=config.mirror.ssh_options,
        timeout_seconds=config.mirror.timeout_seconds,
    )
    listener = ChangeListener(registry, channel, subscription=subscription, output_dir=output_dir)
    logger.info(
        "starting export of %d resources to %s (%s)",
        len(registry),
        output_dir,
        f"mirror to {host}" if host else "local only",
    )
    mirror_task = asyncio.create_task(mirror.run(), name="viewexport-mirror")
    mirror_task.add_done_callback(_log_mirror_exit)
    try:
        await listener.run()
    except Exception:
        logger.exception("listener stopped after %d fetches", listener.fetch_count)
        raise
    finally:
        await asyncio.gather(mirror_task, return_exceptions=True)


def _log_mirror_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("mirror stopped: %s", exc, exc_info=exc)
