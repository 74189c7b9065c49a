"""Resources backed by a single SQL query rendered to a JSON file."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import asyncpg

from viewexport.exceptions import FetchError
from viewexport.resources.registry import ArtifactSink

logger = logging.getLogger(__name__)

ARTIFACT_MODE = 0o644


@dataclass(frozen=True, slots=True)
class SqlResource:
    """View exported as a JSON array, one element per query row.

    ``sql`` must return a single text column holding each row already
    encoded as JSON (``row_to_json(r)::text``), so timestamps are rendered
    by the server in the session time zone.
    """

    name: str
    sql: str
    file_name: str | None = None

    @property
    def target_name(self) -> str:
        return self.file_name or self.name

    async def fetch(self, conn: Any, output_dir: Path, sink: ArtifactSink) -> int:
        try:
            rows = await conn.fetch(self.sql)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise FetchError(self.name, str(exc)) from exc
        try:
            path = write_atomic(output_dir / self.target_name, render_json_array(row[0] for row in rows))
        except OSError as exc:
            raise FetchError(self.name, str(exc)) from exc
        sink.emit(path)
        return len(rows)


def render_json_array(rows: Any) -> str:
    """Join pre-encoded JSON rows into one JSON array document."""
    body = ",\n".join(row for row in rows if row is not None)
    if not body:
        return "[]\n"
    return f"[\n{body}\n]\n"


def write_atomic(target: Path, content: str) -> Path:
    """Write ``content`` to ``target`` so readers never see a partial file."""
    target = target.absolute()
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.chmod(tmp_name, ARTIFACT_MODE)
        os.replace(tmp_name, target)
    except OSError:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
    logger.debug("wrote %s (%d bytes)", target, len(content))
    return target
