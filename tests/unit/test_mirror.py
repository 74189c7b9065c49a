from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import pytest

from viewexport.exceptions import MirrorError
from viewexport.export import DispatchChannel
from viewexport.mirror import Mirror
from viewexport.resources import SqlResource

OUT = Path("/var/www/html/iris")


class _Proc:
    def __init__(self, returncode: int, stderr: bytes = b"") -> None:
        self.returncode = returncode
        self._stderr = stderr

    async def communicate(self) -> tuple[bytes, bytes]:
        return b"", self._stderr


def _patch_exec(monkeypatch: pytest.MonkeyPatch, results: list[_Proc]) -> list[tuple[Any, ...]]:
    calls: list[tuple[Any, ...]] = []

    async def _exec(*args: Any, **kwargs: Any) -> _Proc:  # noqa: ARG001
        calls.append(args)
        return results.pop(0)

    monkeypatch.setattr("viewexport.mirror.asyncio.create_subprocess_exec", _exec)
    return calls


@pytest.mark.asyncio
async def test_local_only_mirror_drains_until_end_of_stream() -> None:
    channel = DispatchChannel()
    mirror = Mirror(channel, username="tms", output_dir=OUT)
    task = asyncio.create_task(mirror.run())
    channel.emit(OUT / "incident")
    channel.emit(OUT / "camera_pub")
    channel.close()
    await asyncio.wait_for(task, timeout=1)
    assert channel.finished
    assert mirror.mirrored == 0


def test_rsync_args_keep_layout_relative_to_output_dir() -> None:
    mirror = Mirror(
        DispatchChannel(),
        username="tms",
        output_dir=OUT,
        host="web1",
        remote_dir="/srv/iris/",
        ssh_options=["-o", "BatchMode=yes"],
    )
    args = mirror.build_rsync_args([OUT / "incident", OUT / "gis" / "dms_pub", Path("/etc/passwd")])
    assert args == [
        "rsync",
        "--times",
        "--relative",
        "-e",
        "ssh -o BatchMode=yes -l tms",
        "/var/www/html/iris/./incident",
        "/var/www/html/iris/./gis/dms_pub",
        "tms@web1:/srv/iris/",
    ]
    assert mirror.build_rsync_args([Path("/tmp/other")]) == []


@pytest.mark.asyncio
async def test_mirror_batches_and_deduplicates_queued_paths(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_exec(monkeypatch, [_Proc(0)])
    channel = DispatchChannel()
    for name in ("incident", "camera_pub", "incident"):
        channel.emit(OUT / name)
    channel.close()

    mirror = Mirror(channel, username="tms", output_dir=OUT, host="web1")
    await mirror.run()

    assert len(calls) == 1
    assert [a for a in calls[0] if a.startswith(str(OUT))] == [
        "/var/www/html/iris/./incident",
        "/var/www/html/iris/./camera_pub",
    ]
    assert mirror.mirrored == 2


@pytest.mark.asyncio
async def test_failed_transfer_is_logged_and_mirror_continues(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    calls = _patch_exec(monkeypatch, [_Proc(12, b"connection unexpectedly closed"), _Proc(0)])
    channel = DispatchChannel()
    mirror = Mirror(channel, username="tms", output_dir=OUT, host="web1")
    with caplog.at_level(logging.ERROR, logger="viewexport.mirror"):
        task = asyncio.create_task(mirror.run())
        channel.emit(OUT / "incident")
        await asyncio.sleep(0.01)
        channel.emit(OUT / "dms_pub")
        channel.close()
        await asyncio.wait_for(task, timeout=1)

    assert len(calls) == 2
    assert mirror.failed_batches == 1
    assert mirror.mirrored == 1
    assert "connection unexpectedly closed" in caplog.text


@pytest.mark.asyncio
async def test_missing_rsync_binary_raises_mirror_error() -> None:
    mirror = Mirror(
        DispatchChannel(),
        username="tms",
        output_dir=OUT,
        host="web1",
        rsync_path="/nonexistent/rsync-binary",
    )
    with pytest.raises(MirrorError) as exc_info:
        await mirror.push([OUT / "incident"])
    assert exc_info.value.host == "web1"


@pytest.mark.asyncio
async def test_symlinked_output_dir_is_still_mirrored(tmp_path: Path, fake_connection) -> None:
    real = tmp_path / "real"
    real.mkdir()
    iris = tmp_path / "iris"
    iris.symlink_to(real, target_is_directory=True)
    fake_connection.rows = [('{"name": "I-94 WB"}',)]
    channel = DispatchChannel()

    await SqlResource("incidents", "SELECT 1", file_name="incident").fetch(fake_connection, iris, channel)
    paths = channel.get_nowait_batch()

    assert paths == [iris / "incident"]
    assert (real / "incident").is_file()
    mirror = Mirror(channel, username="tms", output_dir=iris, host="web1")
    args = mirror.build_rsync_args(paths)
    assert f"{iris}/./incident" in args
    assert args[-1] == "tms@web1:/var/www/html/iris/"
