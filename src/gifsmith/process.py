"""Launching, supervising and stopping ffmpeg/ffprobe subprocesses."""
from __future__ import annotations

import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from typing import IO

from gifsmith.errors import OperationCancelledError, ProcessError, SpawnError

logger = logging.getLogger(__name__)

# Grace period between SIGTERM and SIGKILL.
TERMINATE_TIMEOUT_S = 5.0

# How often a blocked caller checks its cancel event.
POLL_INTERVAL_S = 0.1


@dataclass
class ToolResult:
    returncode: int
    stdout: bytes
    stderr: str


def path_arg(path: str | os.PathLike) -> str:
    """Render a file path for the tool's argument list.

    Absolute paths never start with "-", so a file such as "-y.mp4" cannot be
    mistaken for an option.
    """
    return os.path.abspath(os.fspath(path))


def spawn(cmd: list[str], stage: str, **popen_kwargs) -> subprocess.Popen:
    """Start *cmd*, translating launch failures into SpawnError tagged with *stage*."""
    logger.debug("%s: %s", stage, " ".join(cmd))
    try:
        return subprocess.Popen(cmd, **popen_kwargs)
    except OSError as exc:
        raise SpawnError(cmd[0], stage, str(exc)) from exc


def terminate(process: subprocess.Popen) -> None:
    """Stop *process* gracefully (SIGTERM, then SIGKILL on timeout)."""
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_TIMEOUT_S)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def run_tool(
    cmd: list[str],
    stage: str,
    cancel: threading.Event | None = None,
    check: bool = True,
) -> ToolResult:
    """Run *cmd* to completion, capturing stdout and stderr.

    Raises:
        SpawnError: the executable could not be launched.
        ProcessError: the tool exited nonzero and *check* is true.
        OperationCancelledError: *cancel* was set before the tool exited.
    """
    process = spawn(
        cmd,
        stage,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    while True:
        if cancel is not None and cancel.is_set():
            terminate(process)
            process.communicate()
            raise OperationCancelledError(stage)
        try:
            stdout, stderr = process.communicate(timeout=POLL_INTERVAL_S)
            break
        except subprocess.TimeoutExpired:
            # Retrying communicate() loses no output.
            continue

    result = ToolResult(
        returncode=process.returncode,
        stdout=stdout,
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if check and result.returncode != 0:
        raise ProcessError(cmd, result.returncode, result.stderr)
    return result


class StreamCollector(threading.Thread):
    """Drain a binary stream on a background thread into an in-memory buffer."""

    def __init__(self, stream: IO[bytes], name: str) -> None:
        super().__init__(name=name, daemon=True)
        self._stream = stream
        self._chunks: list[bytes] = []

    def run(self) -> None:
        with self._stream:
            for chunk in iter(lambda: self._stream.read(4096), b""):
                self._chunks.append(chunk)

    @property
    def text(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")
