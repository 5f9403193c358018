"""Periodic thumbnail sampling.

A single speed-first ffmpeg run writes a numbered JPEG sequence into a
scoped workspace; the frames are then read back as inline data URIs.
Tool failures degrade to an empty or partial result and are only logged.
"""

from __future__ import annotations

import base64
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from gifsmith.config import get_ffmpeg_path
from gifsmith.errors import ProcessError, SpawnError
from gifsmith.graph import thumbnail_filter
from gifsmith.models import ThumbnailSet
from gifsmith.process import path_arg, run_tool
from gifsmith.workspace import TempWorkspace

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 5
THUMBNAIL_WIDTH = 320
JPEG_QUALITY = 31           # ffmpeg -q:v scale, 31 is the smallest file
WORKSPACE_PREFIX = "gifsmith-thumbs-"
FRAME_PATTERN = "thumb-%06d.jpg"
MAX_READ_WORKERS = 8


def sample_thumbnails(
    file_path: str | Path,
    duration_s: float,
    interval_s: float = DEFAULT_INTERVAL_S,
    cancel: threading.Event | None = None,
) -> ThumbnailSet:
    """Sample one keyframe every *interval_s* seconds from *file_path*.

    Parameters
    ----------
    file_path:
        Source video.
    duration_s:
        Known duration of the source; when positive it caps the number of
        frames ffmpeg writes. Zero means unknown.
    interval_s:
        Seconds between samples. Floored and clamped to at least 1.
    cancel:
        Optional event; setting it terminates ffmpeg and raises
        ``OperationCancelledError``.

    Returns
    -------
    list[str]
        ``data:image/jpeg;base64,...`` URIs in chronological order. Empty if
        extraction failed entirely.
    """
    interval = clamp_interval(interval_s)

    with TempWorkspace(WORKSPACE_PREFIX) as workspace:
        cmd = build_extract_command(file_path, workspace.path, interval, duration_s)
        try:
            run_tool(cmd, "thumbnails", cancel=cancel)
        except (SpawnError, ProcessError) as exc:
            # Keep whatever frames were written before the failure.
            logger.warning("thumbnails: extraction failed for %s: %s", file_path, exc)

        frames = sorted(workspace.path.glob("*.jpg"), key=lambda p: p.name)
        with ThreadPoolExecutor(max_workers=MAX_READ_WORKERS) as pool:
            thumbnails = list(pool.map(encode_data_uri, frames))

    logger.debug("thumbnails: %d frames from %s", len(thumbnails), file_path)
    return thumbnails


def clamp_interval(interval_s: float) -> int:
    """Floor *interval_s* and never return less than 1."""
    if not math.isfinite(interval_s):
        return 1
    return max(1, math.floor(interval_s))


def build_extract_command(
    file_path: str | Path,
    out_dir: Path,
    interval: int,
    duration_s: float = 0.0,
) -> list[str]:
    cmd = [
        get_ffmpeg_path(),
        "-y",
        "-skip_frame", "nokey",
        "-hwaccel", "auto",
        "-nostdin",
        "-hide_banner",
        "-loglevel", "error",
        "-threads", "0",
        "-an",
        "-i", path_arg(file_path),
        "-map", "0:v:0",
        "-vsync", "passthrough",
        "-vf", thumbnail_filter(interval, THUMBNAIL_WIDTH),
        "-q:v", str(JPEG_QUALITY),
    ]
    if math.isfinite(duration_s) and duration_s > 0:
        cmd += ["-frames:v", str(math.ceil(duration_s / interval) + 1)]
    cmd.append(str(out_dir / FRAME_PATTERN))
    return cmd


def encode_data_uri(frame: Path) -> str:
    b64 = base64.b64encode(frame.read_bytes()).decode("ascii")
    return f"data:image/jpeg;base64,{b64}"
