"""ffprobe metadata extraction for the first video stream of a file.

All subprocess errors and malformed ffprobe output are translated into typed
``GifsmithError`` subclasses.
"""

from __future__ import annotations

import json
import logging
import math
import subprocess
from pathlib import Path

from gifsmith.config import get_ffprobe_path
from gifsmith.errors import NoStreamError, ParseError, ProbeError, ProcessError
from gifsmith.models import VideoMetadata
from gifsmith.process import path_arg

logger = logging.getLogger(__name__)

DEFAULT_FRAME_RATE = 30.0

_PORTRAIT_ROTATIONS = {90, 270}


def probe_video(file_path: str | Path) -> VideoMetadata:
    """Return normalized metadata for the first video stream in *file_path*.

    Parameters
    ----------
    file_path:
        Path to the source video file.

    Returns
    -------
    VideoMetadata
        Rotation-corrected dimensions, frame rate and duration.

    Raises
    ------
    ProbeError
        If ffprobe cannot be launched.
    ProcessError
        If ffprobe exits non-zero (its stderr is carried verbatim).
    ParseError
        If the output is not JSON or a required field is malformed.
    NoStreamError
        If the file has no video stream.
    """
    source = Path(file_path)
    cmd = [
        get_ffprobe_path(),
        "-v", "error",
        "-hide_banner",
        "-print_format", "json",
        "-select_streams", "v:0",
        "-show_streams",
        path_arg(source),
    ]
    logger.debug("probe: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        raise ProcessError(cmd, exc.returncode, exc.stderr or "") from exc
    except OSError as exc:
        raise ProbeError(cmd[0], str(exc)) from exc

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ParseError(source, f"ffprobe did not return JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ParseError(source, f"expected a JSON object, got {type(data).__name__}")
    streams = data.get("streams")
    if not streams:
        raise NoStreamError(source)
    if not isinstance(streams, list):
        raise ParseError(source, f"'streams' is {type(streams).__name__}, not a list")

    return parse_stream(streams[0], str(file_path))


def parse_stream(stream: dict, file_path: str) -> VideoMetadata:
    """Normalize one raw ffprobe stream object into :class:`VideoMetadata`.

    Raises ParseError if the stream or its tags are not objects, if
    width/height are missing or not positive integers, or if the frame rate
    or duration fields have the wrong type.
    """
    source = Path(file_path)
    if not isinstance(stream, dict):
        raise ParseError(source, f"stream entry is {type(stream).__name__}, not an object")
    tags = stream.get("tags") or {}
    if not isinstance(tags, dict):
        raise ParseError(source, f"'tags' is {type(tags).__name__}, not an object")

    try:
        width = int(stream["width"])
        height = int(stream["height"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(source, f"missing or invalid frame size: {exc}") from exc
    if width <= 0 or height <= 0:
        raise ParseError(source, f"non-positive frame size {width}x{height}")

    if _rotation(stream, tags) in _PORTRAIT_ROTATIONS:
        width, height = height, width

    aspect_ratio = stream.get("display_aspect_ratio") or _reduced_ratio(width, height)

    raw_rate = stream.get("r_frame_rate")
    if raw_rate is not None and not isinstance(raw_rate, str):
        raise ParseError(source, f"r_frame_rate is {type(raw_rate).__name__}, not an 'N/D' string")

    return VideoMetadata(
        file_path=file_path,
        width=width,
        height=height,
        aspect_ratio=str(aspect_ratio),
        frame_rate=parse_frame_rate(raw_rate),
        duration=_duration(stream, tags, source),
    )


def parse_frame_rate(value: str | None) -> float:
    """Parse an "N/D" fraction. Falls back to 30 when it is not a usable fraction."""
    parts = (value or "").split("/")
    if len(parts) < 2:
        return DEFAULT_FRAME_RATE
    try:
        rate = float(parts[0]) / float(parts[1])
    except (ValueError, ZeroDivisionError):
        return DEFAULT_FRAME_RATE
    if not math.isfinite(rate) or rate <= 0:
        return DEFAULT_FRAME_RATE
    return rate


def parse_hms(value: str) -> float:
    """Convert "H:MM:SS[.frac]" into seconds."""
    hours, minutes, seconds = value.strip().split(":")
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _rotation(stream: dict, tags: dict) -> int:
    """Return the clockwise rotation in degrees.

    A ``rotate`` tag is taken literally. The display-matrix rotation reported
    by newer ffprobe builds is signed (portrait video reads -90), so it is
    normalized to [0, 360).
    """
    raw = tags.get("rotate")
    if raw is not None:
        return _degrees(raw)

    side_data_list = stream.get("side_data_list")
    if not isinstance(side_data_list, list):
        return 0
    for side_data in side_data_list:
        if isinstance(side_data, dict) and "rotation" in side_data:
            return _degrees(side_data["rotation"]) % 360
    return 0


def _degrees(raw: object) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return 0


def _duration(stream: dict, tags: dict, source: Path) -> float:
    raw = stream.get("duration")
    try:
        if raw not in (None, ""):
            return max(float(raw), 0.0)
        tag = tags.get("DURATION")
        if tag:
            return parse_hms(tag)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ParseError(source, f"invalid duration: {exc}") from exc
    return 0.0


def _reduced_ratio(width: int, height: int) -> str:
    divisor = math.gcd(width, height)
    return f"{width // divisor}:{height // divisor}"
