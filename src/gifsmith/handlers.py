"""Request handlers for the UI layer.

Each handler corresponds to one request the UI sends: opening a video
(metadata plus thumbnails) and exporting a GIF. Export failures are
returned as data rather than raised so they can cross a process boundary.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gifsmith.errors import GifsmithError
from gifsmith.export import export_animated_image
from gifsmith.models import ThumbnailSet, VideoMetadata
from gifsmith.options import ExportOptions
from gifsmith.probe import probe_video
from gifsmith.thumbnails import sample_thumbnails

logger = logging.getLogger(__name__)

SUPPORTED_VIDEO_EXTENSIONS = frozenset({".mp4", ".m4v", ".mov", ".webm"})


@dataclass
class OpenedVideo:
    metadata: VideoMetadata
    thumbnails: ThumbnailSet


@dataclass
class ExportResult:
    success: bool
    output_path: Optional[str] = None
    error: Optional[str] = None


def open_video(file_path: str | Path, cancel: threading.Event | None = None) -> OpenedVideo:
    """Probe *file_path* and sample thumbnails across its probed duration.

    Probe errors propagate; thumbnail failures yield an empty list.
    """
    metadata = probe_video(file_path)
    thumbnails = sample_thumbnails(file_path, metadata.duration, cancel=cancel)
    return OpenedVideo(metadata=metadata, thumbnails=thumbnails)


def default_export_path(directory: Path | None = None) -> Path:
    """export-<epoch ms>.gif in *directory* (default: current directory)."""
    base = directory if directory is not None else Path.cwd()
    return base / f"export-{int(time.time() * 1000)}.gif"


def export_gif(
    options: ExportOptions,
    destination: str | Path | None = None,
    cancel: threading.Event | None = None,
    source: VideoMetadata | None = None,
) -> ExportResult:
    """Run an export and report the outcome as an ExportResult. Never raises GifsmithError.

    When *source* is not given and a crop is requested, the input is probed
    first so the crop is checked against the real frame size.
    """
    target = Path(destination) if destination is not None else default_export_path()
    try:
        if source is None and options.crop is not None:
            source = probe_video(options.input_path)
        output = export_animated_image(options, target, cancel=cancel, source=source)
    except GifsmithError as exc:
        logger.warning("export_gif: %s", exc)
        return ExportResult(success=False, error=str(exc))
    return ExportResult(success=True, output_path=str(output))
