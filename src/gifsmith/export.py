"""Two-process palette GIF export.

Process A generates an optimized palette and streams it as PNG on stdout.
Process B reads the same time window plus A's stdout (connected live through
an OS pipe) and applies the palette to produce the GIF. Both exit codes are
checked; the earliest failing stage is reported with the stderr of both
processes attached.
"""

from __future__ import annotations

import logging
import math
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gifsmith.config import get_ffmpeg_path
from gifsmith.errors import ExportError, OperationCancelledError, SpawnError, ValidationError
from gifsmith.graph import encode_filter_complex, palette_filter
from gifsmith.models import VideoMetadata
from gifsmith.options import ExportOptions
from gifsmith.process import POLL_INTERVAL_S, StreamCollector, path_arg, spawn, terminate
from gifsmith.workspace import TempWorkspace

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "gifsmith-export-"
STAGED_NAME = "export.gif"


class ExportStage(str, Enum):
    PALETTE = "palette"
    ENCODE = "encode"


class ExportState(str, Enum):
    GENERATING_PALETTE = "generating_palette"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineStatus:
    """State machine driven by the exit codes of the two processes.

    GENERATING_PALETTE -> ENCODING -> DONE, or FAILED from either running
    state. FAILED and DONE are terminal; once FAILED, later exit codes (for
    example from terminating the counterpart) do not move the blame.
    """

    state: ExportState = ExportState.GENERATING_PALETTE
    failed_stage: ExportStage | None = None
    palette_returncode: int | None = None
    encode_returncode: int | None = None

    @property
    def finished(self) -> bool:
        return self.state in (ExportState.DONE, ExportState.FAILED)

    def observe(self, palette_rc: int | None, encode_rc: int | None) -> None:
        if self.finished:
            return
        self.palette_returncode = palette_rc
        self.encode_returncode = encode_rc

        # Palette is upstream: when both have failed it is the earliest stage.
        if palette_rc is not None and palette_rc != 0:
            self._fail(ExportStage.PALETTE)
        elif encode_rc is not None and encode_rc != 0:
            self._fail(ExportStage.ENCODE)
        elif palette_rc == 0 and encode_rc == 0:
            self.state = ExportState.DONE
        elif palette_rc == 0:
            self.state = ExportState.ENCODING

    @property
    def failed_returncode(self) -> int | None:
        if self.failed_stage is ExportStage.PALETTE:
            return self.palette_returncode
        if self.failed_stage is ExportStage.ENCODE:
            return self.encode_returncode
        return None

    def _fail(self, stage: ExportStage) -> None:
        self.state = ExportState.FAILED
        self.failed_stage = stage


class PalettePipeline:
    """Runs the palette generator and the encoder concurrently.

    Usage::

        pipeline = PalettePipeline(options, output_path)
        status = pipeline.run()
        if status.state is ExportState.FAILED:
            print(pipeline.diagnostics)

    ``run`` returns only after both processes have exited; on early failure
    or cancellation the still-running counterpart is terminated.
    """

    def __init__(
        self,
        options: ExportOptions,
        output_path: Path,
        cancel: threading.Event | None = None,
    ) -> None:
        self.options = options
        self.output_path = output_path
        self.cancel = cancel
        self.status = PipelineStatus()
        self._collectors: list[StreamCollector] = []

    @property
    def diagnostics(self) -> str:
        """stderr of the palette generator followed by the encoder's."""
        return "".join(c.text for c in self._collectors)

    def palette_command(self) -> list[str]:
        return [
            get_ffmpeg_path(),
            "-hide_banner",
            "-nostdin",
            "-y",
            *self._window_input(),
            "-vf", palette_filter(self.options),
            "-f", "image2pipe",
            "-vcodec", "png",
            "-",
        ]

    def encode_command(self) -> list[str]:
        return [
            get_ffmpeg_path(),
            "-hide_banner",
            "-y",
            *self._window_input(),
            "-f", "png_pipe",
            "-i", "-",
            "-filter_complex", encode_filter_complex(self.options),
            path_arg(self.output_path),
        ]

    def run(self) -> PipelineStatus:
        palette = spawn(
            self.palette_command(),
            ExportStage.PALETTE.value,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        try:
            encoder = spawn(
                self.encode_command(),
                ExportStage.ENCODE.value,
                stdin=palette.stdout,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except SpawnError:
            terminate(palette)
            palette.communicate()
            raise

        # The encoder holds the read end now; closing ours lets the palette
        # process see EPIPE if the encoder dies.
        palette.stdout.close()

        self._collectors = [
            StreamCollector(palette.stderr, "palette-stderr"),
            StreamCollector(encoder.stderr, "encode-stderr"),
        ]
        for collector in self._collectors:
            collector.start()

        try:
            self._supervise(palette, encoder)
        finally:
            terminate(palette)
            terminate(encoder)
            for collector in self._collectors:
                collector.join()

        return self.status

    def _supervise(self, palette: subprocess.Popen, encoder: subprocess.Popen) -> None:
        while True:
            if self.cancel is not None and self.cancel.is_set():
                raise OperationCancelledError("export")
            self.status.observe(palette.poll(), encoder.poll())
            if self.status.finished:
                return
            time.sleep(POLL_INTERVAL_S)

    def _window_input(self) -> list[str]:
        return [
            "-ss", _seconds(self.options.start_time),
            "-t", _seconds(self.options.duration),
            "-i", path_arg(self.options.input_path),
        ]


def validate_options(
    options: ExportOptions,
    destination: Path,
    source: VideoMetadata | None = None,
) -> None:
    """Reject option combinations that cannot produce a GIF.

    Raises:
        ValidationError: non-positive time window, crop outside the source
            frame, start past the end of the source, a destination that is a
            directory, or a destination whose directory does not exist.
    """
    duration = options.duration
    if not math.isfinite(duration) or duration <= 0:
        raise ValidationError(
            f"end_time ({options.end_time}) must be > start_time ({options.start_time})"
        )
    if destination.is_dir():
        raise ValidationError(f"destination '{destination}' is a directory, not a file path")
    if not destination.parent.is_dir():
        raise ValidationError(f"destination directory '{destination.parent}' does not exist")
    if source is None:
        return
    if source.duration > 0 and options.start_time >= source.duration:
        raise ValidationError(
            f"start_time ({options.start_time}) is past the end of the video ({source.duration})"
        )
    crop = options.crop
    if crop is not None and not crop.fits_within(source.width, source.height):
        raise ValidationError(
            f"crop {crop.width}x{crop.height}+{crop.x}+{crop.y} exceeds the "
            f"{source.width}x{source.height} source frame"
        )


def export_animated_image(
    options: ExportOptions,
    destination: str | Path,
    cancel: threading.Event | None = None,
    source: VideoMetadata | None = None,
) -> Path:
    """Export the selected window of ``options.input_path`` as a GIF.

    Args:
        options: Time window, size, frame rate, quality and optional crop.
        destination: Where the GIF is written; chosen by the caller.
        cancel: Optional event; setting it terminates both processes.
        source: Probed metadata, enables crop-bounds validation.

    Returns:
        *destination* as a Path, once a non-empty GIF has been written there.

    Raises:
        ValidationError: before anything is spawned, see validate_options().
        SpawnError: ffmpeg could not be launched; ``stage`` names the process.
        ExportError: a process exited nonzero, the GIF is empty, or it could
            not be moved to *destination*.
        OperationCancelledError: *cancel* was set.
    """
    destination = Path(destination)
    validate_options(options, destination, source)

    # Encode into a private workspace so a failed run never leaves a partial
    # file at the destination.
    with TempWorkspace(WORKSPACE_PREFIX) as workspace:
        staged = workspace.path / STAGED_NAME
        pipeline = PalettePipeline(options, staged, cancel)
        status = pipeline.run()

        if status.state is ExportState.FAILED:
            raise ExportError(
                status.failed_stage.value,
                status.failed_returncode,
                pipeline.diagnostics,
            )
        if not staged.exists() or staged.stat().st_size == 0:
            raise ExportError(
                ExportStage.ENCODE.value,
                status.encode_returncode,
                pipeline.diagnostics or "encoder exited cleanly but wrote no output",
            )
        try:
            shutil.move(str(staged), str(destination))
        except OSError as exc:
            raise ExportError(
                ExportStage.ENCODE.value,
                status.encode_returncode,
                f"could not move the finished GIF to '{destination}': {exc}",
            ) from exc

    logger.info(
        "export: wrote %s (%.2fs-%.2fs, %dpx, %dfps, %s)",
        destination,
        options.start_time,
        options.end_time,
        options.width,
        options.fps,
        options.quality.value,
    )
    return destination


def _seconds(value: float) -> str:
    return f"{value:.3f}"
