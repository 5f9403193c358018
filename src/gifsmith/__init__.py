"""gifsmith: FFmpeg-driven video probing, thumbnail sampling and GIF export."""
from gifsmith.errors import (
    ExportError,
    GifsmithError,
    NoStreamError,
    OperationCancelledError,
    ParseError,
    ProbeError,
    ProcessError,
    SpawnError,
    ValidationError,
)
from gifsmith.export import export_animated_image
from gifsmith.models import ThumbnailSet, VideoMetadata
from gifsmith.options import CropRegion, ExportOptions, Quality, QUALITY_PRESETS
from gifsmith.probe import probe_video
from gifsmith.thumbnails import sample_thumbnails

__all__ = [
    "CropRegion",
    "ExportError",
    "ExportOptions",
    "GifsmithError",
    "NoStreamError",
    "OperationCancelledError",
    "ParseError",
    "ProbeError",
    "ProcessError",
    "QUALITY_PRESETS",
    "Quality",
    "SpawnError",
    "ThumbnailSet",
    "ValidationError",
    "VideoMetadata",
    "export_animated_image",
    "probe_video",
    "sample_thumbnails",
]
