from dataclasses import dataclass


@dataclass
class VideoMetadata:
    """Normalized metadata for the first video stream of a file."""

    file_path: str
    width: int          # Rotation-corrected
    height: int         # Rotation-corrected
    aspect_ratio: str   # "W:H", verbatim from ffprobe's display_aspect_ratio
    frame_rate: float   # Always finite and positive
    duration: float     # Seconds, >= 0


# Chronological list of "data:image/jpeg;base64,..." URIs.
ThumbnailSet = list[str]
