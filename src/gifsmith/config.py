"""Environment-driven settings for the external tools and temp storage."""
import os
import tempfile
from pathlib import Path

FFMPEG_ENV = "GIFSMITH_FFMPEG"
FFPROBE_ENV = "GIFSMITH_FFPROBE"
TMPDIR_ENV = "GIFSMITH_TMPDIR"


def get_ffmpeg_path() -> str:
    """Return the ffmpeg executable, honouring GIFSMITH_FFMPEG."""
    return os.environ.get(FFMPEG_ENV) or "ffmpeg"


def get_ffprobe_path() -> str:
    """Return the ffprobe executable, honouring GIFSMITH_FFPROBE."""
    return os.environ.get(FFPROBE_ENV) or "ffprobe"


def get_temp_root() -> Path:
    """Return the directory workspaces are created under.

    Respects the GIFSMITH_TMPDIR environment variable.
    Falls back to the system temp directory when the variable is not set.
    """
    env_val = os.environ.get(TMPDIR_ENV)
    if env_val:
        return Path(env_val).expanduser().resolve()
    return Path(tempfile.gettempdir())
