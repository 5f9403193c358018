"""Scoped temporary directories for frame extraction and export staging."""
import logging
import shutil
import tempfile
from pathlib import Path

from gifsmith.config import get_temp_root

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "gifsmith-"


def acquire(prefix: str = DEFAULT_PREFIX) -> Path:
    """Create a uniquely named directory under the temp root and return it."""
    root = get_temp_root()
    root.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=root))
    logger.debug("workspace: acquired %s", path)
    return path


def release(path: Path) -> None:
    """Remove *path* and everything under it. A missing directory is not an error."""
    shutil.rmtree(path, ignore_errors=True)
    logger.debug("workspace: released %s", path)


class TempWorkspace:
    """Context manager that acquires a workspace on enter and removes it on exit.

    Usage::

        with TempWorkspace("gifsmith-thumbs-") as workspace:
            ...  # workspace.path is a fresh, empty directory

    The directory is removed on every exit path, including exceptions.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix = prefix
        self.path: Path | None = None

    def __enter__(self) -> "TempWorkspace":
        self.path = acquire(self.prefix)
        return self

    def __exit__(self, *_: object) -> None:
        if self.path is not None:
            release(self.path)
            self.path = None
