from pathlib import Path


class GifsmithError(Exception):
    """Base class for all gifsmith errors."""


class SpawnError(GifsmithError):
    def __init__(self, executable: str, stage: str, detail: str) -> None:
        super().__init__(
            f"Could not launch '{executable}' for the {stage} stage.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is FFmpeg installed and in PATH?\n"
            f"  Tip: Set GIFSMITH_FFMPEG / GIFSMITH_FFPROBE to point at the executables."
        )
        self.executable = executable
        self.stage = stage
        self.detail = detail


class ProbeError(SpawnError):
    def __init__(self, executable: str, detail: str) -> None:
        super().__init__(executable, "probe", detail)


class ProcessError(GifsmithError):
    def __init__(self, cmd: list[str], returncode: int, stderr: str) -> None:
        super().__init__(
            f"'{Path(cmd[0]).name}' exited with code {returncode}.\n"
            f"  Cause: {stderr.strip() or '(no diagnostic output)'}\n"
            f"  Tip: Run the command manually to reproduce: {' '.join(cmd)}"
        )
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class ParseError(GifsmithError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Could not parse ffprobe output for '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Tip: Run `ffprobe -print_format json -show_streams '{path}'` to inspect the raw output."
        )
        self.path = path
        self.detail = detail


class NoStreamError(GifsmithError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            f"'{path.name}' contains no video stream.\n"
            f"  Check: Is this an audio-only or otherwise non-video file?"
        )
        self.path = path


class ValidationError(GifsmithError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid export options.\n  Cause: {detail}")
        self.detail = detail


class ExportError(GifsmithError):
    def __init__(self, stage: str, returncode: int | None, diagnostics: str) -> None:
        code = "n/a" if returncode is None else str(returncode)
        super().__init__(
            f"GIF export failed during the {stage} stage (exit code {code}).\n"
            f"  Cause: {diagnostics.strip() or '(no diagnostic output)'}\n"
            f"  Check: Is the source readable and does the time range lie inside the video?"
        )
        self.stage = stage
        self.returncode = returncode
        self.diagnostics = diagnostics


class OperationCancelledError(GifsmithError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"The {operation} operation was cancelled.")
        self.operation = operation
