"""gifsmith CLI entry point.

Exposes the probe, thumbnail and GIF export operations as ``gifsmith``
sub-commands with Rich output and human-readable error panels.
"""

import base64
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from gifsmith.errors import GifsmithError
from gifsmith.export import export_animated_image
from gifsmith.handlers import SUPPORTED_VIDEO_EXTENSIONS, default_export_path
from gifsmith.options import (
    DEFAULT_FPS,
    DEFAULT_WIDTH,
    CropRegion,
    ExportOptions,
    Quality,
    load_export_options,
)
from gifsmith.probe import probe_video
from gifsmith.thumbnails import DEFAULT_INTERVAL_S, sample_thumbnails

app = typer.Typer(
    name="gifsmith",
    help="gifsmith: inspect videos, sample thumbnails and export palette-optimized GIFs.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _input_error(message: str) -> None:
    err_console.print(Panel(message, title="[red]Input Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _pipeline_error(exc: GifsmithError) -> None:
    # Typed errors become a panel, never a traceback.
    err_console.print(Panel(str(exc), title="[red]Pipeline Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _check_video(video: Path) -> None:
    """Extension check first, then existence, so bad input always gets our panel."""
    if video.suffix.lower() not in SUPPORTED_VIDEO_EXTENSIONS:
        _input_error(
            f"Unsupported video format: [bold]{video.suffix}[/bold]\n"
            f"Supported formats: {', '.join(sorted(SUPPORTED_VIDEO_EXTENSIONS))}"
        )
    if not video.exists():
        _input_error(
            f"File not found: [bold]{video}[/bold]\n"
            f"Check that the path is correct and the file is accessible."
        )


def _parse_crop(value: str) -> CropRegion:
    parts = value.split(",")
    if len(parts) != 4:
        _input_error(f"Crop must be X,Y,WIDTH,HEIGHT, got [bold]{value}[/bold]")
    try:
        x, y, width, height = (int(p) for p in parts)
        return CropRegion(x=x, y=y, width=width, height=height)
    except (ValueError, PydanticValidationError):
        _input_error(f"Invalid crop rectangle: [bold]{value}[/bold]")


def _run_export(options: ExportOptions, output: Optional[Path]) -> None:
    destination = output if output is not None else default_export_path()
    try:
        source = probe_video(options.input_path)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Generating palette and encoding GIF...", total=None)
            written = export_animated_image(options, destination, source=source)
    except GifsmithError as e:
        _pipeline_error(e)

    size_kib = written.stat().st_size / 1024
    console.print(Panel(
        f"[bold green]Export complete[/bold green]\n\n"
        f"  Output:  [dim]{written}[/dim]\n"
        f"  Window:  {options.start_time:.2f}s to {options.end_time:.2f}s\n"
        f"  Size:    {options.width}px @ {options.fps}fps, {options.quality.value} quality\n"
        f"  File:    {size_kib:.1f} KiB",
        title="[green]GIF Ready[/green]",
        border_style="green",
    ))


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log ffmpeg command lines and progress details."),
    ] = False,
) -> None:
    """Inspect videos and export GIFs with FFmpeg."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def probe(
    video: Annotated[Path, typer.Argument(help="Input video file.")],
) -> None:
    """Print normalized metadata for the first video stream."""
    _check_video(video)
    try:
        metadata = probe_video(video)
    except GifsmithError as e:
        _pipeline_error(e)

    table = Table(title=video.name, show_header=False)
    table.add_row("Size", f"{metadata.width}x{metadata.height}")
    table.add_row("Aspect ratio", metadata.aspect_ratio)
    table.add_row("Frame rate", f"{metadata.frame_rate:.3f} fps")
    table.add_row("Duration", f"{metadata.duration:.3f} s")
    console.print(table)


@app.command()
def thumbnails(
    video: Annotated[Path, typer.Argument(help="Input video file.")],
    interval: Annotated[
        float,
        typer.Option("--interval", "-i", help="Seconds between thumbnails (minimum 1)."),
    ] = DEFAULT_INTERVAL_S,
    out_dir: Annotated[
        Optional[Path],
        typer.Option("--out-dir", "-o", file_okay=False, help="Write thumbnails here as JPEG files."),
    ] = None,
) -> None:
    """Sample one keyframe every INTERVAL seconds."""
    _check_video(video)
    try:
        metadata = probe_video(video)
    except GifsmithError as e:
        _pipeline_error(e)

    uris = sample_thumbnails(video, metadata.duration, interval)
    if not uris:
        console.print("[yellow]No thumbnails could be extracted.[/yellow]")
        return

    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)
        for i, uri in enumerate(uris, start=1):
            payload = uri.split(",", 1)[1]
            (out_dir / f"thumb-{i:06d}.jpg").write_bytes(base64.b64decode(payload))
        console.print(f"[green]{len(uris)} thumbnails written to[/green] [dim]{out_dir}[/dim]")
    else:
        console.print(f"[green]{len(uris)} thumbnails sampled[/green] from {video.name}")


@app.command()
def export(
    video: Annotated[Path, typer.Argument(help="Input video file.")],
    start: Annotated[float, typer.Option("--start", "-s", help="Start time in seconds.")],
    end: Annotated[float, typer.Option("--end", "-e", help="End time in seconds.")],
    width: Annotated[int, typer.Option("--width", "-w", help="Output width in pixels.")] = DEFAULT_WIDTH,
    fps: Annotated[int, typer.Option("--fps", help="Output frame rate.")] = DEFAULT_FPS,
    quality: Annotated[Quality, typer.Option("--quality", "-q", help="Palette quality.")] = Quality.MEDIUM,
    crop: Annotated[
        Optional[str],
        typer.Option("--crop", help="Crop rectangle X,Y,WIDTH,HEIGHT in source pixels."),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", dir_okay=False, help="Destination GIF (default: export-<ms>.gif)."),
    ] = None,
) -> None:
    """Export START..END of VIDEO as a GIF."""
    _check_video(video)
    region = _parse_crop(crop) if crop is not None else None
    try:
        options = ExportOptions(
            input_path=str(video),
            start_time=start,
            end_time=end,
            width=width,
            fps=fps,
            quality=quality,
            crop=region,
        )
    except PydanticValidationError as e:
        _input_error("; ".join(f"{err['loc'][0]}: {err['msg']}" for err in e.errors()))

    _run_export(options, output)


@app.command("export-file")
def export_file(
    options_file: Annotated[Path, typer.Argument(help="JSON file with export options.")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", dir_okay=False, help="Destination GIF (default: export-<ms>.gif)."),
    ] = None,
) -> None:
    """Export a GIF described by a JSON options file."""
    try:
        options = load_export_options(options_file)
    except GifsmithError as e:
        _pipeline_error(e)
    _check_video(Path(options.input_path))
    _run_export(options, output)
