"""Tests for the gifsmith CLI.

Input validation order (extension before existence) mirrors the rest of
the error-panel handling: every failure ends in a Rich panel and exit 1.
"""

from unittest.mock import patch

from typer.testing import CliRunner

from gifsmith.cli import app
from gifsmith.models import VideoMetadata

runner = CliRunner()


def _metadata(path) -> VideoMetadata:
    return VideoMetadata(
        file_path=str(path),
        width=1920,
        height=1080,
        aspect_ratio="16:9",
        frame_rate=25.0,
        duration=30.0,
    )


def test_invalid_video_extension_nonexistent_file():
    result = runner.invoke(app, ["probe", "notes.pdf"])
    assert result.exit_code == 1
    assert "Unsupported video format" in result.output


def test_valid_video_extension_nonexistent_file():
    result = runner.invoke(app, ["probe", "nonexistent_movie.mp4"])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_probe_prints_metadata(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake mp4 content")

    with patch("gifsmith.cli.probe_video", return_value=_metadata(video)):
        result = runner.invoke(app, ["probe", str(video)])

    assert result.exit_code == 0
    assert "1920x1080" in result.output
    assert "16:9" in result.output


def test_export_rejects_reversed_window(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake mp4 content")

    with patch("gifsmith.cli.probe_video", return_value=_metadata(video)), \
         patch("gifsmith.export.spawn") as mock_spawn:
        result = runner.invoke(
            app,
            ["export", str(video), "--start", "8", "--end", "3", "--output", str(tmp_path / "o.gif")],
        )

    assert result.exit_code == 1
    assert "Pipeline Error" in result.output
    mock_spawn.assert_not_called()


def test_export_rejects_malformed_crop(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake mp4 content")

    result = runner.invoke(app, ["export", str(video), "-s", "0", "-e", "2", "--crop", "10,20"])

    assert result.exit_code == 1
    assert "Crop must be" in result.output


def test_export_success(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake mp4 content")
    output = tmp_path / "out.gif"

    def _fake_export(options, destination, **kwargs):
        destination.write_bytes(b"GIF89a")
        return destination

    with patch("gifsmith.cli.probe_video", return_value=_metadata(video)), \
         patch("gifsmith.cli.export_animated_image", side_effect=_fake_export) as mock_export:
        result = runner.invoke(
            app,
            ["export", str(video), "-s", "1", "-e", "4", "-q", "high", "--crop", "0,0,640,360",
             "-o", str(output)],
        )

    assert result.exit_code == 0, result.output
    options = mock_export.call_args.args[0]
    assert options.quality.value == "high"
    assert options.crop.width == 640
    assert "GIF Ready" in result.output


def test_thumbnails_writes_files(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake mp4 content")
    out_dir = tmp_path / "thumbs"

    uris = ["data:image/jpeg;base64,aGVsbG8=", "data:image/jpeg;base64,d29ybGQ="]
    with patch("gifsmith.cli.probe_video", return_value=_metadata(video)), \
         patch("gifsmith.cli.sample_thumbnails", return_value=uris):
        result = runner.invoke(app, ["thumbnails", str(video), "--out-dir", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert (out_dir / "thumb-000001.jpg").read_bytes() == b"hello"
    assert (out_dir / "thumb-000002.jpg").read_bytes() == b"world"


def test_thumbnails_empty_result_is_not_an_error(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake mp4 content")

    with patch("gifsmith.cli.probe_video", return_value=_metadata(video)), \
         patch("gifsmith.cli.sample_thumbnails", return_value=[]):
        result = runner.invoke(app, ["thumbnails", str(video)])

    assert result.exit_code == 0
    assert "No thumbnails" in result.output


def test_export_file_bad_json(tmp_path):
    options_file = tmp_path / "options.json"
    options_file.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["export-file", str(options_file)])

    assert result.exit_code == 1
    assert "Pipeline Error" in result.output
