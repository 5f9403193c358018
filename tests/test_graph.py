"""Unit tests for gifsmith.graph filter-graph construction."""

from fractions import Fraction

import pytest

from gifsmith.graph import (
    Filter,
    FilterChain,
    encode_filter_complex,
    format_value,
    palette_filter,
    thumbnail_filter,
)
from gifsmith.options import CropRegion, ExportOptions


def _options(**overrides) -> ExportOptions:
    fields = {"input_path": "/videos/in.mp4", "start_time": 2.0, "end_time": 7.0}
    fields.update(overrides)
    return ExportOptions(**fields)


class TestFormatValue:
    def test_numbers(self):
        assert format_value(480) == "480"
        assert format_value(-1) == "-1"
        assert format_value(0.5) == "0.5"
        assert format_value(Fraction(1, 5)) == "1/5"

    def test_bool(self):
        assert format_value(False) == "0"

    @pytest.mark.parametrize("bad", [float("nan"), float("inf")])
    def test_non_finite_rejected(self, bad):
        with pytest.raises(ValueError, match="non-finite"):
            format_value(bad)

    @pytest.mark.parametrize("bad", ["a:b", "x,y", "in;out", "[v]", "it's", ""])
    def test_separators_rejected(self, bad):
        with pytest.raises(ValueError, match="unsafe"):
            format_value(bad)


class TestFilter:
    def test_positional_then_options(self):
        f = Filter("scale", args=(320, -1), options=(("flags", "lanczos"),))
        assert f.render() == "scale=320:-1:flags=lanczos"

    def test_bare_name(self):
        assert Filter("null").render() == "null"

    def test_chain_labels(self):
        chain = FilterChain([Filter("null")], inputs=("0:v",), outputs=("v",))
        assert chain.render() == "[0:v]null[v]"

    def test_unsafe_label_rejected(self):
        chain = FilterChain([Filter("null")], outputs=("v];[x",))
        with pytest.raises(ValueError, match="label"):
            chain.render()


class TestPaletteFilter:
    def test_medium_default(self):
        assert palette_filter(_options()) == (
            "fps=15,scale=480:-1:flags=lanczos,"
            "palettegen=max_colors=128:reserve_transparent=0"
        )

    def test_low_quality_uses_64_colors(self):
        assert "palettegen=max_colors=64:" in palette_filter(_options(quality="low"))

    def test_high_quality_uses_256_colors(self):
        assert "palettegen=max_colors=256:" in palette_filter(_options(quality="high"))

    def test_crop_precedes_scale(self):
        graph = palette_filter(_options(crop=CropRegion(x=10, y=20, width=100, height=50)))
        assert graph.startswith("fps=15,crop=100:50:10:20,scale=480:-1:flags=lanczos,")


class TestEncodeFilterComplex:
    def test_medium_default(self):
        assert encode_filter_complex(_options()) == (
            "[0:v]fps=15,scale=480:-1:flags=lanczos[v];"
            "[v][1:v]paletteuse=dither=bayer:bayer_scale=3:diff_mode=rectangle"
        )

    def test_low_quality_dither_intensity_1(self):
        assert "bayer_scale=1:" in encode_filter_complex(_options(quality="low"))

    def test_high_quality_dither_intensity_5(self):
        assert "bayer_scale=5:" in encode_filter_complex(_options(quality="high"))

    def test_no_palettegen_in_encode_graph(self):
        assert "palettegen" not in encode_filter_complex(_options())

    def test_crop_and_custom_size(self):
        graph = encode_filter_complex(
            _options(width=320, fps=10, crop=CropRegion(x=0, y=0, width=640, height=360))
        )
        assert graph.startswith("[0:v]fps=10,crop=640:360:0:0,scale=320:-1:flags=lanczos[v];")


class TestThumbnailFilter:
    def test_interval_and_fast_scaler(self):
        assert thumbnail_filter(5, 320) == "fps=1/5,scale=320:-1:flags=fast_bilinear"

    def test_interval_one(self):
        assert thumbnail_filter(1, 320).startswith("fps=1/1,")
