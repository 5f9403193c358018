"""Typed ffmpeg filter-graph builder.

Filters are assembled from stage objects rather than string concatenation.
Every value is rendered through :func:`format_value`, which only admits
finite numbers and plain tokens, so a graph can never pick up separators
(``: , ; [ ]``) or quotes from caller-supplied data.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from fractions import Fraction

from gifsmith.options import CropRegion, ExportOptions, QualityPreset

_SAFE_TOKEN = re.compile(r"^[A-Za-z0-9_.+/-]+$")
_SAFE_LABEL = re.compile(r"^[A-Za-z0-9_:]+$")

Value = int | float | str | Fraction


def format_value(value: Value) -> str:
    """Render a single filter argument. Raises ValueError for anything unsafe."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, Fraction):
        return f"{value.numerator}/{value.denominator}"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"non-finite filter value: {value!r}")
        return f"{value:.6g}"
    if isinstance(value, str) and _SAFE_TOKEN.match(value):
        return value
    raise ValueError(f"unsafe filter value: {value!r}")


@dataclass(frozen=True)
class Filter:
    """One filter: positional arguments first, then key=value options."""

    name: str
    args: tuple[Value, ...] = ()
    options: tuple[tuple[str, Value], ...] = ()

    def render(self) -> str:
        parts = [format_value(a) for a in self.args]
        parts += [f"{key}={format_value(val)}" for key, val in self.options]
        if not parts:
            return self.name
        return f"{self.name}={':'.join(parts)}"


@dataclass
class FilterChain:
    """Comma-joined filters with optional input and output pad labels."""

    filters: list[Filter] = field(default_factory=list)
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    def then(self, stage: Filter) -> "FilterChain":
        self.filters.append(stage)
        return self

    def render(self) -> str:
        body = ",".join(f.render() for f in self.filters)
        return f"{_labels(self.inputs)}{body}{_labels(self.outputs)}"


def render_graph(chains: list[FilterChain]) -> str:
    """Join chains into a -filter_complex graph."""
    return ";".join(chain.render() for chain in chains)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def fps(rate: int | Fraction) -> Filter:
    return Filter("fps", args=(rate,))


def crop(region: CropRegion) -> Filter:
    return Filter("crop", args=(region.width, region.height, region.x, region.y))


def scale(width: int, flags: str) -> Filter:
    # Height -1 preserves the aspect ratio.
    return Filter("scale", args=(width, -1), options=(("flags", flags),))


def palettegen(colors: int) -> Filter:
    return Filter(
        "palettegen",
        options=(("max_colors", colors), ("reserve_transparent", 0)),
    )


def paletteuse(preset: QualityPreset) -> Filter:
    return Filter(
        "paletteuse",
        options=(
            ("dither", preset.dither),
            ("bayer_scale", preset.dither_scale),
            ("diff_mode", "rectangle"),
        ),
    )


# ---------------------------------------------------------------------------
# Export graphs
# ---------------------------------------------------------------------------

def _frame_chain(options: ExportOptions) -> FilterChain:
    """fps, optional crop, then lanczos scale: the part both export passes share."""
    chain = FilterChain().then(fps(options.fps))
    if options.crop is not None:
        chain.then(crop(options.crop))
    return chain.then(scale(options.width, "lanczos"))


def palette_filter(options: ExportOptions) -> str:
    """-vf chain for the palette generator process."""
    return _frame_chain(options).then(palettegen(options.preset.colors)).render()


def encode_filter_complex(options: ExportOptions) -> str:
    """-filter_complex graph for the encoder: video is input 0, palette is input 1."""
    frames = _frame_chain(options)
    frames.inputs = ("0:v",)
    frames.outputs = ("v",)
    apply = FilterChain([paletteuse(options.preset)], inputs=("v", "1:v"))
    return render_graph([frames, apply])


def thumbnail_filter(interval_s: int, width: int) -> str:
    """-vf chain for periodic thumbnail sampling with a fast scaler."""
    return FilterChain([
        fps(Fraction(1, interval_s)),
        scale(width, "fast_bilinear"),
    ]).render()


def _labels(labels: tuple[str, ...]) -> str:
    for label in labels:
        if not _SAFE_LABEL.match(label):
            raise ValueError(f"unsafe pad label: {label!r}")
    return "".join(f"[{label}]" for label in labels)
