"""
Mask & shape renderer: PackedState to SVG markup.

Each layer walks a ``grid_count x grid_count`` grid. A per-cell hash
decides whether a hole is cut; further hashes on shifted seeds give the
jitter, the corner rounding and the radius. All geometry stays in integer
fixed point until it is written out as whole pixels in a 1000x1000 view.

The SVG document is assembled from a Jinja2 template, then whitespace
between tags is removed so the markup matches the mint page byte for byte.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader
from PIL import Image

from config import DEFAULT_CONFIG, SculptureConfig
from sculpture.fixed_point import FixedPointHash, clamp, trunc_div
from sculpture.state import PackedState, decode_packed, resolve_layer

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = "#0b1220"
FALLBACK_LAYER_COLOR = "#ffffff"

# Jinja2 environment pointing at our templates directory
_TEMPLATE_DIR = Path(__file__).parent / "templates"
_jinja_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
)

_BETWEEN_TAGS = re.compile(r">\s+<")


@dataclass(frozen=True)
class Hole:
    """One rounded-square cutout, in view-box pixels."""
    cx: int
    cy: int
    r: int
    corner: int

    @property
    def x(self) -> int:
        return self.cx - self.r

    @property
    def y(self) -> int:
        return self.cy - self.r

    @property
    def size(self) -> int:
        return self.r * 2


@dataclass
class LayerMask:
    """Holes cut into one layer plus the bevel stroke width."""
    index: int
    grid_count: int
    stroke_width: int
    holes: list[Hole] = field(default_factory=list)


def build_layer_mask(
    state: PackedState,
    layer_index: int,
    config: SculptureConfig = DEFAULT_CONFIG,
    hasher: Optional[FixedPointHash] = None,
) -> LayerMask:
    """Compute the holes of one layer. Degenerate geometry gives an empty mask."""
    hasher = hasher or FixedPointHash(config)
    geo = resolve_layer(state, layer_index, config)
    fp = config.fp
    half = config.half_fp
    view = config.view

    # bevel stroke is a sixteenth of a cell, within [1, 6]; a zero grid counts as unbounded
    if geo.grid_fp == 0:
        stroke_width = 6
    else:
        stroke_width = max(1, min(6, trunc_div(view * fp, geo.grid_fp) // 16))

    if geo.grid_fp <= 0 or geo.scale_fp <= 0 or geo.grid_count <= 0:
        logger.debug("Layer %d: degenerate geometry, no holes", layer_index)
        return LayerMask(index=layer_index, grid_count=max(0, geo.grid_count), stroke_width=stroke_width)

    seed = geo.seed_fp
    div = config.sub_seed_divisor
    seed_jx = trunc_div(seed * config.jitter_x_multiplier, div)
    seed_jy = trunc_div(seed * config.jitter_y_multiplier, div)
    seed_r = trunc_div(seed * config.radius_multiplier, div)
    seed_shape = trunc_div(seed * config.shape_multiplier, div)

    denom = geo.grid_fp * geo.scale_fp

    holes: list[Hole] = []
    for y in range(geo.grid_count):
        for x in range(geo.grid_count):
            xf = x * fp
            yf = y * fp
            if hasher(xf + seed, yf + seed) > geo.hole_prob_fp:
                continue

            # jitter is recentred on zero and limited to 35% of a cell
            jitter_x = trunc_div((hasher(xf + seed_jx, yf + seed_jx) - half) * 35, 100)
            jitter_y = trunc_div((hasher(xf + seed_jy, yf + seed_jy) - half) * 35, 100)

            square_pick = hasher(xf + seed_shape, yf + seed_shape) >= half
            mix_amt = trunc_div(geo.square_mix_fp * 4, 10)
            if square_pick:
                mix_amt += trunc_div(fp * 6, 10)

            rand = hasher(xf + seed_r, yf + seed_r)
            r = trunc_div(geo.radius_fp * 60, 100) + trunc_div(trunc_div(geo.radius_fp * 50, 100) * rand, fp)
            corner = trunc_div(r * (fp - mix_amt), fp)

            uv_x = trunc_div((xf + half + jitter_x) * fp, geo.grid_fp)
            uv_y = trunc_div((yf + half + jitter_y) * fp, geo.grid_fp)
            uv_x = clamp(trunc_div((uv_x - half - geo.pan_x_fp) * fp, geo.scale_fp) + half, 0, fp)
            uv_y = clamp(trunc_div((uv_y - half - geo.pan_y_fp) * fp, geo.scale_fp) + half, 0, fp)

            holes.append(Hole(
                cx=trunc_div(uv_x * view, fp),
                # row 0 sits at the bottom of the view
                cy=view - trunc_div(uv_y * view, fp),
                r=max(1, trunc_div(r * fp * view, denom)),
                corner=max(0, trunc_div(corner * fp * view, denom)),
            ))

    logger.debug(
        "Layer %d: grid %dx%d, %d hole(s)",
        layer_index, geo.grid_count, geo.grid_count, len(holes),
    )
    return LayerMask(
        index=layer_index,
        grid_count=geo.grid_count,
        stroke_width=stroke_width,
        holes=holes,
    )


def build_masks(state: PackedState, config: SculptureConfig = DEFAULT_CONFIG) -> list[LayerMask]:
    """Masks for every layer, in layer index order."""
    hasher = FixedPointHash(config)
    return [build_layer_mask(state, i, config, hasher) for i in range(config.layer_count)]


def _paint_order(state: PackedState, masks: list[LayerMask]) -> list[dict]:
    """
    Layers to paint, back to front.

    ``layer_order`` is walked in reverse, so its first entry ends up on top.
    Indices outside the layer range paint white without a bevel.
    """
    painted = []
    for index in reversed(state.layer_order):
        in_range = 0 <= index < len(masks)
        color = state.layer_colors[index] if 0 <= index < len(state.layer_colors) else ""
        painted.append({
            "index": index,
            "color": color or FALLBACK_LAYER_COLOR,
            "mask": masks[index] if in_range else None,
        })
    return painted


def render_svg(state: PackedState, config: SculptureConfig = DEFAULT_CONFIG) -> str:
    """Render a decoded state to a complete SVG document (not normalized)."""
    masks = build_masks(state, config)
    template = _jinja_env.get_template("sculpture.svg.j2")
    markup = template.render(
        view=config.view,
        background=BACKGROUND_COLOR,
        masks=masks,
        layers=_paint_order(state, masks),
    )
    return _BETWEEN_TAGS.sub("><", markup).strip()


def normalize_svg(svg: str) -> str:
    """Canonical form used for cross-implementation hashing."""
    svg = svg.replace('"', "'")
    svg = re.sub(r"\s+/>", "/>", svg)
    return re.sub(r"\s{2,}", " ", svg)


def render_svg_from_packed(hex_string: str, config: SculptureConfig = DEFAULT_CONFIG) -> str:
    """Decode, render and normalize in one step."""
    return normalize_svg(render_svg(decode_packed(hex_string, config), config))


def rasterize_png(svg: str, size: int = 1000) -> Image.Image:
    """
    Rasterize SVG markup to a PIL Image (RGBA).

    Needs the optional ``cairosvg`` backend (``pip install .[raster]``).
    """
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        raise RuntimeError(f"PNG export needs cairosvg and the cairo library: {e}") from e

    png_bytes = cairosvg.svg2png(
        bytestring=svg.encode("utf-8"),
        output_width=size,
        output_height=size,
    )
    return Image.open(io.BytesIO(png_bytes)).convert("RGBA")
