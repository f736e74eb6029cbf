"""Paper sculpture packed-state codec and deterministic SVG renderer."""

from sculpture.fixed_point import FixedPointHash, hash12
from sculpture.state import PackedState, LayerParams, decode_packed, resolve_layer
from sculpture.packer import LayerSpec, SculptureSpec, pack_spec, encode_packed
from sculpture.renderer import render_svg, normalize_svg, render_svg_from_packed
from sculpture.parity import svg_digest

__all__ = [
    "FixedPointHash",
    "hash12",
    "PackedState",
    "LayerParams",
    "decode_packed",
    "resolve_layer",
    "LayerSpec",
    "SculptureSpec",
    "pack_spec",
    "encode_packed",
    "render_svg",
    "normalize_svg",
    "render_svg_from_packed",
    "svg_digest",
]
