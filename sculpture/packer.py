"""
Packer: float-level sculpture description to packed hex.

This is the producer side of the wire format. It quantizes each parameter
with the same float expression and half-up rounding the mint page uses, so
a packed string built here is byte-identical to one built in the browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from config import DEFAULT_CONFIG, SculptureConfig
from sculpture.fixed_point import clamp, js_round
from sculpture.state import PackedState


@dataclass
class LayerSpec:
    """Human-scale parameters of one paper layer."""
    seed: float
    grid: float = 8.0
    square_mix: float = 0.5
    hole_prob: float = 0.6
    radius: float = 0.4
    pan_x: float = 0.0
    pan_y: float = 0.0
    scale: float = 1.0


@dataclass
class SculptureSpec:
    """A complete sculpture before quantization."""
    base_seed: int
    scene_index: int = 0
    layer_order: list[int] = field(default_factory=lambda: [0, 1, 2])
    layer_colors: list[str] = field(default_factory=lambda: ["#ffffff", "#ffffff", "#ffffff"])
    layers: list[LayerSpec] = field(default_factory=list)


def quantize_float(value: float, lo: float, hi: float, pack_scale: int = DEFAULT_CONFIG.pack_scale) -> int:
    """Quantize ``value`` (clamped to ``[lo, hi]``) onto ``[0, pack_scale]``."""
    clamped = clamp(value, lo, hi)
    return js_round(((clamped - lo) / (hi - lo)) * pack_scale)


def quantize_grid(value: float, config: SculptureConfig = DEFAULT_CONFIG) -> int:
    return quantize_float(value, *config.limits.grid, pack_scale=config.pack_scale)


def parse_hex_color(value: str) -> int:
    text = value.replace("#", "", 1)
    try:
        return int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid hex color: {value!r}") from None


class _ByteWriter:
    def __init__(self):
        self.data = bytearray()

    def push(self, value: int, width: int) -> None:
        for shift in range((width - 1) * 8, -1, -8):
            self.data.append((value >> shift) & 0xFF)

    def hex(self) -> str:
        return "0x" + self.data.hex()


def _check_lengths(count: int, **sequences) -> None:
    for name, seq in sequences.items():
        if len(seq) != count:
            raise ValueError(f"{name} must have {count} entries, got {len(seq)}")


def encode_packed(state: PackedState, config: SculptureConfig = DEFAULT_CONFIG) -> str:
    """Write an already-quantized ``PackedState`` back to packed hex (full layout)."""
    _check_lengths(
        config.layer_count,
        layer_order=state.layer_order,
        layer_colors=state.layer_colors,
        layer_seeds=state.layer_seeds,
        params=state.params,
    )
    out = _ByteWriter()
    out.push(state.base_seed, 4)
    out.push(state.scene_index, 1)
    for index in state.layer_order:
        out.push(index, 1)
    for color in state.layer_colors:
        out.push(parse_hex_color(color), 3)
    for seed in state.layer_seeds:
        out.push(seed, 4)
    for params in state.params:
        for value in params.as_tuple():
            out.push(value, 2)
    return out.hex()


def pack_spec(spec: SculptureSpec, config: SculptureConfig = DEFAULT_CONFIG) -> str:
    """Quantize and pack a ``SculptureSpec``."""
    _check_lengths(
        config.layer_count,
        layer_order=spec.layer_order,
        layer_colors=spec.layer_colors,
        layers=spec.layers,
    )
    limits = config.limits
    scale = config.pack_scale

    out = _ByteWriter()
    out.push(spec.base_seed, 4)
    out.push(spec.scene_index, 1)
    for index in spec.layer_order:
        out.push(index, 1)
    for color in spec.layer_colors:
        out.push(parse_hex_color(color), 3)
    for layer in spec.layers:
        out.push(js_round(layer.seed * config.seed_scale), 4)

    for layer in spec.layers:
        out.push(quantize_grid(layer.grid, config), 2)
        out.push(quantize_float(layer.square_mix, *limits.square_mix, pack_scale=scale), 2)
        out.push(quantize_float(layer.hole_prob, *limits.hole_prob, pack_scale=scale), 2)
        out.push(quantize_float(layer.radius, *limits.radius, pack_scale=scale), 2)
        out.push(quantize_float(layer.pan_x, *limits.pan, pack_scale=scale), 2)
        out.push(quantize_float(layer.pan_y, *limits.pan, pack_scale=scale), 2)
        out.push(quantize_float(layer.scale, *limits.scale, pack_scale=scale), 2)
    return out.hex()
