"""
Packed-state codec: hex buffer to ``PackedState``.

Wire layout (big-endian)::

    u32 base_seed | u8 scene_index | 3 x u8 layer_order | 3 x u24 colors
    | 3 x u32 layer_seeds | 3 x (6 or 7) x u16 params

Decoding is deliberately permissive: short or malformed input reads as
zeros instead of raising, so a preview always has something to draw.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, astuple
from typing import Any, Optional

from config import DEFAULT_CONFIG, SculptureConfig
from sculpture.fixed_point import js_round, trunc_div

logger = logging.getLogger(__name__)

PARAM_NAMES = ("grid", "square_mix", "hole_prob", "radius", "pan_x", "pan_y", "scale")

_HEX_DIGITS = "0123456789abcdefABCDEF"


@dataclass(frozen=True)
class LayerParams:
    """The seven quantized u16 parameters of one layer, each in [0, pack_scale]."""
    grid: int = 0
    square_mix: int = 0
    hole_prob: int = 0
    radius: int = 0
    pan_x: int = 0
    pan_y: int = 0
    scale: int = 0

    def as_tuple(self) -> tuple[int, ...]:
        return astuple(self)

    def to_dict(self) -> dict[str, int]:
        return dict(zip(PARAM_NAMES, self.as_tuple()))


@dataclass(frozen=True)
class PackedState:
    """Decoded scene descriptor. Built fresh on every decode."""
    base_seed: int
    scene_index: int
    layer_order: tuple[int, ...]
    layer_colors: tuple[str, ...]
    layer_seeds: tuple[int, ...]
    params: tuple[LayerParams, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_seed": self.base_seed,
            "scene_index": self.scene_index,
            "layer_order": list(self.layer_order),
            "layer_colors": list(self.layer_colors),
            "layer_seeds": list(self.layer_seeds),
            "params": [p.to_dict() for p in self.params],
        }


@dataclass(frozen=True)
class LayerGeometry:
    """A layer's parameters mapped into the fixed-point domain."""
    grid_fp: int
    grid_count: int
    square_mix_fp: int
    hole_prob_fp: int
    radius_fp: int
    pan_x_fp: int
    pan_y_fp: int
    scale_fp: int
    seed_fp: int


# ── Hex parsing ──────────────────────────────────────────────────────

def _parse_hex_pair(pair: str) -> Optional[int]:
    """
    Parse a two-character chunk the way ``parseInt(chunk, 16)`` does.

    Leading whitespace and a sign are accepted, then the longest run of hex
    digits. Returns None where parseInt would give NaN.
    """
    text = pair.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    digits = ""
    for ch in text:
        if ch not in _HEX_DIGITS:
            break
        digits += ch
    if not digits:
        return None
    return sign * int(digits, 16)


def hex_to_bytes(hex_string: str) -> list[Optional[int]]:
    """
    Split a hex string into byte values.

    A leading ``0x`` is removed before surrounding whitespace is trimmed. An
    odd trailing nibble is parsed on its own. Unparseable pairs are kept as
    None so the buffer length still reflects the input.
    """
    clean = re.sub(r"^0x", "", hex_string).strip()
    values = [_parse_hex_pair(clean[i:i + 2]) for i in range(0, len(clean), 2)]

    if len(clean) % 2:
        logger.warning("Packed hex has odd length (%d nibbles); last nibble read alone", len(clean))
    bad = sum(1 for v in values if v is None or v < 0 or v > 0xFF)
    if bad:
        logger.warning("Packed hex contains %d malformed byte(s); reading them as 0", bad)
    return values


class _ByteReader:
    """Sequential big-endian reader where reads past the end yield zero."""

    def __init__(self, data: list[Optional[int]]):
        self.data = data
        self.offset = 0

    def _take(self, count: int) -> list[int]:
        chunk = self.data[self.offset:self.offset + count]
        self.offset += count
        values = [v or 0 for v in chunk]
        return values + [0] * (count - len(values))

    def read(self, count: int) -> int:
        value = 0
        for byte in self._take(count):
            value = (value << 8) + byte
        return value

    def u8(self) -> int:
        return self.read(1)

    def u16(self) -> int:
        return self.read(2)

    def u24(self) -> int:
        return self.read(3)

    def u32(self) -> int:
        return self.read(4)


def _color_hex(value: int) -> str:
    digits = format(value, "x") if value >= 0 else "-" + format(-value, "x")
    return "#" + digits.rjust(6, "0")


# ── Decode ───────────────────────────────────────────────────────────

def decode_packed(hex_string: str, config: SculptureConfig = DEFAULT_CONFIG) -> PackedState:
    """
    Decode a packed hex string into a ``PackedState``.

    Buffers whose parameter block holds fewer than seven u16 values per layer
    are legacy buffers: the ``scale`` field is absent and every layer gets
    ``config.default_scale_param`` instead.
    """
    data = hex_to_bytes(hex_string)
    reader = _ByteReader(data)
    layers = config.layer_count

    base_seed = reader.u32()
    scene_index = reader.u8()
    layer_order = tuple(reader.u8() for _ in range(layers))
    layer_colors = tuple(_color_hex(reader.u24()) for _ in range(layers))
    layer_seeds = tuple(reader.u32() for _ in range(layers))

    remaining = max(0, len(data) - config.header_bytes)
    params_per_layer = remaining // (layers * 2)
    has_scale = params_per_layer >= config.params_per_layer
    if not has_scale:
        logger.debug(
            "Legacy layout: %d param(s) per layer, scale defaults to %d",
            params_per_layer, config.default_scale_param,
        )

    params = []
    for _ in range(layers):
        values = [reader.u16() for _ in range(config.params_per_layer - 1)]
        values.append(reader.u16() if has_scale else config.default_scale_param)
        params.append(LayerParams(*values))

    return PackedState(
        base_seed=base_seed,
        scene_index=scene_index,
        layer_order=layer_order,
        layer_colors=layer_colors,
        layer_seeds=layer_seeds,
        params=tuple(params),
    )


# ── Parameter mapping ────────────────────────────────────────────────

def map_param(value: int, lo: int, hi: int, config: SculptureConfig = DEFAULT_CONFIG) -> int:
    """Linear map of a quantized value onto ``[lo, hi]`` in integer arithmetic."""
    return lo + trunc_div(value * (hi - lo), config.pack_scale)


def layer_seed_fp(state: PackedState, layer_index: int, config: SculptureConfig = DEFAULT_CONFIG) -> int:
    """
    Seed for a layer's hash domain.

    Explicit seeds below ``small_seed_threshold`` are in thousandths and get
    scaled up. A zero seed falls back to ``base_seed + i * 19.13`` in seed
    scale, which is how buffers without per-layer seeds were rendered.
    """
    raw = state.layer_seeds[layer_index] if layer_index < len(state.layer_seeds) else 0
    if raw and raw < config.small_seed_threshold:
        return raw * config.small_seed_unit
    if raw:
        return raw
    # float on purpose: matches the reference rounding of the legacy seed
    return js_round((state.base_seed + layer_index * config.legacy_seed_step) * config.seed_scale)


def resolve_layer(state: PackedState, layer_index: int, config: SculptureConfig = DEFAULT_CONFIG) -> LayerGeometry:
    """Map one layer's quantized params to fixed point and derive its grid size."""
    p = state.params[layer_index]
    fp = config.fp

    grid_fp = map_param(p.grid, *config.bounds_fp("grid"), config=config)
    grid_count = 0
    if grid_fp > 0:
        # ceiling division in fixed point
        grid_count = trunc_div(grid_fp, fp) + (0 if grid_fp % fp == 0 else 1)

    return LayerGeometry(
        grid_fp=grid_fp,
        grid_count=grid_count,
        square_mix_fp=map_param(p.square_mix, *config.bounds_fp("square_mix"), config=config),
        hole_prob_fp=map_param(p.hole_prob, *config.bounds_fp("hole_prob"), config=config),
        radius_fp=map_param(p.radius, *config.bounds_fp("radius"), config=config),
        pan_x_fp=map_param(p.pan_x, *config.bounds_fp("pan"), config=config),
        pan_y_fp=map_param(p.pan_y, *config.bounds_fp("pan"), config=config),
        scale_fp=map_param(p.scale, *config.bounds_fp("scale"), config=config),
        seed_fp=layer_seed_fp(state, layer_index, config),
    )
