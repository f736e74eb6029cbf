"""Tests for the mask & shape renderer and SVG assembly."""

import re

import pytest

from config import DEFAULT_CONFIG, Limits, SculptureConfig
from sculpture.parity import parity_packed
from sculpture.renderer import (
    Hole,
    build_layer_mask,
    build_masks,
    normalize_svg,
    render_svg,
    render_svg_from_packed,
)
from sculpture.state import LayerParams, PackedState, decode_packed

# Grid limits of (0, 1) let a test pin a single-cell layer (quantized grid
# 10000) next to empty layers (quantized grid 0).
SINGLE_CELL_CONFIG = SculptureConfig(limits=Limits(grid=(0, 1)))

DEFS = (
    '<filter id="paper-shadow" x="-20%" y="-20%" width="160%" height="160%">'
    '<feDropShadow dx="0" dy="12" stdDeviation="18" flood-color="rgba(0,0,0,0.35)" />'
    '</filter>'
    '<filter id="paper-grain" x="-10%" y="-10%" width="120%" height="120%">'
    '<feTurbulence type="fractalNoise" baseFrequency="0.8" numOctaves="1" seed="2" />'
    '<feColorMatrix type="saturate" values="0" />'
    '<feComponentTransfer><feFuncA type="table" tableValues="0 0.12" /></feComponentTransfer>'
    '</filter>'
    '<linearGradient id="paper-light" x1="0" y1="0" x2="1" y2="1">'
    '<stop offset="0%" stop-color="#ffffff" stop-opacity="0.16" />'
    '<stop offset="70%" stop-color="#000000" stop-opacity="0.12" />'
    '<stop offset="100%" stop-color="#000000" stop-opacity="0.18" />'
    '</linearGradient>'
)


def _expected_layer(index, color, shapes, stroke):
    return (
        '<g transform="translate(0 0)" filter="url(#paper-shadow)">'
        f'<rect width="1000" height="1000" fill="{color}" mask="url(#mask-{index})" />'
        f'<rect width="1000" height="1000" fill="url(#paper-light)" opacity="0.18" mask="url(#mask-{index})" />'
        f'<rect width="1000" height="1000" fill="white" filter="url(#paper-grain)" opacity="0.06" mask="url(#mask-{index})" />'
        f'<g mask="url(#mask-{index})" opacity="0.55">'
        f'<g transform="translate(-1 -1)" fill="none" stroke="rgba(255,255,255,0.22)" stroke-width="{stroke}" stroke-linejoin="round">'
        f'{shapes}</g>'
        f'<g transform="translate(1 1)" fill="none" stroke="rgba(0,0,0,0.25)" stroke-width="{stroke}" stroke-linejoin="round">'
        f'{shapes}</g>'
        '</g>'
        '</g>'
    )


def _single_cell_state():
    return PackedState(
        base_seed=0,
        scene_index=0,
        layer_order=(0, 1, 2),
        layer_colors=("#112233", "#445566", "#778899"),
        layer_seeds=(0, 0, 0),
        params=(LayerParams(grid=10_000), LayerParams(), LayerParams()),
    )


class TestSingleCellGeometry:
    """Hand-checked geometry: seed 0 makes every hash 0."""

    def test_hole_position(self):
        mask = build_layer_mask(_single_cell_state(), 0, SINGLE_CELL_CONFIG)
        assert mask.grid_count == 1
        assert mask.stroke_width == 6
        assert mask.holes == [Hole(cx=438, cy=562, r=120, corner=120)]
        hole = mask.holes[0]
        assert (hole.x, hole.y, hole.size) == (318, 442, 240)

    def test_zero_grid_layer_is_empty(self):
        mask = build_layer_mask(_single_cell_state(), 1, SINGLE_CELL_CONFIG)
        assert mask.grid_count == 0
        assert mask.holes == []
        assert mask.stroke_width == 6

    def test_full_document(self):
        """Markup matches the mint page output byte for byte."""
        hole = 'x="318" y="442" width="240" height="240" rx="120" ry="120"'
        expected = (
            '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1000 1000">'
            '<defs>' + DEFS
            + '<mask id="mask-0" maskUnits="userSpaceOnUse">'
            '<rect width="1000" height="1000" fill="white" />'
            f'<rect {hole} fill="black" />'
            '</mask>'
            '<mask id="mask-1" maskUnits="userSpaceOnUse"><rect width="1000" height="1000" fill="white" /></mask>'
            '<mask id="mask-2" maskUnits="userSpaceOnUse"><rect width="1000" height="1000" fill="white" /></mask>'
            '</defs>'
            '<rect width="1000" height="1000" fill="#0b1220" />'
            + _expected_layer(2, "#778899", "", 6)
            + _expected_layer(1, "#445566", "", 6)
            + _expected_layer(0, "#112233", f'<rect {hole} />', 6)
            + '</svg>'
        )
        assert render_svg(_single_cell_state(), SINGLE_CELL_CONFIG) == expected

    def test_normalized_document(self):
        svg = normalize_svg(render_svg(_single_cell_state(), SINGLE_CELL_CONFIG))
        assert "<rect x='318' y='442' width='240' height='240' rx='120' ry='120' fill='black'/>" in svg
        assert '"' not in svg
        assert " />" not in svg


class TestParityRender:
    """Properties of the parity fixture render."""

    def setup_method(self):
        self.packed = parity_packed()
        self.state = decode_packed(self.packed)

    def test_deterministic(self):
        """Two renders of the same bytes are byte-identical."""
        assert render_svg_from_packed(self.packed) == render_svg_from_packed(self.packed)
        assert render_svg(self.state) == render_svg(decode_packed(self.packed))

    def test_structure(self):
        svg = render_svg(self.state)
        masks = build_masks(self.state)
        holes = sum(len(m.holes) for m in masks)
        assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1000 1000"><defs>')
        assert svg.endswith("</svg>")
        assert svg.count("<mask id=") == 3
        assert svg.count('filter="url(#paper-shadow)"') == 3
        assert svg.count('fill="black"') == holes
        # two bevel copies per hole
        assert svg.count("<rect x=") == 3 * holes
        assert re.search(r">\s+<", svg) is None

    def test_grid_sizes(self):
        assert [m.grid_count for m in build_masks(self.state)] == [7, 8, 9]

    def test_holes_inside_view(self):
        for mask in build_masks(self.state):
            assert 0 < len(mask.holes) <= mask.grid_count ** 2
            for hole in mask.holes:
                assert 0 <= hole.cx <= 1000
                assert 0 <= hole.cy <= 1000
                assert hole.r >= 1
                assert 0 <= hole.corner <= hole.r

    def test_paint_order_reversed(self):
        """layer_order (1, 2, 0) paints 0, then 2, then 1 on top."""
        svg = render_svg(self.state)
        pos = [svg.index(f'fill="{c}"') for c in ("#262b64", "#9faba7", "#45c3c3")]
        assert pos == sorted(pos)

    def test_normalized(self):
        svg = render_svg_from_packed(self.packed)
        assert '"' not in svg
        assert " />" not in svg
        assert "  " not in svg


class TestDegenerateInput:
    """Every input renders without raising."""

    @pytest.mark.parametrize("packed", ["", "0x", "0xzz", "0x1", "garbage!", "0x" + "ff" * 80])
    def test_renders(self, packed):
        svg = render_svg_from_packed(packed)
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")

    def test_min_hole_prob_is_sparse(self):
        """holeProb quantized to 0 maps to 5%: most cells stay uncut."""
        state = PackedState(
            base_seed=314,
            scene_index=0,
            layer_order=(0, 1, 2),
            layer_colors=("#000000",) * 3,
            layer_seeds=(0, 0, 0),
            params=(LayerParams(grid=10_000, hole_prob=0, scale=5000),) * 3,
        )
        for mask in build_masks(state):
            assert mask.grid_count == 22
            assert len(mask.holes) < (mask.grid_count ** 2) // 4

    def test_max_hole_prob_is_dense(self):
        state = PackedState(
            base_seed=314,
            scene_index=0,
            layer_order=(0, 1, 2),
            layer_colors=("#000000",) * 3,
            layer_seeds=(0, 0, 0),
            params=(LayerParams(grid=10_000, hole_prob=10_000, scale=5000),) * 3,
        )
        for mask in build_masks(state):
            assert len(mask.holes) > (mask.grid_count ** 2) // 2

    def test_out_of_range_layer_index_paints_white(self):
        state = PackedState(
            base_seed=1,
            scene_index=0,
            layer_order=(7, 1, 0),
            layer_colors=("#112233", "#445566", "#778899"),
            layer_seeds=(0, 0, 0),
            params=(LayerParams(),) * 3,
        )
        svg = render_svg(state)
        assert 'fill="#ffffff" mask="url(#mask-7)"' in svg
        assert 'mask="url(#mask-7)" opacity="0.55"' not in svg
        assert svg.count('filter="url(#paper-shadow)"') == 3

    def test_square_mix_overflow_clamps_corner(self):
        """Quantized values past the pack scale still give valid corners."""
        state = PackedState(
            base_seed=9,
            scene_index=0,
            layer_order=(0, 1, 2),
            layer_colors=("#000000",) * 3,
            layer_seeds=(0, 0, 0),
            params=(LayerParams(grid=4000, square_mix=65_535, hole_prob=10_000, scale=5000),) * 3,
        )
        for mask in build_masks(state):
            for hole in mask.holes:
                assert hole.corner >= 0
