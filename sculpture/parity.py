"""
Parity fixture: a canonical sculpture, its packed hex and its render digest.

The digest is ``sha256(normalize_svg(render_svg(decode_packed(hex))))``. Any
change to the hash engine, the codec or the renderer that alters it breaks
parity with the minting contract and must be treated as a regression.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import DEFAULT_CONFIG, SculptureConfig, settings
from sculpture.packer import LayerSpec, SculptureSpec, pack_spec
from sculpture.renderer import render_svg_from_packed

logger = logging.getLogger(__name__)

STATE_FILE = "parity-state.txt"
HASH_FILE = "parity-hash.txt"

_BASE_SEED = 314

PARITY_SPEC = SculptureSpec(
    base_seed=_BASE_SEED,
    scene_index=2,
    layer_order=[1, 2, 0],
    layer_colors=["#262b64", "#45c3c3", "#9faba7"],
    layers=[
        LayerSpec(
            seed=_BASE_SEED + 0 * 19.13,
            grid=6.8,
            square_mix=0.42,
            hole_prob=0.78,
            radius=0.38,
            pan_x=0.012,
            pan_y=-0.008,
            scale=1.0012,
        ),
        LayerSpec(
            seed=_BASE_SEED + 1 * 19.13,
            grid=7.4,
            square_mix=0.65,
            hole_prob=0.73,
            radius=0.42,
            pan_x=-0.014,
            pan_y=0.009,
            scale=0.9994,
        ),
        LayerSpec(
            seed=_BASE_SEED + 2 * 19.13,
            grid=8.1,
            square_mix=0.31,
            hole_prob=0.82,
            radius=0.36,
            pan_x=0.006,
            pan_y=-0.011,
            scale=1.0006,
        ),
    ],
)


@dataclass
class ParityReport:
    """Outcome of comparing recorded fixture files with a fresh render."""
    status: str  # "PASS" | "FAIL" | "MISSING"
    expected_packed: Optional[str]
    computed_packed: str
    expected_hash: Optional[str]
    computed_hash: str

    @property
    def passed(self) -> bool:
        return self.status == "PASS"


def parity_packed(config: SculptureConfig = DEFAULT_CONFIG) -> str:
    return pack_spec(PARITY_SPEC, config)


def svg_digest(hex_string: str, config: SculptureConfig = DEFAULT_CONFIG) -> str:
    """sha256 hex digest of the normalized render of a packed state."""
    svg = render_svg_from_packed(hex_string, config)
    return hashlib.sha256(svg.encode("utf-8")).hexdigest()


def write_fixture(
    directory: Optional[Path] = None,
    config: SculptureConfig = DEFAULT_CONFIG,
) -> tuple[str, str]:
    """Write ``parity-state.txt`` and ``parity-hash.txt``. Returns (packed, digest)."""
    directory = Path(directory or settings.FIXTURES_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    packed = parity_packed(config)
    digest = svg_digest(packed, config)
    (directory / STATE_FILE).write_text(f"{packed}\n", encoding="utf-8")
    (directory / HASH_FILE).write_text(f"{digest}\n", encoding="utf-8")

    logger.info("Wrote parity fixture to %s (sha256=%s)", directory, digest)
    return packed, digest


def _read_recorded(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8").strip()


def check_fixture(
    directory: Optional[Path] = None,
    config: SculptureConfig = DEFAULT_CONFIG,
) -> ParityReport:
    """Recompute the fixture and compare it with the recorded files."""
    directory = Path(directory or settings.FIXTURES_DIR)
    expected_packed = _read_recorded(directory / STATE_FILE)
    expected_hash = _read_recorded(directory / HASH_FILE)

    computed_packed = parity_packed(config)
    # digest of the recorded state when there is one
    computed_hash = svg_digest(expected_packed or computed_packed, config)

    if expected_packed is None or expected_hash is None:
        status = "MISSING"
    elif expected_packed == computed_packed and expected_hash == computed_hash:
        status = "PASS"
    else:
        status = "FAIL"

    logger.info("Parity check in %s: %s", directory, status)
    return ParityReport(
        status=status,
        expected_packed=expected_packed,
        computed_packed=computed_packed,
        expected_hash=expected_hash,
        computed_hash=computed_hash,
    )
