"""
Central configuration for the paper sculpture codec and renderer.

Two layers live here:

* ``SculptureConfig``: the immutable numeric contract shared with the
  minting contract (fixed-point scale, pack scale, parameter bounds, hash
  constants). One instance is built at import time as ``DEFAULT_CONFIG`` and
  passed explicitly to the hash engine, the codec and the renderer.
* ``Settings``: environment-driven settings (log level, output paths).
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_settings import BaseSettings


class Limits(BaseModel):
    """Inclusive (min, max) bounds each quantized parameter maps onto."""

    model_config = ConfigDict(frozen=True)

    grid: tuple[float, float] = (3, 22)
    square_mix: tuple[float, float] = (0, 1)
    hole_prob: tuple[float, float] = (0.05, 0.95)
    radius: tuple[float, float] = (0.18, 0.6)
    pan: tuple[float, float] = (-0.12, 0.12)
    scale: tuple[float, float] = (0.9, 1.1)


class SculptureConfig(BaseModel):
    """Fixed-point constants for decode, hashing and rendering."""

    model_config = ConfigDict(frozen=True)

    # ── Scales ──────────────────────────────────────────────────────
    fp: int = 1_000_000
    pack_scale: int = 10_000
    seed_scale: int = 1_000_000
    view: int = 1000

    # ── Wire layout ─────────────────────────────────────────────────
    layer_count: int = 3
    header_bytes: int = 29
    params_per_layer: int = 7

    # ── Hash engine ─────────────────────────────────────────────────
    hash_multiplier: int = 1031
    hash_divisor: int = 10_000
    hash_offset: int = 33_330_000

    # ── Seeds ───────────────────────────────────────────────────────
    legacy_seed_step: float = 19.13
    small_seed_threshold: int = 1_000_000
    small_seed_unit: int = 1000
    jitter_x_multiplier: int = 17
    jitter_y_multiplier: int = 29
    radius_multiplier: int = 42
    shape_multiplier: int = 53
    sub_seed_divisor: int = 10

    limits: Limits = Limits()

    @property
    def half_fp(self) -> int:
        return self.fp // 2

    def bounds_fp(self, name: str) -> tuple[int, int]:
        """Fixed-point (min, max) for a ``Limits`` field, rounded half-up."""
        lo, hi = getattr(self.limits, name)
        return (
            math.floor(lo * self.fp + 0.5),
            math.floor(hi * self.fp + 0.5),
        )

    @property
    def default_scale_param(self) -> int:
        """Quantized value that maps ``scale`` onto 1.0 (used by legacy buffers)."""
        lo, hi = self.limits.scale
        return math.floor(((1 - lo) / (hi - lo)) * self.pack_scale + 0.5)


DEFAULT_CONFIG = SculptureConfig()


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    # ── Logging ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Preview ─────────────────────────────────────────────────────
    PREVIEW_RASTER_SIZE: int = 1000

    # ── Paths ───────────────────────────────────────────────────────
    PROJECT_ROOT: Path = Path(__file__).parent
    FIXTURES_DIR: Optional[Path] = None
    HISTORY_DIR: Optional[Path] = None

    @model_validator(mode="after")
    def _set_default_paths(self) -> Settings:
        if self.FIXTURES_DIR is None:
            self.FIXTURES_DIR = self.PROJECT_ROOT / "fixtures"
        if self.HISTORY_DIR is None:
            self.HISTORY_DIR = self.PROJECT_ROOT / "history"
        self.FIXTURES_DIR.mkdir(parents=True, exist_ok=True)
        self.HISTORY_DIR.mkdir(parents=True, exist_ok=True)
        return self

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton instance
settings = Settings()
