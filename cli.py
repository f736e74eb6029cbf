"""Command line for decoding, rendering and parity-checking packed sculptures."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click

from config import DEFAULT_CONFIG, settings
from sculpture.parity import check_fixture, svg_digest, write_fixture
from sculpture.renderer import normalize_svg, render_svg
from sculpture.state import decode_packed, resolve_layer


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL from the environment.")
def main(log_level: Optional[str]) -> None:
    """Paper sculpture packed-state tools."""
    level = (log_level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("decode")
@click.argument("packed")
def decode_cmd(packed: str) -> None:
    """Print the decoded state and per-layer geometry as JSON."""
    state = decode_packed(packed, DEFAULT_CONFIG)
    payload = state.to_dict()
    payload["geometry"] = [
        asdict(resolve_layer(state, i, DEFAULT_CONFIG))
        for i in range(DEFAULT_CONFIG.layer_count)
    ]
    click.echo(json.dumps(payload, indent=2))


@main.command("render")
@click.argument("packed")
@click.option("-o", "--out", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--raw", is_flag=True, help="Skip canonicalization.")
@click.option("--log", "log_id", default=None, help="Record the render in this history log.")
def render_cmd(packed: str, out: Optional[Path], raw: bool, log_id: Optional[str]) -> None:
    """Render a packed state to SVG."""
    state = decode_packed(packed, DEFAULT_CONFIG)
    svg = render_svg(state, DEFAULT_CONFIG)
    if not raw:
        svg = normalize_svg(svg)

    if log_id:
        from history import RenderLog
        log = RenderLog.load(log_id)
        log.record(packed, svg_digest(packed, DEFAULT_CONFIG), scene_index=state.scene_index)

    if out is None:
        click.echo(svg)
    else:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(svg, encoding="utf-8")
        click.echo(f"Wrote {out}")


@main.command("digest")
@click.argument("packed")
def digest_cmd(packed: str) -> None:
    """Print the sha256 of the canonical SVG."""
    click.echo(svg_digest(packed, DEFAULT_CONFIG))


@main.command("fixture")
@click.option("--out", type=click.Path(file_okay=False, path_type=Path), default=None)
def fixture_cmd(out: Optional[Path]) -> None:
    """Write the parity fixture files."""
    packed, digest = write_fixture(out, DEFAULT_CONFIG)
    click.echo(f"packed={packed}")
    click.echo(f"sha256={digest}")


@main.command("verify")
@click.option("--dir", "directory", type=click.Path(file_okay=False, path_type=Path), default=None)
def verify_cmd(directory: Optional[Path]) -> None:
    """Check the recorded parity fixture against a fresh render."""
    report = check_fixture(directory, DEFAULT_CONFIG)
    click.echo(json.dumps(asdict(report), sort_keys=True, separators=(",", ":")))
    if not report.passed:
        click.echo(f"FAIL: parity fixture {report.status.lower()}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
