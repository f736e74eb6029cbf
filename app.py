"""
Streamlit Dashboard: Paper Sculpture Preview

Two-panel layout:
  A) Sculpture: the rendered SVG for a packed state, with downloads
  B) Decoded State: header fields, per-layer geometry and hole coverage

Sidebar: packed hex input, parity fixture status, render history.
"""

from __future__ import annotations

import io
from dataclasses import asdict

import plotly.graph_objects as go
import streamlit as st

from config import DEFAULT_CONFIG, settings
from history import RenderLog
from sculpture.parity import check_fixture, parity_packed, svg_digest
from sculpture.renderer import build_masks, normalize_svg, rasterize_png, render_svg
from sculpture.state import decode_packed, resolve_layer

HISTORY_LOG_ID = "preview"


# ── Page Config ──────────────────────────────────────────────────────
st.set_page_config(
    page_title="Paper Sculpture Preview",
    page_icon="🧻",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Custom CSS ───────────────────────────────────────────────────────
st.markdown("""
<style>
    .main-header {
        background: linear-gradient(135deg, #0b1220, #262b64, #45c3c3);
        padding: 1.5rem 2rem;
        border-radius: 12px;
        margin-bottom: 1.5rem;
        color: white;
    }

    .main-header h1 { margin: 0; font-size: 1.8rem; font-weight: 700; }
    .main-header p { margin: 0.3rem 0 0 0; color: #cbd5e1; font-size: 0.9rem; }

    .panel-title {
        color: #cdd6f4;
        font-size: 0.85rem;
        font-weight: 600;
        text-transform: uppercase;
        letter-spacing: 0.05em;
        margin-bottom: 0.75rem;
    }

    .param-table { width: 100%; font-size: 0.8rem; }
    .param-table td { padding: 0.25rem 0.4rem; border-bottom: 1px solid #313244; }
    .param-name { color: #89b4fa; font-family: monospace; }
    .param-value { color: #cdd6f4; text-align: right; }

    .sculpture-frame svg { width: 100%; height: auto; border-radius: 8px; }
</style>
""", unsafe_allow_html=True)


# ── Session State Initialization ─────────────────────────────────────

def init_session_state():
    """Initialize all Streamlit session state variables."""
    defaults = {
        "packed": parity_packed(DEFAULT_CONFIG),
        "render_log": RenderLog.load(HISTORY_LOG_ID),
    }
    for key, val in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = val


init_session_state()


# ── Header ───────────────────────────────────────────────────────────

st.markdown("""
<div class="main-header">
    <h1>🧻 Paper Sculpture</h1>
    <p>Packed-state preview: the same bytes the mint contract renders on-chain</p>
</div>
""", unsafe_allow_html=True)


# ── Sidebar ──────────────────────────────────────────────────────────

with st.sidebar:
    st.markdown("### 🔢 Packed State")
    packed = st.text_area("Packed hex", value=st.session_state.packed, height=160)
    st.session_state.packed = packed.strip()

    if st.button("↺ Load parity fixture", use_container_width=True):
        st.session_state.packed = parity_packed(DEFAULT_CONFIG)
        st.rerun()

    st.divider()

    st.markdown("### ✅ Parity Fixture")
    report = check_fixture(settings.FIXTURES_DIR, DEFAULT_CONFIG)
    if report.passed:
        st.success("Recorded digest matches", icon="🟢")
    elif report.status == "MISSING":
        st.info("No recorded fixture. Run `sculpture fixture`.", icon="⚪")
    else:
        st.error("Recorded digest differs", icon="🔴")
    st.caption(f"`{report.computed_hash[:16]}…`")

    st.divider()

    st.markdown("### 📋 Render History")
    log = st.session_state.render_log
    if log.records:
        for entry in reversed(log.records[-10:]):
            st.caption(f"scene {entry.scene_index} · `{entry.digest[:12]}`")
    else:
        st.caption("Nothing logged yet.")


# ── Render ───────────────────────────────────────────────────────────

state = decode_packed(st.session_state.packed, DEFAULT_CONFIG)
raw_svg = render_svg(state, DEFAULT_CONFIG)
canonical_svg = normalize_svg(raw_svg)
digest = svg_digest(st.session_state.packed, DEFAULT_CONFIG)

panel_a, panel_b = st.columns([1.2, 1])

# ── Panel A: Sculpture ───────────────────────────────────────────────
with panel_a:
    st.markdown('<div class="panel-title">🖼️ Sculpture</div>', unsafe_allow_html=True)
    st.markdown(f'<div class="sculpture-frame">{raw_svg}</div>', unsafe_allow_html=True)
    st.markdown(f"**sha256:** `{digest}`")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.download_button(
            "📥 SVG",
            data=canonical_svg,
            file_name=f"sculpture-{digest[:8]}.svg",
            mime="image/svg+xml",
            use_container_width=True,
        )
    with col2:
        try:
            image = rasterize_png(raw_svg, settings.PREVIEW_RASTER_SIZE)
            buf = io.BytesIO()
            image.save(buf, format="PNG")
            st.download_button(
                "📥 PNG",
                data=buf.getvalue(),
                file_name=f"sculpture-{digest[:8]}.png",
                mime="image/png",
                use_container_width=True,
            )
        except RuntimeError as e:
            st.caption(str(e))
    with col3:
        if st.button("📝 Log render", use_container_width=True):
            if log.record(st.session_state.packed, digest, scene_index=state.scene_index):
                st.toast("Render logged")
            else:
                st.toast("Already in history")
            st.rerun()

# ── Panel B: Decoded State ───────────────────────────────────────────
with panel_b:
    st.markdown('<div class="panel-title">📊 Decoded State</div>', unsafe_allow_html=True)

    header = {
        "base_seed": state.base_seed,
        "scene_index": state.scene_index,
        "layer_order": " → ".join(str(i) for i in state.layer_order),
        "layer_colors": " ".join(state.layer_colors),
    }
    rows = "".join(
        f'<tr><td class="param-name">{k}</td><td class="param-value">{v}</td></tr>'
        for k, v in header.items()
    )
    st.markdown(f'<table class="param-table">{rows}</table>', unsafe_allow_html=True)

    for i in range(DEFAULT_CONFIG.layer_count):
        with st.expander(f"Layer {i} · {state.layer_colors[i]}", expanded=i == 0):
            geometry = asdict(resolve_layer(state, i, DEFAULT_CONFIG))
            quantized = state.params[i].to_dict()
            st.json({"quantized": quantized, "fixed_point": geometry})

    # Hole coverage per layer
    masks = build_masks(state, DEFAULT_CONFIG)
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[f"layer {m.index}" for m in masks],
        y=[m.grid_count ** 2 for m in masks],
        name="cells",
        marker_color="#45475a",
    ))
    fig.add_trace(go.Bar(
        x=[f"layer {m.index}" for m in masks],
        y=[len(m.holes) for m in masks],
        name="holes",
        marker_color="#89b4fa",
    ))
    fig.update_layout(
        template="plotly_dark",
        barmode="overlay",
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(30,30,46,0.5)",
        margin=dict(l=40, r=20, t=10, b=40),
        height=300,
    )
    st.plotly_chart(fig, use_container_width=True)
