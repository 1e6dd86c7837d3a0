"""
interfaces/streamlit_app.py
──────────────────────────────────────────────────────────────────────────────
Streamlit UI for the shift activity mapper.

Run:
  streamlit run shiftmap/interfaces/streamlit_app.py

Features:
  • Single entry: text input → verdict card + metrics + JSON
  • Batch: JSON array upload → progress bar → table filtered by review flag
  • CSV / JSON download of batch verdicts
"""
from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import pandas as pd
import streamlit as st

# ── Path setup ─────────────────────────────────────────────────────────────
# Allow running from the repo root with: streamlit run shiftmap/interfaces/streamlit_app.py
_REPO_ROOT = Path(__file__).parent.parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from shiftmap.adapters.json_dataset import dump_records, parse_input_bytes
from shiftmap.domain.exceptions import DatasetError
from shiftmap.domain.models import BatchOutcome, BatchSummary, MappingVerdict
from shiftmap.interfaces.rendering import verdict_card_html
from shiftmap.services.container import get_runner

logger = logging.getLogger(__name__)

# ── Page configuration ─────────────────────────────────────────────────────
st.set_page_config(
    page_title="Shift Activity Mapper",
    page_icon="🗂️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
    <style>
    .verdict-card {
        background: white;
        border-left: 5px solid #16a34a;
        border-radius: 6px;
        padding: 14px 18px;
        margin-bottom: 12px;
        box-shadow: 0 1px 4px rgba(0,0,0,0.08);
    }
    .verdict-card.review { border-left-color: #d97706; }
    .verdict-card .label { font-size: 1.1em; font-weight: 600; color: #1e293b; }
    .verdict-card .meta { font-size: 0.85em; color: #64748b; margin-top: 4px; }
    </style>
    """,
    unsafe_allow_html=True,
)


# ── Backend singleton ──────────────────────────────────────────────────────

@st.cache_resource(show_spinner="Initialising resolver and label embeddings…")
def _load_runner():
    """Loads and caches the ResolutionRunner for the lifetime of the app."""
    return get_runner()


# ── Sidebar ────────────────────────────────────────────────────────────────

def _render_sidebar() -> str:
    with st.sidebar:
        st.markdown("## ⚙️ Options")
        mode = st.radio("Mode", ["Single entry", "Batch (JSON upload)"], key="mode")
        st.markdown("---")
        try:
            resolver = _load_runner().resolver
        except Exception as exc:
            st.error(f"Resolver unavailable: {exc}")
            return mode
        st.markdown("**Canonical activities**")
        for i, label in enumerate(resolver.labels, 1):
            st.markdown(f"{i}. {label}")
        st.caption(
            f"Auto-accept ≥ {resolver.high_threshold:.2f} · "
            f"escalate ≥ {resolver.review_threshold:.2f}"
        )
    return mode


# ── Rendering helpers ──────────────────────────────────────────────────────

def _render_verdict(verdict: MappingVerdict) -> None:
    st.markdown(verdict_card_html(verdict), unsafe_allow_html=True)



def _outcomes_to_df(outcomes: list[BatchOutcome]) -> pd.DataFrame:
    return pd.DataFrame([o.to_dict() for o in outcomes])


# ── Single entry mode ──────────────────────────────────────────────────────

def _run_single() -> None:
    st.markdown("### 🔍 Enter an activity")
    text = st.text_input(
        "Unmapped activity",
        placeholder="e.g.  counted stock in the back room, helped a customer find sizes …",
        key="entry_input",
    )
    if not (st.button("Map", type="primary") and text.strip()):
        st.info("Enter a description above and press **Map**.")
        return

    runner = _load_runner()
    with st.spinner("Resolving …"):
        t0 = time.perf_counter()
        try:
            verdict = runner.run_one(text)
        except Exception as exc:
            logger.exception("Resolution failed: %r", text)
            st.error(f"Resolution failed: {exc}")
            return
        elapsed = time.perf_counter() - t0

    c1, c2, c3 = st.columns(3)
    c1.metric("Source", verdict.source.value)
    c2.metric("Confidence", f"{verdict.confidence:.3f}")
    c3.metric("Latency", f"{elapsed:.2f}s")

    _render_verdict(verdict)
    with st.expander("JSON"):
        st.json(verdict.to_dict())


# ── Batch mode ─────────────────────────────────────────────────────────────

def _run_batch() -> None:
    st.markdown("### 📂 Upload activities")
    st.caption('JSON file containing an array of strings, e.g. ["mopped floor", "till count"].')

    uploaded = st.file_uploader("Choose a .json file", type=["json"])
    if uploaded is None:
        return

    try:
        inputs = parse_input_bytes(uploaded.getvalue(), source=uploaded.name)
    except DatasetError as exc:
        st.error(str(exc))
        return
    if not inputs:
        st.warning("The uploaded array is empty.")
        return

    st.caption(f"{len(inputs)} activities loaded.")
    if st.button("Run Batch", type="primary"):
        runner = _load_runner()
        progress = st.progress(0, text="Starting …")

        def _on_progress(done: int, total: int) -> None:
            progress.progress(done / total, text=f"{done}/{total} complete")

        # Kept in session state so the review filter survives reruns.
        st.session_state["batch_outcomes"] = runner.run_batch(inputs, on_progress=_on_progress)
        progress.empty()

    outcomes = st.session_state.get("batch_outcomes")
    if not outcomes:
        return

    summary = BatchSummary.from_outcomes(outcomes)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Auto-accepted", summary.auto_accepted)
    c2.metric("Escalated", summary.escalated)
    c3.metric("Needs review", summary.review_required)
    c4.metric("Failed", summary.failed)

    df = _outcomes_to_df(outcomes)
    only_review = st.checkbox("Show only rows needing review")
    view = df[df["humanReviewRequired"]] if only_review else df
    st.dataframe(view, use_container_width=True)

    records = [o.to_dict() for o in outcomes]
    d1, d2 = st.columns(2)
    d1.download_button(
        "⬇ Download CSV",
        df.to_csv(index=False).encode(),
        file_name="verdicts.csv",
        mime="text/csv",
    )
    d2.download_button(
        "⬇ Download JSON",
        dump_records(records).encode(),
        file_name="verdicts.json",
        mime="application/json",
    )


# ── Main ───────────────────────────────────────────────────────────────────

def main() -> None:
    st.title("🗂️ Shift Activity Mapper")
    st.caption(
        "Embedding similarity with confidence-gated LLM escalation. "
        "Low-confidence results are routed to human review."
    )
    mode = _render_sidebar()
    if mode == "Single entry":
        _run_single()
    else:
        _run_batch()


if __name__ == "__main__":
    main()
