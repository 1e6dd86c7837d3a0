"""
interfaces/rendering.py
──────────────────────────────────────────────────────────────────────────────
HTML fragments for the Streamlit UI.

No streamlit imports here. Every value taken from a verdict is HTML-escaped
before it reaches unsafe_allow_html.
"""
from __future__ import annotations

from html import escape

from shiftmap.domain.models import MappingVerdict


def verdict_card_html(verdict: MappingVerdict) -> str:
    """Return the verdict card markup for ``st.markdown(unsafe_allow_html=True)``."""
    css = "verdict-card" if verdict.is_mapped else "verdict-card review"
    headline = verdict.mapped_output if verdict.is_mapped else "Sent for human review"
    candidate = (
        f" · best candidate: {escape(verdict.mapped_output)}"
        if not verdict.is_mapped and verdict.mapped_output
        else ""
    )
    return f"""
        <div class="{css}">
            <div class="label">{escape(headline or "")}</div>
            <div class="meta">via {escape(verdict.source.value)} · confidence
            {verdict.confidence:.2f}{candidate}</div>
        </div>
        """
