"""
config/prompts.py
──────────────────────────────────────────────────────────────────────────────
All LLM prompt strings in one place.

Centralising prompts keeps wording changes reviewable in one diff and out of
the service logic.

To change the escalation prompt: edit ESCALATION_SYSTEM_PROMPT below.
To change the answer format: edit ESCALATION_OUTPUT_SCHEMA (and the
EscalationVerdict model in domain/models.py to match).
"""
from __future__ import annotations

from collections.abc import Sequence

# ── Escalation system prompt ──────────────────────────────────────────────────
ESCALATION_SYSTEM_PROMPT = """\
You are a helpful assistant for classifying employee shift activities.
You map a free-text activity description written by a shift worker or \
supervisor onto exactly one standardized activity from a fixed list.
Pick the single most appropriate activity and report how confident you are \
as a number between 0 and 1.
Respond ONLY with a JSON object, no markdown fences, no commentary.
"""

ESCALATION_OUTPUT_SCHEMA = """\
{
  "match": "<activity name>",
  "confidence": <value between 0 and 1>
}"""

# ── User message template ──────────────────────────────────────────────────────
ESCALATION_USER_TEMPLATE = """\
Choose the most appropriate standardized activity from this list:

{label_block}

Description: "{activity}"

Respond in JSON format:
{schema}
"""


def build_label_block(labels: Sequence[str]) -> str:
    """Renders the canonical labels as a 1-indexed numbered list.

    >>> print(build_label_block(["Staff Meeting", "Cleaning Duty"]))
    1. Staff Meeting
    2. Cleaning Duty
    """
    return "\n".join(f"{i}. {label}" for i, label in enumerate(labels, 1))


def build_user_message(activity: str, labels: Sequence[str]) -> str:
    """Assembles the user-turn message for the escalation call.

    Args:
        activity: Raw activity description, inserted literally.
        labels:   Canonical labels in configured order.
    """
    return ESCALATION_USER_TEMPLATE.format(
        label_block=build_label_block(labels),
        activity=activity,
        schema=ESCALATION_OUTPUT_SCHEMA,
    )
