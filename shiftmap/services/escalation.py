"""
services/escalation.py
──────────────────────────────────────────────────────────────────────────────
Tier 2 of the resolver: ask an LLM to pick the canonical label.

Responsibilities:
  1. Build the prompt (via config/prompts.py): task instruction, labels as a
     numbered list, the literal input, and the two-field JSON answer format.
  2. Call the LLMPort once at the configured low temperature.
  3. Validate the reply against the EscalationVerdict schema.

parse_escalation_response() never raises: it returns either an
EscalationVerdict or an EscalationParseFailure.  The classifier turns a
failure into MalformedResponseError; nothing is defaulted.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from shiftmap.config.prompts import ESCALATION_SYSTEM_PROMPT, build_user_message
from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import MalformedResponseError
from shiftmap.domain.models import (
    EscalationParseFailure,
    EscalationParseResult,
    EscalationVerdict,
)
from shiftmap.ports.llm_port import LLMPort

logger = logging.getLogger(__name__)


def parse_escalation_response(raw: str | None) -> EscalationParseResult:
    """Turn raw model text into a verdict or a described failure.

    The body must be a single JSON object with a non-empty string ``match``
    and a numeric ``confidence`` in [0, 1].  Strings are not coerced to
    numbers.
    """
    if raw is None or not raw.strip():
        return EscalationParseFailure(raw_text=raw or "", reason="empty response")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        return EscalationParseFailure(raw_text=raw, reason=f"invalid JSON: {exc.msg}")
    if not isinstance(data, dict):
        return EscalationParseFailure(
            raw_text=raw, reason=f"expected a JSON object, got {type(data).__name__}"
        )
    try:
        return EscalationVerdict.model_validate(data, strict=True)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors()
        )
        return EscalationParseFailure(raw_text=raw, reason=f"invalid fields: {fields}")


class EscalationClassifier:
    """Classify an activity with the LLM when embeddings are inconclusive.

    Args:
        llm:      Any object satisfying LLMPort.
        settings: Shared application settings (temperature, strict matching).
    """

    def __init__(self, llm: LLMPort, settings: Settings) -> None:
        self._llm = llm
        self._temperature = settings.llm_temperature
        self._strict = settings.strict_label_match
        logger.debug(
            "EscalationClassifier init | model=%s temperature=%.2f strict=%s",
            llm.model_name,
            self._temperature,
            self._strict,
        )

    @property
    def model_name(self) -> str:
        return self._llm.model_name

    def classify(self, text: str, labels: Sequence[str]) -> EscalationVerdict:
        """Ask the LLM for the best label and its confidence.

        Raises:
            MalformedResponseError: If the reply is not a valid verdict, or
                (with STRICT_LABEL_MATCH) names a label outside ``labels``.
            LLMError: If the provider call itself fails.
        """
        raw = self._llm.complete(
            ESCALATION_SYSTEM_PROMPT,
            build_user_message(text, labels),
            self._temperature,
        )
        result = parse_escalation_response(raw)
        if isinstance(result, EscalationParseFailure):
            logger.error(
                "Escalation response rejected (%s): %.200s", result.reason, result.raw_text
            )
            raise MalformedResponseError(result.raw_text, result.reason)

        if result.match not in labels:
            if self._strict:
                raise MalformedResponseError(
                    raw, f"match {result.match!r} is not a canonical label"
                )
            logger.warning(
                "LLM returned out-of-set match %r for %r; passing through",
                result.match,
                text[:80],
            )

        logger.info(
            "LLM match: %r with confidence %.3f", result.match, result.confidence
        )
        return result
