"""
services/resolver.py
──────────────────────────────────────────────────────────────────────────────
Tiered resolver: turns one raw activity text into one MappingVerdict.

This is the primary entry point for all interfaces (CLI, Streamlit).
It knows nothing about infrastructure — it only speaks in domain objects.

Policy (HIGH = HIGH_CONFIDENCE_THRESHOLD, REVIEW = REVIEW_THRESHOLD):

  embedding score >= HIGH
      accept the embedding label, no LLM call.
  REVIEW <= score < HIGH
      escalate once.  LLM confidence >= HIGH → accept the LLM label.
      Otherwise the verdict is marked source=llm and needs review; it
      carries the LLM label/confidence only if that confidence is at least
      the embedding score, else the embedding label/score.
  score < REVIEW
      needs review, embedding label/score kept, no LLM call.

Escalation failures propagate; there is no fallback to the embedding
verdict.
"""
from __future__ import annotations

import logging

from shiftmap.config.settings import Settings
from shiftmap.domain.models import MappingVerdict, ResolutionTier, VerdictSource
from shiftmap.services.escalation import EscalationClassifier
from shiftmap.services.scorer import SimilarityScorer

logger = logging.getLogger(__name__)


def decide_tier(score: float, high_threshold: float, review_threshold: float) -> ResolutionTier:
    """Place a confidence value into its band.

    >>> decide_tier(0.95, 0.9, 0.7)
    <ResolutionTier.ACCEPT: 'accept'>
    >>> decide_tier(0.9, 0.9, 0.7)
    <ResolutionTier.ACCEPT: 'accept'>
    >>> decide_tier(0.7, 0.9, 0.7)
    <ResolutionTier.ESCALATE: 'escalate'>
    >>> decide_tier(0.69, 0.9, 0.7)
    <ResolutionTier.REVIEW: 'review'>
    """
    if score >= high_threshold:
        return ResolutionTier.ACCEPT
    if score >= review_threshold:
        return ResolutionTier.ESCALATE
    return ResolutionTier.REVIEW


class TieredResolver:
    """Embedding match first, LLM escalation in the review band.

    Inject via services/container.py — do not instantiate directly in
    application code.

    Args:
        scorer:     SimilarityScorer (Tier 1).
        classifier: EscalationClassifier (Tier 2).
        settings:   Supplies the canonical labels and both thresholds.
    """

    def __init__(
        self,
        scorer: SimilarityScorer,
        classifier: EscalationClassifier,
        settings: Settings,
    ) -> None:
        self._scorer = scorer
        self._classifier = classifier
        self._labels = tuple(settings.canonical_labels)
        self._high = settings.high_confidence_threshold
        self._review = settings.review_threshold

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    @property
    def high_threshold(self) -> float:
        return self._high

    @property
    def review_threshold(self) -> float:
        return self._review

    def resolve(self, text: str) -> MappingVerdict:
        """Map ``text`` onto a canonical label.

        Raises:
            EmbeddingError, LLMError, MalformedResponseError,
            AuthenticationError: from the providers, unchanged.
        """
        match = self._scorer.score(text, self._labels)
        tier = decide_tier(match.score, self._high, self._review)
        logger.debug("resolve | input=%r score=%.3f tier=%s", text[:80], match.score, tier.value)

        if tier is not ResolutionTier.ESCALATE:
            return MappingVerdict(
                input=text,
                mapped_output=match.label,
                source=VerdictSource.EMBEDDING,
                confidence=match.score,
                human_review_required=tier is ResolutionTier.REVIEW,
            )

        escalation = self._classifier.classify(text, self._labels)

        if decide_tier(escalation.confidence, self._high, self._review) is ResolutionTier.ACCEPT:
            return MappingVerdict(
                input=text,
                mapped_output=escalation.match,
                source=VerdictSource.LLM,
                confidence=escalation.confidence,
                human_review_required=False,
            )

        if escalation.confidence >= match.score:
            mapped, confidence = escalation.match, escalation.confidence
        else:
            mapped, confidence = match.label, match.score

        logger.info(
            "Sent for review after escalation | input=%r mapped=%r confidence=%.3f",
            text[:80],
            mapped,
            confidence,
        )
        return MappingVerdict(
            input=text,
            mapped_output=mapped,
            source=VerdictSource.LLM,
            confidence=confidence,
            human_review_required=True,
        )
