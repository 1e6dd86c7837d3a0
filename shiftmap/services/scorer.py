"""
services/scorer.py
──────────────────────────────────────────────────────────────────────────────
Tier 1 of the resolver: embedding similarity against the canonical labels.

Architecture:
  • Accepts any EmbeddingPort via constructor injection.
  • cosine_similarity() is a pure function — no I/O, easily unit-tested.
  • LabelEmbeddingCache holds one vector per canonical label for the whole
    run.  It is filled once (a single embed_batch call) before any
    resolution starts and is read-only afterwards, so concurrent batch
    workers can share it without locking.
  • SimilarityScorer.score() is the single public entry point.

Selection rule:
  Labels are scanned in configured order and the best is only replaced on a
  strictly greater score, so on a tie the earliest label wins.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

import numpy as np

from shiftmap.domain.exceptions import EmbeddingError
from shiftmap.domain.models import SimilarityMatch
from shiftmap.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)


# ── Pure function: cosine similarity ──────────────────────────────────────

def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero length.

    Raises:
        EmbeddingError: If the vectors have different dimensions (they came
            from different models and cannot be compared).

    Examples:
        >>> cosine_similarity([1.0, 0.0], [1.0, 0.0])
        1.0
        >>> cosine_similarity([1.0, 0.0], [0.0, 1.0])
        0.0
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise EmbeddingError(
            f"Cannot compare embeddings of different shapes: {va.shape} vs {vb.shape}"
        )
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


# ── Run-scoped label cache ────────────────────────────────────────────────

class LabelEmbeddingCache:
    """Immutable label → vector mapping for one run."""

    def __init__(self, vectors: Mapping[str, list[float]], model_name: str = "") -> None:
        self._vectors = MappingProxyType(dict(vectors))
        self.model_name = model_name

    @classmethod
    def build(cls, embedder: EmbeddingPort, labels: Sequence[str]) -> "LabelEmbeddingCache":
        """Embed every label with one batch call.

        Raises:
            EmbeddingError: If the provider fails or returns the wrong count.
        """
        labels = list(labels)
        vectors = embedder.embed_batch(labels)
        if len(vectors) != len(labels):
            raise EmbeddingError(
                f"embed_batch returned {len(vectors)} vectors for {len(labels)} labels"
            )
        logger.info(
            "Label embedding cache built | labels=%d model=%s",
            len(labels),
            embedder.model_name,
        )
        return cls(dict(zip(labels, vectors)), model_name=embedder.model_name)

    def get(self, label: str) -> list[float]:
        """Return the cached vector; KeyError for an unknown label."""
        return self._vectors[label]

    def __contains__(self, label: object) -> bool:
        return label in self._vectors

    def __len__(self) -> int:
        return len(self._vectors)


# ── Service class ──────────────────────────────────────────────────────────

class SimilarityScorer:
    """Find the canonical label closest to an input text.

    Args:
        embedder: Any object satisfying EmbeddingPort.
        cache:    Optional LabelEmbeddingCache.  Without it, every label is
                  re-embedded on every call.
    """

    def __init__(
        self,
        embedder: EmbeddingPort,
        cache: LabelEmbeddingCache | None = None,
    ) -> None:
        self._embedder = embedder
        self._cache = cache
        logger.debug(
            "SimilarityScorer init | embed_model=%s cached_labels=%d",
            embedder.model_name,
            len(cache) if cache is not None else 0,
        )

    @property
    def model_name(self) -> str:
        return self._embedder.model_name

    def score(self, text: str, labels: Sequence[str]) -> SimilarityMatch:
        """Score ``text`` against every label and return the best one.

        Provider errors are not caught here.

        Args:
            text:   Raw activity description.
            labels: Canonical labels, in configured order.

        Returns:
            SimilarityMatch; ``label`` is None only if ``labels`` is empty
            or nothing scored above -1.0.

        Raises:
            EmbeddingError: If any embedding call fails.
        """
        input_vec = self._embedder.embed(text)
        if not input_vec:
            raise EmbeddingError(f"embed returned empty result for: {text!r}")

        best_label: str | None = None
        best_score = -1.0
        for label in labels:
            score = cosine_similarity(input_vec, self._label_vector(label))
            if score > best_score:
                best_label = label
                best_score = score

        logger.info("Embedding match: %r with score %.3f", best_label, best_score)
        return SimilarityMatch(label=best_label, score=best_score)

    def _label_vector(self, label: str) -> list[float]:
        if self._cache is not None and label in self._cache:
            return self._cache.get(label)
        return self._embedder.embed(label)
