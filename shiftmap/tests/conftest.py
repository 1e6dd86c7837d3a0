"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and mock adapter implementations.

Mock adapters implement the Port Protocols via structural subtyping — they do
NOT inherit from any base class.  pytest uses them to test service logic
without any real OpenAI or Vertex AI connections.

Vectors are 2-dimensional: the input text embeds to [1, 0] and a label meant
to score ``s`` embeds to [s, sqrt(1 - s²)], so cosine(input, label) == s
(to floating-point precision).

Fixture hierarchy:
  settings        → labels ("A", "B"), high=0.9, review=0.7
  make_embedder   → MockEmbeddingAdapter from {label: score}
  make_llm        → MockLLMAdapter returning a canned response
  make_resolver   → TieredResolver wired from the two mocks via build_resolver
"""
from __future__ import annotations

import json
import math

import pytest

from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import EmbeddingError
from shiftmap.domain.models import SimilarityMatch
from shiftmap.services.container import build_resolver

INPUT_TEXT = "counted the stock in aisle 4"
INPUT_VECTOR = [1.0, 0.0]


def vector_scoring(score: float) -> list[float]:
    """A unit vector whose cosine with INPUT_VECTOR equals ``score``."""
    return [score, math.sqrt(max(0.0, 1.0 - score * score))]


def llm_json(match: str, confidence: float) -> str:
    return json.dumps({"match": match, "confidence": confidence})


# ── Settings fixture ───────────────────────────────────────────────────────

def make_settings(**overrides) -> Settings:
    """Settings with sane test defaults; keyword overrides win."""
    values = dict(
        embed_provider="openai",
        llm_provider="openai",
        openai_api_key="sk-test-key",
        openai_embed_model="text-embedding-3-small",
        openai_llm_model="gpt-4o",
        gcp_project_id="test-project",
        gcp_location_id="us-central1",
        gcp_embed_model="text-embedding-test",
        gcp_gemini_model="gemini-test",
        gcp_access_token="",
        gcloud_path="/usr/bin/gcloud",
        https_proxy="",
        canonical_labels=("A", "B"),
        high_confidence_threshold=0.9,
        review_threshold=0.7,
        llm_temperature=0.2,
        strict_label_match=False,
        cache_label_embeddings=True,
        batch_workers=2,
        embed_timeout=5,
        llm_timeout=5,
        provider_retries=3,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="session")
def settings() -> Settings:
    return make_settings()


# ── Mock adapters ──────────────────────────────────────────────────────────

class MockEmbeddingAdapter:
    """Deterministic fake embedder backed by a text → vector table."""

    model_name = "mock-embedding"

    def __init__(self, vectors: dict[str, list[float]], failing: set[str] | None = None):
        self._vectors = dict(vectors)
        self._failing = failing or set()
        self.calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self._failing:
            raise EmbeddingError(f"simulated provider failure for {text!r}")
        try:
            return self._vectors[text]
        except KeyError:
            raise EmbeddingError(f"no vector configured for {text!r}") from None

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [self._vectors[t] for t in texts]


class MockLLMAdapter:
    """Returns a canned response (or raises a canned exception)."""

    model_name = "mock-llm"

    def __init__(self, response: str | Exception = '{"match": "B", "confidence": 0.93}'):
        self.response = response
        self.calls: list[tuple[str, str, float]] = []

    def complete(self, system_prompt: str, user_message: str, temperature: float) -> str:
        self.calls.append((system_prompt, user_message, temperature))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class StubScorer:
    """Stands in for SimilarityScorer with a fixed best match."""

    model_name = "stub-scorer"

    def __init__(self, label: str | None, score: float):
        self.match = SimilarityMatch(label=label, score=score)
        self.calls: list[str] = []

    def score(self, text, labels) -> SimilarityMatch:
        self.calls.append(text)
        return self.match


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def make_embedder():
    """Build an embedder where INPUT_TEXT scores each label as given."""

    def _make(scores: dict[str, float], extra: dict[str, list[float]] | None = None,
              failing: set[str] | None = None) -> MockEmbeddingAdapter:
        vectors = {label: vector_scoring(s) for label, s in scores.items()}
        vectors[INPUT_TEXT] = INPUT_VECTOR
        vectors.update(extra or {})
        return MockEmbeddingAdapter(vectors, failing=failing)

    return _make


@pytest.fixture
def make_llm():
    def _make(response: str | Exception = llm_json("B", 0.93)) -> MockLLMAdapter:
        return MockLLMAdapter(response)

    return _make


@pytest.fixture
def make_resolver(settings, make_embedder, make_llm):
    """Full TieredResolver over mock providers.

    Returns (resolver, embedder, llm) so tests can inspect call counts.
    """

    def _make(scores: dict[str, float], llm_response: str | Exception = llm_json("B", 0.93),
              **setting_overrides):
        active = make_settings(**setting_overrides) if setting_overrides else settings
        embedder = make_embedder(scores)
        llm = make_llm(llm_response)
        return build_resolver(active, embedder, llm), embedder, llm

    return _make
