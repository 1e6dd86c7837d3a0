"""
tests/unit/test_scorer.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for SimilarityScorer and LabelEmbeddingCache.

Tests cover:
  • best-label selection and the earliest-label tie-break
  • provider failures propagating out of score()
  • cached vs. uncached label embedding (call counts)
  • the "Embedding match" log line
"""
from __future__ import annotations

import logging

import pytest

from shiftmap.domain.exceptions import EmbeddingError
from shiftmap.services.scorer import LabelEmbeddingCache, SimilarityScorer
from shiftmap.tests.conftest import INPUT_TEXT, vector_scoring


class TestSimilarityScorerSelection:

    def test_picks_highest_scoring_label(self, make_embedder):
        embedder = make_embedder({"A": 0.80, "B": 0.75})
        match = SimilarityScorer(embedder).score(INPUT_TEXT, ["A", "B"])
        assert match.label == "A"
        assert match.score == pytest.approx(0.80)

    def test_order_of_labels_does_not_change_winner(self, make_embedder):
        embedder = make_embedder({"A": 0.60, "B": 0.85})
        match = SimilarityScorer(embedder).score(INPUT_TEXT, ["A", "B"])
        assert match.label == "B"

    def test_tie_keeps_earliest_label(self, make_embedder):
        """Identical scores: the first label in configured order wins."""
        embedder = make_embedder({"A": 0.9, "B": 0.9})
        scorer = SimilarityScorer(embedder)
        assert scorer.score(INPUT_TEXT, ["A", "B"]).label == "A"
        assert scorer.score(INPUT_TEXT, ["B", "A"]).label == "B"

    def test_empty_label_list_returns_no_label(self, make_embedder):
        match = SimilarityScorer(make_embedder({})).score(INPUT_TEXT, [])
        assert match.label is None
        assert match.score == -1.0

    def test_label_scoring_exactly_minus_one_is_never_selected(self, make_embedder):
        embedder = make_embedder({}, extra={"A": [-1.0, 0.0]})
        match = SimilarityScorer(embedder).score(INPUT_TEXT, ["A"])
        assert match.label is None

    def test_negative_scores_above_minus_one_are_selected(self, make_embedder):
        embedder = make_embedder({}, extra={"A": [-0.5, 0.5]})
        assert SimilarityScorer(embedder).score(INPUT_TEXT, ["A"]).label == "A"


class TestSimilarityScorerProviderCalls:

    def test_uncached_embeds_input_once_and_each_label(self, make_embedder):
        embedder = make_embedder({"A": 0.8, "B": 0.7})
        SimilarityScorer(embedder).score(INPUT_TEXT, ["A", "B"])
        assert embedder.calls == [INPUT_TEXT, "A", "B"]

    def test_cached_embeds_only_the_input(self, make_embedder):
        embedder = make_embedder({"A": 0.8, "B": 0.7})
        cache = LabelEmbeddingCache.build(embedder, ["A", "B"])
        scorer = SimilarityScorer(embedder, cache=cache)

        scorer.score(INPUT_TEXT, ["A", "B"])
        scorer.score(INPUT_TEXT, ["A", "B"])

        assert embedder.calls == [INPUT_TEXT, INPUT_TEXT]
        assert embedder.batch_calls == [["A", "B"]]

    def test_label_missing_from_cache_is_embedded_directly(self, make_embedder):
        embedder = make_embedder({"A": 0.8, "C": 0.95})
        cache = LabelEmbeddingCache.build(embedder, ["A"])
        match = SimilarityScorer(embedder, cache=cache).score(INPUT_TEXT, ["A", "C"])
        assert match.label == "C"
        assert embedder.calls == [INPUT_TEXT, "C"]

    def test_input_embedding_failure_propagates(self, make_embedder):
        embedder = make_embedder({"A": 0.8}, failing={INPUT_TEXT})
        with pytest.raises(EmbeddingError):
            SimilarityScorer(embedder).score(INPUT_TEXT, ["A"])

    def test_label_embedding_failure_propagates(self, make_embedder):
        embedder = make_embedder({"A": 0.8, "B": 0.7}, failing={"B"})
        with pytest.raises(EmbeddingError):
            SimilarityScorer(embedder).score(INPUT_TEXT, ["A", "B"])

    def test_empty_input_vector_raises(self, make_embedder):
        embedder = make_embedder({"A": 0.8}, extra={"blank": []})
        with pytest.raises(EmbeddingError, match="empty"):
            SimilarityScorer(embedder).score("blank", ["A"])

    def test_logs_match_rounded_to_three_decimals(self, make_embedder, caplog):
        embedder = make_embedder({"A": 0.81234})
        with caplog.at_level(logging.INFO, logger="shiftmap.services.scorer"):
            SimilarityScorer(embedder).score(INPUT_TEXT, ["A"])
        assert "Embedding match: 'A' with score 0.812" in caplog.text


class TestLabelEmbeddingCache:

    def test_build_uses_one_batch_call(self, make_embedder):
        embedder = make_embedder({"A": 0.1, "B": 0.2, "C": 0.3})
        cache = LabelEmbeddingCache.build(embedder, ["A", "B", "C"])
        assert len(cache) == 3
        assert embedder.batch_calls == [["A", "B", "C"]]
        assert embedder.calls == []

    def test_get_returns_vector(self, make_embedder):
        cache = LabelEmbeddingCache.build(make_embedder({"A": 0.5}), ["A"])
        assert cache.get("A") == vector_scoring(0.5)
        assert "A" in cache

    def test_get_unknown_label_raises_key_error(self, make_embedder):
        cache = LabelEmbeddingCache.build(make_embedder({"A": 0.5}), ["A"])
        with pytest.raises(KeyError):
            cache.get("Z")

    def test_records_model_name(self, make_embedder):
        cache = LabelEmbeddingCache.build(make_embedder({"A": 0.5}), ["A"])
        assert cache.model_name == "mock-embedding"

    def test_wrong_vector_count_raises(self):
        class ShortBatchEmbedder:
            model_name = "short"

            def embed(self, text):
                return [1.0]

            def embed_batch(self, texts):
                return [[1.0]]

        with pytest.raises(EmbeddingError, match="1 vectors for 2 labels"):
            LabelEmbeddingCache.build(ShortBatchEmbedder(), ["A", "B"])

    def test_cache_is_read_only(self, make_embedder):
        cache = LabelEmbeddingCache.build(make_embedder({"A": 0.5}), ["A"])
        with pytest.raises(TypeError):
            cache._vectors["B"] = [0.0, 1.0]  # type: ignore[index]
