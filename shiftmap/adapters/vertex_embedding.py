"""
adapters/vertex_embedding.py
──────────────────────────────────────────────────────────────────────────────
Implements EmbeddingPort using Vertex AI text embeddings (predict endpoint).

Key behaviour:
  - Every text is embedded with the SEMANTIC_SIMILARITY task type: activity
    descriptions and canonical labels are compared symmetrically, so there
    is no query/document split
  - embed_batch() sends all labels as instances of one predict call
  - Transport retries and token refresh live in adapters/vertex_http.py

To enable:
  Set EMBED_PROVIDER=vertex and GCP_PROJECT_ID in your .env file.
"""
from __future__ import annotations

import logging

from shiftmap.adapters.gcp_auth import GCPTokenProvider
from shiftmap.adapters.vertex_http import post_with_retry, vertex_base_url
from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import ConfigurationError, EmbeddingError

logger = logging.getLogger(__name__)

_TASK_TYPE = "SEMANTIC_SIMILARITY"


class VertexEmbeddingAdapter:
    """Vertex AI text-embedding adapter."""

    def __init__(self, auth: GCPTokenProvider, settings: Settings) -> None:
        if not settings.gcp_project_id:
            raise ConfigurationError(
                "GCP_PROJECT_ID is not set. It is required when EMBED_PROVIDER=vertex."
            )
        self._auth = auth
        self._settings = settings
        self._url = f"{vertex_base_url(settings)}/{settings.gcp_embed_model}:predict"
        logger.debug("VertexEmbeddingAdapter ready | url=%s", self._url)

    # ── EmbeddingPort implementation ───────────────────────────────────────

    @property
    def model_name(self) -> str:
        return self._settings.gcp_embed_model

    def embed(self, text: str) -> list[float]:
        return self._predict([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return self._predict(texts)

    # ── Private helpers ────────────────────────────────────────────────────

    def _predict(self, texts: list[str]) -> list[list[float]]:
        payload = {
            "instances": [{"content": t, "task_type": _TASK_TYPE} for t in texts]
        }
        response_json = post_with_retry(
            self._url,
            payload,
            auth=self._auth,
            settings=self._settings,
            timeout=self._settings.embed_timeout,
            error_cls=EmbeddingError,
            label="Vertex embed",
        )
        predictions = response_json.get("predictions") or []
        if len(predictions) != len(texts):
            raise EmbeddingError(
                f"Vertex embed returned {len(predictions)} predictions "
                f"for {len(texts)} inputs"
            )
        vectors: list[list[float]] = []
        for text, pred in zip(texts, predictions):
            try:
                values = pred["embeddings"]["values"]
            except (KeyError, TypeError) as exc:
                raise EmbeddingError(
                    f"Unexpected Vertex embed prediction shape for {text!r}"
                ) from exc
            if not values:
                raise EmbeddingError(f"Vertex returned an empty embedding for: {text!r}")
            vectors.append(values)
        return vectors
