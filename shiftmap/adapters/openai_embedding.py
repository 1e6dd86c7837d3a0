"""
adapters/openai_embedding.py
──────────────────────────────────────────────────────────────────────────────
Implements EmbeddingPort using the OpenAI Embeddings API.

Key behaviour:
  - Uses /v1/embeddings via raw requests (no openai SDK dependency)
  - embed() sends one string; embed_batch() sends the whole list in a single
    request and re-orders the reply by its ``index`` field
  - Retries on 429 / 500 / 503 and connection errors with exponential
    back-off (transport only; a failure after the last attempt propagates)

Required env vars:
  OPENAI_API_KEY        — your OpenAI secret key  (sk-...)
  OPENAI_EMBED_MODEL    — default: text-embedding-3-small
"""
from __future__ import annotations

import logging
import time

import requests

from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import AuthenticationError, EmbeddingError

logger = logging.getLogger(__name__)

_OPENAI_EMBED_URL = "https://api.openai.com/v1/embeddings"


class OpenAIEmbeddingAdapter:
    """OpenAI text-embedding adapter.

    Injected into SimilarityScorer via services/container.py when
    ``EMBED_PROVIDER=openai`` (the default).
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.openai_api_key:
            raise AuthenticationError(
                "OPENAI_API_KEY is not set. "
                "Add it to your .env file or environment."
            )
        self._settings = settings
        self._headers = {
            "Authorization": f"Bearer {settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        logger.debug(
            "OpenAIEmbeddingAdapter ready | model=%s", settings.openai_embed_model
        )

    # ── EmbeddingPort implementation ───────────────────────────────────────

    @property
    def model_name(self) -> str:
        """Name of the underlying OpenAI embedding model."""
        return self._settings.openai_embed_model

    def embed(self, text: str) -> list[float]:
        """Embed a single string.

        Raises:
            EmbeddingError: On API failure or unexpected response shape.
        """
        data = self._post_with_retry(
            {"model": self._settings.openai_embed_model, "input": text}
        )
        try:
            vector = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as exc:
            raise EmbeddingError(
                f"Unexpected OpenAI embed response shape: {list(data.keys())}"
            ) from exc
        if not vector:
            raise EmbeddingError(f"OpenAI returned an empty embedding for: {text!r}")
        return vector

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of strings in one request, preserving order."""
        if not texts:
            return []

        data = self._post_with_retry(
            {"model": self._settings.openai_embed_model, "input": texts}
        )
        # API returns items in index order but we validate just in case
        result: list[list[float] | None] = [None] * len(texts)
        for item in data.get("data", []):
            idx = item.get("index", -1)
            if 0 <= idx < len(texts):
                result[idx] = item.get("embedding")

        missing = [texts[i] for i, vec in enumerate(result) if not vec]
        if missing:
            raise EmbeddingError(
                f"OpenAI batch embed returned no vector for {len(missing)} item(s): "
                f"{missing[:5]}"
            )
        return result  # type: ignore[return-value]

    # ── Private helpers ────────────────────────────────────────────────────

    def _post_with_retry(self, payload: dict) -> dict:
        """POST to the OpenAI API with retry on 429 / 500 / 503."""
        retries = self._settings.provider_retries
        delay = 2.0
        last_exc: Exception | None = None

        for attempt in range(1, retries + 1):
            try:
                resp = requests.post(
                    _OPENAI_EMBED_URL,
                    headers=self._headers,
                    json=payload,
                    timeout=self._settings.embed_timeout,
                )
            except requests.RequestException as exc:
                last_exc = exc
                logger.warning(
                    "OpenAI embed request error (attempt %d/%d): %s",
                    attempt, retries, exc,
                )
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            if resp.status_code == 401:
                raise AuthenticationError(
                    "OpenAI returned 401 Unauthorised. "
                    "Check that OPENAI_API_KEY is valid."
                )

            if resp.status_code in (429, 500, 503):
                logger.warning(
                    "OpenAI embed %d (attempt %d/%d) — back-off %.1fs",
                    resp.status_code, attempt, retries, delay,
                )
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            if not resp.ok:
                raise EmbeddingError(
                    f"OpenAI embed HTTP {resp.status_code}: {resp.text[:300]}"
                )

            return resp.json()

        raise EmbeddingError(
            f"OpenAI embed failed after {retries} attempts"
        ) from last_exc
