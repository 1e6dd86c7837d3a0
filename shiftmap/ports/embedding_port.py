"""
ports/embedding_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for text embedding providers.

Any class that implements these methods (structural subtyping via Protocol)
is a valid EmbeddingPort — no inheritance required.

Implementations: OpenAIEmbeddingAdapter, VertexEmbeddingAdapter
To swap: write a new adapter implementing this Protocol and change container.py
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingPort(Protocol):
    """Contract for a text embedding provider."""

    @property
    def model_name(self) -> str:
        """Identifier of the underlying embedding model."""
        ...

    def embed(self, text: str) -> list[float]:
        """Embed one text string.

        Vectors are only comparable with other vectors produced by the same
        adapter instance (same provider and model).

        Args:
            text: Activity description or canonical label.

        Returns:
            Dense vector of floats.

        Raises:
            EmbeddingError: On API failure or empty response.
            AuthenticationError: When the provider rejects the credential.
        """
        ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several strings, preserving input order.

        Used once at startup to warm the label-embedding cache.

        Raises:
            EmbeddingError: If any item could not be embedded.
        """
        ...
