"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Custom exception hierarchy.

All exceptions are rooted at ShiftMapError so callers can catch broadly
(except ShiftMapError) or narrowly (except MalformedResponseError).

Provider failures (EmbeddingError, LLMError, AuthenticationError) are never
caught by the resolution services; they propagate to whoever called
resolve() and the batch runner records them per input.
"""
from __future__ import annotations


class ShiftMapError(Exception):
    """Base exception for all application errors."""


class ConfigurationError(ShiftMapError):
    """Raised when required configuration is missing or invalid."""


class AuthenticationError(ShiftMapError):
    """Raised when a provider credential is missing or rejected."""


class EmbeddingError(ShiftMapError):
    """Raised when the embedding API call fails or returns invalid output."""


class LLMError(ShiftMapError):
    """Raised when the LLM API call fails."""


class MalformedResponseError(LLMError):
    """Raised when the LLM replied but its body is not a valid verdict.

    The offending text is kept on ``raw_text`` so it can be logged or shown
    to an operator.
    """

    def __init__(self, raw_text: str, reason: str = "") -> None:
        self.raw_text = raw_text
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Failed to parse LLM response{detail}: {raw_text[:300]!r}")


class DatasetError(ShiftMapError):
    """Raised when an input dataset cannot be read or has the wrong shape."""
