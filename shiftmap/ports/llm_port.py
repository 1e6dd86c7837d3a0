"""
ports/llm_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for LLM (large language model) providers.

Implementations: OpenAILLMAdapter, GeminiLLMAdapter
To swap: write a new adapter implementing this Protocol, then change ONE
line in services/container.py.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMPort(Protocol):
    """Contract for a JSON-generating LLM provider."""

    @property
    def model_name(self) -> str:
        """Identifier of the underlying LLM."""
        ...

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float,
    ) -> str:
        """Send a prompt to the LLM and return its raw text response.

        The adapter asks the model for JSON output where the provider supports
        it, but the returned text is not guaranteed to parse; the caller
        validates it.

        Args:
            system_prompt: System-level instruction.
            user_message:  User-turn content.
            temperature:   Decoding temperature; keep low for stable answers.

        Returns:
            Raw response text (may be empty).

        Raises:
            LLMError: On API failure or a response with no content block.
            AuthenticationError: When the provider rejects the credential.
        """
        ...
