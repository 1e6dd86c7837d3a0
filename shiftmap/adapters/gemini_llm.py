"""
adapters/gemini_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using Vertex AI Gemini (generateContent REST API).

Key behaviour:
  - Sends systemInstruction + contents in the Vertex AI REST format
  - Requests JSON output via responseMimeType: application/json
  - Temperature is passed through from the caller
  - Returns the first candidate's text; a reply with no candidate raises
    LLMError so the resolver sees the failure

To enable:
  Set LLM_PROVIDER=vertex and GCP_PROJECT_ID in your .env file.
"""
from __future__ import annotations

import logging

from shiftmap.adapters.gcp_auth import GCPTokenProvider
from shiftmap.adapters.vertex_http import post_with_retry, vertex_base_url
from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import ConfigurationError, LLMError

logger = logging.getLogger(__name__)


class GeminiLLMAdapter:
    """Vertex AI Gemini adapter."""

    def __init__(self, auth: GCPTokenProvider, settings: Settings) -> None:
        if not settings.gcp_project_id:
            raise ConfigurationError(
                "GCP_PROJECT_ID is not set. It is required when LLM_PROVIDER=vertex."
            )
        self._auth = auth
        self._settings = settings
        self._url = (
            f"{vertex_base_url(settings)}/{settings.gcp_gemini_model}:generateContent"
        )
        logger.debug("GeminiLLMAdapter ready | model=%s", settings.gcp_gemini_model)

    # ── LLMPort implementation ─────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        return self._settings.gcp_gemini_model

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float,
    ) -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_message}]}],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
            },
        }
        response_json = post_with_retry(
            self._url,
            payload,
            auth=self._auth,
            settings=self._settings,
            timeout=self._settings.llm_timeout,
            error_cls=LLMError,
            label="Gemini",
        )
        return self._extract_text(response_json)

    @staticmethod
    def _extract_text(response_json: dict) -> str:
        """Pull the text content out of the generateContent response."""
        candidates = response_json.get("candidates") or []
        if not candidates:
            raise LLMError("Gemini response contained no candidates")
        try:
            parts = candidates[0].get("content", {}).get("parts") or []
        except AttributeError as exc:
            raise LLMError(f"Failed to parse Gemini response structure: {exc}") from exc
        # A candidate without parts (e.g. a safety block) parses as malformed downstream.
        return "".join(p.get("text", "") for p in parts).strip()
