"""
adapters/openai_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using the OpenAI Chat Completions API.

Key behaviour:
  - Uses /v1/chat/completions via raw requests (no openai SDK dependency)
  - Requests JSON output via response_format={"type": "json_object"}
  - system_prompt → system role message; user_message → user role message
  - Temperature is passed through from the caller
  - Retries on 429 / 500 / 503 with exponential back-off
  - Returns the raw content string; any non-2xx after retries raises LLMError

Required env vars:
  OPENAI_API_KEY     — your OpenAI secret key  (sk-...)
  OPENAI_LLM_MODEL   — default: gpt-4o
"""
from __future__ import annotations

import logging
import time

import requests

from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import AuthenticationError, LLMError

logger = logging.getLogger(__name__)

_OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAILLMAdapter:
    """OpenAI GPT chat completions adapter.

    Injected into EscalationClassifier via services/container.py when
    ``LLM_PROVIDER=openai`` (the default).

    .. note::
        OpenAI's JSON mode requires the word "JSON" to appear somewhere in
        the prompt.  ``config/prompts.py`` already includes it.
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
        logger.debug("OpenAILLMAdapter ready | model=%s", settings.openai_llm_model)

    # ── LLMPort implementation ─────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        """Name of the underlying OpenAI chat model."""
        return self._settings.openai_llm_model

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float,
    ) -> str:
        """Send a prompt and return the raw response text.

        Raises:
            LLMError: On API failure or a reply with no choices.
            AuthenticationError: On HTTP 401.
        """
        payload = {
            "model": self._settings.openai_llm_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": temperature,
            "response_format": {"type": "json_object"},
        }
        return self._extract_text(self._post_with_retry(payload))

    # ── Private helpers ────────────────────────────────────────────────────

    def _post_with_retry(self, payload: dict) -> dict:
        """POST to the OpenAI API with back-off on 429 / 500 / 503."""
        retries = self._settings.provider_retries
        delay = 2.0
        last_exc: Exception | None = None

        for attempt in range(1, retries + 1):
            try:
                resp = requests.post(
                    _OPENAI_CHAT_URL,
                    headers=self._headers,
                    json=payload,
                    timeout=self._settings.llm_timeout,
                )
            except requests.RequestException as exc:
                last_exc = exc
                logger.warning(
                    "OpenAI LLM request error (attempt %d/%d): %s",
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
                    "OpenAI LLM %d (attempt %d/%d) — back-off %.1fs",
                    resp.status_code, attempt, retries, delay,
                )
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            if not resp.ok:
                raise LLMError(
                    f"OpenAI LLM HTTP {resp.status_code}: {resp.text[:300]}"
                )

            return resp.json()

        raise LLMError(f"OpenAI LLM failed after {retries} attempts") from last_exc

    def _extract_text(self, response_json: dict) -> str:
        """Pull the content string out of the chat completions response."""
        choices = response_json.get("choices") or []
        if not choices:
            raise LLMError("OpenAI response contained no choices")
        try:
            content = choices[0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMError(f"Failed to parse OpenAI response structure: {exc}") from exc
        return content.strip()
