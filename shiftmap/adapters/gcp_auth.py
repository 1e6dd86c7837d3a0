"""
adapters/gcp_auth.py
──────────────────────────────────────────────────────────────────────────────
Bearer-token source for the Vertex AI adapters.

Two modes:
  - GCP_ACCESS_TOKEN set  → that token is used as-is and never refreshed
    (CI, Cloud Run sidecars, short-lived shells)
  - otherwise             → `gcloud auth print-access-token` is run on demand
    and the result cached until shortly before it expires

One GCPTokenProvider is built in services/container.py and shared by
VertexEmbeddingAdapter and GeminiLLMAdapter.  Refresh is guarded by a lock
because batch resolutions run on worker threads.
"""
from __future__ import annotations

import logging
import subprocess
import threading
import time

from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# gcloud tokens live for an hour; refresh two minutes early.
TOKEN_TTL_SECONDS: int = 3600
TOKEN_REFRESH_MARGIN: int = 120


class GCPTokenProvider:
    """Hands out a valid GCP access token to Vertex AI adapters."""

    def __init__(self, settings: Settings) -> None:
        self._static_token = settings.gcp_access_token
        self._gcloud_path = settings.gcloud_path
        self._token = ""
        self._expires_at = 0.0
        self._lock = threading.Lock()
        logger.debug(
            "GCPTokenProvider ready | mode=%s",
            "static" if self._static_token else f"gcloud ({self._gcloud_path})",
        )

    @property
    def is_static(self) -> bool:
        return bool(self._static_token)

    def get_token(self) -> str:
        """Return a bearer token, fetching a new one from gcloud if needed.

        Raises:
            AuthenticationError: If gcloud is missing, fails or prints nothing.
        """
        if self._static_token:
            return self._static_token
        with self._lock:
            if not self._token or self._expires_at <= time.time() + TOKEN_REFRESH_MARGIN:
                self._token = self._fetch_from_gcloud()
                self._expires_at = time.time() + TOKEN_TTL_SECONDS
            return self._token

    def invalidate(self) -> bool:
        """Drop the cached token.

        Returns:
            False when the token is static, i.e. a retry would not help.
        """
        if self._static_token:
            return False
        with self._lock:
            self._expires_at = 0.0
        logger.debug("GCPTokenProvider: token invalidated")
        return True

    def _fetch_from_gcloud(self) -> str:
        logger.info("GCPTokenProvider: fetching access token from gcloud")
        try:
            result = subprocess.run(
                [self._gcloud_path, "auth", "print-access-token"],
                capture_output=True,
                text=True,
                timeout=30,
                check=True,
            )
        except FileNotFoundError as exc:
            raise AuthenticationError(
                f"gcloud not found at '{self._gcloud_path}'. "
                "Set GCLOUD_PATH or provide GCP_ACCESS_TOKEN."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise AuthenticationError("gcloud timed out fetching access token") from exc
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr.strip() if exc.stderr else "(no stderr)"
            raise AuthenticationError(
                f"gcloud auth print-access-token failed: {stderr}"
            ) from exc

        token = result.stdout.strip()
        if not token:
            raise AuthenticationError("gcloud returned an empty access token")
        return token
