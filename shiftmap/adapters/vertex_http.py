"""
adapters/vertex_http.py
──────────────────────────────────────────────────────────────────────────────
Authenticated POST shared by the Vertex AI adapters.

  - 401 → token invalidated and the request retried (once per attempt);
    a static token cannot be refreshed, so 401 raises immediately
  - 429 / 500 / 503 and connection errors → exponential back-off
  - any other non-2xx → the caller's error type
"""
from __future__ import annotations

import logging
import time

import requests

from shiftmap.adapters.gcp_auth import GCPTokenProvider
from shiftmap.config.settings import Settings
from shiftmap.domain.exceptions import AuthenticationError, ShiftMapError

logger = logging.getLogger(__name__)


def vertex_base_url(settings: Settings) -> str:
    return (
        f"https://{settings.gcp_location_id}-aiplatform.googleapis.com"
        f"/v1/projects/{settings.gcp_project_id}"
        f"/locations/{settings.gcp_location_id}"
        "/publishers/google/models"
    )


def proxies_for(settings: Settings) -> dict[str, str]:
    if not settings.https_proxy:
        return {}
    proxy = settings.https_proxy
    if "://" not in proxy:
        proxy = f"http://{proxy}"
    return {"https": proxy}


def post_with_retry(
    url: str,
    payload: dict,
    *,
    auth: GCPTokenProvider,
    settings: Settings,
    timeout: int,
    error_cls: type[ShiftMapError],
    label: str,
) -> dict:
    """POST ``payload`` to a Vertex AI endpoint and return the JSON body.

    Raises:
        AuthenticationError: When the credential is rejected and cannot be
            refreshed.
        error_cls: On any other failure, including exhausted retries.
    """
    retries = settings.provider_retries
    proxies = proxies_for(settings)
    delay = 1.0
    last_exc: Exception | None = None

    for attempt in range(1, retries + 1):
        headers = {
            "Authorization": f"Bearer {auth.get_token()}",
            "Content-Type": "application/json",
        }
        try:
            resp = requests.post(
                url,
                headers=headers,
                json=payload,
                proxies=proxies,
                timeout=timeout,
            )
        except requests.RequestException as exc:
            last_exc = exc
            logger.warning("%s HTTP error (attempt %d/%d): %s", label, attempt, retries, exc)
            if attempt < retries:
                time.sleep(delay)
                delay *= 2
            continue

        if resp.status_code == 401:
            if not auth.invalidate():
                raise AuthenticationError(
                    f"{label} returned 401 Unauthorised. Check GCP_ACCESS_TOKEN."
                )
            logger.warning("%s 401, token invalidated, retrying", label)
            continue

        if resp.status_code in (429, 500, 503):
            logger.warning(
                "%s %d (attempt %d/%d) — back-off %.1fs",
                label, resp.status_code, attempt, retries, delay,
            )
            if attempt < retries:
                time.sleep(delay)
                delay *= 2
            continue

        if not resp.ok:
            raise error_cls(f"{label} HTTP {resp.status_code}: {resp.text[:300]}")

        return resp.json()

    raise error_cls(f"{label} failed after {retries} attempts") from last_exc
