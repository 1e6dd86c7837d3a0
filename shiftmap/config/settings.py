"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime, which is what lets the canonical label set and both thresholds
stay fixed for the lifetime of a run.

To swap providers, change the relevant env var — no code edits required:
  EMBED_PROVIDER    → openai | vertex
  LLM_PROVIDER      → openai | vertex
  CANONICAL_LABELS  → pipe-separated taxonomy, e.g. "Cleaning Duty|Staff Meeting"
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from shiftmap.domain.exceptions import ConfigurationError

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")

# Canonical reference activity types
DEFAULT_CANONICAL_LABELS: tuple[str, ...] = (
    "Inventory Check",
    "Customer Support",
    "Staff Meeting",
    "Cleaning Duty",
    "Cash Register Operation",
)

DEFAULT_HIGH_CONFIDENCE_THRESHOLD = 0.92
DEFAULT_REVIEW_THRESHOLD = 0.80


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc



def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_labels(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(key)
    if not raw:
        return default
    return tuple(label.strip() for label in raw.split("|") if label.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Provider selection ──────────────────────────────────────────────────
    # Valid values: "openai" | "vertex"
    embed_provider: str = field(
        default_factory=lambda: _env("EMBED_PROVIDER", "openai")
    )
    llm_provider: str = field(
        default_factory=lambda: _env("LLM_PROVIDER", "openai")
    )

    # ── OpenAI ─────────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: _env("OPENAI_API_KEY", "")
    )
    openai_embed_model: str = field(
        default_factory=lambda: _env("OPENAI_EMBED_MODEL", "text-embedding-3-small")
    )
    openai_llm_model: str = field(
        default_factory=lambda: _env("OPENAI_LLM_MODEL", "gpt-4o")
    )

    # ── GCP / Vertex AI ────────────────────────────────────────────────────
    gcp_project_id: str = field(
        default_factory=lambda: _env("GCP_PROJECT_ID", "")
    )
    gcp_location_id: str = field(
        default_factory=lambda: _env("GCP_LOCATION_ID", "us-central1")
    )
    gcp_embed_model: str = field(
        default_factory=lambda: _env("GCP_EMBED_MODEL", "text-embedding-005")
    )
    gcp_gemini_model: str = field(
        default_factory=lambda: _env("GCP_GEMINI_MODEL", "gemini-2.5-flash")
    )
    # A pre-issued bearer token wins over the gcloud CLI when set.
    gcp_access_token: str = field(
        default_factory=lambda: _env("GCP_ACCESS_TOKEN", "")
    )
    gcloud_path: str = field(
        default_factory=lambda: _env("GCLOUD_PATH", "gcloud")
    )

    # ── Network ────────────────────────────────────────────────────────────
    https_proxy: str = field(
        default_factory=lambda: _env("HTTPS_PROXY", "")
    )

    # ── Taxonomy & resolution policy ───────────────────────────────────────
    canonical_labels: tuple[str, ...] = field(
        default_factory=lambda: _env_labels("CANONICAL_LABELS", DEFAULT_CANONICAL_LABELS)
    )
    high_confidence_threshold: float = field(
        default_factory=lambda: _env_float(
            "HIGH_CONFIDENCE_THRESHOLD", DEFAULT_HIGH_CONFIDENCE_THRESHOLD
        )
    )
    review_threshold: float = field(
        default_factory=lambda: _env_float("REVIEW_THRESHOLD", DEFAULT_REVIEW_THRESHOLD)
    )
    llm_temperature: float = field(
        default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.2)
    )
    # Reject escalation matches that are not canonical labels.
    strict_label_match: bool = field(
        default_factory=lambda: _env_bool("STRICT_LABEL_MATCH", False)
    )
    cache_label_embeddings: bool = field(
        default_factory=lambda: _env_bool("CACHE_LABEL_EMBEDDINGS", True)
    )

    # ── Batch runner ───────────────────────────────────────────────────────
    batch_workers: int = field(
        default_factory=lambda: _env_int("BATCH_WORKERS", 4)
    )

    # ── HTTP timeouts (seconds) & transport retries ────────────────────────
    embed_timeout: int = field(default_factory=lambda: _env_int("EMBED_TIMEOUT", 30))
    llm_timeout: int   = field(default_factory=lambda: _env_int("LLM_TIMEOUT", 90))
    provider_retries: int = field(
        default_factory=lambda: _env_int("PROVIDER_RETRIES", 3)
    )

    def validate(self) -> "Settings":
        """Check cross-field constraints and return self.

        Raises:
            ConfigurationError: If the taxonomy or thresholds are unusable.
        """
        if not self.canonical_labels:
            raise ConfigurationError("CANONICAL_LABELS must contain at least one label.")
        if len(set(self.canonical_labels)) != len(self.canonical_labels):
            raise ConfigurationError(
                f"CANONICAL_LABELS contains duplicates: {list(self.canonical_labels)}"
            )
        for name in ("high_confidence_threshold", "review_threshold"):
            value = getattr(self, name)
            if not -1.0 <= value <= 1.0:
                raise ConfigurationError(f"{name.upper()} must be in [-1, 1], got {value}")
        if self.high_confidence_threshold <= self.review_threshold:
            raise ConfigurationError(
                "HIGH_CONFIDENCE_THRESHOLD must be greater than REVIEW_THRESHOLD "
                f"(got {self.high_confidence_threshold} <= {self.review_threshold})."
            )
        if not 0.0 <= self.llm_temperature <= 2.0:
            raise ConfigurationError(
                f"LLM_TEMPERATURE must be in [0, 2], got {self.llm_temperature}"
            )
        if self.batch_workers < 1:
            raise ConfigurationError(f"BATCH_WORKERS must be >= 1, got {self.batch_workers}")
        if self.provider_retries < 1:
            raise ConfigurationError(
                f"PROVIDER_RETRIES must be >= 1, got {self.provider_retries}"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
