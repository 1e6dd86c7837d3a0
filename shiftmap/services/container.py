"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Provider selection is driven entirely by environment variables — no code
changes are needed to switch between providers:

  EMBED_PROVIDER=openai  (default) → OpenAIEmbeddingAdapter
  EMBED_PROVIDER=vertex            → VertexEmbeddingAdapter

  LLM_PROVIDER=openai    (default) → OpenAILLMAdapter
  LLM_PROVIDER=vertex              → GeminiLLMAdapter

Mix-and-match is supported (e.g. OpenAI embeddings + Gemini LLM).  A single
GCPTokenProvider is shared when both sides use Vertex AI.

Startup order (fail fast, before any resolution):
  1. Settings.validate()          → ConfigurationError
  2. adapter construction         → AuthenticationError / ConfigurationError
  3. label embedding cache warm-up → EmbeddingError
"""
from __future__ import annotations

import logging
from functools import lru_cache

from shiftmap.config.settings import Settings, get_settings
from shiftmap.domain.exceptions import ConfigurationError
from shiftmap.ports.embedding_port import EmbeddingPort
from shiftmap.ports.llm_port import LLMPort
from shiftmap.services.escalation import EscalationClassifier
from shiftmap.services.resolver import TieredResolver
from shiftmap.services.runner import ResolutionRunner
from shiftmap.services.scorer import LabelEmbeddingCache, SimilarityScorer

logger = logging.getLogger(__name__)


def _build_gcp_auth(settings: Settings):
    from shiftmap.adapters.gcp_auth import GCPTokenProvider
    return GCPTokenProvider(settings)


def _build_embedder(settings: Settings, gcp_auth=None) -> EmbeddingPort:
    """Instantiate the correct EmbeddingPort adapter based on EMBED_PROVIDER."""
    provider = settings.embed_provider.lower()
    if provider == "openai":
        from shiftmap.adapters.openai_embedding import OpenAIEmbeddingAdapter
        logger.info("Embedding provider: OpenAI (%s)", settings.openai_embed_model)
        return OpenAIEmbeddingAdapter(settings)
    if provider == "vertex":
        from shiftmap.adapters.vertex_embedding import VertexEmbeddingAdapter
        logger.info("Embedding provider: Vertex AI (%s)", settings.gcp_embed_model)
        return VertexEmbeddingAdapter(gcp_auth or _build_gcp_auth(settings), settings)
    raise ConfigurationError(
        f"Unknown EMBED_PROVIDER '{settings.embed_provider}'. "
        "Valid values: 'openai', 'vertex'."
    )


def _build_llm(settings: Settings, gcp_auth=None) -> LLMPort:
    """Instantiate the correct LLMPort adapter based on LLM_PROVIDER."""
    provider = settings.llm_provider.lower()
    if provider == "openai":
        from shiftmap.adapters.openai_llm import OpenAILLMAdapter
        logger.info("LLM provider: OpenAI (%s)", settings.openai_llm_model)
        return OpenAILLMAdapter(settings)
    if provider == "vertex":
        from shiftmap.adapters.gemini_llm import GeminiLLMAdapter
        logger.info("LLM provider: Vertex AI Gemini (%s)", settings.gcp_gemini_model)
        return GeminiLLMAdapter(gcp_auth or _build_gcp_auth(settings), settings)
    raise ConfigurationError(
        f"Unknown LLM_PROVIDER '{settings.llm_provider}'. "
        "Valid values: 'openai', 'vertex'."
    )


def build_resolver(
    settings: Settings,
    embedder: EmbeddingPort,
    llm: LLMPort,
) -> TieredResolver:
    """Wire a TieredResolver from already-built adapters.

    Warms the label embedding cache when CACHE_LABEL_EMBEDDINGS is on.
    """
    settings.validate()
    cache = (
        LabelEmbeddingCache.build(embedder, settings.canonical_labels)
        if settings.cache_label_embeddings
        else None
    )
    scorer = SimilarityScorer(embedder=embedder, cache=cache)
    classifier = EscalationClassifier(llm=llm, settings=settings)
    return TieredResolver(scorer=scorer, classifier=classifier, settings=settings)


@lru_cache(maxsize=1)
def get_resolver() -> TieredResolver:
    """Build and return the fully wired TieredResolver singleton.

    Raises:
        ConfigurationError: Invalid thresholds/labels or unknown provider.
        AuthenticationError: If required API keys / credentials are missing.
        EmbeddingError: If the label cache cannot be warmed.
    """
    settings = get_settings().validate()
    logger.info(
        "Building TieredResolver | embed_provider=%s llm_provider=%s labels=%d "
        "high=%.2f review=%.2f",
        settings.embed_provider,
        settings.llm_provider,
        len(settings.canonical_labels),
        settings.high_confidence_threshold,
        settings.review_threshold,
    )

    uses_gcp = "vertex" in (settings.embed_provider.lower(), settings.llm_provider.lower())
    gcp_auth = _build_gcp_auth(settings) if uses_gcp else None

    embedder = _build_embedder(settings, gcp_auth)
    llm = _build_llm(settings, gcp_auth)
    resolver = build_resolver(settings, embedder, llm)

    logger.info(
        "TieredResolver ready | embedder=%s llm=%s", embedder.model_name, llm.model_name
    )
    return resolver


@lru_cache(maxsize=1)
def get_runner() -> ResolutionRunner:
    """Return the ResolutionRunner singleton wrapping get_resolver()."""
    return ResolutionRunner(resolver=get_resolver(), settings=get_settings())
