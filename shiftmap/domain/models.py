"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • services build them (scorer → SimilarityMatch, classifier →
    EscalationVerdict, resolver → MappingVerdict)
  • interfaces (CLI, Streamlit) serialise them

Every model is frozen: a MappingVerdict is constructed once from whichever
tier's values win and is never edited afterwards.

Wire format of a MappingVerdict (camelCase, as consumed by reporting):
  {"input": ..., "mappedOutput": ..., "source": "embedding" | "llm",
   "confidence": ..., "humanReviewRequired": ...}
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ── Enums ──────────────────────────────────────────────────────────────────────

class VerdictSource(str, Enum):
    """Which tier produced the recorded verdict."""
    EMBEDDING = "embedding"
    LLM       = "llm"        # escalation was attempted, whatever it returned


class ResolutionTier(str, Enum):
    """Confidence band a score falls into."""
    ACCEPT   = "accept"      # score >= high threshold
    ESCALATE = "escalate"    # review threshold <= score < high threshold
    REVIEW   = "review"      # score < review threshold


# ── Input ──────────────────────────────────────────────────────────────────────

class ActivityEntry(BaseModel):
    """Raw activity text handed to the runner.

    The text is kept exactly as supplied; only blank input is rejected.
    """

    text: str = Field(..., description="Free-text shift activity description")

    @field_validator("text")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("activity description must not be empty")
        return v



# ── Tier 1 output ─────────────────────────────────────────────────────────────

class SimilarityMatch(BaseModel):
    """Best canonical label found by the similarity scorer.

    ``label`` is None only when no label scored above the initial -1.0.
    """

    model_config = ConfigDict(frozen=True)

    label: Optional[str] = None
    score: float = -1.0


# ── Escalation output ─────────────────────────────────────────────────────────

class EscalationVerdict(BaseModel):
    """Structured answer from the generative-model classifier."""

    model_config = ConfigDict(frozen=True)

    match: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)


@dataclass(frozen=True)
class EscalationParseFailure:
    """Why a raw LLM response could not be turned into an EscalationVerdict."""

    raw_text: str
    reason: str


EscalationParseResult = Union[EscalationVerdict, EscalationParseFailure]


# ── Final output ──────────────────────────────────────────────────────────────

class MappingVerdict(BaseModel):
    """Final mapping for one input.  Serialised to the output dataset."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    input:                 str
    mapped_output:         Optional[str] = None
    source:                VerdictSource
    confidence:            float
    human_review_required: bool = True

    @property
    def is_mapped(self) -> bool:
        """True when the verdict can be used without a human looking at it."""
        return not self.human_review_required and self.mapped_output is not None

    def to_dict(self) -> dict:
        """Serialise to a plain camelCase dict (JSON-safe)."""
        return self.model_dump(mode="json", by_alias=True)


# ── Batch output ──────────────────────────────────────────────────────────────

class BatchOutcome(BaseModel):
    """Result slot for one input of a batch run: a verdict or an error."""

    model_config = ConfigDict(frozen=True)

    index:   int
    input:   str
    verdict: Optional[MappingVerdict] = None
    error:   Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.verdict is not None

    def to_dict(self) -> dict:
        """One output record; failures keep the verdict shape plus ``error``."""
        if self.verdict is not None:
            return self.verdict.to_dict()
        return {
            "input": self.input,
            "mappedOutput": None,
            "source": None,
            "confidence": None,
            "humanReviewRequired": True,
            "error": self.error,
        }


class BatchSummary(BaseModel):
    """Counts reported at the end of a batch run."""

    total:           int = 0
    auto_accepted:   int = 0
    escalated:       int = 0
    review_required: int = 0
    failed:          int = 0

    @classmethod
    def from_outcomes(cls, outcomes: list[BatchOutcome]) -> "BatchSummary":
        summary = {"total": len(outcomes), "auto_accepted": 0, "escalated": 0,
                   "review_required": 0, "failed": 0}
        for outcome in outcomes:
            if outcome.verdict is None:
                summary["failed"] += 1
                continue
            if outcome.verdict.source == VerdictSource.LLM:
                summary["escalated"] += 1
            if outcome.verdict.human_review_required:
                summary["review_required"] += 1
            else:
                summary["auto_accepted"] += 1
        return cls(**summary)
