"""
Evidence models shared by the extraction → scoring → ranking pipeline.

All models serialise with camelCase keys (``relevanceScore``,
``mainArgument``...) which is the JSON contract consumed by the editor
panels; Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tabwriter.core import config

NEUTRAL_SCORE = 0.5


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class EvidenceKind(str, Enum):
    STATISTIC = "statistic"
    QUOTE = "quote"


class EvidenceCandidate(CamelModel):
    """A statistic or quote pulled from the source, not yet scored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    text: str
    context: str = ""
    source: str = ""
    position: str = ""
    kind: EvidenceKind = Field(
        ..., serialization_alias="type", validation_alias=AliasChoices("kind", "type")
    )


class ScoredEvidence(EvidenceCandidate):
    """Candidate enriched with a relevance judgement."""

    relevance_score: float = NEUTRAL_SCORE
    relevance_reason: str = ""

    @field_validator("relevance_score", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        if v is None:
            return NEUTRAL_SCORE
        return max(0.0, min(1.0, float(v)))

    @classmethod
    def from_candidate(
        cls, candidate: EvidenceCandidate, score: float, reason: str
    ) -> "ScoredEvidence":
        return cls(
            **candidate.model_dump(),
            relevance_score=score,
            relevance_reason=reason,
        )


class UserIntent(CamelModel):
    main_argument: str = ""
    key_topics: List[str] = Field(default_factory=list)
    evidence_needs: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    audience: str = ""

    @field_validator("key_topics", "evidence_needs", "gaps", mode="before")
    @classmethod
    def _coerce_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v]

    @classmethod
    def placeholder(cls) -> "UserIntent":
        """Neutral intent used when analysis cannot be parsed."""
        return cls(
            main_argument="Could not determine main argument",
            key_topics=["general"],
            evidence_needs=["supporting data"],
            gaps=["needs more evidence"],
            audience="general",
        )


class ExtractedContent(BaseModel):
    statistics: List[EvidenceCandidate] = Field(default_factory=list)
    quotes: List[EvidenceCandidate] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.statistics and not self.quotes


class SourceInfo(CamelModel):
    file: str
    length: int = 0
    word_count: int = 0
    total_stats_found: int = 0
    total_quotes_found: int = 0
    relevant_stats_count: int = 0
    relevant_quotes_count: int = 0


class EvidenceOptions(CamelModel):
    max_stats: int = Field(default_factory=lambda: config.EVIDENCE_MAX_STATS, ge=0)
    max_quotes: int = Field(default_factory=lambda: config.EVIDENCE_MAX_QUOTES, ge=0)
    relevance_threshold: float = Field(
        default_factory=lambda: config.EVIDENCE_RELEVANCE_THRESHOLD, ge=0.0, le=1.0
    )


class EvidenceResult(CamelModel):
    user_context: UserIntent
    statistics: List[ScoredEvidence] = Field(default_factory=list)
    quotes: List[ScoredEvidence] = Field(default_factory=list)
    source_info: SourceInfo
    recommendations: str = ""
    message: Optional[str] = None


class EvidenceRequest(CamelModel):
    user_text: str = Field(..., min_length=1)
    source_text: str = ""
    filename: str = "source.txt"
    options: Optional[EvidenceOptions] = None

    @field_validator("user_text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("userText must not be blank")
        return v
