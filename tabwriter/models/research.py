"""
Research recommendation models.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from tabwriter.core import config
from tabwriter.models.evidence import CamelModel


class ResearchPaper(CamelModel):
    """One scholarly result, normalised across providers."""

    title: str
    authors: str = "Unknown"
    abstract: str = ""
    published: str = ""
    updated: str = ""
    url: str
    doi: str = ""
    source: str
    subjects: str = ""
    relevant_topic: str = ""
    pdf_url: str = ""
    language: str = "en"
    paper_type: str = Field(default="academic_paper", alias="type")
    citation_count: Optional[int] = None
    relevance_score: Optional[float] = None
    relevance_analysis: Optional[str] = None


class ResearchRequest(CamelModel):
    text: str = Field(..., min_length=1)
    max_papers: int = Field(default_factory=lambda: config.RESEARCH_MAX_PAPERS, ge=1, le=50)
    enhanced: bool = False

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v
