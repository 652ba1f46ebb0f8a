"""
Models for tone analysis and inline autocomplete.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from tabwriter.models.evidence import CamelModel


class Tone(str, Enum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    CREATIVE = "creative"
    CONCISE = "concise"
    WITTY = "witty"
    INSTRUCTIONAL = "instructional"
    URGENT = "urgent"
    REFLECTIVE = "reflective"


class Purpose(str, Enum):
    PERSUASIVE = "persuasive"
    INFORMATIVE = "informative"
    DESCRIPTIVE = "descriptive"
    FLATTERING = "flattering"
    NARRATIVE = "narrative"


class Genre(str, Enum):
    EMAIL = "email"
    ESSAY = "essay"
    SOCIAL_POST = "social post"
    REPORT = "report"
    STORY = "story"
    RESEARCH = "research"
    SALES = "sales"
    EDUCATION = "education"


class Structure(str, Enum):
    CHRONOLOGICAL = "chronological"
    PROBLEM_SOLUTION = "problem-solution"
    CAUSE_EFFECT = "cause-effect"
    COMPARE_CONTRAST = "compare-contrast"
    QUESTION_ANSWER = "question-answer"
    COUNTER_ARGUMENT = "counter-argument"
    FOR_AND_AGAINST = "for and against"
    LIST = "list"
    INVERTED_PYRAMID = "inverted pyramid"
    NARRATIVE = "narrative"


def _lower_strip(v):
    return v.strip().lower() if isinstance(v, str) else v


class ToneAnalysis(CamelModel):
    detected_tone: Tone = Tone.PROFESSIONAL
    detected_purpose: Purpose = Purpose.INFORMATIVE
    suggestions: List[str] = Field(default_factory=list)


class ToneAnalysisRequest(CamelModel):
    text: str = Field(..., min_length=1)


class AutocompleteRequest(CamelModel):
    text: str = Field(..., min_length=1)
    tone: Tone
    purpose: Purpose
    genre: Genre
    structure: Structure
    context: Optional[str] = None

    @field_validator("tone", "purpose", "genre", "structure", mode="before")
    @classmethod
    def _normalise_choice(cls, v):
        return _lower_strip(v)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v.strip()

    @field_validator("context")
    @classmethod
    def _trim_context(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class AutocompleteResponse(CamelModel):
    suggestion: str
    tone: Tone
    purpose: Purpose
    genre: Genre
    structure: Structure
    status: str = "success"
