"""
Models package for the TabWriter service.
"""

from tabwriter.models.evidence import (
    NEUTRAL_SCORE,
    EvidenceCandidate,
    EvidenceKind,
    EvidenceOptions,
    EvidenceRequest,
    EvidenceResult,
    ExtractedContent,
    ScoredEvidence,
    SourceInfo,
    UserIntent,
)
from tabwriter.models.research import ResearchPaper, ResearchRequest
from tabwriter.models.writing import (
    AutocompleteRequest,
    AutocompleteResponse,
    Genre,
    Purpose,
    Structure,
    Tone,
    ToneAnalysis,
    ToneAnalysisRequest,
)

__all__ = [
    # Evidence models
    "NEUTRAL_SCORE",
    "EvidenceCandidate",
    "EvidenceKind",
    "EvidenceOptions",
    "EvidenceRequest",
    "EvidenceResult",
    "ExtractedContent",
    "ScoredEvidence",
    "SourceInfo",
    "UserIntent",
    # Research models
    "ResearchPaper",
    "ResearchRequest",
    # Writing models
    "AutocompleteRequest",
    "AutocompleteResponse",
    "Genre",
    "Purpose",
    "Structure",
    "Tone",
    "ToneAnalysis",
    "ToneAnalysisRequest",
]
