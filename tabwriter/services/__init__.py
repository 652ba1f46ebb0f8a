"""
Service layer: evidence pipeline, research aggregation and writing helpers.
"""

from tabwriter.services.autocomplete import AutocompleteService
from tabwriter.services.evidence_pipeline import extract_evidence
from tabwriter.services.llm_client import CompletionClient, LLMClient, get_llm_client
from tabwriter.services.research_aggregator import find_relevant_research
from tabwriter.services.tone_analysis import analyze_tone

__all__ = [
    "AutocompleteService",
    "CompletionClient",
    "LLMClient",
    "analyze_tone",
    "extract_evidence",
    "find_relevant_research",
    "get_llm_client",
]
