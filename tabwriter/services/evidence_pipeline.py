"""
Evidence pipeline entry point.

read source ∥ analyse intent → extract candidates → score each candidate →
rank per kind → recommend. Fatal errors (no credential, empty user text,
unreadable source, completion outage outside the scorer) propagate; every
other failure degrades to a documented default.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog

from tabwriter.core.exceptions import InvalidInputError
from tabwriter.models.evidence import EvidenceOptions, EvidenceResult, SourceInfo
from tabwriter.services.evidence_extractor import extract_candidates
from tabwriter.services.intent_analyzer import analyze_user_intent
from tabwriter.services.llm_client import CompletionClient, get_llm_client
from tabwriter.services.ranking import select_evidence, split_by_kind
from tabwriter.services.recommendations import (
    NO_EVIDENCE_RECOMMENDATION,
    generate_recommendations,
)
from tabwriter.services.relevance_scorer import score_candidates
from tabwriter.services.source_reader import SourceDocument

logger = structlog.get_logger(__name__)

NO_CANDIDATES_MESSAGE = "No statistics or quotes were found in the source file."

SourceArg = Union[SourceDocument, str, Path]


def _coerce_options(options: Union[EvidenceOptions, Dict[str, Any], None]) -> EvidenceOptions:
    if options is None:
        return EvidenceOptions()
    if isinstance(options, EvidenceOptions):
        return options
    return EvidenceOptions.model_validate(options)


def _coerce_source(source: SourceArg) -> SourceDocument:
    if isinstance(source, SourceDocument):
        return source
    if isinstance(source, (str, Path)) and str(source).strip():
        return SourceDocument.from_path(source)
    raise InvalidInputError("A source document is required")


async def extract_evidence(
    user_text: str,
    source: SourceArg,
    options: Union[EvidenceOptions, Dict[str, Any], None] = None,
    *,
    client: Optional[CompletionClient] = None,
) -> EvidenceResult:
    """Find the statistics and quotes in *source* that best support *user_text*.

    Args:
        user_text: The writer's draft. Must not be blank.
        source: A ``SourceDocument`` or a filesystem path.
        options: ``EvidenceOptions`` (or its dict form) with ``max_stats``,
            ``max_quotes`` and ``relevance_threshold``.
        client: Completion client; the shared ``llm_client`` by default.
    """
    if not user_text or not user_text.strip():
        raise InvalidInputError("User text is required")
    document = _coerce_source(source)
    opts = _coerce_options(options)
    client = client or get_llm_client()

    log = logger.bind(file=document.filename)
    log.info("Evidence extraction started", threshold=opts.relevance_threshold)

    # Both depend only on raw inputs
    loaded, intent = await asyncio.gather(
        document.load(),
        analyze_user_intent(user_text, client),
        return_exceptions=True,
    )
    for outcome in (loaded, intent):
        if isinstance(outcome, BaseException):
            raise outcome
    source_text: str = loaded

    length = len(source_text)
    word_count = len(source_text.split())

    content = await extract_candidates(source_text, client)
    if content.is_empty:
        log.info("No candidates found in source")
        return EvidenceResult(
            user_context=intent,
            statistics=[],
            quotes=[],
            source_info=SourceInfo(file=document.filename, length=length, word_count=word_count),
            recommendations=NO_EVIDENCE_RECOMMENDATION,
            message=NO_CANDIDATES_MESSAGE,
        )

    scored = await score_candidates([*content.statistics, *content.quotes], intent, client)
    all_stats, all_quotes = split_by_kind(scored)
    statistics, quotes = select_evidence(all_stats, all_quotes, opts)

    recommendations = await generate_recommendations(user_text, statistics, quotes, client)

    log.info(
        "Evidence extraction finished",
        statistics_found=len(content.statistics),
        quotes_found=len(content.quotes),
        statistics_kept=len(statistics),
        quotes_kept=len(quotes),
    )
    return EvidenceResult(
        user_context=intent,
        statistics=statistics,
        quotes=quotes,
        source_info=SourceInfo(
            file=document.filename,
            length=length,
            word_count=word_count,
            total_stats_found=len(content.statistics),
            total_quotes_found=len(content.quotes),
            relevant_stats_count=len(statistics),
            relevant_quotes_count=len(quotes),
        ),
        recommendations=recommendations,
    )
