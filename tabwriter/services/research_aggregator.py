"""
Multi-source research aggregation.

topics → (provider × topic) fan-out → dedup → truncate, with an optional
enhanced pass that re-scores each paper 1-10 against the draft.
"""

from __future__ import annotations

import asyncio
import math
import re
from typing import List, Optional, Sequence, Tuple

import structlog

from tabwriter.core import config
from tabwriter.core.exceptions import CompletionUnavailable, InvalidInputError
from tabwriter.models.research import ResearchPaper
from tabwriter.services.llm_client import CompletionClient, get_llm_client
from tabwriter.services.search_apis import (
    BaseSearchAPI,
    SearchAPIManager,
    SearchConfig,
    create_search_manager,
)
from tabwriter.services.topic_extractor import extract_topics
from tabwriter.utils.error_handling import log_exception
from tabwriter.utils.json_extract import extract_json_object
from tabwriter.utils.url_utils import normalize_doi

logger = structlog.get_logger(__name__)

DEFAULT_PAPER_SCORE = 5
UNAVAILABLE_ANALYSIS = "Analysis unavailable"

RESCORE_SYSTEM_PROMPT = (
    "You are a humanities research expert familiar with interdisciplinary scholarship. "
    "Analyze how relevant a research paper is to the user's humanities research interests. "
    "Consider theoretical frameworks, methodological approaches, primary sources, and "
    "interdisciplinary connections. Return a relevance score from 1-10 and a brief explanation."
)

_TITLE_STRIP_RE = re.compile(r"[^\w\s]")
_FIRST_INT_RE = re.compile(r"\d+")
_SCORE_PREFIX_RE = re.compile(r"^\s*\d+\s*(?:/\s*10)?\s*[.\-:)]?\s*")


# --------------------------------------------------------------------------- #
#                              Deduplication                                  #
# --------------------------------------------------------------------------- #

def normalize_title(title: str) -> str:
    return _TITLE_STRIP_RE.sub("", (title or "").lower()).strip()


def remove_duplicate_papers(papers: Sequence[ResearchPaper]) -> List[ResearchPaper]:
    """Drop papers whose DOI or normalised title was already seen; first wins."""
    unique: List[ResearchPaper] = []
    seen_titles = set()
    seen_dois = set()
    for paper in papers:
        title_key = normalize_title(paper.title)
        doi_key = normalize_doi(paper.doi)
        if doi_key and doi_key in seen_dois:
            continue
        if title_key in seen_titles:
            continue
        if doi_key:
            seen_dois.add(doi_key)
        seen_titles.add(title_key)
        unique.append(paper)
    return unique


# --------------------------------------------------------------------------- #
#                              Fan-out search                                 #
# --------------------------------------------------------------------------- #

async def search_sources(
    topics: Sequence[str],
    max_papers: int,
    manager: SearchAPIManager,
) -> List[ResearchPaper]:
    """Query every provider for each of the first N topics concurrently.

    A failing (provider, topic) pair is logged and contributes nothing.
    Results keep provider order, then topic order, then provider rank.
    """
    searched = list(topics)[: config.RESEARCH_MAX_TOPICS_SEARCHED]
    providers: List[Tuple[str, BaseSearchAPI]] = list(manager.apis.items())
    if not searched or not providers:
        return []

    per_source = math.ceil(max_papers / len(providers))
    cfg = SearchConfig(max_results=per_source, subject_filter=config.RESEARCH_SUBJECT_FILTER)

    pairs = [(name, api, topic) for name, api in providers for topic in searched]
    results = await asyncio.gather(
        *(api.search(topic, cfg) for _, api, topic in pairs),
        return_exceptions=True,
    )

    papers: List[ResearchPaper] = []
    failed = 0
    for (name, _api, topic), result in zip(pairs, results):
        if isinstance(result, Exception):
            failed += 1
            log_exception("Search source failed", result, provider=name, topic=topic)
            continue
        if isinstance(result, BaseException):
            raise result
        papers.extend(result)

    logger.info(
        "Search fan-out finished",
        topics=searched,
        providers=[name for name, _ in providers],
        per_source=per_source,
        results=len(papers),
        failed_queries=failed,
    )
    return papers


# --------------------------------------------------------------------------- #
#                              Re-scoring                                     #
# --------------------------------------------------------------------------- #

def parse_paper_score(reply: str) -> Tuple[int, str]:
    """Read a 1-10 score and explanation from a re-scoring reply.

    Raises:
        ValueError: no score could be found.
    """
    payload = extract_json_object(reply)
    if payload is not None and payload.get("score") is not None:
        raw_score = payload.get("score")
        if isinstance(raw_score, bool):
            raise ValueError("boolean score")
        score = int(round(float(raw_score)))
        analysis = str(payload.get("analysis") or payload.get("reason") or "").strip()
    else:
        match = _FIRST_INT_RE.search(reply or "")
        if not match:
            raise ValueError("no score in re-scoring reply")
        score = int(match.group(0))
        analysis = _SCORE_PREFIX_RE.sub("", reply).strip()
    return max(1, min(10, score)), analysis or UNAVAILABLE_ANALYSIS


def _rescore_prompt(user_text: str, paper: ResearchPaper) -> str:
    return (
        f'User\'s research interest: "{user_text}"\n\n'
        f'Paper title: "{paper.title}"\n'
        f'Paper abstract: "{paper.abstract[:600]}"\n'
        f'Subjects: "{paper.subjects}"\n\n'
        "Rate relevance (1-10) for humanities research and explain why in 1-2 sentences, "
        "focusing on theoretical or methodological relevance. "
        'Respond as JSON: {"score": <1-10>, "analysis": "..."}'
    )


async def rescore_paper(user_text: str, paper: ResearchPaper, client: CompletionClient) -> ResearchPaper:
    """Attach a 1-10 relevance score; failures give 5 / "Analysis unavailable"."""
    try:
        reply = await client.complete(
            RESCORE_SYSTEM_PROMPT,
            _rescore_prompt(user_text, paper),
            max_tokens=120,
            temperature=0.1,
        )
        score, analysis = parse_paper_score(reply)
    except (CompletionUnavailable, ValueError, TypeError) as e:
        log_exception("Paper re-scoring failed", e, title=paper.title[:80])
        score, analysis = DEFAULT_PAPER_SCORE, UNAVAILABLE_ANALYSIS
    return paper.model_copy(update={"relevance_score": float(score), "relevance_analysis": analysis})


async def rescore_papers(
    user_text: str,
    papers: Sequence[ResearchPaper],
    client: CompletionClient,
) -> List[ResearchPaper]:
    """Re-score concurrently, then stable-sort by score descending."""
    sem = asyncio.Semaphore(config.EVIDENCE_SCORING_CONCURRENCY)

    async def _bounded(paper: ResearchPaper) -> ResearchPaper:
        async with sem:
            return await rescore_paper(user_text, paper, client)

    results = await asyncio.gather(*(_bounded(p) for p in papers), return_exceptions=True)
    scored: List[ResearchPaper] = []
    for paper, result in zip(papers, results):
        if isinstance(result, Exception):
            log_exception("Paper re-scoring task crashed", result, title=paper.title[:80])
            result = paper.model_copy(
                update={"relevance_score": float(DEFAULT_PAPER_SCORE), "relevance_analysis": UNAVAILABLE_ANALYSIS}
            )
        elif isinstance(result, BaseException):
            raise result
        scored.append(result)
    return sorted(scored, key=lambda p: p.relevance_score or 0.0, reverse=True)


# --------------------------------------------------------------------------- #
#                              Entry point                                    #
# --------------------------------------------------------------------------- #

async def find_relevant_research(
    user_text: str,
    max_papers: Optional[int] = None,
    *,
    enhanced: bool = False,
    client: Optional[CompletionClient] = None,
    manager: Optional[SearchAPIManager] = None,
) -> List[ResearchPaper]:
    """Recommend up to *max_papers* scholarly papers related to *user_text*.

    With ``enhanced`` twice as many candidates are fetched, each is
    re-scored 1-10 by the model, and the best *max_papers* are returned.
    """
    if not user_text or not isinstance(user_text, str) or not user_text.strip():
        raise InvalidInputError("Valid user text is required")
    max_papers = config.RESEARCH_MAX_PAPERS if max_papers is None else max_papers
    if max_papers < 1:
        raise InvalidInputError("max_papers must be at least 1")
    client = client or get_llm_client()

    topics = await extract_topics(user_text, client)
    if not topics:
        logger.warning("No research topics could be extracted")
        return []

    fetch_count = max_papers * 2 if enhanced else max_papers
    owns_manager = manager is None
    manager = manager or create_search_manager()
    try:
        candidates = await search_sources(topics, fetch_count, manager)
    finally:
        if owns_manager:
            await manager.close()

    papers = remove_duplicate_papers(candidates)[:fetch_count]
    if not papers:
        logger.warning("No papers found for the extracted topics", topics=topics)
        return []

    if enhanced:
        papers = await rescore_papers(user_text, papers, client)
    return papers[:max_papers]
