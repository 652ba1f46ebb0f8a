"""
Per-candidate relevance scoring.

Each candidate gets its own completion call; calls run concurrently under a
semaphore and a failure only ever degrades the candidate it belongs to.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence, Tuple

import structlog

from tabwriter.core import config
from tabwriter.core.exceptions import CompletionUnavailable
from tabwriter.models.evidence import (
    NEUTRAL_SCORE,
    EvidenceCandidate,
    ScoredEvidence,
    UserIntent,
)
from tabwriter.services.llm_client import CompletionClient
from tabwriter.utils.error_handling import log_exception
from tabwriter.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

FALLBACK_REASON = "Could not determine relevance"
MISSING_REASON = "No specific reason provided"

SCORING_SYSTEM_PROMPT = """Score how relevant this {kind} is for supporting the user's writing.

Consider:
- Direct relevance to main argument
- Support for key topics
- Credibility and impact
- Appropriateness for audience
- How well it fills identified gaps

Return score 0.0-1.0 and brief explanation.
Format: {{"score": 0.85, "reason": "directly supports main argument about..."}}"""


def _build_prompt(candidate: EvidenceCandidate, intent: UserIntent) -> str:
    return (
        f"User's main argument: {intent.main_argument}\n"
        f"Key topics: {', '.join(intent.key_topics)}\n"
        f"Evidence needs: {', '.join(intent.evidence_needs)}\n\n"
        f'{candidate.kind.value.upper()}: "{candidate.text}"\n'
        f"Context: {candidate.context}\n\n"
        "Relevance score?"
    )


def _as_score(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"non-numeric score: {value!r}")
    score = float(value)
    if score != score:  # NaN
        raise ValueError("score is NaN")
    return max(0.0, min(1.0, score))


def parse_score_reply(reply: str) -> Tuple[float, str]:
    """Return ``(score, reason)`` from a scoring reply.

    Raises:
        ValueError: no JSON object, or a missing/non-numeric score.
    """
    payload = extract_json_object(reply)
    if payload is None:
        raise ValueError("no JSON object in scoring reply")
    score = _as_score(payload.get("score"))
    reason = payload.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        reason = MISSING_REASON
    return score, reason.strip()


def neutral(candidate: EvidenceCandidate) -> ScoredEvidence:
    return ScoredEvidence.from_candidate(candidate, NEUTRAL_SCORE, FALLBACK_REASON)


async def score_candidate(
    candidate: EvidenceCandidate,
    intent: UserIntent,
    client: CompletionClient,
) -> ScoredEvidence:
    """Score one candidate; any failure yields the neutral 0.5 score."""
    try:
        reply = await client.complete(
            SCORING_SYSTEM_PROMPT.format(kind=candidate.kind.value),
            _build_prompt(candidate, intent),
            max_tokens=150,
            temperature=0.1,
        )
        score, reason = parse_score_reply(reply)
    except (CompletionUnavailable, ValueError, TypeError) as e:
        log_exception(
            "Relevance scoring failed",
            e,
            kind=candidate.kind.value,
            candidate=candidate.text[:60],
        )
        return neutral(candidate)
    return ScoredEvidence.from_candidate(candidate, score, reason)


async def score_candidates(
    candidates: Sequence[EvidenceCandidate],
    intent: UserIntent,
    client: CompletionClient,
    *,
    concurrency: Optional[int] = None,
) -> List[ScoredEvidence]:
    """Score all *candidates* concurrently; output order matches input order."""
    if not candidates:
        return []
    sem = asyncio.Semaphore(concurrency or config.EVIDENCE_SCORING_CONCURRENCY)

    async def _bounded(candidate: EvidenceCandidate) -> ScoredEvidence:
        async with sem:
            return await score_candidate(candidate, intent, client)

    results = await asyncio.gather(
        *(_bounded(c) for c in candidates), return_exceptions=True
    )

    scored: List[ScoredEvidence] = []
    failures = 0
    for candidate, result in zip(candidates, results):
        if isinstance(result, Exception):
            failures += 1
            log_exception("Relevance scoring task crashed", result, candidate=candidate.text[:60])
            scored.append(neutral(candidate))
        elif isinstance(result, BaseException):
            raise result
        else:
            scored.append(result)

    logger.info("Candidates scored", total=len(scored), crashed=failures)
    return scored
