"""
Guidance on how to work the retained evidence into the draft.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from tabwriter.models.evidence import ScoredEvidence
from tabwriter.services.llm_client import CompletionClient

logger = structlog.get_logger(__name__)

NO_EVIDENCE_RECOMMENDATION = (
    "No relevant statistics or quotes found. Consider using different source "
    "material or refining your search terms."
)

RECOMMENDATION_SYSTEM_PROMPT = """Provide specific recommendations for incorporating the found statistics and quotes into the user's writing.

Include:
- Where each piece of evidence would be most effective
- How to introduce and frame the evidence
- What additional context might be needed
- Specific integration suggestions

Be practical and actionable."""


def _summarise(items: Sequence[ScoredEvidence]) -> str:
    return "; ".join(f'"{item.text}" (relevance: {item.relevance_score:.2f})' for item in items)


async def generate_recommendations(
    user_text: str,
    statistics: Sequence[ScoredEvidence],
    quotes: Sequence[ScoredEvidence],
    client: CompletionClient,
) -> str:
    """One completion call; no call at all when nothing was retained."""
    if not statistics and not quotes:
        return NO_EVIDENCE_RECOMMENDATION

    prompt = (
        f'User\'s text: "{user_text}"\n\n'
        f"Found Statistics: {_summarise(statistics)}\n\n"
        f"Found Quotes: {_summarise(quotes)}\n\n"
        "How should they integrate this evidence?"
    )
    reply = await client.complete(
        RECOMMENDATION_SYSTEM_PROMPT,
        prompt,
        max_tokens=400,
        temperature=0.3,
    )
    logger.debug("Recommendations generated", chars=len(reply))
    return reply
