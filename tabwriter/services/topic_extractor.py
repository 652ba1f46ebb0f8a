"""
Scholarly search-topic extraction.

The model proposes 3-5 humanities search terms as a JSON array. When the
reply cannot be parsed we fall back to a curated term list, capitalised
words and finally the most frequent content words of the draft.
"""

from __future__ import annotations

import re
from typing import List

import structlog

from tabwriter.core.exceptions import InvalidInputError
from tabwriter.services.llm_client import CompletionClient
from tabwriter.services.text_utils import top_keywords
from tabwriter.utils.json_extract import extract_json_array

logger = structlog.get_logger(__name__)

MAX_TOPICS = 5

TOPIC_SYSTEM_PROMPT = """You are a humanities research specialist with expertise across literature, philosophy, history, cultural studies, linguistics, anthropology, religious studies, art history, political theory, and interdisciplinary humanities fields.

Analyze the given text and extract 3-5 key academic topics, concepts, or keywords that would be effective for finding scholarly humanities articles. Focus on:
- Literary theories, movements, authors, or periods
- Philosophical concepts, thinkers, or schools of thought
- Historical periods, events, or methodological approaches
- Cultural phenomena, identity studies, or social theory
- Linguistic concepts or language families
- Religious or theological concepts
- Art historical movements, artists, or techniques
- Political theories or governance concepts

Return only a JSON array of strings. Each should be a specific, scholarly term or concept appropriate for humanities databases."""

HUMANITIES_TERMS = (
    # Literature
    "narrative theory", "postcolonial literature", "modernism", "romanticism", "feminist criticism",
    "comparative literature", "literary theory", "canon formation", "genre studies", "poetry analysis",
    # Philosophy
    "phenomenology", "existentialism", "ethics", "epistemology", "metaphysics", "political philosophy",
    "continental philosophy", "analytic philosophy", "moral philosophy", "philosophy of mind",
    # History
    "social history", "cultural history", "intellectual history", "microhistory", "oral history",
    "historiography", "medieval history", "ancient history", "modern history", "gender history",
    # Cultural studies
    "cultural identity", "postmodernism", "globalization", "cultural theory", "media studies",
    "popular culture", "digital humanities", "memory studies", "diaspora studies", "queer theory",
    # Linguistics
    "sociolinguistics", "historical linguistics", "discourse analysis", "pragmatics", "semantics",
    "language contact", "morphology", "phonology", "syntax", "language acquisition",
    # Religion
    "comparative religion", "theology", "religious studies", "biblical studies", "islamic studies",
    "buddhist studies", "religious philosophy", "sacred texts", "ritual studies", "mysticism",
    # Art history
    "renaissance art", "contemporary art", "art criticism", "visual culture", "iconography",
    "museum studies", "art theory", "aesthetic theory", "public art", "digital art",
)

_CAPITALISED_RE = re.compile(r"\b[A-Z][a-z]{4,}\b")


def fallback_topics(text: str) -> List[str]:
    """Deterministic topics for when the model reply is unusable."""
    lowered = text.lower()
    found = [term for term in HUMANITIES_TERMS if term in lowered]

    capitalised: List[str] = []
    for word in _CAPITALISED_RE.findall(text):
        w = word.lower()
        if w not in capitalised:
            capitalised.append(w)

    topics = (found + capitalised[:3])[:MAX_TOPICS]
    if not topics:
        topics = top_keywords(text, limit=3)
    return topics


def _clean_topics(raw: List[object]) -> List[str]:
    topics: List[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        topic = item.strip()
        if topic and topic not in topics:
            topics.append(topic)
    return topics[:MAX_TOPICS]


async def extract_topics(user_text: str, client: CompletionClient) -> List[str]:
    """Return up to five search topics for *user_text*.

    ``CompletionUnavailable`` propagates; parse failures do not.
    """
    if not user_text or not user_text.strip():
        raise InvalidInputError("Valid user text is required")

    reply = await client.complete(
        TOPIC_SYSTEM_PROMPT,
        user_text,
        max_tokens=300,
        temperature=0.3,
    )

    parsed = extract_json_array(reply)
    topics = _clean_topics(parsed) if parsed is not None else []
    if not topics:
        logger.warning("Topic reply unusable, using keyword fallback", reply_preview=reply[:120])
        topics = fallback_topics(user_text)

    logger.info("Research topics extracted", topics=topics)
    return topics
