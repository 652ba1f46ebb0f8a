"""
Inline continuation suggestions.

Suggestions are cached per service instance in a ``TTLCache`` keyed by the
full normalised request, so an identical keystroke burst costs one call.
"""

from __future__ import annotations

import re
import time
from typing import Callable, Optional, Tuple

import structlog
from cachetools import TTLCache

from tabwriter.core import config
from tabwriter.models.writing import AutocompleteRequest, Genre, Purpose, Tone
from tabwriter.services.llm_client import CompletionClient

logger = structlog.get_logger(__name__)

TONE_MODIFIERS = {
    Tone.PROFESSIONAL: "maintaining a professional and polished tone",
    Tone.CASUAL: "keeping the casual and friendly tone",
    Tone.CREATIVE: "continuing with creative and expressive language",
    Tone.CONCISE: "being direct and concise",
    Tone.WITTY: "maintaining the clever and humorous style",
    Tone.INSTRUCTIONAL: "continuing in a clear, educational manner",
    Tone.URGENT: "keeping the sense of urgency and importance",
    Tone.REFLECTIVE: "maintaining the thoughtful and contemplative tone",
}

PURPOSE_CONTEXT = {
    Purpose.PERSUASIVE: "continue building the argument persuasively",
    Purpose.INFORMATIVE: "continue providing helpful information",
    Purpose.DESCRIPTIVE: "continue with vivid descriptions",
    Purpose.FLATTERING: "continue with positive and appreciative language",
    Purpose.NARRATIVE: "continue the story naturally",
}

GENRE_CONTEXT = {
    Genre.EMAIL: "appropriate for email communication",
    Genre.ESSAY: "suitable for essay writing",
    Genre.SOCIAL_POST: "fitting for social media",
    Genre.REPORT: "maintaining report-style language",
    Genre.STORY: "continuing the narrative",
    Genre.RESEARCH: "using scholarly language",
    Genre.SALES: "maintaining persuasive sales language",
    Genre.EDUCATION: "keeping educational clarity",
}

STOP_SEQUENCES = ("\n\n", "...", "***")

_WRAPPING_QUOTES_RE = re.compile(r"^[\"']|[\"']$")
_BOLD_LINE_RE = re.compile(r"^\*\*.*?\*\*$")
_HEADER_RE = re.compile(r"^#+\s+")

CacheKey = Tuple[str, str, str, str, str, str]


def clean_suggestion(raw: str) -> str:
    """Strip wrapping quotes, an all-bold line and heading marks."""
    text = (raw or "").strip()
    text = _WRAPPING_QUOTES_RE.sub("", text)
    text = _BOLD_LINE_RE.sub("", text)
    text = _HEADER_RE.sub("", text)
    return text.strip()


def build_system_prompt(request: AutocompleteRequest) -> str:
    prompt = (
        "You are a helpful writing assistant. Your job is to naturally continue the text "
        f"the user provides, {TONE_MODIFIERS[request.tone]}. The continuation should be "
        f"contextually appropriate and {PURPOSE_CONTEXT[request.purpose]} in a way that's "
        f"{GENRE_CONTEXT[request.genre]}. The piece is organised as "
        f"{request.structure.value}."
    )
    if request.context:
        prompt += f" Context: {request.context}"
    prompt += """

Important guidelines:
- Continue the text naturally and coherently
- Match the existing writing style and tone
- Don't repeat what's already written
- Provide only the next logical words or phrase (3-15 words typically)
- Don't add formatting, headers, or structure unless it naturally fits
- Focus on what would logically come next in the sentence or thought"""
    return prompt


class AutocompleteService:
    """Continuation suggestions with a time-bounded per-instance cache."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        ttl: Optional[float] = None,
        maxsize: int = 512,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self._cache: TTLCache = TTLCache(
            maxsize=maxsize,
            ttl=ttl if ttl is not None else config.AUTOCOMPLETE_CACHE_TTL_SEC,
            timer=timer,
        )

    @staticmethod
    def cache_key(request: AutocompleteRequest) -> CacheKey:
        return (
            request.text,
            request.tone.value,
            request.purpose.value,
            request.genre.value,
            request.structure.value,
            request.context or "",
        )

    @property
    def cached_entries(self) -> int:
        self._cache.expire()
        return len(self._cache)

    async def suggest(self, request: AutocompleteRequest) -> str:
        key = self.cache_key(request)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Autocomplete cache hit")
            return cached

        reply = await self.client.complete(
            build_system_prompt(request),
            f'Continue this text naturally: "{request.text}"',
            max_tokens=45,
            temperature=0.7,
            top_p=0.9,
            frequency_penalty=0.1,
            presence_penalty=0.05,
            stop=STOP_SEQUENCES,
        )
        suggestion = clean_suggestion(reply)
        # TTLCache drops expired entries on every mutation
        self._cache[key] = suggestion
        return suggestion
