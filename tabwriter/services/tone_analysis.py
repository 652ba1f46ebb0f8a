"""
Tone and purpose detection for the editor's tone card.
"""

from __future__ import annotations

from typing import List

import structlog

from tabwriter.core.exceptions import InvalidInputError
from tabwriter.models.writing import Purpose, Tone, ToneAnalysis
from tabwriter.services.llm_client import CompletionClient
from tabwriter.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

MIN_ANALYSIS_CHARS = 10
SHORT_TEXT_SUGGESTIONS = ["Add more content for better analysis", "Consider your writing goals"]
DEFAULT_SUGGESTIONS = ["Consider the tone more carefully", "Clarify your purpose"]

TONE_SYSTEM_PROMPT = f"""You are a writing analysis expert. Analyze the given text and:

1. Detect the tone ({", ".join(t.value for t in Tone)})
2. Detect the purpose ({", ".join(p.value for p in Purpose)})
3. Provide exactly 2 bullet-point suggestions for improving the tone and purpose

Respond in this exact JSON format:
{{
  "tone": "detected_tone",
  "purpose": "detected_purpose",
  "suggestions": [
    "First suggestion starting with a verb",
    "Second suggestion starting with a verb"
  ]
}}

Keep suggestions concise and actionable (max 15 words each)."""


def _suggestions(raw) -> List[str]:
    if not isinstance(raw, list):
        return list(DEFAULT_SUGGESTIONS)
    picked = [s.strip() for s in raw if isinstance(s, str) and s.strip()][:2]
    return picked or list(DEFAULT_SUGGESTIONS)


def parse_tone_reply(reply: str) -> ToneAnalysis:
    payload = extract_json_object(reply)
    if payload is None:
        logger.warning("Tone reply unparseable, using defaults")
        return ToneAnalysis(suggestions=list(DEFAULT_SUGGESTIONS))

    tone_raw = str(payload.get("tone") or "").strip().lower()
    purpose_raw = str(payload.get("purpose") or "").strip().lower()
    tone = Tone(tone_raw) if tone_raw in {t.value for t in Tone} else Tone.PROFESSIONAL
    purpose = Purpose(purpose_raw) if purpose_raw in {p.value for p in Purpose} else Purpose.INFORMATIVE
    return ToneAnalysis(
        detected_tone=tone,
        detected_purpose=purpose,
        suggestions=_suggestions(payload.get("suggestions")),
    )


async def analyze_tone(text: str, client: CompletionClient) -> ToneAnalysis:
    """Detect tone and purpose; very short text is not sent to the model."""
    text = (text or "").strip()
    if not text:
        raise InvalidInputError("Text cannot be empty")
    if len(text) < MIN_ANALYSIS_CHARS:
        return ToneAnalysis(suggestions=list(SHORT_TEXT_SUGGESTIONS))

    reply = await client.complete(
        TONE_SYSTEM_PROMPT,
        f'Analyze this text: "{text}"',
        max_tokens=200,
        temperature=0.3,
    )
    analysis = parse_tone_reply(reply)
    logger.info(
        "Tone analysed",
        tone=analysis.detected_tone.value,
        purpose=analysis.detected_purpose.value,
    )
    return analysis
