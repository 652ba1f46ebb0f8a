"""
Statistic and quote extraction from a source document.

The model is asked for ``{"statistics": [...], "quotes": [...]}``. When the
reply carries no usable JSON the deterministic pattern extractor takes over
so a malformed reply never hides numbers or quotations that are plainly in
the text.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import structlog

from tabwriter.core import config
from tabwriter.models.evidence import EvidenceCandidate, EvidenceKind, ExtractedContent
from tabwriter.services.llm_client import CompletionClient
from tabwriter.utils.json_extract import extract_json_object

logger = structlog.get_logger(__name__)

PATTERN_SOURCE = "Pattern extraction"
QUOTE_MARK_SOURCE = "Quotation marks"

STAT_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\d+(\.\d+)?%"),
    re.compile(r"\$\d+(\.\d+)?\s*(million|billion|thousand)", re.IGNORECASE),
    re.compile(r"\d+(\.\d+)?\s*(million|billion|thousand|percent)", re.IGNORECASE),
    re.compile(r"(\d+(\.\d+)?)\s*(out of|in)\s*(\d+)", re.IGNORECASE),
)
QUOTE_PATTERN = re.compile(r'"([^"]{20,300})"')

EXTRACTION_SYSTEM_PROMPT = """Extract statistics and quotable content from the provided text.

STATISTICS: Look for:
- Numerical data, percentages, measurements
- Research findings with numbers
- Survey results, poll data
- Trend data (increases, decreases)
- Comparative data
- Financial figures

QUOTES: Look for:
- Expert statements and opinions
- Key conclusions or findings
- Memorable or impactful phrases
- Authoritative declarations
- Research conclusions
- Notable insights

For each item provide:
- exact text
- surrounding context (2-3 sentences)
- source/speaker if mentioned
- approximate position in document

Return as JSON: {"statistics": [{"text": "...", "context": "...", "source": "...", "position": "..."}], "quotes": [{"text": "...", "context": "...", "source": "...", "position": "..."}]}"""


# --------------------------------------------------------------------------- #
#                         Pattern fallback                                    #
# --------------------------------------------------------------------------- #

def _context_window(text: str, start: int, end: int) -> str:
    window = config.EVIDENCE_CONTEXT_WINDOW
    return text[max(0, start - window) : min(len(text), end + window)].strip()


def extract_with_patterns(source_text: str) -> ExtractedContent:
    """Regex extraction of numeric statistics and double-quoted passages.

    Every match of every statistic pattern becomes a candidate, so a figure
    matched by two patterns (``$5 million`` and ``5 million``) appears twice.
    """
    statistics = [
        EvidenceCandidate(
            text=match.group(0),
            context=_context_window(source_text, *match.span()),
            source=PATTERN_SOURCE,
            position=f"Character {match.start()}",
            kind=EvidenceKind.STATISTIC,
        )
        for pattern in STAT_PATTERNS
        for match in pattern.finditer(source_text)
    ]

    quotes = [
        EvidenceCandidate(
            text=match.group(1),
            context=_context_window(source_text, *match.span()),
            source=QUOTE_MARK_SOURCE,
            position=f"Character {match.start()}",
            kind=EvidenceKind.QUOTE,
        )
        for match in QUOTE_PATTERN.finditer(source_text)
    ]
    return ExtractedContent(statistics=statistics, quotes=quotes)


# --------------------------------------------------------------------------- #
#                         Generative extraction                               #
# --------------------------------------------------------------------------- #

def _coerce_items(raw: Any, kind: EvidenceKind) -> List[EvidenceCandidate]:
    items: List[EvidenceCandidate] = []
    for idx, entry in enumerate(raw or [], start=1):
        if isinstance(entry, str):
            entry = {"text": entry}
        if not isinstance(entry, dict):
            continue
        text = entry.get("text")
        if not isinstance(text, str) or not text.strip():
            continue
        items.append(
            EvidenceCandidate(
                text=text.strip(),
                context=str(entry.get("context") or ""),
                source=str(entry.get("source") or ""),
                position=str(entry.get("position") or f"Item {idx}"),
                kind=kind,
            )
        )
    return items


def parse_extraction_reply(reply: str) -> Optional[ExtractedContent]:
    """Turn a model reply into candidates; ``None`` when the shape is unusable."""
    payload: Optional[Dict[str, Any]] = extract_json_object(reply)
    if payload is None:
        return None
    stats = payload.get("statistics", [])
    quotes = payload.get("quotes", [])
    if not isinstance(stats, list) or not isinstance(quotes, list):
        return None
    if "statistics" not in payload and "quotes" not in payload:
        return None
    return ExtractedContent(
        statistics=_coerce_items(stats, EvidenceKind.STATISTIC),
        quotes=_coerce_items(quotes, EvidenceKind.QUOTE),
    )


async def extract_candidates(source_text: str, client: CompletionClient) -> ExtractedContent:
    """Extract candidates from *source_text*.

    Only the first ``EVIDENCE_SOURCE_MAX_CHARS`` characters are sent to the
    model. A blank source yields nothing without a completion call.
    ``CompletionUnavailable`` propagates.
    """
    if not source_text or not source_text.strip():
        return ExtractedContent()

    excerpt = source_text[: config.EVIDENCE_SOURCE_MAX_CHARS]
    if len(source_text) > len(excerpt):
        logger.info(
            "Source truncated for extraction",
            source_chars=len(source_text),
            sent_chars=len(excerpt),
        )

    reply = await client.complete(
        EXTRACTION_SYSTEM_PROMPT,
        f'Extract all statistics and quotes from this text:\n\n"{excerpt}"',
        max_tokens=1200,
        temperature=0.1,
    )

    content = parse_extraction_reply(reply)
    if content is None:
        logger.warning("Extraction reply unparseable, using pattern fallback")
        content = extract_with_patterns(source_text)

    logger.info(
        "Candidates extracted",
        statistics=len(content.statistics),
        quotes=len(content.quotes),
    )
    return content
