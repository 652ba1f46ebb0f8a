from __future__ import annotations

import os
import re
from collections import Counter
from typing import List

import nltk

_FALLBACK_STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "of", "in", "on", "for", "to", "with", "by",
    "is", "are", "was", "were", "be", "been", "being", "as", "at", "it", "its", "this",
    "that", "these", "those", "from", "i", "im", "me", "my", "we", "our", "you", "your",
    "he", "she", "they", "them", "their", "his", "her", "not", "no", "so", "if", "then",
    "than", "there", "here", "about", "into", "over", "also", "can", "could", "would",
    "should", "will", "just", "how", "what", "which", "who", "whom", "why", "when",
    "where", "do", "does", "did", "have", "has", "had", "more", "most", "some", "such",
    "very", "all", "any", "each", "other", "only", "own", "same", "too", "up", "out",
}


def _ensure_nltk_ready() -> bool:
    """Return True if the stopwords corpus is available (download if env allows)."""
    try:
        nltk.data.find("corpora/stopwords")
        return True
    except LookupError:
        if os.getenv("NLTK_ALLOW_DOWNLOADS") == "1":
            try:
                return bool(nltk.download("stopwords", quiet=True))
            except (OSError, ValueError):
                return False
        return False


_use_nltk = _ensure_nltk_ready()
if _use_nltk:
    try:
        STOP_WORDS = set(nltk.corpus.stopwords.words("english")) | _FALLBACK_STOP_WORDS
    except (LookupError, OSError):
        STOP_WORDS = set(_FALLBACK_STOP_WORDS)
else:
    STOP_WORDS = set(_FALLBACK_STOP_WORDS)


def tokenize(text: str, *, lower=True) -> List[str]:
    text = text.lower() if lower else text
    tokens = re.findall(r"\w+", text)
    return [t for t in tokens if t not in STOP_WORDS]


def top_keywords(text: str, limit: int = 3, *, min_length: int = 4) -> List[str]:
    """Most frequent non-stopword tokens, ties broken by first appearance."""
    tokens = [t for t in tokenize(text) if len(t) >= min_length and not t.isdigit()]
    if not tokens:
        return []
    counts = Counter(tokens)
    first_seen = {}
    for idx, tok in enumerate(tokens):
        first_seen.setdefault(tok, idx)
    ranked = sorted(counts, key=lambda t: (-counts[t], first_seen[t]))
    return ranked[:limit]
