"""
DOI helpers shared by the search providers and the research aggregator.
"""

import re
from typing import Optional
from urllib.parse import unquote

DOI_PATTERN = re.compile(r"10\.\d{4,9}/[-._;()/:A-Za-z0-9]+")

_DOI_PREFIX_RE = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)


def extract_doi(text: str) -> Optional[str]:
    """
    Extract DOI from text or URL.

    Args:
        text: Text that may contain a DOI

    Returns:
        DOI string if found, None otherwise
    """
    if not text:
        return None

    match = DOI_PATTERN.search(text)
    return match.group(0) if match else None


def normalize_doi(doi: Optional[str]) -> str:
    """Canonical DOI key: resolver prefix removed, lowercased.

    DOIs are case-insensitive, so ``10.1/ABC`` and
    ``https://doi.org/10.1/abc`` compare equal. Empty input gives ``""``.
    """
    if not doi:
        return ""
    value = unquote(str(doi).strip())
    value = _DOI_PREFIX_RE.sub("", value)
    return value.strip().lower()
