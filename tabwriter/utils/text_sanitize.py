"""
Shared text sanitation utilities for search metadata and model output.

- strip_html: remove tags like <jats:p> and decode entities
- collapse_ws: collapse consecutive whitespace
- sanitize_text: convenience wrapper applying both and trimming
- clean_scholarly_text: sanitize_text plus removal of stray symbols
"""

from __future__ import annotations

import html as _html
import re as _re

__all__ = ["strip_html", "collapse_ws", "sanitize_text", "clean_scholarly_text"]

_DISALLOWED_RE = _re.compile(r"[^\w\s.,;:()\-]")


def strip_html(text: str) -> str:
    if not text:
        return ""
    t = _html.unescape(str(text))
    return _re.sub(r"<[^>]+>", " ", t)


def collapse_ws(text: str) -> str:
    if not text:
        return ""
    return _re.sub(r"\s+", " ", str(text)).strip()


def sanitize_text(text: str) -> str:
    return collapse_ws(strip_html(text))


def clean_scholarly_text(text) -> str:
    """Normalise a title/abstract for display.

    Lists are reduced to their first element (some feeds repeat fields).
    Only word characters, whitespace and ``. , ; : ( ) -`` survive.
    """
    if not text:
        return ""
    if isinstance(text, (list, tuple)):
        text = text[0] if text else ""
    out = sanitize_text(str(text))
    return collapse_ws(_DISALLOWED_RE.sub("", out))
