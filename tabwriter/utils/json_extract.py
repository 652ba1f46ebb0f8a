"""
Helpers for pulling a JSON value out of free-form model output.

Completion replies frequently wrap the requested JSON in prose or markdown
fences. Every caller follows the same ladder: strict parse of the whole
reply, then the outermost ``{...}`` / ``[...]`` span, then a raw decode
from the first opening bracket. ``None`` means "no usable value" and the
caller substitutes its own neutral default.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

__all__ = ["extract_json", "extract_json_object", "extract_json_array"]

_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*|\s*```$")

_BRACKETS = {dict: ("{", "}"), list: ("[", "]")}


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).strip()


def extract_json(text: Optional[str], expected: type = dict) -> Optional[Any]:
    """Return the first JSON value of type *expected* found in *text*."""
    if not text or not isinstance(text, str):
        return None
    opener, closer = _BRACKETS[expected]

    candidate = _strip_fences(text)
    # Fast path: exact JSON string
    try:
        value = json.loads(candidate)
        if isinstance(value, expected):
            return value
    except ValueError:
        pass

    start = candidate.find(opener)
    if start == -1:
        return None
    end = candidate.rfind(closer)
    if end > start:
        try:
            value = json.loads(candidate[start : end + 1])
            if isinstance(value, expected):
                return value
        except ValueError:
            pass

    # Trailing prose containing a stray closer defeats the outermost span
    try:
        value, _ = json.JSONDecoder().raw_decode(candidate[start:])
    except ValueError:
        return None
    return value if isinstance(value, expected) else None


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Attempt to extract a JSON object from a possibly noisy LLM string."""
    return extract_json(text, dict)


def extract_json_array(text: Optional[str]) -> Optional[List[Any]]:
    """Attempt to extract a JSON array from a possibly noisy LLM string."""
    return extract_json(text, list)
