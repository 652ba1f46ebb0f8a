"""
Core configuration and settings for the TabWriter service.

Centralises tunable knobs for evidence extraction, scoring fan-out and
research search so we avoid scattering magic numbers throughout the
codebase. Every value can be overridden via env vars (a ``.env`` file is
honoured through python-dotenv).
"""

import os

from dotenv import load_dotenv

load_dotenv()


# ────────────────────────────────────────────────────────────
#  Env helpers
# ────────────────────────────────────────────────────────────

def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)) or default)
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


def get_environment() -> str:
    """Get current environment"""
    return os.getenv("ENVIRONMENT", "development")


# ────────────────────────────────────────────────────────────
#  Completion model
# ────────────────────────────────────────────────────────────

LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TIMEOUT_SEC: float = _env_float("LLM_TIMEOUT_SEC", 120.0)


# ────────────────────────────────────────────────────────────
#  Evidence pipeline defaults (env‑overridable)
# ────────────────────────────────────────────────────────────

# Prefix of the source blob handed to the extractor; longer sources are
# silently truncated.
EVIDENCE_SOURCE_MAX_CHARS: int = _env_int("EVIDENCE_SOURCE_MAX_CHARS", 8000)

# ± characters of context captured around pattern-extracted items
EVIDENCE_CONTEXT_WINDOW: int = _env_int("EVIDENCE_CONTEXT_WINDOW", 100)

EVIDENCE_CSV_MAX_LINES: int = _env_int("EVIDENCE_CSV_MAX_LINES", 100)

EVIDENCE_RELEVANCE_THRESHOLD: float = _env_float("EVIDENCE_RELEVANCE_THRESHOLD", 0.6)
EVIDENCE_MAX_STATS: int = _env_int("EVIDENCE_MAX_STATS", 5)
EVIDENCE_MAX_QUOTES: int = _env_int("EVIDENCE_MAX_QUOTES", 5)

# Upper bound on concurrent relevance-scoring calls per request
EVIDENCE_SCORING_CONCURRENCY: int = max(1, _env_int("EVIDENCE_SCORING_CONCURRENCY", 8))


# ────────────────────────────────────────────────────────────
#  Research search
# ────────────────────────────────────────────────────────────

RESEARCH_MAX_PAPERS: int = _env_int("RESEARCH_MAX_PAPERS", 3)
RESEARCH_MAX_TOPICS_SEARCHED: int = max(1, _env_int("RESEARCH_MAX_TOPICS_SEARCHED", 2))
RESEARCH_MAX_RESULTS_PER_QUERY: int = max(1, _env_int("RESEARCH_MAX_RESULTS_PER_QUERY", 10))
RESEARCH_SUBJECT_FILTER: bool = _env_bool("RESEARCH_SUBJECT_FILTER", True)

SEARCH_USER_AGENT: str = os.getenv("SEARCH_USER_AGENT", "HumanitiesResearchAgent/1.0")
SEARCH_MAX_RETRIES: int = max(1, _env_int("SEARCH_MAX_RETRIES", 2))


def get_search_timeout(default: float) -> float:
    """Per-provider timeout, overridable for every provider via SEARCH_TIMEOUT_SEC."""
    raw = os.getenv("SEARCH_TIMEOUT_SEC")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# ────────────────────────────────────────────────────────────
#  Writing helpers
# ────────────────────────────────────────────────────────────

AUTOCOMPLETE_CACHE_TTL_SEC: float = _env_float("AUTOCOMPLETE_CACHE_TTL_SEC", 30.0)


# ────────────────────────────────────────────────────────────
#  HTTP surface
# ────────────────────────────────────────────────────────────

def get_cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
