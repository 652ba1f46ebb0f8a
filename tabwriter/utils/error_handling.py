"""
Lightweight soft-failure logging helper.

Steps that substitute a neutral default on failure (per-candidate scoring,
per-paper re-scoring, search providers) report through ``log_exception`` so
every degraded result leaves the same structured trace.
"""

from __future__ import annotations

from typing import Any

import structlog

_logger = structlog.get_logger(__name__)


def log_exception(context: str, exc: BaseException, **fields: Any) -> None:
    """Log an exception with context at warning level."""
    _logger.warning(
        context,
        error=str(exc),
        error_type=type(exc).__name__,
        **fields,
    )
