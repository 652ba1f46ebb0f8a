"""
Threshold, sort and truncate scored evidence. Pure functions, no I/O.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from tabwriter.models.evidence import EvidenceKind, EvidenceOptions, ScoredEvidence


def rank_evidence(
    items: Iterable[ScoredEvidence], threshold: float, limit: int
) -> List[ScoredEvidence]:
    """Keep ``score >= threshold``, sort descending, return the first *limit*.

    ``sorted`` is stable, so equal scores keep their extraction order.
    """
    kept = [item for item in items if item.relevance_score >= threshold]
    kept = sorted(kept, key=lambda item: item.relevance_score, reverse=True)
    return kept[: max(0, limit)]


def split_by_kind(
    items: Iterable[ScoredEvidence],
) -> Tuple[List[ScoredEvidence], List[ScoredEvidence]]:
    statistics: List[ScoredEvidence] = []
    quotes: List[ScoredEvidence] = []
    for item in items:
        (statistics if item.kind is EvidenceKind.STATISTIC else quotes).append(item)
    return statistics, quotes


def select_evidence(
    statistics: Iterable[ScoredEvidence],
    quotes: Iterable[ScoredEvidence],
    options: EvidenceOptions,
) -> Tuple[List[ScoredEvidence], List[ScoredEvidence]]:
    """Apply the caller's threshold and per-kind maximums."""
    return (
        rank_evidence(statistics, options.relevance_threshold, options.max_stats),
        rank_evidence(quotes, options.relevance_threshold, options.max_quotes),
    )
