"""Summary statistics over a user's analysis history."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from engine.reputation import domain_from_url
from schemas.response import AnalysisRecord, Classification, DashboardStats, SourceCount

TREND_WINDOW = 5
TOP_SOURCES = 5
TEXT_SOURCE = "text-analysis"


def _mean_percent(records: Sequence[AnalysisRecord]) -> float:
    if not records:
        return 0.0
    return sum(r.analysis_result.score for r in records) / len(records) * 100


def compute_stats(records: Sequence[AnalysisRecord]) -> DashboardStats:
    """Aggregate *records* (newest first) into dashboard numbers.

    ``trend`` compares the mean score of the newest five analyses with the
    mean of everything older, in percent points.
    """
    if not records:
        return DashboardStats()

    counts = Counter(r.analysis_result.classification for r in records)
    recent, older = records[:TREND_WINDOW], records[TREND_WINDOW:]
    trend = _mean_percent(recent) - _mean_percent(older) if older else 0.0

    sources = Counter(domain_from_url(r.url) if r.url else TEXT_SOURCE for r in records)

    return DashboardStats(
        total_analyses=len(records),
        reliable_count=counts[Classification.RELIABLE],
        questionable_count=counts[Classification.QUESTIONABLE],
        unreliable_count=counts[Classification.UNRELIABLE],
        average_credibility=_mean_percent(records),
        trend=trend,
        top_sources=[SourceCount(domain=d, count=c) for d, c in sources.most_common(TOP_SOURCES)],
    )
