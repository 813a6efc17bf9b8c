"""Enhanced source verification.

Looks at *where* a story comes from rather than what it says: the
publisher's reputation, published fact checks on related claims and
reputable outlets covering the same story.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from engine.keywords import extract_keywords
from engine.reputation import REPUTABLE_DOMAINS, domain_from_url, lookup
from engine.scorer import is_verified_rating
from schemas.response import FactCheckArticle, PublisherProfile, SourceVerificationResponse, SupportingArticle
from services.fact_check_search import search_fact_checks
from services.news_search import search_news

logger = logging.getLogger("credence.engine.source_verifier")

MAX_RESULTS = 5
QUERY_CHARS = 500

_NEGATIVE_RATING_TERMS = ("false", "misleading", "inaccurate")


def is_negative_rating(rating: str) -> bool:
    rating_lower = rating.lower()
    return any(term in rating_lower for term in _NEGATIVE_RATING_TERMS)


def overall_credibility(
    publisher: PublisherProfile,
    fact_checks: Sequence[FactCheckArticle],
    cross_references: Sequence[SupportingArticle],
) -> tuple[float, float]:
    """Return ``(score, confidence)``.

    score: publisher credibility, +5 per positive and −10 per negative fact
    check, +3 per reputable cross reference; clamped to [0, 100].
    confidence: 0.7, +0.2 with any fact checks, +0.05 per cross reference,
    capped at 1.0.
    """
    score = float(publisher.credibility_score)
    confidence = 0.7

    if fact_checks:
        positive = sum(1 for fc in fact_checks if is_verified_rating(fc.rating))
        negative = sum(1 for fc in fact_checks if is_negative_rating(fc.rating))
        score += positive * 5 - negative * 10
        confidence += 0.2

    if cross_references:
        reputable = sum(1 for ref in cross_references if ref.source in REPUTABLE_DOMAINS)
        score += reputable * 3
        confidence += len(cross_references) * 0.05

    return max(0.0, min(100.0, score)), min(1.0, confidence)


def insights(
    publisher: PublisherProfile,
    fact_checks: Sequence[FactCheckArticle],
    score: float,
) -> tuple[list[str], list[str]]:
    """Return ``(warnings, recommendations)`` for the verification report."""
    warnings: list[str] = []
    recommendations: list[str] = []

    if publisher.credibility_score < 70:
        warnings.append(f"Source has lower credibility score ({publisher.credibility_score}/100)")
    if publisher.bias != "Center":
        warnings.append(f"Source shows {publisher.bias.lower()} bias")
    if publisher.factual_reporting in ("Mixed", "Low"):
        warnings.append("Source has mixed or low factual reporting standards")

    negative = [fc for fc in fact_checks if "false" in fc.rating.lower() or "misleading" in fc.rating.lower()]
    if negative:
        warnings.append(f"{len(negative)} related claims have been fact-checked as false or misleading")

    if score < 80:
        recommendations.append("Verify information with additional trusted sources")
        recommendations.append("Look for official statements or documents")
    if not fact_checks:
        recommendations.append("Search for fact-checks on major fact-checking websites")
    recommendations.append("Check the article publication date for timeliness")
    recommendations.append("Review the author's credentials and expertise")

    return warnings, recommendations


async def _safe(coro, adapter: str, default):
    try:
        return await coro
    except Exception as exc:
        logger.warning("%s lookup failed during source verification: %s", adapter, exc)
        return default


async def verify_source(url: str, content: str = "") -> SourceVerificationResponse:
    """Build a verification report for the publisher behind *url*."""
    publisher = lookup(domain_from_url(url))
    query = content[:QUERY_CHARS]

    fact_checks, news = await asyncio.gather(
        _safe(search_fact_checks(query), "fact_check", []),
        _safe(search_news(extract_keywords(query)), "news", None),
    )

    fact_checks = list(fact_checks)[:MAX_RESULTS]
    cross_references = [
        article.model_copy(update={"source": domain_from_url(article.url) or article.source})
        for article in (news.articles if news is not None else [])[:MAX_RESULTS]
    ]

    score, confidence = overall_credibility(publisher, fact_checks, cross_references)
    warnings, recommendations = insights(publisher, fact_checks, score)

    return SourceVerificationResponse(
        publisher_analysis=publisher,
        fact_checks=fact_checks,
        cross_references=cross_references,
        overall_credibility_score=score,
        confidence=confidence,
        warnings=warnings,
        recommendations=recommendations,
    )
