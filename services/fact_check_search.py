"""Fact-check claim search adapter (Google Fact Check Tools ``claims:search``)."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from config import settings
from engine.errors import AdapterUnavailableError
from schemas.response import FactCheckArticle

logger = logging.getLogger("credence.adapters.fact_check")


def _to_article(claim: dict[str, Any]) -> FactCheckArticle:
    reviews = claim.get("claimReview") or [{}]
    review = reviews[0] or {}
    return FactCheckArticle(
        title=str(claim.get("text") or "Fact Check"),
        url=str(review.get("url") or ""),
        organization=str((review.get("publisher") or {}).get("name") or "Unknown"),
        rating=str(review.get("textualRating") or "Unknown"),
        summary=str(review.get("title") or ""),
        review_date=review.get("reviewDate"),
    )


async def search_fact_checks(query: str | Sequence[str]) -> list[FactCheckArticle]:
    """Look up published fact checks matching *query* (a string or keyword list)."""
    text = query if isinstance(query, str) else " ".join(k for k in query if k)
    text = text.strip()
    if not settings.google_fact_check_api_key or not text:
        return []

    params = {"query": text, "key": settings.google_fact_check_api_key}

    try:
        async with httpx.AsyncClient(timeout=settings.adapter_timeout) as client:
            r = await client.get(settings.fact_check_api_url, params=params)
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise AdapterUnavailableError("fact_check", str(exc)) from exc

    results: list[FactCheckArticle] = []
    for claim in data.get("claims") or []:
        try:
            results.append(_to_article(claim))
        except Exception:
            logger.warning("Skipping malformed fact-check claim: %s", claim, exc_info=True)

    logger.info("Fact-check search — %d claim(s)", len(results))
    return results
