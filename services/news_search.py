"""News cross-reference adapter (NewsAPI ``/v2/everything``)."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from config import settings
from engine.errors import AdapterUnavailableError
from engine.keywords import relevance_score
from schemas.response import SupportingArticle
from schemas.signals import NewsSearchResult

logger = logging.getLogger("credence.adapters.news")

PAGE_SIZE = 10
MAX_QUERY_KEYWORDS = 3


async def search_news(keywords: Sequence[str]) -> NewsSearchResult:
    """Find recent articles about *keywords*, most relevant first.

    Returns an empty result without calling out when no API key is configured
    or there is nothing to search for.
    """
    terms = [k for k in keywords if k][:MAX_QUERY_KEYWORDS]
    if not settings.news_api_key or not terms:
        return NewsSearchResult()

    params = {
        "q": " OR ".join(terms),
        "sortBy": "relevancy",
        "pageSize": PAGE_SIZE,
        "language": "en",
        "apiKey": settings.news_api_key,
    }

    try:
        async with httpx.AsyncClient(timeout=settings.adapter_timeout) as client:
            r = await client.get(settings.news_api_url, params=params)
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise AdapterUnavailableError("news", str(exc)) from exc

    articles: list[SupportingArticle] = []
    for raw in data.get("articles") or []:
        try:
            articles.append(
                SupportingArticle(
                    title=str(raw.get("title") or ""),
                    url=str(raw.get("url") or ""),
                    source=str((raw.get("source") or {}).get("name") or "Unknown"),
                    relevance=relevance_score(raw, terms),
                    published_at=raw.get("publishedAt"),
                )
            )
        except Exception:
            logger.warning("Skipping malformed news article: %s", raw, exc_info=True)

    articles.sort(key=lambda a: a.relevance, reverse=True)
    logger.info("News search for %s — %d article(s)", terms, len(articles))
    return NewsSearchResult(articles=articles, total_results=int(data.get("totalResults") or 0))
