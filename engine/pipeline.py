"""Pipeline orchestrator — adapters → aggregator → history + alerts."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, TypeVar

from config import settings
from engine.aggregator import CredibilityAggregator
from engine.alert_matcher import match
from engine.errors import PersistenceError
from engine.keywords import extract_keywords
from engine.reputation import lookup
from engine.text_analyzer import validate_content
from schemas.response import AnalysisRecord, AnalysisResult, AnalyzeResponse, TriggeredAlert
from services.fact_check_search import search_fact_checks
from services.model_analyzer import analyze_with_model
from services.news_search import search_news
from services.repositories import Repositories

logger = logging.getLogger("credence.pipeline")

T = TypeVar("T")

EXCERPT_LENGTH = 500


async def _isolated(adapter: str, call: Awaitable[T]) -> T | None:
    """Await one adapter call; any failure or timeout becomes ``None``."""
    try:
        return await asyncio.wait_for(call, timeout=settings.adapter_timeout)
    except asyncio.TimeoutError:
        logger.warning("%s adapter timed out after %.1fs", adapter, settings.adapter_timeout)
    except Exception as exc:
        logger.warning("%s adapter unavailable: %s", adapter, exc)
    return None


def _persist(
    repos: Repositories,
    content: str,
    result: AnalysisResult,
    *,
    url: str | None,
    user_id: str | None,
) -> str | None:
    record = AnalysisRecord(
        user_id=user_id,
        url=url,
        content_excerpt=content[:EXCERPT_LENGTH],
        analysis_result=result,
        source_verification=result.sources,
    )
    try:
        return repos.history.save(record)
    except PersistenceError:
        logger.exception("Failed to save analysis history")
        return None


def _evaluate_alerts(
    repos: Repositories,
    content: str,
    result: AnalysisResult,
    analysis_id: str | None,
) -> list[TriggeredAlert]:
    try:
        rules: list[Any] = repos.alerts.all_active()
    except PersistenceError:
        logger.exception("Failed to load alert rules")
        return []

    try:
        triggered = match(content, result, rules, analysis_id=analysis_id or "unknown")
        return repos.triggered.save_many(triggered)
    except Exception:
        logger.exception("Alert evaluation failed")
        return []


async def run_pipeline(
    content: str,
    *,
    aggregator: CredibilityAggregator,
    repos: Repositories,
    url: str | None = None,
    title: str | None = None,
    user_id: str | None = None,
) -> AnalyzeResponse:
    """Analyse *content*, store the result and fire matching alerts.

    Parameters
    ----------
    content : str
        Article text (at least 10 characters after trimming).
    aggregator : CredibilityAggregator
        Scoring engine, carrying the local toxicity model if one is loaded.
    repos : Repositories
        History / alert / triggered-alert storage.
    url : str | None
        Source URL, used for the publisher reputation lookup.
    title : str | None
        Optional article title (prepended for the language model only).
    user_id : str | None
        Owner of the history record and the only user whose triggered
        alerts are echoed back.

    Returns
    -------
    AnalyzeResponse
        The result, its history id (``None`` if storing failed) and the
        caller's own alerts it triggered.  Every user's alerts are stored;
        an anonymous caller gets none back.

    Raises
    ------
    InvalidInputError
        If *content* is too short.  Adapter and storage failures never raise.
    """
    t0 = time.perf_counter()
    validate_content(content)
    if len(content) > settings.max_content_length:
        logger.info("Content truncated from %d to %d chars", len(content), settings.max_content_length)
        content = content[: settings.max_content_length]

    model_text = f"Title: {title}\n\n{content}" if title else content
    keywords = extract_keywords(content)

    # ── External signals (independent, run in parallel) ────────────────
    model, news, fact_checks = await asyncio.gather(
        _isolated("model", analyze_with_model(model_text, url)),
        _isolated("news", search_news(keywords)),
        _isolated("fact_check", search_fact_checks(keywords)),
    )
    logger.info(
        "Adapters complete — model=%s news=%d fact_checks=%d",
        "ok" if model is not None else "none",
        len(news.articles) if news is not None else 0,
        len(fact_checks or []),
    )

    if model is not None and model.keyword_extraction:
        keywords = model.keyword_extraction

    # ── Aggregate (toxicity inference is blocking → worker thread) ─────
    publisher = lookup(url) if url else None
    result = await asyncio.to_thread(
        aggregator.aggregate,
        content,
        model=model,
        news=news,
        fact_checks=fact_checks,
        publisher=publisher,
        keywords=keywords,
    )

    # ── Persist + alerts ───────────────────────────────────────────────
    analysis_id = _persist(repos, content, result, url=url, user_id=user_id)
    triggered = _evaluate_alerts(repos, content, result, analysis_id)
    own = [a for a in triggered if user_id and a.user_id == user_id]

    elapsed = time.perf_counter() - t0
    logger.info(
        "Pipeline complete in %.2fs — score %.2f → %s, %d alert(s), %d for caller",
        elapsed, result.score, result.classification.value, len(triggered), len(own),
    )

    return AnalyzeResponse(analysis_id=analysis_id, result=result, triggered_alerts=own)
