"""Alert matching — decide which user rules fire for a freshly analysed item."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from schemas.response import AlertRule, AlertType, AnalysisResult, Classification, TriggeredAlert

logger = logging.getLogger("credence.engine.alert_matcher")

EXCERPT_LENGTH = 300

_BIASED_SENTIMENT_MARKERS = ("negative", "biased")


def matched_keywords(content: str, keywords: Iterable[str]) -> list[str]:
    """Every keyword found in *content* (case-insensitive), in rule order."""
    content_lower = content.lower()
    return [k for k in keywords if k and k.lower() in content_lower]


def _sentiment_is_biased(result: AnalysisResult) -> bool:
    sentiment = result.details.sentiment.lower()
    return any(marker in sentiment for marker in _BIASED_SENTIMENT_MARKERS)


def passes_type_filter(alert_type: AlertType, result: AnalysisResult) -> bool:
    """Type filter, applied only once the keyword test has passed."""
    classification = result.classification
    if alert_type == AlertType.MISINFORMATION:
        return classification == Classification.UNRELIABLE
    if alert_type == AlertType.BIAS:
        return classification == Classification.QUESTIONABLE or _sentiment_is_biased(result)
    if alert_type == AlertType.SOURCE_RELIABILITY:
        return classification in (Classification.UNRELIABLE, Classification.QUESTIONABLE)
    return True


def _as_rule(raw: AlertRule | Mapping[str, Any]) -> AlertRule:
    if isinstance(raw, AlertRule):
        return raw
    return AlertRule.model_validate(raw)


def evaluate_rule(
    content: str,
    result: AnalysisResult,
    rule: AlertRule,
    *,
    analysis_id: str,
) -> TriggeredAlert | None:
    """Return a ``TriggeredAlert`` if *rule* fires for *content*, else ``None``."""
    if not rule.is_active:
        return None

    matched = matched_keywords(content, rule.keywords)
    if not matched:
        return None

    if not passes_type_filter(rule.alert_type, result):
        return None

    return TriggeredAlert(
        user_id=rule.user_id,
        alert_id=rule.id,
        analysis_id=analysis_id,
        content_excerpt=content[:EXCERPT_LENGTH],
        matched_keywords=matched,
    )


def match(
    content: str,
    result: AnalysisResult,
    rules: Iterable[AlertRule | Mapping[str, Any]],
    *,
    analysis_id: str = "unknown",
) -> list[TriggeredAlert]:
    """Evaluate every active rule against *content*.

    Rules are independent: all of them are evaluated, and a malformed rule is
    logged and skipped without affecting the others.
    """
    triggered: list[TriggeredAlert] = []

    for raw in rules:
        try:
            alert = evaluate_rule(content, result, _as_rule(raw), analysis_id=analysis_id)
        except (ValidationError, TypeError, AttributeError, ValueError):
            logger.warning("Skipping malformed alert rule: %r", raw, exc_info=True)
            continue
        if alert is not None:
            triggered.append(alert)

    logger.info("Alert matching complete — %d rule(s) fired", len(triggered))
    return triggered
