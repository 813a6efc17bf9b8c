"""Credibility aggregation — turns raw signals into one ``AnalysisResult``."""

from __future__ import annotations

import logging
from typing import Sequence

from engine import text_analyzer
from engine.guidance import generate_guidance
from engine.scorer import (
    BASE_CONFIDENCE,
    HEURISTIC_ONLY,
    AggregationStrategy,
    Signals,
    clamp_confidence,
    select_strategy,
)
from engine.verdict import classify
from schemas.response import (
    AIAnalysis,
    AnalysisDetails,
    AnalysisResult,
    AnalysisSources,
    FactCheckArticle,
    PublisherProfile,
    RealTimeData,
)
from schemas.signals import ModelAnalysis, NewsSearchResult, ToxicityPrediction
from services.toxicity import ToxicityClassifier

logger = logging.getLogger("credence.engine.aggregator")


class CredibilityAggregator:
    """Combine model, news, fact-check and reputation signals into one score.

    Pure computation: nothing is persisted here.  Adapter failures show up as
    missing arguments and simply select the offline strategy.
    """

    def __init__(self, classifier: ToxicityClassifier | None = None) -> None:
        self.classifier = classifier

    # ── Local model ────────────────────────────────────────────────────

    def _predict_toxicity(self, text: str) -> ToxicityPrediction | None:
        if self.classifier is None:
            return None
        try:
            return self.classifier.predict(text)
        except Exception as exc:
            logger.warning("Toxicity model unavailable, using heuristics only: %s", exc)
            return None

    # ── Public API ─────────────────────────────────────────────────────

    def aggregate(
        self,
        text: str,
        *,
        model: ModelAnalysis | None = None,
        news: NewsSearchResult | None = None,
        fact_checks: Sequence[FactCheckArticle] | None = None,
        publisher: PublisherProfile | None = None,
        keywords: Sequence[str] | None = None,
    ) -> AnalysisResult:
        """Score *text* with whatever signals are available.

        Raises
        ------
        InvalidInputError
            If *text* is shorter than the minimum analysable length.
        """
        analysis = text_analyzer.analyze(text)

        source_credibility: dict[str, float] = {}
        if publisher is not None:
            source_credibility[publisher.domain] = float(publisher.credibility_score)

        signals = Signals(
            text=analysis,
            model=model,
            news=news,
            fact_checks=tuple(fact_checks or ()),
            source_credibility=source_credibility,
            toxicity=self._predict_toxicity(text),
        )

        strategy: AggregationStrategy = select_strategy(signals)
        try:
            score = strategy.score(signals)
            confidence = strategy.confidence(signals)
        except Exception:
            logger.exception("%s scoring failed; falling back to heuristics", strategy.name)
            strategy = HEURISTIC_ONLY
            score = HEURISTIC_ONLY.score(signals)
            confidence = clamp_confidence(BASE_CONFIDENCE)

        normalized = score / 100.0
        classification = classify(normalized)
        external = strategy is not HEURISTIC_ONLY

        details = AnalysisDetails(
            sentiment=_sentiment_label(signals),
            key_indicators=_key_indicators(signals),
            suggestions=generate_guidance(
                classification,
                supporting_articles=len(signals.articles),
                fact_check_articles=len(signals.fact_checks),
                external=external,
            ),
        )

        logger.info(
            "Aggregated with %s — score %.1f/100 → %s (confidence %.2f)",
            strategy.name, score, classification.value, confidence,
        )

        return AnalysisResult(
            score=normalized,
            credibility_score=score,
            confidence=confidence,
            classification=classification,
            strategy=strategy.name,
            details=details,
            ai_analysis=_ai_analysis(model),
            sources=_sources(signals) if external else None,
            real_time_data=_real_time_data(signals, keywords) if external else None,
        )


# ── Result assembly helpers ────────────────────────────────────────────

def _sentiment_label(signals: Signals) -> str:
    if signals.toxicity is not None:
        return "Potentially biased" if signals.toxicity.is_toxic else "Neutral"
    if signals.model is not None:
        return "AI Analysis"
    return "Basic Analysis"


def _key_indicators(signals: Signals) -> list[str]:
    features = signals.text.features
    positives = text_analyzer.findings(features)
    negatives = text_analyzer.red_flags(features)
    if signals.model is not None:
        positives += signals.model.key_findings
        negatives += signals.model.red_flags

    if not positives and not negatives:
        return ["Basic content analysis completed"]
    return [f"✓ {p}" for p in positives] + [f"⚠ {n}" for n in negatives]


def _ai_analysis(model: ModelAnalysis | None) -> AIAnalysis | None:
    if model is None:
        return None
    return AIAnalysis(
        summary=model.summary,
        key_findings=model.key_findings,
        red_flags=model.red_flags,
        verified_facts=model.verified_facts,
    )


def _sources(signals: Signals) -> AnalysisSources | None:
    if not signals.articles and not signals.fact_checks:
        return None
    return AnalysisSources(
        supporting_articles=list(signals.articles),
        fact_check_articles=list(signals.fact_checks),
    )


def _real_time_data(signals: Signals, keywords: Sequence[str] | None) -> RealTimeData:
    return RealTimeData(
        trending_topics=list(keywords or ()),
        news_volume=signals.news.total_results if signals.news is not None else 0,
        source_credibility_map=dict(signals.source_credibility),
    )
