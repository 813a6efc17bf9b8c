"""Numerical scoring.

Deterministic scorer, no network call.  Two aggregation strategies share one
interface and are chosen by which upstream signals actually arrived:

``ModelBackedStrategy``
    Used whenever any external adapter (model, news search, fact-check
    search) returned data.

        score = ai            × 0.4
              + news_ratio    × 100 × 0.3
              + fact_ratio    × 100 × 0.2
              + avg_source    × 0.1

``HeuristicOnlyStrategy``
    Offline path.

        score = (1 − toxicity) × 0.6 + base × 0.4     (toxicity model available)
        score = base                                  (no model at all)

All scores are on the 0-100 scale here; the aggregator normalizes to 0-1.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from engine.reputation import is_reputable_outlet
from engine.text_analyzer import TextAnalysis
from schemas.response import FactCheckArticle, SupportingArticle
from schemas.signals import ModelAnalysis, NewsSearchResult, ToxicityPrediction

MODEL_WEIGHT = 0.4
NEWS_WEIGHT = 0.3
FACT_CHECK_WEIGHT = 0.2
SOURCE_WEIGHT = 0.1

LOCAL_MODEL_WEIGHT = 0.6
LOCAL_HEURISTIC_WEIGHT = 0.4

BASE_CONFIDENCE = 0.6
LOCAL_MODEL_CONFIDENCE = 0.75
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95

_VERIFIED_RATING_TERMS = ("true", "correct", "accurate")


@dataclass(frozen=True)
class Signals:
    """Everything the strategies may look at for one submission."""

    text: TextAnalysis
    model: ModelAnalysis | None = None
    news: NewsSearchResult | None = None
    fact_checks: Sequence[FactCheckArticle] = ()
    source_credibility: Mapping[str, float] = field(default_factory=dict)
    toxicity: ToxicityPrediction | None = None

    @property
    def articles(self) -> Sequence[SupportingArticle]:
        return self.news.articles if self.news is not None else ()

    @property
    def has_external_data(self) -> bool:
        return self.model is not None or bool(self.articles) or bool(self.fact_checks)


# ── Signal ratios ──────────────────────────────────────────────────────

def news_reputability_ratio(articles: Sequence[SupportingArticle]) -> float:
    """Share of articles whose outlet is on the reputable allowlist (0 if none)."""
    if not articles:
        return 0.0
    reputable = sum(1 for a in articles if is_reputable_outlet(a.source))
    return reputable / len(articles)


def is_verified_rating(rating: str) -> bool:
    rating_lower = rating.lower()
    return any(term in rating_lower for term in _VERIFIED_RATING_TERMS)


def fact_check_verification_ratio(fact_checks: Sequence[FactCheckArticle]) -> float:
    """Share of fact checks rated true / correct / accurate (0 if none)."""
    if not fact_checks:
        return 0.0
    verified = sum(1 for fc in fact_checks if is_verified_rating(fc.rating))
    return verified / len(fact_checks)


def average_source_credibility(source_credibility: Mapping[str, float]) -> float:
    if not source_credibility:
        return 0.0
    values = list(source_credibility.values())
    return sum(values) / len(values)


def local_credibility(signals: Signals) -> float:
    """Offline credibility on the 0-1 scale."""
    if signals.toxicity is None:
        return signals.text.base_score
    return (
        signals.toxicity.credibility * LOCAL_MODEL_WEIGHT
        + signals.text.base_score * LOCAL_HEURISTIC_WEIGHT
    )


def clamp_confidence(value: float) -> float:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, value))


def compute_confidence(
    model: ModelAnalysis | None,
    articles: Sequence[SupportingArticle],
    fact_checks: Sequence[FactCheckArticle],
) -> float:
    """Confidence from signal volume.

    Base 0.6
      more than 5 articles          → +0.1
      more than 2 fact checks       → +0.1
      more than 3 verified facts    → +0.1
      more than 3 red flags         → −0.1
    Clamped to [0.3, 0.95].
    """
    confidence = BASE_CONFIDENCE

    if len(articles) > 5:
        confidence += 0.1
    if len(fact_checks) > 2:
        confidence += 0.1
    if model is not None and len(model.verified_facts) > 3:
        confidence += 0.1
    if model is not None and len(model.red_flags) > 3:
        confidence -= 0.1

    return clamp_confidence(confidence)


# ── Strategies ─────────────────────────────────────────────────────────

class AggregationStrategy(ABC):
    name: str = ""

    @abstractmethod
    def score(self, signals: Signals) -> float:
        """Return a credibility score on the 0-100 scale."""

    @abstractmethod
    def confidence(self, signals: Signals) -> float:
        """Return a confidence in [0.3, 0.95]."""


class ModelBackedStrategy(AggregationStrategy):
    name = "model_backed"

    def score(self, signals: Signals) -> float:
        if signals.model is not None:
            ai_score = signals.model.credibility_score
        else:
            # model adapter failed but news/fact-check data arrived
            ai_score = local_credibility(signals) * 100

        score = ai_score * MODEL_WEIGHT
        score += news_reputability_ratio(signals.articles) * 100 * NEWS_WEIGHT
        score += fact_check_verification_ratio(signals.fact_checks) * 100 * FACT_CHECK_WEIGHT
        score += average_source_credibility(signals.source_credibility) * SOURCE_WEIGHT

        return max(0.0, min(100.0, score))

    def confidence(self, signals: Signals) -> float:
        return compute_confidence(signals.model, signals.articles, signals.fact_checks)


class HeuristicOnlyStrategy(AggregationStrategy):
    name = "heuristic_only"

    def score(self, signals: Signals) -> float:
        return max(0.0, min(100.0, local_credibility(signals) * 100))

    def confidence(self, signals: Signals) -> float:
        if signals.toxicity is None:
            return clamp_confidence(BASE_CONFIDENCE)
        return clamp_confidence(LOCAL_MODEL_CONFIDENCE)


MODEL_BACKED = ModelBackedStrategy()
HEURISTIC_ONLY = HeuristicOnlyStrategy()


def select_strategy(signals: Signals) -> AggregationStrategy:
    """Prefer the model-backed blend whenever any external adapter returned data."""
    if signals.has_external_data:
        return MODEL_BACKED
    return HEURISTIC_ONLY
