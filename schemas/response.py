"""Response and record schemas for the Credence API."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ──────────────────────────────────────────────────────────────

class Classification(str, Enum):
    RELIABLE = "reliable"
    QUESTIONABLE = "questionable"
    UNRELIABLE = "unreliable"


class AlertType(str, Enum):
    ALL = "all"
    MISINFORMATION = "misinformation"
    BIAS = "bias"
    SOURCE_RELIABILITY = "source_reliability"


# ── Analysis sub-models ────────────────────────────────────────────────

class AnalysisDetails(BaseModel):
    sentiment: str
    key_indicators: tuple[str, ...] = Field(default_factory=tuple, alias="keyIndicators")
    suggestions: tuple[str, ...] = Field(default_factory=tuple)

    model_config = {"populate_by_name": True, "frozen": True}


class AIAnalysis(BaseModel):
    summary: str = ""
    key_findings: tuple[str, ...] = Field(default_factory=tuple, alias="keyFindings")
    red_flags: tuple[str, ...] = Field(default_factory=tuple, alias="redFlags")
    verified_facts: tuple[str, ...] = Field(default_factory=tuple, alias="verifiedFacts")

    model_config = {"populate_by_name": True, "frozen": True}


class SupportingArticle(BaseModel):
    """A news article returned by the cross-reference search."""

    title: str
    url: str
    source: str = "Unknown"
    relevance: float = 0.0
    published_at: str | None = Field(default=None, alias="publishedAt")

    model_config = {"populate_by_name": True, "frozen": True}


class FactCheckArticle(BaseModel):
    """A fact-checked claim, flattened from its first review."""

    title: str
    url: str = ""
    organization: str = "Unknown"
    rating: str = "Unknown"
    summary: str = ""
    review_date: str | None = Field(default=None, alias="reviewDate")

    model_config = {"populate_by_name": True, "frozen": True}


class AnalysisSources(BaseModel):
    supporting_articles: tuple[SupportingArticle, ...] = Field(default_factory=tuple, alias="supportingArticles")
    fact_check_articles: tuple[FactCheckArticle, ...] = Field(default_factory=tuple, alias="factCheckArticles")

    model_config = {"populate_by_name": True, "frozen": True}


class RealTimeData(BaseModel):
    trending_topics: tuple[str, ...] = Field(default_factory=tuple, alias="trendingTopics")
    news_volume: int = Field(default=0, alias="newsVolume")
    source_credibility_map: dict[str, float] = Field(default_factory=dict, alias="sourceCredibilityMap")

    model_config = {"populate_by_name": True, "frozen": True}


# ── Analysis result ────────────────────────────────────────────────────

class AnalysisResult(BaseModel):
    """Composite credibility assessment.  Immutable once built by the aggregator."""

    score: float = Field(ge=0.0, le=1.0, description="Normalized credibility, 0-1.")
    credibility_score: float = Field(
        ge=0.0, le=100.0, alias="credibilityScore",
        description="Same value on the aggregator's internal 0-100 scale.",
    )
    confidence: float = Field(ge=0.3, le=0.95)
    classification: Classification
    strategy: str = Field(description="Aggregation strategy that produced the score.")
    details: AnalysisDetails
    ai_analysis: AIAnalysis | None = Field(default=None, alias="aiAnalysis")
    sources: AnalysisSources | None = None
    real_time_data: RealTimeData | None = Field(default=None, alias="realTimeData")

    model_config = {"populate_by_name": True, "frozen": True}


# ── Publisher reputation ───────────────────────────────────────────────

class PublisherProfile(BaseModel):
    domain: str
    publisher: str
    credibility_score: int = Field(ge=0, le=100, alias="credibilityScore")
    bias: str = "Mixed"
    factual_reporting: str = Field(default="Mixed", alias="factualReporting")
    reputation_score: int = Field(ge=0, le=100, alias="reputationScore")
    known: bool = False
    founding_year: int | None = Field(default=None, alias="foundingYear")
    headquarters: str | None = None
    media_bias_rating: str | None = Field(default=None, alias="mediaBiasFactCheckRating")
    primary_topics: list[str] = Field(default_factory=lambda: ["General News"], alias="primaryTopics")

    model_config = {"populate_by_name": True, "frozen": True}


class SourceVerificationResponse(BaseModel):
    publisher_analysis: PublisherProfile = Field(alias="publisherAnalysis")
    fact_checks: list[FactCheckArticle] = Field(default_factory=list, alias="factChecks")
    cross_references: list[SupportingArticle] = Field(default_factory=list, alias="crossReferences")
    overall_credibility_score: float = Field(ge=0, le=100, alias="overallCredibilityScore")
    confidence: float = Field(ge=0.0, le=1.0)
    warnings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


# ── Alerts ─────────────────────────────────────────────────────────────

class AlertRule(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    keywords: list[str] = Field(min_length=1)
    alert_type: AlertType = AlertType.ALL
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("keywords")
    @classmethod
    def _clean_keywords(cls, value: list[str]) -> list[str]:
        cleaned = [k.strip() for k in value if k and k.strip()]
        if not cleaned:
            raise ValueError("at least one non-blank keyword is required")
        return cleaned


class TriggeredAlert(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    alert_id: str
    analysis_id: str
    content_excerpt: str
    matched_keywords: list[str] = Field(min_length=1)
    is_read: bool = False
    triggered_at: datetime = Field(default_factory=_utcnow)


# ── History / bookmarks / profiles ─────────────────────────────────────

class AnalysisRecord(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str | None = None
    url: str | None = None
    content_excerpt: str
    analysis_result: AnalysisResult
    source_verification: AnalysisSources | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class Bookmark(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    analysis_id: str
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    analysis: AnalysisRecord | None = None


class Profile(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    display_name: str | None = None
    avatar_url: str | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ── Top-level responses ────────────────────────────────────────────────

class AnalyzeResponse(BaseModel):
    analysis_id: str | None = Field(default=None, description="None when the record could not be stored.")
    result: AnalysisResult
    triggered_alerts: list[TriggeredAlert] = Field(default_factory=list)


class SourceCount(BaseModel):
    domain: str
    count: int


class DashboardStats(BaseModel):
    total_analyses: int = 0
    reliable_count: int = 0
    questionable_count: int = 0
    unreliable_count: int = 0
    average_credibility: float = Field(default=0.0, description="Mean score in percent.")
    trend: float = Field(default=0.0, description="Recent minus older mean score, in percent points.")
    top_sources: list[SourceCount] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
