"""Shapes returned by the external signal adapters."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from schemas.response import SupportingArticle


class ModelAnalysis(BaseModel):
    """Parsed language-model verdict on a piece of content."""

    credibility_score: float = Field(default=50.0, alias="credibilityScore")
    key_findings: list[str] = Field(default_factory=list, alias="keyFindings")
    red_flags: list[str] = Field(default_factory=list, alias="redFlags")
    verified_facts: list[str] = Field(default_factory=list, alias="verifiedFacts")
    summary: str = ""
    keyword_extraction: list[str] = Field(default_factory=list, alias="keywordExtraction")

    model_config = {"populate_by_name": True}

    @field_validator("credibility_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: object) -> float:
        try:
            f = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 50.0
        return max(0.0, min(100.0, f))

    @field_validator("key_findings", "red_flags", "verified_facts", "keyword_extraction", mode="before")
    @classmethod
    def _coerce_list(cls, value: object) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if str(v).strip()]

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, value: object) -> str:
        return "" if value is None else str(value)


class NewsSearchResult(BaseModel):
    articles: list[SupportingArticle] = Field(default_factory=list)
    total_results: int = Field(default=0, alias="totalResults")

    model_config = {"populate_by_name": True}


class ToxicityPrediction(BaseModel):
    """Top label of the local text-classification model."""

    label: str
    score: float = Field(ge=0.0, le=1.0)

    @property
    def is_toxic(self) -> bool:
        return self.label.upper() == "TOXIC"

    @property
    def toxicity(self) -> float:
        return self.score if self.is_toxic else 1.0 - self.score

    @property
    def credibility(self) -> float:
        return 1.0 - self.toxicity
