"""Request schemas for the Credence API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from schemas.response import AlertType


class AnalyzeRequest(BaseModel):
    """Text and/or URL submitted for analysis."""

    content: str | None = Field(
        default=None,
        max_length=50_000,
        description="Raw article text.  Optional when ``url`` is given; the page is then fetched.",
    )
    url: str | None = Field(default=None, description="Source URL of the content, if available.")
    title: str | None = Field(default=None, description="Title of the article, if available.")

    @model_validator(mode="after")
    def _require_content_or_url(self) -> "AnalyzeRequest":
        if not (self.content and self.content.strip()) and not (self.url and self.url.strip()):
            raise ValueError("either content or url is required")
        return self


class SourceVerifyRequest(BaseModel):
    url: str = Field(..., min_length=1)
    content: str = Field(default="", max_length=50_000)


class AlertRuleCreate(BaseModel):
    keywords: list[str] = Field(..., min_length=1)
    alert_type: AlertType = Field(default=AlertType.ALL, alias="alertType")
    is_active: bool = Field(default=True, alias="isActive")

    model_config = {"populate_by_name": True}


class AlertRuleUpdate(BaseModel):
    keywords: list[str] | None = Field(default=None, min_length=1)
    alert_type: AlertType | None = Field(default=None, alias="alertType")
    is_active: bool | None = Field(default=None, alias="isActive")

    model_config = {"populate_by_name": True}


class BookmarkCreate(BaseModel):
    analysis_id: str = Field(..., min_length=1, alias="analysisId")
    tags: list[str] = Field(default_factory=list)
    notes: str = ""

    model_config = {"populate_by_name": True}


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(default=None, alias="displayName")
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    preferences: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}
