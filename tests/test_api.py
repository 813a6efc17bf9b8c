"""Tests for the FastAPI routes (mocked adapters)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

# Ensure auth is disabled for tests (no INTERNAL_TOKEN set)
import os
os.environ.pop("INTERNAL_TOKEN", None)

from engine.errors import AdapterUnavailableError, InvalidInputError
from main import app
from schemas.response import FactCheckArticle, SupportingArticle
from schemas.signals import ModelAnalysis, NewsSearchResult
from services.repositories import Repositories


client = TestClient(app)

ARTICLE = (
    'Officials said on Monday that 42 percent of the city budget, "roughly $3 million", '
    "will go to road repairs after the election."
)
USER = {"X-User-Id": "user-1"}


def _mock_model(content: str, url: str | None = None):  # noqa: ARG001
    return ModelAnalysis(
        credibility_score=85,
        key_findings=["Cites a specific figure"],
        verified_facts=["Budget approved on Monday"],
        summary="Routine municipal budget report.",
        keyword_extraction=["budget", "election"],
    )


@pytest.fixture(autouse=True)
def _fresh_state():
    app.state.repos = Repositories()
    yield


@pytest.fixture(autouse=True)
def _patch_adapters():
    news = NewsSearchResult(
        articles=[SupportingArticle(title="City budget", url="https://www.reuters.com/budget", source="Reuters")],
        total_results=3,
    )
    fact_checks = [FactCheckArticle(title="Budget claim", rating="Mostly True", organization="PolitiFact")]
    patches = [
        patch("engine.pipeline.analyze_with_model", new_callable=AsyncMock, side_effect=_mock_model),
        patch("engine.pipeline.search_news", new_callable=AsyncMock, return_value=news),
        patch("engine.pipeline.search_fact_checks", new_callable=AsyncMock, return_value=fact_checks),
        patch("engine.source_verifier.search_news", new_callable=AsyncMock, return_value=news),
        patch("engine.source_verifier.search_fact_checks", new_callable=AsyncMock, return_value=fact_checks),
    ]
    for p in patches:
        p.start()
    yield
    for p in patches:
        p.stop()


def _analyze(**body) -> dict:
    resp = client.post("/analyze", json={"content": ARTICLE, **body}, headers=USER)
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestHealthEndpoint:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["engine"] == "credence"
        assert data["toxicity_model_loaded"] is False


class TestAnalyzeEndpoint:
    def test_successful_analysis(self):
        data = _analyze(url="https://www.reuters.com/world/budget")
        result = data["result"]
        assert data["analysis_id"]
        assert 0.0 <= result["score"] <= 1.0
        assert result["classification"] in ("reliable", "questionable", "unreliable")
        assert result["strategy"] == "model_backed"
        assert 0.3 <= result["confidence"] <= 0.95

    def test_camel_case_fields_for_frontend(self):
        result = _analyze()["result"]
        for key in ("credibilityScore", "aiAnalysis", "realTimeData"):
            assert key in result
        assert "keyIndicators" in result["details"]
        assert result["aiAnalysis"]["summary"] == "Routine municipal budget report."
        assert result["realTimeData"]["trendingTopics"] == ["budget", "election"]

    def test_short_content_rejected(self):
        resp = client.post("/analyze", json={"content": "too short"})
        assert resp.status_code == 422
        assert resp.json()["error"] == "invalid_input"

    def test_missing_content_and_url_rejected(self):
        resp = client.post("/analyze", json={"title": "Only a title"})
        assert resp.status_code == 422

    def test_adapters_down_still_returns_result(self):
        with (
            patch("engine.pipeline.analyze_with_model", new_callable=AsyncMock,
                  side_effect=AdapterUnavailableError("model", "down")),
            patch("engine.pipeline.search_news", new_callable=AsyncMock,
                  side_effect=AdapterUnavailableError("news", "down")),
            patch("engine.pipeline.search_fact_checks", new_callable=AsyncMock, return_value=[]),
        ):
            result = _analyze()["result"]
        assert result["strategy"] == "heuristic_only"
        assert result["confidence"] == pytest.approx(0.6)
        assert result["aiAnalysis"] is None

    def test_url_only_fetches_page(self):
        with patch("main.extract_from_url", new_callable=AsyncMock, return_value=ARTICLE) as fetch:
            resp = client.post("/analyze", json={"url": "https://example.com/story"})
        assert resp.status_code == 200
        fetch.assert_awaited_once_with("https://example.com/story")

    def test_unfetchable_url_rejected(self):
        with patch(
            "main.extract_from_url",
            new_callable=AsyncMock,
            side_effect=InvalidInputError("Unable to extract sufficient content from URL."),
        ):
            resp = client.post("/analyze", json={"url": "https://example.com/empty"})
        assert resp.status_code == 422

    def test_malformed_url_rejected(self):
        resp = client.post("/analyze", json={"url": "http://exa mple.com/\x00"})
        assert resp.status_code == 422
        assert resp.json()["error"] == "invalid_input"

    def test_other_users_alerts_not_echoed(self):
        client.post("/alerts", json={"keywords": ["budget"], "alertType": "all"}, headers=USER)

        other = client.post("/analyze", json={"content": ARTICLE}, headers={"X-User-Id": "user-2"})
        anonymous = client.post("/analyze", json={"content": ARTICLE})
        assert other.json()["triggered_alerts"] == []
        assert anonymous.json()["triggered_alerts"] == []

        stored = client.get("/alerts/triggered", headers=USER).json()
        assert len(stored) == 2
        assert client.get("/alerts/triggered", headers={"X-User-Id": "user-2"}).json() == []

    def test_analysis_recorded_in_history(self):
        data = _analyze()
        resp = client.get("/history", headers=USER)
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [data["analysis_id"]]

    def test_alert_triggered_by_analysis(self):
        resp = client.post("/alerts", json={"keywords": ["budget"], "alertType": "all"}, headers=USER)
        assert resp.status_code == 201
        data = _analyze()
        assert len(data["triggered_alerts"]) == 1
        assert data["triggered_alerts"][0]["matched_keywords"] == ["budget"]

        unread = client.get("/alerts/triggered?unread_only=true", headers=USER).json()
        assert len(unread) == 1
        read = client.post(f"/alerts/triggered/{unread[0]['id']}/read", headers=USER)
        assert read.status_code == 200
        assert read.json()["is_read"] is True


class TestSourceEndpoints:
    def test_known_publisher(self):
        resp = client.get("/sources/reuters.com")
        assert resp.status_code == 200
        data = resp.json()
        assert data["publisher"] == "Reuters"
        assert data["credibilityScore"] == 92

    def test_unknown_publisher(self):
        data = client.get("/sources/random-blog.net").json()
        assert data["credibilityScore"] == 55
        assert data["known"] is False

    def test_verify_source(self):
        resp = client.post("/sources/verify", json={"url": "https://www.bbc.com/news/1", "content": ARTICLE})
        assert resp.status_code == 200
        data = resp.json()
        # 85 + 5 (positive fact check) + 3 (reuters cross reference)
        assert data["overallCredibilityScore"] == pytest.approx(93.0)
        assert data["confidence"] == pytest.approx(0.95)
        assert data["crossReferences"][0]["source"] == "reuters.com"
        assert data["warnings"] == []


class TestUserResources:
    def test_identity_required(self):
        for path in ("/history", "/dashboard", "/alerts", "/bookmarks", "/profile"):
            assert client.get(path).status_code == 401

    def test_alert_crud(self):
        created = client.post("/alerts", json={"keywords": ["vaccine"], "alertType": "misinformation"}, headers=USER)
        alert_id = created.json()["id"]

        patched = client.patch(f"/alerts/{alert_id}", json={"isActive": False}, headers=USER)
        assert patched.status_code == 200
        assert patched.json()["is_active"] is False

        other = client.patch(f"/alerts/{alert_id}", json={"isActive": True}, headers={"X-User-Id": "user-2"})
        assert other.status_code == 404

        assert client.delete(f"/alerts/{alert_id}", headers=USER).status_code == 204
        assert client.get("/alerts", headers=USER).json() == []

    def test_blank_alert_keywords_rejected(self):
        resp = client.post("/alerts", json={"keywords": ["   "]}, headers=USER)
        assert resp.status_code == 422

    def test_bookmarks(self):
        analysis_id = _analyze()["analysis_id"]

        resp = client.post("/bookmarks", json={"analysisId": analysis_id, "tags": ["city"]}, headers=USER)
        assert resp.status_code == 201
        assert client.get(f"/bookmarks/{analysis_id}", headers=USER).json()["bookmarked"] is True

        listed = client.get("/bookmarks", headers=USER).json()
        assert listed[0]["analysis"]["id"] == analysis_id

        assert client.delete(f"/bookmarks/{analysis_id}", headers=USER).status_code == 204
        assert client.delete(f"/bookmarks/{analysis_id}", headers=USER).status_code == 404

    def test_bookmark_unknown_analysis(self):
        resp = client.post("/bookmarks", json={"analysisId": "missing"}, headers=USER)
        assert resp.status_code == 404

    def test_profile(self):
        assert client.get("/profile", headers=USER).json()["user_id"] == "user-1"
        resp = client.put("/profile", json={"displayName": "Sam", "preferences": {"theme": "dark"}}, headers=USER)
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Sam"
        assert resp.json()["preferences"] == {"theme": "dark"}

    def test_dashboard(self):
        _analyze()
        _analyze(url="https://www.reuters.com/world/budget")
        data = client.get("/dashboard", headers=USER).json()
        assert data["total_analyses"] == 2
        assert {s["domain"] for s in data["top_sources"]} == {"reuters.com", "text-analysis"}

    def test_history_search(self):
        _analyze()
        assert len(client.get("/history?q=ROAD", headers=USER).json()) == 1
        assert client.get("/history?q=weather", headers=USER).json() == []


class TestInternalAuth:
    def test_no_auth_when_token_not_configured(self):
        """With empty INTERNAL_TOKEN, all requests should pass."""
        resp = client.post("/analyze", json={"content": ARTICLE})
        assert resp.status_code == 200

    def test_auth_rejects_bad_token_when_configured(self):
        """When INTERNAL_TOKEN is set, wrong token → 401."""
        from config import settings
        original = settings.internal_token
        try:
            settings.internal_token = "super-secret-token"
            resp = client.post(
                "/analyze",
                json={"content": ARTICLE},
                headers={"X-Internal-Token": "wrong-token"},
            )
            assert resp.status_code == 401
        finally:
            settings.internal_token = original

    def test_auth_accepts_correct_token_when_configured(self):
        from config import settings
        original = settings.internal_token
        try:
            settings.internal_token = "super-secret-token"
            resp = client.post(
                "/analyze",
                json={"content": ARTICLE},
                headers={"X-Internal-Token": "super-secret-token"},
            )
            assert resp.status_code == 200
        finally:
            settings.internal_token = original

    def test_auth_rejects_missing_token_when_configured(self):
        from config import settings
        original = settings.internal_token
        try:
            settings.internal_token = "super-secret-token"
            resp = client.get("/sources/reuters.com")
            assert resp.status_code == 401
        finally:
            settings.internal_token = original
