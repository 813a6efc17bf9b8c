"""Tests for alert matching and the record repositories."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from engine.alert_matcher import EXCERPT_LENGTH, match, matched_keywords
from engine.dashboard import compute_stats
from engine.errors import PersistenceError, RecordNotFoundError
from schemas.response import (
    AlertRule,
    AlertType,
    AnalysisDetails,
    AnalysisRecord,
    AnalysisResult,
    Classification,
    TriggeredAlert,
)
from services.repositories import Repositories
from services.store import InMemoryStore


# ── Helpers ────────────────────────────────────────────────────────────

_SCORES = {
    Classification.RELIABLE: 0.85,
    Classification.QUESTIONABLE: 0.6,
    Classification.UNRELIABLE: 0.3,
}


def _result(classification: Classification, sentiment: str = "Basic Analysis") -> AnalysisResult:
    score = _SCORES[classification]
    return AnalysisResult(
        score=score,
        credibility_score=score * 100,
        confidence=0.6,
        classification=classification,
        strategy="heuristic_only",
        details=AnalysisDetails(sentiment=sentiment),
    )


def _rule(keywords, alert_type=AlertType.ALL, user_id="u1", is_active=True) -> AlertRule:
    return AlertRule(user_id=user_id, keywords=keywords, alert_type=alert_type, is_active=is_active)


def _record(classification: Classification, url: str | None = None, user_id: str = "u1", excerpt: str = "text") -> AnalysisRecord:
    return AnalysisRecord(user_id=user_id, url=url, content_excerpt=excerpt, analysis_result=_result(classification))


# ── Matcher ────────────────────────────────────────────────────────────

class TestAlertMatcher:
    def test_election_rule_fires_once(self):
        rules = [_rule(["election", "vote"])]
        alerts = match("The election results were announced today", _result(Classification.RELIABLE), rules)
        assert len(alerts) == 1
        assert alerts[0].matched_keywords == ["election"]

    def test_misinformation_rule_blocked_for_reliable(self):
        rules = [_rule(["vaccine"], AlertType.MISINFORMATION)]
        assert match("New vaccine data released", _result(Classification.RELIABLE), rules) == []

    def test_misinformation_rule_fires_for_unreliable(self):
        rules = [_rule(["vaccine"], AlertType.MISINFORMATION)]
        assert len(match("New vaccine data released", _result(Classification.UNRELIABLE), rules)) == 1

    def test_keyword_match_is_case_insensitive(self):
        alerts = match("VACCINE Rollout", _result(Classification.RELIABLE), [_rule(["vaccine", "rollout"])])
        assert alerts[0].matched_keywords == ["vaccine", "rollout"]

    def test_no_keyword_no_alert(self):
        assert match("Weather is sunny", _result(Classification.UNRELIABLE), [_rule(["vaccine"])]) == []

    @pytest.mark.parametrize(
        "classification, sentiment, fires",
        [
            (Classification.QUESTIONABLE, "Neutral", True),
            (Classification.RELIABLE, "Potentially biased", True),
            (Classification.RELIABLE, "Negative", True),
            (Classification.RELIABLE, "Neutral", False),
            (Classification.UNRELIABLE, "Neutral", False),
        ],
    )
    def test_bias_filter(self, classification, sentiment, fires):
        rules = [_rule(["budget"], AlertType.BIAS)]
        alerts = match("The budget vote", _result(classification, sentiment), rules)
        assert bool(alerts) is fires

    @pytest.mark.parametrize(
        "classification, fires",
        [
            (Classification.UNRELIABLE, True),
            (Classification.QUESTIONABLE, True),
            (Classification.RELIABLE, False),
        ],
    )
    def test_source_reliability_filter(self, classification, fires):
        rules = [_rule(["budget"], AlertType.SOURCE_RELIABILITY)]
        assert bool(match("The budget vote", _result(classification), rules)) is fires

    def test_inactive_rule_skipped(self):
        rules = [_rule(["budget"], is_active=False)]
        assert match("The budget vote", _result(Classification.RELIABLE), rules) == []

    def test_every_rule_evaluated(self):
        rules = [_rule(["budget"], user_id="u1"), _rule(["vote"], user_id="u2"), _rule(["budget"], user_id="u3")]
        alerts = match("The budget vote", _result(Classification.RELIABLE), rules)
        assert sorted(a.user_id for a in alerts) == ["u1", "u2", "u3"]

    def test_malformed_rule_skipped(self):
        good = _rule(["budget"])
        rules = [
            {"user_id": "bad", "keywords": None, "alert_type": "all", "is_active": True},
            {"user_id": "bad", "keywords": ["budget"], "alert_type": "nonsense", "is_active": True},
            good.model_dump(),
        ]
        alerts = match("The budget vote", _result(Classification.RELIABLE), rules, analysis_id="a1")
        assert len(alerts) == 1
        assert alerts[0].alert_id == good.id
        assert alerts[0].analysis_id == "a1"

    def test_excerpt_truncated(self):
        content = "budget " * 100
        alert = match(content, _result(Classification.RELIABLE), [_rule(["budget"])])[0]
        assert len(alert.content_excerpt) == EXCERPT_LENGTH

    def test_matched_keywords_ignores_blank(self):
        assert matched_keywords("anything", ["", "any"]) == ["any"]


class TestAlertRuleSchema:
    def test_blank_keywords_rejected(self):
        with pytest.raises(ValidationError):
            AlertRule(user_id="u1", keywords=["  ", ""])

    def test_empty_keywords_rejected(self):
        with pytest.raises(ValidationError):
            AlertRule(user_id="u1", keywords=[])

    def test_triggered_alert_requires_match(self):
        with pytest.raises(ValidationError):
            TriggeredAlert(user_id="u1", alert_id="r", analysis_id="a", content_excerpt="x", matched_keywords=[])


# ── Store ──────────────────────────────────────────────────────────────

class TestInMemoryStore:
    def test_insert_and_get_are_copies(self):
        store = InMemoryStore()
        row = {"id": "1", "tags": ["a"]}
        store.insert("t", row)
        row["tags"].append("b")
        fetched = store.get("t", "1")
        fetched["tags"].append("c")
        assert store.get("t", "1")["tags"] == ["a"]

    def test_duplicate_id(self):
        store = InMemoryStore()
        store.insert("t", {"id": "1"})
        with pytest.raises(PersistenceError):
            store.insert("t", {"id": "1"})

    def test_missing_id(self):
        with pytest.raises(PersistenceError):
            InMemoryStore().insert("t", {"name": "x"})

    def test_update_missing(self):
        with pytest.raises(RecordNotFoundError):
            InMemoryStore().update("t", "nope", {"a": 1})

    def test_query_filters_orders_and_limits(self):
        store = InMemoryStore()
        for i in range(5):
            store.insert("t", {"id": str(i), "n": i, "owner": "a" if i % 2 else "b"})
        rows = store.query("t", filters={"owner": "b"}, order_by="n", limit=2)
        assert [r["n"] for r in rows] == [4, 2]


# ── Repositories ───────────────────────────────────────────────────────

class _FailingStore(InMemoryStore):
    def insert(self, table, record):
        raise OSError("disk full")


class TestRepositories:
    def test_history_save_and_search(self):
        repos = Repositories()
        first = _record(Classification.RELIABLE, url="https://reuters.com/a", excerpt="Election results")
        second = _record(Classification.UNRELIABLE, excerpt="Miracle cure")
        repos.history.save(first)
        repos.history.save(second)

        assert repos.history.get(first.id).analysis_result.score == first.analysis_result.score
        assert [r.id for r in repos.history.search("ELECTION")] == [first.id]
        assert [r.id for r in repos.history.search("reuters")] == [first.id]
        assert repos.history.search("nothing here") == []

    def test_history_scoped_to_user(self):
        repos = Repositories()
        repos.history.save(_record(Classification.RELIABLE, user_id="u1"))
        repos.history.save(_record(Classification.RELIABLE, user_id="u2"))
        assert len(repos.history.recent(user_id="u1")) == 1

    def test_store_failure_becomes_persistence_error(self):
        repos = Repositories(store=_FailingStore())
        with pytest.raises(PersistenceError):
            repos.history.save(_record(Classification.RELIABLE))

    def test_alert_crud_and_ownership(self):
        repos = Repositories()
        rule = repos.alerts.create("u1", ["budget"], AlertType.BIAS)

        assert [r.id for r in repos.alerts.list_for_user("u1")] == [rule.id]
        assert repos.alerts.list_for_user("u2") == []

        updated = repos.alerts.update("u1", rule.id, is_active=False)
        assert not updated.is_active
        assert updated.alert_type == AlertType.BIAS
        assert repos.alerts.all_active() == []

        with pytest.raises(RecordNotFoundError):
            repos.alerts.update("u2", rule.id, is_active=True)
        with pytest.raises(RecordNotFoundError):
            repos.alerts.delete("u2", rule.id)

        repos.alerts.delete("u1", rule.id)
        assert repos.alerts.list_for_user("u1") == []

    def test_alert_update_rejects_blank_keywords(self):
        repos = Repositories()
        rule = repos.alerts.create("u1", ["budget"])
        with pytest.raises(ValueError):
            repos.alerts.update("u1", rule.id, keywords=["   "])

    def test_triggered_alerts_save_and_mark_read(self):
        repos = Repositories()
        alert = TriggeredAlert(user_id="u1", alert_id="r1", analysis_id="a1", content_excerpt="x", matched_keywords=["x"])
        assert repos.triggered.save_many([alert]) == [alert]
        assert len(repos.triggered.list_for_user("u1", unread_only=True)) == 1

        read = repos.triggered.mark_read("u1", alert.id)
        assert read.is_read
        assert repos.triggered.list_for_user("u1", unread_only=True) == []
        with pytest.raises(RecordNotFoundError):
            repos.triggered.mark_read("u2", alert.id)

    def test_triggered_alerts_isolated_per_record(self):
        repos = Repositories()
        alert = TriggeredAlert(user_id="u1", alert_id="r1", analysis_id="a1", content_excerpt="x", matched_keywords=["x"])
        repos.triggered.save_many([alert])
        other = TriggeredAlert(user_id="u2", alert_id="r2", analysis_id="a1", content_excerpt="x", matched_keywords=["x"])
        # the duplicate fails on its own; the new alert is still stored
        saved = repos.triggered.save_many([alert, other])
        assert saved == [other]

    def test_bookmarks(self):
        repos = Repositories()
        record = _record(Classification.RELIABLE)
        repos.history.save(record)

        bookmark = repos.bookmarks.add("u1", record.id, tags=["health"], notes="check later")
        assert repos.bookmarks.add("u1", record.id).id == bookmark.id
        assert repos.bookmarks.is_bookmarked("u1", record.id)
        assert not repos.bookmarks.is_bookmarked("u2", record.id)

        listed = repos.bookmarks.list_for_user("u1")
        assert len(listed) == 1
        assert listed[0].analysis.id == record.id

        assert repos.bookmarks.remove("u1", record.id)
        assert not repos.bookmarks.remove("u1", record.id)

    def test_bookmark_unknown_analysis(self):
        with pytest.raises(RecordNotFoundError):
            Repositories().bookmarks.add("u1", "missing")

    def test_profile_get_or_create_and_update(self):
        repos = Repositories()
        created = repos.profiles.get_or_create("u1")
        assert repos.profiles.get_or_create("u1").id == created.id

        updated = repos.profiles.update("u1", {"display_name": "Sam", "avatar_url": None})
        assert updated.display_name == "Sam"
        assert updated.avatar_url is None


# ── Dashboard ──────────────────────────────────────────────────────────

class TestDashboard:
    def test_empty(self):
        stats = compute_stats([])
        assert stats.total_analyses == 0
        assert stats.top_sources == []

    def test_counts_and_sources(self):
        records = [
            _record(Classification.RELIABLE, url="https://www.reuters.com/a"),
            _record(Classification.RELIABLE, url="https://reuters.com/b"),
            _record(Classification.UNRELIABLE),
        ]
        stats = compute_stats(records)
        assert stats.total_analyses == 3
        assert stats.reliable_count == 2
        assert stats.unreliable_count == 1
        assert stats.average_credibility == pytest.approx((85 + 85 + 30) / 3)
        assert stats.trend == 0.0
        assert stats.top_sources[0].domain == "reuters.com"
        assert stats.top_sources[0].count == 2

    def test_trend_compares_recent_with_older(self):
        recent = [_record(Classification.RELIABLE) for _ in range(5)]
        older = [_record(Classification.UNRELIABLE) for _ in range(5)]
        stats = compute_stats(recent + older)
        assert stats.trend == pytest.approx(55.0)
