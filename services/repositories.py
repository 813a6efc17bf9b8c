"""Entity repositories on top of a ``RecordStore``.

Each repository converts between store dicts and the pydantic records in
``schemas.response``.  Ownership is enforced here: a user can only see and
change their own alerts, bookmarks, triggered alerts and profile.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from engine.errors import PersistenceError, RecordNotFoundError
from schemas.response import (
    AlertRule,
    AlertType,
    AnalysisRecord,
    Bookmark,
    Profile,
    TriggeredAlert,
)
from services.store import InMemoryStore, RecordStore

logger = logging.getLogger("credence.repositories")

ANALYSES = "analysis_history"
ALERTS = "alerts"
TRIGGERED_ALERTS = "triggered_alerts"
BOOKMARKS = "bookmarks"
PROFILES = "profiles"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _guard(action: str):
    """Re-raise unexpected store failures as ``PersistenceError``.

    Validation errors (``ValueError``) pass through untouched.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (PersistenceError, ValueError):
                raise
            except Exception as exc:
                logger.exception("Store failure during %s", action)
                raise PersistenceError(f"{action} failed: {exc}") from exc

        return wrapper

    return decorator


# ── Analysis history ───────────────────────────────────────────────────

class AnalysisHistoryRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @_guard("save analysis")
    def save(self, record: AnalysisRecord) -> str:
        self.store.insert(ANALYSES, record.model_dump())
        return record.id

    @_guard("read analysis")
    def get(self, analysis_id: str) -> AnalysisRecord | None:
        row = self.store.get(ANALYSES, analysis_id)
        return AnalysisRecord.model_validate(row) if row is not None else None

    @_guard("list analyses")
    def recent(self, limit: int | None = 10, *, user_id: str | None = None) -> list[AnalysisRecord]:
        filters = {"user_id": user_id} if user_id else None
        rows = self.store.query(ANALYSES, filters=filters, order_by="created_at", limit=limit)
        return [AnalysisRecord.model_validate(r) for r in rows]

    @_guard("search analyses")
    def search(self, query: str, limit: int = 20, *, user_id: str | None = None) -> list[AnalysisRecord]:
        """Case-insensitive match on the content excerpt or the URL."""
        needle = query.lower()

        def _matches(row: dict[str, Any]) -> bool:
            return needle in (row.get("content_excerpt") or "").lower() or needle in (row.get("url") or "").lower()

        filters = {"user_id": user_id} if user_id else None
        rows = self.store.query(ANALYSES, filters=filters, where=_matches, order_by="created_at", limit=limit)
        return [AnalysisRecord.model_validate(r) for r in rows]


# ── Alert rules ────────────────────────────────────────────────────────

class AlertRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @_guard("create alert")
    def create(
        self,
        user_id: str,
        keywords: Sequence[str],
        alert_type: AlertType = AlertType.ALL,
        is_active: bool = True,
    ) -> AlertRule:
        rule = AlertRule(user_id=user_id, keywords=list(keywords), alert_type=alert_type, is_active=is_active)
        self.store.insert(ALERTS, rule.model_dump())
        return rule

    def _owned(self, user_id: str, alert_id: str) -> dict[str, Any]:
        row = self.store.get(ALERTS, alert_id)
        if row is None or row.get("user_id") != user_id:
            raise RecordNotFoundError(f"alert {alert_id} not found")
        return row

    @_guard("list alerts")
    def list_for_user(self, user_id: str, *, active_only: bool = False) -> list[AlertRule]:
        filters: dict[str, Any] = {"user_id": user_id}
        if active_only:
            filters["is_active"] = True
        rows = self.store.query(ALERTS, filters=filters, order_by="created_at")
        return [AlertRule.model_validate(r) for r in rows]

    @_guard("list active alerts")
    def all_active(self) -> list[dict[str, Any]]:
        """Raw rows of every active rule, across users.

        Returned unvalidated so the matcher can skip a malformed row on its own.
        """
        return self.store.query(ALERTS, filters={"is_active": True})

    @_guard("update alert")
    def update(
        self,
        user_id: str,
        alert_id: str,
        *,
        keywords: Sequence[str] | None = None,
        alert_type: AlertType | None = None,
        is_active: bool | None = None,
    ) -> AlertRule:
        current = AlertRule.model_validate(self._owned(user_id, alert_id))
        changes: dict[str, Any] = {"updated_at": _utcnow()}
        if keywords is not None:
            changes["keywords"] = list(keywords)
        if alert_type is not None:
            changes["alert_type"] = alert_type
        if is_active is not None:
            changes["is_active"] = is_active

        updated = current.model_copy(update=changes)
        # re-validate so blank keyword lists are rejected
        updated = AlertRule.model_validate(updated.model_dump())
        self.store.update(ALERTS, alert_id, updated.model_dump())
        return updated

    @_guard("delete alert")
    def delete(self, user_id: str, alert_id: str) -> None:
        self._owned(user_id, alert_id)
        self.store.delete(ALERTS, alert_id)


# ── Triggered alerts ───────────────────────────────────────────────────

class TriggeredAlertRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def save_many(self, alerts: Iterable[TriggeredAlert]) -> list[TriggeredAlert]:
        """Store each alert independently; one failed write does not block the rest."""
        saved: list[TriggeredAlert] = []
        for alert in alerts:
            try:
                self.store.insert(TRIGGERED_ALERTS, alert.model_dump())
            except Exception:
                logger.warning("Failed to store triggered alert %s", alert.id, exc_info=True)
                continue
            saved.append(alert)
        return saved

    @_guard("list triggered alerts")
    def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int | None = None) -> list[TriggeredAlert]:
        filters: dict[str, Any] = {"user_id": user_id}
        if unread_only:
            filters["is_read"] = False
        rows = self.store.query(TRIGGERED_ALERTS, filters=filters, order_by="triggered_at", limit=limit)
        return [TriggeredAlert.model_validate(r) for r in rows]

    @_guard("mark alert read")
    def mark_read(self, user_id: str, triggered_id: str, is_read: bool = True) -> TriggeredAlert:
        row = self.store.get(TRIGGERED_ALERTS, triggered_id)
        if row is None or row.get("user_id") != user_id:
            raise RecordNotFoundError(f"triggered alert {triggered_id} not found")
        return TriggeredAlert.model_validate(self.store.update(TRIGGERED_ALERTS, triggered_id, {"is_read": is_read}))


# ── Bookmarks ──────────────────────────────────────────────────────────

class BookmarkRepository:
    def __init__(self, store: RecordStore, history: AnalysisHistoryRepository) -> None:
        self.store = store
        self.history = history

    def _find(self, user_id: str, analysis_id: str) -> dict[str, Any] | None:
        rows = self.store.query(BOOKMARKS, filters={"user_id": user_id, "analysis_id": analysis_id}, limit=1)
        return rows[0] if rows else None

    @_guard("add bookmark")
    def add(self, user_id: str, analysis_id: str, tags: Sequence[str] = (), notes: str = "") -> Bookmark:
        if self.history.get(analysis_id) is None:
            raise RecordNotFoundError(f"analysis {analysis_id} not found")
        existing = self._find(user_id, analysis_id)
        if existing is not None:
            return Bookmark.model_validate(existing)

        bookmark = Bookmark(user_id=user_id, analysis_id=analysis_id, tags=list(tags), notes=notes)
        self.store.insert(BOOKMARKS, bookmark.model_dump(exclude={"analysis"}))
        return bookmark

    @_guard("remove bookmark")
    def remove(self, user_id: str, analysis_id: str) -> bool:
        existing = self._find(user_id, analysis_id)
        if existing is None:
            return False
        return self.store.delete(BOOKMARKS, existing["id"])

    @_guard("check bookmark")
    def is_bookmarked(self, user_id: str, analysis_id: str) -> bool:
        return self._find(user_id, analysis_id) is not None

    @_guard("list bookmarks")
    def list_for_user(self, user_id: str) -> list[Bookmark]:
        """Newest first, each joined with its analysis record."""
        rows = self.store.query(BOOKMARKS, filters={"user_id": user_id}, order_by="created_at")
        bookmarks: list[Bookmark] = []
        for row in rows:
            bookmark = Bookmark.model_validate(row)
            bookmarks.append(bookmark.model_copy(update={"analysis": self.history.get(bookmark.analysis_id)}))
        return bookmarks


# ── Profiles ───────────────────────────────────────────────────────────

class ProfileRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _find(self, user_id: str) -> dict[str, Any] | None:
        rows = self.store.query(PROFILES, filters={"user_id": user_id}, limit=1)
        return rows[0] if rows else None

    @_guard("read profile")
    def get_or_create(self, user_id: str) -> Profile:
        row = self._find(user_id)
        if row is not None:
            return Profile.model_validate(row)
        profile = Profile(user_id=user_id)
        self.store.insert(PROFILES, profile.model_dump())
        return profile

    @_guard("update profile")
    def update(self, user_id: str, changes: dict[str, Any]) -> Profile:
        profile = self.get_or_create(user_id)
        clean = {k: v for k, v in changes.items() if v is not None}
        clean["updated_at"] = _utcnow()
        return Profile.model_validate(self.store.update(PROFILES, profile.id, clean))


# ── Container ──────────────────────────────────────────────────────────

@dataclass
class Repositories:
    store: RecordStore = field(default_factory=InMemoryStore)
    history: AnalysisHistoryRepository = field(init=False)
    alerts: AlertRepository = field(init=False)
    triggered: TriggeredAlertRepository = field(init=False)
    bookmarks: BookmarkRepository = field(init=False)
    profiles: ProfileRepository = field(init=False)

    def __post_init__(self) -> None:
        self.history = AnalysisHistoryRepository(self.store)
        self.alerts = AlertRepository(self.store)
        self.triggered = TriggeredAlertRepository(self.store)
        self.bookmarks = BookmarkRepository(self.store, self.history)
        self.profiles = ProfileRepository(self.store)
