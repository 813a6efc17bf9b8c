"""Credence — content credibility analysis service.

FastAPI application entry-point.
Serves the analysis engine plus the per-user history, alert, bookmark and
profile resources consumed by the frontend gateway.
"""

from __future__ import annotations

import logging
import secrets
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from engine.aggregator import CredibilityAggregator
from engine.dashboard import compute_stats
from engine.errors import InvalidInputError, PersistenceError, RecordNotFoundError
from engine.pipeline import run_pipeline
from engine.reputation import lookup
from engine.source_verifier import verify_source
from schemas.request import (
    AlertRuleCreate,
    AlertRuleUpdate,
    AnalyzeRequest,
    BookmarkCreate,
    ProfileUpdate,
    SourceVerifyRequest,
)
from schemas.response import (
    AlertRule,
    AnalysisRecord,
    AnalyzeResponse,
    Bookmark,
    DashboardStats,
    ErrorResponse,
    Profile,
    PublisherProfile,
    SourceVerificationResponse,
    TriggeredAlert,
)
from services.content_fetcher import extract_from_url
from services.repositories import Repositories
from services.toxicity import HuggingFaceToxicityClassifier

VERSION = "0.3.0"

# ── Logging ────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("credence")


# ── Auth dependencies ──────────────────────────────────────────────────

async def verify_internal_token(
    x_internal_token: str | None = Header(default=None),
) -> None:
    """Reject requests that don't carry the shared internal token.

    Skipped when ``INTERNAL_TOKEN`` is not configured (dev mode).
    """
    expected = settings.internal_token
    if not expected:
        return  # no token configured → open access (dev only)
    if not x_internal_token or not secrets.compare_digest(x_internal_token, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing internal token.")


async def current_user(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity, forwarded by the gateway after it authenticates the user."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header.")
    return x_user_id.strip()


async def optional_user(x_user_id: str | None = Header(default=None)) -> str | None:
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


def get_repos(request: Request) -> Repositories:
    return request.app.state.repos


def get_aggregator(request: Request) -> CredibilityAggregator:
    return request.app.state.aggregator


# ── Lifespan ───────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Credence starting — provider=%s model=%s auth=%s",
        settings.llm_provider,
        settings.openai_model,
        "enabled" if settings.internal_token else "disabled (dev)",
    )
    if settings.load_toxicity_model:
        classifier = HuggingFaceToxicityClassifier(settings.toxicity_model)
        try:
            classifier.load()
            app.state.aggregator = CredibilityAggregator(classifier)
        except Exception as exc:
            logger.warning("Toxicity model failed to load — continuing with heuristics only: %s", exc)
    yield
    logger.info("Credence shutting down.")


# ── App ────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Credence",
    description="Content credibility analysis — internal service behind the frontend gateway.",
    version=VERSION,
    lifespan=lifespan,
)
app.state.repos = Repositories()
app.state.aggregator = CredibilityAggregator()

# Parse allowed_origins (comma-separated string → list)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERRORS = {401: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


# ── Error mapping ──────────────────────────────────────────────────────

def _error(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error, detail=detail).model_dump())


@app.exception_handler(InvalidInputError)
async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:  # noqa: ARG001
    return _error(422, "invalid_input", str(exc))


@app.exception_handler(ValueError)
async def _invalid_value(request: Request, exc: ValueError) -> JSONResponse:  # noqa: ARG001
    return _error(422, "invalid_input", str(exc))


@app.exception_handler(RecordNotFoundError)
async def _not_found(request: Request, exc: RecordNotFoundError) -> JSONResponse:  # noqa: ARG001
    return _error(404, "not_found", str(exc))


@app.exception_handler(PersistenceError)
async def _storage_unavailable(request: Request, exc: PersistenceError) -> JSONResponse:  # noqa: ARG001
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return _error(503, "storage_unavailable", str(exc))


# ── Routes: service ────────────────────────────────────────────────────

@app.get("/health")
async def health(request: Request):
    aggregator: CredibilityAggregator = request.app.state.aggregator
    return {
        "status": "ok",
        "engine": "credence",
        "version": VERSION,
        "toxicity_model_loaded": aggregator.classifier is not None,
    }


# ── Routes: analysis ───────────────────────────────────────────────────

@app.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses=_ERRORS,
    summary="Analyse content credibility",
    description="Accepts raw text (or a URL to fetch) and returns a 0-1 credibility score, "
    "classification, guidance and any alerts the content triggered.",
    dependencies=[Depends(verify_internal_token)],
)
async def analyze(
    payload: AnalyzeRequest,
    user_id: str | None = Depends(optional_user),
    repos: Repositories = Depends(get_repos),
    aggregator: CredibilityAggregator = Depends(get_aggregator),
) -> AnalyzeResponse:
    content = payload.content
    if not (content and content.strip()):
        content = await extract_from_url(payload.url)

    try:
        return await run_pipeline(
            content,
            aggregator=aggregator,
            repos=repos,
            url=payload.url,
            title=payload.title,
            user_id=user_id,
        )
    except InvalidInputError:
        raise
    except Exception as exc:
        logger.exception("Pipeline failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get(
    "/sources/{domain}",
    response_model=PublisherProfile,
    dependencies=[Depends(verify_internal_token)],
)
async def source_profile(domain: str) -> PublisherProfile:
    return lookup(domain)


@app.post(
    "/sources/verify",
    response_model=SourceVerificationResponse,
    responses=_ERRORS,
    dependencies=[Depends(verify_internal_token)],
)
async def source_verify(payload: SourceVerifyRequest) -> SourceVerificationResponse:
    return await verify_source(payload.url, payload.content)


# ── Routes: history + dashboard ────────────────────────────────────────

@app.get("/history", response_model=list[AnalysisRecord], dependencies=[Depends(verify_internal_token)])
async def history(
    limit: int = Query(default=10, ge=1, le=100),
    q: str | None = Query(default=None, min_length=1),
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> list[AnalysisRecord]:
    if q:
        return repos.history.search(q, limit=min(limit, 20), user_id=user_id)
    return repos.history.recent(limit, user_id=user_id)


@app.get("/dashboard", response_model=DashboardStats, dependencies=[Depends(verify_internal_token)])
async def dashboard(
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> DashboardStats:
    return compute_stats(repos.history.recent(limit=None, user_id=user_id))


# ── Routes: alerts ─────────────────────────────────────────────────────

@app.get("/alerts", response_model=list[AlertRule], dependencies=[Depends(verify_internal_token)])
async def list_alerts(
    active_only: bool = False,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> list[AlertRule]:
    return repos.alerts.list_for_user(user_id, active_only=active_only)


@app.post("/alerts", response_model=AlertRule, status_code=201, dependencies=[Depends(verify_internal_token)])
async def create_alert(
    payload: AlertRuleCreate,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> AlertRule:
    return repos.alerts.create(user_id, payload.keywords, payload.alert_type, payload.is_active)


@app.patch("/alerts/{alert_id}", response_model=AlertRule, dependencies=[Depends(verify_internal_token)])
async def update_alert(
    alert_id: str,
    payload: AlertRuleUpdate,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> AlertRule:
    return repos.alerts.update(
        user_id,
        alert_id,
        keywords=payload.keywords,
        alert_type=payload.alert_type,
        is_active=payload.is_active,
    )


@app.delete("/alerts/{alert_id}", status_code=204, dependencies=[Depends(verify_internal_token)])
async def delete_alert(
    alert_id: str,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> Response:
    repos.alerts.delete(user_id, alert_id)
    return Response(status_code=204)


@app.get("/alerts/triggered", response_model=list[TriggeredAlert], dependencies=[Depends(verify_internal_token)])
async def triggered_alerts(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> list[TriggeredAlert]:
    return repos.triggered.list_for_user(user_id, unread_only=unread_only, limit=limit)


@app.post(
    "/alerts/triggered/{triggered_id}/read",
    response_model=TriggeredAlert,
    dependencies=[Depends(verify_internal_token)],
)
async def mark_triggered_read(
    triggered_id: str,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> TriggeredAlert:
    return repos.triggered.mark_read(user_id, triggered_id)


# ── Routes: bookmarks ──────────────────────────────────────────────────

@app.get("/bookmarks", response_model=list[Bookmark], dependencies=[Depends(verify_internal_token)])
async def list_bookmarks(
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> list[Bookmark]:
    return repos.bookmarks.list_for_user(user_id)


@app.post("/bookmarks", response_model=Bookmark, status_code=201, dependencies=[Depends(verify_internal_token)])
async def add_bookmark(
    payload: BookmarkCreate,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> Bookmark:
    return repos.bookmarks.add(user_id, payload.analysis_id, payload.tags, payload.notes)


@app.get("/bookmarks/{analysis_id}", dependencies=[Depends(verify_internal_token)])
async def is_bookmarked(
    analysis_id: str,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
):
    return {"analysis_id": analysis_id, "bookmarked": repos.bookmarks.is_bookmarked(user_id, analysis_id)}


@app.delete("/bookmarks/{analysis_id}", status_code=204, dependencies=[Depends(verify_internal_token)])
async def remove_bookmark(
    analysis_id: str,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> Response:
    if not repos.bookmarks.remove(user_id, analysis_id):
        raise HTTPException(status_code=404, detail="Bookmark not found.")
    return Response(status_code=204)


# ── Routes: profile ────────────────────────────────────────────────────

@app.get("/profile", response_model=Profile, dependencies=[Depends(verify_internal_token)])
async def get_profile(
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> Profile:
    return repos.profiles.get_or_create(user_id)


@app.put("/profile", response_model=Profile, dependencies=[Depends(verify_internal_token)])
async def update_profile(
    payload: ProfileUpdate,
    user_id: str = Depends(current_user),
    repos: Repositories = Depends(get_repos),
) -> Profile:
    return repos.profiles.update(user_id, payload.model_dump(exclude_none=True))


# ── Dev runner ─────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        reload=True,
    )
