from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Header, HTTPException, Request, Response

from resume_revision.ats.engine import score_delta
from resume_revision.core.errors import OracleError, QuotaExceededError
from resume_revision.core.quota_guard import QuotaDecision, QuotaGuard
from resume_revision.core.rate_limit import client_address, rate_limit
from resume_revision.core.security import check_api_key, require_user_id
from resume_revision.normalize.utils import resume_to_text
from resume_revision.schemas.api import (
    HistoryListResponse,
    HistoryNavigationResponse,
    ProposeRequest,
    ProposeResponse,
    RevisionRequest,
    ScoreRequest,
    ScoreResponse,
)
from resume_revision.schemas.revision import RevisionResult
from resume_revision.services.revision_service import RevisionService

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> RevisionService:
    service = getattr(request.app.state, "revision_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail={"code": "retry_later", "message": "Service is starting."})
    return service


def _rate_headers(decision: QuotaDecision) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_time),
    }


def _enforce_quota(request: Request, response: Response, identifier: str | None, policy_name: str) -> None:
    guard: QuotaGuard | None = getattr(request.app.state, "quota_guard", None)
    if guard is None:
        return
    policy = guard.policy(policy_name)
    key = identifier or client_address(request)
    try:
        decision = guard.enforce(key, policy, endpoint=request.url.path)
    except QuotaExceededError as exc:
        headers = {
            "Retry-After": str(exc.retry_after_s),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(exc.reset_time),
        }
        raise HTTPException(
            status_code=exc.status_code,
            detail={"code": exc.code, "message": "Too many requests. Please retry later."},
            headers=headers,
        ) from exc
    response.headers.update(_rate_headers(decision))


def _oracle_http_error(exc: OracleError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"code": exc.code, "message": str(exc)})


@router.post("/revisions", response_model=RevisionResult)
@rate_limit()
async def create_revision(
    request: Request,
    response: Response,
    payload: RevisionRequest,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key, payload.document.language.lang)
    user_id = require_user_id(x_user_id)
    _enforce_quota(request, response, user_id, "default")
    return await _service(request).revise(
        user_id,
        payload.document,
        payload.changes,
        job_text=payload.job_description_text,
        job_title=payload.job_title,
        baseline_score=payload.baseline_score,
        theme=payload.theme,
    )


@router.post("/ats/score", response_model=ScoreResponse)
@rate_limit()
async def score_resume(
    request: Request,
    response: Response,
    payload: ScoreRequest,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key, None)
    _enforce_quota(request, response, (x_user_id or "").strip() or None, "scoring")
    service = _service(request)

    after_text = resume_to_text(payload.resume_after) if payload.resume_after is not None else payload.resume_text_after or ""
    if payload.resume_before is not None:
        before_text = resume_to_text(payload.resume_before)
    else:
        before_text = payload.resume_text_before or after_text

    ats = await service.engine.score_with_timeout(
        before_text,
        after_text,
        payload.job_description_text,
        timeout_s=service.scoring_timeout_s,
        resume_before=payload.resume_before,
        resume_after=payload.resume_after,
        job_title=payload.job_title,
    )
    return ScoreResponse(ats=ats, after_scores=score_delta(ats, payload.baseline_score))


@router.post("/changes/propose", response_model=ProposeResponse)
@rate_limit()
async def propose_changes(
    request: Request,
    response: Response,
    payload: ProposeRequest,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key, payload.document.language.lang)
    user_id = require_user_id(x_user_id)
    _enforce_quota(request, response, user_id, "ai")
    try:
        changes = await _service(request).propose(payload.document, payload.job_description_text)
    except OracleError as exc:
        logger.info("change_oracle_unavailable user_id=%s code=%s", user_id, exc.code)
        raise _oracle_http_error(exc) from exc
    return ProposeResponse(changes=changes)


@router.post("/history/undo", response_model=HistoryNavigationResponse)
@rate_limit()
async def undo(
    request: Request,
    response: Response,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key, None)
    user_id = require_user_id(x_user_id)
    _enforce_quota(request, response, user_id, "history")
    navigation = await _service(request).undo(user_id)
    return HistoryNavigationResponse.from_navigation(navigation)


@router.post("/history/redo", response_model=HistoryNavigationResponse)
@rate_limit()
async def redo(
    request: Request,
    response: Response,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key, None)
    user_id = require_user_id(x_user_id)
    _enforce_quota(request, response, user_id, "history")
    navigation = await _service(request).redo(user_id)
    return HistoryNavigationResponse.from_navigation(navigation)


@router.get("/history", response_model=HistoryListResponse)
@rate_limit()
async def list_history(
    request: Request,
    response: Response,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key, None)
    user_id = require_user_id(x_user_id)
    _enforce_quota(request, response, user_id, "history")
    view = await asyncio.to_thread(_service(request).timeline.view, user_id)
    return HistoryListResponse(timeline=view.timeline, current=view.current, entries=view.entries)
