"""Moderation router -- keyword admin, content submission and flag review."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from modrisk.engine import Engine
from modrisk.moderation.models import ContentFlag, ContentType, KeywordRule, ReviewContent
from modrisk.stats import summarize_keywords
from web.backend.app.dependencies import get_engine
from web.backend.app.middleware.auth import get_admin_id
from web.backend.app.models.api import (
    ERROR_RESPONSES,
    ContentFlagResponse,
    CreateKeywordRequest,
    KeywordRuleResponse,
    KeywordStatsResponse,
    ModerationStatisticsResponse,
    ReviewFlagRequest,
    SubmitContentRequest,
    SubmitContentResponse,
    UpdateKeywordRequest,
)

router = APIRouter(prefix="/api/admin/moderation", tags=["moderation"], responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _rule_response(rule: KeywordRule) -> KeywordRuleResponse:
    return KeywordRuleResponse(**rule.to_dict())


def _flag_response(flag: ContentFlag) -> ContentFlagResponse:
    return ContentFlagResponse(**flag.to_dict())


# ---------------------------------------------------------------------------
# Keyword endpoints
# ---------------------------------------------------------------------------


@router.get("/keywords", response_model=list[KeywordRuleResponse], summary="List keyword rules")
def list_keywords(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    rules = engine.moderation.registry.list_rules(search=search, category=category, active=active)
    return [_rule_response(r) for r in rules]


@router.get("/keywords/stats", response_model=KeywordStatsResponse, summary="Keyword counts")
def keyword_stats(engine: Engine = Depends(get_engine), admin_id: str = Depends(get_admin_id)):
    s = summarize_keywords(engine.moderation.registry.list_rules())
    return KeywordStatsResponse(
        total=s.total, active=s.active, inactive=s.inactive, high_severity=s.high_severity
    )


@router.post(
    "/keywords",
    response_model=KeywordRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a banned keyword",
)
def create_keyword(
    body: CreateKeywordRequest,
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    rule = engine.moderation.add_keyword(
        admin_id, body.keyword, body.category, body.severity, body.description
    )
    return _rule_response(rule)


@router.put("/keywords/{rule_id}", response_model=KeywordRuleResponse, summary="Edit a keyword rule")
def update_keyword(
    rule_id: str,
    body: UpdateKeywordRequest,
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    patch = body.model_dump(exclude_none=True)
    rule = engine.moderation.update_keyword(admin_id, rule_id, **patch)
    return _rule_response(rule)


@router.patch(
    "/keywords/{rule_id}/toggle",
    response_model=KeywordRuleResponse,
    summary="Flip a rule between active and inactive",
)
def toggle_keyword(
    rule_id: str,
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    return _rule_response(engine.moderation.toggle_keyword(admin_id, rule_id))


@router.delete("/keywords/{rule_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a keyword rule")
def delete_keyword(
    rule_id: str,
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    engine.moderation.delete_keyword(admin_id, rule_id)


# ---------------------------------------------------------------------------
# Content submission
# ---------------------------------------------------------------------------


@router.post("/submit", response_model=SubmitContentResponse, summary="Scan content and flag on a match")
def submit_content(body: SubmitContentRequest, engine: Engine = Depends(get_engine)):
    """Called by the messaging and review features when content is created.

    Reviews that carry ``overall_rating`` also go through the low-rating check.
    """
    if body.content_type == ContentType.review.value and body.overall_rating is not None:
        flag = engine.moderation.moderate_review(
            ReviewContent(body.content_id, body.user_id, body.overall_rating, body.content)
        )
    else:
        flag = engine.moderation.submit_for_moderation(
            body.content, body.content_type, body.content_id, body.user_id
        )
    if flag is None:
        return SubmitContentResponse(flagged=False)
    return SubmitContentResponse(flagged=True, flag=_flag_response(flag))


# ---------------------------------------------------------------------------
# Flag endpoints
# ---------------------------------------------------------------------------


@router.get("/flags", response_model=list[ContentFlagResponse], summary="List flags, newest first")
def list_flags(
    flag_status: Optional[str] = Query(None, alias="status"),
    content_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    flags = engine.moderation.ledger.list_flags(status=flag_status, content_type=content_type, search=search)
    return [_flag_response(f) for f in flags]


@router.get("/flags/{flag_id}", response_model=ContentFlagResponse, summary="Get one flag")
def get_flag(flag_id: str, engine: Engine = Depends(get_engine), admin_id: str = Depends(get_admin_id)):
    return _flag_response(engine.moderation.ledger.get_flag(flag_id))


@router.patch("/flags/{flag_id}/review", response_model=ContentFlagResponse, summary="Resolve a pending flag")
def review_flag(
    flag_id: str,
    body: ReviewFlagRequest,
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    """A second review of the same flag answers 409 with the earlier reviewer."""
    flag = engine.moderation.review(flag_id, body.status, admin_id, body.admin_notes, body.action_taken)
    return _flag_response(flag)


@router.post("/flags/{flag_id}/dismiss", response_model=ContentFlagResponse, summary="Quick-dismiss a flag")
def dismiss_flag(flag_id: str, engine: Engine = Depends(get_engine), admin_id: str = Depends(get_admin_id)):
    return _flag_response(engine.moderation.quick_dismiss(flag_id, admin_id))


@router.get("/statistics", response_model=ModerationStatisticsResponse, summary="Dashboard counts")
def statistics(engine: Engine = Depends(get_engine), admin_id: str = Depends(get_admin_id)):
    s = engine.statistics()
    return ModerationStatisticsResponse(**vars(s))
