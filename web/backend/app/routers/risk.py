"""Risk router -- company risk assessments and the high-risk sweep."""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from modrisk.engine import Engine
from modrisk.risk.models import CompanyRiskAssessment, RiskLevel
from modrisk.risk.monitor import filter_by_level
from web.backend.app.dependencies import get_engine
from web.backend.app.middleware.auth import get_admin_id
from web.backend.app.models.api import (
    ERROR_RESPONSES,
    HighRiskCheckResponse,
    RiskAssessmentListResponse,
    RiskAssessmentResponse,
    RiskSummary,
)

router = APIRouter(prefix="/api/admin", tags=["risk"], responses=ERROR_RESPONSES)


def _assessment_response(a: CompanyRiskAssessment, names: dict[str, str]) -> RiskAssessmentResponse:
    return RiskAssessmentResponse(company_name=names.get(a.company_id, ""), **a.to_dict())


def _company_names(engine: Engine) -> dict[str, str]:
    return {c.id: c.display_name for c in engine.companies.list_companies()}


@router.get(
    "/companies/risk-assessments",
    response_model=RiskAssessmentListResponse,
    summary="Current risk assessment of every company",
)
def risk_assessments(
    level: Optional[str] = Query(None, description="low, medium or high"),
    sort: Literal["desc", "asc"] = Query("desc", description="Order by score"),
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    """Scores are recomputed on every call; the summary counts ignore *level*."""
    everything = engine.risk.list_assessments(sort_desc=sort == "desc")
    shown = filter_by_level(everything, level)
    names = _company_names(engine)
    summary = RiskSummary(
        total=len(everything),
        high=sum(1 for a in everything if a.risk_level is RiskLevel.high),
        medium=sum(1 for a in everything if a.risk_level is RiskLevel.medium),
        low=sum(1 for a in everything if a.risk_level is RiskLevel.low),
    )
    return RiskAssessmentListResponse(
        assessments=[_assessment_response(a, names) for a in shown],
        summary=summary,
    )


@router.post(
    "/check-high-risk-companies",
    response_model=HighRiskCheckResponse,
    summary="Notify admins about newly high-risk companies",
)
def check_high_risk_companies(
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(get_admin_id),
):
    result = engine.risk.check_high_risk_companies()
    names = _company_names(engine)
    return HighRiskCheckResponse(
        high_risk_count=result.high_risk_count,
        notifications_sent=result.notifications_sent,
        assessed_count=result.assessed_count,
        newly_high=[_assessment_response(a, names) for a in result.newly_high],
    )
