"""Pydantic models for API request/response serialization.

These models mirror the modrisk dataclasses and provide JSON
serialization for the admin endpoints.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Keyword models
# ---------------------------------------------------------------------------


class KeywordRuleResponse(BaseModel):
    """Mirrors modrisk.moderation.models.KeywordRule."""

    id: str
    keyword: str
    category: str
    severity: int
    is_active: bool = True
    description: str = ""
    created_at: str = ""
    updated_at: str = ""


class CreateKeywordRequest(BaseModel):
    keyword: str
    category: str = "custom"
    # Range checks live in the registry so the API and CLI share one error.
    severity: int = 1
    description: str = ""


class UpdateKeywordRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    keyword: Optional[str] = None
    category: Optional[str] = None
    severity: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class KeywordStatsResponse(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    high_severity: int = 0


# ---------------------------------------------------------------------------
# Flag models
# ---------------------------------------------------------------------------


class SubmitContentRequest(BaseModel):
    """Content to scan.  ``overall_rating`` applies to reviews only."""

    content: str = ""
    content_type: Literal["message", "review"]
    content_id: str
    user_id: str
    overall_rating: Optional[int] = Field(default=None, ge=1, le=5)


class ContentFlagResponse(BaseModel):
    """Mirrors modrisk.moderation.models.ContentFlag."""

    id: str
    content_type: str
    content_id: str
    user_id: str
    flag_reason: str
    matched_keywords: list[str] = Field(default_factory=list)
    severity: int = 0
    status: str = "pending"
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    admin_notes: Optional[str] = None
    action_taken: Optional[str] = None
    created_at: str = ""


class SubmitContentResponse(BaseModel):
    flagged: bool
    flag: Optional[ContentFlagResponse] = None


class ReviewFlagRequest(BaseModel):
    status: str
    admin_notes: Optional[str] = None
    action_taken: Optional[str] = None


class ModerationStatisticsResponse(BaseModel):
    pending: int = 0
    reviewed: int = 0
    dismissed: int = 0
    action_taken: int = 0
    total: int = 0
    high_risk: int = 0
    medium_risk: int = 0
    low_risk: int = 0
    assessed_total: int = 0


# ---------------------------------------------------------------------------
# Risk models
# ---------------------------------------------------------------------------


class RiskAssessmentResponse(BaseModel):
    """Mirrors modrisk.risk.models.CompanyRiskAssessment."""

    company_id: str
    company_name: str = ""
    risk_score: int
    risk_level: str
    risk_indicators: list[str] = Field(default_factory=list)
    computed_at: str = ""
    policy_version: str = ""


class RiskSummary(BaseModel):
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class RiskAssessmentListResponse(BaseModel):
    assessments: list[RiskAssessmentResponse] = Field(default_factory=list)
    summary: RiskSummary = Field(default_factory=RiskSummary)


class HighRiskCheckResponse(BaseModel):
    high_risk_count: int = 0
    notifications_sent: int = 0
    assessed_count: int = 0
    newly_high: list[RiskAssessmentResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every error raised by the engine."""

    detail: str
    error: str
    status_code: int
    # Only set when a flag was already resolved.
    current_status: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None


ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Unknown id"},
    409: {"model": ErrorResponse, "description": "Flag already resolved or duplicate keyword"},
    500: {"model": ErrorResponse, "description": "Data store failure"},
}
