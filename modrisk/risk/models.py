"""Data models for company risk assessment."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class VerificationStatus(str, Enum):
    verified = "verified"
    pending = "pending"
    rejected = "rejected"
    suspended = "suspended"


@dataclass
class Company:
    """External company/payment facts the risk scorer reads."""

    id: str
    legal_name: str
    user_id: str = ""  # account whose content flags count against the company
    trade_name: str = ""
    created_at: str = ""
    verification_status: VerificationStatus = VerificationStatus.pending
    website: str = ""
    contact_email: str = ""
    description: str = ""
    industry: str = ""
    logo_url: str = ""
    disputed_payments_count: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.verification_status, str):
            self.verification_status = VerificationStatus(self.verification_status)

    @property
    def display_name(self) -> str:
        return self.trade_name or self.legal_name


@dataclass
class RiskSignals:
    """Indicator inputs for one company, already reduced to numbers and flags."""

    account_age_days: Optional[int] = None
    verification_status: VerificationStatus = VerificationStatus.verified
    missing_profile_fields: list[str] = field(default_factory=list)
    website_domain: str = ""
    email_domain: str = ""
    flag_count_last_90_days: int = 0
    average_flag_severity: float = 0.0
    disputed_payments_count: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.verification_status, str):
            self.verification_status = VerificationStatus(self.verification_status)


@dataclass
class CompanyRiskAssessment:
    """Derived, recomputable risk view of a company."""

    company_id: str
    risk_score: int
    risk_level: RiskLevel
    risk_indicators: list[str] = field(default_factory=list)
    computed_at: str = ""
    policy_version: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.risk_level, str):
            self.risk_level = RiskLevel(self.risk_level)

    def to_dict(self) -> dict:
        return {
            "company_id": self.company_id,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value,
            "risk_indicators": list(self.risk_indicators),
            "computed_at": self.computed_at,
            "policy_version": self.policy_version,
        }


@dataclass
class HighRiskCheckResult:
    """Outcome of a high-risk sweep."""

    high_risk_count: int = 0
    newly_high: list[CompanyRiskAssessment] = field(default_factory=list)
    notifications_sent: int = 0
    assessed_count: int = 0
