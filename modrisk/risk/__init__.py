"""Company risk scoring: weighted indicators, levels and the high-risk sweep."""

from modrisk.risk.models import CompanyRiskAssessment, RiskLevel, RiskSignals
from modrisk.risk.policy import DEFAULT_POLICY, RiskPolicy, load_policy
from modrisk.risk.scorer import compute_risk, level_for

__all__ = [
    "CompanyRiskAssessment",
    "DEFAULT_POLICY",
    "RiskLevel",
    "RiskPolicy",
    "RiskSignals",
    "compute_risk",
    "level_for",
    "load_policy",
]
