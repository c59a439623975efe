"""Read-side counts for the moderation dashboard.

Everything here is computed from the records passed in; there is no stored
counter that could drift from the ledger.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from modrisk.moderation.models import ContentFlag, FlagStatus, KeywordRule
from modrisk.risk.models import CompanyRiskAssessment, RiskLevel

HIGH_SEVERITY_MIN = 4


@dataclass
class ModerationStatistics:
    pending: int = 0
    reviewed: int = 0
    dismissed: int = 0
    action_taken: int = 0
    total: int = 0
    high_risk: int = 0
    medium_risk: int = 0
    low_risk: int = 0
    assessed_total: int = 0


@dataclass
class KeywordStatistics:
    total: int = 0
    active: int = 0
    inactive: int = 0
    high_severity: int = 0


def summarize(
    flags: Iterable[ContentFlag],
    assessments: Iterable[CompanyRiskAssessment] = (),
) -> ModerationStatistics:
    """Count flags per status and assessments per risk level."""
    by_status = Counter(f.status for f in flags)
    by_level = Counter(a.risk_level for a in assessments)
    return ModerationStatistics(
        pending=by_status[FlagStatus.pending],
        reviewed=by_status[FlagStatus.reviewed],
        dismissed=by_status[FlagStatus.dismissed],
        action_taken=by_status[FlagStatus.action_taken],
        total=sum(by_status.values()),
        high_risk=by_level[RiskLevel.high],
        medium_risk=by_level[RiskLevel.medium],
        low_risk=by_level[RiskLevel.low],
        assessed_total=sum(by_level.values()),
    )


def summarize_keywords(rules: Iterable[KeywordRule]) -> KeywordStatistics:
    rules = list(rules)
    active = sum(1 for r in rules if r.is_active)
    return KeywordStatistics(
        total=len(rules),
        active=active,
        inactive=len(rules) - active,
        high_severity=sum(1 for r in rules if r.severity >= HIGH_SEVERITY_MIN),
    )
