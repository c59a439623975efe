"""Scorer -- computes a company's 0-100 risk score from weighted indicators.

Indicators are evaluated in a fixed order and each one that fires adds its
points and one human-readable reason.  The reasons therefore come out in the
same order for the same inputs, whichever indicators fired.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from modrisk.risk.models import CompanyRiskAssessment, RiskLevel, RiskSignals, VerificationStatus
from modrisk.risk.policy import (
    DEFAULT_POLICY,
    HIGH_RISK_THRESHOLD,
    MAX_RISK_SCORE,
    MEDIUM_RISK_THRESHOLD,
    MIN_RISK_SCORE,
    RiskPolicy,
)

# (points, reason) or None when the indicator does not fire.
IndicatorResult = Optional[tuple[int, str]]
Indicator = Callable[[RiskSignals, RiskPolicy], IndicatorResult]


def level_for(
    score: int,
    high_threshold: int = HIGH_RISK_THRESHOLD,
    medium_threshold: int = MEDIUM_RISK_THRESHOLD,
) -> RiskLevel:
    """Map a risk score to its level.  The only place levels are derived."""
    if score >= high_threshold:
        return RiskLevel.high
    if score >= medium_threshold:
        return RiskLevel.medium
    return RiskLevel.low


def clamp_score(score: int) -> int:
    return max(MIN_RISK_SCORE, min(MAX_RISK_SCORE, int(score)))


def _score_account_age(signals: RiskSignals, policy: RiskPolicy) -> IndicatorResult:
    age = signals.account_age_days
    if age is None:
        return None
    if age < policy.new_account_days:
        return policy.new_account_points, f"New company account ({age} days old)"
    if age < policy.recent_account_days:
        return policy.recent_account_points, f"Recently created account ({age} days old)"
    return None


def _score_verification(signals: RiskSignals, policy: RiskPolicy) -> IndicatorResult:
    status = signals.verification_status
    if status is VerificationStatus.pending:
        return policy.pending_verification_points, "Company verification pending"
    if status in (VerificationStatus.rejected, VerificationStatus.suspended):
        return policy.failed_verification_points, f"Company verification {status.value}"
    return None


def _score_profile(signals: RiskSignals, policy: RiskPolicy) -> IndicatorResult:
    missing = signals.missing_profile_fields
    if not missing:
        return None
    points = min(policy.missing_profile_points_cap, len(missing) * policy.missing_profile_field_points)
    return points, f"Incomplete profile (missing: {', '.join(missing)})"


def _score_mismatched_data(signals: RiskSignals, policy: RiskPolicy) -> IndicatorResult:
    web, mail = signals.website_domain, signals.email_domain
    if not web or not mail:
        return None
    if mail == web or mail.endswith("." + web) or web.endswith("." + mail):
        return None
    return policy.mismatched_domain_points, f"Contact email domain {mail} does not match website {web}"


def _score_flag_history(signals: RiskSignals, policy: RiskPolicy) -> IndicatorResult:
    count = signals.flag_count_last_90_days
    if count <= 0:
        return None
    avg = signals.average_flag_severity
    points = min(
        policy.flag_history_points_cap,
        round(count * avg * policy.flag_severity_multiplier),
    )
    return points, (
        f"{count} content flag(s) in last {policy.flag_window_days} days "
        f"(avg severity {avg:.1f})"
    )


def _score_disputed_payments(signals: RiskSignals, policy: RiskPolicy) -> IndicatorResult:
    count = signals.disputed_payments_count
    if count <= 0:
        return None
    points = min(policy.disputed_payments_points_cap, count * policy.disputed_payment_points)
    return points, f"{count} disputed payment(s)"


# Evaluation order; also the order of ``risk_indicators``.
INDICATORS: tuple[Indicator, ...] = (
    _score_account_age,
    _score_verification,
    _score_profile,
    _score_mismatched_data,
    _score_flag_history,
    _score_disputed_payments,
)


def compute_risk(
    company_id: str,
    signals: RiskSignals,
    policy: RiskPolicy = DEFAULT_POLICY,
    now: Optional[datetime] = None,
) -> CompanyRiskAssessment:
    """Score *signals* under *policy*.

    Pure apart from the ``computed_at`` timestamp, which callers can pin
    with *now*.
    """
    total = 0
    reasons: list[str] = []
    for indicator in INDICATORS:
        fired = indicator(signals, policy)
        if fired is None:
            continue
        points, reason = fired
        total += points
        reasons.append(reason)

    score = clamp_score(total)
    return CompanyRiskAssessment(
        company_id=company_id,
        risk_score=score,
        risk_level=level_for(score, policy.high_risk_threshold, policy.medium_risk_threshold),
        risk_indicators=reasons,
        computed_at=(now or datetime.now(timezone.utc)).isoformat(),
        policy_version=policy.version,
    )
