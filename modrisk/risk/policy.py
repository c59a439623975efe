"""Risk scoring policy: level thresholds and indicator weights.

The module constants are the default policy.  A deployment can override any
weight with a YAML file::

    version: "2024-06"
    new_account_points: 25
    disputed_payment_points: 20

Keys are the lower-cased constant names; unknown keys are rejected so a typo
never silently falls back to a default.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from modrisk.errors import ValidationError

# Level thresholds (inclusive lower bounds).
HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40

MIN_RISK_SCORE = 0
MAX_RISK_SCORE = 100

DEFAULT_POLICY_VERSION = "1"

# 1. Account age
NEW_ACCOUNT_DAYS = 30
NEW_ACCOUNT_POINTS = 20
RECENT_ACCOUNT_DAYS = 90
RECENT_ACCOUNT_POINTS = 10

# 2. Verification state
PENDING_VERIFICATION_POINTS = 15
FAILED_VERIFICATION_POINTS = 30

# 3. Profile completeness
MISSING_PROFILE_FIELD_POINTS = 5
MISSING_PROFILE_POINTS_CAP = 15

# 4. Mismatched data
MISMATCHED_DOMAIN_POINTS = 10

# 5. Content flag history
FLAG_WINDOW_DAYS = 90
FLAG_SEVERITY_MULTIPLIER = 2
FLAG_HISTORY_POINTS_CAP = 30

# 6. Payment disputes
DISPUTED_PAYMENT_POINTS = 15
DISPUTED_PAYMENTS_POINTS_CAP = 30

REQUIRED_PROFILE_FIELDS = ("website", "contact_email", "description", "industry", "logo_url")


@dataclass(frozen=True)
class RiskPolicy:
    """A versioned set of indicator weights."""

    version: str = DEFAULT_POLICY_VERSION
    high_risk_threshold: int = HIGH_RISK_THRESHOLD
    medium_risk_threshold: int = MEDIUM_RISK_THRESHOLD
    new_account_days: int = NEW_ACCOUNT_DAYS
    new_account_points: int = NEW_ACCOUNT_POINTS
    recent_account_days: int = RECENT_ACCOUNT_DAYS
    recent_account_points: int = RECENT_ACCOUNT_POINTS
    pending_verification_points: int = PENDING_VERIFICATION_POINTS
    failed_verification_points: int = FAILED_VERIFICATION_POINTS
    missing_profile_field_points: int = MISSING_PROFILE_FIELD_POINTS
    missing_profile_points_cap: int = MISSING_PROFILE_POINTS_CAP
    mismatched_domain_points: int = MISMATCHED_DOMAIN_POINTS
    flag_window_days: int = FLAG_WINDOW_DAYS
    flag_severity_multiplier: int = FLAG_SEVERITY_MULTIPLIER
    flag_history_points_cap: int = FLAG_HISTORY_POINTS_CAP
    disputed_payment_points: int = DISPUTED_PAYMENT_POINTS
    disputed_payments_points_cap: int = DISPUTED_PAYMENTS_POINTS_CAP

    def __post_init__(self) -> None:
        if not (MIN_RISK_SCORE < self.medium_risk_threshold < self.high_risk_threshold <= MAX_RISK_SCORE):
            raise ValidationError(
                "Risk thresholds must satisfy 0 < medium < high <= 100 "
                f"(got medium={self.medium_risk_threshold}, high={self.high_risk_threshold})"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "RiskPolicy":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown risk policy key(s): {', '.join(unknown)}")
        overrides: dict[str, Any] = {}
        for key, value in data.items():
            if key == "version":
                overrides[key] = str(value)
            elif isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"Risk policy value '{key}' must be a non-negative integer")
            else:
                overrides[key] = value
        return replace(DEFAULT_POLICY, **overrides)


DEFAULT_POLICY = RiskPolicy()


def load_policy(path: str | Path) -> RiskPolicy:
    """Load a risk policy from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValidationError(f"Risk policy file {path} must contain a mapping")
    return RiskPolicy.from_mapping(data)
