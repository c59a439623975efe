"""Reduce company records and flag history to :class:`RiskSignals`."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from urllib.parse import urlparse

from modrisk.moderation.models import ContentFlag, FlagStatus
from modrisk.risk.models import Company, RiskSignals
from modrisk.risk.policy import DEFAULT_POLICY, REQUIRED_PROFILE_FIELDS, RiskPolicy


def _parse_ts(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def website_domain(url: str) -> str:
    if not url:
        return ""
    netloc = urlparse(url if "//" in url else f"//{url}").netloc.lower()
    netloc = netloc.split("@")[-1].split(":")[0]
    return netloc[4:] if netloc.startswith("www.") else netloc


def email_domain(email: str) -> str:
    _, at, domain = email.strip().lower().rpartition("@")
    return domain if at else ""


class RiskSignalCollector:
    """Builds indicator inputs from a company record and a flag snapshot.

    Dismissed flags were judged false positives and do not count against
    the company.
    """

    def __init__(self, policy: RiskPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def collect(
        self,
        company: Company,
        flags: Iterable[ContentFlag],
        now: Optional[datetime] = None,
    ) -> RiskSignals:
        now = now or datetime.now(timezone.utc)
        created = _parse_ts(company.created_at)
        age_days = (now - created).days if created else None

        window_start = now - timedelta(days=self.policy.flag_window_days)
        recent: list[ContentFlag] = []
        if company.user_id:
            for flag in flags:
                if flag.user_id != company.user_id or flag.status is FlagStatus.dismissed:
                    continue
                created_at = _parse_ts(flag.created_at)
                if created_at is not None and created_at >= window_start:
                    recent.append(flag)
        avg = sum(f.severity for f in recent) / len(recent) if recent else 0.0

        return RiskSignals(
            account_age_days=age_days,
            verification_status=company.verification_status,
            missing_profile_fields=[
                name for name in REQUIRED_PROFILE_FIELDS if not str(getattr(company, name, "")).strip()
            ],
            website_domain=website_domain(company.website),
            email_domain=email_domain(company.contact_email),
            flag_count_last_90_days=len(recent),
            average_flag_severity=avg,
            disputed_payments_count=company.disputed_payments_count,
        )
