"""Batch risk computation and the high-risk notification sweep.

``RiskMonitor`` reads one snapshot of the flag ledger per batch and scores
every company against it, so a batch never blocks, or is blocked by,
concurrent reviews.  Assessments are recomputed, never cached.

The high-risk sweep remembers the level it last saw per company in
``risk_notifications.json``.  A company is reported (and admins notified)
only when it enters ``high`` from another level or for the first time;
staying high does not notify again, and dropping out resets it.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from modrisk.errors import NotFoundError, ValidationError
from modrisk.moderation.ledger import FlagLedger
from modrisk.notifications.notifier import AdminNotifier
from modrisk.risk.companies import CompanyDirectory
from modrisk.risk.models import CompanyRiskAssessment, HighRiskCheckResult, RiskLevel
from modrisk.risk.policy import DEFAULT_POLICY, RiskPolicy
from modrisk.risk.scorer import compute_risk
from modrisk.risk.signals import RiskSignalCollector
from modrisk.risk.snapshots import RiskSnapshotStore
from modrisk.utils.json_store import JsonCollection

logger = logging.getLogger(__name__)


def filter_by_level(
    assessments: Iterable[CompanyRiskAssessment], level: Optional[str | RiskLevel]
) -> list[CompanyRiskAssessment]:
    """Keep the assessments at *level*; a falsy *level* keeps all of them."""
    if not level:
        return list(assessments)
    try:
        wanted = RiskLevel(level)
    except ValueError:
        raise ValidationError(f"Unknown risk level '{level}'") from None
    return [a for a in assessments if a.risk_level is wanted]


class RiskMonitor:
    def __init__(
        self,
        companies: CompanyDirectory,
        ledger: FlagLedger,
        base_dir: Optional[str | Path] = None,
        policy: RiskPolicy = DEFAULT_POLICY,
        notifier: Optional[AdminNotifier] = None,
        snapshots: Optional[RiskSnapshotStore] = None,
    ) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "risk"
        self.companies = companies
        self.ledger = ledger
        self.policy = policy
        self.notifier = notifier
        self.snapshots = snapshots
        self._collector = RiskSignalCollector(policy)
        self._notified = JsonCollection(base / "risk_notifications.json")

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def assess(self, company_id: str, now: Optional[datetime] = None) -> CompanyRiskAssessment:
        """Score one company against the current ledger."""
        company = self.companies.get(company_id)
        now = now or datetime.now(timezone.utc)
        flags = self.ledger.flags_for_user(company.user_id) if company.user_id else []
        signals = self._collector.collect(company, flags, now)
        return compute_risk(company.id, signals, self.policy, now)

    def compute_risk_for_all(
        self,
        company_ids: Optional[Iterable[str]] = None,
        cancel: Optional[threading.Event] = None,
        now: Optional[datetime] = None,
    ) -> list[CompanyRiskAssessment]:
        """Score many companies (all of them by default).

        Setting *cancel* stops the batch before the next company; the
        assessments already computed are returned.
        """
        now = now or datetime.now(timezone.utc)
        flags = self.ledger.list_flags()
        if company_ids is None:
            companies = self.companies.list_companies()
        else:
            companies = [self.companies.get(cid) for cid in company_ids]

        results: list[CompanyRiskAssessment] = []
        for company in companies:
            if cancel is not None and cancel.is_set():
                logger.info("Risk batch cancelled after %d of %d companies", len(results), len(companies))
                break
            signals = self._collector.collect(company, flags, now)
            results.append(compute_risk(company.id, signals, self.policy, now))
        return results

    def list_assessments(
        self,
        level: Optional[str | RiskLevel] = None,
        sort_desc: bool = True,
    ) -> list[CompanyRiskAssessment]:
        """All current assessments, optionally one level, sorted by score."""
        assessments = filter_by_level(self.compute_risk_for_all(), level)
        assessments.sort(key=lambda a: (a.risk_score, a.company_id), reverse=sort_desc)
        return assessments

    # ------------------------------------------------------------------
    # High-risk sweep
    # ------------------------------------------------------------------

    def check_high_risk_companies(self) -> HighRiskCheckResult:
        """Score everyone and report companies that newly became high risk."""
        assessments = self.compute_risk_for_all()
        result = HighRiskCheckResult(assessed_count=len(assessments))

        with self._notified.transaction() as state:
            last_seen = {d["company_id"]: d for d in state}
            for assessment in assessments:
                previous = last_seen.get(assessment.company_id)
                is_high = assessment.risk_level is RiskLevel.high
                if is_high:
                    result.high_risk_count += 1
                    if previous is None or previous.get("risk_level") != RiskLevel.high.value:
                        result.newly_high.append(assessment)
                entry = {
                    "company_id": assessment.company_id,
                    "risk_level": assessment.risk_level.value,
                    "risk_score": assessment.risk_score,
                    "checked_at": assessment.computed_at,
                }
                if is_high and previous is not None and previous.get("risk_level") == RiskLevel.high.value:
                    entry["notified_at"] = previous.get("notified_at", "")
                elif is_high:
                    entry["notified_at"] = assessment.computed_at
                last_seen[assessment.company_id] = entry
            state[:] = list(last_seen.values())

        if self.notifier is not None:
            for assessment in result.newly_high:
                try:
                    name = self.companies.get(assessment.company_id).display_name
                except NotFoundError:
                    name = ""
                self.notifier.company_high_risk(assessment, name)
                result.notifications_sent += 1

        logger.info(
            "High-risk check: %d high, %d new, %d notifications",
            result.high_risk_count, len(result.newly_high), result.notifications_sent,
        )
        return result

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot_all(self) -> list[CompanyRiskAssessment]:
        """Compute every company's assessment and append it to the snapshot store."""
        if self.snapshots is None:
            raise RuntimeError("RiskMonitor was created without a snapshot store")
        assessments = self.compute_risk_for_all()
        for assessment in assessments:
            self.snapshots.append(assessment)
        return assessments
