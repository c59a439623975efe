"""Wires the stores and services together from :class:`Settings`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from modrisk.config import Settings
from modrisk.moderation.service import ModerationService
from modrisk.notifications.notifier import AdminNotifier
from modrisk.notifications.webhooks import WebhookManager
from modrisk.risk.companies import CompanyDirectory
from modrisk.risk.monitor import RiskMonitor
from modrisk.risk.policy import DEFAULT_POLICY, load_policy
from modrisk.risk.snapshots import RiskSnapshotStore
from modrisk.stats import ModerationStatistics, summarize

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    settings: Settings
    moderation: ModerationService
    companies: CompanyDirectory
    risk: RiskMonitor
    notifier: AdminNotifier
    webhooks: WebhookManager

    def statistics(self) -> ModerationStatistics:
        """Flag counts from the ledger plus current risk level counts."""
        return summarize(self.moderation.ledger.list_flags(), self.risk.compute_risk_for_all())


def build_engine(
    settings: Optional[Settings] = None,
    webhook_transport: Optional[httpx.BaseTransport] = None,
) -> Engine:
    """Build every store and service below *settings.home*.

    *webhook_transport* replaces the network transport for webhook delivery.
    """
    settings = settings or Settings.from_env()
    policy = load_policy(settings.risk_policy_path) if settings.risk_policy_path else DEFAULT_POLICY
    logger.debug("Using data home %s (risk policy version %s)", settings.home, policy.version)

    webhooks = WebhookManager(
        settings.notifications_dir, timeout=settings.webhook_timeout, transport=webhook_transport
    )
    notifier = AdminNotifier(settings.notifications_dir, webhooks=webhooks)
    moderation = ModerationService.from_settings(settings, notifier=notifier)
    companies = CompanyDirectory(settings.risk_dir)
    risk = RiskMonitor(
        companies,
        moderation.ledger,
        base_dir=settings.risk_dir,
        policy=policy,
        notifier=notifier,
        snapshots=RiskSnapshotStore(settings.risk_dir),
    )
    return Engine(settings, moderation, companies, risk, notifier, webhooks)
