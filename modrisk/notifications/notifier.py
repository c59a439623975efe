"""Admin notifications for flagged content and high-risk companies.

Each notification is appended to ``notifications.jsonl`` (the outbox the
admin console reads) and forwarded to any webhooks subscribed to its event.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from modrisk.notifications.webhooks import COMPANY_HIGH_RISK, CONTENT_FLAGGED, WebhookManager
from modrisk.utils.json_store import lock_for

logger = logging.getLogger(__name__)


@dataclass
class AdminNotification:
    id: str
    event: str
    title: str
    message: str
    link_url: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""


class AdminNotifier:
    """Writes admin notifications to the outbox and fans them out to webhooks."""

    def __init__(
        self,
        base_dir: Optional[str | Path] = None,
        webhooks: Optional[WebhookManager] = None,
    ) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "notifications"
        base.mkdir(parents=True, exist_ok=True)
        self._outbox = base / "notifications.jsonl"
        self._webhooks = webhooks

    def _emit(self, notification: AdminNotification) -> AdminNotification:
        with lock_for(self._outbox):
            with self._outbox.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(notification), default=str) + "\n")
        if self._webhooks is not None:
            self._webhooks.fire(notification.event, asdict(notification))
        return notification

    def _new(self, event: str, title: str, message: str, link_url: str, metadata: dict) -> AdminNotification:
        return AdminNotification(
            id=uuid.uuid4().hex[:16],
            event=event,
            title=title,
            message=message,
            link_url=link_url,
            metadata=metadata,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    def content_flagged(self, flag) -> AdminNotification:
        """Notify admins that *flag* (a ContentFlag) needs review."""
        ctype = flag.content_type.value
        return self._emit(self._new(
            CONTENT_FLAGGED,
            "Content Flagged for Review",
            f"A {ctype} has been flagged for moderation: {flag.flag_reason}",
            f"/admin/moderation/{ctype}/{flag.content_id}",
            {
                "flag_id": flag.id,
                "content_type": ctype,
                "content_id": flag.content_id,
                "flagged_user_id": flag.user_id,
                "matched_keywords": list(flag.matched_keywords),
            },
        ))

    def company_high_risk(self, assessment, company_name: str = "") -> AdminNotification:
        """Notify admins that a company crossed into the high risk level."""
        label = company_name or assessment.company_id
        return self._emit(self._new(
            COMPANY_HIGH_RISK,
            "High Risk Company Detected",
            f"{label} has a risk score of {assessment.risk_score}: "
            + "; ".join(assessment.risk_indicators),
            f"/admin/companies/{assessment.company_id}",
            {
                "company_id": assessment.company_id,
                "risk_score": assessment.risk_score,
                "risk_level": assessment.risk_level.value,
            },
        ))

    def list_notifications(self, event: Optional[str] = None) -> list[AdminNotification]:
        """Outbox contents, newest first."""
        if not self._outbox.exists():
            return []
        items: list[AdminNotification] = []
        for line in self._outbox.read_text(encoding="utf-8").splitlines():
            if line.strip():
                items.append(AdminNotification(**json.loads(line)))
        if event:
            items = [n for n in items if n.event == event]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items
