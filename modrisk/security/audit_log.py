"""Audit trail for moderation actions.

Keyword rule changes, flag creation and flag reviews are appended as
newline-delimited JSON to one file per UTC day under
``~/.modrisk/audit_logs/``.  Entries are never rewritten.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from modrisk.utils.json_store import lock_for

logger = logging.getLogger(__name__)

# Action names written by the moderation service.
KEYWORD_CREATED = "keyword.created"
KEYWORD_UPDATED = "keyword.updated"
KEYWORD_TOGGLED = "keyword.toggled"
KEYWORD_DELETED = "keyword.deleted"
FLAG_CREATED = "flag.created"
FLAG_REVIEWED = "flag.reviewed"
FLAG_REVIEW_REJECTED = "flag.review_rejected"

SYSTEM_ACTOR = "system"


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True


class AuditLogger:
    """Append-only JSONL audit log with simple filtering and export."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping unreadable audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor=actor or SYSTEM_ACTOR,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            success=success,
        )
        log_file = self._log_file_for_date(now)
        with lock_for(log_file):
            with log_file.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(entry), default=str) + "\n")
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()
        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if resource_type:
            entries = [e for e in entries if e.resource_type == resource_type]
        if resource_id:
            entries = [e for e in entries if e.resource_id == resource_id]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export events as ``json`` or ``csv``; *filters* as for :meth:`get_events`."""
        entries = self.get_events(**filters)
        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(["id", "timestamp", "actor", "action", "resource_type", "resource_id", "success"])
            for e in entries:
                writer.writerow([e.id, e.timestamp, e.actor, e.action, e.resource_type, e.resource_id, e.success])
            return buf.getvalue()
        return json.dumps([asdict(e) for e in entries], indent=2)
