"""File-based JSON storage for content flags and their review workflow.

Storage path: ``<base_dir>/flags.json``.  A flag starts ``pending`` and makes
exactly one transition, to ``reviewed``, ``dismissed`` or ``action_taken``.
The pending check and the write happen under the file lock, so of two
concurrent reviews of the same flag only the first succeeds.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from modrisk.errors import InvalidTransitionError, NotFoundError, ValidationError
from modrisk.moderation.models import (
    ContentFlag,
    ContentType,
    FlagCandidate,
    FlagStatus,
    TERMINAL_STATUSES,
)
from modrisk.utils.json_store import JsonCollection

logger = logging.getLogger(__name__)

QUICK_DISMISS_NOTE = "Quick dismissed by admin"


def _coerce_decision(decision: str | FlagStatus) -> FlagStatus:
    try:
        status = FlagStatus(decision)
    except ValueError:
        status = None
    if status not in TERMINAL_STATUSES:
        allowed = ", ".join(s.value for s in TERMINAL_STATUSES)
        raise ValidationError(f"Invalid review decision '{decision}' (expected one of: {allowed})")
    return status


class FlagLedger:
    """Persists content flags and enforces the review state machine."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "moderation"
        self._flags = JsonCollection(base / "flags.json")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_flag(self, candidate: FlagCandidate) -> ContentFlag:
        """Persist *candidate* as a new ``pending`` flag."""
        flag = ContentFlag(
            id=str(uuid.uuid4()),
            content_type=candidate.content_type,
            content_id=candidate.content_id,
            user_id=candidate.user_id,
            flag_reason=candidate.flag_reason,
            matched_keywords=list(candidate.matched_keywords),
            severity=candidate.severity,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._flags.transaction() as records:
            records.append(flag.to_dict())
        logger.info(
            "Flagged %s %s (user %s): %s",
            flag.content_type.value, flag.content_id, flag.user_id, flag.flag_reason,
        )
        return flag

    def review(
        self,
        flag_id: str,
        decision: str | FlagStatus,
        admin_id: str,
        notes: Optional[str] = None,
        action_description: Optional[str] = None,
    ) -> ContentFlag:
        """Move a pending flag to *decision*.

        Raises NotFoundError for an unknown id, ValidationError for a
        non-terminal decision or missing admin, and InvalidTransitionError
        when the flag was already resolved.
        """
        status = _coerce_decision(decision)
        if not admin_id or not str(admin_id).strip():
            raise ValidationError("An admin id is required to review a flag")

        with self._flags.transaction() as records:
            record = self._find(records, flag_id)
            current = FlagStatus(record.get("status", "pending"))
            if current is not FlagStatus.pending:
                logger.warning(
                    "Rejected review of flag %s by %s: already %s",
                    flag_id, admin_id, current.value,
                )
                raise InvalidTransitionError(
                    flag_id,
                    current.value,
                    reviewed_by=record.get("reviewed_by"),
                    reviewed_at=record.get("reviewed_at"),
                )
            record["status"] = status.value
            record["reviewed_by"] = admin_id
            record["reviewed_at"] = datetime.now(timezone.utc).isoformat()
            if notes is not None:
                record["admin_notes"] = notes
            record["action_taken"] = (
                action_description if status is FlagStatus.action_taken else None
            )
            flag = ContentFlag.from_dict(record)

        logger.info("Flag %s %s by %s", flag_id, status.value, admin_id)
        return flag

    def quick_dismiss(self, flag_id: str, admin_id: str) -> ContentFlag:
        return self.review(flag_id, FlagStatus.dismissed, admin_id, notes=QUICK_DISMISS_NOTE)

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @staticmethod
    def _find(records: list[dict], flag_id: str) -> dict:
        for r in records:
            if r["id"] == flag_id:
                return r
        raise NotFoundError("Flag", flag_id)

    def get_flag(self, flag_id: str) -> ContentFlag:
        return ContentFlag.from_dict(self._find(self._flags.load(), flag_id))

    def list_flags(
        self,
        status: Optional[str | FlagStatus] = None,
        content_type: Optional[str | ContentType] = None,
        search: Optional[str] = None,
    ) -> list[ContentFlag]:
        """Return flags newest first, optionally filtered."""
        flags = [ContentFlag.from_dict(d) for d in self._flags.load()]
        if status:
            try:
                wanted_status = FlagStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown flag status '{status}'") from None
            flags = [f for f in flags if f.status is wanted_status]
        if content_type:
            try:
                wanted_type = ContentType(content_type)
            except ValueError:
                raise ValidationError(f"Unknown content type '{content_type}'") from None
            flags = [f for f in flags if f.content_type is wanted_type]
        if search:
            flags = [f for f in flags if f.matches_search(search)]
        flags.sort(key=lambda f: f.created_at, reverse=True)
        return flags

    def pending_flags(self) -> list[ContentFlag]:
        return self.list_flags(status=FlagStatus.pending)

    def flags_for_user(self, user_id: str, since: Optional[str] = None) -> list[ContentFlag]:
        """Flags raised against *user_id*, optionally only those created at/after *since*."""
        flags = [f for f in self.list_flags() if f.user_id == user_id]
        if since:
            flags = [f for f in flags if f.created_at >= since]
        return flags
