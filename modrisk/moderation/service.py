"""Moderation entry points used by the host application and admin tooling.

``ModerationService`` ties the keyword registry, scanner and flag ledger
together, and records every admin-visible change in the audit log.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from modrisk.config import Settings
from modrisk.errors import InvalidTransitionError
from modrisk.moderation.keyword_store import KeywordRegistry
from modrisk.moderation.ledger import QUICK_DISMISS_NOTE, FlagLedger
from modrisk.moderation.models import (
    ContentFlag,
    ContentType,
    FlagCandidate,
    FlagStatus,
    KeywordRule,
    MessageContent,
    ModeratedContent,
    ReviewContent,
)
from modrisk.moderation.scanner import ContentScanner
from modrisk.notifications.notifier import AdminNotifier
from modrisk.security import audit_log
from modrisk.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)

LOW_RATING_THRESHOLD = 2
LOW_RATING_SEVERITY = 2
LOW_RATING_REASON = "Low rating (1-2 stars)"


class ModerationService:
    """Scans submitted content, records flags and applies admin decisions."""

    def __init__(
        self,
        registry: KeywordRegistry,
        ledger: FlagLedger,
        audit: Optional[AuditLogger] = None,
        notifier: Optional[AdminNotifier] = None,
        detect_profanity: bool = False,
    ) -> None:
        self.registry = registry
        self.ledger = ledger
        self.audit = audit
        self.notifier = notifier
        self.detect_profanity = detect_profanity

    @classmethod
    def from_settings(cls, settings: Settings, notifier: Optional[AdminNotifier] = None) -> "ModerationService":
        registry = KeywordRegistry(settings.moderation_dir)
        if settings.seed_defaults:
            registry.seed_defaults()
        return cls(
            registry=registry,
            ledger=FlagLedger(settings.moderation_dir),
            audit=AuditLogger(settings.audit_dir),
            notifier=notifier,
            detect_profanity=settings.detect_profanity,
        )

    def _audit(self, actor: str, action: str, resource_type: str, resource_id: str, **details: Any) -> None:
        if self.audit is not None:
            self.audit.log_event(actor, action, resource_type, resource_id, details=details)

    # ------------------------------------------------------------------
    # Scanning and flag creation
    # ------------------------------------------------------------------

    def scanner(self) -> ContentScanner:
        """A scanner over the current active rule snapshot."""
        return ContentScanner(self.registry.list_active(), detect_profanity=self.detect_profanity)

    def scan(
        self, text: str, content_type: str | ContentType, content_id: str = "", user_id: str = ""
    ) -> Optional[FlagCandidate]:
        return self.scanner().scan(text, content_type, content_id, user_id)

    def _record(self, candidate: FlagCandidate) -> ContentFlag:
        flag = self.ledger.create_flag(candidate)
        self._audit(
            audit_log.SYSTEM_ACTOR, audit_log.FLAG_CREATED, "flag", flag.id,
            content_type=flag.content_type.value,
            content_id=flag.content_id,
            matched_keywords=flag.matched_keywords,
            severity=flag.severity,
        )
        if self.notifier is not None:
            self.notifier.content_flagged(flag)
        return flag

    def submit_for_moderation(
        self, text: str, content_type: str | ContentType, content_id: str, user_id: str
    ) -> Optional[ContentFlag]:
        """Scan new content; on a match persist a pending flag and return it."""
        candidate = self.scan(text, content_type, content_id, user_id)
        if candidate is None:
            return None
        return self._record(candidate)

    def moderate_message(self, message: MessageContent) -> Optional[ContentFlag]:
        return self.submit_for_moderation(
            message.content, ContentType.message, message.message_id, message.sender_id
        )

    def moderate_review(self, review: ReviewContent) -> Optional[ContentFlag]:
        """Scan a review; low star ratings are flagged even without a keyword hit."""
        candidate = self.scan(review.review_text, ContentType.review, review.review_id, review.creator_id)
        if review.overall_rating <= LOW_RATING_THRESHOLD:
            if candidate is None:
                candidate = FlagCandidate(
                    content_type=ContentType.review,
                    content_id=review.review_id,
                    user_id=review.creator_id,
                    flag_reason=LOW_RATING_REASON,
                    severity=LOW_RATING_SEVERITY,
                )
            else:
                candidate.flag_reason = f"{LOW_RATING_REASON}; {candidate.flag_reason}"
        if candidate is None:
            return None
        return self._record(candidate)

    def moderate(self, content: ModeratedContent) -> Optional[ContentFlag]:
        """Dispatch on the content variant."""
        if isinstance(content, ReviewContent):
            return self.moderate_review(content)
        if isinstance(content, MessageContent):
            return self.moderate_message(content)
        raise TypeError(f"Unsupported content: {type(content).__name__}")

    # ------------------------------------------------------------------
    # Review workflow
    # ------------------------------------------------------------------

    def review(
        self,
        flag_id: str,
        decision: str | FlagStatus,
        admin_id: str,
        notes: Optional[str] = None,
        action_description: Optional[str] = None,
    ) -> ContentFlag:
        try:
            flag = self.ledger.review(flag_id, decision, admin_id, notes, action_description)
        except InvalidTransitionError as exc:
            self._audit(
                admin_id, audit_log.FLAG_REVIEW_REJECTED, "flag", flag_id,
                attempted=str(getattr(decision, "value", decision)),
                current_status=exc.current_status,
                reviewed_by=exc.reviewed_by,
            )
            raise
        self._audit(
            admin_id, audit_log.FLAG_REVIEWED, "flag", flag_id,
            status=flag.status.value,
            admin_notes=flag.admin_notes,
            action_taken=flag.action_taken,
        )
        return flag

    def quick_dismiss(self, flag_id: str, admin_id: str) -> ContentFlag:
        return self.review(flag_id, FlagStatus.dismissed, admin_id, notes=QUICK_DISMISS_NOTE)

    # ------------------------------------------------------------------
    # Keyword administration (audited)
    # ------------------------------------------------------------------

    def add_keyword(
        self, admin_id: str, keyword: str, category: str, severity: int, description: str = ""
    ) -> KeywordRule:
        rule = self.registry.add_rule(keyword, category, severity, description)
        self._audit(admin_id, audit_log.KEYWORD_CREATED, "keyword_rule", rule.id,
                    keyword=rule.keyword, category=rule.category.value, severity=rule.severity)
        return rule

    def update_keyword(self, admin_id: str, rule_id: str, **patch: Any) -> KeywordRule:
        rule = self.registry.update_rule(rule_id, **patch)
        self._audit(admin_id, audit_log.KEYWORD_UPDATED, "keyword_rule", rule_id,
                    changes={k: getattr(v, "value", v) for k, v in patch.items()})
        return rule

    def toggle_keyword(self, admin_id: str, rule_id: str) -> KeywordRule:
        rule = self.registry.toggle_active(rule_id)
        self._audit(admin_id, audit_log.KEYWORD_TOGGLED, "keyword_rule", rule_id, is_active=rule.is_active)
        return rule

    def delete_keyword(self, admin_id: str, rule_id: str) -> KeywordRule:
        rule = self.registry.delete_rule(rule_id)
        self._audit(admin_id, audit_log.KEYWORD_DELETED, "keyword_rule", rule_id, keyword=rule.keyword)
        return rule
