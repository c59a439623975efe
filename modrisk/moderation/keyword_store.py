"""File-based JSON storage for banned keyword rules.

Backed by ``keywords.json`` under the moderation data directory
(``~/.modrisk/moderation/`` unless a ``base_dir`` is given).  Rules are kept
in creation order, which is the order the scanner reports matches in.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from modrisk.errors import ConflictError, NotFoundError, ValidationError
from modrisk.moderation.models import (
    MAX_SEVERITY,
    MIN_SEVERITY,
    KeywordCategory,
    KeywordRule,
    normalize_keyword,
)
from modrisk.utils.json_store import JsonCollection

logger = logging.getLogger(__name__)

# Seeded into an empty registry.
DEFAULT_KEYWORDS: list[dict[str, Any]] = [
    {"keyword": "scam", "category": "spam", "severity": 4,
     "description": "Potential scam-related content"},
    {"keyword": "fraud", "category": "legal", "severity": 5,
     "description": "Fraud-related term"},
    {"keyword": "guaranteed money", "category": "spam", "severity": 3,
     "description": "Misleading financial claims"},
    {"keyword": "get rich quick", "category": "spam", "severity": 3,
     "description": "Misleading financial claims"},
    {"keyword": "free money", "category": "spam", "severity": 3,
     "description": "Spam-like promotional content"},
    {"keyword": "testbadword", "category": "custom", "severity": 2,
     "description": "Test keyword for moderation testing"},
]

_PATCHABLE = ("keyword", "category", "severity", "description", "is_active")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validate_keyword(keyword: Any) -> str:
    if not isinstance(keyword, str) or not normalize_keyword(keyword):
        raise ValidationError("Keyword must be a non-empty string")
    return normalize_keyword(keyword)


def _validate_category(category: Any) -> KeywordCategory:
    try:
        return KeywordCategory(category)
    except ValueError:
        allowed = ", ".join(c.value for c in KeywordCategory)
        raise ValidationError(f"Unknown category '{category}' (expected one of: {allowed})") from None


def _validate_severity(severity: Any) -> int:
    if isinstance(severity, bool) or not isinstance(severity, int):
        raise ValidationError("Severity must be an integer")
    if not MIN_SEVERITY <= severity <= MAX_SEVERITY:
        raise ValidationError(
            f"Severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}, got {severity}"
        )
    return severity


class KeywordRegistry:
    """CRUD over banned keyword rules.

    Storage path: ``<base_dir>/keywords.json`` -- list of rule dicts.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "moderation"
        self._rules = JsonCollection(base / "keywords.json")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_unique_active(records: list[dict], keyword: str, exclude_id: str = "") -> None:
        for r in records:
            if r["id"] == exclude_id or not r.get("is_active", True):
                continue
            if normalize_keyword(r["keyword"]) == keyword:
                raise ConflictError(f"An active rule for keyword '{keyword}' already exists")

    @staticmethod
    def _find(records: list[dict], rule_id: str) -> dict:
        for r in records:
            if r["id"] == rule_id:
                return r
        raise NotFoundError("Keyword rule", rule_id)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_rule(
        self,
        keyword: str,
        category: str | KeywordCategory,
        severity: int,
        description: str = "",
    ) -> KeywordRule:
        """Create an active rule.  Raises ValidationError or ConflictError."""
        normalized = _validate_keyword(keyword)
        cat = _validate_category(category)
        sev = _validate_severity(severity)
        now = _now()
        rule = KeywordRule(
            id=str(uuid.uuid4()),
            keyword=normalized,
            category=cat,
            severity=sev,
            is_active=True,
            description=description or "",
            created_at=now,
            updated_at=now,
        )
        with self._rules.transaction() as records:
            self._ensure_unique_active(records, normalized)
            records.append(rule.to_dict())
        logger.info("Added keyword rule %s (%s, severity %d)", normalized, cat.value, sev)
        return rule

    def get_rule(self, rule_id: str) -> KeywordRule:
        return KeywordRule.from_dict(self._find(self._rules.load(), rule_id))

    def update_rule(self, rule_id: str, **patch: Any) -> KeywordRule:
        """Apply *patch* to a rule.  Only keyword/category/severity/description/is_active."""
        unknown = set(patch) - set(_PATCHABLE)
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        if "keyword" in patch:
            changes["keyword"] = _validate_keyword(patch["keyword"])
        if "category" in patch:
            changes["category"] = _validate_category(patch["category"]).value
        if "severity" in patch:
            changes["severity"] = _validate_severity(patch["severity"])
        if "description" in patch:
            changes["description"] = patch["description"] or ""
        if "is_active" in patch:
            changes["is_active"] = bool(patch["is_active"])

        with self._rules.transaction() as records:
            record = self._find(records, rule_id)
            merged = {**record, **changes}
            if merged.get("is_active", True):
                self._ensure_unique_active(records, normalize_keyword(merged["keyword"]), rule_id)
            merged["updated_at"] = _now()
            record.update(merged)
        return KeywordRule.from_dict(merged)

    def toggle_active(self, rule_id: str) -> KeywordRule:
        """Flip ``is_active``.  Activating re-checks keyword uniqueness."""
        with self._rules.transaction() as records:
            record = self._find(records, rule_id)
            activate = not record.get("is_active", True)
            if activate:
                self._ensure_unique_active(records, normalize_keyword(record["keyword"]), rule_id)
            record["is_active"] = activate
            record["updated_at"] = _now()
            rule = KeywordRule.from_dict(record)
        logger.info("Keyword rule %s is now %s", rule.keyword, "active" if activate else "inactive")
        return rule

    def delete_rule(self, rule_id: str) -> KeywordRule:
        """Delete a rule.  Existing flags keep their keyword snapshots."""
        with self._rules.transaction() as records:
            record = self._find(records, rule_id)
            records.remove(record)
        return KeywordRule.from_dict(record)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_rules(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> list[KeywordRule]:
        """Return all rules in creation order, optionally filtered."""
        rules = [KeywordRule.from_dict(d) for d in self._rules.load()]
        if category:
            cat = _validate_category(category)
            rules = [r for r in rules if r.category is cat]
        if active is not None:
            rules = [r for r in rules if r.is_active == active]
        if search:
            needle = search.strip().lower()
            rules = [
                r for r in rules
                if needle in r.keyword or needle in r.category.value
                or needle in r.description.lower()
            ]
        return rules

    def list_active(self) -> list[KeywordRule]:
        """The active rule snapshot the scanner consults."""
        return self.list_rules(active=True)

    def seed_defaults(self) -> list[KeywordRule]:
        """Insert :data:`DEFAULT_KEYWORDS` if the registry is empty.

        Returns the rules created (empty when the registry already had rules).
        """
        if self._rules.load():
            return []
        created = [
            self.add_rule(kw["keyword"], kw["category"], kw["severity"], kw["description"])
            for kw in DEFAULT_KEYWORDS
        ]
        logger.info("Seeded %d default banned keywords", len(created))
        return created
