"""Tests for the banned keyword registry."""

import json
import tempfile
from pathlib import Path

import pytest

from modrisk.errors import ConflictError, NotFoundError, StorageError, ValidationError
from modrisk.moderation.keyword_store import DEFAULT_KEYWORDS, KeywordRegistry
from modrisk.moderation.models import KeywordCategory


def test_add_rule_normalizes_keyword():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        rule = reg.add_rule("  Free   MONEY ", "spam", 3, "promo spam")

        assert rule.keyword == "free money"
        assert rule.category is KeywordCategory.spam
        assert rule.severity == 3
        assert rule.is_active
        assert rule.created_at
        assert reg.get_rule(rule.id).keyword == "free money"


def test_add_rule_rejects_invalid_input():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        with pytest.raises(ValidationError):
            reg.add_rule("   ", "spam", 3)
        with pytest.raises(ValidationError):
            reg.add_rule("scam", "phishing", 3)
        with pytest.raises(ValidationError):
            reg.add_rule("scam", "spam", 0)
        with pytest.raises(ValidationError):
            reg.add_rule("scam", "spam", 6)
        with pytest.raises(ValidationError):
            reg.add_rule("scam", "spam", True)
        assert reg.list_rules() == []


def test_duplicate_active_keyword_conflicts():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        reg.add_rule("scam", "spam", 4)
        with pytest.raises(ConflictError):
            reg.add_rule("SCAM", "legal", 5)


def test_inactive_duplicate_allowed_but_reactivation_conflicts():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        first = reg.add_rule("scam", "spam", 4)
        reg.toggle_active(first.id)
        second = reg.add_rule("scam", "legal", 5)

        assert second.is_active
        with pytest.raises(ConflictError):
            reg.toggle_active(first.id)
        assert not reg.get_rule(first.id).is_active


def test_toggle_flips_active():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        rule = reg.add_rule("fraud", "legal", 5)

        assert reg.toggle_active(rule.id).is_active is False
        assert reg.list_active() == []
        assert reg.toggle_active(rule.id).is_active is True
        assert [r.keyword for r in reg.list_active()] == ["fraud"]


def test_update_rule_patches_fields():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        rule = reg.add_rule("fraud", "legal", 5)
        updated = reg.update_rule(rule.id, severity=2, description="softened")

        assert updated.severity == 2
        assert updated.description == "softened"
        assert updated.keyword == "fraud"
        assert reg.get_rule(rule.id).severity == 2


def test_update_rule_rejects_unknown_fields_and_conflicts():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        reg.add_rule("scam", "spam", 4)
        other = reg.add_rule("fraud", "legal", 5)

        with pytest.raises(ValidationError):
            reg.update_rule(other.id, id="new-id")
        with pytest.raises(ConflictError):
            reg.update_rule(other.id, keyword="Scam")
        assert reg.get_rule(other.id).keyword == "fraud"


def test_delete_rule():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        rule = reg.add_rule("scam", "spam", 4)

        deleted = reg.delete_rule(rule.id)
        assert deleted.keyword == "scam"
        assert reg.list_rules() == []
        with pytest.raises(NotFoundError):
            reg.delete_rule(rule.id)
        with pytest.raises(NotFoundError):
            reg.get_rule(rule.id)


def test_list_rules_filters():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        reg.add_rule("scam", "spam", 4, "Potential scam")
        fraud = reg.add_rule("fraud", "legal", 5)
        reg.toggle_active(fraud.id)

        assert [r.keyword for r in reg.list_rules(category="legal")] == ["fraud"]
        assert [r.keyword for r in reg.list_rules(active=True)] == ["scam"]
        assert [r.keyword for r in reg.list_rules(search="potential")] == ["scam"]


def test_seed_defaults_only_into_empty_registry():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = KeywordRegistry(tmpdir)
        created = reg.seed_defaults()

        assert len(created) == len(DEFAULT_KEYWORDS)
        assert {r.keyword for r in reg.list_rules()} >= {"scam", "fraud", "get rich quick"}
        assert reg.seed_defaults() == []
        assert len(reg.list_rules()) == len(DEFAULT_KEYWORDS)


def test_stored_severity_is_clamped_on_read():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "keywords.json"
        path.write_text(json.dumps([
            {"id": "r1", "keyword": "scam", "category": "spam", "severity": 9, "is_active": True},
        ]))
        reg = KeywordRegistry(tmpdir)

        assert reg.get_rule("r1").severity == 5


def test_corrupt_store_raises_storage_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "keywords.json").write_text("{not json")
        reg = KeywordRegistry(tmpdir)

        with pytest.raises(StorageError):
            reg.list_rules()
