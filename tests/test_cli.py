"""Tests for the modrisk CLI."""

import tempfile
from pathlib import Path

from click.testing import CliRunner

from modrisk.cli import main
from modrisk.config import Settings
from modrisk.engine import build_engine


def _invoke(home, *args):
    return CliRunner().invoke(main, ["--home", home, *args])


def test_keywords_seeded_and_listed():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "keywords", "list")
        assert result.exit_code == 0, result.output
        assert "scam" in result.output
        assert "fraud" in result.output


def test_keyword_add_and_duplicate():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "keywords", "add", "Phish", "--category", "spam", "--severity", "4")
        assert result.exit_code == 0, result.output
        assert "phish" in result.output

        dup = _invoke(tmpdir, "keywords", "add", "phish")
        assert dup.exit_code == 1
        assert "already exists" in dup.output


def test_keyword_add_rejects_bad_severity():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "keywords", "add", "phish", "--severity", "9")
        assert result.exit_code == 1
        assert "Severity" in result.output


def test_keyword_stats():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "keywords", "stats")
        assert result.exit_code == 0
        assert "total=6" in result.output


def test_scan_is_dry_run():
    with tempfile.TemporaryDirectory() as tmpdir:
        clean = _invoke(tmpdir, "scan", "Lovely working with you")
        assert clean.exit_code == 0
        assert "Clean" in clean.output

        hit = _invoke(tmpdir, "scan", "free money here")
        assert hit.exit_code == 0
        assert "Would be flagged" in hit.output

        engine = build_engine(Settings(home=Path(tmpdir)))
        assert engine.moderation.ledger.list_flags() == []


def test_submit_and_review_flow():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "submit", "this is a scam", "--content-id", "m1", "--user-id", "u1")
        assert result.exit_code == 0, result.output
        assert "Flagged" in result.output

        engine = build_engine(Settings(home=Path(tmpdir)))
        flag_id = engine.moderation.ledger.list_flags()[0].id

        listed = _invoke(tmpdir, "flags", "list", "--status", "pending")
        assert listed.exit_code == 0
        assert flag_id[:8] in listed.output

        reviewed = _invoke(tmpdir, "flags", "review", flag_id, "reviewed", "--admin", "a1")
        assert reviewed.exit_code == 0, reviewed.output
        assert "reviewed by a1" in reviewed.output

        again = _invoke(tmpdir, "flags", "dismiss", flag_id, "--admin", "a2")
        assert again.exit_code == 1
        assert "already" in again.output

        shown = _invoke(tmpdir, "flags", "show", flag_id)
        assert shown.exit_code == 0
        assert "Reviewed by a1" in shown.output


def test_unknown_flag_exits_nonzero():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "flags", "show", "missing")
        assert result.exit_code == 1
        assert "not found" in result.output


def test_companies_and_risk_commands():
    with tempfile.TemporaryDirectory() as tmpdir:
        added = _invoke(
            tmpdir, "companies", "add", "acme", "--name", "Acme Ltd",
            "--status", "rejected", "--disputes", "2",
        )
        assert added.exit_code == 0, added.output

        listed = _invoke(tmpdir, "companies", "list")
        assert "Acme Ltd" in listed.output

        assessed = _invoke(tmpdir, "risk", "assess", "acme")
        assert assessed.exit_code == 0, assessed.output
        assert "high" in assessed.output

        check = _invoke(tmpdir, "risk", "check")
        assert check.exit_code == 0
        assert "1 new notification(s)" in check.output

        snap = _invoke(tmpdir, "risk", "snapshot")
        assert "Stored 1 snapshot(s)" in snap.output
        history = _invoke(tmpdir, "risk", "history", "acme")
        assert "high" in history.output


def test_stats_and_audit():
    with tempfile.TemporaryDirectory() as tmpdir:
        _invoke(tmpdir, "keywords", "add", "phish", "--admin", "alice")
        stats = _invoke(tmpdir, "stats")
        assert stats.exit_code == 0
        assert "Pending" in stats.output

        audit = _invoke(tmpdir, "audit", "--format", "csv", "--actor", "alice")
        assert audit.exit_code == 0
        assert "keyword.created" in audit.output
