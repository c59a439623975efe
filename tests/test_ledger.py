"""Tests for the flag ledger and its review state machine."""

import tempfile
import threading

import pytest

from modrisk.errors import InvalidTransitionError, NotFoundError, ValidationError
from modrisk.moderation.ledger import QUICK_DISMISS_NOTE, FlagLedger
from modrisk.moderation.models import ContentType, FlagCandidate, FlagStatus


def _candidate(content_id="m1", user_id="u1", content_type=ContentType.message, **overrides):
    return FlagCandidate(
        content_type=content_type,
        content_id=content_id,
        user_id=user_id,
        flag_reason=overrides.get("flag_reason", "Matched 1 keyword(s) in category spam"),
        matched_keywords=overrides.get("matched_keywords", ["scam"]),
        severity=overrides.get("severity", 4),
    )


def test_create_flag_is_pending():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())

        assert flag.status is FlagStatus.pending
        assert flag.reviewed_by is None
        assert flag.matched_keywords == ["scam"]
        assert ledger.get_flag(flag.id).content_id == "m1"
        assert [f.id for f in ledger.pending_flags()] == [flag.id]


def test_review_records_reviewer():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())
        reviewed = ledger.review(flag.id, "action_taken", "admin-1", notes="warned", action_description="User warned")

        assert reviewed.status is FlagStatus.action_taken
        assert reviewed.reviewed_by == "admin-1"
        assert reviewed.reviewed_at
        assert reviewed.admin_notes == "warned"
        assert reviewed.action_taken == "User warned"
        assert ledger.pending_flags() == []


def test_action_description_only_kept_for_action_taken():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())
        reviewed = ledger.review(flag.id, "reviewed", "admin-1", action_description="ignored")

        assert reviewed.action_taken is None


def test_second_review_rejected_with_first_reviewer():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())
        ledger.review(flag.id, "dismissed", "admin-1")

        with pytest.raises(InvalidTransitionError) as excinfo:
            ledger.review(flag.id, "action_taken", "admin-2")
        assert excinfo.value.current_status == "dismissed"
        assert excinfo.value.reviewed_by == "admin-1"
        assert ledger.get_flag(flag.id).reviewed_by == "admin-1"


def test_invalid_decisions_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())

        with pytest.raises(ValidationError):
            ledger.review(flag.id, "pending", "admin-1")
        with pytest.raises(ValidationError):
            ledger.review(flag.id, "deleted", "admin-1")
        with pytest.raises(ValidationError):
            ledger.review(flag.id, "reviewed", "  ")
        with pytest.raises(NotFoundError):
            ledger.review("missing", "reviewed", "admin-1")
        assert ledger.get_flag(flag.id).status is FlagStatus.pending


def test_concurrent_reviews_exactly_one_wins():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())
        winners, losers = [], []
        barrier = threading.Barrier(8)

        def review(admin):
            barrier.wait()
            try:
                winners.append(ledger.review(flag.id, "reviewed", admin))
            except InvalidTransitionError as exc:
                losers.append(exc)

        threads = [threading.Thread(target=review, args=(f"admin-{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(winners) == 1
        assert len(losers) == 7
        assert all(exc.reviewed_by == winners[0].reviewed_by for exc in losers)
        assert ledger.get_flag(flag.id).reviewed_by == winners[0].reviewed_by


def test_quick_dismiss():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        flag = ledger.create_flag(_candidate())
        dismissed = ledger.quick_dismiss(flag.id, "admin-1")

        assert dismissed.status is FlagStatus.dismissed
        assert dismissed.admin_notes == QUICK_DISMISS_NOTE


def test_list_flags_filters_and_search():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        m = ledger.create_flag(_candidate("msg-1"))
        r = ledger.create_flag(_candidate("rev-9", content_type=ContentType.review, matched_keywords=["fraud"]))
        ledger.review(m.id, "reviewed", "admin-1")

        assert [f.id for f in ledger.list_flags(status="pending")] == [r.id]
        assert [f.id for f in ledger.list_flags(content_type="message")] == [m.id]
        assert [f.id for f in ledger.list_flags(search="FRAUD")] == [r.id]
        assert [f.id for f in ledger.list_flags(search="rev-9")] == [r.id]
        with pytest.raises(ValidationError):
            ledger.list_flags(status="open")


def test_list_flags_newest_first():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        ids = [ledger.create_flag(_candidate(f"m{i}")).id for i in range(3)]

        listed = [f.id for f in ledger.list_flags()]
        assert set(listed) == set(ids)
        created = [f.created_at for f in ledger.list_flags()]
        assert created == sorted(created, reverse=True)


def test_flags_for_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = FlagLedger(tmpdir)
        ledger.create_flag(_candidate("m1", "u1"))
        ledger.create_flag(_candidate("m2", "u2"))

        assert [f.content_id for f in ledger.flags_for_user("u1")] == ["m1"]
        assert ledger.flags_for_user("u1", since="2999-01-01") == []
