"""Tests for dashboard statistics."""

import random
import tempfile

import pytest

from modrisk.errors import InvalidTransitionError
from modrisk.moderation.ledger import FlagLedger
from modrisk.moderation.models import ContentFlag, ContentType, FlagCandidate, FlagStatus, KeywordRule
from modrisk.risk.models import CompanyRiskAssessment, RiskLevel
from modrisk.stats import summarize, summarize_keywords


def _flag(i, status):
    return ContentFlag(
        id=f"f{i}", content_type="message", content_id=f"m{i}", user_id="u",
        flag_reason="r", status=status,
    )


def test_empty_summary():
    s = summarize([])
    assert s.total == 0
    assert s.pending == s.reviewed == s.dismissed == s.action_taken == 0
    assert s.assessed_total == 0


def test_counts_partition_total():
    rng = random.Random(1234)
    for _ in range(25):
        statuses = [rng.choice(list(FlagStatus)) for _ in range(rng.randint(0, 60))]
        levels = [rng.choice(list(RiskLevel)) for _ in range(rng.randint(0, 20))]
        flags = [_flag(i, s) for i, s in enumerate(statuses)]
        assessments = [
            CompanyRiskAssessment(company_id=f"c{i}", risk_score=0, risk_level=lvl)
            for i, lvl in enumerate(levels)
        ]

        s = summarize(flags, assessments)
        assert s.total == len(flags)
        assert s.pending + s.reviewed + s.dismissed + s.action_taken == s.total
        assert s.pending == statuses.count(FlagStatus.pending)
        assert s.high_risk + s.medium_risk + s.low_risk == s.assessed_total == len(levels)


def test_counts_follow_ledger_history():
    rng = random.Random(99)
    decisions = [FlagStatus.reviewed, FlagStatus.dismissed, FlagStatus.action_taken]
    for _ in range(8):
        with tempfile.TemporaryDirectory() as tmpdir:
            ledger = FlagLedger(tmpdir)
            expected = {}
            for step in range(rng.randint(0, 30)):
                if expected and rng.random() < 0.5:
                    flag_id = rng.choice(sorted(expected))
                    decision = rng.choice(decisions)
                    if expected[flag_id] is FlagStatus.pending:
                        ledger.review(flag_id, decision, "admin-1")
                        expected[flag_id] = decision
                    else:
                        with pytest.raises(InvalidTransitionError):
                            ledger.review(flag_id, decision, "admin-2")
                else:
                    flag = ledger.create_flag(FlagCandidate(
                        ContentType.message, f"m{step}", "u1", "Matched 1 keyword(s)", ["scam"], 4,
                    ))
                    expected[flag.id] = FlagStatus.pending

                s = summarize(ledger.list_flags())
                counts = list(expected.values())
                assert s.total == len(expected)
                assert s.pending + s.reviewed + s.dismissed + s.action_taken == s.total
                assert s.pending == counts.count(FlagStatus.pending)
                assert s.reviewed == counts.count(FlagStatus.reviewed)
                assert s.dismissed == counts.count(FlagStatus.dismissed)
                assert s.action_taken == counts.count(FlagStatus.action_taken)


def test_keyword_statistics():
    rules = [
        KeywordRule(id="1", keyword="scam", category="spam", severity=4),
        KeywordRule(id="2", keyword="fraud", category="legal", severity=5, is_active=False),
        KeywordRule(id="3", keyword="free money", category="spam", severity=3),
    ]
    s = summarize_keywords(rules)

    assert (s.total, s.active, s.inactive, s.high_severity) == (3, 2, 1, 2)
