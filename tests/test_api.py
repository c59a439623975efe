"""Tests for the admin HTTP API."""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from modrisk.config import Settings
from modrisk.engine import build_engine
from modrisk.notifications.webhooks import CONTENT_FLAGGED
from web.backend.app.dependencies import get_engine
from web.backend.app.main import app

ADMIN = {"X-Admin-Id": "admin-1"}


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(Settings(home=tmp_path))
    app.dependency_overrides[get_engine] = lambda: eng
    yield eng
    app.dependency_overrides.clear()


@pytest.fixture
def client(engine):
    return TestClient(app)


def _submit(client, content, content_id="m1", user_id="u1", content_type="message", **extra):
    body = {"content": content, "content_type": content_type, "content_id": content_id, "user_id": user_id}
    body.update(extra)
    return client.post("/api/admin/moderation/submit", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["name"] == "modrisk API"


def test_admin_header_required(client):
    resp = client.get("/api/admin/moderation/keywords")
    assert resp.status_code == 401


def test_keyword_crud(client):
    resp = client.post(
        "/api/admin/moderation/keywords",
        json={"keyword": "Phish", "category": "spam", "severity": 4},
        headers=ADMIN,
    )
    assert resp.status_code == 201
    rule = resp.json()
    assert rule["keyword"] == "phish"

    dup = client.post("/api/admin/moderation/keywords", json={"keyword": "phish"}, headers=ADMIN)
    assert dup.status_code == 409
    assert dup.json()["error"] == "ConflictError"

    bad = client.post("/api/admin/moderation/keywords", json={"keyword": "x", "severity": 9}, headers=ADMIN)
    assert bad.status_code == 422
    assert bad.json()["status_code"] == 422

    updated = client.put(f"/api/admin/moderation/keywords/{rule['id']}", json={"severity": 2}, headers=ADMIN)
    assert updated.json()["severity"] == 2

    toggled = client.patch(f"/api/admin/moderation/keywords/{rule['id']}/toggle", headers=ADMIN)
    assert toggled.json()["is_active"] is False

    stats = client.get("/api/admin/moderation/keywords/stats", headers=ADMIN).json()
    assert stats["inactive"] == 1
    assert stats["total"] == 7

    deleted = client.delete(f"/api/admin/moderation/keywords/{rule['id']}", headers=ADMIN)
    assert deleted.status_code == 204
    missing = client.delete(f"/api/admin/moderation/keywords/{rule['id']}", headers=ADMIN)
    assert missing.status_code == 404


def test_list_keywords_filters(client):
    resp = client.get("/api/admin/moderation/keywords", params={"category": "legal"}, headers=ADMIN)
    assert [r["keyword"] for r in resp.json()] == ["fraud"]


def test_submit_clean_and_flagged(client):
    clean = _submit(client, "See you tomorrow")
    assert clean.json() == {"flagged": False, "flag": None}

    flagged = _submit(client, "Guaranteed money, no scam")
    body = flagged.json()
    assert body["flagged"] is True
    assert body["flag"]["status"] == "pending"
    assert sorted(body["flag"]["matched_keywords"]) == ["guaranteed money", "scam"]


def test_submit_low_rating_review(client):
    resp = _submit(client, "Meh", content_id="r1", content_type="review", overall_rating=1)
    assert resp.json()["flag"]["flag_reason"] == "Low rating (1-2 stars)"


def test_review_flow_and_double_review(client):
    flag = _submit(client, "fraud alert").json()["flag"]

    listed = client.get("/api/admin/moderation/flags", params={"status": "pending"}, headers=ADMIN).json()
    assert [f["id"] for f in listed] == [flag["id"]]

    resp = client.patch(
        f"/api/admin/moderation/flags/{flag['id']}/review",
        json={"status": "action_taken", "admin_notes": "confirmed", "action_taken": "User suspended"},
        headers=ADMIN,
    )
    assert resp.status_code == 200
    assert resp.json()["reviewed_by"] == "admin-1"
    assert resp.json()["action_taken"] == "User suspended"

    again = client.post(f"/api/admin/moderation/flags/{flag['id']}/dismiss", headers={"X-Admin-Id": "admin-2"})
    assert again.status_code == 409
    assert again.json()["reviewed_by"] == "admin-1"
    assert again.json()["current_status"] == "action_taken"

    bad = client.patch(
        f"/api/admin/moderation/flags/{flag['id']}/review", json={"status": "pending"}, headers=ADMIN
    )
    assert bad.status_code == 422

    assert client.get("/api/admin/moderation/flags/nope", headers=ADMIN).status_code == 404


def test_search_flags(client):
    _submit(client, "free money", content_id="promo-1")
    _submit(client, "fraud", content_id="msg-2")

    found = client.get("/api/admin/moderation/flags", params={"search": "promo"}, headers=ADMIN).json()
    assert [f["content_id"] for f in found] == ["promo-1"]


def test_statistics(client):
    flag = _submit(client, "scam").json()["flag"]
    _submit(client, "fraud", content_id="m2")
    client.post(f"/api/admin/moderation/flags/{flag['id']}/dismiss", headers=ADMIN)

    stats = client.get("/api/admin/moderation/statistics", headers=ADMIN).json()
    assert stats["pending"] == 1
    assert stats["dismissed"] == 1
    assert stats["total"] == 2


def test_risk_assessments_and_high_risk_check(client, engine):
    recent = (datetime.now(timezone.utc) - timedelta(days=3)).isoformat()
    engine.companies.upsert("calm", legal_name="Calm Co", verification_status="verified",
                            created_at="2020-01-01T00:00:00+00:00", website="https://calm.example",
                            contact_email="hi@calm.example", description="d", industry="i",
                            logo_url="https://calm.example/l.png")
    engine.companies.upsert("risky", legal_name="Risky Co", trade_name="Risky",
                            verification_status="rejected", created_at=recent,
                            disputed_payments_count=2)

    resp = client.get("/api/admin/companies/risk-assessments", headers=ADMIN).json()
    assert resp["summary"] == {"total": 2, "high": 1, "medium": 0, "low": 1}
    assert [a["company_id"] for a in resp["assessments"]] == ["risky", "calm"]
    assert resp["assessments"][0]["company_name"] == "Risky"

    only_high = client.get(
        "/api/admin/companies/risk-assessments", params={"level": "high"}, headers=ADMIN
    ).json()
    assert [a["company_id"] for a in only_high["assessments"]] == ["risky"]
    assert only_high["summary"]["total"] == 2

    bad = client.get("/api/admin/companies/risk-assessments", params={"level": "severe"}, headers=ADMIN)
    assert bad.status_code == 422

    first = client.post("/api/admin/check-high-risk-companies", headers=ADMIN).json()
    assert first["high_risk_count"] == 1
    assert first["notifications_sent"] == 1
    second = client.post("/api/admin/check-high-risk-companies", headers=ADMIN).json()
    assert second["notifications_sent"] == 0


def test_risk_assessments_score_once_per_request(client, engine, monkeypatch):
    engine.companies.upsert("calm", legal_name="Calm Co", verification_status="verified")
    calls = []
    compute = engine.risk.compute_risk_for_all

    def counting(*args, **kwargs):
        calls.append(1)
        return compute(*args, **kwargs)

    monkeypatch.setattr(engine.risk, "compute_risk_for_all", counting)

    for params in ({}, {"level": "low"}, {"level": "high", "sort": "asc"}):
        calls.clear()
        resp = client.get("/api/admin/companies/risk-assessments", params=params, headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["summary"]["total"] == 1
        assert len(calls) == 1


def test_error_responses_are_documented(client):
    schema = client.get("/openapi.json").json()
    assert "ErrorResponse" in schema["components"]["schemas"]

    review = schema["paths"]["/api/admin/moderation/flags/{flag_id}/review"]["patch"]["responses"]
    assert review["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    sweep = schema["paths"]["/api/admin/check-high-risk-companies"]["post"]["responses"]
    assert "404" in sweep


def test_slow_webhook_does_not_stall_other_requests(tmp_path):
    def slow_hook(request):
        time.sleep(0.6)
        return httpx.Response(200, text="ok")

    eng = build_engine(Settings(home=tmp_path), webhook_transport=httpx.MockTransport(slow_hook))
    eng.webhooks.register_webhook("https://hooks.example/mod", [CONTENT_FLAGGED])
    app.dependency_overrides[get_engine] = lambda: eng

    async def scenario():
        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not done.is_set():
                await asyncio.sleep(0.05)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        async def submit():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
                try:
                    return await ac.post(
                        "/api/admin/moderation/submit",
                        json={"content": "This is a scam", "content_type": "message",
                              "content_id": "m1", "user_id": "u1"},
                    )
                finally:
                    done.set()

        _, resp = await asyncio.gather(ticker(), submit())
        return resp, gaps

    try:
        resp, gaps = asyncio.run(scenario())
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    assert resp.json()["flagged"] is True
    assert eng.webhooks.get_deliveries()[0].success
    assert gaps and max(gaps) < 0.4
