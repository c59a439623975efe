"""Outbound webhooks for admin notifications.

Registered endpoints receive a JSON POST for each event they subscribe to.
Payloads are signed with HMAC-SHA256 when the webhook has a secret.  Every
attempt is recorded in the delivery history; failures are recorded, not
raised, so a dead endpoint never blocks moderation.

Storage is file-based JSON in ``~/.modrisk/notifications/``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx

from modrisk.errors import NotFoundError, ValidationError
from modrisk.utils.json_store import JsonCollection

logger = logging.getLogger(__name__)

CONTENT_FLAGGED = "content.flagged"
COMPANY_HIGH_RISK = "company.high_risk"

WEBHOOK_EVENTS = [CONTENT_FLAGGED, COMPANY_HIGH_RISK]

# Newest delivery records kept in deliveries.json.
MAX_DELIVERY_HISTORY = 500

# DNS limits; httpx only enforces them when it resolves the host.
_MAX_LABEL_LENGTH = 63
_MAX_HOST_LENGTH = 253


@dataclass
class Webhook:
    """A registered outbound webhook."""

    id: str
    name: str
    url: str
    events: list[str] = field(default_factory=list)
    secret: str = ""
    active: bool = True
    created_at: str = ""
    updated_at: str = ""


@dataclass
class WebhookDelivery:
    """Record of a single webhook delivery attempt."""

    id: str
    webhook_id: str
    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    response_status: int = 0
    response_body: str = ""
    success: bool = False
    delivered_at: str = ""
    duration_ms: int = 0


def compute_signature(payload_bytes: bytes, secret: str) -> str:
    mac = hmac.new(secret.encode("utf-8"), payload_bytes, hashlib.sha256)
    return f"sha256={mac.hexdigest()}"


def _validate_url(url: str) -> None:
    """Reject URLs httpx could not deliver to: bad scheme, no host, oversized labels."""
    try:
        parsed = httpx.URL(url)
        host = parsed.host
    except (httpx.InvalidURL, UnicodeError, TypeError) as exc:
        raise ValidationError(f"Invalid webhook URL: {exc}") from None
    if parsed.scheme not in ("http", "https"):
        raise ValidationError("Webhook URL must start with http:// or https://")
    labels = host.rstrip(".").split(".")
    if not host or len(host) > _MAX_HOST_LENGTH or any(
        not label or len(label) > _MAX_LABEL_LENGTH for label in labels
    ):
        raise ValidationError(f"Invalid webhook host '{host}'")


class WebhookManager:
    """Registers webhooks and delivers events to them."""

    def __init__(
        self,
        base_dir: Optional[str | Path] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        max_deliveries: int = MAX_DELIVERY_HISTORY,
    ) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "notifications"
        self._hooks = JsonCollection(base / "webhooks.json")
        self._deliveries = JsonCollection(base / "deliveries.json")
        self._timeout = timeout
        self._transport = transport
        self._max_deliveries = max_deliveries

    @staticmethod
    def _webhook_from_dict(d: dict[str, Any]) -> Webhook:
        return Webhook(**{k: v for k, v in d.items() if k in Webhook.__dataclass_fields__})

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def register_webhook(
        self, url: str, events: list[str], secret: str = "", name: str = ""
    ) -> Webhook:
        unknown = [e for e in events if e not in WEBHOOK_EVENTS]
        if unknown:
            raise ValidationError(f"Unknown webhook event(s): {', '.join(unknown)}")
        _validate_url(url)
        now = datetime.now(timezone.utc).isoformat()
        wh = Webhook(
            id=uuid.uuid4().hex[:16],
            name=name or url,
            url=url,
            events=list(events),
            secret=secret,
            created_at=now,
            updated_at=now,
        )
        with self._hooks.transaction() as hooks:
            hooks.append(asdict(wh))
        return wh

    def list_webhooks(self) -> list[Webhook]:
        return [self._webhook_from_dict(d) for d in self._hooks.load()]

    def toggle_webhook(self, webhook_id: str, active: bool) -> Webhook:
        with self._hooks.transaction() as hooks:
            for d in hooks:
                if d.get("id") == webhook_id:
                    d["active"] = active
                    d["updated_at"] = datetime.now(timezone.utc).isoformat()
                    return self._webhook_from_dict(d)
        raise NotFoundError("Webhook", webhook_id)

    def delete_webhook(self, webhook_id: str) -> None:
        with self._hooks.transaction() as hooks:
            remaining = [d for d in hooks if d.get("id") != webhook_id]
            if len(remaining) == len(hooks):
                raise NotFoundError("Webhook", webhook_id)
            hooks[:] = remaining

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def fire(self, event: str, payload: dict[str, Any]) -> list[WebhookDelivery]:
        """Deliver *event* to every active webhook subscribed to it."""
        hooks = [w for w in self.list_webhooks() if w.active and event in w.events]
        if not hooks:
            return []
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            results = [self._deliver(client, wh, event, payload) for wh in hooks]
        with self._deliveries.transaction() as deliveries:
            deliveries.extend(asdict(d) for d in results)
            del deliveries[:-self._max_deliveries]
        return results

    def _deliver(
        self, client: httpx.Client, wh: Webhook, event: str, payload: dict[str, Any]
    ) -> WebhookDelivery:
        body = json.dumps(payload, default=str).encode("utf-8")
        headers = {"Content-Type": "application/json", "X-ModRisk-Event": event}
        if wh.secret:
            headers["X-ModRisk-Signature"] = compute_signature(body, wh.secret)

        start = time.monotonic()
        status = 0
        resp_body = ""
        try:
            resp = client.post(wh.url, content=body, headers=headers)
            status = resp.status_code
            resp_body = resp.text[:2000]
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            resp_body = str(exc)[:2000]
        success = 200 <= status < 300
        if not success:
            logger.warning("Webhook %s delivery of %s failed: %s %s", wh.id, event, status, resp_body[:200])

        return WebhookDelivery(
            id=uuid.uuid4().hex[:16],
            webhook_id=wh.id,
            event=event,
            payload=payload,
            response_status=status,
            response_body=resp_body,
            success=success,
            delivered_at=datetime.now(timezone.utc).isoformat(),
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def get_deliveries(self, webhook_id: Optional[str] = None, limit: int = 100) -> list[WebhookDelivery]:
        """Delivery records, newest first."""
        deliveries = [
            WebhookDelivery(**{k: v for k, v in d.items() if k in WebhookDelivery.__dataclass_fields__})
            for d in self._deliveries.load()
        ]
        if webhook_id:
            deliveries = [d for d in deliveries if d.webhook_id == webhook_id]
        deliveries.sort(key=lambda d: d.delivered_at, reverse=True)
        return deliveries[:limit]
