"""Admin notification outbox and outbound webhooks."""
