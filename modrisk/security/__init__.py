"""Audit trail for admin actions."""
