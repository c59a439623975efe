"""Error taxonomy for the moderation and risk engine.

Every error here is caller-facing and recoverable: the CLI prints it, the
HTTP layer maps it to a status code.  Storage ``OSError``s are not wrapped
and propagate to the host unchanged.
"""

from __future__ import annotations

from typing import Optional


class ModRiskError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ModRiskError):
    """Malformed input: empty keyword, severity out of range, bad decision."""


class ConflictError(ModRiskError):
    """An active keyword rule with the same normalized keyword exists."""


class NotFoundError(ModRiskError):
    """Unknown flag, rule or company id."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(f"{resource_type} '{resource_id}' not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidTransitionError(ModRiskError):
    """A flag that already left ``pending`` was reviewed again."""

    def __init__(
        self,
        flag_id: str,
        current_status: str,
        reviewed_by: Optional[str] = None,
        reviewed_at: Optional[str] = None,
    ) -> None:
        message = f"Flag '{flag_id}' was already resolved as {current_status}"
        if reviewed_by:
            message += f" by {reviewed_by}"
        if reviewed_at:
            message += f" at {reviewed_at}"
        super().__init__(message)
        self.flag_id = flag_id
        self.current_status = current_status
        self.reviewed_by = reviewed_by
        self.reviewed_at = reviewed_at


class StorageError(ModRiskError):
    """A backing JSON file exists but cannot be decoded."""
