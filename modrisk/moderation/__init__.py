"""Keyword-based content moderation.

Provides the keyword registry, the pure content scanner, the flag ledger
with its review state machine, and the service that wires them together.
"""

from modrisk.moderation.keyword_store import KeywordRegistry
from modrisk.moderation.ledger import FlagLedger
from modrisk.moderation.models import (
    ContentFlag,
    ContentType,
    FlagCandidate,
    FlagStatus,
    KeywordCategory,
    KeywordRule,
    MessageContent,
    ReviewContent,
)
from modrisk.moderation.scanner import ContentScanner
from modrisk.moderation.service import ModerationService

__all__ = [
    "ContentFlag",
    "ContentScanner",
    "ContentType",
    "FlagCandidate",
    "FlagLedger",
    "FlagStatus",
    "KeywordCategory",
    "KeywordRegistry",
    "KeywordRule",
    "MessageContent",
    "ModerationService",
    "ReviewContent",
]
