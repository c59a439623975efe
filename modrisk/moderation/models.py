"""Data models for keyword rules, content flags and moderated content."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

MIN_SEVERITY = 1
MAX_SEVERITY = 5

_WHITESPACE = re.compile(r"\s+")


class KeywordCategory(str, Enum):
    profanity = "profanity"
    spam = "spam"
    legal = "legal"
    harassment = "harassment"
    custom = "custom"


class ContentType(str, Enum):
    message = "message"
    review = "review"


class FlagStatus(str, Enum):
    """Review states.  ``pending`` is initial; every other state is terminal."""

    pending = "pending"
    reviewed = "reviewed"
    dismissed = "dismissed"
    action_taken = "action_taken"

    @property
    def is_terminal(self) -> bool:
        return self is not FlagStatus.pending


TERMINAL_STATUSES = (FlagStatus.reviewed, FlagStatus.dismissed, FlagStatus.action_taken)


def normalize_keyword(keyword: str) -> str:
    """Lower-case *keyword*, strip it and collapse inner whitespace."""
    return _WHITESPACE.sub(" ", keyword.strip()).lower()


def clamp_severity(value: int) -> int:
    return max(MIN_SEVERITY, min(MAX_SEVERITY, int(value)))


@dataclass
class KeywordRule:
    """A banned keyword with its category and severity."""

    id: str
    keyword: str
    category: KeywordCategory
    severity: int
    is_active: bool = True
    description: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.category, str):
            self.category = KeywordCategory(self.category)
        self.keyword = normalize_keyword(self.keyword)
        self.severity = clamp_severity(self.severity)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "category": self.category.value,
            "severity": self.severity,
            "is_active": self.is_active,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "KeywordRule":
        return cls(
            id=d["id"],
            keyword=d["keyword"],
            category=d.get("category", "custom"),
            severity=d.get("severity", MIN_SEVERITY),
            is_active=d.get("is_active", True),
            description=d.get("description", ""),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
        )


@dataclass
class FlagCandidate:
    """Scanner output: what a new flag would record."""

    content_type: ContentType
    content_id: str
    user_id: str
    flag_reason: str
    matched_keywords: list[str] = field(default_factory=list)
    severity: int = 0
    categories: list[str] = field(default_factory=list)


@dataclass
class ContentFlag:
    """A flagged piece of content moving through the review workflow."""

    id: str
    content_type: ContentType
    content_id: str
    user_id: str
    flag_reason: str
    matched_keywords: list[str] = field(default_factory=list)
    severity: int = 0
    status: FlagStatus = FlagStatus.pending
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    admin_notes: Optional[str] = None
    action_taken: Optional[str] = None
    created_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.content_type, str):
            self.content_type = ContentType(self.content_type)
        if isinstance(self.status, str):
            self.status = FlagStatus(self.status)

    def matches_search(self, term: str) -> bool:
        """Case-insensitive substring test over reason, content id and keywords."""
        needle = term.strip().lower()
        if not needle:
            return True
        if needle in self.flag_reason.lower() or needle in self.content_id.lower():
            return True
        return any(needle in kw.lower() for kw in self.matched_keywords)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content_type": self.content_type.value,
            "content_id": self.content_id,
            "user_id": self.user_id,
            "flag_reason": self.flag_reason,
            "matched_keywords": list(self.matched_keywords),
            "severity": self.severity,
            "status": self.status.value,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at,
            "admin_notes": self.admin_notes,
            "action_taken": self.action_taken,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ContentFlag":
        return cls(
            id=d["id"],
            content_type=d["content_type"],
            content_id=d["content_id"],
            user_id=d["user_id"],
            flag_reason=d.get("flag_reason", ""),
            matched_keywords=list(d.get("matched_keywords", [])),
            severity=d.get("severity", 0),
            status=d.get("status", "pending"),
            reviewed_by=d.get("reviewed_by"),
            reviewed_at=d.get("reviewed_at"),
            admin_notes=d.get("admin_notes"),
            action_taken=d.get("action_taken"),
            created_at=d.get("created_at", ""),
        )


# ---------------------------------------------------------------------------
# Content submitted for moderation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MessageContent:
    """A direct message written by ``sender_id``."""

    message_id: str
    sender_id: str
    content: str

    content_type = ContentType.message

    @property
    def content_id(self) -> str:
        return self.message_id

    @property
    def author_id(self) -> str:
        return self.sender_id

    @property
    def text(self) -> str:
        return self.content


@dataclass(frozen=True)
class ReviewContent:
    """A review written by ``creator_id`` with a 1-5 star overall rating."""

    review_id: str
    creator_id: str
    overall_rating: int
    review_text: str = ""

    content_type = ContentType.review

    @property
    def content_id(self) -> str:
        return self.review_id

    @property
    def author_id(self) -> str:
        return self.creator_id

    @property
    def text(self) -> str:
        return self.review_text


ModeratedContent = Union[MessageContent, ReviewContent]
