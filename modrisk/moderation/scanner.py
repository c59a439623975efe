"""Keyword scanner for user-generated content.

Matches text against a snapshot of active keyword rules and produces at most
one :class:`FlagCandidate`.  Scanning never touches storage: the caller hands
in the rule snapshot (normally ``KeywordRegistry.list_active()``).

Matching policy: whole words.  A keyword matches when it occurs in the
lower-cased text and is neither preceded nor followed by a word character,
so ``scam`` matches "looks like a scam!" but not "scampi".  Multi-word
keywords match across any run of whitespace, including newlines.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from modrisk.errors import ValidationError
from modrisk.moderation.models import ContentType, FlagCandidate, KeywordRule

PROFANITY_SEVERITY = 3

# Curated, small but representative.  Only consulted when profanity detection is on.
_PROFANITY_WORDS: set[str] = {
    "fuck", "fucking", "shit", "asshole", "bitch", "bastard", "cunt",
    "motherfucker", "dickhead", "kill yourself", "kys",
}


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    body = r"\s+".join(re.escape(part) for part in keyword.split(" "))
    return re.compile(rf"(?<!\w){body}(?!\w)")


_PROFANITY_PATTERNS: list[re.Pattern[str]] = [
    _keyword_pattern(w) for w in sorted(_PROFANITY_WORDS)
]


def format_flag_reason(match_count: int, categories: Iterable[str]) -> str:
    """``"Matched 2 keyword(s) in categories legal, spam"``."""
    distinct = sorted(set(categories))
    noun = "category" if len(distinct) == 1 else "categories"
    return f"Matched {match_count} keyword(s) in {noun} {', '.join(distinct)}"


def coerce_content_type(content_type: str | ContentType) -> ContentType:
    try:
        return ContentType(content_type)
    except ValueError:
        raise ValidationError(
            f"Unknown content type '{content_type}' (expected 'message' or 'review')"
        ) from None


class ContentScanner:
    """Pure matcher over an ordered rule snapshot."""

    def __init__(self, rules: Iterable[KeywordRule], detect_profanity: bool = False) -> None:
        # Inactive rules are ignored even if the caller passes them in.
        self._rules = [
            (rule, _keyword_pattern(rule.keyword)) for rule in rules if rule.is_active
        ]
        self._detect_profanity = detect_profanity

    @property
    def rules(self) -> list[KeywordRule]:
        return [rule for rule, _ in self._rules]

    def match(self, text: str) -> list[KeywordRule]:
        """Return the rules matching *text*, in snapshot order."""
        if not text:
            return []
        lowered = text.lower()
        return [rule for rule, pattern in self._rules if pattern.search(lowered)]

    @staticmethod
    def contains_profanity(text: str) -> bool:
        lowered = text.lower()
        return any(p.search(lowered) for p in _PROFANITY_PATTERNS)

    def scan(
        self,
        text: str,
        content_type: str | ContentType,
        content_id: str,
        user_id: str,
    ) -> Optional[FlagCandidate]:
        """Scan *text* and return a flag candidate, or ``None`` when nothing matched."""
        ctype = coerce_content_type(content_type)
        if not text or not isinstance(text, str):
            return None

        matched = self.match(text)
        profane = self._detect_profanity and self.contains_profanity(text)
        if not matched and not profane:
            return None

        categories = sorted({rule.category.value for rule in matched})
        severity = max((rule.severity for rule in matched), default=0)
        if matched:
            reason = format_flag_reason(len(matched), categories)
            if profane:
                reason += "; contains profanity"
        else:
            reason = "Contains profanity"
        if profane:
            severity = max(severity, PROFANITY_SEVERITY)

        return FlagCandidate(
            content_type=ctype,
            content_id=content_id,
            user_id=user_id,
            flag_reason=reason,
            matched_keywords=[rule.keyword for rule in matched],
            severity=severity,
            categories=categories,
        )
