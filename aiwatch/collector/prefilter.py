"""
Relevance Pre-Filter

Cheap local keyword gate in front of the LLM relevance oracle. It only says
"no" when a message is clearly unrelated; anything borderline passes and the
oracle decides later.

Matching policy:
- strict keywords (short tokens) match on word boundaries only, so "ai"
  does not fire inside "tail" or "mail"
- flexible keywords (longer, distinctive) match as case-insensitive
  substrings, so "chatgpt" fires inside "ChatGPT-4o"
"""

import re
from typing import Iterable, List, Optional, Pattern

from ..common.config import DEFAULT_FLEXIBLE_KEYWORDS, DEFAULT_STRICT_KEYWORDS

STRICT_MAX_LENGTH = 3


def _boundary_pattern(keyword: str) -> Pattern:
    return re.compile(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", re.IGNORECASE)


def _normalize(keywords: Iterable[str]) -> List[str]:
    return [k.strip().lower() for k in keywords if k and k.strip()]


class KeywordMatcher:
    """Strict (word-boundary) plus flexible (substring) keyword matcher."""

    def __init__(self, strict: Iterable[str] = (), flexible: Iterable[str] = ()):
        self._strict = _normalize(strict)
        self._flexible = _normalize(flexible)
        self._strict_patterns = [_boundary_pattern(k) for k in self._strict]

    @classmethod
    def from_vocabulary(cls, keywords: Iterable[str]) -> "KeywordMatcher":
        """Split one vocabulary by length: short tokens strict, the rest flexible"""
        keywords = _normalize(keywords)
        return cls(
            strict=[k for k in keywords if len(k) <= STRICT_MAX_LENGTH],
            flexible=[k for k in keywords if len(k) > STRICT_MAX_LENGTH],
        )

    @property
    def strict_keywords(self) -> List[str]:
        return list(self._strict)

    @property
    def flexible_keywords(self) -> List[str]:
        return list(self._flexible)

    @property
    def vocabulary(self) -> List[str]:
        return self._strict + self._flexible

    def matches(self, text: Optional[str]) -> bool:
        if not text:
            return False
        lower_text = text.lower()
        if any(pattern.search(lower_text) for pattern in self._strict_patterns):
            return True
        return any(keyword in lower_text for keyword in self._flexible)

    def matched_keywords(self, text: Optional[str]) -> List[str]:
        """All keywords that fire on text, strict ones first"""
        if not text:
            return []
        lower_text = text.lower()
        hits = [k for k, p in zip(self._strict, self._strict_patterns) if p.search(lower_text)]
        hits.extend(k for k in self._flexible if k in lower_text)
        return hits


class RelevancePreFilter:
    """
    Throughput gate protecting the oracle: check(text) -> "possibly relevant".

    Deterministic and side-effect free. Returns False for empty or None text.
    """

    def __init__(
        self,
        strict_keywords: Optional[Iterable[str]] = None,
        flexible_keywords: Optional[Iterable[str]] = None,
    ):
        self._matcher = KeywordMatcher(
            strict=DEFAULT_STRICT_KEYWORDS if strict_keywords is None else strict_keywords,
            flexible=DEFAULT_FLEXIBLE_KEYWORDS if flexible_keywords is None else flexible_keywords,
        )

    @property
    def vocabulary(self) -> List[str]:
        return self._matcher.vocabulary

    def check(self, text: Optional[str]) -> bool:
        return self._matcher.matches(text)
