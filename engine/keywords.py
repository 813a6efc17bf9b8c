"""Keyword extraction and article relevance.

Used when the language model does not return its own keyword list, and to
rank cross-reference articles.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Mapping, Sequence

STOP_WORDS: frozenset[str] = frozenset({
    "that", "with", "have", "this", "will", "they", "from", "been", "said", "each",
    "which", "their", "time", "would", "about", "there", "could", "other", "after",
    "first", "well", "just", "also", "when", "where", "what", "more", "some", "very",
    "into", "such", "even", "most", "made", "only", "over", "like", "before",
    "through", "these", "should", "being", "many", "much", "than", "were", "them",
})

MAX_KEYWORDS = 5
MAX_RELEVANCE = 10

_NON_WORD_RE = re.compile(r"[^\w\s]")


def extract_keywords(content: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Most frequent words longer than three characters, minus stop words.

    Ties keep first-occurrence order.
    """
    words = _NON_WORD_RE.sub(" ", content.lower()).split()
    counts = Counter(w for w in words if len(w) > 3 and w not in STOP_WORDS)
    return [word for word, _ in counts.most_common(limit)]


def relevance_score(article: Mapping[str, Any], keywords: Sequence[str]) -> int:
    """+3 per keyword in the title, +2 in the description, +1 in the body; capped at 10."""
    title = str(article.get("title") or "").lower()
    description = str(article.get("description") or "").lower()
    body = str(article.get("content") or "").lower()

    score = 0
    for keyword in keywords:
        kw = keyword.lower()
        if kw in title:
            score += 3
        if kw in description:
            score += 2
        if kw in body:
            score += 1
    return min(MAX_RELEVANCE, score)
