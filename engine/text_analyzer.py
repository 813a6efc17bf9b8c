"""Heuristic text analysis.

Extracts lightweight textual features (emotional wording, clickbait phrases,
absolutist language, numbers, quotes, links) and turns them into a base
credibility score in [0.1, 1.0].  No model, no I/O: identical input always
yields an identical score, so the analyzer doubles as the offline fallback.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from engine.errors import InvalidInputError

MIN_CONTENT_LENGTH = 10

# ── Phrase lists ───────────────────────────────────────────────────────

# "breaking" and "urgent" are ordinary news vocabulary and stay out of this list.
EMOTIONAL_WORDS: tuple[str, ...] = (
    "shocking", "unbelievable", "amazing", "terrible", "awful", "incredible",
    "devastating", "outrageous", "scandal", "explosive",
)

CLICKBAIT_PHRASES: tuple[str, ...] = (
    "you won't believe", "this will shock you", "doctors hate", "one simple trick",
    "what happens next", "the truth they don't want", "secret that",
    "they don't want you to know",
)

ABSOLUTIST_WORDS: tuple[str, ...] = (
    "always", "never", "all", "everyone", "nobody", "everything", "nothing",
    "totally", "completely", "absolutely", "definitely", "certainly",
)

_CAPS_RE = re.compile(r"[A-Z]{3,}")
_NUMBER_RE = re.compile(r"\d+")
_QUOTE_RE = re.compile(r"[\"']")
_URL_RE = re.compile(r"https?://")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class TextFeatures:
    has_emotional_language: bool
    has_clickbait: bool
    has_biased_language: bool
    has_capitalization: bool
    has_numbers: bool
    has_quotes: bool
    has_urls: bool
    word_count: int
    avg_sentence_length: float


@dataclass(frozen=True)
class TextAnalysis:
    features: TextFeatures
    base_score: float


# ── Feature detectors ──────────────────────────────────────────────────

def _count_matches(text_lower: str, words: tuple[str, ...]) -> int:
    """Number of distinct list entries present as substrings."""
    return sum(1 for w in words if w in text_lower)


def has_emotional_language(text: str) -> bool:
    return _count_matches(text.lower(), EMOTIONAL_WORDS) >= 2


def has_clickbait(text: str) -> bool:
    text_lower = text.lower()
    return any(phrase in text_lower for phrase in CLICKBAIT_PHRASES)


def has_biased_language(text: str) -> bool:
    return _count_matches(text.lower(), ABSOLUTIST_WORDS) > 2


def extract_features(text: str) -> TextFeatures:
    words = text.lower().split()
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    return TextFeatures(
        has_emotional_language=has_emotional_language(text),
        has_clickbait=has_clickbait(text),
        has_biased_language=has_biased_language(text),
        has_capitalization=bool(_CAPS_RE.search(text)),
        has_numbers=bool(_NUMBER_RE.search(text)),
        has_quotes=bool(_QUOTE_RE.search(text)),
        has_urls=bool(_URL_RE.search(text)),
        word_count=len(words),
        avg_sentence_length=len(words) / len(sentences) if sentences else float(len(words)),
    )


# ── Scoring ────────────────────────────────────────────────────────────

def base_score(features: TextFeatures) -> float:
    """Additive heuristic score, clamped to [0.1, 1.0].

    Start: 0.6
      numbers present            → +0.10
      quotes present             → +0.10
      more than 100 words        → +0.05
      no emotional language      → +0.10   (present → −0.10)
      no clickbait               → +0.15   (present → −0.20)
      absolutist language        → −0.05
    """
    score = 0.6

    if features.has_numbers:
        score += 0.1
    if features.has_quotes:
        score += 0.1
    if features.word_count > 100:
        score += 0.05
    if not features.has_emotional_language:
        score += 0.1
    if not features.has_clickbait:
        score += 0.15
    if features.has_emotional_language:
        score -= 0.1
    if features.has_clickbait:
        score -= 0.2
    if features.has_biased_language:
        score -= 0.05

    return max(0.1, min(1.0, score))


def validate_content(text: str | None) -> str:
    """Return *text* unchanged, or raise ``InvalidInputError`` if it is too short."""
    if not text or len(text.strip()) < MIN_CONTENT_LENGTH:
        raise InvalidInputError(
            f"Content too short for meaningful analysis (minimum {MIN_CONTENT_LENGTH} characters)."
        )
    return text


def analyze(text: str) -> TextAnalysis:
    """Extract features from *text* and compute its base score."""
    validate_content(text)
    features = extract_features(text)
    return TextAnalysis(features=features, base_score=base_score(features))


def findings(features: TextFeatures) -> list[str]:
    found: list[str] = []
    if features.has_numbers:
        found.append("Includes statistical information")
    if features.has_quotes:
        found.append("Contains quoted sources")
    return found


def red_flags(features: TextFeatures) -> list[str]:
    flags: list[str] = []
    if features.has_emotional_language:
        flags.append("Contains emotional language")
    if features.has_clickbait:
        flags.append("Uses clickbait-style phrases")
    if features.has_biased_language:
        flags.append("Relies on absolutist language")
    return flags

