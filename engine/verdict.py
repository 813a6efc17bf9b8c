"""Classification of a credibility score into reliable / questionable / unreliable."""

from __future__ import annotations

from schemas.response import Classification

RELIABLE_THRESHOLD = 0.75
QUESTIONABLE_THRESHOLD = 0.45


def classify(score: float) -> Classification:
    """Map a normalized (0-1) score to a classification.

    ≥ 0.75 → reliable
    ≥ 0.45 → questionable
    < 0.45 → unreliable

    Boundaries are inclusive for the higher class.
    """
    if score >= RELIABLE_THRESHOLD:
        return Classification.RELIABLE
    elif score >= QUESTIONABLE_THRESHOLD:
        return Classification.QUESTIONABLE
    else:
        return Classification.UNRELIABLE

