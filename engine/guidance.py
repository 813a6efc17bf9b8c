"""User guidance — actionable next steps attached to every result."""

from __future__ import annotations

from schemas.response import Classification

_BY_CLASSIFICATION: dict[Classification, list[str]] = {
    Classification.UNRELIABLE: [
        "Cross-reference with multiple trusted news sources",
        "Verify claims through fact-checking organizations",
        "Check original sources and citations",
    ],
    Classification.QUESTIONABLE: [
        "Verify with additional reliable sources",
        "Look for supporting statistical evidence",
        "Consider the source's reputation and potential bias",
    ],
    Classification.RELIABLE: [
        "Content shows strong credibility indicators",
        "Cross-reference with other reputable sources for completeness",
    ],
}

_BASIC: dict[Classification, list[str]] = {
    Classification.UNRELIABLE: ["Cross-reference with trusted sources", "Verify with fact-checkers"],
    Classification.QUESTIONABLE: ["Seek additional verification", "Check source credibility"],
    Classification.RELIABLE: ["Content appears credible", "Always verify with multiple sources"],
}


def generate_guidance(
    classification: Classification,
    *,
    supporting_articles: int = 0,
    fact_check_articles: int = 0,
    external: bool = True,
) -> list[str]:
    """Return suggestions for *classification*.

    ``external`` selects the richer wording used when adapter data backed the
    score; the offline path gets the short list.
    """
    if not external:
        return list(_BASIC[classification])

    suggestions = list(_BY_CLASSIFICATION[classification])
    if supporting_articles > 0:
        suggestions.append(f"Found {supporting_articles} related news articles for verification")
    if fact_check_articles > 0:
        suggestions.append(f"{fact_check_articles} fact-check articles available for review")
    return suggestions
