"""Publisher reputation table.

A fixed seed table of well-known outlets plus a suffix/keyword heuristic for
everything else.  Estimated profiles are returned to the caller but never
written back into the table.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import urlsplit

from schemas.response import PublisherProfile

# ── Seed data ──────────────────────────────────────────────────────────

_KNOWN_PUBLISHERS: Mapping[str, Mapping[str, Any]] = MappingProxyType({
    "reuters.com": {
        "publisher": "Reuters", "founding_year": 1851, "headquarters": "London, UK",
        "credibility_score": 92, "bias": "Center", "factual_reporting": "Very High",
        "reputation_score": 95, "media_bias_rating": "Least Biased",
        "primary_topics": ["Breaking News", "Business", "World News"],
    },
    "ap.org": {
        "publisher": "Associated Press", "founding_year": 1846, "headquarters": "New York, USA",
        "credibility_score": 90, "bias": "Center", "factual_reporting": "Very High",
        "reputation_score": 94, "media_bias_rating": "Least Biased",
        "primary_topics": ["Breaking News", "Politics", "Sports"],
    },
    "bbc.com": {
        "publisher": "BBC News", "founding_year": 1922, "headquarters": "London, UK",
        "credibility_score": 85, "bias": "Center", "factual_reporting": "High",
        "reputation_score": 88, "media_bias_rating": "Least Biased",
        "primary_topics": ["World News", "UK News", "Technology"],
    },
    "npr.org": {
        "publisher": "NPR", "founding_year": 1970, "headquarters": "Washington D.C., USA",
        "credibility_score": 82, "bias": "Lean Left", "factual_reporting": "High",
        "reputation_score": 85, "media_bias_rating": "Left-Center",
        "primary_topics": ["Politics", "Culture", "Science"],
    },
    "bloomberg.com": {
        "publisher": "Bloomberg", "founding_year": 1981, "headquarters": "New York, USA",
        "credibility_score": 88, "bias": "Center", "factual_reporting": "High",
        "reputation_score": 88, "media_bias_rating": "Least Biased",
        "primary_topics": ["Business", "Finance", "Markets"],
    },
    "nytimes.com": {
        "publisher": "The New York Times", "founding_year": 1851, "headquarters": "New York, USA",
        "credibility_score": 82, "bias": "Lean Left", "factual_reporting": "High",
        "reputation_score": 85, "media_bias_rating": "Left-Center",
        "primary_topics": ["Politics", "Business", "Culture"],
    },
    "washingtonpost.com": {
        "publisher": "The Washington Post", "founding_year": 1877, "headquarters": "Washington D.C., USA",
        "credibility_score": 80, "bias": "Lean Left", "factual_reporting": "High",
        "reputation_score": 83, "media_bias_rating": "Left-Center",
        "primary_topics": ["Politics", "National News", "Investigations"],
    },
    "theguardian.com": {
        "publisher": "The Guardian", "founding_year": 1821, "headquarters": "London, UK",
        "credibility_score": 75, "bias": "Lean Left", "factual_reporting": "High",
        "reputation_score": 80, "media_bias_rating": "Left-Center",
        "primary_topics": ["World News", "Politics", "Environment"],
    },
    "wsj.com": {
        "publisher": "The Wall Street Journal", "founding_year": 1889, "headquarters": "New York, USA",
        "credibility_score": 83, "bias": "Lean Right", "factual_reporting": "High",
        "reputation_score": 86, "media_bias_rating": "Right-Center",
        "primary_topics": ["Business", "Finance", "Economics"],
    },
    "cnn.com": {
        "publisher": "CNN", "founding_year": 1980, "headquarters": "Atlanta, USA",
        "credibility_score": 72, "bias": "Lean Left", "factual_reporting": "Mixed",
        "reputation_score": 70, "media_bias_rating": "Left-Center",
        "primary_topics": ["Breaking News", "Politics", "International"],
    },
    "cbsnews.com": {
        "publisher": "CBS News", "credibility_score": 75, "bias": "Lean Left",
        "factual_reporting": "High", "reputation_score": 75,
    },
    "nbcnews.com": {
        "publisher": "NBC News", "credibility_score": 75, "bias": "Lean Left",
        "factual_reporting": "High", "reputation_score": 75,
    },
    "foxnews.com": {
        "publisher": "Fox News", "founding_year": 1996, "headquarters": "New York, USA",
        "credibility_score": 65, "bias": "Lean Right", "factual_reporting": "Mixed",
        "reputation_score": 68, "media_bias_rating": "Right",
        "primary_topics": ["Politics", "Opinion", "Breaking News"],
    },
    "dailymail.co.uk": {
        "publisher": "Daily Mail", "credibility_score": 45, "bias": "Right",
        "factual_reporting": "Low", "reputation_score": 40,
    },
    "breitbart.com": {
        "publisher": "Breitbart", "credibility_score": 35, "bias": "Right",
        "factual_reporting": "Low", "reputation_score": 30,
    },
    "infowars.com": {
        "publisher": "InfoWars", "credibility_score": 15, "bias": "Right",
        "factual_reporting": "Very Low", "reputation_score": 10,
    },
})

# Outlet names (as reported by the news search) that count as reputable corroboration.
REPUTABLE_OUTLETS: frozenset[str] = frozenset({
    "Reuters", "Associated Press", "BBC", "NPR", "Bloomberg",
})

# Domains that count as reputable cross references during source verification.
REPUTABLE_DOMAINS: frozenset[str] = frozenset({"reuters.com", "ap.org", "bbc.com", "npr.org"})


# ── Helpers ────────────────────────────────────────────────────────────

def domain_from_url(url: str) -> str:
    """Normalise a URL or bare host to a lowercase domain without ``www.``."""
    raw = url.strip()
    if "://" not in raw:
        raw = "//" + raw
    host = (urlsplit(raw).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def _estimate_credibility(domain: str) -> int:
    if domain.endswith(".gov") or domain.endswith(".edu"):
        return 85
    if domain.endswith(".org"):
        return 75
    if "news" in domain or "media" in domain:
        return 65
    return 55


def _estimate_factual_reporting(domain: str) -> str:
    if domain.endswith(".gov") or domain.endswith(".edu"):
        return "High"
    return "Mixed"


def _publisher_name(domain: str) -> str:
    return domain.split(".")[0].upper().replace("-", " ").replace("_", " ")


# ── Lookup ─────────────────────────────────────────────────────────────

def lookup(domain: str) -> PublisherProfile:
    """Return the reputation profile for *domain* (a host or a full URL)."""
    key = domain_from_url(domain)
    known = _KNOWN_PUBLISHERS.get(key)
    if known is not None:
        return PublisherProfile(domain=key, known=True, **known)

    credibility = _estimate_credibility(key)
    return PublisherProfile(
        domain=key,
        publisher=_publisher_name(key),
        credibility_score=credibility,
        bias="Mixed",
        factual_reporting=_estimate_factual_reporting(key),
        reputation_score=credibility - 5,
        known=False,
    )


def is_reputable_outlet(source_name: str) -> bool:
    return source_name.strip() in REPUTABLE_OUTLETS
