"""Fetch a web page and reduce it to plain article text."""

from __future__ import annotations

import logging
import re

import httpx

from config import settings
from engine.errors import InvalidInputError

logger = logging.getLogger("credence.content_fetcher")

MIN_EXTRACTED_CHARS = 100
MAX_EXTRACTED_CHARS = 2000

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.I)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def html_to_text(html: str) -> str:
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()


async def extract_from_url(url: str) -> str:
    """Download *url* and return up to 2000 characters of its visible text.

    Raises ``InvalidInputError`` if the page cannot be fetched or yields too
    little text to analyse.
    """
    try:
        async with httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=settings.adapter_timeout,
            follow_redirects=True,
        ) as client:
            r = await client.get(url)
            r.raise_for_status()
            html = r.text
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        raise InvalidInputError(f"Failed to fetch content from URL: {exc}") from exc

    text = html_to_text(html)
    if len(text) < MIN_EXTRACTED_CHARS:
        raise InvalidInputError("Unable to extract sufficient content from URL.")
    return text[:MAX_EXTRACTED_CHARS]
