"""Language-model analysis adapter."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from engine.errors import AdapterUnavailableError
from prompts.system_prompt import FACT_CHECK_ANALYSIS_PROMPT
from schemas.signals import ModelAnalysis
from services.llm_service import chat_completion_json, is_configured

logger = logging.getLogger("credence.adapters.model")


async def analyze_with_model(content: str, url: str | None = None) -> ModelAnalysis:
    """Ask the LLM for a credibility assessment of *content*.

    Raises ``AdapterUnavailableError`` when the provider is not configured, the
    call fails, or the reply does not have the expected shape.
    """
    if not is_configured():
        raise AdapterUnavailableError("model", "LLM provider not configured")

    user_msg = f'Content to analyze:\n"{content}"'
    if url:
        user_msg += f"\n\nSource URL: {url}"

    try:
        data = await chat_completion_json(FACT_CHECK_ANALYSIS_PROMPT, user_msg)
    except AdapterUnavailableError:
        raise
    except Exception as exc:
        raise AdapterUnavailableError("model", str(exc)) from exc

    try:
        analysis = ModelAnalysis.model_validate(data)
    except ValidationError as exc:
        raise AdapterUnavailableError("model", f"unexpected response shape: {exc}") from exc

    logger.info(
        "Model analysis — score %.0f, %d finding(s), %d red flag(s)",
        analysis.credibility_score, len(analysis.key_findings), len(analysis.red_flags),
    )
    return analysis
