"""Thin wrapper around LLM providers (OpenAI / Azure / local-compatible)."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

from openai import AsyncAzureOpenAI, AsyncOpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import settings
from engine.errors import AdapterUnavailableError

logger = logging.getLogger("credence.llm")


class LLMError(AdapterUnavailableError):
    """The LLM call failed or returned something unusable."""

    def __init__(self, message: str) -> None:
        super().__init__("model", message)


def is_configured() -> bool:
    """Whether the selected provider has the credentials it needs."""
    provider = settings.llm_provider.lower()
    if provider == "azure":
        return bool(settings.azure_openai_endpoint and settings.azure_openai_api_key)
    if provider == "local":
        return bool(settings.local_llm_base_url)
    return bool(settings.openai_api_key)


@lru_cache(maxsize=1)
def _get_client() -> tuple[AsyncOpenAI, str]:
    """Return (async_client, model_name) for the configured provider, built on first use."""
    provider = settings.llm_provider.lower()

    if provider == "azure":
        client = AsyncAzureOpenAI(
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            api_version="2024-12-01-preview",
        )
        return client, settings.azure_openai_deployment
    if provider == "local":
        client = AsyncOpenAI(base_url=settings.local_llm_base_url, api_key="not-needed")
        return client, settings.local_llm_model

    return AsyncOpenAI(api_key=settings.openai_api_key), settings.openai_model


@retry(
    stop=stop_after_attempt(max(1, settings.llm_max_attempts)),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    retry=retry_if_exception_type(Exception),
    reraise=True,
)
async def chat_completion(
    system_prompt: str,
    user_message: str,
    *,
    temperature: float | None = None,
    response_format: dict[str, Any] | None = None,
) -> str:
    """Send a chat-completion request and return the assistant's text reply.

    Parameters
    ----------
    system_prompt : str
        The system-level instruction.
    user_message : str
        The content to analyse.
    temperature : float, optional
        Sampling temperature; defaults to ``settings.analysis_temperature``.
    response_format : dict, optional
        Passed through as ``response_format`` (e.g. JSON mode).

    Returns
    -------
    str
        Raw text content of the assistant reply.
    """
    client, model = _get_client()
    kwargs: dict[str, Any] = {
        "model": model,
        "temperature": temperature if temperature is not None else settings.analysis_temperature,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
    }
    if response_format is not None:
        kwargs["response_format"] = response_format

    try:
        response = await client.chat.completions.create(**kwargs)
    except Exception as exc:
        logger.warning("LLM call failed: %s", exc)
        raise

    content = response.choices[0].message.content
    if content is None:
        raise LLMError("LLM returned empty content.")
    return content.strip()


async def chat_completion_json(
    system_prompt: str,
    user_message: str,
    *,
    temperature: float | None = None,
) -> dict[str, Any]:
    """Like ``chat_completion`` but forces JSON output and parses it."""
    raw = await chat_completion(
        system_prompt,
        user_message,
        temperature=temperature,
        response_format={"type": "json_object"},
    )
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse LLM JSON: %s\nRaw: %s", exc, raw[:500])
        raise LLMError(f"LLM returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise LLMError("LLM returned a JSON value that is not an object.")
    return data
