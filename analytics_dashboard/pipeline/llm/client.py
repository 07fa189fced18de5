"""
LLM client for OpenAI-compatible chat completions
"""
import asyncio
import logging
from typing import Optional

import httpx

from analytics_dashboard.core.config import settings
from analytics_dashboard.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


async def call_llm_async(
    messages: list[dict],
    temperature: float = 0.1,
    max_tokens: int = 800,
    attempts: int = 3,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    model: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Call the chat completions endpoint with retry
    Returns content string directly

    Raises:
        ConfigurationError: If no API key is configured (no request is sent)
        httpx.HTTPError: If every attempt failed
    """
    api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
    if not api_key:
        raise ConfigurationError(
            "OpenAI API key not configured. Please set OPENAI_API_KEY environment variable."
        )

    url = f"{(base_url or settings.OPENAI_BASE_URL).rstrip('/')}/chat/completions"

    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}"
    }

    payload = {
        "model": model or settings.OPENAI_MODEL,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens
    }

    for attempt in range(attempts):
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=transport) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
                return data["choices"][0]["message"]["content"] or ""
        except Exception as e:
            if attempt == attempts - 1:
                logger.error(f"LLM call failed after {attempts} attempt(s): {e}")
                raise
            wait_time = 2 ** attempt
            logger.warning(f"Attempt {attempt + 1} failed, retrying in {wait_time}s...")
            await asyncio.sleep(wait_time)
