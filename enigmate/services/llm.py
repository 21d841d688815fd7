"""Gemini access shared by the judge, the Master chat and translation."""

import asyncio
import json
import logging
import time
from typing import Any, Optional
from google import genai
from google.genai import types
from enigmate.config import GEMINI_API_KEY

logger = logging.getLogger(__name__)

_client: Optional[genai.Client] = None


class GeminiBusyError(Exception):
    """Raised when Gemini keeps refusing requests (rate limit, overload or timeout)."""


def get_gemini_client() -> Optional[genai.Client]:
    """Return the shared Gemini client, or None when no API key is configured."""
    global _client
    if not GEMINI_API_KEY:
        return None
    if _client is None:
        _client = genai.Client(api_key=GEMINI_API_KEY)
    return _client


def _is_retryable(error: Exception) -> tuple[bool, bool]:
    """Return (retryable, rate_limited) for an error raised by the SDK."""
    text = str(error)
    lowered = text.lower()
    rate_limited = (
        "429" in text
        or "resource exhausted" in lowered
        or "quota" in lowered
        or "rate limit" in lowered
    )
    retryable = rate_limited or "503" in text or "unavailable" in lowered or "overloaded" in lowered

    status_code = getattr(error, "status_code", None) or getattr(error, "code", None)
    if status_code in (429, 503):
        retryable = True
        rate_limited = status_code == 429
    return retryable, rate_limited


def call_gemini_with_retry(
    client,
    model: str,
    contents,
    config: Optional[types.GenerateContentConfig] = None,
    max_retries: int = 3,
    initial_delay: float = 1,
    timeout: float = 60,
):
    """
    Call Gemini with retry logic for 503/429 errors and an overall timeout.

    Args:
        client: Gemini client instance
        model: Model name to use
        contents: Prompt string or list of Content objects
        config: Optional generation config (system instruction, temperature, mime type)
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        timeout: Maximum time in seconds for the entire operation

    Returns:
        Response from Gemini API

    Raises:
        GeminiBusyError: If retries are exhausted on a rate limit, or the timeout is hit
        Exception: Any non-retryable SDK error, unchanged
    """
    start_time = time.time()

    for attempt in range(max_retries + 1):
        if time.time() - start_time > timeout:
            raise GeminiBusyError("Gemini request timed out")

        try:
            return client.models.generate_content(model=model, contents=contents, config=config)
        except Exception as e:
            retryable, rate_limited = _is_retryable(e)
            if not retryable or attempt >= max_retries:
                if rate_limited:
                    raise GeminiBusyError("Gemini is rate limiting requests") from e
                raise

            base_delay = initial_delay * 2 if rate_limited else initial_delay
            delay = min(base_delay * (2 ** attempt), 10)  # Cap at 10 seconds
            if time.time() - start_time + delay > timeout:
                raise GeminiBusyError("Gemini request timed out") from e

            logger.warning(
                "[Gemini] Retrying in %ss (attempt %d/%d) - %s",
                delay, attempt + 1, max_retries, str(e)[:100],
            )
            time.sleep(delay)

    raise GeminiBusyError("Gemini is unavailable")


async def call_gemini_with_retry_async(client, model, contents, config=None, max_retries=3, initial_delay=1, timeout=60):
    """Async wrapper for call_gemini_with_retry to avoid blocking the event loop."""
    return await asyncio.to_thread(
        call_gemini_with_retry,
        client, model, contents, config, max_retries, initial_delay, timeout,
    )


def extract_first_json_object(text: str) -> dict:
    """Extract the first JSON object from a model response."""
    if not isinstance(text, str):
        raise ValueError("Model response was not text")
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < 0 or end <= start:
        raise ValueError("No JSON object found in model response")
    payload = json.loads(text[start : end + 1])
    if not isinstance(payload, dict):
        raise ValueError("Model response was not a JSON object")
    return payload


def json_config(system_instruction: str, temperature: float) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=system_instruction,
        temperature=temperature,
        response_mime_type="application/json",
    )


def text_config(system_instruction: str, temperature: float) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=system_instruction,
        temperature=temperature,
    )


def chat_turn(role: str, text: str) -> types.Content:
    """Build one conversation turn; Gemini names the assistant role "model"."""
    return types.Content(role=role, parts=[types.Part(text=text)])


def dump_prompt(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)
