"""
LLM configuration for the Picture Book Generator.

Includes:
- 120s timeout per LLM call to fail fast on hanging connections
- A single retry after a rate limit, waiting exactly the retry-after time
"""

import asyncio
import functools
import logging
import os
from typing import Optional

import dspy
from dotenv import load_dotenv
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Timeout for LLM calls (seconds)
LLM_TIMEOUT = 120

# Wait used when a 429 carries no usable retry-after header (seconds)
DEFAULT_RETRY_AFTER = 60.0

# Provider priority: first key found wins
_PROVIDERS = [
    ("GOOGLE_API_KEY", "gemini/gemini-3-pro-preview", 4096),
    ("ANTHROPIC_API_KEY", "anthropic/claude-sonnet-4-5-20250929", 4096),
    ("OPENAI_API_KEY", "openai/gpt-5.2", 16000),  # reasoning models require >= 16000
]


def get_inference_model_name(model_id: Optional[str] = None) -> str:
    """Get the model that will be used, honoring an explicit override."""
    if model_id:
        return model_id
    for env_key, model, _ in _PROVIDERS:
        if os.getenv(env_key):
            return model
    return "unknown"


def get_inference_lm(model_id: Optional[str] = None) -> dspy.LM:
    """
    Get the inference LM for book generation.

    Priority order:
    1. Gemini 3 Pro (GOOGLE_API_KEY)
    2. Claude Sonnet 4.5 (ANTHROPIC_API_KEY)
    3. GPT 5.2 (OPENAI_API_KEY)

    An explicit model_id (from PipelineConfig) overrides the default model
    for whichever provider key is configured.
    """
    for env_key, default_model, max_tokens in _PROVIDERS:
        api_key = os.getenv(env_key)
        if api_key:
            return dspy.LM(
                model_id or default_model,
                api_key=api_key,
                max_tokens=max_tokens,
                temperature=1.0,
                timeout=LLM_TIMEOUT,
                num_retries=0,  # rate_limit_retry owns the single retry
            )
    raise ValueError(
        "No API key found. Set GOOGLE_API_KEY, ANTHROPIC_API_KEY, or OPENAI_API_KEY in .env"
    )


# =============================================================================
# Rate limit handling
# =============================================================================


def _status_code(error: BaseException) -> Optional[int]:
    # litellm errors expose status_code, google-genai errors expose code
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def _response_headers(error: BaseException):
    headers = getattr(error, "response_headers", None)
    if headers is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
    return headers or {}


def is_rate_limited(error: BaseException) -> bool:
    """True if the error is an HTTP 429 from a model provider."""
    return _status_code(error) == 429


def get_retry_after(error: BaseException) -> float:
    """Seconds to wait before retrying, from the retry-after header."""
    headers = _response_headers(error)
    raw = headers.get("retry-after") or headers.get("Retry-After")
    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
    return max(seconds, 0.0)


def _wait_retry_after(retry_state) -> float:
    return get_retry_after(retry_state.outcome.exception())


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def rate_limit_retry(func):
    """
    Retry an async generation call once after a rate limit.

    Sleeps exactly the provider's retry-after duration, then makes one more
    attempt. Any other error, or a second rate limit, is raised to the caller.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        retrying = AsyncRetrying(
            stop=stop_after_attempt(2),
            wait=_wait_retry_after,
            retry=retry_if_exception(is_rate_limited),
            sleep=_sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await func(*args, **kwargs)

    return wrapper
