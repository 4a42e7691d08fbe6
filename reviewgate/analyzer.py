"""
Analysis service adapter.

Sends one file at a time to the configured LLM provider and interprets the
raw response. Provider failures are raised as ReviewerError subclasses; the
dispatcher turns them into "no verdict" for that file.
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional

from reviewgate.config import LLMSettings
from reviewgate.interpreter import interpret
from reviewgate.models import AnalysisResult, BranchPolicy
from reviewgate.prompts import SYSTEM_PROMPT, build_review_prompt

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_ENDPOINT = "http://localhost:8000/v1/chat/completions"


class ReviewerError(Exception):
    """Base exception for analysis service errors."""
    pass


class LLMTimeoutError(ReviewerError):
    """LLM call timed out."""
    pass


class LLMInvalidOutputError(ReviewerError):
    """LLM returned output that could not be used at all."""
    pass


async def call_llm(prompt: str, settings: LLMSettings) -> str:
    """
    Send a prompt to the configured provider and return the raw text.

    Failure modes:
    - Timeout -> raises LLMTimeoutError
    - Unusable response -> raises LLMInvalidOutputError
    - API error -> raises ReviewerError
    """
    try:
        if settings.provider == "openai":
            return await _call_openai(prompt, settings)
        elif settings.provider == "anthropic":
            return await _call_anthropic(prompt, settings)
        elif settings.provider == "local":
            return await _call_local(prompt, settings)
        else:
            raise ReviewerError(f"Unsupported LLM provider: {settings.provider}")

    except ReviewerError:
        raise
    except Exception as e:
        raise ReviewerError(f"LLM call failed: {str(e)}") from e


async def _call_openai(prompt: str, settings: LLMSettings) -> str:
    """Call OpenAI chat completions."""
    from openai import AsyncOpenAI

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ReviewerError("OPENAI_API_KEY not set")

    client = AsyncOpenAI(api_key=api_key, timeout=settings.timeout)
    try:
        response = await client.chat.completions.create(
            model=settings.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    except Exception as e:
        if "timeout" in str(e).lower() or "timed out" in str(e).lower():
            raise LLMTimeoutError("OpenAI API timeout") from e
        status = getattr(e, "status_code", None)
        if status == 401:
            raise ReviewerError("OpenAI API key is invalid or expired") from e
        if status == 429:
            raise ReviewerError("OpenAI API rate limit exceeded") from e
        raise ReviewerError(f"OpenAI API error: {str(e)}") from e
    finally:
        await client.close()

    if not response.choices:
        raise LLMInvalidOutputError("OpenAI returned no choices")
    return response.choices[0].message.content or ""


async def _call_anthropic(prompt: str, settings: LLMSettings) -> str:
    """Call Anthropic through the LangChain chat model."""
    from langchain_anthropic import ChatAnthropic
    from langchain_core.messages import HumanMessage, SystemMessage

    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise ReviewerError("ANTHROPIC_API_KEY not set")

    llm = ChatAnthropic(
        model=settings.model,
        api_key=api_key,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.timeout,
    )

    # The prompt already carries the preamble; the system message pins the output format
    messages = [
        SystemMessage(content="Respond with JSON only."),
        HumanMessage(content=prompt),
    ]

    try:
        response = await llm.ainvoke(messages)
    except Exception as e:
        raise ReviewerError(f"Anthropic (LangChain) error: {str(e)}") from e

    content = response.content
    if isinstance(content, list):
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return content or ""


def _post_local(endpoint: str, payload: dict, timeout: int) -> str:
    import requests

    try:
        response = requests.post(endpoint, json=payload, timeout=timeout)
        response.raise_for_status()
        return response.json()["choices"][0]["message"]["content"] or ""
    except requests.Timeout as e:
        raise LLMTimeoutError("Local LLM timeout") from e
    except (KeyError, IndexError, ValueError) as e:
        raise LLMInvalidOutputError(f"Local LLM returned an unexpected payload: {e}") from e
    except requests.RequestException as e:
        raise ReviewerError(f"Local LLM error: {str(e)}") from e


async def _call_local(prompt: str, settings: LLMSettings) -> str:
    """Call a local OpenAI-compatible server (e.g., Ollama, vLLM)."""
    endpoint = os.getenv("LOCAL_LLM_ENDPOINT", DEFAULT_LOCAL_ENDPOINT)
    payload = {
        "model": settings.model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    return await asyncio.to_thread(_post_local, endpoint, payload, settings.timeout)


def make_analyzer(
    settings: LLMSettings,
    policy: BranchPolicy,
    system_prompt: Optional[str] = None,
    llm_call: Optional[Callable[[str, LLMSettings], Awaitable[str]]] = None,
) -> Callable[[str, str], Awaitable[AnalysisResult]]:
    """
    Build the per-file analyze(path, content) callable for a branch.

    `llm_call` defaults to call_llm; tests pass a fake.
    """
    preamble = system_prompt or settings.system_prompt or SYSTEM_PROMPT
    send = llm_call or call_llm

    async def analyze(path: str, content: str) -> AnalysisResult:
        prompt = build_review_prompt(preamble, policy.review_criteria, path, content)
        raw = await send(prompt, settings)
        if not raw:
            logger.warning(f"Empty response from analysis service for {path}")
        return interpret(raw)

    return analyze
