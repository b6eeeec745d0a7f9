from __future__ import annotations

from typing import Any, Awaitable, Callable

from openai import AsyncOpenAI

from app import config

# Any coroutine function with this shape can stand in for the model.
AskJson = Callable[[str], Awaitable[Any]]


def _get_client() -> AsyncOpenAI:
    api_key = config.OPENAI_API_KEY
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY not set")
    return AsyncOpenAI(api_key=api_key)


def is_configured() -> bool:
    return bool(config.OPENAI_API_KEY)


async def chat_json(prompt: str) -> str:
    """Ask the model for a JSON object; returns the raw message content."""
    client = _get_client().with_options(timeout=config.LLM_TIMEOUT_SECONDS)
    rsp = await client.chat.completions.create(
        model=config.LLM_MODEL,
        messages=[{"role": "user", "content": prompt}],
        response_format={"type": "json_object"},
        temperature=0.2,
    )
    return rsp.choices[0].message.content or ""
