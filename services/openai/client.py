from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from openai import AsyncOpenAI

from config.app_config import AppConfig

_client: Optional[AsyncOpenAI] = None
_client_key: Optional[str] = None


def get_openai_client(config: Optional[AppConfig] = None) -> Optional[AsyncOpenAI]:
    """
    Shared async OpenAI client, or None when no API key is configured.
    Rebuilt only when the key changes.
    """
    global _client, _client_key

    cfg = config or AppConfig.from_env()
    if not cfg.openai_api_key:
        return None

    if _client is None or _client_key != cfg.openai_api_key:
        _client = AsyncOpenAI(api_key=cfg.openai_api_key, timeout=cfg.openai_timeout_s)
        _client_key = cfg.openai_api_key

    return _client


def openai_factory_for(config: AppConfig) -> Callable[[], Optional[AsyncOpenAI]]:
    return lambda: get_openai_client(config)


async def complete_text(client: Any, *, model: str, max_tokens: int, messages: List[Dict[str, str]]) -> str:
    """Single chat completion; returns the first choice's text or ''."""
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        messages=messages,
    )
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return (getattr(message, "content", None) or "") if message is not None else ""
