"""
Second Brain — LLM Provider Abstraction.

`LLMClient.complete()` routes one system + user prompt to the configured
provider and returns the reply text. The client is built once at startup
and injected into every service that talks to a model.
Supports: anthropic (default), gemini, openai, cohere.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from src.core.errors import UpstreamCallFailure

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

# Type alias for provider implementations
_ProviderFn = Callable[[str, str, str, str, int], Awaitable[str]]

# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


async def _complete_anthropic(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    import anthropic

    client = anthropic.AsyncAnthropic(api_key=api_key)
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=[{"role": "user", "content": user_message}],
    )
    block = response.content[0] if response.content else None
    return block.text if block is not None and block.type == "text" else ""


async def _complete_gemini(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    gm = genai.GenerativeModel(
        model_name=model,
        system_instruction=system,
    )
    response = await gm.generate_content_async(
        user_message,
        generation_config=genai.types.GenerationConfig(max_output_tokens=max_tokens),
    )
    return response.text


async def _complete_openai(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=api_key)
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
    )
    return response.choices[0].message.content or ""


async def _complete_cohere(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    import cohere

    client = cohere.AsyncClientV2(api_key=api_key)
    response = await client.chat(
        model=model,
        max_tokens=max_tokens,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
    )
    return response.message.content[0].text


_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "anthropic": (_complete_anthropic, "claude-sonnet-4-20250514"),
    "gemini":    (_complete_gemini,    "gemini-2.0-flash"),
    "openai":    (_complete_openai,    "gpt-4o-mini"),
    "cohere":    (_complete_cohere,    "command-a-03-2025"),
}


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class LLMClient:
    """A configured connection to one hosted model."""

    def __init__(self, provider: str, api_key: str, model: str = "") -> None:
        provider_name = provider.lower()
        if provider_name not in _PROVIDERS:
            raise ValueError(
                f"Unknown LLM_PROVIDER={provider_name!r}. "
                f"Supported: {', '.join(_PROVIDERS)}"
            )
        self._provider_fn, default_model = _PROVIDERS[provider_name]
        self.provider = provider_name
        self.model = model or default_model
        self._api_key = api_key
        logger.info("LLM provider: %s, model: %s", self.provider, self.model)

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMClient:
        return cls(settings.LLM_PROVIDER, settings.LLM_API_KEY, settings.LLM_MODEL)

    async def complete(self, system: str, user_message: str, max_tokens: int = 1024) -> str:
        """Send a prompt to the provider and return the response text.

        Raises UpstreamCallFailure on any provider error.
        """
        try:
            return await self._provider_fn(
                self._api_key, self.model, system, user_message, max_tokens,
            )
        except Exception as exc:
            logger.error("LLM call to %s failed: %s", self.provider, exc)
            raise UpstreamCallFailure(f"{self.provider} request failed") from exc


# ---------------------------------------------------------------------------
# Response cleaning
# ---------------------------------------------------------------------------


def clean_llm_response(raw_text: str) -> str:
    """Remove markdown code fence delimiters from an LLM's raw response."""
    cleaned_text = raw_text.strip()
    if cleaned_text.startswith("```"):
        cleaned_text = cleaned_text.removeprefix("```")
        if cleaned_text[:4].lower() == "json":
            cleaned_text = cleaned_text[4:]
    if cleaned_text.endswith("```"):
        cleaned_text = cleaned_text.removesuffix("```")
    return cleaned_text.strip()
