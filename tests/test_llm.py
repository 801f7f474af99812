"""Tests for src.core.llm — provider routing and reply cleaning."""

import pytest
from unittest.mock import AsyncMock, patch

from src.core.errors import UpstreamCallFailure
from src.core.llm import LLMClient, clean_llm_response


class TestCleanLlmResponse:
    def test_strips_json_code_block(self):
        raw = '```json\n{"category": "task"}\n```'
        assert clean_llm_response(raw) == '{"category": "task"}'

    def test_strips_bare_code_block(self):
        assert clean_llm_response('```\n["a"]\n```') == '["a"]'

    def test_uppercase_json_tag(self):
        assert clean_llm_response('```JSON\n{}\n```') == "{}"

    def test_strips_whitespace(self):
        assert clean_llm_response("  hello  ") == "hello"

    def test_no_code_block(self):
        assert clean_llm_response('{"a": 1}') == '{"a": 1}'


class TestLLMClient:
    def test_default_model_per_provider(self):
        assert LLMClient("anthropic", "k").model == "claude-sonnet-4-20250514"
        assert LLMClient("OpenAI", "k").provider == "openai"

    def test_explicit_model(self):
        assert LLMClient("gemini", "k", model="gemini-2.5-pro").model == "gemini-2.5-pro"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM_PROVIDER"):
            LLMClient("llama", "k")

    def test_from_settings(self, settings):
        client = LLMClient.from_settings(settings)
        assert client.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_complete_routes_to_provider(self):
        provider = AsyncMock(return_value="hi there")
        with patch.dict("src.core.llm._PROVIDERS", {"anthropic": (provider, "test-model")}):
            client = LLMClient("anthropic", "secret")
            reply = await client.complete(system="sys", user_message="hello", max_tokens=64)

        assert reply == "hi there"
        provider.assert_awaited_once_with("secret", "test-model", "sys", "hello", 64)

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        provider = AsyncMock(side_effect=RuntimeError("rate limited"))
        with patch.dict("src.core.llm._PROVIDERS", {"anthropic": (provider, "test-model")}):
            client = LLMClient("anthropic", "secret")
            with pytest.raises(UpstreamCallFailure):
                await client.complete(system="sys", user_message="hello")
