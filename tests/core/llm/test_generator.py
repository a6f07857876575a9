"""Tests for the LLM text generator."""

import json

import httpx
import pytest

from compass_bridge.core.config.settings import LlmSettings
from compass_bridge.core.http.client import ResilientFetchClient
from compass_bridge.core.http.config import FetchConfig
from compass_bridge.core.llm.generator import (
    DEFAULT_FALLBACK,
    LlmTextGenerator,
    create_text_generator,
)
from compass_bridge.core.mcp.exceptions import NetworkError


def generator_with(handler, provider="anthropic", credential="sk-real"):
    client = ResilientFetchClient(
        FetchConfig(base_url="https://llm.example.com", credential=credential),
        transport=httpx.MockTransport(handler),
    )
    return LlmTextGenerator(provider, "test-model", client, max_tokens=256)


class TestLlmTextGenerator:
    """Test request shapes and response parsing per provider."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_anthropic_request_and_response(self):
        # Arrange
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json={"content": [{"type": "text", "text": "Hello"}, {"type": "tool_use"}]},
            )

        generator = generator_with(handler)

        # Act
        text = await generator.generate("Say hi", system="Be brief")

        # Assert
        assert text == "Hello"
        body = json.loads(seen[0].content)
        assert seen[0].url.path == "/v1/messages"
        assert body["system"] == "Be brief"
        assert body["max_tokens"] == 256
        assert body["messages"] == [{"role": "user", "content": "Say hi"}]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_openai_request_and_response(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200, json={"choices": [{"message": {"content": "Hi there"}}]}
            )

        generator = generator_with(handler, provider="openai")

        text = await generator.generate("Say hi", system="Be brief")

        assert text == "Hi there"
        body = json.loads(seen[0].content)
        assert seen[0].url.path == "/v1/chat/completions"
        assert body["messages"][0] == {"role": "system", "content": "Be brief"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_shape_raises(self):
        generator = generator_with(lambda request: httpx.Response(200, json={"x": 1}))

        with pytest.raises(NetworkError, match="Unexpected Anthropic response"):
            await generator.generate("hi")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_without_key_returns_fallback(self):
        def handler(request):
            raise AssertionError("network must not be used")

        generator = generator_with(handler, credential="")

        assert generator.uses_mock is True
        assert await generator.generate("hi", fallback="canned") == "canned"
        assert await generator.generate("hi") == DEFAULT_FALLBACK

    @pytest.mark.unit
    def test_unsupported_provider_rejected(self):
        with pytest.raises(ValueError):
            generator_with(lambda request: httpx.Response(200), provider="llama")


class TestCreateTextGenerator:
    @pytest.mark.unit
    def test_anthropic_uses_api_key_header(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

        generator = create_text_generator(LlmSettings(_env_file=None))

        config = generator._client.config
        assert generator.provider == "anthropic"
        assert config.auth_headers() == {"x-api-key": "sk-ant"}
        assert config.default_headers["anthropic-version"] == "2023-06-01"

    @pytest.mark.unit
    def test_openai_uses_bearer_auth(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-oai")
        monkeypatch.setenv("LLM_MODEL", "gpt-4o")

        generator = create_text_generator(LlmSettings(_env_file=None))

        assert generator.model == "gpt-4o"
        assert generator._client.config.auth_headers() == {
            "Authorization": "Bearer sk-oai"
        }

    @pytest.mark.unit
    def test_no_key_means_mock(self):
        generator = create_text_generator(LlmSettings(_env_file=None))

        assert generator.uses_mock is True
