"""Text generation backed by a hosted LLM API.

Both the Anthropic Messages API and the OpenAI Chat Completions API are
spoken through :class:`ResilientFetchClient`, so rate limits and transient
failures get the same retry treatment as every other outbound call. Without
an API key the generator answers with the caller's ``fallback`` text.
"""

import logging
from typing import Any

from compass_bridge.core.config.settings import LlmSettings
from compass_bridge.core.http.client import ResilientFetchClient
from compass_bridge.core.http.config import FetchConfig, RetryPolicy
from compass_bridge.core.mcp.exceptions import NetworkError

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_BASE_URL = "https://api.openai.com"

DEFAULT_FALLBACK = (
    "No language model is configured. Set ANTHROPIC_API_KEY or OPENAI_API_KEY "
    "to enable generated responses."
)


class LlmTextGenerator:
    """Generate text from a prompt using the configured LLM provider."""

    def __init__(
        self,
        provider: str,
        model: str,
        client: ResilientFetchClient,
        max_tokens: int = 4096,
    ):
        """Initialize the generator.

        Args:
            provider: ``anthropic`` or ``openai``
            model: Model identifier sent with each request
            client: Fetch client pointed at the provider's API
            max_tokens: Completion token limit
        """
        if provider not in ("anthropic", "openai"):
            raise ValueError(f"Unsupported LLM provider: {provider}")
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    @property
    def uses_mock(self) -> bool:
        return self._client.uses_mock

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        fallback: str | None = None,
    ) -> str:
        """Generate a completion for ``prompt``.

        Args:
            prompt: User message
            system: Optional system prompt
            fallback: Text returned when no API key is configured

        Returns:
            The generated text

        Raises:
            FetchError: If the provider API fails after retries
        """
        fallback_text = fallback if fallback is not None else DEFAULT_FALLBACK
        logger.debug(
            f"Generating text with {self.provider}/{self.model} "
            f"(prompt length {len(prompt)})"
        )

        if self.provider == "anthropic":
            body: dict[str, Any] = {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            }
            if system:
                body["system"] = system
            data = await self._client.post(
                "/v1/messages",
                json=body,
                mock={"content": [{"type": "text", "text": fallback_text}]},
            )
            return self._anthropic_text(data)

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        data = await self._client.post(
            "/v1/chat/completions",
            json={
                "model": self.model,
                "max_tokens": self.max_tokens,
                "messages": messages,
            },
            mock={"choices": [{"message": {"content": fallback_text}}]},
        )
        return self._openai_text(data)

    @staticmethod
    def _anthropic_text(data: Any) -> str:
        try:
            blocks = data["content"]
            return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        except (KeyError, TypeError, AttributeError) as e:
            raise NetworkError(f"Unexpected Anthropic response shape: {e}") from e

    @staticmethod
    def _openai_text(data: Any) -> str:
        try:
            return str(data["choices"][0]["message"]["content"] or "")
        except (KeyError, IndexError, TypeError) as e:
            raise NetworkError(f"Unexpected OpenAI response shape: {e}") from e


def create_text_generator(settings: LlmSettings) -> LlmTextGenerator:
    """Build a generator from LLM settings."""
    retry = RetryPolicy(max_retries=settings.max_retries)
    if settings.provider == "openai":
        config = FetchConfig(
            base_url=OPENAI_BASE_URL,
            credential=settings.api_key,
            timeout=settings.timeout,
            retry=retry,
        )
    else:
        config = FetchConfig(
            base_url=ANTHROPIC_BASE_URL,
            credential=settings.api_key,
            auth_header="x-api-key",
            auth_scheme=None,
            default_headers={"anthropic-version": ANTHROPIC_VERSION},
            timeout=settings.timeout,
            retry=retry,
        )

    generator = LlmTextGenerator(
        provider=settings.provider,
        model=settings.resolved_model,
        client=ResilientFetchClient(config),
        max_tokens=settings.max_tokens,
    )
    if generator.uses_mock:
        logger.info(
            f"No {settings.provider} API key configured, text generation will use "
            "fallback responses"
        )
    return generator
