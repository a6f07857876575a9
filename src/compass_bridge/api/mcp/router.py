"""Routing across several named capability providers."""

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from compass_bridge.core.mcp.exceptions import (
    McpError,
    ProviderAlreadyRegisteredError,
    ProviderNotFoundError,
)
from compass_bridge.core.mcp.models import Prompt, Resource, Tool
from compass_bridge.core.mcp.protocols import CapabilityProvider
from compass_bridge.core.mcp.result import Err, Ok, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CapabilityRouter:
    """Registry of providers keyed by routing name.

    Aggregate listings are best effort: a provider that fails to list is
    logged and left out. Dispatch is strict: an unknown provider name raises
    and provider errors propagate unchanged.
    """

    def __init__(self) -> None:
        self._providers: dict[str, CapabilityProvider] = {}
        self._lock = threading.Lock()

    def register(
        self, name: str, provider: CapabilityProvider, *, replace: bool = False
    ) -> None:
        """Register ``provider`` under ``name``.

        Raises:
            ProviderAlreadyRegisteredError: If ``name`` is taken and ``replace``
                is False
        """
        with self._lock:
            if name in self._providers and not replace:
                raise ProviderAlreadyRegisteredError(name)
            replaced = name in self._providers
            self._providers[name] = provider

        action = "Replaced" if replaced else "Registered"
        logger.info(f"{action} provider '{name}'")

    def unregister(self, name: str) -> CapabilityProvider:
        with self._lock:
            if name not in self._providers:
                raise ProviderNotFoundError(name)
            provider = self._providers.pop(name)
        logger.info(f"Unregistered provider '{name}'")
        return provider

    @property
    def provider_names(self) -> list[str]:
        """Registered names in registration order."""
        with self._lock:
            return list(self._providers)

    def provider(self, name: str) -> CapabilityProvider:
        with self._lock:
            provider = self._providers.get(name)
        if provider is None:
            raise ProviderNotFoundError(name)
        return provider

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._providers

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)

    async def list_all_tools(self) -> list[dict[str, Any]]:
        """Tools grouped by provider: ``[{"providerName", "tools"}]``."""
        return await self._gather("tools", lambda p: p.list_tools())

    async def list_all_resources(self) -> list[dict[str, Any]]:
        """Resources grouped by provider: ``[{"providerName", "resources"}]``."""
        return await self._gather("resources", lambda p: p.list_resources())

    async def list_all_prompts(self) -> list[dict[str, Any]]:
        """Prompts grouped by provider: ``[{"providerName", "prompts"}]``."""
        return await self._gather("prompts", lambda p: p.list_prompts())

    async def invoke(
        self, provider_name: str, tool_name: str | None, arguments: dict[str, Any]
    ) -> Any:
        """Invoke a tool on a named provider.

        Raises:
            ProviderNotFoundError: If no provider has that name
        """
        provider = self.provider(provider_name)
        logger.debug(f"Invoking {provider_name}.{tool_name}")
        return await provider.invoke_tool(tool_name, arguments)

    async def read_resource(self, provider_name: str, uri: str) -> Any:
        """Read a resource from a named provider.

        Raises:
            ProviderNotFoundError: If no provider has that name
        """
        provider = self.provider(provider_name)
        logger.debug(f"Reading {uri} from {provider_name}")
        return await provider.read_resource(uri)

    async def try_invoke(
        self, provider_name: str, tool_name: str | None, arguments: dict[str, Any]
    ) -> Result[Any]:
        return await self._capture(
            self.invoke(provider_name, tool_name, arguments),
            f"{provider_name}/{tool_name}",
        )

    async def try_read_resource(self, provider_name: str, uri: str) -> Result[Any]:
        return await self._capture(
            self.read_resource(provider_name, uri), f"{provider_name}/{uri}"
        )

    def status(self) -> dict[str, Any]:
        with self._lock:
            providers = dict(self._providers)
        return {
            "providerCount": len(providers),
            "providers": [
                {"routingName": name, **provider.server_info()}
                for name, provider in providers.items()
            ],
        }

    async def _gather(
        self,
        key: str,
        query: Callable[[CapabilityProvider], Awaitable[Sequence[Tool | Resource | Prompt]]],
    ) -> list[dict[str, Any]]:
        with self._lock:
            providers = list(self._providers.items())

        async def run(name: str, provider: CapabilityProvider) -> dict[str, Any] | None:
            try:
                items = await query(provider)
            except Exception as e:
                logger.error(f"Failed to list {key} from provider '{name}': {e}", exc_info=True)
                return None
            return {"providerName": name, key: list(items)}

        results = await asyncio.gather(*(run(name, p) for name, p in providers))
        return [entry for entry in results if entry is not None]

    @staticmethod
    async def _capture(call: Awaitable[T], target: str) -> Result[T]:
        try:
            return Ok(await call)
        except McpError as e:
            return Err(e)
        except Exception as e:
            logger.error(f"Unexpected error from {target}: {e}", exc_info=True)
            error = McpError(
                str(e) or type(e).__name__, {"type": type(e).__name__}
            )
            error.__cause__ = e
            return Err(error)
