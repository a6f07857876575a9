"""Protocols for type-safe composition of capability providers."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from .models import Prompt, Resource, Tool


@runtime_checkable
class CapabilityProvider(Protocol):
    """Protocol for backends that expose tools and resources.

    Listing calls never raise; only ``invoke_tool`` and ``read_resource``
    may fail.
    """

    name: str

    def server_info(self) -> dict[str, Any]:
        """Return provider identity and capability flags."""
        ...

    async def list_tools(self) -> Sequence[Tool]:
        """Return the tools this provider exposes, in a stable order."""
        ...

    async def list_resources(self) -> Sequence[Resource]:
        """Return the resources this provider exposes, in a stable order."""
        ...

    async def list_prompts(self) -> Sequence[Prompt]:
        """Return the prompt templates this provider offers."""
        ...

    async def invoke_tool(self, name: str | None, arguments: dict[str, Any]) -> Any:
        """Execute a tool with given arguments.

        Args:
            name: Tool name to execute
            arguments: Tool arguments

        Returns:
            JSON-serializable tool result

        Raises:
            UnknownToolError: If the provider has no such tool
            InvalidArgumentsError: If required arguments are missing or invalid
        """
        ...

    async def read_resource(self, uri: str) -> Any:
        """Retrieve a resource by URI.

        Args:
            uri: Resource URI to retrieve

        Returns:
            JSON-serializable resource data

        Raises:
            UnsupportedSchemeError: If the scheme belongs to another provider
            InvalidResourceUriError: If the path matches no known pattern
            NotFoundError: If the referenced entity does not exist
        """
        ...


@runtime_checkable
class TextGenerator(Protocol):
    """Opaque "generate text from prompt" collaborator."""

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        fallback: str | None = None,
    ) -> str:
        """Generate a completion for ``prompt``.

        ``fallback`` is returned verbatim when no model credential is
        configured.
        """
        ...
