"""Base implementation for capability providers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel

from compass_bridge.core.mcp.exceptions import McpError, ToolError, UnknownToolError
from compass_bridge.core.mcp.models import (
    PROTOCOL_VERSION,
    Capabilities,
    Prompt,
    Resource,
    Tool,
)
from compass_bridge.core.mcp.uri import ResourceUri
from compass_bridge.core.mcp.validation import validate_arguments
from compass_bridge.utils.schema import tool_from_model

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    """A tool's name, description and parameter model."""

    name: StrEnum
    description: str
    params: type[BaseModel]

    def descriptor(self) -> Tool:
        return tool_from_model(str(self.name), self.description, self.params)


class BaseCapabilityProvider(ABC):
    """Base implementation for providers that expose tools and resources.

    Subclasses declare ``tool_specs`` and return a handler table keyed by the
    tool enum from ``_tool_handlers``. The tool name string is resolved to the
    enum exactly once, in :meth:`invoke_tool`; arguments are validated against
    the tool's parameter model before the handler sees them.
    """

    scheme: ClassVar[str]
    tool_specs: ClassVar[Sequence[ToolSpec]] = ()

    def __init__(self, name: str, version: str = "1.0.0"):
        self.name = name
        self.version = version
        self.capabilities = Capabilities()

    def enable_tools(self) -> None:
        self.capabilities.tools = True

    def enable_resources(self) -> None:
        self.capabilities.resources = True

    def enable_prompts(self) -> None:
        self.capabilities.prompts = True

    def server_info(self) -> dict[str, Any]:
        """Return provider identity and capability flags."""
        return {
            "name": self.name,
            "version": self.version,
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": self.capabilities.model_dump(),
        }

    async def list_tools(self) -> Sequence[Tool]:
        return [spec.descriptor() for spec in self.tool_specs]

    @abstractmethod
    async def list_resources(self) -> Sequence[Resource]:
        """Return list of resource definitions."""
        pass

    async def list_prompts(self) -> Sequence[Prompt]:
        return []

    async def invoke_tool(self, name: str | None, arguments: dict[str, Any]) -> Any:
        """Execute a tool with given arguments.

        Raises:
            UnknownToolError: If ``name`` is not one of ``tool_specs``
            InvalidArgumentsError: If arguments fail validation
            ToolError: If the tool fails unexpectedly
        """
        spec = self._find_tool(name)
        params = validate_arguments(spec.params, str(spec.name), arguments)
        handler = self._tool_handlers()[spec.name]

        logger.debug(f"Provider '{self.name}' invoking {spec.name}")
        try:
            return await handler(params)
        except McpError:
            raise
        except Exception as e:
            raise ToolError(str(spec.name), str(e)) from e

    @abstractmethod
    async def read_resource(self, uri: str) -> Any:
        """Retrieve a resource by URI.

        Raises:
            UnsupportedSchemeError: If the scheme is not this provider's
            InvalidResourceUriError: If the path matches no known pattern
            NotFoundError: If the referenced entity does not exist
        """
        pass

    @abstractmethod
    def _tool_handlers(self) -> Mapping[StrEnum, ToolHandler]:
        """Return the dispatch table for this provider's tools."""
        pass

    def _find_tool(self, name: str | None) -> ToolSpec:
        for spec in self.tool_specs:
            if spec.name == name:
                return spec
        raise UnknownToolError(name)

    def _parse_uri(self, uri: str) -> ResourceUri:
        return ResourceUri.parse(uri, expected_scheme=self.scheme)
