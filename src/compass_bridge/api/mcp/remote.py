"""Capability provider that forwards calls to another host over HTTP."""

import itertools
import json
import logging
from typing import Any

import httpx

from compass_bridge.core.mcp.exceptions import ErrorKind, McpError, NetworkError
from compass_bridge.core.mcp.models import Prompt, Resource, Tool

logger = logging.getLogger(__name__)


class RemoteCallError(McpError):
    """Error envelope returned by a remote host."""

    def __init__(self, code: int, message: str, data: dict[str, Any] | None = None):
        data = data or {}
        super().__init__(message, data.get("details") or {})
        self.code = code
        try:
            self.kind = ErrorKind(data.get("kind"))
        except ValueError:
            self.kind = ErrorKind.TOOL_FAILED
        self.remote_type = data.get("type")


class RemoteCapabilityProvider:
    """Implements the provider contract by posting request envelopes.

    ``endpoint_url`` is a ``POST /mcp/{provider}`` endpoint of a remote host.
    """

    def __init__(
        self,
        name: str,
        endpoint_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = name
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)
        self._server_info: dict[str, Any] | None = None

    def server_info(self) -> dict[str, Any]:
        if self._server_info is not None:
            return {**self._server_info, "endpoint": self.endpoint_url}
        return {
            "name": self.name,
            "version": "unknown",
            "capabilities": {"resources": True, "tools": True, "prompts": True},
            "endpoint": self.endpoint_url,
        }

    async def initialize(self) -> dict[str, Any]:
        """Fetch and cache the remote provider's identity and capabilities."""
        result = await self._send("initialize")
        server_info = result.get("serverInfo") or {}
        self._server_info = {
            "name": server_info.get("name", self.name),
            "version": server_info.get("version", "unknown"),
            "capabilities": result.get("capabilities", {}),
        }
        return result  # type: ignore[no-any-return]

    async def list_tools(self) -> list[Tool]:
        result = await self._send("list_tools")
        return [Tool.model_validate(t) for t in result.get("tools", [])]

    async def list_resources(self) -> list[Resource]:
        result = await self._send("list_resources")
        return [Resource.model_validate(r) for r in result.get("resources", [])]

    async def list_prompts(self) -> list[Prompt]:
        result = await self._send("list_prompts")
        return [Prompt.model_validate(p) for p in result.get("prompts", [])]

    async def invoke_tool(self, name: str | None, arguments: dict[str, Any]) -> Any:
        result = await self._send("call_tool", {"name": name, "arguments": arguments})
        return self._decode_text(result.get("content"), "content")

    async def read_resource(self, uri: str) -> Any:
        result = await self._send("get_resource", {"uri": uri})
        return self._decode_text(result.get("contents"), "contents")

    async def _send(self, method: str, params: dict[str, Any] | None = None) -> Any:
        envelope: dict[str, Any] = {"id": next(self._ids), "method": method}
        if params is not None:
            envelope["params"] = params

        client_config: dict[str, Any] = {"timeout": self.timeout}
        if self._transport is not None:
            client_config["transport"] = self._transport

        logger.debug(f"Sending {method} to {self.endpoint_url}")
        try:
            async with httpx.AsyncClient(**client_config) as client:
                response = await client.post(self.endpoint_url, json=envelope)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise NetworkError(
                f"Remote provider '{self.name}' at {self.endpoint_url} failed: {e}"
            ) from e
        except ValueError as e:
            raise NetworkError(
                f"Remote provider '{self.name}' returned invalid JSON"
            ) from e

        if not isinstance(body, dict):
            raise NetworkError(f"Remote provider '{self.name}' returned a non-object body")
        error = body.get("error")
        if error:
            if not isinstance(error, dict):
                raise RemoteCallError(McpError.code, str(error))
            code = error.get("code")
            data = error.get("data")
            raise RemoteCallError(
                code if isinstance(code, int) else McpError.code,
                str(error.get("message", "Remote error")),
                data if isinstance(data, dict) else None,
            )
        result = body.get("result") or {}
        if not isinstance(result, dict):
            raise NetworkError(f"Remote provider '{self.name}' returned a non-object result")
        return result

    def _decode_text(self, blocks: Any, field: str) -> Any:
        if not blocks:
            return None
        if not isinstance(blocks, list) or not isinstance(blocks[0], dict):
            raise NetworkError(
                f"Remote provider '{self.name}' returned malformed {field}"
            )
        text = blocks[0].get("text")
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
