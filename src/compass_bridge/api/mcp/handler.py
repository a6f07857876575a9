"""Request/response envelope protocol for a single provider."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import (
    BaseModel,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from compass_bridge.core.mcp.exceptions import (
    INVALID_REQUEST_CODE,
    InvalidRequestError,
    McpError,
    MethodNotFoundError,
)
from compass_bridge.core.mcp.models import PROTOCOL_VERSION, dump
from compass_bridge.core.mcp.protocols import CapabilityProvider
from compass_bridge.core.mcp.validation import format_validation_errors

logger = logging.getLogger(__name__)


RequestId = StrictStr | StrictInt | StrictFloat


def recover_request_id(payload: Any) -> str | int | float | None:
    """Best-effort id from an envelope that failed validation."""
    if not isinstance(payload, dict):
        return None
    request_id = payload.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, str | int | float):
        return None
    return request_id


class RequestEnvelope(BaseModel):
    id: RequestId
    method: str
    params: dict[str, Any] | None = None


class ErrorObject(BaseModel):
    code: int
    message: str
    data: dict[str, Any] | None = None


class ResponseEnvelope(BaseModel):
    """Carries exactly one of ``result`` or ``error``."""

    id: RequestId | None
    result: Any = None
    error: ErrorObject | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> "ResponseEnvelope":
        if (self.result is None) == (self.error is None):
            raise ValueError("Exactly one of result or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls,
        request_id: str | int | float | None,
        code: int,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> "ResponseEnvelope":
        return cls(id=request_id, error=ErrorObject(code=code, message=message, data=data))

    @classmethod
    def from_exception(
        cls, request_id: str | int | float | None, error: Exception
    ) -> "ResponseEnvelope":
        """Describe any exception as an error envelope."""
        if isinstance(error, McpError):
            return cls.failure(request_id, error.code, error.message, error.to_data())
        return cls.failure(
            request_id,
            McpError.code,
            str(error) or type(error).__name__,
            {"type": type(error).__name__, "kind": str(McpError.kind), "details": {}},
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire form: ``id`` plus either ``result`` or ``error``."""
        data: dict[str, Any] = {"id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result
        return data


def to_text(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


class ProtocolRequestHandler:
    """Translates request envelopes into provider calls.

    Errors never escape: every failure becomes an error envelope.
    """

    def __init__(self, provider: CapabilityProvider):
        self.provider = provider
        self._methods: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "list_resources": self._list_resources,
            "list_tools": self._list_tools,
            "list_prompts": self._list_prompts,
            "call_tool": self._call_tool,
            "get_resource": self._get_resource,
        }

    async def handle(self, request: RequestEnvelope) -> ResponseEnvelope:
        logger.debug(
            f"[{self.provider.name}] request {request.id}: {request.method}"
        )
        try:
            method = self._methods.get(request.method)
            if method is None:
                raise MethodNotFoundError(request.method)
            result = await method(request.params or {})
        except McpError as e:
            logger.warning(
                f"[{self.provider.name}] {request.method} failed: {e.message}"
            )
            return ResponseEnvelope.from_exception(request.id, e)
        except Exception as e:
            logger.error(
                f"[{self.provider.name}] unexpected error in {request.method}: {e}",
                exc_info=True,
            )
            return ResponseEnvelope.from_exception(request.id, e)

        return ResponseEnvelope(id=request.id, result=result)

    async def handle_raw(self, payload: Any) -> ResponseEnvelope:
        """Validate an untrusted envelope, then handle it."""
        try:
            request = RequestEnvelope.model_validate(payload)
        except ValidationError as e:
            request_id = recover_request_id(payload)
            error = InvalidRequestError(
                f"Invalid request: {format_validation_errors(e, 'envelope')}"
            )
            logger.warning(f"[{self.provider.name}] {error.message}")
            return ResponseEnvelope.failure(
                request_id, INVALID_REQUEST_CODE, error.message, error.to_data()
            )
        return await self.handle(request)

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        info = self.provider.server_info()
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": info.get("capabilities", {}),
            "serverInfo": {"name": info.get("name"), "version": info.get("version")},
        }

    async def _list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [dump(r) for r in await self.provider.list_resources()]}

    async def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [dump(t) for t in await self.provider.list_tools()]}

    async def _list_prompts(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"prompts": [dump(p) for p in await self.provider.list_prompts()]}

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        result = await self.provider.invoke_tool(
            params.get("name"), params.get("arguments") or {}
        )
        return {"content": [{"type": "text", "text": to_text(result)}]}

    async def _get_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        data = await self.provider.read_resource(uri)  # type: ignore[arg-type]
        return {
            "contents": [
                {"uri": uri, "mimeType": "application/json", "text": to_text(data)}
            ]
        }
