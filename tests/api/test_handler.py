"""Tests for the request/response envelope handler."""

import json

import pytest
from pydantic import ValidationError

from compass_bridge.api.mcp.handler import (
    ProtocolRequestHandler,
    RequestEnvelope,
    ResponseEnvelope,
)
from compass_bridge.core.mcp.exceptions import UnknownToolError
from compass_bridge.core.mcp.models import PROTOCOL_VERSION
from tests.fixtures.providers import EchoProvider


@pytest.fixture
def handler():
    return ProtocolRequestHandler(EchoProvider())


async def send(handler, method, params=None, request_id=1):
    response = await handler.handle(
        RequestEnvelope(id=request_id, method=method, params=params)
    )
    return response.to_dict()


class TestResponseEnvelope:
    @pytest.mark.unit
    def test_requires_exactly_one_of_result_or_error(self):
        with pytest.raises(ValidationError):
            ResponseEnvelope(id=1)

    @pytest.mark.unit
    def test_from_mcp_error(self):
        envelope = ResponseEnvelope.from_exception(7, UnknownToolError("x"))

        assert envelope.ok is False
        assert envelope.to_dict() == {
            "id": 7,
            "error": {
                "code": -32000,
                "message": "Unknown tool: x",
                "data": {
                    "type": "UnknownToolError",
                    "kind": "unknown_tool",
                    "details": {"tool": "x"},
                },
            },
        }

    @pytest.mark.unit
    def test_from_unexpected_exception(self):
        envelope = ResponseEnvelope.from_exception("a", KeyError("k"))

        assert envelope.error.code == -32000
        assert envelope.error.data["type"] == "KeyError"
        assert envelope.error.data["kind"] == "tool_failed"


class TestProtocolRequestHandler:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_initialize(self, handler):
        response = await send(handler, "initialize")

        assert response["id"] == 1
        assert response["result"]["protocolVersion"] == PROTOCOL_VERSION
        assert response["result"]["serverInfo"] == {"name": "echo", "version": "1.0.0"}
        assert response["result"]["capabilities"]["tools"] is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_tools_uses_wire_names(self, handler):
        response = await send(handler, "list_tools")

        tools = response["result"]["tools"]
        assert [t["name"] for t in tools] == ["echo", "fail"]
        assert tools[0]["inputSchema"]["required"] == ["text"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_resources_and_prompts(self, handler):
        resources = await send(handler, "list_resources")
        prompts = await send(handler, "list_prompts")

        assert resources["result"]["resources"][0]["uri"] == "echo://notes/{note_id}"
        assert resources["result"]["resources"][0]["mimeType"] == "application/json"
        assert prompts["result"] == {"prompts": []}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_call_tool_wraps_result_as_text(self, handler):
        response = await send(
            handler, "call_tool", {"name": "echo", "arguments": {"text": "hi"}}
        )

        content = response["result"]["content"]
        assert content[0]["type"] == "text"
        assert json.loads(content[0]["text"]) == {"echo": "hi", "provider": "echo"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_tool_envelope(self, handler):
        """An unknown tool comes back as a -32000 error with the tool name."""
        response = await send(
            handler, "call_tool", {"name": "unknown_tool", "arguments": {}}, "req-1"
        )

        assert response["id"] == "req-1"
        assert "result" not in response
        assert response["error"]["code"] == -32000
        assert response["error"]["message"] == "Unknown tool: unknown_tool"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_arguments(self, handler):
        response = await send(handler, "call_tool", {"name": "echo", "arguments": {}})

        assert response["error"]["code"] == -32000
        assert response["error"]["data"]["kind"] == "invalid_arguments"
        assert "text" in response["error"]["message"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_tool_crash_becomes_error(self, handler):
        response = await send(handler, "call_tool", {"name": "fail"})

        assert response["error"]["data"]["type"] == "ToolError"
        assert "tool exploded" in response["error"]["message"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_resource(self, handler):
        response = await send(handler, "get_resource", {"uri": "echo://notes/n1"})

        contents = response["result"]["contents"][0]
        assert contents["uri"] == "echo://notes/n1"
        assert contents["mimeType"] == "application/json"
        assert json.loads(contents["text"]) == {"id": "n1", "text": "note n1"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("uri", "kind"),
        [
            ("figma://file/abc", "unsupported_scheme"),
            ("echo://other/x", "invalid_resource_uri"),
            ("echo://notes/missing", "not_found"),
        ],
    )
    async def test_get_resource_failures(self, handler, uri, kind):
        response = await send(handler, "get_resource", {"uri": uri})

        assert response["error"]["code"] == -32000
        assert response["error"]["data"]["kind"] == kind

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_method(self, handler):
        response = await send(handler, "delete_everything")

        assert response["error"]["code"] == -32601
        assert response["error"]["message"] == "Method not found: delete_everything"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_raw_rejects_malformed_envelope(self, handler):
        response = await handler.handle_raw({"id": 5, "params": {}})

        assert response.to_dict()["id"] == 5
        assert response.error.code == -32600

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_raw_echoes_numeric_ids(self, handler):
        fractional = await handler.handle_raw({"id": 1.5, "method": "initialize"})
        whole = await handler.handle_raw({"id": 2.0, "method": "initialize"})
        text = await handler.handle_raw({"id": "req-1", "method": "initialize"})

        assert fractional.ok
        assert fractional.to_dict()["id"] == 1.5
        assert isinstance(whole.id, float)
        assert text.id == "req-1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_raw_rejects_boolean_id(self, handler):
        response = await handler.handle_raw({"id": True, "method": "initialize"})

        assert response.id is None
        assert response.error.code == -32600

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_raw_keeps_fractional_id_on_error(self, handler):
        response = await handler.handle_raw({"id": 3.25, "method": 7})

        assert response.id == 3.25
        assert response.error.code == -32600

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_raw_non_object(self, handler):
        response = await handler.handle_raw(["not", "an", "envelope"])

        assert response.id is None
        assert response.error.code == -32600

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_every_response_has_exactly_one_branch(self, handler):
        methods = [
            ("initialize", None),
            ("list_tools", None),
            ("call_tool", {"name": "echo", "arguments": {"text": "x"}}),
            ("call_tool", {"name": "nope"}),
            ("get_resource", {"uri": "bad"}),
            ("bogus", None),
        ]
        for method, params in methods:
            response = await send(handler, method, params)
            assert ("result" in response) != ("error" in response)
