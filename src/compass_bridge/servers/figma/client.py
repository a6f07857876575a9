"""Figma REST API access with deterministic mock data."""

import copy
import logging
from typing import Any

import httpx

from compass_bridge.core.config.settings import FigmaSettings
from compass_bridge.core.http.client import ResilientFetchClient
from compass_bridge.core.http.config import FetchConfig, RetryPolicy
from compass_bridge.core.mcp.exceptions import UpstreamNotFoundError

logger = logging.getLogger(__name__)

MOCK_LAST_MODIFIED = "2024-01-01T00:00:00Z"

_MOCK_DOCUMENT: dict[str, Any] = {
    "id": "0:0",
    "name": "Mock Document",
    "type": "DOCUMENT",
    "children": [
        {
            "id": "0:1",
            "name": "Mock Page",
            "type": "CANVAS",
            "children": [
                {
                    "id": "1:1",
                    "name": "Mock Frame",
                    "type": "FRAME",
                    "absoluteBoundingBox": {"x": 0, "y": 0, "width": 375, "height": 812},
                    "fills": [
                        {"type": "SOLID", "color": {"r": 0.95, "g": 0.95, "b": 0.98, "a": 1}}
                    ],
                    "children": [
                        {
                            "id": "1:2",
                            "name": "Mock Text",
                            "type": "TEXT",
                            "characters": "Sample Design Text",
                            "absoluteBoundingBox": {
                                "x": 24,
                                "y": 96,
                                "width": 327,
                                "height": 24,
                            },
                            "style": {
                                "fontFamily": "Inter",
                                "fontSize": 16,
                                "fontWeight": 400,
                                "textAlignHorizontal": "LEFT",
                            },
                            "fills": [
                                {"type": "SOLID", "color": {"r": 0.1, "g": 0.1, "b": 0.1, "a": 1}}
                            ],
                        },
                        {
                            "id": "1:3",
                            "name": "Mock Button",
                            "type": "COMPONENT",
                            "absoluteBoundingBox": {
                                "x": 24,
                                "y": 720,
                                "width": 327,
                                "height": 48,
                            },
                            "fills": [
                                {"type": "SOLID", "color": {"r": 0.2, "g": 0.4, "b": 1.0, "a": 1}}
                            ],
                            "strokes": [
                                {"type": "SOLID", "color": {"r": 0.1, "g": 0.2, "b": 0.6, "a": 1}}
                            ],
                            "componentPropertyDefinitions": {
                                "Size": {
                                    "type": "VARIANT",
                                    "defaultValue": "Medium",
                                    "variantOptions": ["Small", "Medium", "Large"],
                                },
                                "Label": {"type": "TEXT", "defaultValue": "Continue"},
                            },
                        },
                    ],
                }
            ],
        }
    ],
}


def _find_node(node: dict[str, Any], node_id: str) -> dict[str, Any] | None:
    if node.get("id") == node_id:
        return node
    for child in node.get("children", []):
        found = _find_node(child, node_id)
        if found is not None:
            return found
    return None


def _collect_components(node: dict[str, Any]) -> list[dict[str, Any]]:
    components = []
    if node.get("type") == "COMPONENT":
        components.append(node)
    for child in node.get("children", []):
        components.extend(_collect_components(child))
    return components


def mock_file(file_id: str) -> dict[str, Any]:
    """Mock ``GET /files/{file_id}`` response."""
    return {
        "name": f"Mock Figma File {file_id[:8]}",
        "lastModified": MOCK_LAST_MODIFIED,
        "thumbnailUrl": "https://via.placeholder.com/400x300",
        "version": "1.0",
        "document": copy.deepcopy(_MOCK_DOCUMENT),
    }


def mock_nodes(file_id: str, node_ids: list[str]) -> dict[str, Any]:
    """Mock ``GET /files/{file_id}/nodes`` response.

    Ids present in the mock document return that node; any other id gets a
    generic frame so callers can exercise their own node ids.
    """
    nodes = {}
    for index, node_id in enumerate(node_ids):
        node = _find_node(_MOCK_DOCUMENT, node_id)
        if node is None:
            node = {
                "id": node_id,
                "name": f"Mock Node {index + 1}",
                "type": "FRAME",
                "absoluteBoundingBox": {
                    "x": index * 100,
                    "y": index * 100,
                    "width": 200,
                    "height": 150,
                },
                "fills": [{"type": "SOLID", "color": {"r": 0.8, "g": 0.9, "b": 1.0, "a": 1}}],
            }
        nodes[node_id] = {"document": copy.deepcopy(node), "components": {}, "styles": {}}
    return {"name": f"Mock Figma File {file_id[:8]}", "nodes": nodes}


def mock_components(file_id: str) -> dict[str, Any]:
    """Mock ``GET /files/{file_id}/components`` response."""
    return {
        "status": 200,
        "error": False,
        "meta": {
            "components": [
                {
                    "key": f"{file_id}-{component['id']}",
                    "file_key": file_id,
                    "node_id": component["id"],
                    "name": component["name"],
                    "description": "",
                }
                for component in _collect_components(_MOCK_DOCUMENT)
            ]
        },
    }


class FigmaApiClient:
    """Typed access to the Figma endpoints the design provider needs."""

    def __init__(self, client: ResilientFetchClient):
        self._client = client

    @property
    def uses_mock(self) -> bool:
        return self._client.uses_mock

    async def get_file(self, file_id: str, depth: int | None = None) -> dict[str, Any]:
        params = {"depth": depth} if depth is not None else None
        return await self._client.get(  # type: ignore[no-any-return]
            f"/files/{file_id}", params=params, mock=mock_file(file_id)
        )

    async def get_file_nodes(
        self, file_id: str, node_ids: list[str]
    ) -> dict[str, dict[str, Any]]:
        """Fetch several nodes in one request.

        Raises:
            UpstreamNotFoundError: If any requested node is missing
        """
        data = await self._client.get(
            f"/files/{file_id}/nodes",
            params={"ids": ",".join(node_ids)},
            mock=mock_nodes(file_id, node_ids),
        )
        nodes = (data or {}).get("nodes") or {}

        missing = [node_id for node_id in node_ids if not nodes.get(node_id)]
        if missing:
            raise UpstreamNotFoundError(
                f"Node(s) not found in file {file_id}: {', '.join(missing)}",
                details={"file_id": file_id, "node_ids": missing},
            )
        return {node_id: nodes[node_id] for node_id in node_ids}

    async def get_node(self, file_id: str, node_id: str) -> dict[str, Any]:
        nodes = await self.get_file_nodes(file_id, [node_id])
        return nodes[node_id]

    async def get_file_components(self, file_id: str) -> dict[str, Any]:
        return await self._client.get(  # type: ignore[no-any-return]
            f"/files/{file_id}/components", mock=mock_components(file_id)
        )

    async def validate_api_key(self) -> bool:
        return await self._client.validate_credential("/me")


def create_figma_client(
    settings: FigmaSettings, transport: httpx.AsyncBaseTransport | None = None
) -> FigmaApiClient:
    """Build a Figma client from settings."""
    config = FetchConfig(
        base_url=settings.base_url,
        credential=settings.api_key,
        auth_header="X-Figma-Token",
        auth_scheme=None,
        timeout=settings.timeout,
        retry=RetryPolicy(
            max_retries=settings.max_retries, base_delay=settings.base_delay
        ),
    )
    client = FigmaApiClient(ResilientFetchClient(config, transport=transport))
    if client.uses_mock:
        logger.info("No Figma API key configured, Figma provider will serve mock data")
    return client
