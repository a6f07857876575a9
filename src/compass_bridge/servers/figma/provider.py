"""Design-source provider backed by the Figma REST API."""

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from compass_bridge.api.mcp.providers import BaseCapabilityProvider, ToolHandler, ToolSpec
from compass_bridge.core.mcp.exceptions import (
    InvalidArgumentsError,
    InvalidResourceUriError,
)
from compass_bridge.core.mcp.models import Prompt, PromptArgument, Resource
from compass_bridge.core.mcp.validation import coerce_int

from . import design
from .client import FigmaApiClient

logger = logging.getLogger(__name__)


class FigmaTool(StrEnum):
    GET_FILE_STRUCTURE = "get_figma_file_structure"
    GET_NODE_DETAILS = "get_figma_node_details"
    EXTRACT_COMPONENT_PROPS = "extract_component_props"
    ANALYZE_DESIGN_STRUCTURE = "analyze_design_structure"
    EXTRACT_DESIGN_TOKENS = "extract_design_tokens"


class FileParams(BaseModel):
    """Parameters identifying a Figma file."""

    FILE_ID_DESC: ClassVar[str] = "The Figma file ID (the key in the file URL)"
    DEPTH_DESC: ClassVar[str] = (
        "How deep into the document tree to traverse. Use a small depth for "
        "large files to avoid upstream timeouts"
    )

    file_id: str = Field(min_length=1, description=FILE_ID_DESC)
    depth: int | None = Field(None, ge=1, description=DEPTH_DESC)

    @field_validator("depth", mode="before")
    @classmethod
    def coerce_depth(cls, v: Any) -> Any:
        return coerce_int(v)


class TokenParams(BaseModel):
    file_id: str = Field(min_length=1, description=FileParams.FILE_ID_DESC)


class NodeParams(BaseModel):
    """Parameters identifying a node inside a Figma file."""

    NODE_ID_DESC: ClassVar[str] = "The node ID, e.g. '1:2'"

    file_id: str = Field(min_length=1, description=FileParams.FILE_ID_DESC)
    node_id: str = Field(min_length=1, description=NODE_ID_DESC)


class AnalyzeParams(BaseModel):
    """Parameters for design structure analysis."""

    NODE_IDS_DESC: ClassVar[str] = (
        "Optional array of specific node IDs to analyze; the whole file is "
        "analyzed when omitted"
    )

    file_id: str = Field(min_length=1, description=FileParams.FILE_ID_DESC)
    node_ids: list[str] | None = Field(None, description=NODE_IDS_DESC)

    @field_validator("node_ids", mode="before")
    @classmethod
    def split_node_ids(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class FigmaProvider(BaseCapabilityProvider):
    """Exposes Figma files, nodes and components as tools and resources."""

    scheme = "figma"
    tool_specs = (
        ToolSpec(
            FigmaTool.GET_FILE_STRUCTURE,
            "Get the complete structure of a Figma file",
            FileParams,
        ),
        ToolSpec(
            FigmaTool.GET_NODE_DETAILS,
            "Get detailed information about a specific Figma node",
            NodeParams,
        ),
        ToolSpec(
            FigmaTool.EXTRACT_COMPONENT_PROPS,
            "Extract component properties and variants from a Figma component",
            NodeParams,
        ),
        ToolSpec(
            FigmaTool.ANALYZE_DESIGN_STRUCTURE,
            "Analyze and structure Figma design data for code generation",
            AnalyzeParams,
        ),
        ToolSpec(
            FigmaTool.EXTRACT_DESIGN_TOKENS,
            "Extract colour design tokens from the fills and strokes of a Figma file",
            TokenParams,
        ),
    )

    def __init__(self, client: FigmaApiClient, name: str = "figma"):
        super().__init__(name)
        self._client = client
        self.enable_resources()
        self.enable_tools()
        self.enable_prompts()

    async def list_resources(self) -> list[Resource]:
        return [
            Resource(
                name="figma_file",
                uri="figma://file/{file_id}",
                description="Access to Figma file data including all nodes and metadata",
            ),
            Resource(
                name="figma_node",
                uri="figma://node/{file_id}/{node_id}",
                description="Access to specific Figma node data",
            ),
            Resource(
                name="figma_components",
                uri="figma://components/{file_id}",
                description="List of all components in a Figma file",
            ),
        ]

    async def list_prompts(self) -> list[Prompt]:
        return [
            Prompt(
                name="analyze_figma_design",
                description="Analyze a Figma design for code generation",
                arguments=[
                    PromptArgument(
                        name="file_id", description="Figma file ID", required=True
                    ),
                    PromptArgument(
                        name="focus_area",
                        description="Specific area or component to focus on",
                    ),
                ],
            )
        ]

    async def read_resource(self, uri: str) -> Any:
        parsed = self._parse_uri(uri)

        if (segments := parsed.match("file", 1)) is not None:
            return await self._client.get_file(segments[0])
        if (segments := parsed.match("node", 2)) is not None:
            return await self._client.get_node(segments[0], segments[1])
        if (segments := parsed.match("components", 1)) is not None:
            return await self._client.get_file_components(segments[0])

        raise InvalidResourceUriError(uri, f"Invalid Figma URI: {uri}")

    def _tool_handlers(self) -> Mapping[StrEnum, ToolHandler]:
        return {
            FigmaTool.GET_FILE_STRUCTURE: self._get_file_structure,
            FigmaTool.GET_NODE_DETAILS: self._get_node_details,
            FigmaTool.EXTRACT_COMPONENT_PROPS: self._extract_component_props,
            FigmaTool.ANALYZE_DESIGN_STRUCTURE: self._analyze_design_structure,
            FigmaTool.EXTRACT_DESIGN_TOKENS: self._extract_design_tokens,
        }

    async def _get_file_structure(self, params: FileParams) -> dict[str, Any]:
        return await self._client.get_file(params.file_id, depth=params.depth)

    async def _get_node_details(self, params: NodeParams) -> dict[str, Any]:
        return await self._client.get_node(params.file_id, params.node_id)

    async def _extract_component_props(self, params: NodeParams) -> dict[str, Any]:
        node = await self._client.get_node(params.file_id, params.node_id)
        document = node.get("document") or {}
        if document.get("type") != "COMPONENT":
            raise InvalidArgumentsError(
                FigmaTool.EXTRACT_COMPONENT_PROPS,
                f"Node {params.node_id} is not a component "
                f"(type: {document.get('type')})",
                {"node_id": params.node_id},
            )

        return {
            "componentName": document.get("name"),
            "properties": document.get("componentPropertyDefinitions") or {},
            "variants": design.component_variants(document),
            "styles": design.node_styles(document),
        }

    async def _analyze_design_structure(self, params: AnalyzeParams) -> dict[str, Any]:
        file_data = await self._client.get_file(params.file_id)

        if params.node_ids:
            nodes = await self._client.get_file_nodes(params.file_id, params.node_ids)
            target_nodes = [nodes[node_id]["document"] for node_id in params.node_ids]
        else:
            target_nodes = design.all_nodes(file_data["document"])

        logger.debug(
            f"Analyzing {len(target_nodes)} nodes from Figma file {params.file_id}"
        )
        return {
            "fileId": params.file_id,
            "fileName": file_data.get("name"),
            "components": [design.to_design_component(n) for n in target_nodes],
            "styles": design.design_styles(target_nodes),
            "lastModified": file_data.get("lastModified"),
        }

    async def _extract_design_tokens(self, params: TokenParams) -> dict[str, Any]:
        file_data = await self._client.get_file(params.file_id)
        tokens = design.design_tokens(file_data["document"])
        return {"fileId": params.file_id, "tokens": tokens, "count": len(tokens)}
