"""Descriptor models shared by every capability provider."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PROTOCOL_VERSION = "2024-11-05"


class Tool(BaseModel):
    """A named, schema-described operation a provider can execute."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )

    @property
    def required(self) -> list[str]:
        """Names of required arguments."""
        return list(self.input_schema.get("required", []))


class Resource(BaseModel):
    """A URI-addressed, read-only document exposed by a provider."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    uri: str
    description: str | None = None
    mime_type: str = Field("application/json", alias="mimeType")


class PromptArgument(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    required: bool = False


class Prompt(BaseModel):
    """A prompt template a provider offers to its callers."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    arguments: list[PromptArgument] = Field(default_factory=list)


class Capabilities(BaseModel):
    """Capability flags declared during provider construction."""

    resources: bool = False
    tools: bool = False
    prompts: bool = False


def dump(model: BaseModel) -> dict[str, Any]:
    """Serialize a descriptor using its wire (camelCase) field names."""
    return model.model_dump(by_alias=True, exclude_none=True)
