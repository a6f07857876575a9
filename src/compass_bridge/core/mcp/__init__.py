"""Core capability-host abstractions and protocols."""

from .exceptions import (
    ErrorKind,
    InvalidArgumentsError,
    InvalidResourceUriError,
    McpError,
    NotFoundError,
    ProviderAlreadyRegisteredError,
    ProviderNotFoundError,
    ResourceError,
    ToolError,
    UnknownToolError,
    UnsupportedSchemeError,
)
from .models import Prompt, PromptArgument, Resource, Tool
from .protocols import CapabilityProvider, TextGenerator
from .result import Err, Ok, Result

__all__ = [
    "CapabilityProvider",
    "TextGenerator",
    "Tool",
    "Resource",
    "Prompt",
    "PromptArgument",
    "ErrorKind",
    "McpError",
    "ToolError",
    "ResourceError",
    "UnknownToolError",
    "InvalidArgumentsError",
    "UnsupportedSchemeError",
    "InvalidResourceUriError",
    "NotFoundError",
    "ProviderNotFoundError",
    "ProviderAlreadyRegisteredError",
    "Ok",
    "Err",
    "Result",
]
