"""Capability-host exceptions.

Every error carries a machine-readable ``kind`` and a JSON-RPC style ``code``
so it can be placed into a response envelope without losing information.
"""

from enum import StrEnum
from typing import Any

INVOCATION_ERROR_CODE = -32000
PROVIDER_NOT_FOUND_CODE = -32001
INVALID_REQUEST_CODE = -32600
METHOD_NOT_FOUND_CODE = -32601


class ErrorKind(StrEnum):
    """Stable failure classes surfaced to callers."""

    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    INVALID_RESOURCE_URI = "invalid_resource_uri"
    NOT_FOUND = "not_found"
    PROVIDER_NOT_FOUND = "provider_not_found"
    PROVIDER_ALREADY_REGISTERED = "provider_already_registered"
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_REQUEST = "invalid_request"
    RATE_LIMITED = "rate_limited"
    ACCESS_DENIED = "access_denied"
    UPSTREAM_TIMEOUT = "upstream_timeout"
    NETWORK_ERROR = "network_error"
    TOOL_FAILED = "tool_failed"
    ORCHESTRATION_FAILED = "orchestration_failed"


class McpError(Exception):
    """Base exception for capability-host errors."""

    kind: ErrorKind = ErrorKind.TOOL_FAILED
    code: int = INVOCATION_ERROR_CODE

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_data(self) -> dict[str, Any]:
        """Describe the error for the ``data`` field of an error envelope."""
        return {
            "type": type(self).__name__,
            "kind": str(self.kind),
            "details": self.details,
        }


class ToolError(McpError):
    """Exception raised when tool execution fails."""

    def __init__(
        self, tool_name: str, message: str, details: dict[str, Any] | None = None
    ):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed: {message}", details)


class UnknownToolError(McpError):
    """The provider does not expose a tool with this name."""

    kind = ErrorKind.UNKNOWN_TOOL

    def __init__(self, tool_name: str | None):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}", {"tool": tool_name})


class InvalidArgumentsError(McpError):
    """Tool arguments are missing or have the wrong type."""

    kind = ErrorKind.INVALID_ARGUMENTS

    def __init__(
        self, tool_name: str, message: str, details: dict[str, Any] | None = None
    ):
        self.tool_name = tool_name
        super().__init__(message, {"tool": tool_name, **(details or {})})


class ResourceError(McpError):
    """Exception raised when resource access fails."""

    def __init__(self, uri: str, message: str, details: dict[str, Any] | None = None):
        self.uri = uri
        super().__init__(message, {"uri": uri, **(details or {})})


class UnsupportedSchemeError(ResourceError):
    """The URI scheme does not belong to the provider."""

    kind = ErrorKind.UNSUPPORTED_SCHEME

    def __init__(self, uri: str, scheme: str):
        self.scheme = scheme
        super().__init__(uri, f"Unsupported protocol: {scheme}", {"scheme": scheme})


class InvalidResourceUriError(ResourceError):
    """The URI path matches none of the provider's resource patterns."""

    kind = ErrorKind.INVALID_RESOURCE_URI

    def __init__(self, uri: str, message: str | None = None):
        super().__init__(uri, message or f"Invalid resource URI: {uri}")


class NotFoundError(McpError):
    """A well-formed reference points at an entity that does not exist."""

    kind = ErrorKind.NOT_FOUND


class ProviderNotFoundError(McpError):
    """No provider is registered under the requested name."""

    kind = ErrorKind.PROVIDER_NOT_FOUND
    code = PROVIDER_NOT_FOUND_CODE

    def __init__(self, provider_name: str):
        self.provider_name = provider_name
        super().__init__(
            f"Provider '{provider_name}' not found", {"provider": provider_name}
        )


class ProviderAlreadyRegisteredError(McpError):
    """A provider with the same name is already registered."""

    kind = ErrorKind.PROVIDER_ALREADY_REGISTERED

    def __init__(self, provider_name: str):
        self.provider_name = provider_name
        super().__init__(
            f"Provider '{provider_name}' is already registered "
            "(pass replace=True to overwrite)",
            {"provider": provider_name},
        )


class MethodNotFoundError(McpError):
    """The envelope names a method outside the protocol."""

    kind = ErrorKind.METHOD_NOT_FOUND
    code = METHOD_NOT_FOUND_CODE

    def __init__(self, method: str | None):
        self.method = method
        super().__init__(f"Method not found: {method}", {"method": method})


class InvalidRequestError(McpError):
    """The request envelope itself is malformed."""

    kind = ErrorKind.INVALID_REQUEST
    code = INVALID_REQUEST_CODE


class FetchError(McpError):
    """Base class for outbound API failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 1,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(
            message,
            {"status_code": status_code, "attempts": attempts, **(details or {})},
        )


class RateLimitedError(FetchError):
    kind = ErrorKind.RATE_LIMITED


class AccessDeniedError(FetchError):
    kind = ErrorKind.ACCESS_DENIED


class UpstreamNotFoundError(FetchError, NotFoundError):
    """HTTP 404 from the upstream API."""

    kind = ErrorKind.NOT_FOUND


class UpstreamTimeoutError(FetchError):
    kind = ErrorKind.UPSTREAM_TIMEOUT


class NetworkError(FetchError):
    kind = ErrorKind.NETWORK_ERROR


class OrchestrationError(McpError):
    """Planning or synthesis of a natural-language request failed."""

    kind = ErrorKind.ORCHESTRATION_FAILED
