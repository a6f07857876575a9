"""Code-generation provider."""

from .provider import CodegenProvider, CodegenTool

__all__ = [
    "CodegenProvider",
    "CodegenTool",
]
