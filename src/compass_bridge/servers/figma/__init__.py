"""Figma design-source provider."""

from .client import FigmaApiClient, create_figma_client
from .provider import FigmaProvider, FigmaTool

__all__ = [
    "FigmaApiClient",
    "FigmaProvider",
    "FigmaTool",
    "create_figma_client",
]
