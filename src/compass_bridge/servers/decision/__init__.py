"""Decision-support provider."""

from .provider import DecisionProvider, DecisionTool

__all__ = [
    "DecisionProvider",
    "DecisionTool",
]
