"""Capability host: envelope handling, routing and orchestration."""

from .handler import ProtocolRequestHandler, RequestEnvelope, ResponseEnvelope
from .orchestrator import NaturalLanguageOrchestrator
from .providers import BaseCapabilityProvider, ToolSpec
from .remote import RemoteCapabilityProvider
from .router import CapabilityRouter

__all__ = [
    "BaseCapabilityProvider",
    "CapabilityRouter",
    "NaturalLanguageOrchestrator",
    "ProtocolRequestHandler",
    "RemoteCapabilityProvider",
    "RequestEnvelope",
    "ResponseEnvelope",
    "ToolSpec",
]
