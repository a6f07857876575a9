"""Construction of the provider graph shared by the CLI and the web app."""

import logging
from dataclasses import dataclass, field

import httpx

from compass_bridge.core.config.settings import Settings
from compass_bridge.core.llm.generator import create_text_generator
from compass_bridge.core.mcp.protocols import TextGenerator
from compass_bridge.servers.codegen import CodegenProvider
from compass_bridge.servers.decision import DecisionProvider
from compass_bridge.servers.figma import FigmaProvider, create_figma_client

from .handler import ProtocolRequestHandler
from .orchestrator import NaturalLanguageOrchestrator
from .remote import RemoteCapabilityProvider
from .router import CapabilityRouter

logger = logging.getLogger(__name__)


@dataclass
class HostContext:
    """Everything a front end needs to serve requests."""

    settings: Settings
    router: CapabilityRouter
    generator: TextGenerator
    orchestrator: NaturalLanguageOrchestrator
    _handlers: dict[str, ProtocolRequestHandler] = field(default_factory=dict)

    def handler(self, provider_name: str) -> ProtocolRequestHandler:
        """Envelope handler bound to a registered provider.

        Raises:
            ProviderNotFoundError: If no provider has that name
        """
        provider = self.router.provider(provider_name)
        handler = self._handlers.get(provider_name)
        if handler is None or handler.provider is not provider:
            handler = ProtocolRequestHandler(provider)
            self._handlers[provider_name] = handler
        return handler


def create_host_context(
    settings: Settings,
    *,
    generator: TextGenerator | None = None,
    figma_transport: httpx.AsyncBaseTransport | None = None,
    remote_transport: httpx.AsyncBaseTransport | None = None,
) -> HostContext:
    """Build the router with the built-in and configured remote providers.

    Args:
        settings: Loaded application settings
        generator: Text generator override; built from LLM settings if omitted
        figma_transport: Optional httpx transport for the Figma client
        remote_transport: Optional httpx transport for remote providers
    """
    if generator is None:
        generator = create_text_generator(settings.llm)

    router = CapabilityRouter()
    figma = FigmaProvider(create_figma_client(settings.figma, transport=figma_transport))
    router.register(figma.name, figma)
    codegen = CodegenProvider(generator)
    router.register(codegen.name, codegen)
    decision = DecisionProvider(generator)
    router.register(decision.name, decision)

    for name, url in settings.host.remote_providers.items():
        remote = RemoteCapabilityProvider(
            name, url, transport=remote_transport
        )
        router.register(name, remote, replace=True)

    logger.info(f"Host ready with providers: {', '.join(router.provider_names)}")
    return HostContext(
        settings=settings,
        router=router,
        generator=generator,
        orchestrator=NaturalLanguageOrchestrator(router, generator),
    )
