"""Tests for routing across named providers."""

import pytest

from compass_bridge.api.mcp.router import CapabilityRouter
from compass_bridge.core.mcp.exceptions import (
    ErrorKind,
    ProviderAlreadyRegisteredError,
    ProviderNotFoundError,
    UnknownToolError,
)
from compass_bridge.core.mcp.result import Err, Ok
from tests.fixtures.providers import (
    BrokenListingProvider,
    EchoProvider,
    RawErrorProvider,
)


@pytest.fixture
def router():
    router = CapabilityRouter()
    router.register("alpha", EchoProvider("alpha"))
    router.register("beta", BrokenListingProvider("beta"))
    return router


class TestRegistration:
    @pytest.mark.unit
    def test_names_in_registration_order(self, router):
        assert router.provider_names == ["alpha", "beta"]
        assert "alpha" in router
        assert len(router) == 2

    @pytest.mark.unit
    def test_duplicate_name_rejected(self, router):
        with pytest.raises(ProviderAlreadyRegisteredError):
            router.register("alpha", EchoProvider("other"))

    @pytest.mark.unit
    def test_replace_is_last_write_wins(self, router):
        replacement = EchoProvider("replacement")

        router.register("alpha", replacement, replace=True)

        assert router.provider("alpha") is replacement
        assert router.provider_names == ["alpha", "beta"]

    @pytest.mark.unit
    def test_unregister(self, router):
        removed = router.unregister("beta")

        assert removed.name == "beta"
        assert router.provider_names == ["alpha"]
        with pytest.raises(ProviderNotFoundError):
            router.unregister("beta")


class TestAggregateListing:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_provider_is_left_out(self, router):
        """A provider that fails to list never hides the others."""
        # Act
        tools = await router.list_all_tools()

        # Assert
        assert len(tools) == 1
        assert tools[0]["providerName"] == "alpha"
        assert [t.name for t in tools[0]["tools"]] == ["echo", "fail"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_listing_failure_is_logged(self, router, caplog):
        await router.list_all_resources()

        assert "Failed to list resources from provider 'beta'" in caplog.text

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_listing_is_idempotent(self, router):
        first = await router.list_all_tools()
        second = await router.list_all_tools()

        assert first == second

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prompts_grouped_by_provider(self, router):
        prompts = await router.list_all_prompts()

        assert prompts == [
            {"providerName": "alpha", "prompts": []},
            {"providerName": "beta", "prompts": []},
        ]


class TestDispatch:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invoke_routes_by_name(self, router):
        """Invocations reach exactly the named provider."""
        alpha = await router.invoke("alpha", "echo", {"text": "a"})
        beta = await router.invoke("beta", "echo", {"text": "b"})

        assert alpha == {"echo": "a", "provider": "alpha"}
        assert beta == {"echo": "b", "provider": "beta"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invoke_unknown_provider(self, router):
        with pytest.raises(ProviderNotFoundError) as exc_info:
            await router.invoke("gamma", "echo", {"text": "x"})

        assert exc_info.value.message == "Provider 'gamma' not found"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, router):
        with pytest.raises(UnknownToolError):
            await router.invoke("alpha", "missing", {})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_read_resource(self, router):
        data = await router.read_resource("alpha", "echo://notes/7")

        assert data == {"id": "7", "text": "note 7"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_try_invoke_returns_results(self, router):
        ok = await router.try_invoke("alpha", "echo", {"text": "x"})
        missing = await router.try_invoke("gamma", "echo", {})
        bad_uri = await router.try_read_resource("alpha", "echo://nowhere/1")

        assert isinstance(ok, Ok)
        assert ok.value["echo"] == "x"
        assert isinstance(missing, Err)
        assert missing.kind == ErrorKind.PROVIDER_NOT_FOUND
        assert bad_uri.kind == ErrorKind.INVALID_RESOURCE_URI

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_try_invoke_wraps_unexpected_exceptions(self, router):
        # Arrange
        router.register("raw", RawErrorProvider())

        # Act
        invoked = await router.try_invoke("raw", "anything", {})
        read = await router.try_read_resource("raw", "raw://x/1")

        # Assert
        assert isinstance(invoked, Err)
        assert invoked.kind == ErrorKind.TOOL_FAILED
        assert invoked.message == "boom"
        assert invoked.error.details == {"type": "RuntimeError"}
        assert isinstance(invoked.error.__cause__, RuntimeError)
        assert isinstance(read, Err)
        assert read.error.details == {"type": "KeyError"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invoke_on_provider_that_cannot_list(self, router):
        """A provider whose listing fails still owns its dispatch errors."""
        with pytest.raises(UnknownToolError) as exc_info:
            await router.invoke("beta", "x", {})

        assert not isinstance(exc_info.value, ProviderNotFoundError)
        assert exc_info.value.message == "Unknown tool: x"


class TestStatus:
    @pytest.mark.unit
    def test_status_reports_each_provider(self, router):
        status = router.status()

        assert status["providerCount"] == 2
        assert status["providers"][0]["routingName"] == "alpha"
        assert status["providers"][0]["name"] == "alpha"
        assert status["providers"][0]["capabilities"]["tools"] is True
