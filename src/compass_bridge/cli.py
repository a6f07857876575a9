"""Command-line interface for compass-bridge."""

import asyncio
import functools
import json
import logging
from typing import Any

import click

from compass_bridge import __version__
from compass_bridge.api.mcp.context import HostContext, create_host_context
from compass_bridge.api.mcp.handler import to_text
from compass_bridge.core.config.settings import get_settings
from compass_bridge.core.mcp.exceptions import McpError


def _load_context() -> HostContext:
    return create_host_context(get_settings())


def run_async_host_command(command_func):
    """Decorator to run async host commands with consistent error handling."""

    @functools.wraps(command_func)
    def wrapper(*args, **kwargs):
        async def _run():
            context = _load_context()
            try:
                return await command_func(context, *args, **kwargs)
            except McpError as e:
                raise click.ClickException(f"❌ {e.kind}: {e.message}") from e

        return asyncio.run(_run())

    return wrapper


def parse_json_option(value: str | None, option: str) -> dict[str, Any]:
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint=option) from e
    if not isinstance(parsed, dict):
        raise click.BadParameter("Must be a JSON object", param_hint=option)
    return parsed


@click.group()
@click.version_option(version=__version__, prog_name="compass-bridge")
def cli() -> None:
    """Compass Bridge - design, code generation and decision tools behind one host"""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.application.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def info() -> None:
    """Show project information."""
    settings = get_settings()
    click.echo(f"compass-bridge v{__version__}")
    click.echo("Compass Bridge - design, code generation and decision tools behind one host")
    click.echo(f"   Environment: {settings.application.app_env}")
    click.echo(
        f"   Figma API: {'configured' if settings.figma.has_credential else 'mock data'}"
    )
    llm_mode = "configured" if settings.llm.api_key else "mock responses"
    click.echo(f"   LLM ({settings.llm.provider}): {llm_mode}")


@cli.command()
@click.option("--host", help="Server host (overrides HOST_HOST)")
@click.option("--port", type=int, help="Server port (overrides HOST_PORT)")
def serve(host: str | None, port: int | None) -> None:
    """Start the HTTP envelope endpoint."""
    import uvicorn

    from compass_bridge.web.app import create_app

    settings = get_settings()
    actual_host = host if host is not None else settings.host.host
    actual_port = port if port is not None else settings.host.port

    context = _load_context()
    click.echo(f"🚀 Starting {settings.host.server_name}")
    click.echo(f"   Endpoint: http://{actual_host}:{actual_port}/mcp/{{provider}}")
    click.echo("\n📦 Providers:")
    for name in context.router.provider_names:
        click.echo(f"   • {name}")

    uvicorn.run(
        create_app(context),
        host=actual_host,
        port=actual_port,
        log_level=settings.application.log_level.lower(),
    )


@cli.command()
@run_async_host_command
async def tools(context: HostContext) -> None:
    """List tools from every provider."""
    for entry in await context.router.list_all_tools():
        click.echo(f"\n📦 {entry['providerName']}")
        for tool in entry["tools"]:
            click.echo(f"   • {tool.name} - {tool.description}")


@cli.command()
@run_async_host_command
async def resources(context: HostContext) -> None:
    """List resources from every provider."""
    for entry in await context.router.list_all_resources():
        click.echo(f"\n📚 {entry['providerName']}")
        for resource in entry["resources"]:
            click.echo(f"   • {resource.uri} - {resource.description or resource.name}")


@cli.command()
@run_async_host_command
async def prompts(context: HostContext) -> None:
    """List prompt templates from every provider."""
    for entry in await context.router.list_all_prompts():
        click.echo(f"\n📝 {entry['providerName']}")
        for prompt in entry["prompts"]:
            click.echo(f"   • {prompt.name} - {prompt.description}")


@cli.command()
@click.argument("provider")
@click.argument("tool")
@click.option("--args", "-a", "args_json", help="Tool arguments as a JSON object")
def call(provider: str, tool: str, args_json: str | None) -> None:
    """Invoke TOOL on PROVIDER and print the JSON result.

    Examples:
        compass-bridge call figma get_figma_file_structure -a '{"file_id": "abc"}'
        compass-bridge call codegen generate_code -a '{"design_data": "{}"}'
    """
    arguments = parse_json_option(args_json, "--args")

    @run_async_host_command
    async def _call(context: HostContext) -> Any:
        return await context.router.invoke(provider, tool, arguments)

    click.echo(to_text(_call()))


@cli.command()
@click.argument("provider")
@click.argument("uri")
def read(provider: str, uri: str) -> None:
    """Read resource URI from PROVIDER and print it."""

    @run_async_host_command
    async def _read(context: HostContext) -> Any:
        return await context.router.read_resource(provider, uri)

    click.echo(to_text(_read()))


@cli.command()
@click.argument("prompt")
@click.option("--context", "-c", "context_json", help="Extra context as a JSON object")
def ask(prompt: str, context_json: str | None) -> None:
    """Plan and run a natural-language request across all providers."""
    extra = parse_json_option(context_json, "--context")

    @run_async_host_command
    async def _ask(context: HostContext) -> dict[str, Any]:
        return await context.orchestrator.process(prompt, extra or None)

    result = _ask()
    click.echo(result["response"])
    for failure in result["failures"]:
        click.echo(
            f"⚠️  {failure['server']}/{failure['target']} failed: {failure['message']}",
            err=True,
        )


@cli.command()
def status() -> None:
    """Show registered providers and their capabilities."""
    context = _load_context()
    report = context.router.status()
    click.echo(f"📊 {report['providerCount']} providers registered")
    for provider in report["providers"]:
        enabled = [flag for flag, on in provider.get("capabilities", {}).items() if on]
        click.echo(
            f"   • {provider['routingName']} ({provider.get('name')} "
            f"v{provider.get('version')}): {', '.join(enabled) or 'none'}"
        )


def main() -> None:
    """Entry point for the compass-bridge command."""
    cli()


if __name__ == "__main__":
    main()
